from __future__ import annotations


class VillageMapError(Exception):
    """Base class for errors raised by the village map layer."""


class QueryFailure(VillageMapError):
    """
    A query collaborator call failed (transport, HTTP status, bad JSON, `success: false`).

    Non-fatal: the coordinator logs it and keeps the previous render.
    """

    def __init__(self, cause: BaseException | str):
        self.cause = cause
        super().__init__(f"query failed: {cause}")


class GeometryBuildFailure(VillageMapError):
    """Polygon geometry for a single record could not be turned into a shape."""

    def __init__(self, feature_id: str, reason: str):
        self.feature_id = feature_id
        self.reason = reason
        super().__init__(f"cannot build polygon for {feature_id}: {reason}")


class LayerDisposed(VillageMapError):
    """The render layer was disposed; no further updates are accepted."""


class SurfaceReleased(VillageMapError):
    """The display surface handle was released."""
