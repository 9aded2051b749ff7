from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Centroid:
    lat: float
    lng: float


@dataclass(frozen=True)
class PolygonGeometry:
    """
    Polygon geometry exactly as delivered upstream.

    `rings` is [outer_ring, hole, ...]; each ring is [[lng, lat], ...]. Nothing is validated
    here: malformed rings are expected and handled when the polygon shape is built.
    """

    rings: Any


@dataclass(frozen=True)
class FeatureRecord:
    """
    One renderable village snapshot from a query response.
    """

    id: str
    centroid: Centroid | None
    color_class: str
    name: str | None = None
    geometry: PolygonGeometry | None = None
    population: int | None = None

    @property
    def has_location(self) -> bool:
        return self.centroid is not None
