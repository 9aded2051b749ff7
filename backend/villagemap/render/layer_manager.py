from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from loguru import logger

from villagemap.errors import LayerDisposed
from villagemap.geo.aoi import BBox, union_bboxes
from villagemap.layers.types import FeatureRecord
from villagemap.lod.policy import LodMode, select_mode
from villagemap.query.types import FilterSelection
from villagemap.render.presenter import FeaturePresenter
from villagemap.render.surface import DisplaySurface
from villagemap.render.types import RenderedShape

UpdateTrigger = Literal["filter", "viewport"]


@dataclass(frozen=True)
class LayerStats:
    zoom: float | None
    mode: LodMode | None
    shown: int
    points: int
    polygons: int
    fallbacks: int
    skipped: int


class RenderLayerManager:
    """
    Owns the render layer: the set of shapes currently on the display surface.

    Every accepted update is a full clear-and-rebuild. Filter-triggered updates re-fit
    the view to what was drawn; viewport-triggered ones never move the map.

    The surface handle is acquired on construction and released exactly once by
    `dispose()` (also on leaving a `with` block).
    """

    def __init__(
        self,
        surface: DisplaySurface,
        *,
        presenter: FeaturePresenter | None = None,
        fit_padding_px: int = 20,
    ):
        self._surface: DisplaySurface | None = surface
        self._presenter = presenter or FeaturePresenter()
        self._fit_padding_px = int(fit_padding_px)
        self._layer: dict[str, RenderedShape] = {}
        self._zoom: float | None = None
        self._mode: LodMode | None = None
        self._skipped = 0

    def __enter__(self) -> "RenderLayerManager":
        return self

    def __exit__(self, *exc) -> None:
        self.dispose()

    @property
    def disposed(self) -> bool:
        return self._surface is None

    @property
    def shapes(self) -> list[RenderedShape]:
        return list(self._layer.values())

    def feature_ids(self) -> set[str]:
        return set(self._layer.keys())

    def set_features(
        self,
        records: list[FeatureRecord],
        zoom: float,
        *,
        trigger: UpdateTrigger = "viewport",
        context: FilterSelection | None = None,
    ) -> None:
        surface = self._require_surface()
        mode = select_mode(zoom).mode

        # Build everything before touching the surface so the swap is all-or-nothing.
        built: dict[str, RenderedShape] = {}
        skipped = 0
        for record in records:
            if record.centroid is None:
                skipped += 1
                continue
            if record.id in built:
                # Later duplicates win; the layer holds one shape per feature id.
                del built[record.id]
            shape = self._presenter.present(record, mode, context=context)
            built[record.id] = RenderedShape(feature_id=record.id, mode=mode, shape=shape)

        self._clear_surface(surface)
        try:
            for rendered in built.values():
                surface.add_shape(rendered)
                self._layer[rendered.feature_id] = rendered
        except Exception:
            # Roll back the partial swap; the layer always mirrors the surface.
            self._clear_surface(surface)
            raise
        self._zoom = float(zoom)
        self._mode = mode
        self._skipped = skipped

        stats = self.stats()
        logger.debug(
            f"Render layer rebuilt ({trigger}): {stats.shown} shown, mode={mode}, "
            f"{stats.fallbacks} polygon fallbacks, {skipped} without centroid"
        )

        if trigger == "filter" and self._layer:
            bbox = self.bounds()
            if bbox is not None:
                surface.fit_bounds(bbox, padding_px=self._fit_padding_px)

    def clear(self) -> None:
        surface = self._require_surface()
        self._clear_surface(surface)
        self._skipped = 0

    def dispose(self) -> None:
        if self._surface is None:
            return
        surface = self._surface
        self._surface = None
        self._layer.clear()
        surface.release()
        logger.debug("Render layer disposed")

    def bounds(self) -> BBox | None:
        return union_bboxes(r.shape.bbox() for r in self._layer.values())

    def stats(self) -> LayerStats:
        shapes = self._layer.values()
        return LayerStats(
            zoom=self._zoom,
            mode=self._mode,
            shown=len(self._layer),
            points=sum(1 for r in shapes if r.shape.kind == "circle"),
            polygons=sum(1 for r in shapes if r.shape.kind == "polygon"),
            fallbacks=sum(1 for r in shapes if r.fallback),
            skipped=self._skipped,
        )

    def _clear_surface(self, surface: DisplaySurface) -> None:
        for fid in list(self._layer.keys()):
            surface.remove_shape(fid)
        self._layer.clear()

    def _require_surface(self) -> DisplaySurface:
        if self._surface is None:
            raise LayerDisposed("render layer was disposed")
        return self._surface
