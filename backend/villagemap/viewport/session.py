from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from loguru import logger

from villagemap.config import MapViewConfig
from villagemap.errors import LayerDisposed
from villagemap.geo.aoi import BBox, Viewport
from villagemap.layers.types import FeatureRecord
from villagemap.lod.policy import (
    VIEWPORT_FETCH_MIN_ZOOM,
    LodMode,
    select_mode,
    should_fetch_viewport,
)
from villagemap.query.types import FeatureQuery, FilterSelection
from villagemap.render.layer_manager import RenderLayerManager, UpdateTrigger
from villagemap.render.surface import PlotlyMapSurface
from villagemap.viewport.coordinator import (
    FetchOutcome,
    FetchResult,
    ViewportQueryCoordinator,
)

ZOOM_HINT = "Zoom in to see detailed polygons"


@dataclass(frozen=True)
class MapStatus:
    zoom: float
    mode: LodMode
    shown: int
    hint: str | None
    state: str

    def as_dict(self) -> dict[str, Any]:
        return {
            "zoom": self.zoom,
            "mode": self.mode,
            "shown": self.shown,
            "hint": self.hint,
            "state": self.state,
        }


class MapSession:
    """
    What a hosting view talks to: navigation and filter events in, a drawn layer out.

    Owns the render layer (and through it the display surface) plus the coordinator that
    feeds it. `dispose()` tears everything down once; later events fail fast.
    """

    def __init__(
        self,
        query: FeatureQuery,
        *,
        surface: PlotlyMapSurface | None = None,
        config: MapViewConfig | None = None,
        debounce_s: float = 0.0,
    ):
        self.config = config or MapViewConfig()
        self.surface = surface or PlotlyMapSurface(self.config)
        self.layer = RenderLayerManager(self.surface, fit_padding_px=self.config.fitPaddingPx)
        self.coordinator = ViewportQueryCoordinator(
            query, self.on_features_updated, debounce_s=debounce_s
        )
        self.filters = FilterSelection()
        self.zoom = float(self.config.defaultView.zoom)
        # Last applied filter response; what the map shows at low zoom.
        self.filtered: list[FeatureRecord] | None = None
        self._drawn: list[FeatureRecord] = []
        logger.info("Map session created")

    @property
    def disposed(self) -> bool:
        return self.layer.disposed

    async def on_viewport_changed(self, bounds: BBox, zoom: float) -> FetchResult:
        self._check()
        b = bounds.normalized()
        self.zoom = float(zoom)
        self.surface.set_view(
            {"lat": (b.min_lat + b.max_lat) / 2.0, "lon": (b.min_lon + b.max_lon) / 2.0},
            self.zoom,
        )
        viewport = Viewport(
            south=b.min_lat, north=b.max_lat, west=b.min_lon, east=b.max_lon, zoom=self.zoom
        )
        if not should_fetch_viewport(self.zoom) and self.filtered is not None:
            self._draw(self.filtered, self.zoom, "viewport")
        elif self.layer.shapes and self.layer.stats().mode != select_mode(self.zoom).mode:
            # Redraw in the new mode now; the fetch below may be dropped or fail.
            self._draw(self._drawn, self.zoom, "viewport")
        return await self.coordinator.on_viewport_changed(viewport)

    def on_features_updated(
        self, records: list[FeatureRecord], zoom: float, trigger: UpdateTrigger
    ) -> None:
        if trigger != "filter":
            self._draw(records, zoom, trigger)
            return

        self.filtered = list(records)
        fits = self.surface.fit_count
        self._draw(self.filtered, zoom, trigger)
        if self.surface.fit_count == fits:
            return
        fitted = float(self.surface.zoom)
        redraw = select_mode(fitted).mode != select_mode(zoom).mode
        self.zoom = fitted
        if redraw:
            self._draw(self.filtered, fitted, "viewport")

    async def on_filter_changed(self, selection: FilterSelection) -> FetchResult:
        self._check()
        self.filters = selection
        logger.info(
            f"Filter changed: state={selection.state or '-'} district={selection.district or '-'} "
            f"subdistrict={selection.subdistrict or '-'}"
        )
        if selection.is_empty:
            seq = self.coordinator.supersede()
            self.layer.clear()
            self.filtered = None
            self._drawn = []
            return FetchResult(seq=seq, outcome=FetchOutcome.cleared, trigger="filter", zoom=self.zoom)
        return await self.coordinator.on_filter_changed(selection, self.zoom)

    async def select_state(self, state: str | None) -> FetchResult:
        return await self.on_filter_changed(self.filters.with_state(state))

    async def select_district(self, district: str | None) -> FetchResult:
        return await self.on_filter_changed(self.filters.with_district(district))

    async def select_subdistrict(self, subdistrict: str | None) -> FetchResult:
        return await self.on_filter_changed(self.filters.with_subdistrict(subdistrict))

    def status(self) -> MapStatus:
        return MapStatus(
            zoom=self.zoom,
            mode=select_mode(self.zoom).mode,
            shown=len(self.layer.shapes),
            hint=ZOOM_HINT if self.zoom <= VIEWPORT_FETCH_MIN_ZOOM else None,
            state=self.coordinator.state.value,
        )

    def figure(self) -> dict[str, Any]:
        self._check()
        stats = self.layer.stats()
        status = self.status()
        return self.surface.figure(
            meta={
                "stats": {
                    "zoom": status.zoom,
                    "mode": status.mode,
                    "renderedPoints": stats.points,
                    "renderedPolygons": stats.polygons,
                    "polygonFallbacks": stats.fallbacks,
                    "skippedWithoutCentroid": stats.skipped,
                    "hint": status.hint,
                    "lastAppliedSeq": self.coordinator.last_applied_seq,
                },
                "filters": {
                    "state": self.filters.state,
                    "district": self.filters.district,
                    "subdistrict": self.filters.subdistrict,
                },
            }
        )

    def dispose(self) -> None:
        if self.layer.disposed:
            return
        # Anything still in flight resolves into a superseded no-op.
        self.coordinator.supersede()
        self.layer.dispose()
        logger.info("Map session disposed")

    def _draw(self, records: list[FeatureRecord], zoom: float, trigger: UpdateTrigger) -> None:
        self.layer.set_features(records, zoom, trigger=trigger, context=self.filters)
        self._drawn = list(records)

    def _check(self) -> None:
        if self.layer.disposed:
            raise LayerDisposed("map session was disposed")
