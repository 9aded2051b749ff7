from __future__ import annotations

from typing import Any, Protocol

from villagemap.config import MapViewConfig
from villagemap.errors import SurfaceReleased
from villagemap.geo.aoi import BBox
from villagemap.geo.view import fit_view_to_bbox
from villagemap.render.traces import trace_circle_markers, trace_polygon
from villagemap.render.types import CircleMarkerShape, PolygonShape, RenderedShape


class DisplaySurface(Protocol):
    """
    Host-owned map handle the render layer draws on.
    """

    def add_shape(self, shape: RenderedShape) -> None: ...

    def remove_shape(self, feature_id: str) -> None: ...

    def clear(self) -> None: ...

    def fit_bounds(self, bbox: BBox, *, padding_px: int) -> None: ...

    def release(self) -> None: ...


class PlotlyMapSurface(DisplaySurface):
    """
    Display surface that renders the drawn shapes into a Plotly `scattermapbox` payload.

    The frontend only ever receives `figure()`; the surface itself is the source of the
    current center/zoom, which the host updates as the user navigates.
    """

    def __init__(self, config: MapViewConfig | None = None):
        self.config = config or MapViewConfig()
        view = self.config.defaultView
        self.center: dict[str, float] = {"lat": view.center.lat, "lon": view.center.lon}
        self.zoom: float = float(view.zoom)
        self.fit_count = 0
        self._shapes: dict[str, RenderedShape] = {}
        self._released = False

    @property
    def released(self) -> bool:
        return self._released

    @property
    def shapes(self) -> list[RenderedShape]:
        return list(self._shapes.values())

    def add_shape(self, shape: RenderedShape) -> None:
        self._check()
        if shape.feature_id in self._shapes:
            raise ValueError(f"shape {shape.feature_id} is already on the surface")
        self._shapes[shape.feature_id] = shape

    def remove_shape(self, feature_id: str) -> None:
        self._check()
        self._shapes.pop(feature_id, None)

    def clear(self) -> None:
        self._check()
        self._shapes.clear()

    def set_view(self, center: dict[str, float], zoom: float) -> None:
        self._check()
        self.center = {"lat": float(center["lat"]), "lon": float(center["lon"])}
        self.zoom = float(zoom)

    def fit_bounds(self, bbox: BBox, *, padding_px: int) -> None:
        self._check()
        self.center, self.zoom = fit_view_to_bbox(
            bbox,
            viewport=self.config.viewport.model_dump(),
            padding_px=padding_px,
            max_zoom=self.config.maxZoom,
        )
        self.fit_count += 1

    def release(self) -> None:
        self._shapes.clear()
        self._released = True

    def figure(self, *, meta: dict[str, Any] | None = None) -> dict[str, Any]:
        # Polygons first so point symbols stay on top.
        traces: list[dict[str, Any]] = []
        circles_by_color: dict[str, list[CircleMarkerShape]] = {}
        for rendered in self._shapes.values():
            shape = rendered.shape
            if isinstance(shape, PolygonShape):
                traces.append(trace_polygon(shape))
            elif isinstance(shape, CircleMarkerShape):
                circles_by_color.setdefault(shape.style.fill_color, []).append(shape)
        for color in sorted(circles_by_color):
            traces.append(trace_circle_markers(color, circles_by_color[color]))

        return {
            "data": traces,
            "layout": {
                "mapbox": {
                    "center": dict(self.center),
                    "zoom": self.zoom,
                    "style": self.config.mapStyle,
                },
                "showlegend": False,
                "margin": {"l": 0, "r": 0, "t": 0, "b": 0},
                "meta": meta or {},
            },
        }

    def _check(self) -> None:
        if self._released:
            raise SurfaceReleased("display surface was released")
