from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, TypeAlias, Union

from villagemap.geo.aoi import BBox
from villagemap.lod.policy import LodMode
from villagemap.render.popup import Popup

ShapeKind = Literal["circle", "polygon"]


@dataclass(frozen=True)
class ShapeStyle:
    color: str  # stroke
    fill_color: str
    weight: float
    opacity: float  # stroke
    fill_opacity: float


@dataclass(frozen=True)
class CircleMarkerShape:
    feature_id: str
    lat: float
    lng: float
    radius: float
    style: ShapeStyle
    popup: Popup
    kind: ShapeKind = "circle"

    def bbox(self) -> BBox:
        return BBox(min_lon=self.lng, min_lat=self.lat, max_lon=self.lng, max_lat=self.lat)


@dataclass(frozen=True)
class PolygonShape:
    feature_id: str
    latlngs: tuple[tuple[float, float], ...]  # ((lat, lng), ...), outer ring only
    style: ShapeStyle
    popup: Popup
    kind: ShapeKind = "polygon"

    def bbox(self) -> BBox:
        lats = [lat for lat, _lng in self.latlngs]
        lngs = [lng for _lat, lng in self.latlngs]
        return BBox(min_lon=min(lngs), min_lat=min(lats), max_lon=max(lngs), max_lat=max(lats))


Shape: TypeAlias = Union[CircleMarkerShape, PolygonShape]


@dataclass(frozen=True)
class RenderedShape:
    """
    A shape currently on the display surface, tagged with the LOD mode it was built for.

    `fallback` is set when polygon mode was requested but the record was drawn as a point.
    """

    feature_id: str
    mode: LodMode
    shape: Shape

    @property
    def fallback(self) -> bool:
        return self.mode == "polygon" and self.shape.kind == "circle"
