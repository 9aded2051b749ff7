from __future__ import annotations

from loguru import logger

from villagemap.errors import GeometryBuildFailure
from villagemap.geo.coords import lnglat_to_latlng, outer_ring
from villagemap.layers.types import Centroid, FeatureRecord
from villagemap.lod.policy import LodMode, marker_radius
from villagemap.query.types import FilterSelection
from villagemap.render.popup import UNKNOWN_NAME, Popup, format_population
from villagemap.render.types import CircleMarkerShape, PolygonShape, Shape, ShapeStyle

MIN_RING_VERTICES = 3


class FeaturePresenter:
    """
    Builds the drawable shape (geometry + style + popup) for one village.

    A record whose polygon cannot be built is drawn as a point instead, so a single bad
    geometry never takes the rest of the batch down with it.
    """

    def present(
        self,
        record: FeatureRecord,
        mode: LodMode,
        *,
        context: FilterSelection | None = None,
    ) -> Shape:
        centroid = record.centroid
        if centroid is None:
            raise ValueError(f"record {record.id} has no centroid")
        popup = build_popup(record, context)
        if mode == "polygon" and record.geometry is not None:
            try:
                return self._polygon(record, popup)
            except GeometryBuildFailure as e:
                logger.warning(f"Polygon fallback for {record.id}: {e.reason}")
        return self._circle(record, centroid, popup)

    def _polygon(self, record: FeatureRecord, popup: Popup) -> PolygonShape:
        try:
            ring = outer_ring(record.geometry.rings if record.geometry else None)
            latlngs = lnglat_to_latlng(ring)
        except Exception as e:
            raise GeometryBuildFailure(record.id, str(e)) from e
        if len(latlngs) < MIN_RING_VERTICES:
            raise GeometryBuildFailure(
                record.id, f"outer ring has {len(latlngs)} vertices, need {MIN_RING_VERTICES}"
            )
        color = record.color_class
        return PolygonShape(
            feature_id=record.id,
            latlngs=tuple(latlngs),
            style=ShapeStyle(
                color=color, fill_color=color, weight=1.0, opacity=1.0, fill_opacity=0.7
            ),
            popup=popup,
        )

    def _circle(self, record: FeatureRecord, centroid: Centroid, popup: Popup) -> CircleMarkerShape:
        color = record.color_class
        return CircleMarkerShape(
            feature_id=record.id,
            lat=centroid.lat,
            lng=centroid.lng,
            radius=marker_radius(record.population),
            style=ShapeStyle(
                color=color, fill_color=color, weight=1.0, opacity=0.8, fill_opacity=0.6
            ),
            popup=popup,
        )


def build_popup(record: FeatureRecord, context: FilterSelection | None) -> Popup:
    ctx = context or FilterSelection()
    return Popup(
        title=record.name or UNKNOWN_NAME,
        population=format_population(record.population),
        state=ctx.state or None,
        district=ctx.district or None,
        subdistrict=ctx.subdistrict or None,
    )
