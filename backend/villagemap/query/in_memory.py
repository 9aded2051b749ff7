from __future__ import annotations

from typing import Any

from shapely.geometry import Point, Polygon
from shapely.geometry import box as shapely_box
from shapely.strtree import STRtree

from villagemap.layers.decode import decode_records
from villagemap.layers.types import FeatureRecord
from villagemap.query.types import FeatureQuery, FilterSelection


class InMemoryFeatureQuery(FeatureQuery):
    """
    Serves preloaded villages; bounds queries go through an STRtree.

    Each record is indexed by its boundary when that is a usable polygon, otherwise by
    its centroid. Records with neither are only reachable through filter queries.
    """

    def __init__(
        self,
        records: list[FeatureRecord],
        *,
        admin: dict[str, FilterSelection] | None = None,
    ):
        self.records = list(records)
        self.admin = dict(admin or {})
        self.calls: list[tuple[str, tuple]] = []

        self._geoms: list[Any] = []
        self._geom_records: list[FeatureRecord] = []
        for r in self.records:
            g = _index_geometry(r)
            if g is None:
                continue
            self._geoms.append(g)
            self._geom_records.append(r)
        self._tree = STRtree(self._geoms)
        self._order = {r.id: i for i, r in enumerate(self.records)}

    @classmethod
    def from_rows(cls, rows: list[dict[str, Any]]) -> "InMemoryFeatureQuery":
        """
        Build from API-shaped rows that also carry `state`/`district`/`subdistrict`.
        """
        records = decode_records(rows)
        admin: dict[str, FilterSelection] = {}
        for record, row in zip(records, [r for r in rows if isinstance(r, dict)]):
            admin[record.id] = FilterSelection(
                state=str(row.get("state") or ""),
                district=str(row.get("district") or ""),
                subdistrict=str(row.get("subdistrict") or ""),
            )
        return cls(records, admin=admin)

    async def fetch_by_filter(
        self,
        state: str | None = None,
        district: str | None = None,
        subdistrict: str | None = None,
    ) -> list[FeatureRecord]:
        self.calls.append(("filter", (state, district, subdistrict)))
        out: list[FeatureRecord] = []
        for r in self.records:
            a = self.admin.get(r.id) or FilterSelection()
            if state and a.state != state:
                continue
            if district and a.district != district:
                continue
            if subdistrict and a.subdistrict != subdistrict:
                continue
            out.append(r)
        return out

    async def fetch_by_bounds(
        self,
        min_lat: float,
        max_lat: float,
        min_lng: float,
        max_lng: float,
        zoom: float,
    ) -> list[FeatureRecord]:
        self.calls.append(("bounds", (min_lat, max_lat, min_lng, max_lng, zoom)))
        if not self._geoms:
            return []
        q = shapely_box(
            min(min_lng, max_lng),
            min(min_lat, max_lat),
            max(min_lng, max_lng),
            max(min_lat, max_lat),
        )
        idxs = [int(i) for i in self._tree.query(q, predicate="intersects")]
        hits = [self._geom_records[i] for i in idxs]
        hits.sort(key=lambda r: self._order[r.id])
        return hits


def _index_geometry(record: FeatureRecord) -> Any:
    poly = None
    if record.geometry is not None:
        try:
            ring = record.geometry.rings[0]
            poly = Polygon([(float(lng), float(lat)) for lng, lat in ring])
        except (TypeError, ValueError, IndexError, KeyError):
            # Malformed boundary; index the centroid instead.
            poly = None
    if poly is not None and not poly.is_empty:
        return poly
    if record.centroid is not None:
        return Point(record.centroid.lng, record.centroid.lat)
    return None
