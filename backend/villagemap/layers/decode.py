from __future__ import annotations

import math
from typing import Any

from villagemap.layers.types import Centroid, FeatureRecord, PolygonGeometry

DEFAULT_COLOR_CLASS = "#808080"


def decode_records(rows: list[Any]) -> list[FeatureRecord]:
    """
    Decode the village API's `data` array into `FeatureRecord`s.

    Wire keys follow the village store (`_id`, `village_na`, `tot_p`, `color`); the
    canonical names (`id`, `name`, `population`, `colorClass`) are accepted as well.
    Rows that are not objects are skipped.
    """
    out: list[FeatureRecord] = []
    for i, row in enumerate(rows):
        if not isinstance(row, dict):
            continue
        out.append(decode_record(row, fallback_id=f"village-{i}"))
    return out


def decode_record(row: dict[str, Any], *, fallback_id: str) -> FeatureRecord:
    fid = row.get("_id", row.get("id"))
    name = row.get("village_na", row.get("name"))
    color = row.get("color", row.get("colorClass"))
    return FeatureRecord(
        id=str(fid) if fid not in (None, "") else fallback_id,
        name=str(name) if name not in (None, "") else None,
        centroid=_centroid(row.get("centroid")),
        geometry=_geometry(row.get("geometry")),
        population=_population(row.get("tot_p", row.get("population"))),
        color_class=str(color) if color else DEFAULT_COLOR_CLASS,
    )


def _centroid(raw: Any) -> Centroid | None:
    if not isinstance(raw, dict):
        return None
    lat = _finite(raw.get("lat"))
    lng = _finite(raw.get("lng", raw.get("lon")))
    if lat is None or lng is None:
        return None
    return Centroid(lat=lat, lng=lng)


def _geometry(raw: Any) -> PolygonGeometry | None:
    if raw is None:
        return None
    if isinstance(raw, dict):
        rings = raw.get("coordinates", raw.get("rings"))
    else:
        rings = raw
    if rings is None:
        return None
    return PolygonGeometry(rings=rings)


def _population(raw: Any) -> int | None:
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw if raw >= 0 else None
    if isinstance(raw, float) and raw.is_integer() and raw >= 0:
        return int(raw)
    return None


def _finite(raw: Any) -> float | None:
    if raw is None or isinstance(raw, bool):
        return None
    try:
        v = float(raw)
    except (TypeError, ValueError):
        return None
    return v if math.isfinite(v) else None
