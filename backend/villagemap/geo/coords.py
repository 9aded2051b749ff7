from __future__ import annotations

import math
from typing import Any


def lnglat_to_latlng(ring: Any) -> list[tuple[float, float]]:
    """
    Reorder a ring from storage order `[lng, lat]` to display order `(lat, lng)`.

    Raises ValueError/TypeError when a vertex is not a numeric pair.
    """
    out: list[tuple[float, float]] = []
    for vertex in ring:
        if isinstance(vertex, (str, bytes)) or len(vertex) != 2:
            raise ValueError(f"vertex must be a [lng, lat] pair, got {vertex!r}")
        lng, lat = float(vertex[0]), float(vertex[1])
        if not (math.isfinite(lng) and math.isfinite(lat)):
            raise ValueError(f"non-finite vertex {vertex!r}")
        out.append((lat, lng))
    return out


def outer_ring(rings: Any) -> Any:
    """
    First ring of a polygon ring sequence (the outer boundary).
    """
    if isinstance(rings, (str, bytes, dict)) or not rings:
        raise ValueError("polygon has no rings")
    return rings[0]
