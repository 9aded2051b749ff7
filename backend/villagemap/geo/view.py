from __future__ import annotations

import math
from functools import lru_cache

from pyproj import Transformer

from villagemap.geo.aoi import BBox

# Web Mercator world width in meters (2 * pi * 6378137).
_WORLD_M = 40_075_016.685578488
_TILE_PX = 256.0


@lru_cache(maxsize=1)
def transformer_4326_to_3857() -> Transformer:
    return Transformer.from_crs("EPSG:4326", "EPSG:3857", always_xy=True)


@lru_cache(maxsize=1)
def transformer_3857_to_4326() -> Transformer:
    return Transformer.from_crs("EPSG:3857", "EPSG:4326", always_xy=True)


def fit_view_to_bbox(
    bbox: BBox,
    *,
    viewport: dict[str, int] | None = None,
    padding_px: int = 20,
    max_zoom: float = 18.0,
) -> tuple[dict[str, float], float]:
    """
    Center + zoom that fit `bbox` into the pixel viewport, keeping `padding_px` free on
    every side.

    Computed in EPSG:3857 like a slippy map does, floored to a whole zoom level so the
    whole bbox stays visible.
    """
    b = bbox.normalized()
    fwd = transformer_4326_to_3857()
    x0, y0 = fwd.transform(b.min_lon, b.min_lat)
    x1, y1 = fwd.transform(b.max_lon, b.max_lat)

    cx = (x0 + x1) / 2.0
    cy = (y0 + y1) / 2.0
    lon, lat = transformer_3857_to_4326().transform(cx, cy)
    center = {"lat": float(lat), "lon": float(lon)}

    width = int((viewport or {}).get("width") or 900)
    height = int((viewport or {}).get("height") or 600)
    avail_w = max(1.0, width - 2.0 * padding_px)
    avail_h = max(1.0, height - 2.0 * padding_px)

    dx = abs(x1 - x0)
    dy = abs(y1 - y0)
    # Degenerate bbox (single point): zoom all the way in.
    if dx <= 0.0 and dy <= 0.0:
        return center, float(max_zoom)

    zooms: list[float] = []
    if dx > 0.0:
        zooms.append(math.log2((avail_w * _WORLD_M) / (_TILE_PX * dx)))
    if dy > 0.0:
        zooms.append(math.log2((avail_h * _WORLD_M) / (_TILE_PX * dy)))
    zoom = math.floor(min(zooms))
    return center, float(max(0.0, min(float(max_zoom), zoom)))
