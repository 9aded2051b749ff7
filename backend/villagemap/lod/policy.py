from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Literal

LodMode = Literal["point", "polygon"]

# Strictly above this zoom, villages are drawn with their full boundary.
POLYGON_MIN_ZOOM = 12.0
# Strictly above this zoom, features are fetched for the visible bounds only.
VIEWPORT_FETCH_MIN_ZOOM = 10.0

MIN_MARKER_RADIUS = 3.0
MAX_MARKER_RADIUS = 15.0


@dataclass(frozen=True)
class LodDecision:
    mode: LodMode
    reason: str


def select_mode(zoom: float) -> LodDecision:
    """
    Zoom-aware representation choice.

    Close in, boundaries are worth their vertex cost; further out, point symbols keep the
    frame cheap and uncluttered.
    """
    z = float(zoom)
    if z > POLYGON_MIN_ZOOM:
        return LodDecision(mode="polygon", reason=f"zoom {z:g} > {POLYGON_MIN_ZOOM:g}: full boundaries")
    return LodDecision(mode="point", reason=f"zoom {z:g} <= {POLYGON_MIN_ZOOM:g}: point symbols")


def marker_radius(population: float | None) -> float:
    # Square-root scaling keeps symbol area proportional to population.
    p = float(population or 0)
    if math.isnan(p) or p < 0.0:
        p = 0.0
    return max(MIN_MARKER_RADIUS, min(MAX_MARKER_RADIUS, math.sqrt(p) / 10.0))


def should_fetch_viewport(zoom: float) -> bool:
    return float(zoom) > VIEWPORT_FETCH_MIN_ZOOM
