from __future__ import annotations

from typing import Any

from villagemap.render.types import CircleMarkerShape, PolygonShape


def rgba(color: str, alpha: float) -> str:
    """
    `#rrggbb` (or `#rgb`) plus alpha -> `rgba(r, g, b, a)`. Other color strings pass through.
    """
    c = (color or "").strip()
    if c.startswith("#") and len(c) in (4, 7):
        h = c[1:]
        if len(h) == 3:
            h = "".join(ch * 2 for ch in h)
        try:
            r, g, b = (int(h[i : i + 2], 16) for i in (0, 2, 4))
        except ValueError:
            return c
        return f"rgba({r}, {g}, {b}, {alpha:g})"
    return c


def trace_circle_markers(color: str, shapes: list[CircleMarkerShape]) -> dict[str, Any]:
    # One trace per color token keeps the trace count bounded by the number of buckets.
    return {
        "type": "scattermapbox",
        "name": f"Villages {color}",
        "ids": [s.feature_id for s in shapes],
        "lat": [s.lat for s in shapes],
        "lon": [s.lng for s in shapes],
        "mode": "markers",
        "text": [s.popup.hover_text() for s in shapes],
        "marker": {
            # Plotly sizes markers by diameter.
            "size": [round(2.0 * s.radius, 2) for s in shapes],
            "color": color,
            "opacity": shapes[0].style.fill_opacity if shapes else 0.6,
        },
        "hovertemplate": "%{text}<extra></extra>",
        "showlegend": False,
    }


def trace_polygon(shape: PolygonShape) -> dict[str, Any]:
    ring = list(shape.latlngs)
    if ring[0] != ring[-1]:
        ring = [*ring, ring[0]]
    style = shape.style
    return {
        "type": "scattermapbox",
        "name": shape.popup.title,
        "ids": [shape.feature_id] * len(ring),
        "lat": [lat for lat, _lng in ring],
        "lon": [lng for _lat, lng in ring],
        "mode": "lines",
        "fill": "toself",
        "fillcolor": rgba(style.fill_color, style.fill_opacity),
        "line": {"color": rgba(style.color, style.opacity), "width": style.weight},
        "text": shape.popup.hover_text(),
        "hoverinfo": "text",
        "showlegend": False,
    }
