"""
Viewport-driven village feature layer.

Decides what to fetch for the current map view, at which level of detail to draw it,
and keeps the rendered layer consistent while the user pans, zooms and filters.
"""
