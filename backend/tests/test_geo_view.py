from __future__ import annotations

import pytest

from villagemap.geo.aoi import BBox, Viewport, union_bboxes
from villagemap.geo.coords import lnglat_to_latlng, outer_ring
from villagemap.geo.view import fit_view_to_bbox


def test_lnglat_to_latlng_swaps_every_vertex():
    assert lnglat_to_latlng([[78.0, 20.0], [78.5, 20.5]]) == [(20.0, 78.0), (20.5, 78.5)]


@pytest.mark.parametrize("ring", [[[1.0]], [[1.0, 2.0, 3.0]], [["x", 1.0]], [[float("inf"), 1.0]]])
def test_lnglat_to_latlng_rejects_bad_vertices(ring):
    with pytest.raises((ValueError, TypeError)):
        lnglat_to_latlng(ring)


def test_outer_ring_requires_rings():
    assert outer_ring([[1], [2]]) == [1]
    with pytest.raises(ValueError):
        outer_ring([])
    with pytest.raises(ValueError):
        outer_ring({"type": "Polygon"})


def test_viewport_bbox_is_normalized():
    v = Viewport(south=20.2, north=20.0, west=78.3, east=78.0, zoom=11)
    assert v.bbox().as_tuple() == (78.0, 20.0, 78.3, 20.2)


def test_union_bboxes():
    a = BBox(0, 0, 1, 1)
    b = BBox(-1, 0.5, 0.5, 2)
    assert union_bboxes([a, b]) == BBox(-1, 0, 1, 2)
    assert union_bboxes([]) is None


def test_fit_view_centers_and_zooms_to_whole_levels():
    center, zoom = fit_view_to_bbox(BBox(73.8, 18.5, 74.2, 19.0))
    assert 18.5 < center["lat"] < 19.0
    assert center["lon"] == pytest.approx(74.0)
    assert zoom == int(zoom)
    assert 7 <= zoom <= 11


def test_fit_view_padding_never_zooms_in_further():
    bbox = BBox(73.8, 18.5, 74.2, 19.0)
    _c, tight = fit_view_to_bbox(bbox, padding_px=0)
    _c, padded = fit_view_to_bbox(bbox, padding_px=200)
    assert padded <= tight


def test_fit_view_single_point_uses_max_zoom():
    center, zoom = fit_view_to_bbox(BBox(78.0, 20.0, 78.0, 20.0), max_zoom=16)
    assert zoom == 16
    assert center["lat"] == pytest.approx(20.0)
