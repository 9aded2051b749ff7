from __future__ import annotations

import math

import pytest

from villagemap.lod.policy import marker_radius, select_mode, should_fetch_viewport


@pytest.mark.parametrize("zoom", [12.01, 12.5, 13, 15, 18])
def test_polygon_mode_above_zoom_12(zoom):
    assert select_mode(zoom).mode == "polygon"


@pytest.mark.parametrize("zoom", [0, 6, 10, 11.99, 12])
def test_point_mode_at_or_below_zoom_12(zoom):
    decision = select_mode(zoom)
    assert decision.mode == "point"
    assert decision.reason


def test_marker_radius_is_bounded_and_non_decreasing():
    pops = [0, 1, 50, 100, 900, 1500, 5_000, 22_500, 100_000, 10_000_000]
    radii = [marker_radius(p) for p in pops]
    assert all(3.0 <= r <= 15.0 for r in radii)
    assert radii == sorted(radii)


def test_marker_radius_square_root_scaling():
    assert marker_radius(1500) == pytest.approx(math.sqrt(1500) / 10.0)
    assert marker_radius(1500) == pytest.approx(3.87, abs=0.01)
    assert marker_radius(40_000) == pytest.approx(15.0)


def test_marker_radius_handles_missing_and_negative_population():
    assert marker_radius(None) == 3.0
    assert marker_radius(-400) == 3.0
    assert marker_radius(float("nan")) == 3.0


def test_viewport_fetch_threshold_is_strictly_above_10():
    assert should_fetch_viewport(10.5)
    assert should_fetch_viewport(11)
    assert not should_fetch_viewport(10)
    assert not should_fetch_viewport(6)
