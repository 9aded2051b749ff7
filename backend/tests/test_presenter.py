from __future__ import annotations

import pytest

from fakes import square_rings, village
from villagemap.query.types import FilterSelection
from villagemap.render.presenter import FeaturePresenter
from villagemap.render.types import CircleMarkerShape, PolygonShape


def test_point_mode_builds_circle_marker():
    shape = FeaturePresenter().present(village("1", lat=20, lng=78, population=1500), "point")

    assert isinstance(shape, CircleMarkerShape)
    assert (shape.lat, shape.lng) == (20, 78)
    assert shape.radius == pytest.approx(3.873, abs=1e-3)
    assert shape.style.color == shape.style.fill_color == "#7fcdbb"
    assert shape.style.weight == 1
    assert shape.style.opacity == 0.8
    assert shape.style.fill_opacity == 0.6
    assert shape.popup.population == "1,500"


def test_polygon_mode_flips_coordinates_to_lat_lng():
    rec = village("p", lat=20.005, lng=78.005, rings=square_rings(78.0, 20.0))
    shape = FeaturePresenter().present(rec, "polygon")

    assert isinstance(shape, PolygonShape)
    assert shape.latlngs[0] == (20.0, 78.0)
    assert shape.latlngs[1] == (20.0, 78.01)
    assert shape.style.fill_opacity == 0.7
    assert shape.style.weight == 1
    assert shape.style.color == shape.style.fill_color == "#7fcdbb"


def test_polygon_mode_without_geometry_draws_point():
    shape = FeaturePresenter().present(village("p"), "polygon")
    assert isinstance(shape, CircleMarkerShape)


@pytest.mark.parametrize(
    "rings",
    [
        [[[0, 0]]],  # fewer than 3 vertices
        [[[0, 0], [1, 1]]],
        [],  # no rings at all
        [[[0, 0, 0], [1, 0, 0], [1, 1, 0]]],  # wrong arity
        [[["a", "b"], [1, 0], [1, 1]]],  # non-numeric
        [[None, [1, 0], [1, 1]]],
        "POLYGON((0 0, 1 0, 1 1))",
        42,
    ],
)
def test_malformed_polygon_falls_back_to_point(rings):
    rec = village("bad", rings=rings)
    shape = FeaturePresenter().present(rec, "polygon")
    assert isinstance(shape, CircleMarkerShape)
    assert shape.feature_id == "bad"


def test_popup_defaults_for_missing_name_and_population():
    shape = FeaturePresenter().present(village("x", population=None), "point")
    assert shape.popup.title == "Unknown Village"
    assert shape.popup.population == "N/A"
    assert shape.popup.context_rows() == []


def test_popup_shows_only_active_filter_levels():
    ctx = FilterSelection.of("Maharashtra", "Pune")
    shape = FeaturePresenter().present(village("x", name="Rampur"), "point", context=ctx)

    assert shape.popup.context_rows() == [("State", "Maharashtra"), ("District", "Pune")]
    html = shape.popup.to_html()
    assert "<h4>Rampur</h4>" in html
    assert "<strong>State:</strong> Maharashtra" in html
    assert "Subdistrict" not in html


def test_popup_html_is_escaped():
    shape = FeaturePresenter().present(village("x", name="<b>A&B</b>"), "point")
    assert "&lt;b&gt;A&amp;B&lt;/b&gt;" in shape.popup.to_html()
    assert "&lt;b&gt;A&amp;B&lt;/b&gt;" in shape.popup.hover_text()


def test_present_rejects_record_without_centroid():
    with pytest.raises(ValueError):
        FeaturePresenter().present(village("x", located=False), "point")
    with pytest.raises(ValueError):
        FeaturePresenter().present(
            village("x", located=False, rings=square_rings(78.0, 20.0)), "polygon"
        )
