from __future__ import annotations

import pytest

from fakes import square_rings, village
from villagemap.errors import LayerDisposed, SurfaceReleased
from villagemap.render.layer_manager import RenderLayerManager
from villagemap.render.surface import PlotlyMapSurface


def _manager():
    surface = PlotlyMapSurface()
    return RenderLayerManager(surface), surface


def test_single_village_at_zoom_8_renders_one_circle():
    manager, surface = _manager()
    manager.set_features([village("1", lat=20, lng=78, population=1500)], 8)

    [rendered] = manager.shapes
    assert rendered.mode == "point"
    assert rendered.shape.kind == "circle"
    assert rendered.shape.radius == pytest.approx(3.87, abs=0.01)
    assert rendered.shape.popup.population == "1,500"
    assert [s.feature_id for s in surface.shapes] == ["1"]


def test_empty_then_full_update_has_no_leftovers():
    manager, surface = _manager()
    manager.set_features([village("old")], 8)
    manager.set_features([], 8)
    assert manager.shapes == []
    assert surface.shapes == []

    records = [village("a"), village("b"), village("c", located=False)]
    manager.set_features(records, 8)
    assert manager.feature_ids() == {"a", "b"}
    assert len(surface.shapes) == 2


def test_each_update_replaces_previous_layer():
    manager, surface = _manager()
    manager.set_features([village("a"), village("b")], 8)
    manager.set_features([village("b"), village("c")], 8)
    assert manager.feature_ids() == {"b", "c"}
    assert {s.feature_id for s in surface.shapes} == {"b", "c"}


def test_duplicate_ids_render_once():
    manager, _surface = _manager()
    manager.set_features([village("a", population=10), village("a", population=90_000)], 8)
    [rendered] = manager.shapes
    assert rendered.shape.radius == 15.0


def test_degenerate_polygon_does_not_break_batch():
    manager, _surface = _manager()
    records = [
        village("good", rings=square_rings(78.0, 20.0)),
        village("degenerate", rings=[[[0, 0]]]),
        village("plain"),
    ]
    manager.set_features(records, 14)

    by_id = {r.feature_id: r for r in manager.shapes}
    assert set(by_id) == {"good", "degenerate", "plain"}
    assert by_id["good"].shape.kind == "polygon"
    assert by_id["degenerate"].shape.kind == "circle"
    assert by_id["degenerate"].fallback
    stats = manager.stats()
    assert (stats.polygons, stats.points, stats.fallbacks) == (1, 2, 2)


def test_filter_update_fits_view_and_viewport_update_does_not():
    manager, surface = _manager()
    records = [village("a", lat=18.5, lng=73.8), village("b", lat=19.0, lng=74.2)]

    manager.set_features(records, 8, trigger="filter")
    assert surface.fit_count == 1
    assert 18.5 <= surface.center["lat"] <= 19.0
    assert 73.8 <= surface.center["lon"] <= 74.2

    center, zoom = dict(surface.center), surface.zoom
    manager.set_features(records, 8, trigger="viewport")
    assert surface.fit_count == 1
    assert (surface.center, surface.zoom) == (center, zoom)


def test_filter_update_without_located_records_does_not_fit():
    manager, surface = _manager()
    manager.set_features([village("a", located=False)], 8, trigger="filter")
    assert surface.fit_count == 0


def test_bounds_cover_polygon_extent():
    manager, _surface = _manager()
    manager.set_features([village("p", rings=square_rings(78.0, 20.0, d=0.5))], 14)
    b = manager.bounds()
    assert b is not None
    assert b.as_tuple() == pytest.approx((78.0, 20.0, 78.5, 20.5))


def test_dispose_is_idempotent_and_releases_surface():
    manager, surface = _manager()
    manager.set_features([village("a")], 8)

    manager.dispose()
    manager.dispose()

    assert manager.disposed
    assert surface.released
    assert manager.shapes == []
    with pytest.raises(LayerDisposed):
        manager.set_features([village("b")], 8)
    with pytest.raises(LayerDisposed):
        manager.clear()
    with pytest.raises(SurfaceReleased):
        surface.clear()


def test_context_manager_disposes_on_exit():
    surface = PlotlyMapSurface()
    with RenderLayerManager(surface) as manager:
        manager.set_features([village("a")], 8)
    assert surface.released


def test_failed_add_rolls_back_to_empty_layer():
    class FlakySurface(PlotlyMapSurface):
        def add_shape(self, shape):
            if shape.feature_id == "bad":
                raise RuntimeError("surface rejected shape")
            super().add_shape(shape)

    surface = FlakySurface()
    manager = RenderLayerManager(surface)
    manager.set_features([village("old")], 8)

    with pytest.raises(RuntimeError):
        manager.set_features([village("a"), village("bad"), village("c")], 8)

    assert manager.shapes == []
    assert surface.shapes == []
