from __future__ import annotations

import asyncio

from fakes import square_rings, village
from villagemap.query.in_memory import InMemoryFeatureQuery
from villagemap.query.types import FilterSelection


def test_bounds_query_uses_polygon_or_centroid():
    records = [
        # Centroid outside the box, boundary reaching into it.
        village("poly", lat=19.9, lng=77.9, rings=square_rings(77.9, 19.9, d=0.2)),
        village("inside", lat=20.05, lng=78.05),
        village("outside", lat=25.0, lng=80.0),
        village("nowhere", located=False),
    ]
    q = InMemoryFeatureQuery(records)

    hits = asyncio.run(q.fetch_by_bounds(20.0, 20.1, 78.0, 78.1, 12))

    assert [r.id for r in hits] == ["poly", "inside"]
    assert q.calls == [("bounds", (20.0, 20.1, 78.0, 78.1, 12))]


def test_filter_query_matches_admin_levels():
    records = [village("a"), village("b"), village("c")]
    admin = {
        "a": FilterSelection.of("Goa", "North Goa"),
        "b": FilterSelection.of("Goa", "South Goa"),
        "c": FilterSelection.of("Kerala"),
    }
    q = InMemoryFeatureQuery(records, admin=admin)

    assert [r.id for r in asyncio.run(q.fetch_by_filter("Goa"))] == ["a", "b"]
    assert [r.id for r in asyncio.run(q.fetch_by_filter("Goa", "South Goa"))] == ["b"]
    assert [r.id for r in asyncio.run(q.fetch_by_filter())] == ["a", "b", "c"]


def test_empty_store_answers_empty():
    q = InMemoryFeatureQuery([])
    assert asyncio.run(q.fetch_by_bounds(0, 1, 0, 1, 12)) == []
