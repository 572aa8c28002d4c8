from __future__ import annotations

import pytest

from axoncity._constants import AREA_COLORS
from axoncity.exceptions import AreaNotFoundError
from axoncity.models import BoundaryPolygon, FeatureCollection, LayerData, LayerStats
from axoncity.session import FetchSession
from axoncity.state.store import AreaStore


def _polygon(offset: float = 0.0) -> BoundaryPolygon:
    return BoundaryPolygon.from_vertices([(offset, 0), (offset + 0.01, 0), (offset, 0.01)])


def _layer_data(layer_id: str, polygon: BoundaryPolygon) -> LayerData:
    return LayerData(
        layer_id=layer_id,
        features=FeatureCollection.empty(),
        clipped_features=FeatureCollection.empty(),
        stats=LayerStats(count=0),
        polygon=polygon,
    )


def test_add_area_assigns_names_colors_and_activates() -> None:
    store = AreaStore()

    first = store.add_area(_polygon())
    second = store.add_area(_polygon(1))

    assert first is not None and second is not None
    assert [a.name for a in store.areas] == ["Area A", "Area B"]
    assert [a.color for a in store.areas] == list(AREA_COLORS[:2])
    assert store.active_area_id == second
    assert store.get_area(first).area_km2 > 0


def test_capacity_returns_none_without_mutation() -> None:
    store = AreaStore(max_areas=2)
    store.add_area(_polygon())
    store.add_area(_polygon(1))
    before = store.areas
    active = store.active_area_id

    assert store.add_area(_polygon(2)) is None
    assert store.areas == before
    assert store.active_area_id == active


def test_removed_slot_name_is_reused() -> None:
    store = AreaStore()
    first = store.add_area(_polygon())
    store.add_area(_polygon(1))
    assert first is not None
    store.remove_area(first)

    third = store.add_area(_polygon(2))

    assert third is not None
    assert third != first
    assert store.get_area(third).name == "Area A"


def test_remove_active_area_falls_back_to_first() -> None:
    store = AreaStore()
    first = store.add_area(_polygon())
    second = store.add_area(_polygon(1))
    assert second is not None

    store.remove_area(second)

    assert store.active_area_id == first
    with pytest.raises(AreaNotFoundError):
        store.remove_area(second)


def test_switching_active_area_validates_id() -> None:
    store = AreaStore()
    area_id = store.add_area(_polygon())

    store.set_active_area_id(None)
    assert store.active_area_id is None
    store.set_active_area_id(area_id)
    assert store.active_area_id == area_id
    with pytest.raises(AreaNotFoundError):
        store.set_active_area_id("area-99")


def test_cache_validity_follows_polygon() -> None:
    store = AreaStore()
    polygon = _polygon()
    area_id = store.add_area(polygon)
    assert area_id is not None
    store.update_area_layer_data(area_id, "parks", _layer_data("parks", polygon))

    assert store.is_layer_cache_valid(area_id, "parks")
    assert store.missing_layers(area_id, ["parks", "trees", "parks"]) == ["trees"]
    assert set(store.snapshot(area_id).layers) == {"parks"}

    store.update_area_polygon(area_id, _polygon(0.5))

    assert not store.is_layer_cache_valid(area_id, "parks")
    assert store.missing_layers(area_id, ["parks"]) == ["parks"]
    assert store.snapshot(area_id).layers == {}
    assert "parks" in store.get_area(area_id).layer_data


def test_layer_writes_do_not_touch_other_layers() -> None:
    store = AreaStore()
    polygon = _polygon()
    area_id = store.add_area(polygon)
    assert area_id is not None
    store.update_area_layer_data(area_id, "parks", _layer_data("parks", polygon))
    store.update_area_layer_data(area_id, "trees", _layer_data("trees", polygon))

    assert set(store.snapshot(area_id).layers) == {"parks", "trees"}


def test_begin_session_supersedes_previous() -> None:
    store = AreaStore()
    polygon = _polygon()
    area_id = store.add_area(polygon)
    assert area_id is not None
    first = FetchSession(area_id=area_id, polygon=polygon, layer_ids=("parks",))
    second = FetchSession(area_id=area_id, polygon=polygon, layer_ids=("parks",))

    assert store.begin_session(first) is None
    assert store.begin_session(second) is first

    assert first.cancelled
    assert second.predecessor is first
    assert store.session_for(area_id) is second

    store.end_session(first)
    assert store.session_for(area_id) is second
    store.end_session(second)
    assert store.session_for(area_id) is None


def test_remove_and_clear_cancel_sessions() -> None:
    store = AreaStore()
    polygon = _polygon()
    a = store.add_area(polygon)
    b = store.add_area(_polygon(1))
    assert a is not None and b is not None
    session_a = FetchSession(area_id=a, polygon=polygon, layer_ids=())
    session_b = FetchSession(area_id=b, polygon=polygon, layer_ids=())
    store.begin_session(session_a)
    store.begin_session(session_b)

    store.remove_area(a)
    assert session_a.cancelled
    assert not session_b.cancelled

    store.clear_areas()
    assert session_b.cancelled
    assert len(store) == 0
    assert store.active_area_id is None
    assert store.sessions() == ()


def test_collinear_boundary_is_stored_with_zero_area() -> None:
    store = AreaStore()
    flat = BoundaryPolygon.from_vertices([(0, 0), (1, 1), (2, 2)])

    area_id = store.add_area(flat)

    assert area_id is not None
    assert store.get_area(area_id).area_km2 == 0.0

    store.update_area_polygon(area_id, _polygon())
    assert store.get_area(area_id).area_km2 > 0
    store.update_area_polygon(area_id, flat)
    assert store.get_area(area_id).area_km2 == 0.0


def test_session_after_cancel_waits_for_cancelled_one() -> None:
    store = AreaStore()
    polygon = _polygon()
    area_id = store.add_area(polygon)
    assert area_id is not None
    cancelled = FetchSession(area_id=area_id, polygon=polygon, layer_ids=("parks",))
    store.begin_session(cancelled)

    assert store.cancel_session(area_id) is cancelled
    assert store.session_for(area_id) is None

    follow_up = FetchSession(area_id=area_id, polygon=polygon, layer_ids=("trees",))
    assert store.begin_session(follow_up) is None
    assert follow_up.predecessor is cancelled

    store.end_session(cancelled)
    store.end_session(follow_up)
    later = FetchSession(area_id=area_id, polygon=polygon, layer_ids=("trees",))
    store.begin_session(later)
    assert later.predecessor is None
