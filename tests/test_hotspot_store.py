"""Tests for hotspot placement and storage."""

import pytest

from hotspot_editor.domain.errors import HotspotBusyError, HotspotNotFoundError
from hotspot_editor.domain.geometry import Bounds, Point
from hotspot_editor.domain.hotspots import (
    Hotspot,
    PlacementRejection,
    ReferenceImage,
    RejectionKind,
)
from hotspot_editor.services.hotspots import HotspotStore
from hotspot_editor.services.limits import LimitDecision


def test_edge_margin() -> None:
    store = HotspotStore()

    rejected = store.add_at(1, 50)
    accepted = store.add_at(5, 50)

    assert isinstance(rejected, PlacementRejection)
    assert rejected.kind == RejectionKind.EDGE
    assert isinstance(accepted, Hotspot)
    assert accepted.id == 1


def test_minimum_spacing() -> None:
    store = HotspotStore()
    store.add_at(50, 50)

    rejected = store.add_at(52, 52)
    accepted = store.add_at(60, 60)

    assert isinstance(rejected, PlacementRejection)
    assert rejected.kind == RejectionKind.PROXIMITY
    assert store.last_error == rejected.reason
    assert isinstance(accepted, Hotspot)
    assert store.last_error is None


def test_add_from_pointer_uses_bounds() -> None:
    store = HotspotStore()

    hotspot = store.add(Point(350, 125), Bounds(left=100, top=50, width=500, height=150))

    assert isinstance(hotspot, Hotspot)
    assert (hotspot.x, hotspot.y) == (50.0, 50.0)


def test_admission_rejection_adds_nothing() -> None:
    store = HotspotStore()

    result = store.add_at(
        50, 50, admit=lambda: LimitDecision(can_add=False, reason="full", code="x")
    )

    assert isinstance(result, PlacementRejection)
    assert result.kind == RejectionKind.LIMIT
    assert result.code == "x"
    assert len(store) == 0
    assert store.next_id == 1


def test_next_id_follows_highest_remaining() -> None:
    store = HotspotStore()
    for x in (20, 40, 60):
        store.add_at(x, 50)

    store.remove(3)
    assert store.next_id == 3
    store.remove(1)
    assert store.next_id == 3
    store.remove(2)
    assert store.next_id == 1


def test_remove_is_idempotent() -> None:
    store = HotspotStore()
    store.add_at(50, 50)

    assert store.remove(1) is True
    assert store.remove(1) is False
    assert store.remove(42) is False


def test_move_clamps_into_image() -> None:
    store = HotspotStore()
    store.add_at(50, 50)

    moved = store.move(1, 150.456, -3)

    assert (moved.x, moved.y) == (100.0, 0.0)


def test_busy_hotspot_is_locked() -> None:
    store = HotspotStore()
    store.add_at(50, 50)
    store.mark_busy([1, 99])

    assert store.is_busy(1)
    assert not store.is_busy(99)
    with pytest.raises(HotspotBusyError):
        store.update_prompt(1, "brighten")
    with pytest.raises(HotspotBusyError):
        store.remove(1)
    with pytest.raises(HotspotBusyError):
        store.move(1, 20, 20)

    store.clear_busy([1])
    assert store.update_prompt(1, "brighten").prompt == "brighten"


def test_references_replace_previous_one() -> None:
    store = HotspotStore()
    store.add_at(50, 50)
    first = ReferenceImage(id="ref_1", url="https://a/1.png", preview_url="https://a/1.png")
    second = ReferenceImage(id="ref_2", url="https://a/2.png", preview_url="https://a/2.png")

    store.attach_reference(1, first)
    store.attach_reference(1, second)
    assert store.get(1).reference_images == [second]

    store.detach_reference(1)
    assert store.get(1).reference_images == []


def test_unknown_hotspot_operations_raise() -> None:
    store = HotspotStore()

    with pytest.raises(HotspotNotFoundError):
        store.update_prompt(7, "x")
    with pytest.raises(HotspotNotFoundError):
        store.move(7, 10, 10)


def test_valid_hotspots_need_text() -> None:
    store = HotspotStore()
    store.add_at(30, 30)
    store.add_at(60, 60)
    store.update_prompt(2, "add a tree")

    assert [hotspot.id for hotspot in store.valid_hotspots()] == [2]


def test_load_restores_numbering() -> None:
    store = HotspotStore()

    store.load([Hotspot(id=4, x=30, y=30), Hotspot(id=2, x=60, y=60)])

    assert store.next_id == 5
    assert [hotspot.id for hotspot in store.list_hotspots()] == [4, 2]
