"""Tests for edit point allowance rules."""

from itertools import product

from hotspot_editor.domain.hotspots import Hotspot
from hotspot_editor.services.limits import (
    EDIT_LIMIT,
    MISSING_DESCRIPTIONS,
    NO_HOTSPOTS,
    PHASE_LIMIT,
    SESSION_LIMIT,
    SESSION_QUOTA,
    EditLimits,
    can_add_hotspot,
    can_process_edits,
    can_start_session,
    remaining_edits,
    remaining_hotspots,
)


def test_edit_limit_wins_over_everything() -> None:
    for hotspot_count, total, active in product(range(4), range(8), (True, False)):
        decision = can_add_hotspot(
            edit_count=3,
            hotspot_count=hotspot_count,
            total_hotspots_in_session=total,
            has_active_session=active,
        )
        assert not decision.can_add
        assert decision.code == EDIT_LIMIT
        assert decision.reason == (
            "Maximum 3 edits allowed per image. "
            "Please upload a new image to continue editing."
        )


def test_no_active_session_allows_first_hotspot() -> None:
    decision = can_add_hotspot(edit_count=0, has_active_session=False)
    assert decision.can_add


def test_phase_limit_message() -> None:
    decision = can_add_hotspot(
        edit_count=0, hotspot_count=2, total_hotspots_in_session=2, has_active_session=True
    )

    assert not decision.can_add
    assert decision.code == PHASE_LIMIT
    assert decision.reason == (
        'You\'ve added 2 edit points. Click "Process" to apply your changes.'
    )


def test_session_total_limit() -> None:
    decision = can_add_hotspot(
        edit_count=1, hotspot_count=0, total_hotspots_in_session=6, has_active_session=True
    )

    assert not decision.can_add
    assert decision.code == SESSION_LIMIT


def test_can_add_is_monotonic_in_every_counter() -> None:
    limits = EditLimits()
    grid = list(product(range(5), range(4), range(8)))
    for active in (True, False):
        for edits, hotspots, total in grid:
            decision = can_add_hotspot(
                edit_count=edits,
                hotspot_count=hotspots,
                total_hotspots_in_session=total,
                has_active_session=active,
                limits=limits,
            )
            if decision.can_add:
                continue
            for more_edits, more_hotspots, more_total in grid:
                if more_edits < edits or more_hotspots < hotspots or more_total < total:
                    continue
                assert not can_add_hotspot(
                    edit_count=more_edits,
                    hotspot_count=more_hotspots,
                    total_hotspots_in_session=more_total,
                    has_active_session=active,
                    limits=limits,
                ).can_add


def test_session_quota() -> None:
    assert can_start_session(2).can_add
    decision = can_start_session(3)
    assert not decision.can_add
    assert decision.code == SESSION_QUOTA


def test_can_process_requires_described_hotspots() -> None:
    blank = Hotspot(id=1, x=50, y=50, prompt="   ")
    described = Hotspot(id=2, x=70, y=70, prompt="remove the lamp")

    empty = can_process_edits(edit_count=0, hotspots=[])
    only_blank = can_process_edits(edit_count=0, hotspots=[blank])
    mixed = can_process_edits(edit_count=0, hotspots=[blank, described])
    exhausted = can_process_edits(edit_count=3, hotspots=[described])

    assert empty.code == NO_HOTSPOTS
    assert empty.reason == "Please add edit points to your image first."
    assert only_blank.code == MISSING_DESCRIPTIONS
    assert only_blank.reason == "Please add descriptions to your edit points."
    assert mixed.can_process
    assert mixed.valid_hotspots == [described]
    assert exhausted.code == EDIT_LIMIT


def test_remaining_counters_never_negative() -> None:
    assert remaining_edits(1) == 2
    assert remaining_edits(5) == 0
    assert remaining_hotspots(1) == 1
    assert remaining_hotspots(4) == 0


def test_custom_limits_change_messages() -> None:
    limits = EditLimits(max_edits_per_image=5, max_hotspots_per_session=4)

    decision = can_add_hotspot(
        edit_count=0, hotspot_count=4, has_active_session=True, limits=limits
    )

    assert decision.reason is not None
    assert "4 edit points" in decision.reason
