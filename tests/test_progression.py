"""Tests for circuitmap.core.progression – the level progression state machine."""

from __future__ import annotations

from typing import List

import pytest

from circuitmap.core.animation import AnimationController
from circuitmap.core.levels import Level, LevelStatus, Point
from circuitmap.core.persistence import KeyValueStore, ProgressStore, completed_flag_key
from circuitmap.core.progression import (
    ProgressEvent,
    Progression,
    ProgressionState,
    progress_fraction,
)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture()
def kv() -> KeyValueStore:
    return KeyValueStore()


@pytest.fixture()
def navigated() -> List[int]:
    return []


@pytest.fixture()
def progression(seven_levels, kv, clock, navigated) -> Progression:
    p = Progression(
        seven_levels,
        ProgressStore(kv, len(seven_levels)),
        animator=AnimationController(duration_ms=2000, clock=clock),
        navigator=navigated.append,
        clock=clock,
    )
    p.load()
    return p


def finish_tween(progression: Progression, clock) -> None:
    clock.advance(2.5)
    progression.tick()


def current_count(progression: Progression) -> int:
    return sum(1 for view in progression.level_views() if view.status is LevelStatus.CURRENT)


# ---------------------------------------------------------------------------
# progress_fraction
# ---------------------------------------------------------------------------

class TestProgressFraction:
    def test_start(self):
        assert progress_fraction(1, 0.0, False, 7) == 0.0

    def test_partial_ignored_when_not_moving(self):
        assert progress_fraction(3, 0.7, False, 7) == pytest.approx(2 / 6)

    def test_moving(self):
        assert progress_fraction(4, 0.5, True, 7) == pytest.approx(3.5 / 6)

    def test_clamped(self):
        assert progress_fraction(8, 0.0, False, 7) == 1.0

    def test_degenerate(self):
        assert progress_fraction(1, 0.5, True, 1) == 0.0
        assert progress_fraction(1, 0.0, False, 0) == 0.0


# ---------------------------------------------------------------------------
# Initial state and status derivation
# ---------------------------------------------------------------------------

class TestInitialState:
    def test_fresh_store(self, progression: Progression):
        assert progression.state == ProgressionState(1, frozenset())
        assert progression.status_of(1) is LevelStatus.CURRENT
        assert all(progression.status_of(i) is LevelStatus.LOCKED for i in range(2, 8))

    def test_marker_on_first_level(self, progression: Progression):
        assert progression.marker_position == Point(15.0, 85.0)
        assert not progression.is_moving

    def test_loads_saved_progress(self, seven_levels, kv, clock):
        kv.set_items({completed_flag_key(1): "true", completed_flag_key(2): "true"})
        p = Progression(seven_levels, ProgressStore(kv, 7), clock=clock)
        p.load()
        assert p.current_level_id == 3
        assert p.marker_position == Point(85.0, 55.0)

    @pytest.mark.parametrize("current", range(1, 8))
    def test_exactly_one_current(self, seven_levels, kv, clock, current):
        kv.set_items({completed_flag_key(i): "true" for i in range(1, current)})
        p = Progression(seven_levels, ProgressStore(kv, 7), clock=clock)
        p.load()
        assert current_count(p) == 1

    def test_no_current_when_all_complete(self, seven_levels, kv, clock):
        kv.set_items({completed_flag_key(i): "true" for i in range(1, 8)})
        p = Progression(seven_levels, ProgressStore(kv, 7), clock=clock)
        p.load()
        assert current_count(p) == 0
        assert p.is_all_complete

    def test_unlocked_iff_not_beyond_current(self, seven_levels, kv, clock):
        kv.set_items({completed_flag_key(1): "true", "currentLevel": "4"})
        p = Progression(seven_levels, ProgressStore(kv, 7), clock=clock)
        p.load()
        statuses = [p.status_of(i) for i in range(1, 8)]
        assert statuses == [
            LevelStatus.COMPLETED,
            LevelStatus.UNLOCKED,
            LevelStatus.UNLOCKED,
            LevelStatus.CURRENT,
            LevelStatus.LOCKED,
            LevelStatus.LOCKED,
            LevelStatus.LOCKED,
        ]


# ---------------------------------------------------------------------------
# advance()
# ---------------------------------------------------------------------------

class TestAdvance:
    def test_marks_completed_immediately(self, progression: Progression, kv):
        assert progression.advance() is True
        assert progression.completed_level_ids == {1}
        assert progression.current_level_id == 1
        assert progression.is_transitioning
        assert kv.get_item("level1Completed") == "true"
        assert kv.get_item("currentLevel") is None

    def test_commit_after_tween(self, progression: Progression, kv, clock):
        progression.advance()
        finish_tween(progression, clock)
        assert progression.current_level_id == 2
        assert progression.completed_level_ids == {1}
        assert not progression.is_transitioning
        assert progression.marker_position == Point(50.0, 65.0)
        assert kv.get_item("currentLevel") == "2"

    def test_marker_moves_during_tween(self, progression: Progression, clock):
        progression.advance()
        clock.advance(1.0)
        progression.tick()
        assert progression.is_moving
        assert progression.partial_progress == pytest.approx(0.875)
        marker = progression.marker_position
        assert marker.x == pytest.approx(15 + 35 * 0.875)
        assert marker.y == pytest.approx(85 - 20 * 0.875)

    def test_reentrant_advance_ignored(self, progression: Progression, clock):
        progression.advance()
        clock.advance(1.0)
        progression.tick()
        assert progression.advance() is False
        finish_tween(progression, clock)
        assert progression.current_level_id == 2
        assert progression.completed_level_ids == {1}

    def test_just_unlocked_flash(self, progression: Progression, clock):
        progression.advance()
        finish_tween(progression, clock)
        assert progression.just_unlocked_id == 2
        assert progression.needs_frames
        assert [v.just_unlocked for v in progression.level_views()][1] is True
        clock.advance(0.7)
        progression.tick()
        assert progression.just_unlocked_id is None
        assert not progression.needs_frames

    def test_advance_from_last_level(self, seven_levels, kv, clock):
        kv.set_items({completed_flag_key(i): "true" for i in range(1, 7)})
        p = Progression(seven_levels, ProgressStore(kv, 7), clock=clock)
        p.load()
        assert p.current_level_id == 7
        assert p.advance() is True
        assert 7 in p.completed_level_ids
        assert not p.is_transitioning
        assert p.current_level_id == 7
        assert p.marker_position == Point(85.0, 15.0)
        assert p.is_all_complete
        assert kv.get_item("level7Completed") == "true"

    def test_advance_when_all_complete_is_noop(self, seven_levels, kv, clock):
        kv.set_items({completed_flag_key(i): "true" for i in range(1, 7)})
        p = Progression(seven_levels, ProgressStore(kv, 7), clock=clock)
        p.load()
        p.advance()
        assert p.advance() is False
        assert p.current_level_id == 7

    def test_progress_fraction_monotonic_over_tween(self, seven_levels, kv, clock):
        kv.set_items({completed_flag_key(1): "true", completed_flag_key(2): "true"})
        p = Progression(seven_levels, ProgressStore(kv, 7), animator=AnimationController(clock=clock), clock=clock)
        p.load()
        fractions = [p.progress_fraction()]
        p.subscribe(lambda _event: fractions.append(p.progress_fraction()))
        p.advance()
        for _ in range(30):
            clock.advance(0.1)
            p.tick()
        assert fractions[0] == pytest.approx(2 / 6)
        assert fractions == sorted(fractions)
        assert fractions[-1] == pytest.approx(3 / 6)
        assert p.current_level_id == 4

    def test_events(self, progression: Progression, clock):
        events = []
        progression.subscribe(events.append)
        progression.advance()
        finish_tween(progression, clock)
        assert ProgressEvent.COMPLETED in events
        assert ProgressEvent.FRAME in events
        assert events.index(ProgressEvent.COMPLETED) < events.index(ProgressEvent.UNLOCKED)


# ---------------------------------------------------------------------------
# select_level()
# ---------------------------------------------------------------------------

class TestSelectLevel:
    def test_current_level_navigates(self, progression: Progression, navigated):
        assert progression.select_level(1) is True
        assert navigated == [1]

    def test_locked_level_ignored(self, progression: Progression, navigated):
        assert progression.select_level(2) is False
        assert navigated == []

    def test_completed_level_ignored(self, progression: Progression, navigated, clock):
        progression.advance()
        finish_tween(progression, clock)
        assert progression.select_level(1) is False
        assert navigated == []

    def test_unknown_level_ignored(self, progression: Progression, navigated):
        assert progression.select_level(0) is False
        assert progression.select_level(99) is False
        assert navigated == []

    def test_saves_before_navigating(self, progression: Progression, kv):
        progression.select_level(1)
        assert kv.get_item("currentLevel") == "1"


# ---------------------------------------------------------------------------
# reset()
# ---------------------------------------------------------------------------

class TestReset:
    def test_reset_clears_state_and_store(self, progression: Progression, kv, clock):
        progression.advance()
        finish_tween(progression, clock)
        progression.reset()
        assert progression.state == ProgressionState()
        assert kv.keys() == []
        assert progression.marker_position == Point(15.0, 85.0)

    def test_reset_cancels_tween(self, progression: Progression, kv, clock):
        progression.advance()
        clock.advance(1.0)
        progression.tick()
        progression.reset()
        assert not progression.is_transitioning
        finish_tween(progression, clock)
        assert progression.state == ProgressionState()
        assert kv.get_item("currentLevel") is None

    def test_reset_then_load(self, progression: Progression, clock):
        progression.advance()
        finish_tween(progression, clock)
        progression.reset()
        assert progression.load() == ProgressionState(1, frozenset())

    def test_reset_event(self, progression: Progression):
        events = []
        progression.subscribe(events.append)
        progression.reset()
        assert events[-1] is ProgressEvent.RESET


# ---------------------------------------------------------------------------
# Degenerate catalogues
# ---------------------------------------------------------------------------

class TestDegenerate:
    def test_single_level(self, clock):
        only = Level(id=1, position=Point(50, 50))
        p = Progression([only], ProgressStore(KeyValueStore(), 1), clock=clock)
        p.load()
        assert p.advance() is True
        assert not p.is_transitioning
        assert p.is_all_complete
        assert p.advance() is False
        assert p.progress_fraction() == 0.0

    def test_no_levels(self, clock):
        p = Progression([], ProgressStore(KeyValueStore(), 0), clock=clock)
        p.load()
        assert p.advance() is False
        assert p.marker_position is None
        assert p.level_views() == []
        assert p.select_level(1) is False


# ---------------------------------------------------------------------------
# End-to-end scenario
# ---------------------------------------------------------------------------

class TestScenario:
    def test_seven_level_journey(self, progression: Progression, kv, clock, navigated):
        assert progression.current_level_id == 1

        for expected_next in range(2, 7):
            assert progression.advance() is True
            finish_tween(progression, clock)
            assert progression.current_level_id == expected_next

        assert progression.current_level_id == 6
        assert progression.completed_level_ids == {1, 2, 3, 4, 5}

        assert progression.select_level(3) is False
        assert navigated == []
        assert progression.select_level(6) is True
        assert navigated == [6]

        progression.reset()
        assert kv.keys() == []
        assert progression.current_level_id == 1

    def test_resume_after_restart(self, seven_levels, kv, clock):
        first = Progression(seven_levels, ProgressStore(kv, 7), clock=clock)
        first.load()
        for _ in range(3):
            first.advance()
            finish_tween(first, clock)

        second = Progression(seven_levels, ProgressStore(kv, 7), clock=clock)
        assert second.load() == first.state
