"""
Tests for shot application, break/turn transitions, fouls, frame end and undo snapshots.
"""
from __future__ import annotations

import logging
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent.parent))

from snooker.balls import COLORS, RED
from snooker.engine import (
    Foul,
    FrameEndedError,
    Miss,
    Pot,
    Safety,
    UndoHistory,
    apply_shot,
    finalize_frame,
    open_break,
    switch_player,
)
from snooker.models import Frame, ShotKind

T0 = "2026-01-01T10:00:00+00:00"
T1 = "2026-01-01T10:00:30+00:00"


@pytest.fixture
def frame():
    f = Frame(number=1, start_time=T0)
    open_break(f, T0)
    return f


class TestBreaks:
    def test_pot_continues_break(self, frame):
        apply_shot(frame, Pot(RED), T1, duration=4000)
        apply_shot(frame, Pot("blue"), T1)
        assert frame.active_player == 0
        assert len(frame.breaks) == 1
        brk = frame.current_break
        assert brk.points == 6
        assert brk.balls == [RED, "blue"]
        assert brk.shots[0].duration == 4000

    def test_miss_switches_player(self, frame):
        apply_shot(frame, Pot(RED), T0)
        shot = apply_shot(frame, Miss("black"), T1)
        assert shot.kind == ShotKind.MISS
        assert shot.points == 0
        assert frame.active_player == 1
        assert frame.breaks[0].end_time == T1
        assert frame.current_break is frame.breaks[1]
        assert frame.current_break.player == 1
        assert frame.current_break.shots == []

    def test_safety_switches_player(self, frame):
        shot = apply_shot(frame, Safety(), T1)
        assert shot.is_safety and not shot.potted
        assert frame.active_player == 1

    def test_switch_player_opens_break_for_opponent(self, frame):
        switch_player(frame, T1)
        assert frame.active_player == 1
        assert frame.breaks[0].ended
        assert frame.current_break.player == 1

    def test_negative_duration_clamped(self, frame):
        shot = apply_shot(frame, Pot(RED), T1, duration=-50)
        assert shot.duration == 0


class TestFouls:
    def test_foul_awards_opponent_and_switches(self, frame):
        shot = apply_shot(frame, Foul(4), T1)
        assert frame.scores == [0, 4]
        assert shot.is_foul
        assert shot.points == 0
        assert shot.foul_points == 4
        assert frame.active_player == 1
        assert frame.breaks[0].ended
        assert frame.current_break.player == 1

    def test_foul_play_again_keeps_player(self, frame):
        apply_shot(frame, Foul(7, play_again=True), T1)
        assert frame.scores == [0, 7]
        assert frame.active_player == 0
        assert len(frame.breaks) == 2
        assert frame.breaks[0].ended
        assert frame.current_break.player == 0

    def test_foul_reds_potted_stay_off(self, frame):
        shot = apply_shot(frame, Foul(4, reds_potted=2), T1)
        assert frame.reds_remaining == 13
        assert shot.reds_potted_during_foul == 2

    def test_foul_free_ball_flag(self, frame):
        apply_shot(frame, Foul(4, free_ball=True), T1)
        assert frame.free_ball_active
        assert frame.active_player == 1


class TestFinalize:
    def test_finalize_sets_winner(self, frame):
        apply_shot(frame, Pot(RED), T0)
        winner = finalize_frame(frame, T1, duration=90_000)
        assert winner == 0
        assert frame.winner == 0
        assert frame.end_time == T1
        assert frame.duration == 90_000
        assert frame.current_break is None
        assert frame.breaks[0].end_time == T1

    def test_tie_is_flagged_not_resolved(self, frame, caplog):
        with caplog.at_level(logging.WARNING):
            winner = finalize_frame(frame, T1, duration=0)
        assert winner is None
        assert frame.winner is None
        assert "ended level" in caplog.text

    def test_no_shots_after_frame_end(self, frame):
        finalize_frame(frame, T1, duration=0)
        with pytest.raises(FrameEndedError):
            apply_shot(frame, Pot(RED), T1)

    def test_full_clearance_frame_state(self, frame):
        for _ in range(15):
            apply_shot(frame, Pot(RED), T0)
            apply_shot(frame, Pot("black"), T0)
        for color in COLORS:
            apply_shot(frame, Pot(color), T0)
        assert frame.reds_remaining == 0
        assert frame.colors_remaining == []
        assert frame.current_break.points == 147


class TestUndoSnapshots:
    def test_undo_single_pot(self, frame):
        history = UndoHistory()
        history.push(frame)
        apply_shot(frame, Pot(RED), T1)
        restored = history.pop()
        assert restored.scores == [0, 0]
        assert restored.reds_remaining == 15
        assert restored.colors_remaining == list(COLORS)
        assert restored.active_player == 0
        assert restored.current_break.points == 0
        assert restored.current_break.balls == []

    def test_undo_across_player_switch(self, frame):
        history = UndoHistory()
        apply_shot(frame, Pot(RED), T0)
        history.push(frame)
        apply_shot(frame, Miss("black"), T1)
        assert frame.active_player == 1
        restored = history.pop()
        assert restored.active_player == 0
        assert len(restored.breaks) == 1
        assert restored.current_break is restored.breaks[0]
        assert not restored.current_break.ended
        assert restored.current_break.points == 1
        assert restored.current_break.balls == [RED]

    def test_undo_foul(self, frame):
        history = UndoHistory()
        history.push(frame)
        apply_shot(frame, Foul(6, reds_potted=1, free_ball=True), T1)
        restored = history.pop()
        assert restored.scores == [0, 0]
        assert restored.reds_remaining == 15
        assert not restored.free_ball_active
        assert restored.active_player == 0

    def test_snapshot_is_independent_copy(self, frame):
        history = UndoHistory()
        history.push(frame)
        apply_shot(frame, Pot(RED), T1)
        assert frame.scores == [1, 0]
        assert history.pop().scores == [0, 0]

    def test_depth_is_bounded(self, frame):
        history = UndoHistory(depth=10)
        for _ in range(12):
            history.push(frame)
            apply_shot(frame, Pot(RED), T1)
        assert len(history) == 10
        # Oldest two states are gone: the earliest recoverable score is 2
        for _ in range(10):
            restored = history.pop()
        assert restored.scores == [2, 0]
        assert not history.can_undo

    def test_pop_empty_raises(self):
        with pytest.raises(IndexError):
            UndoHistory().pop()
