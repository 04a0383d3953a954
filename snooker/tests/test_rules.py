"""
Tests for the snooker rules: legal balls, table state, scoring, completion.
"""
from __future__ import annotations

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent.parent))

from snooker.balls import COLORS, RED, ball_value, parse_ball
from snooker.engine import (
    Foul,
    Miss,
    Pot,
    apply_shot,
    frame_winner,
    frames_to_win,
    is_frame_complete,
    next_legal_balls,
    open_break,
    points_remaining,
)
from snooker.models import Frame

T = "2026-01-01T00:00:00+00:00"


def new_frame(reds: int = 15) -> Frame:
    frame = Frame(number=1, start_time=T, reds_remaining=reds)
    open_break(frame, T)
    return frame


def pot(frame: Frame, ball: str, count: int = 1):
    return apply_shot(frame, Pot(ball, count=count), T)


class TestBalls:
    def test_values(self):
        assert [ball_value(b) for b in (RED,) + COLORS] == [1, 2, 3, 4, 5, 6, 7]

    def test_parse_ball_normalises(self):
        assert parse_ball(" Pink ") == "pink"

    def test_parse_ball_unknown(self):
        with pytest.raises(ValueError):
            parse_ball("white")

    def test_multi_pot_only_for_reds(self):
        with pytest.raises(ValueError):
            Pot("blue", count=2)

    def test_foul_points_range(self):
        with pytest.raises(ValueError):
            Foul(3)
        with pytest.raises(ValueError):
            Foul(8)


class TestNextLegalBalls:
    def test_fresh_frame_is_red(self):
        assert next_legal_balls(new_frame()) == [RED]

    def test_any_color_after_red(self):
        frame = new_frame()
        pot(frame, RED)
        assert next_legal_balls(frame) == list(COLORS)

    def test_red_again_after_color(self):
        frame = new_frame()
        pot(frame, RED)
        pot(frame, "black")
        assert next_legal_balls(frame) == [RED]

    def test_red_at_start_of_visit_after_miss(self):
        frame = new_frame()
        pot(frame, RED)
        apply_shot(frame, Miss("black"), T)
        assert next_legal_balls(frame) == [RED]

    def test_any_color_after_last_red(self):
        frame = new_frame(reds=1)
        pot(frame, RED)
        assert frame.reds_remaining == 0
        assert next_legal_balls(frame) == list(COLORS)

    def test_lowest_color_in_clearance(self):
        frame = new_frame(reds=1)
        pot(frame, RED)
        pot(frame, "pink")
        assert next_legal_balls(frame) == ["yellow"]
        pot(frame, "yellow")
        assert next_legal_balls(frame) == ["green"]

    def test_free_ball_opens_all_colors(self):
        frame = new_frame()
        apply_shot(frame, Foul(4, free_ball=True), T)
        assert next_legal_balls(frame) == list(COLORS)


class TestTableState:
    def test_pot_red_at_fifteen(self):
        frame = new_frame()
        pot(frame, RED)
        assert frame.reds_remaining == 14
        assert frame.scores == [1, 0]

    def test_pot_black_while_reds_remain(self):
        frame = new_frame()
        pot(frame, RED)
        pot(frame, "black")
        assert frame.scores == [8, 0]
        assert frame.colors_remaining == list(COLORS)

    def test_color_after_last_red_returns(self):
        frame = new_frame(reds=1)
        pot(frame, RED)
        pot(frame, "black")
        assert frame.colors_remaining == list(COLORS)

    def test_clearance_removes_colors(self):
        frame = new_frame(reds=1)
        pot(frame, RED)
        pot(frame, "black")
        pot(frame, "yellow")
        assert frame.colors_remaining == list(COLORS[1:])

    def test_multi_red_pot(self):
        frame = new_frame()
        shot = pot(frame, RED, count=3)
        assert frame.reds_remaining == 12
        assert frame.scores[0] == 3
        assert shot.points == 3
        assert shot.multiple_reds == 3
        assert frame.current_break.balls == [RED]

    def test_reds_floor_at_zero(self):
        frame = new_frame(reds=2)
        pot(frame, RED, count=5)
        assert frame.reds_remaining == 0

    def test_free_ball_scores_one_and_leaves_table(self):
        frame = new_frame(reds=1)
        apply_shot(frame, Foul(5, free_ball=True), T)
        shot = pot(frame, "pink")
        assert shot.is_free_ball
        assert shot.points == 1
        assert frame.scores == [0, 6]
        assert frame.reds_remaining == 1
        assert frame.colors_remaining == list(COLORS)
        assert not frame.free_ball_active

    def test_free_ball_red_is_normal_red(self):
        frame = new_frame()
        apply_shot(frame, Foul(4, free_ball=True), T)
        shot = pot(frame, RED)
        assert not shot.is_free_ball
        assert frame.reds_remaining == 14
        assert not frame.free_ball_active

    def test_miss_clears_free_ball(self):
        frame = new_frame()
        apply_shot(frame, Foul(4, free_ball=True), T)
        apply_shot(frame, Miss(), T)
        assert not frame.free_ball_active


class TestFrameCompletion:
    def test_maximum_break_completes_once_at_final_black(self):
        frame = new_frame()
        completions = []
        for _ in range(15):
            pot(frame, RED)
            completions.append(is_frame_complete(frame))
            pot(frame, "black")
            completions.append(is_frame_complete(frame))
        for color in COLORS:
            pot(frame, color)
            completions.append(is_frame_complete(frame))
        assert completions.count(True) == 1
        assert completions[-1] is True
        assert frame.scores == [147, 0]

    def test_fifteen_reds_then_colors(self):
        frame = new_frame()
        for _ in range(15):
            pot(frame, RED)
        for color in COLORS:
            pot(frame, color)
        assert frame.scores == [42, 0]
        assert frame_winner(frame) == 0
        # The first color after the last red goes back on the table
        assert frame.colors_remaining == ["yellow"]
        assert not is_frame_complete(frame)

    def test_frame_winner_tie_is_none(self):
        frame = new_frame()
        frame.scores = [30, 30]
        assert frame_winner(frame) is None

    def test_frames_to_win(self):
        assert frames_to_win(1) == 1
        assert frames_to_win(5) == 3
        assert frames_to_win(7) == 4

    def test_points_remaining(self):
        frame = new_frame()
        assert points_remaining(frame) == 147
        frame.reds_remaining = 0
        frame.colors_remaining = ["pink", "black"]
        assert points_remaining(frame) == 13
