"""
Snooker rules: ball sequencing, table state, frame and match completion.
Pure functions over the data model; no I/O, no clocks.
"""
from __future__ import annotations

import math

from snooker.balls import BALL_VALUES, RED
from snooker.models import Frame, Match, Shot


def last_shot(frame: Frame) -> Shot | None:
    """Last stroke of the current visit (None at the start of a visit)."""
    brk = frame.current_break
    if brk is None or not brk.shots:
        return None
    return brk.shots[-1]


def _is_potted_red(shot: Shot | None) -> bool:
    return shot is not None and shot.ball == RED and shot.potted and not shot.is_free_ball


def next_legal_balls(frame: Frame) -> list[str]:
    """
    Balls the striker may legally pot next.
    Reds on: red, or any color straight after a potted red.
    Reds gone: any color straight after the last red, otherwise the lowest color.
    Free ball: every remaining color.
    """
    if frame.free_ball_active:
        return list(frame.colors_remaining)
    if _is_potted_red(last_shot(frame)):
        return list(frame.colors_remaining)
    if frame.reds_remaining > 0:
        return [RED]
    return frame.colors_remaining[:1]


def update_table_state(
    frame: Frame,
    ball: str,
    count: int = 1,
    previous_shot: Shot | None = None,
) -> None:
    """
    Apply a legal (non free-ball) pot to the table.
    previous_shot is the stroke recorded before this one in the same visit.
    A color potted while reds remain, or straight after the last red, goes
    back on the table; from the next color on, clearance takes it off for good.
    """
    if ball == RED:
        frame.reds_remaining = max(0, frame.reds_remaining - count)
        return
    if frame.reds_remaining > 0:
        return
    if previous_shot is not None and previous_shot.ball == RED:
        return
    if ball in frame.colors_remaining:
        frame.colors_remaining.remove(ball)


def remove_reds(frame: Frame, count: int) -> None:
    """Reds knocked in during a foul stay off the table."""
    if count > 0:
        frame.reds_remaining = max(0, frame.reds_remaining - count)


def is_frame_complete(frame: Frame) -> bool:
    return frame.reds_remaining == 0 and not frame.colors_remaining


def frame_winner(frame: Frame) -> int | None:
    """Player with the higher score, or None on a tie (not a valid snooker outcome)."""
    a, b = frame.scores
    if a > b:
        return 0
    if b > a:
        return 1
    return None


def frames_to_win(best_of: int) -> int:
    return math.ceil(best_of / 2)


def frames_won(match: Match) -> tuple[int, int]:
    won_a = sum(1 for f in match.frames if f.winner == 0)
    won_b = sum(1 for f in match.frames if f.winner == 1)
    return won_a, won_b


def is_match_complete(match: Match) -> bool:
    needed = frames_to_win(match.best_of)
    won_a, won_b = frames_won(match)
    return won_a >= needed or won_b >= needed


def match_winner(match: Match) -> int | None:
    won_a, won_b = frames_won(match)
    if won_a > won_b:
        return 0
    if won_b > won_a:
        return 1
    return None


def points_remaining(frame: Frame) -> int:
    """Maximum points still on the table: each red with a black, then the colors."""
    return frame.reds_remaining * (1 + BALL_VALUES["black"]) + sum(
        BALL_VALUES[c] for c in frame.colors_remaining
    )
