"""
Frame engine: applies recorded strokes to a frame.
Handles scoring, break lifecycle, turn changes, fouls and free balls.
Mutates the Frame passed in; callers snapshot it first if they need undo.
"""
from __future__ import annotations

import logging

from snooker.balls import BALL_VALUES, FREE_BALL_POINTS, RED
from snooker.models import Break, Frame, Shot, ShotKind, other_player

from .actions import Foul, Miss, Pot, Safety, ShotAction
from .rules import frame_winner, remove_reds, update_table_state

logger = logging.getLogger(__name__)


class FrameEndedError(ValueError):
    """Stroke recorded against a frame that has already been finalized."""


# ---------- Break lifecycle ----------


def open_break(frame: Frame, now: str) -> Break:
    """Start a visit for the active player and make it current."""
    brk = Break(player=frame.active_player, start_time=now)
    frame.breaks.append(brk)
    frame.current_break_index = len(frame.breaks) - 1
    return brk


def close_current_break(frame: Frame, now: str) -> None:
    brk = frame.current_break
    if brk is not None:
        brk.end_time = now
    frame.current_break_index = None


def switch_player(frame: Frame, now: str) -> Break:
    """End the current visit and hand the table to the opponent."""
    close_current_break(frame, now)
    frame.active_player = other_player(frame.active_player)
    return open_break(frame, now)


# ---------- Strokes ----------


def apply_shot(frame: Frame, action: ShotAction, now: str, duration: int = 0) -> Shot:
    """
    Record one stroke and apply its consequences.
    Pot: break continues. Miss/safety: turn passes. Foul: opponent scores,
    turn passes unless play_again.
    Returns the Shot appended to the visit it was played in.
    """
    if frame.ended:
        raise FrameEndedError(f"Frame {frame.number} has already ended")
    brk = frame.current_break
    if brk is None:
        brk = open_break(frame, now)
    duration = max(0, int(duration))

    if isinstance(action, Pot):
        shot = _apply_pot(frame, brk, action, now, duration)
    elif isinstance(action, Foul):
        shot = _apply_foul(frame, brk, action, now, duration)
    elif isinstance(action, (Miss, Safety)):
        shot = Shot(
            kind=action.kind.value,
            ball=action.ball,
            timestamp=now,
            used_rest=action.used_rest,
            is_escape=getattr(action, "is_escape", False),
            duration=duration,
        )
        brk.shots.append(shot)
        frame.free_ball_active = False
        switch_player(frame, now)
    else:
        raise TypeError(f"Unsupported shot action: {action!r}")

    logger.debug(
        "frame %s: player %s %s %s (%s pts) scores=%s reds=%s colors=%s",
        frame.number, brk.player, shot.kind, shot.ball, shot.points,
        frame.scores, frame.reds_remaining, frame.colors_remaining,
    )
    return shot


def _apply_pot(frame: Frame, brk: Break, action: Pot, now: str, duration: int) -> Shot:
    previous = brk.shots[-1] if brk.shots else None
    free_ball = frame.free_ball_active and action.ball != RED
    if free_ball:
        points = FREE_BALL_POINTS
    else:
        points = BALL_VALUES[action.ball] * action.count
    shot = Shot(
        kind=ShotKind.POT.value,
        ball=action.ball,
        timestamp=now,
        points=points,
        used_rest=action.used_rest,
        is_escape=action.is_escape,
        is_free_ball=free_ball,
        multiple_reds=action.count if action.count > 1 else 0,
        duration=duration,
    )
    brk.shots.append(shot)
    brk.points += points
    brk.balls.append(action.ball)
    frame.scores[frame.active_player] += points
    # A free ball never changes the table
    if not free_ball:
        update_table_state(frame, action.ball, action.count, previous_shot=previous)
    frame.free_ball_active = False
    return shot


def _apply_foul(frame: Frame, brk: Break, action: Foul, now: str, duration: int) -> Shot:
    frame.scores[other_player(frame.active_player)] += action.points
    shot = Shot(
        kind=ShotKind.FOUL.value,
        ball=action.ball,
        timestamp=now,
        foul_points=action.points,
        reds_potted_during_foul=action.reds_potted,
        duration=duration,
    )
    brk.shots.append(shot)
    remove_reds(frame, action.reds_potted)
    if action.play_again:
        close_current_break(frame, now)
        open_break(frame, now)
    else:
        switch_player(frame, now)
    frame.free_ball_active = action.free_ball
    return shot


# ---------- Frame end ----------


def finalize_frame(frame: Frame, now: str, duration: int) -> int | None:
    """
    Close the frame: end the open visit, stamp end time and duration, decide
    the winner. A tied score is left undecided (winner None) and logged.
    """
    close_current_break(frame, now)
    frame.end_time = now
    frame.duration = max(0, int(duration))
    frame.free_ball_active = False
    frame.winner = frame_winner(frame)
    if frame.winner is None:
        logger.warning(
            "Frame %s ended level at %s-%s; winner left undecided",
            frame.number, frame.scores[0], frame.scores[1],
        )
    return frame.winner
