"""
Snooker rules engine: shot actions, table rules, frame transitions, undo
and the observational clock. No persistence, no HTTP.
"""
from .actions import Pot, Miss, Safety, Foul, ShotAction
from .rules import (
    last_shot,
    next_legal_balls,
    update_table_state,
    remove_reds,
    is_frame_complete,
    frame_winner,
    frames_to_win,
    frames_won,
    is_match_complete,
    match_winner,
    points_remaining,
)
from .frame_engine import (
    FrameEndedError,
    open_break,
    close_current_break,
    switch_player,
    apply_shot,
    finalize_frame,
)
from .undo import UndoHistory, UNDO_DEPTH
from .clock import FrameClock, format_duration

__all__ = [
    "Pot",
    "Miss",
    "Safety",
    "Foul",
    "ShotAction",
    "last_shot",
    "next_legal_balls",
    "update_table_state",
    "remove_reds",
    "is_frame_complete",
    "frame_winner",
    "frames_to_win",
    "frames_won",
    "is_match_complete",
    "match_winner",
    "points_remaining",
    "FrameEndedError",
    "open_break",
    "close_current_break",
    "switch_player",
    "apply_shot",
    "finalize_frame",
    "UndoHistory",
    "UNDO_DEPTH",
    "FrameClock",
    "format_duration",
]
