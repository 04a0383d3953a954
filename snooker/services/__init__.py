"""
Service layer: the match controller state machine.
Persistence goes through snooker.persistence.MatchStore.
"""
from .match_controller import (
    ActionRejectedError,
    ActionResult,
    FrameState,
    MatchController,
    MatchNotFoundError,
    NothingToUndoError,
)

__all__ = [
    "ActionRejectedError",
    "ActionResult",
    "FrameState",
    "MatchController",
    "MatchNotFoundError",
    "NothingToUndoError",
]
