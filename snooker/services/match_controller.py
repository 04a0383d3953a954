"""
Match controller: the orchestrator between user actions and the rules engine.
Owns the one live Match, the frame state machine, the clock and undo history.
Every mutating call either applies fully and returns an ActionResult, or raises
before touching any state.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable

from snooker.balls import MAX_REDS, MIN_REDS, DEFAULT_REDS, RED
from snooker.engine import (
    UNDO_DEPTH,
    Foul,
    FrameClock,
    Miss,
    Pot,
    Safety,
    ShotAction,
    UndoHistory,
    apply_shot,
    finalize_frame,
    format_duration,
    frames_won,
    is_frame_complete,
    is_match_complete,
    match_winner,
    next_legal_balls,
    open_break,
    points_remaining,
    switch_player,
)
from snooker.models import (
    Frame,
    Match,
    MatchStatus,
    MatchValidationError,
    Shot,
    utc_now_iso,
)
from snooker.persistence import (
    DEFAULT_SETTINGS,
    MatchStore,
    PersistenceError,
    export_filename,
    export_match,
    generate_match_id,
    import_match,
)
from snooker.statistics import (
    calculate_match_statistics,
    get_match_summary,
    statistics_to_dict,
)

logger = logging.getLogger(__name__)


# ---------- Exceptions ----------


class ActionRejectedError(ValueError):
    """Action not allowed in the current state (e.g. potting while paused). Nothing changed."""


class NothingToUndoError(ActionRejectedError):
    """Undo requested with an empty history."""


class MatchNotFoundError(LookupError):
    """No stored match with that id."""


# ---------- Frame state machine ----------


class FrameState(str, Enum):
    NOT_STARTED = "not_started"
    AWAITING_PLAY_START = "awaiting_play_start"
    IN_PLAY = "in_play"
    PAUSED = "paused"
    FRAME_COMPLETE = "frame_complete"
    MATCH_COMPLETE = "match_complete"


_VALID_TRANSITIONS: dict[str, set[str]] = {
    FrameState.NOT_STARTED: {FrameState.AWAITING_PLAY_START},
    FrameState.AWAITING_PLAY_START: {FrameState.IN_PLAY},
    FrameState.IN_PLAY: {FrameState.PAUSED, FrameState.FRAME_COMPLETE},
    FrameState.PAUSED: {FrameState.IN_PLAY},
    FrameState.FRAME_COMPLETE: {FrameState.NOT_STARTED, FrameState.MATCH_COMPLETE},
    FrameState.MATCH_COMPLETE: set(),
}

_UNDO_STATES = {FrameState.IN_PLAY, FrameState.PAUSED}


@dataclass
class ActionResult:
    """Outcome of one controller action."""
    applied: bool = True
    message: str = ""
    state: str | None = None
    persisted: bool = False
    duplicate: bool = False
    frame_complete: bool = False
    frame_tied: bool = False
    match_complete: bool = False
    shot: Shot | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "applied": self.applied,
            "message": self.message,
            "state": self.state,
            "persisted": self.persisted,
            "duplicate": self.duplicate,
            "frame_complete": self.frame_complete,
            "frame_tied": self.frame_tied,
            "match_complete": self.match_complete,
            "shot": self.shot.to_dict() if self.shot else None,
        }


def _always_confirm(message: str) -> bool:
    return True


# ---------- MatchController ----------


class MatchController:
    """
    Sequences user actions against the rules engine for a single live match.
    store is optional; without one nothing is saved and persisted stays False.
    confirm(message) -> bool is asked before end break, end frame, undo and
    delete; a False answer cancels the action with state unchanged.
    """

    def __init__(
        self,
        store: MatchStore | None = None,
        clock: FrameClock | None = None,
        confirm: Callable[[str], bool] | None = None,
        undo_depth: int = UNDO_DEPTH,
    ) -> None:
        self.store = store
        self.clock = clock or FrameClock()
        self.confirm = confirm or _always_confirm
        self.match: Match | None = None
        self.state: FrameState | None = None
        self._undo = UndoHistory(undo_depth)
        self._applied_actions: set[str] = set()
        # Play time carried by a frame loaded from storage
        self._duration_offset = 0
        self.settings = self._load_settings()

    # ---------- Guards ----------

    def _require_match(self) -> Match:
        if self.match is None:
            raise ActionRejectedError("No active match")
        return self.match

    def _require_frame(self) -> Frame:
        frame = self._require_match().frame
        if frame is None:
            raise ActionRejectedError("Match has no frame in play")
        return frame

    def _require_state(self, allowed: set[FrameState], action: str) -> None:
        if self.state not in allowed:
            state = self.state.value if self.state else "no match"
            raise ActionRejectedError(f"Cannot {action} while {state}")

    @staticmethod
    def _require_ball_on(frame: Frame, action: Pot) -> None:
        """Only balls still on the table and on for this stroke can be potted."""
        legal = next_legal_balls(frame)
        if action.ball not in legal:
            raise ActionRejectedError(
                f"Cannot pot {action.ball}; ball on: {', '.join(legal) or 'none'}"
            )
        if action.ball == RED and action.count > frame.reds_remaining:
            raise ActionRejectedError(
                f"Cannot pot {action.count} reds with {frame.reds_remaining} on the table"
            )

    def _transition(self, new_state: FrameState) -> None:
        allowed = _VALID_TRANSITIONS.get(self.state, set()) if self.state else set()
        if new_state not in allowed:
            current = self.state.value if self.state else "no match"
            raise ActionRejectedError(f"Invalid transition: {current} -> {new_state.value}")
        self.state = new_state

    def _confirmed(self, message: str) -> bool:
        if not self.settings.get("confirm_actions", True):
            return True
        return bool(self.confirm(message))

    def _result(self, **kwargs: Any) -> ActionResult:
        return ActionResult(state=self.state.value if self.state else None, **kwargs)

    def _cancelled(self) -> ActionResult:
        return self._result(applied=False, message="Cancelled")

    # ---------- Persistence side effects ----------

    def _load_settings(self) -> dict[str, Any]:
        if self.store is None:
            return dict(DEFAULT_SETTINGS)
        try:
            return self.store.load_settings()
        except PersistenceError as e:
            logger.warning("Using default settings: %s", e)
            return dict(DEFAULT_SETTINGS)

    def update_settings(self, changes: dict[str, Any]) -> dict[str, Any]:
        self.settings.update(changes)
        if self.store is not None:
            try:
                self.settings = self.store.save_settings(self.settings)
            except PersistenceError as e:
                logger.warning("Settings kept in memory only: %s", e)
        return dict(self.settings)

    def _persist(self) -> bool:
        """Save the live match to the current slot. Failures are logged, never raised."""
        match = self.match
        if match is None or self.store is None or not self.settings.get("auto_save", True):
            return False
        frame = match.frame
        if frame is not None and not frame.ended:
            frame.duration = self.frame_duration()
        try:
            self.store.save_current(match)
        except PersistenceError as e:
            logger.warning("Match %s not saved: %s", match.id, e)
            return False
        return True

    def _archive(self, match: Match, clear_current: bool = False) -> bool:
        if self.store is None:
            return False
        try:
            self.store.save_to_history(match)
            if clear_current:
                self.store.clear_current()
        except PersistenceError as e:
            logger.warning("Match %s not saved to history: %s", match.id, e)
            return False
        return True

    def _park_unfinished(self, incoming_id: str | None = None) -> None:
        """Move the live (or stored current) unfinished match to history before replacing it."""
        previous = self.match
        if previous is None and self.store is not None:
            try:
                previous = self.store.load_current()
            except PersistenceError as e:
                logger.warning("Could not check for an unfinished match: %s", e)
        if previous is None or previous.is_completed or previous.id == incoming_id:
            return
        if previous is self.match and previous.frame is not None and not previous.frame.ended:
            previous.frame.duration = self.frame_duration()
        if self._archive(previous):
            logger.info("Unfinished match %s parked in history", previous.id)

    def _refresh_statistics(self) -> None:
        if self.match is not None:
            self.match.statistics = statistics_to_dict(calculate_match_statistics(self.match))

    # ---------- Match lifecycle ----------

    def start_match(
        self,
        player1: str,
        player2: str,
        best_of: int = 5,
        reds: int = DEFAULT_REDS,
    ) -> ActionResult:
        players = [(player1 or "").strip(), (player2 or "").strip()]
        if not all(players):
            raise MatchValidationError("Please enter both player names")
        if best_of < 1 or best_of % 2 == 0:
            raise MatchValidationError(f"best_of must be a positive odd number, got {best_of}")
        if not MIN_REDS <= reds <= MAX_REDS:
            raise MatchValidationError(f"reds must be between {MIN_REDS} and {MAX_REDS}, got {reds}")

        self._park_unfinished()

        now = utc_now_iso()
        self.match = Match(
            id=generate_match_id(),
            players=players,
            best_of=best_of,
            created=now,
            updated=now,
            reds=reds,
        )
        self._applied_actions.clear()
        self._start_frame()
        self._refresh_statistics()
        logger.info(
            "Match %s started: %s vs %s, best of %s, %s reds",
            self.match.id, players[0], players[1], best_of, reds,
        )
        return self._result(message="Match started", persisted=self._persist())

    def _start_frame(self) -> Frame:
        match = self._require_match()
        now = utc_now_iso()
        frame = Frame(number=len(match.frames) + 1, start_time=now, reds_remaining=match.reds)
        match.frames.append(frame)
        match.current_frame = len(match.frames) - 1
        open_break(frame, now)
        self._undo.clear()
        self._duration_offset = 0
        self.state = FrameState.NOT_STARTED
        self._transition(FrameState.AWAITING_PLAY_START)
        self.clock.start_frame(paused=True)
        logger.info("Match %s: frame %s ready", match.id, frame.number)
        return frame

    def start_next_frame(self) -> ActionResult:
        self._require_match()
        self._transition(FrameState.NOT_STARTED)
        frame = self._start_frame()
        return self._result(message=f"Frame {frame.number} ready", persisted=self._persist())

    def start_play(self) -> ActionResult:
        self._require_frame()
        self._transition(FrameState.IN_PLAY)
        self.clock.resume()
        self.clock.start_shot()
        return self._result(message="Play started")

    def pause(self) -> ActionResult:
        self._require_frame()
        self._transition(FrameState.PAUSED)
        self.clock.pause()
        return self._result(message="Paused", persisted=self._persist())

    def resume(self) -> ActionResult:
        self._require_frame()
        if self.state != FrameState.PAUSED:
            raise ActionRejectedError(f"Cannot resume while {self.state.value if self.state else 'no match'}")
        self._transition(FrameState.IN_PLAY)
        self.clock.resume()
        return self._result(message="Resumed")

    def toggle_pause(self) -> ActionResult:
        if self.state == FrameState.PAUSED:
            return self.resume()
        return self.pause()

    # ---------- Shots ----------

    def pot(
        self,
        ball: str,
        count: int = 1,
        used_rest: bool = False,
        is_escape: bool = False,
        action_id: str | None = None,
    ) -> ActionResult:
        return self._record(
            lambda: Pot(ball, count=count, used_rest=used_rest, is_escape=is_escape),
            action_id,
        )

    def miss(
        self,
        ball: str | None = None,
        used_rest: bool = False,
        is_escape: bool = False,
        action_id: str | None = None,
    ) -> ActionResult:
        return self._record(
            lambda: Miss(ball or RED, used_rest=used_rest, is_escape=is_escape),
            action_id,
        )

    def safety(
        self,
        ball: str | None = None,
        used_rest: bool = False,
        action_id: str | None = None,
    ) -> ActionResult:
        return self._record(lambda: Safety(ball or RED, used_rest=used_rest), action_id)

    def foul(
        self,
        points: int,
        play_again: bool = False,
        free_ball: bool = False,
        reds_potted: int = 0,
        ball: str | None = None,
        action_id: str | None = None,
    ) -> ActionResult:
        return self._record(
            lambda: Foul(
                points,
                ball=ball or RED,
                play_again=play_again,
                free_ball=free_ball,
                reds_potted=reds_potted,
            ),
            action_id,
        )

    def _record(self, build: Callable[[], ShotAction], action_id: str | None) -> ActionResult:
        self._require_match()
        if action_id is not None and action_id in self._applied_actions:
            logger.debug("Duplicate action %s ignored", action_id)
            return self._result(applied=False, duplicate=True, message="Duplicate action ignored")
        self._require_state({FrameState.IN_PLAY}, "record a shot")
        try:
            action = build()
        except ValueError as e:
            raise MatchValidationError(str(e)) from e

        frame = self._require_frame()
        if isinstance(action, Pot):
            self._require_ball_on(frame, action)

        self._undo.push(frame)
        shot = apply_shot(frame, action, utc_now_iso(), self.clock.end_shot())
        if action_id is not None:
            self._applied_actions.add(action_id)
        self.clock.start_shot()

        if is_frame_complete(frame):
            return self._complete_frame(shot=shot)
        return self._result(shot=shot, persisted=self._persist())

    # ---------- Break / frame end ----------

    def end_break(self) -> ActionResult:
        frame = self._require_frame()
        self._require_state({FrameState.IN_PLAY}, "end the break")
        if not self._confirmed("End current break and switch players?"):
            return self._cancelled()
        switch_player(frame, utc_now_iso())
        self.clock.start_shot()
        return self._result(message="Break ended", persisted=self._persist())

    def end_frame(self) -> ActionResult:
        self._require_frame()
        self._require_state({FrameState.IN_PLAY}, "end the frame")
        if not self._confirmed("End current frame?"):
            return self._cancelled()
        return self._complete_frame()

    def _complete_frame(self, shot: Shot | None = None) -> ActionResult:
        match = self._require_match()
        frame = self._require_frame()
        duration = self._duration_offset + self.clock.end_frame()
        winner = finalize_frame(frame, utc_now_iso(), duration)
        self._undo.clear()
        self._transition(FrameState.FRAME_COMPLETE)
        self._refresh_statistics()

        tied = winner is None
        won = frames_won(match)
        if tied:
            message = f"Frame {frame.number} ended level {frame.scores[0]}-{frame.scores[1]}"
        else:
            message = (
                f"Frame {frame.number} to {match.players[winner]} "
                f"{frame.scores[0]}-{frame.scores[1]} (match {won[0]}-{won[1]})"
            )
        logger.info("Match %s: %s", match.id, message)

        if is_match_complete(match):
            return self._complete_match(shot=shot, frame_tied=tied)
        return self._result(
            message=message,
            shot=shot,
            frame_complete=True,
            frame_tied=tied,
            persisted=self._persist(),
        )

    def _complete_match(self, shot: Shot | None = None, frame_tied: bool = False) -> ActionResult:
        match = self._require_match()
        match.status = MatchStatus.COMPLETED.value
        match.updated = utc_now_iso()
        match.winner = match_winner(match)
        self._transition(FrameState.MATCH_COMPLETE)
        persisted = self._archive(match, clear_current=True)
        won = frames_won(match)
        message = f"{match.players[match.winner]} wins the match {won[0]}-{won[1]}"
        logger.info("Match %s complete: %s", match.id, message)
        return self._result(
            message=message,
            shot=shot,
            frame_complete=True,
            frame_tied=frame_tied,
            match_complete=True,
            persisted=persisted,
        )

    # ---------- Undo ----------

    @property
    def can_undo(self) -> bool:
        return self._undo.can_undo

    def undo(self) -> ActionResult:
        match = self._require_match()
        self._require_state(_UNDO_STATES, "undo")
        if not self._undo.can_undo:
            raise NothingToUndoError("Nothing to undo")
        if not self._confirmed("Undo last shot?"):
            return self._cancelled()
        restored = self._undo.pop()
        match.frames[match.current_frame] = restored
        self._refresh_statistics()
        if self.state == FrameState.IN_PLAY:
            self.clock.start_shot()
        logger.debug(
            "Match %s: undo, frame %s back to %s-%s",
            match.id, restored.number, restored.scores[0], restored.scores[1],
        )
        return self._result(message="Last shot undone", persisted=self._persist())

    # ---------- Read-only views ----------

    def legal_balls(self) -> list[str]:
        frame = self._require_match().frame
        if frame is None or frame.ended:
            return []
        return next_legal_balls(frame)

    def frame_duration(self) -> int:
        """Elapsed play time of the current frame in milliseconds."""
        if self.match is None or self.match.frame is None:
            return 0
        frame = self.match.frame
        if frame.ended:
            return frame.duration
        return self._duration_offset + self.clock.frame_duration()

    def view_stats(self) -> dict[str, Any]:
        match = self._require_match()
        self._refresh_statistics()
        return get_match_summary(match)

    def snapshot(self) -> dict[str, Any]:
        """Everything a display needs to render the live match."""
        if self.match is None:
            return {"state": None, "match": None}
        match = self.match
        frame = match.frame
        duration = self.frame_duration()
        return {
            "state": self.state.value if self.state else None,
            "match": match.to_dict(),
            "frames_won": list(frames_won(match)),
            "active_player": frame.active_player if frame else None,
            "legal_balls": self.legal_balls(),
            "points_remaining": points_remaining(frame) if frame else 0,
            "free_ball_active": frame.free_ball_active if frame else False,
            "can_undo": self.can_undo,
            "frame_duration": duration,
            "frame_duration_display": format_duration(duration),
            "shot_duration": self.clock.shot_duration(),
            "paused": self.clock.is_paused,
        }

    # ---------- Storage-facing actions ----------

    def export_match(self) -> str:
        return export_match(self._require_match())

    def export_filename(self) -> str:
        return export_filename(self._require_match())

    def import_match(self, text: str) -> ActionResult:
        """Load an exported match document. Raises MatchImportError when malformed."""
        match = import_match(text)
        logger.info("Imported match %s", match.id)
        return self._load_match(match)

    def resume_match(self, match_id: str | None = None) -> ActionResult:
        """Load a stored match by id, or the current slot when no id is given."""
        if self.store is None:
            raise ActionRejectedError("No match storage configured")
        try:
            if match_id is None:
                match = self.store.load_current()
            else:
                match = self.store.get_match(match_id)
                current = self.store.load_current()
                if match is None and current is not None and current.id == match_id:
                    match = current
        except PersistenceError as e:
            raise ActionRejectedError(str(e)) from e
        if match is None:
            raise MatchNotFoundError(f"Match not found: {match_id or 'current'}")
        return self._load_match(match)

    def _load_match(self, match: Match) -> ActionResult:
        self._park_unfinished(match.id)
        self.match = match
        self._undo.clear()
        self._applied_actions.clear()
        self.clock.reset()
        self._duration_offset = 0

        if match.is_completed or is_match_complete(match):
            self.state = FrameState.MATCH_COMPLETE
            self._refresh_statistics()
            if match.is_completed:
                self._archive(match)
            return self._result(message="Match is already complete", match_complete=True)

        frame = match.frame
        if frame is None or frame.ended:
            frame = self._start_frame()
            message = f"Match loaded, frame {frame.number} started"
        else:
            self._duration_offset = frame.duration
            if frame.current_break is None:
                open_break(frame, utc_now_iso())
            self.state = FrameState.NOT_STARTED
            self._transition(FrameState.AWAITING_PLAY_START)
            self.clock.start_frame(paused=True)
            message = "Match loaded"
        self._refresh_statistics()
        logger.info("Match %s loaded at frame %s", match.id, frame.number)
        return self._result(message=message, persisted=self._persist())

    def delete_match(self, match_id: str) -> ActionResult:
        if self.store is None:
            raise ActionRejectedError("No match storage configured")
        if not self._confirmed("Delete this match from history?"):
            return self._cancelled()
        try:
            deleted = self.store.delete_match(match_id)
        except PersistenceError as e:
            logger.warning("Match %s not deleted: %s", match_id, e)
            return self._result(applied=False, message=str(e))
        if not deleted:
            raise MatchNotFoundError(f"Match not found: {match_id}")
        logger.info("Match %s deleted from history", match_id)
        return self._result(message="Match deleted", persisted=True)

    def history(self) -> list[Match]:
        if self.store is None:
            return []
        return self.store.load_history()
