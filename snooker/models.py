"""
Data models for the snooker scorer.
Domain objects only. Rules live in snooker.engine, storage in snooker.persistence.

Ownership: Match owns Frames; Frame owns Breaks and points at its current
Break by index; Break owns Shots. Players are plain indices (0 or 1).
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from snooker.balls import COLORS, DEFAULT_REDS


class MatchValidationError(ValueError):
    """Match settings or match data rejected (player names, best-of, reds)."""


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def other_player(player: int) -> int:
    return 1 - player


# ---------- Match status ----------
class MatchStatus(str, Enum):
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"


# ---------- Shot kind ----------
class ShotKind(str, Enum):
    POT = "pot"
    MISS = "miss"
    SAFETY = "safety"
    FOUL = "foul"


# ---------- Shot ----------
@dataclass
class Shot:
    """
    One recorded stroke. Appended only; removed only by undo.
    points is what the striker scored (0 for miss/safety/foul);
    foul_points is what the opponent received.
    duration is elapsed shot time in milliseconds.
    """
    kind: str  # ShotKind value
    ball: str
    timestamp: str
    points: int = 0
    used_rest: bool = False
    is_escape: bool = False
    is_free_ball: bool = False
    multiple_reds: int = 0  # >= 2 when one stroke potted several reds
    foul_points: int = 0
    reds_potted_during_foul: int = 0
    duration: int = 0

    @property
    def potted(self) -> bool:
        return self.kind == ShotKind.POT

    @property
    def is_safety(self) -> bool:
        return self.kind == ShotKind.SAFETY

    @property
    def is_foul(self) -> bool:
        return self.kind == ShotKind.FOUL

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "ball": self.ball,
            "timestamp": self.timestamp,
            "potted": self.potted,
            "points": self.points,
            "used_rest": self.used_rest,
            "is_safety": self.is_safety,
            "is_escape": self.is_escape,
            "is_foul": self.is_foul,
            "is_free_ball": self.is_free_ball,
            "multiple_reds": self.multiple_reds,
            "foul_points": self.foul_points,
            "reds_potted_during_foul": self.reds_potted_during_foul,
            "duration": self.duration,
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Shot:
        kind = d.get("kind")
        if kind is None:
            # Documents without a kind tag carry the flags only
            if d.get("is_foul"):
                kind = ShotKind.FOUL.value
            elif d.get("is_safety"):
                kind = ShotKind.SAFETY.value
            elif d.get("potted"):
                kind = ShotKind.POT.value
            else:
                kind = ShotKind.MISS.value
        return cls(
            kind=ShotKind(kind).value,
            ball=d["ball"],
            timestamp=d.get("timestamp", ""),
            points=int(d.get("points", 0)),
            used_rest=bool(d.get("used_rest", False)),
            is_escape=bool(d.get("is_escape", False)),
            is_free_ball=bool(d.get("is_free_ball", False)),
            multiple_reds=int(d.get("multiple_reds", 0)),
            foul_points=int(d.get("foul_points", 0)),
            reds_potted_during_foul=int(d.get("reds_potted_during_foul", 0)),
            duration=int(d.get("duration", 0)),
        )


# ---------- Break ----------
@dataclass
class Break:
    """A visit by one player. balls is the potted-ball log kept for display."""
    player: int
    start_time: str
    end_time: str | None = None
    points: int = 0
    shots: list[Shot] = field(default_factory=list)
    balls: list[str] = field(default_factory=list)

    @property
    def ended(self) -> bool:
        return self.end_time is not None

    @property
    def has_free_ball(self) -> bool:
        return any(s.is_free_ball for s in self.shots)

    def to_dict(self) -> dict[str, Any]:
        return {
            "player": self.player,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "points": self.points,
            "shots": [s.to_dict() for s in self.shots],
            "balls": list(self.balls),
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Break:
        return cls(
            player=int(d["player"]),
            start_time=d.get("start_time", ""),
            end_time=d.get("end_time"),
            points=int(d.get("points", 0)),
            shots=[Shot.from_dict(s) for s in d.get("shots", [])],
            balls=list(d.get("balls", [])),
        )


# ---------- Frame ----------
@dataclass
class Frame:
    """
    One frame. Complete iff no reds and no colors remain.
    current_break_index points into breaks (None between visits / after the frame ends).
    duration is accumulated play time in milliseconds.
    """
    number: int
    start_time: str
    reds_remaining: int = DEFAULT_REDS
    colors_remaining: list[str] = field(default_factory=lambda: list(COLORS))
    end_time: str | None = None
    winner: int | None = None
    scores: list[int] = field(default_factory=lambda: [0, 0])
    breaks: list[Break] = field(default_factory=list)
    current_break_index: int | None = None
    active_player: int = 0
    duration: int = 0
    free_ball_active: bool = False

    @property
    def current_break(self) -> Break | None:
        if self.current_break_index is None:
            return None
        return self.breaks[self.current_break_index]

    @property
    def ended(self) -> bool:
        return self.end_time is not None

    def to_dict(self) -> dict[str, Any]:
        return {
            "number": self.number,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "winner": self.winner,
            "scores": list(self.scores),
            "breaks": [b.to_dict() for b in self.breaks],
            "current_break_index": self.current_break_index,
            "reds_remaining": self.reds_remaining,
            "colors_remaining": list(self.colors_remaining),
            "active_player": self.active_player,
            "duration": self.duration,
            "free_ball_active": self.free_ball_active,
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Frame:
        breaks = [Break.from_dict(b) for b in d.get("breaks", [])]
        index = d.get("current_break_index")
        if index is not None and not 0 <= index < len(breaks):
            index = None
        return cls(
            number=int(d["number"]),
            start_time=d.get("start_time", ""),
            end_time=d.get("end_time"),
            winner=d.get("winner"),
            scores=[int(x) for x in d.get("scores", [0, 0])],
            breaks=breaks,
            current_break_index=index,
            reds_remaining=int(d.get("reds_remaining", DEFAULT_REDS)),
            colors_remaining=list(d.get("colors_remaining", COLORS)),
            active_player=int(d.get("active_player", 0)),
            duration=int(d.get("duration", 0)),
            free_ball_active=bool(d.get("free_ball_active", False)),
        )


# ---------- Match ----------
@dataclass
class Match:
    """
    A match between two players. Mutated only by the match controller;
    read-only once status is completed.
    statistics holds the last aggregated summary (see snooker.statistics).
    """
    id: str
    players: list[str]
    best_of: int
    created: str
    updated: str
    reds: int = DEFAULT_REDS
    status: str = MatchStatus.IN_PROGRESS.value
    current_frame: int = 0
    frames: list[Frame] = field(default_factory=list)
    winner: int | None = None
    statistics: dict[str, Any] = field(default_factory=dict)

    @property
    def frame(self) -> Frame | None:
        """The frame currently being played (or the last one played)."""
        if 0 <= self.current_frame < len(self.frames):
            return self.frames[self.current_frame]
        return None

    @property
    def is_completed(self) -> bool:
        return self.status == MatchStatus.COMPLETED

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "players": list(self.players),
            "best_of": self.best_of,
            "reds": self.reds,
            "created": self.created,
            "updated": self.updated,
            "status": self.status,
            "current_frame": self.current_frame,
            "frames": [f.to_dict() for f in self.frames],
            "winner": self.winner,
            "statistics": self.statistics,
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Match:
        return cls(
            id=d["id"],
            players=list(d["players"]),
            best_of=int(d.get("best_of", 1)),
            reds=int(d.get("reds", DEFAULT_REDS)),
            created=d.get("created", ""),
            updated=d.get("updated", ""),
            status=MatchStatus(d.get("status", MatchStatus.IN_PROGRESS.value)).value,
            current_frame=int(d.get("current_frame", 0)),
            frames=[Frame.from_dict(f) for f in d.get("frames", [])],
            winner=d.get("winner"),
            statistics=d.get("statistics") or {},
        )
