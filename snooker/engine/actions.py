"""
Shot actions: one variant per kind of stroke the scorer can record.
Each variant carries only the fields that make sense for it, so a stroke
cannot be a foul and a safety at the same time.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from snooker.balls import MAX_FOUL_POINTS, MIN_FOUL_POINTS, RED, parse_ball
from snooker.models import ShotKind


@dataclass(frozen=True)
class Pot:
    """Ball(s) potted. count > 1 only for several reds in one stroke."""
    ball: str
    count: int = 1
    used_rest: bool = False
    is_escape: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "ball", parse_ball(self.ball))
        if self.count < 1:
            raise ValueError("count must be at least 1")
        if self.count > 1 and self.ball != RED:
            raise ValueError("Only reds can be potted several at once")

    @property
    def kind(self) -> ShotKind:
        return ShotKind.POT


@dataclass(frozen=True)
class Miss:
    ball: str = RED
    used_rest: bool = False
    is_escape: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "ball", parse_ball(self.ball))

    @property
    def kind(self) -> ShotKind:
        return ShotKind.MISS


@dataclass(frozen=True)
class Safety:
    ball: str = RED
    used_rest: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "ball", parse_ball(self.ball))

    @property
    def kind(self) -> ShotKind:
        return ShotKind.SAFETY


@dataclass(frozen=True)
class Foul:
    """
    Foul stroke. points go to the opponent. play_again leaves the offender at
    the table; free_ball applies to the next stroke; reds_potted are reds that
    went down during the foul and stay off the table.
    """
    points: int
    ball: str = RED
    play_again: bool = False
    free_ball: bool = False
    reds_potted: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(self, "ball", parse_ball(self.ball))
        if not MIN_FOUL_POINTS <= self.points <= MAX_FOUL_POINTS:
            raise ValueError(
                f"Foul points must be between {MIN_FOUL_POINTS} and {MAX_FOUL_POINTS}"
            )
        if self.reds_potted < 0:
            raise ValueError("reds_potted cannot be negative")

    @property
    def kind(self) -> ShotKind:
        return ShotKind.FOUL


ShotAction = Union[Pot, Miss, Safety, Foul]
