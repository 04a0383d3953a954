"""
Ball and scoring constants for snooker.
Leaf module: no imports from the rest of the package.
"""
from __future__ import annotations

from enum import Enum


class Ball(str, Enum):
    """Object balls. Values double as the wire names in match documents."""
    RED = "red"
    YELLOW = "yellow"
    GREEN = "green"
    BROWN = "brown"
    BLUE = "blue"
    PINK = "pink"
    BLACK = "black"


BALL_VALUES: dict[str, int] = {
    Ball.RED.value: 1,
    Ball.YELLOW.value: 2,
    Ball.GREEN.value: 3,
    Ball.BROWN.value: 4,
    Ball.BLUE.value: 5,
    Ball.PINK.value: 6,
    Ball.BLACK.value: 7,
}

# Clearance order (ascending value)
COLORS: tuple[str, ...] = (
    Ball.YELLOW.value,
    Ball.GREEN.value,
    Ball.BROWN.value,
    Ball.BLUE.value,
    Ball.PINK.value,
    Ball.BLACK.value,
)

RED = Ball.RED.value

# ---------- Table setup ----------
DEFAULT_REDS = 15
MIN_REDS = 1
MAX_REDS = 15

# ---------- Fouls ----------
MIN_FOUL_POINTS = 4
MAX_FOUL_POINTS = 7

# Free ball is always worth the value of a red
FREE_BALL_POINTS = 1


def parse_ball(value: str | Ball) -> str:
    """Normalise a ball name ('Red', Ball.RED, ' red ') to its wire value."""
    if isinstance(value, Ball):
        return value.value
    key = (value or "").strip().lower()
    if key not in BALL_VALUES:
        raise ValueError(f"Unknown ball: {value!r}")
    return key


def ball_value(ball: str | Ball) -> int:
    return BALL_VALUES[parse_ball(ball)]
