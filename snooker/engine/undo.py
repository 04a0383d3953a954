"""
Undo history: bounded ring buffer of frame snapshots.
A snapshot is taken immediately before each stroke; undo restores it whole,
so scores, table, active player and the visit log come back together.
"""
from __future__ import annotations

import copy
from collections import deque

from snooker.models import Frame

UNDO_DEPTH = 10


class UndoHistory:
    """Last N pre-stroke snapshots of one frame. Older states are dropped."""

    def __init__(self, depth: int = UNDO_DEPTH) -> None:
        self._snapshots: deque[Frame] = deque(maxlen=depth)

    @property
    def depth(self) -> int:
        return self._snapshots.maxlen or 0

    def __len__(self) -> int:
        return len(self._snapshots)

    @property
    def can_undo(self) -> bool:
        return bool(self._snapshots)

    def push(self, frame: Frame) -> None:
        self._snapshots.append(copy.deepcopy(frame))

    def pop(self) -> Frame:
        """Return the most recent snapshot. Raises IndexError when empty."""
        return self._snapshots.pop()

    def clear(self) -> None:
        self._snapshots.clear()
