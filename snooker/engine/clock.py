"""
Frame and shot clock. Observational only: produces elapsed durations that
get attached to shots and frames, never touches scoring state.
All values are milliseconds and never negative.
"""
from __future__ import annotations

import time
from typing import Callable


def _monotonic_ms() -> int:
    return int(time.monotonic() * 1000)


class FrameClock:
    """
    Tracks frame time minus paused time, and the time since the current
    shot started. Pausing freezes both.
    """

    def __init__(self, time_source: Callable[[], int] | None = None) -> None:
        self._now = time_source or _monotonic_ms
        self.reset()

    def reset(self) -> None:
        self.frame_start: int | None = None
        self.shot_start: int | None = None
        self.paused_total = 0
        self.paused = False
        self.pause_start: int | None = None

    @property
    def is_paused(self) -> bool:
        return self.paused

    def start_frame(self, paused: bool = False) -> None:
        self.reset()
        self.frame_start = self._now()
        if paused:
            self.pause()

    def pause(self) -> None:
        if not self.paused and self.frame_start is not None:
            self.paused = True
            self.pause_start = self._now()

    def resume(self) -> None:
        if not self.paused:
            return
        if self.pause_start is not None:
            self.paused_total += self._now() - self.pause_start
        self.paused = False
        self.pause_start = None
        if self.shot_start is not None:
            self.shot_start = self._now()

    def start_shot(self) -> None:
        if not self.paused:
            self.shot_start = self._now()

    def end_shot(self) -> int:
        """Elapsed time of the shot in progress; 0 if none or paused."""
        if self.shot_start is None or self.paused:
            return 0
        duration = max(0, self._now() - self.shot_start)
        self.shot_start = None
        return duration

    def shot_duration(self) -> int:
        if self.shot_start is None or self.paused:
            return 0
        return max(0, self._now() - self.shot_start)

    def frame_duration(self) -> int:
        if self.frame_start is None:
            return 0
        elapsed = self._now() - self.frame_start - self.paused_total
        if self.paused and self.pause_start is not None:
            elapsed -= self._now() - self.pause_start
        return max(0, elapsed)

    def end_frame(self) -> int:
        duration = self.frame_duration()
        self.reset()
        return duration


def format_duration(milliseconds: int) -> str:
    """m:ss, or h:mm:ss past the hour."""
    total_seconds = max(0, int(milliseconds)) // 1000
    hours, rest = divmod(total_seconds, 3600)
    minutes, seconds = divmod(rest, 60)
    if hours > 0:
        return f"{hours}:{minutes:02d}:{seconds:02d}"
    return f"{minutes}:{seconds:02d}"
