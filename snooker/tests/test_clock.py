"""
Tests for the frame/shot clock with a controllable time source.
"""
from __future__ import annotations

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent.parent))

from snooker.engine import FrameClock, format_duration


class FakeTime:
    def __init__(self, start: int = 1_000_000) -> None:
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


@pytest.fixture
def fake_time():
    return FakeTime()


@pytest.fixture
def clock(fake_time):
    return FrameClock(time_source=fake_time)


def test_not_started_is_zero(clock):
    assert clock.frame_duration() == 0
    assert clock.end_shot() == 0


def test_frame_duration_excludes_pauses(clock, fake_time):
    clock.start_frame()
    fake_time.advance(10_000)
    clock.pause()
    fake_time.advance(60_000)
    assert clock.frame_duration() == 10_000
    clock.resume()
    fake_time.advance(5_000)
    assert clock.frame_duration() == 15_000


def test_start_frame_paused(clock, fake_time):
    clock.start_frame(paused=True)
    fake_time.advance(30_000)
    assert clock.is_paused
    assert clock.frame_duration() == 0
    clock.resume()
    fake_time.advance(2_000)
    assert clock.frame_duration() == 2_000


def test_shot_duration(clock, fake_time):
    clock.start_frame()
    clock.start_shot()
    fake_time.advance(7_500)
    assert clock.shot_duration() == 7_500
    assert clock.end_shot() == 7_500
    assert clock.end_shot() == 0


def test_resume_restarts_shot_timer(clock, fake_time):
    clock.start_frame()
    clock.start_shot()
    fake_time.advance(3_000)
    clock.pause()
    fake_time.advance(20_000)
    clock.resume()
    fake_time.advance(1_000)
    assert clock.end_shot() == 1_000


def test_clock_skew_clamped(clock, fake_time):
    clock.start_frame()
    clock.start_shot()
    fake_time.advance(-5_000)
    assert clock.frame_duration() == 0
    assert clock.end_shot() == 0


def test_end_frame_resets(clock, fake_time):
    clock.start_frame()
    fake_time.advance(42_000)
    assert clock.end_frame() == 42_000
    assert clock.frame_duration() == 0


@pytest.mark.parametrize(
    "ms,expected",
    [(0, "0:00"), (65_000, "1:05"), (3_725_000, "1:02:05"), (-10, "0:00")],
)
def test_format_duration(ms, expected):
    assert format_duration(ms) == expected
