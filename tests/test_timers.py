"""Tests for session timers."""

import asyncio

import pytest

from liftlog.session import (
    DEFAULT_REST_SECONDS,
    ElapsedTimer,
    RestTimer,
    SessionTimers,
    format_elapsed,
    parse_rest_duration,
)


class TestParseRestDuration:
    """Tests for parse_rest_duration."""

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("90s", 90),
            ("90 sec", 90),
            ("45 seconds", 45),
            ("2 min", 120),
            ("2-3 min", 120),
            ("3-5 minutes", 180),
            (" 60 SEC ", 60),
            ("as needed", 0),
            ("", 0),
            (None, 0),
        ],
    )
    def test_parse(self, text, expected):
        assert parse_rest_duration(text) == expected


class TestRestTimer:
    """Tests for RestTimer."""

    def test_countdown(self):
        timer = RestTimer()
        timer.start(2)

        assert timer.active
        assert timer.display() == "0:02"
        timer.tick()
        timer.tick()
        assert timer.remaining == 0
        assert not timer.active

    def test_default_duration(self):
        timer = RestTimer()
        timer.start()
        assert timer.remaining == DEFAULT_REST_SECONDS
        assert timer.display() == "1:30"

    def test_tick_when_stopped(self):
        timer = RestTimer()
        timer.tick()
        assert timer.remaining == 0


class TestElapsedTimer:
    """Tests for ElapsedTimer."""

    def test_tracks_clock(self, clock):
        timer = ElapsedTimer(clock)
        timer.start(clock.now)
        clock.advance(minutes=2, seconds=5)
        timer.tick()

        assert timer.seconds == 125
        timer.stop()
        assert not timer.running
        assert timer.seconds == 0


class TestFormatElapsed:
    """Tests for format_elapsed."""

    @pytest.mark.parametrize(
        "seconds,expected",
        [(0, "0:00"), (65, "1:05"), (3600, "1:00:00"), (3725, "1:02:05")],
    )
    def test_format(self, seconds, expected):
        assert format_elapsed(seconds) == expected


class TestSessionTimers:
    """Tests for the tick tasks."""

    async def test_rest_task_counts_down(self, clock):
        timers = SessionTimers(clock=clock, interval=0.001)
        timers.start_rest(2)
        assert timers.running

        for _ in range(100):
            if not timers.rest.active:
                break
            await asyncio.sleep(0.005)

        assert timers.rest.remaining == 0
        timers.stop()

    async def test_stop_cancels_tasks(self, clock):
        timers = SessionTimers(clock=clock, interval=10)
        timers.start_elapsed(clock.now)
        timers.start_rest(60)
        assert timers.running

        timers.stop()
        await asyncio.sleep(0)

        assert not timers.running
        assert not timers.rest.active
        assert not timers.elapsed.running

    def test_without_event_loop(self, clock):
        timers = SessionTimers(clock=clock)
        timers.start_rest(30)
        assert timers.rest.active
        assert not timers.running
