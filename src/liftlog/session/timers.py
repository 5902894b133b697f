"""Rest and elapsed-time timers for an active workout.

Both timers are purely local: they are never persisted and stop whenever the
session they belong to goes away.
"""

import asyncio
import re
from datetime import datetime
from typing import Callable

from ..log import get_logger
from ..utils import utcnow

logger = get_logger(__name__)

DEFAULT_REST_SECONDS = 90

_SECONDS_RE = re.compile(r"^(\d+)\s*s(ec)?")
_MINUTE_RANGE_RE = re.compile(r"^(\d+)-\d+\s*min")
_MINUTES_RE = re.compile(r"^(\d+)\s*min")


def parse_rest_duration(text: str | None) -> int:
    """Parse a rest prescription into seconds.

    Understands "90s", "90 sec", "2 min" and ranges like "2-3 min" (the
    lower bound is used). Anything else yields 0, meaning "don't auto-start".

    Examples:
        >>> parse_rest_duration("90 sec")
        90
        >>> parse_rest_duration("2-3 min")
        120
        >>> parse_rest_duration("as needed")
        0
    """
    if not text:
        return 0
    s = text.lower().strip()

    match = _SECONDS_RE.match(s)
    if match:
        return int(match.group(1))
    match = _MINUTE_RANGE_RE.match(s)
    if match:
        return int(match.group(1)) * 60
    match = _MINUTES_RE.match(s)
    if match:
        return int(match.group(1)) * 60
    return 0


class RestTimer:
    """Countdown between sets."""

    def __init__(self, default_seconds: int = DEFAULT_REST_SECONDS):
        self.default_seconds = default_seconds
        self.remaining = 0
        self.active = False

    def start(self, seconds: int | None = None) -> None:
        self.remaining = seconds or self.default_seconds
        self.active = self.remaining > 0

    def tick(self) -> None:
        """Advance the countdown by one second."""
        if not self.active:
            return
        self.remaining = max(self.remaining - 1, 0)
        if self.remaining == 0:
            self.active = False

    def stop(self) -> None:
        self.remaining = 0
        self.active = False

    def display(self) -> str:
        return f"{self.remaining // 60}:{self.remaining % 60:02d}"


class ElapsedTimer:
    """Seconds since the current workout started."""

    def __init__(self, clock: Callable[[], datetime] = utcnow):
        self.clock = clock
        self.started_at: datetime | None = None
        self.seconds = 0

    def start(self, started_at: datetime) -> None:
        self.started_at = started_at
        self.tick()

    def tick(self) -> None:
        if self.started_at is None:
            return
        self.seconds = max(int((self.clock() - self.started_at).total_seconds()), 0)

    def stop(self) -> None:
        self.started_at = None
        self.seconds = 0

    @property
    def running(self) -> bool:
        return self.started_at is not None


def format_elapsed(seconds: int) -> str:
    """Format seconds as M:SS, or H:MM:SS past an hour."""
    hrs, rest = divmod(seconds, 3600)
    mins, secs = divmod(rest, 60)
    if hrs > 0:
        return f"{hrs}:{mins:02d}:{secs:02d}"
    return f"{mins}:{secs:02d}"


class SessionTimers:
    """Owns the rest and elapsed timers and their periodic tick tasks.

    The two tick tasks are independent. ``stop()`` cancels both, which the
    workout session does as soon as its workout is finished or discarded.
    """

    def __init__(
        self,
        clock: Callable[[], datetime] = utcnow,
        interval: float = 1.0,
        rest_seconds: int = DEFAULT_REST_SECONDS,
    ):
        self.rest = RestTimer(rest_seconds)
        self.elapsed = ElapsedTimer(clock)
        self.interval = interval
        self._rest_task: asyncio.Task | None = None
        self._elapsed_task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return any(
            task is not None and not task.done()
            for task in (self._rest_task, self._elapsed_task)
        )

    def start_elapsed(self, started_at: datetime) -> None:
        self.elapsed.start(started_at)
        if _has_running_loop() and (self._elapsed_task is None or self._elapsed_task.done()):
            self._elapsed_task = asyncio.create_task(self._run_elapsed())

    def start_rest(self, seconds: int | None = None) -> None:
        self.rest.start(seconds)
        if (
            self.rest.active
            and _has_running_loop()
            and (self._rest_task is None or self._rest_task.done())
        ):
            self._rest_task = asyncio.create_task(self._run_rest())

    def stop_rest(self) -> None:
        self.rest.stop()
        _cancel(self._rest_task)
        self._rest_task = None

    def stop(self) -> None:
        """Stop both timers and cancel their tick tasks."""
        if self.running:
            logger.debug("session timers stopped")
        self.stop_rest()
        self.elapsed.stop()
        _cancel(self._elapsed_task)
        self._elapsed_task = None

    async def _run_rest(self) -> None:
        while self.rest.active:
            await asyncio.sleep(self.interval)
            self.rest.tick()

    async def _run_elapsed(self) -> None:
        while self.elapsed.running:
            await asyncio.sleep(self.interval)
            self.elapsed.tick()


def _has_running_loop() -> bool:
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return False
    return True


def _cancel(task: asyncio.Task | None) -> None:
    if task is not None and not task.done():
        task.cancel()
