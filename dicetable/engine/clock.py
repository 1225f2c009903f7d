"""Monotonic clock used for protection windows and bot pacing."""

import asyncio
import time
from abc import ABC, abstractmethod


class Clock(ABC):
    """Source of monotonic time."""

    @abstractmethod
    def now(self) -> float:
        """Return monotonic seconds."""

    @abstractmethod
    async def sleep(self, seconds: float) -> None:
        """Pause for the given number of seconds."""


class MonotonicClock(Clock):
    """Clock backed by time.monotonic and asyncio.sleep."""

    def now(self) -> float:
        """Return monotonic seconds."""
        return time.monotonic()

    async def sleep(self, seconds: float) -> None:
        """Pause the current task."""
        await asyncio.sleep(seconds)
