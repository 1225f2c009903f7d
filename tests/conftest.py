"""Shared pytest fixtures."""

import pytest

from dicetable.engine.clock import Clock
from dicetable.models.player import Seat
from dicetable.models.table import Table


class FakeClock(Clock):
    """Clock that only moves when told to. sleep() advances it instantly."""

    def __init__(self, start: float = 1000.0) -> None:
        self.current = start
        self.sleeps: list[float] = []

    def now(self) -> float:
        return self.current

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.current += seconds

    def advance(self, seconds: float) -> None:
        self.current += seconds


@pytest.fixture
def anyio_backend():
    """Configure anyio to use asyncio backend."""
    return "asyncio"


@pytest.fixture
def clock():
    """A controllable clock."""
    return FakeClock()


@pytest.fixture
def table():
    """A table with three human seats, dealer at position 1."""
    table = Table(id="t1", ante=2)
    for seat_id, name in (("s1", "Alice"), ("s2", "Bob"), ("s3", "Cara")):
        table.add_seat(Seat(id=seat_id, username=name, chips=100))
    table.dealer_position = 1
    return table
