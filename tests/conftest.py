"""Pytest configuration and shared fixtures."""

from datetime import datetime, timedelta
from typing import Callable, Optional

import pytest  # type: ignore[import-not-found]

from billable_hours.core.storage import MemoryStore
from billable_hours.core.timer import Ticker
from billable_hours.core.tracker import TimeTracker


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest."""
    config.addinivalue_line("markers", "slow: Slow tests")


class ManualTicker(Ticker):
    """Ticker driven by the test instead of a thread."""

    def __init__(self) -> None:
        self.callback: Optional[Callable[[], None]] = None
        self.starts = 0
        self.cancels = 0

    @property
    def active(self) -> bool:
        return self.callback is not None

    def start(self, callback: Callable[[], None]) -> None:
        assert self.callback is None, "ticker started twice without cancel"
        self.callback = callback
        self.starts += 1

    def cancel(self) -> None:
        self.callback = None
        self.cancels += 1

    def fire(self, times: int = 1) -> None:
        for _ in range(times):
            if self.callback is not None:
                self.callback()


class FakeClock:
    """Settable clock."""

    def __init__(self, now: Optional[datetime] = None) -> None:
        self.now = now or datetime(2026, 10, 19, 15, 4, 5)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def ticker() -> ManualTicker:
    return ManualTicker()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def memory_store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def tracker(memory_store: MemoryStore, ticker: ManualTicker, clock: FakeClock) -> TimeTracker:
    """Tracker over in-memory storage with a manual ticker and fixed clock."""
    return TimeTracker(memory_store, ticker=ticker, clock=clock)
