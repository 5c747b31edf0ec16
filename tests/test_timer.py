"""Tests for the timer engine."""

import time
from datetime import datetime, timedelta

import pytest  # type: ignore[import-not-found]

from billable_hours.core.errors import ValidationError
from billable_hours.core.models import RunningTimer
from billable_hours.core.store import EntryIdFactory
from billable_hours.core.timer import (
    ThreadTicker,
    TimerEngine,
    TimerState,
    elapsed_since,
    format_elapsed,
    split_seconds,
)
from conftest import FakeClock, ManualTicker


@pytest.fixture
def engine(ticker: ManualTicker, clock: FakeClock) -> TimerEngine:
    """Timer engine with a manual ticker and fixed clock."""
    return TimerEngine(ticker=ticker, clock=clock, id_factory=EntryIdFactory(lambda: 1000.0))


class TestHelpers:
    """Test time helpers."""

    def test_format_elapsed(self) -> None:
        assert format_elapsed(0) == "00:00:00"
        assert format_elapsed(3725) == "01:02:05"
        assert format_elapsed(25 * 3600) == "25:00:00"

    def test_split_seconds_floors(self) -> None:
        assert split_seconds(90) == (0, 1)
        assert split_seconds(3599) == (0, 59)
        assert split_seconds(3600) == (1, 0)

    def test_elapsed_since(self) -> None:
        """Elapsed seconds are floored and never negative."""
        start = datetime(2026, 10, 19, 8, 0)
        assert elapsed_since(start + timedelta(seconds=2.9), start) == 2
        assert elapsed_since(start - timedelta(seconds=30), start) == 0


class TestTimerEngine:
    """Test the timer state machine."""

    def test_start(self, engine: TimerEngine, ticker: ManualTicker, clock: FakeClock) -> None:
        engine.start("Acme", 40)

        assert engine.state is TimerState.RUNNING
        assert engine.is_running
        assert engine.start_time == clock.now
        assert engine.elapsed_seconds == 0
        assert ticker.active

    def test_start_invalid(self, engine: TimerEngine, ticker: ManualTicker) -> None:
        """A rejected start leaves the engine idle."""
        with pytest.raises(ValidationError, match="Project name is required"):
            engine.start("", 40)
        with pytest.raises(ValidationError, match=r"Rate must be between \$10.00 and \$50.00"):
            engine.start("Acme", 150)

        assert engine.state is TimerState.IDLE
        assert not ticker.active

    def test_ticks_count_seconds(self, engine: TimerEngine, ticker: ManualTicker) -> None:
        engine.start("Acme", 40)
        ticker.fire(90)
        assert engine.elapsed_seconds == 90

    def test_stop_after_ninety_seconds(
        self, engine: TimerEngine, ticker: ManualTicker, clock: FakeClock
    ) -> None:
        """90 seconds logs one minute and returns to idle."""
        engine.start("Acme", 40)
        ticker.fire(90)

        entry = engine.stop()

        assert entry is not None
        assert (entry.project_name, entry.hours, entry.minutes, entry.rate) == ("Acme", 0, 1, 40)
        assert entry.date == clock.now
        assert entry.id == "1000000"
        assert engine.state is TimerState.IDLE
        assert engine.elapsed_seconds == 0
        assert engine.start_time is None
        assert not ticker.active

    def test_stop_under_a_minute(self, engine: TimerEngine, ticker: ManualTicker) -> None:
        """Less than a minute produces no entry."""
        engine.start("Acme", 40)
        ticker.fire(59)

        assert engine.stop() is None
        assert engine.state is TimerState.IDLE

    def test_stop_when_idle(self, engine: TimerEngine) -> None:
        with pytest.raises(ValueError, match="No timer is running"):
            engine.stop()

    def test_stop_at_exactly_24_hours(self, engine: TimerEngine) -> None:
        engine.start("Acme", 40)
        engine.elapsed_seconds = 24 * 3600 + 59 * 60

        entry = engine.stop()

        assert entry is not None
        assert (entry.hours, entry.minutes) == (24, 59)

    def test_stop_over_24_hours_keeps_session(
        self, engine: TimerEngine, ticker: ManualTicker
    ) -> None:
        """An over-long session is kept paused so it can be inspected."""
        engine.start("Acme", 40)
        start_time = engine.start_time
        engine.elapsed_seconds = 25 * 3600

        with pytest.raises(ValidationError, match="Cannot log more than 24 hours at once"):
            engine.stop()

        assert engine.state is TimerState.PAUSED
        assert engine.elapsed_seconds == 25 * 3600
        assert engine.start_time == start_time
        assert engine.project == "Acme"
        assert not ticker.active

        ticker.fire(5)
        assert engine.elapsed_seconds == 25 * 3600

        engine.reset()
        assert engine.state is TimerState.IDLE

    def test_pause_freezes_elapsed(self, engine: TimerEngine, ticker: ManualTicker) -> None:
        engine.start("Acme", 40)
        ticker.fire(10)

        engine.pause()
        engine.tick()

        assert engine.state is TimerState.PAUSED
        assert engine.is_running
        assert engine.elapsed_seconds == 10
        assert not ticker.active

    def test_resume_continues(
        self, engine: TimerEngine, ticker: ManualTicker, clock: FakeClock
    ) -> None:
        """Resuming counts on from the frozen value and keeps the start instant."""
        engine.start("Acme", 40)
        start_time = engine.start_time
        ticker.fire(10)
        engine.pause()
        clock.advance(600)

        engine.resume()
        ticker.fire(5)

        assert engine.state is TimerState.RUNNING
        assert engine.elapsed_seconds == 15
        assert engine.start_time == start_time

    def test_resume_records_anchor(
        self, engine: TimerEngine, ticker: ManualTicker, clock: FakeClock
    ) -> None:
        start_time = clock.now
        engine.start("Acme", 40)
        ticker.fire(10)
        engine.pause()
        clock.advance(600)

        engine.resume()

        assert engine.to_record() == RunningTimer(
            "Acme", 40, start_time, resumed_at=clock.now, base_seconds=10
        )

    def test_session_without_project(self, engine: TimerEngine) -> None:
        """A session that lost its project cannot be resumed or persisted."""
        engine.start("Acme", 40)
        engine.pause()
        engine.project = None

        with pytest.raises(ValueError, match="No timer is running"):
            engine.resume()
        with pytest.raises(ValueError, match="No timer is running"):
            engine.to_record()

    def test_pause_and_resume_guards(self, engine: TimerEngine) -> None:
        with pytest.raises(ValueError, match="Timer is not running"):
            engine.pause()
        engine.start("Acme", 40)
        with pytest.raises(ValueError, match="Timer is not paused"):
            engine.resume()

    def test_restart_never_doubles_ticks(self, engine: TimerEngine, ticker: ManualTicker) -> None:
        """Starting again replaces the tick schedule."""
        engine.start("Acme", 40)
        engine.start("Acme", 40)
        ticker.fire(3)

        assert ticker.starts == 2
        assert engine.elapsed_seconds == 3

    def test_recover_running(
        self, engine: TimerEngine, ticker: ManualTicker, clock: FakeClock
    ) -> None:
        """A running record resumes from the wall-clock elapsed time."""
        start = clock.now - timedelta(seconds=125)
        engine.recover(RunningTimer("Acme", 40, start))

        assert engine.state is TimerState.RUNNING
        assert engine.elapsed_seconds == 125
        assert engine.start_time == start
        assert ticker.active

    def test_recover_from_resume_anchor(
        self, engine: TimerEngine, ticker: ManualTicker, clock: FakeClock
    ) -> None:
        """After a resume, only time since the resume is added to the frozen count."""
        start = clock.now - timedelta(hours=2)
        resumed_at = clock.now - timedelta(seconds=30)
        record = RunningTimer("Acme", 40, start, resumed_at=resumed_at, base_seconds=60)

        engine.recover(record)

        assert engine.state is TimerState.RUNNING
        assert engine.elapsed_seconds == 90
        assert engine.start_time == start
        assert engine.to_record() == record

    def test_recover_paused(self, engine: TimerEngine, ticker: ManualTicker, clock: FakeClock) -> None:
        start = clock.now - timedelta(hours=2)
        engine.recover(RunningTimer("Acme", 40, start, paused_seconds=300))

        assert engine.state is TimerState.PAUSED
        assert engine.elapsed_seconds == 300
        assert not ticker.active

    def test_recover_invalid_record(self, engine: TimerEngine, clock: FakeClock) -> None:
        with pytest.raises(ValidationError):
            engine.recover(RunningTimer("Acme", 500, clock.now))
        assert engine.state is TimerState.IDLE

    def test_to_record(self, engine: TimerEngine, ticker: ManualTicker, clock: FakeClock) -> None:
        assert engine.to_record() is None

        engine.start("Acme", 40)
        ticker.fire(30)
        assert engine.to_record() == RunningTimer("Acme", 40, clock.now)

        engine.pause()
        assert engine.to_record() == RunningTimer("Acme", 40, clock.now, paused_seconds=30)


@pytest.mark.slow
class TestThreadTicker:
    """Test the thread-backed ticker."""

    def test_ticks_until_cancelled(self) -> None:
        ticks: list[int] = []
        ticker = ThreadTicker(interval=0.01)

        ticker.start(lambda: ticks.append(1))
        deadline = time.monotonic() + 5
        while len(ticks) < 3 and time.monotonic() < deadline:
            time.sleep(0.01)
        ticker.cancel()

        assert len(ticks) >= 3
        assert not ticker.active

    def test_cancel_when_not_started(self) -> None:
        ticker = ThreadTicker()
        ticker.cancel()
        assert not ticker.active
