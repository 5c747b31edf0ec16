"""Stopwatch that turns elapsed time into a time entry."""

import logging
import math
import threading
from abc import ABC, abstractmethod
from datetime import datetime
from enum import Enum
from typing import Callable, Optional, Union

from billable_hours.core.models import RunningTimer, TimeEntry
from billable_hours.core.store import EntryIdFactory
from billable_hours.core.validation import validate_timer_duration, validate_timer_start

logger = logging.getLogger(__name__)

Number = Union[int, float]


class TimerState(Enum):
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"


def elapsed_since(now: datetime, start: datetime) -> int:
    """Whole seconds between ``start`` and ``now``, never negative."""
    return max(0, math.floor((now - start).total_seconds()))


def format_elapsed(total_seconds: int) -> str:
    """Format seconds as ``HH:MM:SS``."""
    hours = total_seconds // 3600
    minutes = (total_seconds % 3600) // 60
    seconds = total_seconds % 60
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


def split_seconds(total_seconds: int) -> tuple[int, int]:
    """Split seconds into floored (hours, minutes)."""
    return total_seconds // 3600, (total_seconds % 3600) // 60


class Ticker(ABC):
    """Recurring one-second callback."""

    @abstractmethod
    def start(self, callback: Callable[[], None]) -> None:
        """Begin calling ``callback`` once per interval."""

    @abstractmethod
    def cancel(self) -> None:
        """Stop calling the callback. Safe to call when not started."""

    @property
    @abstractmethod
    def active(self) -> bool:
        """Whether a callback is currently scheduled."""


class ThreadTicker(Ticker):
    """Ticker backed by a re-armed ``threading.Timer``."""

    def __init__(self, interval: float = 1.0):
        self.interval = interval
        self._timer: Optional[threading.Timer] = None
        self._callback: Optional[Callable[[], None]] = None
        self._lock = threading.Lock()

    @property
    def active(self) -> bool:
        return self._timer is not None

    def start(self, callback: Callable[[], None]) -> None:
        with self._lock:
            self._cancel_locked()
            self._callback = callback
            self._schedule_locked()

    def cancel(self) -> None:
        with self._lock:
            self._cancel_locked()
            self._callback = None

    def _schedule_locked(self) -> None:
        timer = threading.Timer(self.interval, self._fire)
        timer.daemon = True
        self._timer = timer
        timer.start()

    def _cancel_locked(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _fire(self) -> None:
        with self._lock:
            callback = self._callback
            if callback is None:
                return
            self._schedule_locked()
        callback()


class TimerEngine:
    """Single active stopwatch.

    States move ``IDLE -> RUNNING <-> PAUSED -> IDLE``. The engine counts
    seconds from ticks; the start instant is only used to rebuild the count
    after a restart.
    """

    def __init__(
        self,
        ticker: Optional[Ticker] = None,
        clock: Optional[Callable[[], datetime]] = None,
        id_factory: Optional[EntryIdFactory] = None,
    ):
        """Initialize timer engine.

        Args:
            ticker: Source of one-second ticks. Defaults to ThreadTicker
            clock: Returns the current instant. Defaults to datetime.now
            id_factory: Produces ids for stopped entries
        """
        self._ticker = ticker or ThreadTicker()
        self._clock = clock or datetime.now
        self._id_factory = id_factory or EntryIdFactory()
        self.state = TimerState.IDLE
        self.project: Optional[str] = None
        self.rate: Optional[Number] = None
        self.start_time: Optional[datetime] = None
        self.elapsed_seconds = 0
        self._resumed_at: Optional[datetime] = None
        self._base_seconds: Optional[int] = None

    @property
    def is_running(self) -> bool:
        """True while a session exists, paused or not."""
        return self.state is not TimerState.IDLE

    @property
    def is_paused(self) -> bool:
        return self.state is TimerState.PAUSED

    def start(self, project: str, rate: Number, elapsed_seconds: Optional[int] = None) -> None:
        """Start or restart counting.

        Args:
            project: Project name
            rate: Hourly rate in half-currency-units
            elapsed_seconds: Baseline to count from (resume and recovery)

        Raises:
            ValidationError: If project or rate is invalid
        """
        validate_timer_start(project, rate)

        if self.start_time is None:
            self.start_time = self._clock()
        if elapsed_seconds is not None:
            self.elapsed_seconds = elapsed_seconds
            self._resumed_at = self._clock()
            self._base_seconds = elapsed_seconds
        else:
            self._resumed_at = self._base_seconds = None

        self.project = project
        self.rate = rate
        self.state = TimerState.RUNNING

        # start() replaces any existing schedule, so there is never a second ticker
        self._ticker.cancel()
        self._ticker.start(self.tick)
        logger.debug(f"Timer running for {project} from {self.elapsed_seconds}s")

    def tick(self) -> None:
        if self.state is TimerState.RUNNING:
            self.elapsed_seconds += 1

    def pause(self) -> None:
        """Freeze the elapsed count.

        Raises:
            ValueError: If the timer is not running
        """
        if self.state is not TimerState.RUNNING:
            raise ValueError("Timer is not running")
        self._ticker.cancel()
        self.state = TimerState.PAUSED
        logger.debug(f"Timer paused at {self.elapsed_seconds}s")

    def resume(self) -> None:
        """Continue counting from the frozen elapsed value.

        Raises:
            ValueError: If the timer is not paused
        """
        if self.state is not TimerState.PAUSED:
            raise ValueError("Timer is not paused")
        project, rate = self._session()
        self.start(project, rate, self.elapsed_seconds)

    def stop(self) -> Optional[TimeEntry]:
        """Stop the timer and build an entry from the elapsed time.

        Returns:
            New entry, or None when less than a minute elapsed

        Raises:
            ValueError: If no timer is running
            ValidationError: If more than 24 hours elapsed. The session is
                kept (paused) so the user can see the error and stop again.
        """
        if self.state is TimerState.IDLE:
            raise ValueError("No timer is running")

        self._ticker.cancel()

        entry = None
        hours, minutes = split_seconds(self.elapsed_seconds)
        try:
            validate_timer_duration(hours)
        except ValueError:
            self.state = TimerState.PAUSED
            raise

        # Under a minute rounds down to 0h 0m, which is never stored
        if hours > 0 or minutes > 0:
            project, rate = self._session()
            entry = TimeEntry(
                id=self._id_factory(),
                project_name=project,
                hours=hours,
                minutes=minutes,
                rate=rate,
                date=self._clock(),
            )
            logger.info(f"Timer stopped: {project} {hours}h {minutes}m")

        self.reset()
        return entry

    def reset(self) -> None:
        """Discard the session and return to IDLE."""
        self._ticker.cancel()
        self.state = TimerState.IDLE
        self.elapsed_seconds = 0
        self.start_time = None
        self._resumed_at = self._base_seconds = None
        self.project = None
        self.rate = None

    def _session(self) -> tuple[str, Number]:
        if self.project is None or self.rate is None:
            raise ValueError("No timer is running")
        return self.project, self.rate

    def recover(self, record: RunningTimer, now: Optional[datetime] = None) -> None:
        """Rebuild a session from its persisted record.

        A running session's elapsed time is recomputed from the wall clock,
        counting from its last resume when it has one. A paused session
        keeps its frozen count.

        Raises:
            ValidationError: If the record holds an invalid project or rate
        """
        now = now or self._clock()
        validate_timer_start(record.project, record.rate)
        self.start_time = record.start_time

        if record.paused_seconds is not None:
            self.project = record.project
            self.rate = record.rate
            self.elapsed_seconds = record.paused_seconds
            self.state = TimerState.PAUSED
        elif record.resumed_at is not None and record.base_seconds is not None:
            elapsed = record.base_seconds + elapsed_since(now, record.resumed_at)
            self.start(record.project, record.rate, elapsed)
            self._resumed_at = record.resumed_at
            self._base_seconds = record.base_seconds
        else:
            self.start(record.project, record.rate, elapsed_since(now, record.start_time))
            self._resumed_at = self._base_seconds = None
        logger.info(f"Recovered timer for {record.project} at {self.elapsed_seconds}s")

    def to_record(self) -> Optional[RunningTimer]:
        """Persisted form of the session, None when IDLE."""
        if self.state is TimerState.IDLE or self.start_time is None:
            return None
        project, rate = self._session()
        if self.is_paused:
            return RunningTimer(project, rate, self.start_time, paused_seconds=self.elapsed_seconds)
        return RunningTimer(
            project=project,
            rate=rate,
            start_time=self.start_time,
            resumed_at=self._resumed_at,
            base_seconds=self._base_seconds,
        )
