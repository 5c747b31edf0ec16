"""Core data models for time tracking."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional, Union

from billable_hours.core.money import Money

Number = Union[int, float]

DEFAULT_RATE = 40
DEFAULT_MONTHLY_TARGET = 5000
DEFAULT_TARGET_RATE = 60


def parse_iso_datetime(value: str) -> datetime:
    """Parse an ISO-8601 string into a naive local datetime.

    Accepts the ``Z`` suffix written by JavaScript's ``toISOString``; aware
    values are converted to local time so every entry compares on one clock.

    Raises:
        ValueError: If the value is not ISO-8601
    """
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


@dataclass
class TimeEntry:
    """Billable block of time logged against a project.

    Attributes:
        id: Unique identifier (string)
        project_name: Project or client name, at most 80 characters
        hours: Whole hours (0-24)
        minutes: Minutes (0-59)
        rate: Hourly rate in half-currency-units (20-100)
        date: When the entry was created
        notes: Additional notes
    """

    id: str
    project_name: str
    hours: int
    minutes: int
    rate: Number
    date: datetime = field(default_factory=datetime.now)
    notes: Optional[str] = None

    @property
    def duration_hours(self) -> float:
        """Duration as fractional hours."""
        return self.hours + self.minutes / 60

    @property
    def amount(self) -> Money:
        """Billed amount for this entry."""
        return Money(self.duration_hours * self.rate)

    @property
    def rate_money(self) -> Money:
        """Hourly rate as Money."""
        return Money(self.rate)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON persistence."""
        data: dict[str, Any] = {
            "id": self.id,
            "projectName": self.project_name,
            "hours": self.hours,
            "minutes": self.minutes,
            "rate": self.rate,
            "date": self.date.isoformat(),
        }
        if self.notes:
            data["notes"] = self.notes
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TimeEntry":
        """Create TimeEntry from a persisted dictionary."""
        return cls(
            id=str(data["id"]),
            project_name=data["projectName"],
            hours=int(data["hours"]),
            minutes=int(data["minutes"]),
            rate=data["rate"],
            date=parse_iso_datetime(data["date"]),
            notes=data.get("notes") or None,
        )


@dataclass
class Settings:
    """Monthly billing target.

    Attributes:
        monthly_target_amount: Target in half-currency-units
        target_rate: Target hourly rate in half-currency-units
    """

    monthly_target_amount: Number = DEFAULT_MONTHLY_TARGET
    target_rate: Number = DEFAULT_TARGET_RATE

    @property
    def monthly_target(self) -> Money:
        return Money(self.monthly_target_amount)

    @property
    def target_rate_money(self) -> Money:
        return Money(self.target_rate)

    def to_dict(self) -> dict[str, Any]:
        return {
            "monthlyTargetAmount": self.monthly_target_amount,
            "targetRate": self.target_rate,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Settings":
        return cls(
            monthly_target_amount=data.get("monthlyTargetAmount", DEFAULT_MONTHLY_TARGET),
            target_rate=data.get("targetRate", DEFAULT_TARGET_RATE),
        )


@dataclass
class RunningTimer:
    """Persisted record of an active timer session.

    Attributes:
        project: Project the timer runs against
        rate: Hourly rate in half-currency-units
        start_time: Instant the session was first started
        paused_seconds: Elapsed seconds frozen at pause (None while running)
        resumed_at: Instant counting last restarted from a baseline
        base_seconds: Elapsed seconds already counted at ``resumed_at``
    """

    project: str
    rate: Number
    start_time: datetime
    paused_seconds: Optional[int] = None
    resumed_at: Optional[datetime] = None
    base_seconds: Optional[int] = None

    @property
    def is_paused(self) -> bool:
        return self.paused_seconds is not None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "project": self.project,
            "rate": self.rate,
            "startTime": self.start_time.isoformat(),
        }
        if self.paused_seconds is not None:
            data["pausedSeconds"] = self.paused_seconds
        elif self.resumed_at is not None and self.base_seconds is not None:
            data["resumedAt"] = self.resumed_at.isoformat()
            data["baseSeconds"] = self.base_seconds
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RunningTimer":
        paused = data.get("pausedSeconds")
        resumed_at = data.get("resumedAt")
        base = data.get("baseSeconds")
        # The anchor is only usable as a pair
        if resumed_at is None or base is None:
            resumed_at = base = None
        return cls(
            project=data["project"],
            rate=data["rate"],
            start_time=parse_iso_datetime(data["startTime"]),
            paused_seconds=int(paused) if paused is not None else None,
            resumed_at=parse_iso_datetime(resumed_at) if resumed_at is not None else None,
            base_seconds=int(base) if base is not None else None,
        )
