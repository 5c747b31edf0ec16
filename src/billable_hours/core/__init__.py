"""Core functionality for time tracking and billing."""

from billable_hours.core.errors import (
    BillableHoursError,
    CSVImportError,
    PersistenceReadError,
    ValidationError,
)
from billable_hours.core.models import RunningTimer, Settings, TimeEntry
from billable_hours.core.money import Money

__all__ = [
    "BillableHoursError",
    "CSVImportError",
    "Money",
    "PersistenceReadError",
    "RunningTimer",
    "Settings",
    "TimeEntry",
    "ValidationError",
]
