"""Validation rules shared by manual entry, edit-save, timer and settings.

Each check raises ``ValidationError`` with a single message; callers run the
checks in a fixed order so the first failing rule is the one reported.
"""

import math
from typing import Any, Optional

from billable_hours.core.errors import ValidationError
from billable_hours.core.money import Money

MAX_PROJECT_LENGTH = 80
MIN_RATE = 20
MAX_RATE = 100
MAX_HOURS = 24
MAX_MINUTES = 59


def is_number(value: Any) -> bool:
    """Return True for finite ints and floats (bools excluded)."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return not (isinstance(value, float) and (math.isnan(value) or math.isinf(value)))


def is_whole_number(value: Any) -> bool:
    """Return True for ints and integral floats."""
    return is_number(value) and float(value).is_integer()


def rate_in_range(rate: Any) -> bool:
    return is_number(rate) and MIN_RATE <= rate <= MAX_RATE


def rate_error_message() -> str:
    return f"Rate must be between {Money(MIN_RATE)} and {Money(MAX_RATE)}"


def validate_project(project: Optional[str], context: Optional[str] = None) -> str:
    """Validate a project name.

    Returns:
        The project name unchanged

    Raises:
        ValidationError: If the name is blank or longer than 80 characters
    """
    if project is None or project.strip() == "":
        raise ValidationError("Project name is required", context)
    if len(project) > MAX_PROJECT_LENGTH:
        raise ValidationError(
            f"Project name must be {MAX_PROJECT_LENGTH} characters or less", context
        )
    return project


def validate_rate(rate: Any, context: Optional[str] = None) -> None:
    if not rate_in_range(rate):
        raise ValidationError(rate_error_message(), context)


def validate_hours(hours: Any, context: Optional[str] = None) -> None:
    if not is_whole_number(hours) or hours < 0:
        raise ValidationError(f"Hours must be between 0 and {MAX_HOURS}", context)
    if hours > MAX_HOURS:
        raise ValidationError("Cannot log more than 24 hours at once", context)


def validate_minutes(minutes: Any, context: Optional[str] = None) -> None:
    if not is_whole_number(minutes) or not 0 <= minutes <= MAX_MINUTES:
        raise ValidationError(f"Minutes must be between 0 and {MAX_MINUTES}", context)


def validate_timer_start(project: Optional[str], rate: Any) -> None:
    """Validate the fields required to start the timer."""
    validate_project(project, "timer")
    validate_rate(rate, "timer")


def validate_timer_duration(hours: int) -> None:
    """Timer stops only reject durations above 24 hours."""
    if hours > MAX_HOURS:
        raise ValidationError("Cannot log more than 24 hours at once", "timer")


def validate_manual_entry(
    project: Optional[str], hours: Any, minutes: Any, rate: Any
) -> None:
    """Validate a manual entry or an edit-save.

    Rules run in order: project, hours, minutes, rate, then non-zero duration.

    Raises:
        ValidationError: On the first violated rule
    """
    validate_project(project, "manual")
    validate_hours(hours, "manual")
    validate_minutes(minutes, "manual")
    validate_rate(rate, "manual")
    if hours == 0 and minutes == 0:
        raise ValidationError("Duration must be greater than zero", "manual")


def validate_settings(monthly_target_amount: Any, target_rate: Any) -> None:
    """Validate the monthly target settings."""
    if not is_number(monthly_target_amount) or monthly_target_amount < 0:
        raise ValidationError("Monthly target must be zero or greater", "settings")
    if not rate_in_range(target_rate):
        raise ValidationError(
            f"Target rate must be between {Money(MIN_RATE)} and {Money(MAX_RATE)}",
            "settings",
        )
