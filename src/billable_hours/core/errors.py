"""Exception types raised by the core package."""

from typing import Optional


class BillableHoursError(Exception):
    """Base class for all application errors."""


class ValidationError(BillableHoursError, ValueError):
    """A project, rate, hours, minutes or duration constraint was violated.

    Attributes:
        context: Form the error belongs to ("timer", "manual", "settings")
    """

    def __init__(self, message: str, context: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.context = context


class CSVImportError(BillableHoursError, ValueError):
    """A CSV row could not be imported; the whole import is aborted.

    Attributes:
        line_number: 1-based line of the offending row in the source file
    """

    def __init__(self, message: str, line_number: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.line_number = line_number


class PersistenceReadError(BillableHoursError):
    """Stored state could not be decoded."""

    def __init__(self, key: str, reason: str):
        super().__init__(f"Failed to read stored '{key}': {reason}")
        self.key = key
        self.reason = reason
