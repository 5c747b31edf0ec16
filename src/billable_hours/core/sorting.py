"""Display ordering and bulk selection for the entry table."""

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable

from billable_hours.core.models import TimeEntry


class SortField(Enum):
    DATE = "date"
    PROJECT_NAME = "project"
    HOURS = "hours"
    RATE = "rate"


class SortDirection(Enum):
    ASC = "asc"
    DESC = "desc"


_SORT_KEYS: dict[SortField, Callable[[TimeEntry], Any]] = {
    SortField.DATE: lambda e: e.date,
    SortField.PROJECT_NAME: lambda e: e.project_name.casefold(),
    SortField.HOURS: lambda e: e.hours,
    SortField.RATE: lambda e: e.rate,
}


@dataclass(frozen=True)
class SortState:
    """Current sort column and direction (newest first by default)."""

    field: SortField = SortField.DATE
    direction: SortDirection = SortDirection.DESC

    def toggle(self, field: SortField) -> "SortState":
        """Sort state after clicking ``field``.

        Clicking the current field while ascending flips to descending;
        every other click sorts ascending.
        """
        if field is self.field and self.direction is SortDirection.ASC:
            return SortState(field, SortDirection.DESC)
        return SortState(field, SortDirection.ASC)

    @property
    def arrow(self) -> str:
        return "↑" if self.direction is SortDirection.ASC else "↓"


def sort_entries(entries: Iterable[TimeEntry], state: SortState) -> list[TimeEntry]:
    """Return a sorted copy of ``entries``; ties keep their store order."""
    return sorted(
        entries,
        key=_SORT_KEYS[state.field],
        reverse=state.direction is SortDirection.DESC,
    )


class Selection:
    """Checked entry ids plus the "select all" parity flag.

    The flag only flips on ``toggle_all``; unchecking single entries after
    selecting all leaves it set.
    """

    def __init__(self) -> None:
        self._ids: list[str] = []
        self.all_selected = False

    def __contains__(self, entry_id: object) -> bool:
        return entry_id in self._ids

    def __len__(self) -> int:
        return len(self._ids)

    @property
    def ids(self) -> list[str]:
        return list(self._ids)

    def toggle(self, entry_id: str) -> bool:
        """Flip membership of one id.

        Returns:
            True if the id is now selected
        """
        if entry_id in self._ids:
            self._ids.remove(entry_id)
            return False
        self._ids.append(entry_id)
        return True

    def toggle_all(self, entry_ids: Iterable[str]) -> None:
        """Select every id, or none if "select all" is already on."""
        if self.all_selected:
            self._ids = []
        else:
            self._ids = list(entry_ids)
        self.all_selected = not self.all_selected

    def discard(self, entry_id: str) -> None:
        if entry_id in self._ids:
            self._ids.remove(entry_id)

    def clear(self) -> None:
        self._ids = []
        self.all_selected = False
