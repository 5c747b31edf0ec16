"""In-memory ordered collection of time entries."""

import logging
import time
from collections.abc import Iterable, Iterator
from typing import Callable, Optional, Union

from billable_hours.core.models import TimeEntry

logger = logging.getLogger(__name__)

Number = Union[int, float]


class EntryIdFactory:
    """Produce millisecond-timestamp ids that never repeat.

    Two calls inside the same millisecond still get distinct ids because the
    counter always moves past the last id handed out.
    """

    def __init__(self, clock: Optional[Callable[[], float]] = None):
        self._clock = clock or time.time
        self._last = 0

    def _next_millis(self) -> int:
        millis = int(self._clock() * 1000)
        if millis <= self._last:
            millis = self._last + 1
        self._last = millis
        return millis

    def __call__(self) -> str:
        return str(self._next_millis())

    def imported(self, index: int) -> str:
        """Id for the ``index``-th row of a CSV import."""
        return f"imported-{self._next_millis()}-{index}"


class EntryStore:
    """Ordered list of entries, newest first."""

    def __init__(self, entries: Optional[Iterable[TimeEntry]] = None):
        self._entries: list[TimeEntry] = []
        if entries:
            self.replace_all(entries)

    def __iter__(self) -> Iterator[TimeEntry]:
        return iter(list(self._entries))

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, entry_id: object) -> bool:
        return any(e.id == entry_id for e in self._entries)

    @property
    def entries(self) -> list[TimeEntry]:
        """Copy of the entries in store order."""
        return list(self._entries)

    def ids(self) -> list[str]:
        return [e.id for e in self._entries]

    def get(self, entry_id: str) -> Optional[TimeEntry]:
        for entry in self._entries:
            if entry.id == entry_id:
                return entry
        return None

    def add(self, entry: TimeEntry) -> TimeEntry:
        """Prepend a new entry.

        Raises:
            ValueError: If an entry with the same id already exists
        """
        if entry.id in self:
            raise ValueError(f"Duplicate entry id: {entry.id}")
        self._entries.insert(0, entry)
        logger.debug(f"Added entry {entry.id} ({entry.project_name})")
        return entry

    def prepend_many(self, entries: Iterable[TimeEntry]) -> None:
        """Place entries ahead of the existing ones, keeping their order."""
        new_entries = list(entries)
        self._check_unique(new_entries + self._entries)
        self._entries = new_entries + self._entries

    def replace_all(self, entries: Iterable[TimeEntry]) -> None:
        new_entries = list(entries)
        self._check_unique(new_entries)
        self._entries = new_entries

    def update(
        self,
        entry_id: str,
        project_name: str,
        hours: int,
        minutes: int,
        rate: Number,
    ) -> TimeEntry:
        """Replace the editable fields of an entry; id and date are kept.

        Raises:
            ValueError: If entry not found
        """
        entry = self.get(entry_id)
        if entry is None:
            raise ValueError(f"Entry not found: {entry_id}")

        entry.project_name = project_name
        entry.hours = hours
        entry.minutes = minutes
        entry.rate = rate
        return entry

    def delete(self, entry_id: str) -> bool:
        """Delete an entry by ID.

        Returns:
            True if deleted, False if not found
        """
        remaining = [e for e in self._entries if e.id != entry_id]
        if len(remaining) == len(self._entries):
            return False
        self._entries = remaining
        return True

    def delete_many(self, entry_ids: Iterable[str]) -> int:
        """Delete every entry whose id is in ``entry_ids``.

        Returns:
            Number of entries removed
        """
        doomed = set(entry_ids)
        remaining = [e for e in self._entries if e.id not in doomed]
        removed = len(self._entries) - len(remaining)
        self._entries = remaining
        return removed

    def clear(self) -> int:
        removed = len(self._entries)
        self._entries = []
        return removed

    @staticmethod
    def _check_unique(entries: list[TimeEntry]) -> None:
        seen: set[str] = set()
        for entry in entries:
            if entry.id in seen:
                raise ValueError(f"Duplicate entry id: {entry.id}")
            seen.add(entry.id)
