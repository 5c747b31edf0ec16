"""Tests for the entry store and id factory."""

import pytest  # type: ignore[import-not-found]

from billable_hours.core.models import TimeEntry
from billable_hours.core.store import EntryIdFactory, EntryStore


def make_entry(entry_id: str, project: str = "Acme", hours: int = 1) -> TimeEntry:
    return TimeEntry(id=entry_id, project_name=project, hours=hours, minutes=0, rate=40)


class TestEntryIdFactory:
    """Test id generation."""

    def test_ids_are_millisecond_timestamps(self) -> None:
        factory = EntryIdFactory(clock=lambda: 1760881234.567)
        assert factory() == "1760881234567"

    def test_same_millisecond_never_repeats(self) -> None:
        """Ids keep increasing even when the clock does not move."""
        factory = EntryIdFactory(clock=lambda: 1000.0)

        ids = [factory() for _ in range(3)]

        assert ids == ["1000000", "1000001", "1000002"]

    def test_imported_ids(self) -> None:
        factory = EntryIdFactory(clock=lambda: 1000.0)

        assert factory.imported(0) == "imported-1000000-0"
        assert factory.imported(1) == "imported-1000001-1"


class TestEntryStore:
    """Test EntryStore operations."""

    def test_add_prepends(self) -> None:
        """New entries go to the front."""
        store = EntryStore()
        store.add(make_entry("1"))
        store.add(make_entry("2"))

        assert store.ids() == ["2", "1"]
        assert len(store) == 2
        assert "1" in store

    def test_duplicate_id_rejected(self) -> None:
        store = EntryStore([make_entry("1")])

        with pytest.raises(ValueError, match="Duplicate entry id"):
            store.add(make_entry("1"))
        with pytest.raises(ValueError, match="Duplicate entry id"):
            store.prepend_many([make_entry("1")])
        assert len(store) == 1

    def test_update_keeps_id_and_date(self) -> None:
        entry = make_entry("1")
        store = EntryStore([entry])
        original_date = entry.date

        updated = store.update("1", "Globex", 3, 15, 60)

        assert updated.id == "1"
        assert updated.date == original_date
        assert (updated.project_name, updated.hours, updated.minutes, updated.rate) == (
            "Globex",
            3,
            15,
            60,
        )

    def test_update_missing(self) -> None:
        with pytest.raises(ValueError, match="Entry not found: nope"):
            EntryStore().update("nope", "Acme", 1, 0, 40)

    def test_delete(self) -> None:
        store = EntryStore([make_entry("1"), make_entry("2")])

        assert store.delete("1") is True
        assert store.delete("1") is False
        assert store.ids() == ["2"]

    def test_delete_many(self) -> None:
        store = EntryStore([make_entry("1"), make_entry("2"), make_entry("3")])

        assert store.delete_many(["1", "3", "missing"]) == 2
        assert store.ids() == ["2"]

    def test_prepend_many_keeps_order(self) -> None:
        store = EntryStore([make_entry("old")])

        store.prepend_many([make_entry("a"), make_entry("b")])

        assert store.ids() == ["a", "b", "old"]

    def test_iteration_is_a_snapshot(self) -> None:
        """Deleting while iterating does not skip entries."""
        store = EntryStore([make_entry("1"), make_entry("2")])

        for entry in store:
            store.delete(entry.id)

        assert len(store) == 0

    def test_clear(self) -> None:
        store = EntryStore([make_entry("1"), make_entry("2")])
        assert store.clear() == 2
        assert store.entries == []
