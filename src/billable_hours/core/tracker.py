"""Application controller owning entries, settings, timer and view state."""

import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Optional, Union

from billable_hours.core.errors import BillableHoursError, ValidationError
from billable_hours.core.models import DEFAULT_RATE, Settings, TimeEntry
from billable_hours.core.sorting import Selection, SortField, SortState, sort_entries
from billable_hours.core.stats import Stats, calculate_stats
from billable_hours.core.storage import (
    JSONFileStore,
    KeyValueStore,
    load_entries,
    load_running_timer,
    load_settings,
    save_entries,
    save_running_timer,
    save_settings,
)
from billable_hours.core.store import EntryIdFactory, EntryStore
from billable_hours.core.timer import Ticker, TimerEngine
from billable_hours.core.validation import validate_manual_entry, validate_settings
from billable_hours.export_import.csv_format import CSVExporter, CSVImporter, export_path

logger = logging.getLogger(__name__)

Number = Union[int, float]


@dataclass
class EntryDraft:
    """Form values for a manual entry or an entry being edited."""

    project_name: str = ""
    hours: int = 0
    minutes: int = 0
    rate: Number = DEFAULT_RATE


class TimeTracker:
    """Core time tracking functionality.

    State is loaded from the key-value store at construction and written back
    after every change, before any derived view is computed.
    """

    def __init__(
        self,
        storage: Optional[KeyValueStore] = None,
        ticker: Optional[Ticker] = None,
        clock: Optional[Callable[[], datetime]] = None,
        csv_date_format: Optional[str] = None,
        default_settings: Optional[Settings] = None,
    ):
        """Initialize time tracker.

        Args:
            storage: Key-value store. Creates default file store if None
            ticker: Tick source for the timer
            clock: Returns the current instant. Defaults to datetime.now
            csv_date_format: strftime format of the CSV Date column
            default_settings: Settings used until some are saved
        """
        self.storage = storage if storage is not None else JSONFileStore()
        self.clock = clock or datetime.now
        self.csv_date_format = csv_date_format
        self.default_settings = default_settings or Settings()
        self.id_factory = EntryIdFactory()
        self.timer = TimerEngine(ticker=ticker, clock=self.clock, id_factory=self.id_factory)
        self.store = EntryStore()
        self.settings = self.default_settings
        self.sort_state = SortState()
        self.selection = Selection()
        self.editing_id: Optional[str] = None
        self.last_errors: dict[str, str] = {}

        self.load()

    # Persistence

    def load(self) -> None:
        """Restore entries, settings and any running timer."""
        try:
            self.store.replace_all(load_entries(self.storage))
        except ValueError as e:
            logger.error(f"Failed to load stored entries: {e}")
            self.store.clear()
        self.settings = load_settings(self.storage, self.default_settings)

        record = load_running_timer(self.storage)
        if record is not None:
            try:
                self.timer.recover(record, self.clock())
            except ValidationError as e:
                logger.error(f"Failed to restore running timer: {e}")
                self.timer.reset()
                save_running_timer(self.storage, None)

    def _save_entries(self) -> None:
        save_entries(self.storage, self.store.entries)

    def _save_timer(self) -> None:
        save_running_timer(self.storage, self.timer.to_record())

    def _run(self, context: str, operation: Callable[[], Any]) -> Any:
        """Run an operation, remembering its error message for ``context``."""
        try:
            result = operation()
        except (BillableHoursError, ValueError, OSError) as e:
            self.last_errors[context] = str(e)
            raise
        self.last_errors.pop(context, None)
        return result

    # Timer

    def start_timer(self, project: str, rate: Number) -> None:
        """Start the timer.

        Raises:
            ValidationError: If project or rate is invalid or a timer exists
        """

        def start() -> None:
            if self.timer.is_running:
                raise ValidationError(
                    f"Timer already running: {self.timer.project}. Stop it first.", "timer"
                )
            self.timer.start(project, rate)
            self._save_timer()
            logger.info(f"Timer started for {project}")

        self._run("timer", start)

    def pause_timer(self) -> None:
        def pause() -> None:
            self.timer.pause()
            self._save_timer()

        self._run("timer", pause)

    def resume_timer(self) -> None:
        def resume() -> None:
            self.timer.resume()
            self._save_timer()

        self._run("timer", resume)

    def stop_timer(self) -> Optional[TimeEntry]:
        """Stop the timer and store the resulting entry.

        Returns:
            New entry, or None if under a minute was tracked

        Raises:
            ValueError: If no timer is running
            ValidationError: If more than 24 hours were tracked
        """

        def stop() -> Optional[TimeEntry]:
            try:
                entry = self.timer.stop()
            except ValidationError:
                self._save_timer()
                raise
            if entry is not None:
                self.store.add(entry)
                self._save_entries()
            self._save_timer()
            return entry

        return self._run("timer", stop)

    def cancel_timer(self) -> bool:
        """Discard the running timer without creating an entry.

        Returns:
            True if a timer was discarded
        """
        if not self.timer.is_running:
            return False
        self.timer.reset()
        self._save_timer()
        return True

    # Entries

    def add_manual_entry(
        self,
        project: str,
        hours: int,
        minutes: int,
        rate: Number,
        notes: Optional[str] = None,
    ) -> TimeEntry:
        """Add a manually logged entry.

        Raises:
            ValidationError: On the first violated rule
        """

        def add() -> TimeEntry:
            validate_manual_entry(project, hours, minutes, rate)
            entry = TimeEntry(
                id=self.id_factory(),
                project_name=project,
                hours=int(hours),
                minutes=int(minutes),
                rate=rate,
                date=self.clock(),
                notes=notes,
            )
            self.store.add(entry)
            self._save_entries()
            logger.info(f"Added manual entry {entry.id}: {project} {hours}h {minutes}m")
            return entry

        return self._run("manual", add)

    def get_entry(self, entry_id: str) -> Optional[TimeEntry]:
        return self.store.get(entry_id)

    def start_editing(self, entry_id: str) -> EntryDraft:
        """Begin editing an entry.

        Returns:
            Draft pre-filled with the entry's values

        Raises:
            ValueError: If entry not found
        """
        entry = self.store.get(entry_id)
        if entry is None:
            raise ValueError(f"Entry not found: {entry_id}")
        self.last_errors.clear()
        self.editing_id = entry_id
        return EntryDraft(entry.project_name, entry.hours, entry.minutes, entry.rate)

    def save_edit(self, project: str, hours: int, minutes: int, rate: Number) -> TimeEntry:
        """Save the entry being edited; id and date are kept.

        Raises:
            ValueError: If no entry is being edited
            ValidationError: On the first violated rule (editing continues)
        """

        def save() -> TimeEntry:
            if self.editing_id is None:
                raise ValueError("No entry is being edited")
            validate_manual_entry(project, hours, minutes, rate)
            entry = self.store.update(self.editing_id, project, int(hours), int(minutes), rate)
            self._save_entries()
            logger.info(f"Edited entry {entry.id}")
            self.cancel_edit()
            return entry

        return self._run("manual", save)

    def cancel_edit(self) -> EntryDraft:
        """Leave edit mode and return a blank draft."""
        self.editing_id = None
        self.last_errors.clear()
        return EntryDraft()

    def edit_entry(
        self,
        entry_id: str,
        project: Optional[str] = None,
        hours: Optional[int] = None,
        minutes: Optional[int] = None,
        rate: Optional[Number] = None,
    ) -> TimeEntry:
        """Edit in one step; fields left as None keep their current value."""
        draft = self.start_editing(entry_id)
        try:
            return self.save_edit(
                project if project is not None else draft.project_name,
                hours if hours is not None else draft.hours,
                minutes if minutes is not None else draft.minutes,
                rate if rate is not None else draft.rate,
            )
        except ValueError:
            self.editing_id = None
            raise

    def delete_entry(self, entry_id: str) -> bool:
        """Delete an entry by ID.

        Returns:
            True if deleted, False if not found
        """
        if not self.store.delete(entry_id):
            return False
        self.selection.discard(entry_id)
        if self.editing_id == entry_id:
            self.cancel_edit()
        self._save_entries()
        logger.info(f"Deleted entry {entry_id}")
        return True

    def delete_selected(self) -> int:
        """Delete every selected entry and clear the selection.

        Returns:
            Number of entries removed
        """
        removed = self.store.delete_many(self.selection.ids)
        self.selection.clear()
        if self.editing_id is not None and self.editing_id not in self.store:
            self.cancel_edit()
        self._save_entries()
        logger.info(f"Deleted {removed} selected entries")
        return removed

    def clear_all(self) -> int:
        """Delete all entries.

        Returns:
            Number of entries removed
        """
        removed = self.store.clear()
        self.selection.clear()
        self.cancel_edit()
        self._save_entries()
        logger.info(f"Cleared {removed} entries")
        return removed

    # View

    def sort_by(self, field: SortField) -> SortState:
        self.sort_state = self.sort_state.toggle(field)
        return self.sort_state

    def sorted_entries(self) -> list[TimeEntry]:
        return sort_entries(self.store, self.sort_state)

    def toggle_select(self, entry_id: str) -> bool:
        """Flip selection of one entry.

        Raises:
            ValueError: If entry not found
        """
        if entry_id not in self.store:
            raise ValueError(f"Entry not found: {entry_id}")
        return self.selection.toggle(entry_id)

    def toggle_select_all(self) -> None:
        self.selection.toggle_all(self.store.ids())

    # CSV

    def export_csv(self, path: Optional[Path] = None) -> Path:
        """Write all entries, in store order, to a CSV file.

        Returns:
            Path written
        """
        output = Path(path) if path is not None else export_path(today=self.clock().date())
        CSVExporter(output).export_entries(self.store.entries, date_format=self.csv_date_format)
        return output

    def export_and_clear(self, path: Optional[Path] = None) -> Path:
        """Export every entry, then clear the store."""
        output = self.export_csv(path)
        self.clear_all()
        return output

    def import_csv(self, path: Path, wipe_existing: bool = False) -> list[TimeEntry]:
        """Import entries from a CSV file.

        The file is parsed completely before the store is touched, so a bad
        row leaves the store exactly as it was.

        Args:
            path: CSV file
            wipe_existing: Replace the store instead of prepending

        Returns:
            Imported entries

        Raises:
            FileNotFoundError: If the file doesn't exist
            CSVImportError: If any row is invalid
        """

        def do_import() -> list[TimeEntry]:
            importer = CSVImporter(Path(path))
            imported = importer.import_entries(
                id_factory=self.id_factory, date_format=self.csv_date_format
            )
            if wipe_existing:
                self.store.replace_all(imported)
                self.selection.clear()
                self.cancel_edit()
            else:
                self.store.prepend_many(imported)
            self._save_entries()
            logger.info(
                f"Imported {len(imported)} entries from {path}"
                f"{' (replaced existing)' if wipe_existing else ''}"
            )
            return imported

        return self._run("import", do_import)

    # Settings and statistics

    def update_settings(
        self,
        monthly_target_amount: Optional[Number] = None,
        target_rate: Optional[Number] = None,
    ) -> Settings:
        """Change the monthly target and/or target rate (half-units).

        Raises:
            ValidationError: If a value is out of range
        """

        def update() -> Settings:
            amount = (
                monthly_target_amount
                if monthly_target_amount is not None
                else self.settings.monthly_target_amount
            )
            rate = target_rate if target_rate is not None else self.settings.target_rate
            validate_settings(amount, rate)
            self.settings = Settings(monthly_target_amount=amount, target_rate=rate)
            save_settings(self.storage, self.settings)
            return self.settings

        return self._run("settings", update)

    def stats(self) -> Stats:
        return calculate_stats(self.store, self.settings)
