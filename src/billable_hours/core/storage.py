"""Key-value persistence with atomic file writes.

State lives under three independent keys: entries, settings and the running
timer. Loaders never raise on corrupt data; they log the failure and fall back
to empty or default state.
"""

import json
import logging
import os
import shutil
import sys
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

from billable_hours.core.errors import PersistenceReadError, ValidationError
from billable_hours.core.models import RunningTimer, Settings, TimeEntry
from billable_hours.core.validation import is_number, validate_settings

logger = logging.getLogger(__name__)

ENTRIES_KEY = "timeEntries"
SETTINGS_KEY = "timeSettings"
RUNNING_TIMER_KEY = "runningTimer"


def _lock_file(file_obj: Any, exclusive: bool = True) -> None:
    """Lock a file in a cross-platform way.

    Args:
        file_obj: File object to lock
        exclusive: If True, acquire exclusive lock; if False, acquire shared lock
    """
    if sys.platform == "win32":
        import msvcrt  # type: ignore[import-not-found]

        mode = msvcrt.LK_NBLCK if exclusive else msvcrt.LK_NBRLCK
        msvcrt.locking(file_obj.fileno(), mode, 1)
    else:
        import fcntl  # type: ignore[import-not-found]

        mode = fcntl.LOCK_EX if exclusive else fcntl.LOCK_SH
        fcntl.flock(file_obj.fileno(), mode)


def _unlock_file(file_obj: Any) -> None:
    """Unlock a file in a cross-platform way."""
    if sys.platform == "win32":
        import msvcrt  # type: ignore[import-not-found]

        msvcrt.locking(file_obj.fileno(), msvcrt.LK_UNLCK, 1)
    else:
        import fcntl  # type: ignore[import-not-found]

        fcntl.flock(file_obj.fileno(), fcntl.LOCK_UN)


class KeyValueStore(ABC):
    """String key-value store the application persists into."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Return the stored value or None if the key is absent."""

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``."""

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove ``key``. Missing keys are ignored."""


class MemoryStore(KeyValueStore):
    """Dictionary-backed store."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self.data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value

    def delete(self, key: str) -> None:
        self.data.pop(key, None)


class JSONFileStore(KeyValueStore):
    """One JSON file per key inside a data directory."""

    def __init__(self, data_dir: Optional[Path] = None):
        """Initialize file store.

        Args:
            data_dir: Custom data directory. Defaults to ~/.billable-hours/data
        """
        if data_dir is None:
            data_dir = Path.home() / ".billable-hours" / "data"

        self.data_dir = Path(data_dir)
        self.backup_dir = self.data_dir.parent / "backups"
        self.data_dir.mkdir(parents=True, exist_ok=True)

    def path_for(self, key: str) -> Path:
        return self.data_dir / f"{key}.json"

    def get(self, key: str) -> Optional[str]:
        file_path = self.path_for(key)
        if not file_path.exists():
            return None

        with open(file_path, encoding="utf-8") as f:
            _lock_file(f, exclusive=False)
            try:
                return f.read()
            finally:
                _unlock_file(f)

    def set(self, key: str, value: str) -> None:
        """Write atomically using a temporary file and rename."""
        file_path = self.path_for(key)
        temp_file = file_path.with_suffix(".tmp")

        try:
            with open(temp_file, "w", encoding="utf-8") as f:
                _lock_file(f, exclusive=True)
                f.write(value)
                f.flush()
                os.fsync(f.fileno())
                _unlock_file(f)

            temp_file.replace(file_path)

        except Exception:
            if temp_file.exists():
                temp_file.unlink()
            raise

    def delete(self, key: str) -> None:
        file_path = self.path_for(key)
        if file_path.exists():
            file_path.unlink()

    def backup(self, label: Optional[str] = None) -> Path:
        """Copy every stored key file into a backup directory.

        Args:
            label: Optional label for backup. Defaults to timestamp

        Returns:
            Path to backup directory
        """
        if label is None:
            label = datetime.now().strftime("%Y%m%d_%H%M%S")

        backup_path = self.backup_dir / label
        backup_path.mkdir(parents=True, exist_ok=True)

        for key in (ENTRIES_KEY, SETTINGS_KEY, RUNNING_TIMER_KEY):
            file_path = self.path_for(key)
            if file_path.exists():
                shutil.copy2(file_path, backup_path / file_path.name)

        logger.info(f"Backup written to {backup_path}")
        return backup_path


def _read_json(store: KeyValueStore, key: str) -> Any:
    """Decode the JSON stored under ``key``.

    Returns:
        Decoded value, or None if the key is absent

    Raises:
        PersistenceReadError: If the stored text is not valid JSON
    """
    raw = store.get(key)
    if raw is None:
        return None
    try:
        return json.loads(raw)
    except json.JSONDecodeError as e:
        raise PersistenceReadError(key, str(e)) from e


def load_entries(store: KeyValueStore) -> list[TimeEntry]:
    """Load entries in stored order; corrupt data yields an empty list."""
    try:
        data = _read_json(store, ENTRIES_KEY)
        if data is None:
            return []
        if not isinstance(data, list):
            raise PersistenceReadError(ENTRIES_KEY, "expected a list of entries")
        try:
            entries = [TimeEntry.from_dict(item) for item in data]
        except (KeyError, TypeError, ValueError) as e:
            raise PersistenceReadError(ENTRIES_KEY, str(e)) from e
        for entry in entries:
            if not isinstance(entry.project_name, str) or not is_number(entry.rate):
                raise PersistenceReadError(ENTRIES_KEY, f"entry {entry.id} has invalid fields")
        return entries
    except PersistenceReadError as e:
        logger.error(f"Failed to parse stored entries: {e}")
        return []


def save_entries(store: KeyValueStore, entries: list[TimeEntry]) -> None:
    store.set(ENTRIES_KEY, json.dumps([e.to_dict() for e in entries], ensure_ascii=False))


def load_settings(store: KeyValueStore, default: Optional[Settings] = None) -> Settings:
    """Load settings; missing or corrupt data yields ``default``.

    Args:
        store: Key-value store to read from
        default: Settings used when nothing valid is stored (built-in
            defaults if None)
    """
    default = default or Settings()
    try:
        data = _read_json(store, SETTINGS_KEY)
        if data is None:
            return default
        if not isinstance(data, dict):
            raise PersistenceReadError(SETTINGS_KEY, "expected an object")
        settings = Settings.from_dict(data)
        try:
            validate_settings(settings.monthly_target_amount, settings.target_rate)
        except ValidationError as e:
            raise PersistenceReadError(SETTINGS_KEY, str(e)) from e
        return settings
    except PersistenceReadError as e:
        logger.error(f"Failed to parse stored settings: {e}")
        return default


def save_settings(store: KeyValueStore, settings: Settings) -> None:
    store.set(SETTINGS_KEY, json.dumps(settings.to_dict()))


def load_running_timer(store: KeyValueStore) -> Optional[RunningTimer]:
    """Load the running timer record; corrupt data means no timer."""
    try:
        data = _read_json(store, RUNNING_TIMER_KEY)
        if data is None:
            return None
        try:
            return RunningTimer.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            raise PersistenceReadError(RUNNING_TIMER_KEY, str(e)) from e
    except PersistenceReadError as e:
        logger.error(f"Failed to restore running timer: {e}")
        return None


def save_running_timer(store: KeyValueStore, record: Optional[RunningTimer]) -> None:
    """Persist the timer record, or remove it when ``record`` is None."""
    if record is None:
        clear_running_timer(store)
    else:
        store.set(RUNNING_TIMER_KEY, json.dumps(record.to_dict()))


def clear_running_timer(store: KeyValueStore) -> None:
    store.delete(RUNNING_TIMER_KEY)
