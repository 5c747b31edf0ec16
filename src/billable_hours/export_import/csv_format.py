"""CSV export and import of time entries.

Layout::

    Project Name,Hours,Minutes,Rate,Date
    "Acme West",2,30,40,"10/19/2026, 03:04:05 PM"

The project name and date are always quoted, numbers never are, and a
quote inside a quoted field is doubled. Rows are joined with ``\\n`` and the
file has no trailing newline. Quoted fields may not span lines.
"""

import logging
import math
import re
from collections.abc import Iterable
from datetime import date, datetime
from enum import Enum
from pathlib import Path
from typing import Any, Optional, Union

from billable_hours.core.errors import CSVImportError
from billable_hours.core.models import TimeEntry, parse_iso_datetime
from billable_hours.core.store import EntryIdFactory
from billable_hours.core.validation import (
    MAX_HOURS,
    MAX_MINUTES,
    MAX_PROJECT_LENGTH,
    rate_error_message,
    rate_in_range,
)
from billable_hours.export_import.base import Exporter, Importer

logger = logging.getLogger(__name__)

CSV_HEADERS = ["Project Name", "Hours", "Minutes", "Rate", "Date"]
DEFAULT_DATE_FORMAT = "%m/%d/%Y, %I:%M:%S %p"

FALLBACK_DATE_FORMATS = [
    "%m/%d/%Y, %I:%M:%S %p",
    "%m/%d/%Y %I:%M:%S %p",
    "%m/%d/%Y, %H:%M:%S",
    "%m/%d/%Y %H:%M:%S",
    "%m/%d/%Y",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M",
    "%d.%m.%Y, %H:%M:%S",
    "%d.%m.%Y %H:%M:%S",
]

_INTEGER = re.compile(r"[+-]?\d+")

Number = Union[int, float]


def default_filename(today: Optional[date] = None) -> str:
    """``time-entries-YYYY-MM-DD.csv`` for the given (or current) date."""
    today = today or date.today()
    return f"time-entries-{today.isoformat()}.csv"


def quote_field(text: str) -> str:
    return '"' + text.replace('"', '""') + '"'


def format_number(value: Number) -> str:
    """Render a number the way it was typed: ``40`` not ``40.0``."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def entries_to_csv(entries: Iterable[TimeEntry], date_format: str = DEFAULT_DATE_FORMAT) -> str:
    """Serialize entries in the given order."""
    rows = [",".join(CSV_HEADERS)]
    for entry in entries:
        rows.append(
            ",".join(
                [
                    quote_field(entry.project_name),
                    str(entry.hours),
                    str(entry.minutes),
                    format_number(entry.rate),
                    quote_field(entry.date.strftime(date_format)),
                ]
            )
        )
    return "\n".join(rows)


class _State(Enum):
    FIELD_START = 1
    UNQUOTED = 2
    QUOTED = 3
    QUOTE_IN_QUOTED = 4


def tokenize_line(line: str, line_number: int) -> list[str]:
    """Split one CSV line into fields.

    A field is either a double-quoted run (``""`` inside it is a literal
    quote) or a run of characters up to the next comma. Whitespace between
    a closing quote and the next comma is ignored. A trailing comma yields a
    final empty field.

    Raises:
        CSVImportError: If a quoted field is not closed on this line
    """
    fields: list[str] = []
    current: list[str] = []
    state = _State.FIELD_START

    for char in line:
        if state is _State.FIELD_START:
            if char == '"':
                state = _State.QUOTED
            elif char == ",":
                fields.append("")
            else:
                current.append(char)
                state = _State.UNQUOTED
        elif state is _State.UNQUOTED:
            if char == ",":
                fields.append("".join(current))
                current = []
                state = _State.FIELD_START
            else:
                current.append(char)
        elif state is _State.QUOTED:
            if char == '"':
                state = _State.QUOTE_IN_QUOTED
            else:
                current.append(char)
        else:
            if char == '"':
                current.append('"')
                state = _State.QUOTED
            elif char == ",":
                fields.append("".join(current))
                current = []
                state = _State.FIELD_START
            elif not char.isspace():
                current.append(char)

    if state is _State.QUOTED:
        raise CSVImportError(f"Unterminated quoted field at line {line_number}", line_number)

    if state is not _State.FIELD_START or line.endswith(","):
        fields.append("".join(current))

    return fields


def _parse_int(text: str, low: int, high: int) -> Optional[int]:
    text = text.strip()
    if not _INTEGER.fullmatch(text):
        return None
    value = int(text)
    return value if low <= value <= high else None


def _parse_rate(text: str) -> Optional[Number]:
    text = text.strip()
    try:
        value: Number = int(text) if _INTEGER.fullmatch(text) else float(text)
    except ValueError:
        return None
    if isinstance(value, float) and not math.isfinite(value):
        return None
    return value if rate_in_range(value) else None


def parse_date(text: str, date_format: Optional[str] = None) -> Optional[datetime]:
    """Parse an exported date, trying the export format first.

    Returns:
        Parsed datetime or None if no known format matches
    """
    text = text.strip()
    formats = [date_format] if date_format else []
    formats.extend(f for f in FALLBACK_DATE_FORMATS if f != date_format)

    for fmt in formats:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue

    try:
        return parse_iso_datetime(text)
    except ValueError:
        return None


def parse_csv(
    text: str,
    id_factory: Optional[EntryIdFactory] = None,
    date_format: Optional[str] = None,
) -> list[TimeEntry]:
    """Parse CSV text into new entries.

    The first line is the header and is skipped, as are blank lines. Every
    row must be valid; the first bad row aborts the whole parse.

    Args:
        text: File contents
        id_factory: Source of ids for the new entries
        date_format: Format the dates were exported with

    Returns:
        Entries in file order

    Raises:
        CSVImportError: With the 1-based line number of the first bad row
    """
    id_factory = id_factory or EntryIdFactory()
    entries: list[TimeEntry] = []

    lines = text.split("\n")
    for line_number, raw_line in enumerate(lines[1:], start=2):
        line = raw_line.rstrip("\r")
        if line.strip() == "":
            continue

        fields = tokenize_line(line, line_number)
        if len(fields) < len(CSV_HEADERS):
            raise CSVImportError(f"Invalid CSV format at line {line_number}", line_number)

        project_name, hours_text, minutes_text, rate_text, date_text = fields[:5]

        if project_name.strip() == "" or len(project_name) > MAX_PROJECT_LENGTH:
            raise CSVImportError(f"Invalid project name at line {line_number}", line_number)

        hours = _parse_int(hours_text, 0, MAX_HOURS)
        if hours is None:
            raise CSVImportError(
                f"Invalid hours at line {line_number}: must be between 0 and {MAX_HOURS}",
                line_number,
            )

        minutes = _parse_int(minutes_text, 0, MAX_MINUTES)
        if minutes is None:
            raise CSVImportError(
                f"Invalid minutes at line {line_number}: must be between 0 and {MAX_MINUTES}",
                line_number,
            )

        rate = _parse_rate(rate_text)
        if rate is None:
            raise CSVImportError(
                f"Invalid rate at line {line_number}: {rate_error_message().lower()}",
                line_number,
            )

        if hours == 0 and minutes == 0:
            raise CSVImportError(
                f"Invalid duration at line {line_number}: must be greater than zero",
                line_number,
            )

        parsed_date = parse_date(date_text, date_format)
        if parsed_date is None:
            raise CSVImportError(f"Invalid date at line {line_number}", line_number)

        entries.append(
            TimeEntry(
                id=id_factory.imported(len(entries)),
                project_name=project_name,
                hours=hours,
                minutes=minutes,
                rate=rate,
                date=parsed_date,
            )
        )

    logger.debug(f"Parsed {len(entries)} entries from CSV")
    return entries


class CSVExporter(Exporter):
    """Export time entries to CSV."""

    def get_file_extension(self) -> str:
        return ".csv"

    def export_entries(self, entries: list[TimeEntry], **kwargs: Any) -> None:
        """Write entries to the output file.

        Args:
            entries: Entries in store order
            **kwargs: Additional options
                - date_format (str): strftime format for the Date column
        """
        self.write_text(entries_to_csv(entries, kwargs.get("date_format") or DEFAULT_DATE_FORMAT))
        logger.info(f"Exported {len(entries)} entries to {self.output_path}")


class CSVImporter(Importer):
    """Import time entries from CSV."""

    def get_file_extension(self) -> str:
        return ".csv"

    def import_entries(self, **kwargs: Any) -> list[TimeEntry]:
        """Read and parse the input file.

        Args:
            **kwargs: Additional options
                - id_factory (EntryIdFactory): Source of ids for new entries
                - date_format (str): Format the dates were exported with

        Raises:
            FileNotFoundError: If input file doesn't exist
            CSVImportError: If any row is invalid
        """
        text = self.read_text()
        return parse_csv(text, kwargs.get("id_factory"), kwargs.get("date_format"))


def export_path(directory: Optional[Path] = None, today: Optional[date] = None) -> Path:
    """Default export location inside ``directory`` (current dir if None)."""
    return Path(directory or Path.cwd()) / default_filename(today)
