"""Exporter and importer interfaces shared by the file formats."""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from billable_hours.core.models import TimeEntry


class Exporter(ABC):
    """Writes entries to one output file."""

    def __init__(self, output_path: Path):
        self.output_path = Path(output_path)

    @abstractmethod
    def export_entries(self, entries: list[TimeEntry], **kwargs: Any) -> None:
        """Write ``entries`` in the order given.

        Args:
            entries: Entries to write
            **kwargs: Options understood by the concrete format
        """

    @abstractmethod
    def get_file_extension(self) -> str:
        """Extension of the format, with the leading dot."""

    def write_text(self, content: str) -> None:
        """Write ``content`` as UTF-8 exactly as given (no newline translation).

        Missing parent directories are created.
        """
        self.output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.output_path, "w", encoding="utf-8", newline="") as f:
            f.write(content)


class Importer(ABC):
    """Reads entries from one input file."""

    def __init__(self, input_path: Path):
        self.input_path = Path(input_path)

    @abstractmethod
    def import_entries(self, **kwargs: Any) -> list[TimeEntry]:
        """Parse the whole input file.

        Raises:
            FileNotFoundError: If the file is missing
            ValueError: If the contents cannot be imported
        """

    @abstractmethod
    def get_file_extension(self) -> str:
        """Extension the input file must have, with the leading dot."""

    def check_input_path(self) -> None:
        """Make sure the file exists and carries the format's extension.

        Raises:
            FileNotFoundError: If the file is missing
            ValueError: If the extension does not match
        """
        if not self.input_path.is_file():
            raise FileNotFoundError(f"Input file not found: {self.input_path}")

        expected = self.get_file_extension()
        if self.input_path.suffix.lower() != expected:
            raise ValueError(f"Expected {expected} file, got {self.input_path.suffix or 'none'}")

    def read_text(self) -> str:
        """Contents of the input file as text; a UTF-8 byte order mark is dropped."""
        self.check_input_path()
        with open(self.input_path, encoding="utf-8-sig", newline="") as f:
            return f.read()
