"""Tests for CSV export and import."""

import tempfile
from datetime import date, datetime
from pathlib import Path

import pytest  # type: ignore[import-not-found]

from billable_hours.core.errors import CSVImportError
from billable_hours.core.models import TimeEntry
from billable_hours.core.store import EntryIdFactory
from billable_hours.export_import import CSVExporter, CSVImporter, csv_format
from billable_hours.export_import.csv_format import (
    default_filename,
    entries_to_csv,
    export_path,
    format_number,
    parse_csv,
    parse_date,
    tokenize_line,
)

HEADER = "Project Name,Hours,Minutes,Rate,Date"


@pytest.fixture  # type: ignore[misc]
def temp_dir() -> Path:
    """Create temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture  # type: ignore[misc]
def sample_entries() -> list[TimeEntry]:
    """Create sample entries for testing."""
    return [
        TimeEntry("2", 'Acme "West"', 2, 30, 40, datetime(2026, 10, 19, 15, 4, 5)),
        TimeEntry("1", "Globex, Inc.", 0, 45, 55.5, datetime(2026, 10, 18, 9, 0, 0)),
    ]


def csv_with(*rows: str) -> str:
    return "\n".join([HEADER, *rows])


class TestExport:
    """Test CSV serialization."""

    def test_layout(self, sample_entries: list[TimeEntry]) -> None:
        """Text fields are quoted, numbers are not and there is no trailing newline."""
        text = entries_to_csv(sample_entries)

        assert text.split("\n") == [
            HEADER,
            '"Acme ""West""",2,30,40,"10/19/2026, 03:04:05 PM"',
            '"Globex, Inc.",0,45,55.5,"10/18/2026, 09:00:00 AM"',
        ]
        assert not text.endswith("\n")

    def test_empty(self) -> None:
        assert entries_to_csv([]) == HEADER

    def test_format_number(self) -> None:
        assert format_number(40) == "40"
        assert format_number(40.0) == "40"
        assert format_number(55.5) == "55.5"

    def test_default_filename(self) -> None:
        assert default_filename(date(2026, 10, 19)) == "time-entries-2026-10-19.csv"
        assert export_path(Path("/tmp/out"), date(2026, 1, 2)) == Path(
            "/tmp/out/time-entries-2026-01-02.csv"
        )

    def test_exporter_writes_file(self, temp_dir: Path, sample_entries: list[TimeEntry]) -> None:
        output = temp_dir / "nested" / "entries.csv"

        CSVExporter(output).export_entries(sample_entries)

        assert output.read_bytes().decode("utf-8") == entries_to_csv(sample_entries)


class TestTokenizer:
    """Test the CSV line tokenizer."""

    @pytest.mark.parametrize(
        "line,expected",
        [
            ("a,b", ["a", "b"]),
            ('"x, y",2', ["x, y", "2"]),
            ('"He said ""hi""",1', ['He said "hi"', "1"]),
            ("a,,b", ["a", "", "b"]),
            ("a,", ["a", ""]),
            ('"a" ,b', ["a", "b"]),
            ('""', [""]),
        ],
    )
    def test_fields(self, line: str, expected: list[str]) -> None:
        assert tokenize_line(line, 2) == expected

    def test_unterminated_quote(self) -> None:
        with pytest.raises(CSVImportError, match="Unterminated quoted field at line 4") as exc_info:
            tokenize_line('"open,2,0,40', 4)
        assert exc_info.value.line_number == 4


class TestParseDate:
    """Test date parsing."""

    def test_export_format(self) -> None:
        assert parse_date("10/19/2026, 03:04:05 PM") == datetime(2026, 10, 19, 15, 4, 5)

    def test_iso(self) -> None:
        assert parse_date("2026-10-19T15:04:05") == datetime(2026, 10, 19, 15, 4, 5)

    def test_custom_format_first(self) -> None:
        assert parse_date("19/10/2026", "%d/%m/%Y") == datetime(2026, 10, 19)

    def test_unparseable(self) -> None:
        assert parse_date("someday") is None


class TestImport:
    """Test CSV parsing."""

    def test_round_trip(self, sample_entries: list[TimeEntry]) -> None:
        """Everything but the id survives export and import."""
        factory = EntryIdFactory(clock=lambda: 1000.0)

        imported = parse_csv(entries_to_csv(sample_entries), factory)

        assert [e.id for e in imported] == ["imported-1000000-0", "imported-1000001-1"]
        for original, restored in zip(sample_entries, imported):
            assert restored.project_name == original.project_name
            assert restored.hours == original.hours
            assert restored.minutes == original.minutes
            assert restored.rate == original.rate
            assert restored.date == original.date

    def test_header_only(self) -> None:
        assert parse_csv(HEADER) == []

    def test_blank_lines_and_crlf(self) -> None:
        text = "\r\n".join(
            [HEADER, '"Acme",1,0,40,"10/19/2026, 03:04:05 PM"', "", '"Globex",0,5,20,"10/19/2026"']
        )

        imported = parse_csv(text)

        assert [e.project_name for e in imported] == ["Acme", "Globex"]

    def test_bad_rate_cites_line(self) -> None:
        text = csv_with(
            '"Acme",1,0,40,"10/19/2026, 03:04:05 PM"',
            '"Globex",1,0,150,"10/19/2026, 03:04:05 PM"',
        )

        with pytest.raises(CSVImportError) as exc_info:
            parse_csv(text)

        assert str(exc_info.value) == (
            "Invalid rate at line 3: rate must be between $10.00 and $50.00"
        )
        assert exc_info.value.line_number == 3

    def test_line_numbers_count_blank_lines(self) -> None:
        text = csv_with("", '"Acme",1,0,abc,"10/19/2026"')

        with pytest.raises(CSVImportError, match="Invalid rate at line 3"):
            parse_csv(text)

    @pytest.mark.parametrize(
        "row,message",
        [
            ('"Acme",1,0', "Invalid CSV format at line 2"),
            ('"",1,0,40,"10/19/2026"', "Invalid project name at line 2"),
            ('"   ",1,0,40,"10/19/2026"', "Invalid project name at line 2"),
            ('"' + "x" * 81 + '",1,0,40,"10/19/2026"', "Invalid project name at line 2"),
            ('"Acme",25,0,40,"10/19/2026"', "Invalid hours at line 2: must be between 0 and 24"),
            ('"Acme",2.5,0,40,"10/19/2026"', "Invalid hours at line 2"),
            ('"Acme",x,0,40,"10/19/2026"', "Invalid hours at line 2"),
            ('"Acme",1,60,40,"10/19/2026"', "Invalid minutes at line 2: must be between 0 and 59"),
            ('"Acme",1,-1,40,"10/19/2026"', "Invalid minutes at line 2"),
            ('"Acme",1,0,19,"10/19/2026"', "Invalid rate at line 2"),
            ('"Acme",1,0,nan,"10/19/2026"', "Invalid rate at line 2"),
            ('"Acme",0,0,40,"10/19/2026"', "Invalid duration at line 2: must be greater than zero"),
            ('"Acme",1,0,40,"someday"', "Invalid date at line 2"),
        ],
    )
    def test_invalid_rows(self, row: str, message: str) -> None:
        with pytest.raises(CSVImportError, match=message):
            parse_csv(csv_with(row))

    def test_project_name_at_limit(self) -> None:
        imported = parse_csv(csv_with('"' + "x" * 80 + '",1,0,40,"10/19/2026"'))
        assert len(imported[0].project_name) == 80

    def test_module_layout_example(self) -> None:
        """The layout shown in the module docstring is importable."""
        layout = csv_format.__doc__.split("::")[1].split("\n\n")[1]
        text = "\n".join(line.strip() for line in layout.splitlines())

        imported = parse_csv(text)

        assert [(e.project_name, e.hours, e.minutes, e.rate) for e in imported] == [
            ("Acme West", 2, 30, 40)
        ]

    def test_extra_columns_ignored(self) -> None:
        imported = parse_csv(csv_with('"Acme",1,0,40,"10/19/2026",extra'))
        assert len(imported) == 1

    def test_importer(self, temp_dir: Path, sample_entries: list[TimeEntry]) -> None:
        path = temp_dir / "entries.csv"
        CSVExporter(path).export_entries(sample_entries)

        imported = CSVImporter(path).import_entries()

        assert [e.project_name for e in imported] == ['Acme "West"', "Globex, Inc."]

    def test_importer_strips_bom(self, temp_dir: Path) -> None:
        path = temp_dir / "bom.csv"
        path.write_bytes(("\ufeff" + csv_with('"Acme",1,0,40,"10/19/2026"')).encode("utf-8"))

        assert len(CSVImporter(path).import_entries()) == 1

    def test_importer_missing_file(self, temp_dir: Path) -> None:
        with pytest.raises(FileNotFoundError):
            CSVImporter(temp_dir / "missing.csv").import_entries()

    def test_importer_wrong_extension(self, temp_dir: Path) -> None:
        path = temp_dir / "entries.txt"
        path.write_text(HEADER)

        with pytest.raises(ValueError, match="Expected .csv file"):
            CSVImporter(path).import_entries()
