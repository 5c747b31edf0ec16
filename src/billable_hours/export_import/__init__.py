"""Export and import functionality for Billable Hours."""

from billable_hours.export_import.base import Exporter, Importer
from billable_hours.export_import.csv_format import CSVExporter, CSVImporter

__all__ = [
    "Exporter",
    "Importer",
    "CSVExporter",
    "CSVImporter",
]
