"""CSV export and import CLI commands."""

from pathlib import Path
from typing import Optional

import click

from billable_hours.cli.common import (
    confirm_or_abort,
    console,
    fail,
    get_config,
    get_tracker,
)
from billable_hours.export_import.csv_format import export_path


@click.group(name="export-import")
def export_import() -> None:
    """Export and import time entries as CSV."""
    pass


@export_import.command(name="export")
@click.argument("output_file", required=False, type=click.Path())
@click.option("--clear", "clear_after", is_flag=True, help="Delete all entries after exporting")
@click.option("-y", "--yes", is_flag=True, help="Skip confirmation for --clear")
@click.pass_context
def export_command(
    ctx: click.Context, output_file: Optional[str], clear_after: bool, yes: bool
) -> None:
    """Export all entries to CSV.

    Without OUTPUT_FILE the file is named time-entries-YYYY-MM-DD.csv and
    written to the configured export directory (or the current directory).

    Examples:
      billable-hours export-import export
      billable-hours export-import export march.csv
      billable-hours export-import export --clear
    """
    tracker = get_tracker(ctx)

    if output_file:
        output_path = Path(output_file)
    else:
        directory = get_config(ctx).get("export.directory")
        output_path = export_path(
            Path(directory).expanduser() if directory else None, tracker.clock().date()
        )

    count = len(tracker.store)
    if count == 0:
        console.print("[yellow]Warning:[/yellow] No entries to export")

    try:
        if clear_after:
            if not confirm_or_abort("Export and then delete all entries?", yes):
                return
            tracker.export_and_clear(output_path)
        else:
            tracker.export_csv(output_path)
    except OSError as e:
        fail(e)

    console.print(f"[green]✓[/green] Exported {count} entries to {output_path}")
    if clear_after:
        console.print(f"[green]✓[/green] Cleared {count} entries")


@export_import.command(name="import")
@click.argument("input_file", type=click.Path(exists=True))
@click.option("--wipe", is_flag=True, help="Replace all existing entries instead of merging")
@click.option("-y", "--yes", is_flag=True, help="Skip confirmation for --wipe")
@click.pass_context
def import_command(ctx: click.Context, input_file: str, wipe: bool, yes: bool) -> None:
    """Import entries from a CSV export.

    Imported entries are placed ahead of the existing ones. With --wipe
    they replace them. A single bad row aborts the whole import.

    Examples:
      billable-hours export-import import time-entries-2026-10-01.csv
      billable-hours export-import import backup.csv --wipe --yes
    """
    tracker = get_tracker(ctx)

    if wipe and not confirm_or_abort("This will DELETE all existing entries. Are you sure?", yes):
        return

    try:
        imported = tracker.import_csv(Path(input_file), wipe_existing=wipe)
    except (OSError, ValueError) as e:
        fail(e)

    action = "Replaced entries with" if wipe else "Imported"
    console.print(f"[green]✓[/green] {action} {len(imported)} entries")
