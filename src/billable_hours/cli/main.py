"""Main CLI application."""

import json
import time
from typing import Optional

import click
from rich.live import Live
from rich.panel import Panel

from billable_hours import __version__
from billable_hours.analysis.reports import ReportGenerator, format_hours_minutes
from billable_hours.cli.common import (
    confirm_or_abort,
    console,
    default_rate,
    dollars_to_units,
    error_console,
    fail,
    get_config,
    get_tracker,
    setup_logging,
)
from billable_hours.cli.config_commands import config
from billable_hours.cli.export_import_commands import export_import
from billable_hours.core.errors import BillableHoursError
from billable_hours.core.money import Money
from billable_hours.core.sorting import SortDirection, SortField, SortState
from billable_hours.core.timer import TimerEngine, format_elapsed

SORT_CHOICES = {
    "date": SortField.DATE,
    "project": SortField.PROJECT_NAME,
    "duration": SortField.HOURS,
    "rate": SortField.RATE,
}


def timer_panel(timer: TimerEngine, show_seconds: bool = True) -> Panel:
    """Panel describing the current timer session."""
    elapsed = format_elapsed(timer.elapsed_seconds)
    if not show_seconds:
        elapsed = elapsed[:-3]
    state = "[yellow]Paused[/yellow]" if timer.is_paused else "[green]Running[/green]"
    content = f"""[bold]{timer.project}[/bold]

[dim]Elapsed:[/dim] {elapsed}
[dim]Rate:[/dim] {Money(timer.rate or 0).format_dollars('/hour')}
[dim]State:[/dim] {state}"""
    if timer.start_time is not None:
        content += f"\n[dim]Started:[/dim] {timer.start_time.strftime('%Y-%m-%d %H:%M:%S')}"
    return Panel(content, title="Timer", border_style="yellow" if timer.is_paused else "green")


@click.group()
@click.version_option(version=__version__)
@click.option("--data-dir", help="Custom data directory", type=click.Path())
@click.option("--config", "config_path", help="Path to config file", type=click.Path())
@click.option("--no-color", is_flag=True, help="Disable colored output")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(
    ctx: click.Context,
    data_dir: Optional[str],
    config_path: Optional[str],
    no_color: bool,
    verbose: bool,
) -> None:
    """Billable Hours - Track time and estimate invoices against a monthly target.

    Rates and targets are entered in dollars.
    """
    ctx.ensure_object(dict)
    ctx.obj["data_dir"] = data_dir
    ctx.obj["config_path"] = config_path

    try:
        level = "DEBUG" if verbose else get_config(ctx).get("advanced.log_level", "WARNING")
    except ValueError as e:
        error_console.print(f"[yellow]Warning:[/yellow] {e}")
        level = "DEBUG" if verbose else "WARNING"
    setup_logging(level)

    if no_color:
        console.no_color = True


cli.add_command(config)
cli.add_command(export_import)


@cli.command()
@click.argument("project")
@click.option("-r", "--rate", type=float, help="Hourly rate in dollars")
@click.pass_context
def start(ctx: click.Context, project: str, rate: Optional[float]) -> None:
    """Start the timer for a project.

    Example:
        billable-hours start "Acme Corp" -r 25
    """
    tracker = get_tracker(ctx)
    dollars = rate if rate is not None else default_rate(ctx)

    try:
        tracker.start_timer(project, dollars_to_units(dollars))
    except BillableHoursError as e:
        fail(e)

    console.print(f"[green]✓[/green] Started timer: {project}")
    console.print(f"  Rate: {Money.from_dollars(dollars).format_dollars('/hour')}")


@cli.command()
@click.pass_context
def pause(ctx: click.Context) -> None:
    """Pause the running timer."""
    tracker = get_tracker(ctx)
    try:
        tracker.pause_timer()
    except ValueError as e:
        fail(e)
    console.print(f"[yellow]⏸[/yellow]  Paused at {format_elapsed(tracker.timer.elapsed_seconds)}")


@cli.command()
@click.pass_context
def resume(ctx: click.Context) -> None:
    """Resume a paused timer."""
    tracker = get_tracker(ctx)
    try:
        tracker.resume_timer()
    except ValueError as e:
        fail(e)
    console.print(f"[green]▶[/green]  Resumed from {format_elapsed(tracker.timer.elapsed_seconds)}")


@cli.command()
@click.pass_context
def stop(ctx: click.Context) -> None:
    """Stop the timer and log the elapsed time.

    Less than a minute of tracked time is discarded.
    """
    tracker = get_tracker(ctx)
    project = tracker.timer.project

    try:
        entry = tracker.stop_timer()
    except ValueError as e:
        fail(e)

    if entry is None:
        console.print(f"[yellow]Stopped timer for {project}; under a minute, nothing logged[/yellow]")
        return

    console.print(f"[green]✓[/green] Logged {format_hours_minutes(entry.hours, entry.minutes)}")
    console.print(f"  Project: {entry.project_name}")
    console.print(f"  Amount: {entry.amount}")
    console.print(f"  Entry ID: {entry.id}")


@cli.command()
@click.pass_context
def cancel(ctx: click.Context) -> None:
    """Discard the running timer without logging anything."""
    tracker = get_tracker(ctx)
    if tracker.cancel_timer():
        console.print("[yellow]✓[/yellow] Timer discarded")
    else:
        console.print("[yellow]No timer running[/yellow]")


@cli.command()
@click.pass_context
def status(ctx: click.Context) -> None:
    """Show the running timer."""
    tracker = get_tracker(ctx)
    if not tracker.timer.is_running:
        console.print("[yellow]No timer running[/yellow]")
        console.print('\nStart one with: [cyan]billable-hours start "Project"[/cyan]')
        return

    show_seconds = get_config(ctx).get("display.show_seconds", True)
    console.print(timer_panel(tracker.timer, show_seconds))


@cli.command()
@click.option("--refresh", default=4, help="Screen refreshes per second")
@click.pass_context
def watch(ctx: click.Context, refresh: int) -> None:
    """Show the running timer ticking live. Ctrl+C leaves it running."""
    tracker = get_tracker(ctx)
    if not tracker.timer.is_running:
        fail("No timer running")

    try:
        with Live(timer_panel(tracker.timer), console=console, refresh_per_second=refresh) as live:
            while tracker.timer.is_running:
                time.sleep(1 / refresh)
                live.update(timer_panel(tracker.timer))
    except KeyboardInterrupt:
        console.print("[dim]Detached; the timer keeps running[/dim]")


@cli.command()
@click.argument("project")
@click.option("-H", "--hours", default=0, type=int, help="Hours (0-24)")
@click.option("-m", "--minutes", default=0, type=int, help="Minutes (0-59)")
@click.option("-r", "--rate", type=float, help="Hourly rate in dollars")
@click.option("-n", "--notes", help="Additional notes")
@click.pass_context
def add(
    ctx: click.Context,
    project: str,
    hours: int,
    minutes: int,
    rate: Optional[float],
    notes: Optional[str],
) -> None:
    """Log time manually.

    Example:
        billable-hours add "Acme Corp" -H 2 -m 30 -r 20
    """
    tracker = get_tracker(ctx)
    dollars = rate if rate is not None else default_rate(ctx)

    try:
        entry = tracker.add_manual_entry(project, hours, minutes, dollars_to_units(dollars), notes)
    except BillableHoursError as e:
        fail(e)

    console.print(f"[green]✓[/green] Added entry: {project}")
    console.print(f"  Duration: {format_hours_minutes(entry.hours, entry.minutes)}")
    console.print(f"  Amount: {entry.amount}")
    console.print(f"  Entry ID: {entry.id}")


@cli.command()
@click.argument("entry_id")
@click.option("-p", "--project", help="New project name")
@click.option("-H", "--hours", type=int, help="New hours")
@click.option("-m", "--minutes", type=int, help="New minutes")
@click.option("-r", "--rate", type=float, help="New hourly rate in dollars")
@click.pass_context
def edit(
    ctx: click.Context,
    entry_id: str,
    project: Optional[str],
    hours: Optional[int],
    minutes: Optional[int],
    rate: Optional[float],
) -> None:
    """Edit an entry. Options left out keep their current values.

    Example:
        billable-hours edit 1760881234567 -H 3 -m 15
    """
    tracker = get_tracker(ctx)
    units = dollars_to_units(rate) if rate is not None else None

    try:
        entry = tracker.edit_entry(entry_id, project, hours, minutes, units)
    except ValueError as e:
        fail(e)

    console.print(f"[green]✓[/green] Updated entry {entry.id}")
    console.print(
        f"  {entry.project_name}: {format_hours_minutes(entry.hours, entry.minutes)} "
        f"at {entry.rate_money.format_dollars('/hour')}"
    )


@cli.command()
@click.argument("entry_ids", nargs=-1, required=True)
@click.pass_context
def delete(ctx: click.Context, entry_ids: tuple[str, ...]) -> None:
    """Delete one or more entries by ID.

    Example:
        billable-hours delete 1760881234567 imported-1760881299000-0
    """
    tracker = get_tracker(ctx)

    if len(entry_ids) == 1:
        if not tracker.delete_entry(entry_ids[0]):
            fail(f"Entry not found: {entry_ids[0]}")
        console.print(f"[green]✓[/green] Deleted entry {entry_ids[0]}")
        return

    missing = [i for i in entry_ids if tracker.get_entry(i) is None]
    if missing:
        fail(f"Entry not found: {', '.join(missing)}")

    for entry_id in entry_ids:
        if entry_id not in tracker.selection:
            tracker.toggle_select(entry_id)
    removed = tracker.delete_selected()
    console.print(f"[green]✓[/green] Deleted {removed} entries")


@cli.command()
@click.option("-y", "--yes", is_flag=True, help="Skip confirmation")
@click.pass_context
def clear(ctx: click.Context, yes: bool) -> None:
    """Delete all entries."""
    tracker = get_tracker(ctx)
    if not confirm_or_abort(
        "Are you sure you want to delete all entries? This cannot be undone.", yes
    ):
        return

    if get_config(ctx).get("advanced.backup_on_clear", True):
        backup = getattr(tracker.storage, "backup", None)
        if backup is not None:
            console.print(f"Backed up data to {backup()}")

    removed = tracker.clear_all()
    console.print(f"[green]✓[/green] Deleted {removed} entries")


@cli.command()
@click.option(
    "-s", "--sort", "sort_field", type=click.Choice(list(SORT_CHOICES)), default="date",
    help="Column to sort by",
)
@click.option("--asc/--desc", "ascending", default=None, help="Sort direction")
@click.option("-n", "--count", type=int, help="Number of entries to show")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def log(
    ctx: click.Context,
    sort_field: str,
    ascending: Optional[bool],
    count: Optional[int],
    as_json: bool,
) -> None:
    """List time entries.

    Dates sort newest first unless --asc is given; other columns sort
    ascending unless --desc is given.

    Example:
        billable-hours log
        billable-hours log --sort project
        billable-hours log --sort rate --desc
    """
    tracker = get_tracker(ctx)

    field = SORT_CHOICES[sort_field]
    if ascending is None:
        ascending = field is not SortField.DATE
    tracker.sort_state = SortState(field, SortDirection.ASC if ascending else SortDirection.DESC)

    entries = tracker.sorted_entries()
    if count is not None:
        entries = entries[:count]

    if as_json:
        print(json.dumps([e.to_dict() for e in entries], indent=2, ensure_ascii=False))
        return

    report = ReportGenerator(console, get_config(ctx).get("general.date_format"))
    report.entries_table(entries, tracker.sort_state)


@cli.command()
@click.pass_context
def stats(ctx: click.Context) -> None:
    """Show progress toward the monthly target."""
    tracker = get_tracker(ctx)
    report = ReportGenerator(console)
    report.stats_report(tracker.stats(), tracker.settings)
    report.project_report(tracker.store.entries)


@cli.command()
@click.option("-t", "--target", type=float, help="Monthly target in dollars")
@click.option("-r", "--target-rate", type=float, help="Target hourly rate in dollars")
@click.pass_context
def settings(ctx: click.Context, target: Optional[float], target_rate: Optional[float]) -> None:
    """Show or change the monthly target.

    Example:
        billable-hours settings --target 3000 --target-rate 35
    """
    tracker = get_tracker(ctx)

    if target is not None or target_rate is not None:
        try:
            tracker.update_settings(
                dollars_to_units(target) if target is not None else None,
                dollars_to_units(target_rate) if target_rate is not None else None,
            )
        except BillableHoursError as e:
            fail(e)
        console.print("[green]✓[/green] Settings updated")

    console.print(f"  Monthly Goal: {tracker.settings.monthly_target}")
    console.print(f"  Target Rate: {tracker.settings.target_rate_money.format_dollars('/hour')}")


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
