"""Rich rendering of entries and billing statistics."""

from collections import defaultdict
from typing import Optional

from rich.console import Console  # type: ignore[import-not-found]
from rich.table import Table  # type: ignore[import-not-found]
from rich.text import Text  # type: ignore[import-not-found]

from billable_hours.core.models import Settings, TimeEntry
from billable_hours.core.money import Money
from billable_hours.core.sorting import SortField, SortState
from billable_hours.core.stats import Stats

_SORTABLE_COLUMNS = [
    ("Date", SortField.DATE, "cyan"),
    ("Project", SortField.PROJECT_NAME, "bold"),
    ("Duration", SortField.HOURS, "magenta"),
    ("Rate", SortField.RATE, "blue"),
]


def format_hours_minutes(hours: int, minutes: int) -> str:
    return f"{hours}h {minutes}m"


def project_totals(entries: list[TimeEntry]) -> list[tuple[str, int, Money]]:
    """Minutes and billed amount per project, largest amount first."""
    minutes: dict[str, int] = defaultdict(int)
    billed: dict[str, float] = defaultdict(float)
    for entry in entries:
        minutes[entry.project_name] += entry.hours * 60 + entry.minutes
        billed[entry.project_name] += entry.amount.units

    rows = [(name, minutes[name], Money(billed[name])) for name in minutes]
    rows.sort(key=lambda row: row[2].units, reverse=True)
    return rows


class ReportGenerator:
    """Render entry tables and statistics to a console."""

    def __init__(self, console: Optional[Console] = None, date_format: str = "%Y-%m-%d %H:%M"):
        """Initialize report generator.

        Args:
            console: Rich console for output. Creates default if None.
            date_format: strftime format for entry dates
        """
        self.console = console or Console()
        self.date_format = date_format

    def entries_table(
        self,
        entries: list[TimeEntry],
        sort_state: Optional[SortState] = None,
    ) -> None:
        """Display entries in the order given."""
        if not entries:
            self.console.print(
                "[yellow]No time entries yet. Start the timer or add entries manually.[/yellow]"
            )
            return

        table = Table(title=f"Time Entries ({len(entries)})")
        table.add_column("ID", style="dim")
        for title, field, style in _SORTABLE_COLUMNS:
            if sort_state is not None and sort_state.field is field:
                title = f"{title} {sort_state.arrow}"
            table.add_column(title, style=style)
        table.add_column("Amount", style="green", justify="right")

        for entry in entries:
            table.add_row(
                entry.id,
                entry.date.strftime(self.date_format),
                entry.project_name,
                format_hours_minutes(entry.hours, entry.minutes),
                entry.rate_money.format_dollars("/h"),
                str(entry.amount),
            )

        self.console.print(table)

    def stats_report(self, stats: Stats, settings: Settings) -> None:
        """Display progress toward the monthly target."""
        self.console.print("\n[bold cyan]Statistics[/bold cyan]\n")

        bar = self._create_bar(stats.progress_percent)
        bar.append(f" {stats.progress_percent:.1f}%")
        self.console.print(bar)
        self.console.print()

        table = Table(show_header=False, box=None, padding=(0, 2))
        table.add_column(style="dim")
        table.add_column(style="bold")

        table.add_row("Total Hours:", format_hours_minutes(stats.total_hours, stats.total_minutes))
        table.add_row("Amount Billed:", str(stats.billed))
        table.add_row("Monthly Goal:", str(settings.monthly_target))
        table.add_row("Target Rate:", settings.target_rate_money.format_dollars("/hour"))
        table.add_row(
            "Target Hours:", format_hours_minutes(stats.target_hours, stats.target_minutes)
        )
        table.add_row(
            "Hours Left (target rate):",
            format_hours_minutes(stats.hours_left_at_target, stats.minutes_left_at_target),
        )
        table.add_row("Average Rate:", stats.average_rate.format_dollars("/hour"))
        table.add_row(
            "Hours Left (avg rate):",
            format_hours_minutes(stats.hours_left_at_avg, stats.minutes_left_at_avg),
        )

        self.console.print(table)
        if stats.target_reached:
            self.console.print("\n[green]✓ Monthly target reached[/green]")

    def project_report(self, entries: list[TimeEntry]) -> None:
        """Display billed time per project."""
        rows = project_totals(entries)
        if len(rows) < 2:
            return

        total = sum(row[2].units for row in rows)
        table = Table(title="Billed by Project")
        table.add_column("Project", style="cyan")
        table.add_column("Duration", style="magenta", justify="right")
        table.add_column("Amount", style="green", justify="right")
        table.add_column("Bar", style="blue")

        for name, minutes, amount in rows:
            pct = amount.units / total * 100 if total > 0 else 0
            table.add_row(
                name,
                format_hours_minutes(minutes // 60, minutes % 60),
                str(amount),
                self._create_bar(pct),
            )

        self.console.print()
        self.console.print(table)

    def _create_bar(self, percentage: float, width: int = 25) -> Text:
        filled = int((min(percentage, 100) / 100) * width)
        bar = Text()
        bar.append("█" * filled, style="green" if percentage >= 100 else "blue")
        bar.append("░" * (width - filled), style="dim")
        return bar
