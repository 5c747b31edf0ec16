"""Commands for viewing and changing the YAML configuration."""

import json
from typing import Any

import click  # type: ignore[import-not-found]
import yaml  # type: ignore[import-untyped]
from rich.table import Table  # type: ignore[import-not-found]

from billable_hours.cli.common import confirm_or_abort, console, fail, get_config


def convert_value(value: str) -> Any:
    """Read a command line string as YAML would (``true``, ``null``, ``30``)."""
    lowered = value.lower()
    if lowered in ("yes", "no"):
        return lowered == "yes"
    try:
        converted = yaml.safe_load(value)
    except yaml.YAMLError:
        return value
    return converted if isinstance(converted, (bool, int, float, type(None))) else value


@click.group()  # type: ignore[misc]
def config() -> None:
    """View or change settings in ~/.billable-hours/config.yml."""


@config.command("show")  # type: ignore[misc]
@click.option("--json", "as_json", is_flag=True, help="Print the raw values as JSON")  # type: ignore[misc]
@click.pass_context  # type: ignore[misc]
def config_show(ctx: click.Context, as_json: bool) -> None:
    """List every setting with its current value."""
    manager = get_config(ctx)

    if as_json:
        print(json.dumps(manager.to_dict(), indent=2))
        return

    table = Table(title="Configuration", caption=str(manager.config_path))
    table.add_column("Key", style="cyan")
    table.add_column("Value", style="green")
    for key, value in manager.flatten().items():
        table.add_row(key, "null" if value is None else str(value))
    console.print(table)


@config.command("get")  # type: ignore[misc]
@click.argument("key")  # type: ignore[misc]
@click.pass_context  # type: ignore[misc]
def config_get(ctx: click.Context, key: str) -> None:
    """Print one value, or a whole section.

    Example:
        billable-hours config get export.csv_date_format
    """
    value = get_config(ctx).get(key)
    if value is None:
        fail(f"Configuration key '{key}' not found")

    console.print(json.dumps(value, indent=2) if isinstance(value, dict) else str(value))


@config.command("set")  # type: ignore[misc]
@click.argument("key")  # type: ignore[misc]
@click.argument("value")  # type: ignore[misc]
@click.pass_context  # type: ignore[misc]
def config_set(ctx: click.Context, key: str, value: str) -> None:
    """Change one value. Booleans are true/false, null clears a value.

    Examples:
        billable-hours config set defaults.rate 30
        billable-hours config set export.directory ~/invoices
    """
    converted = convert_value(value)
    try:
        get_config(ctx).set(key, converted)
    except ValueError as e:
        fail(e)
    console.print(f"[green]✓[/green] {key} = {converted}")


@config.command("reset")  # type: ignore[misc]
@click.option("-y", "--yes", is_flag=True, help="Do not ask for confirmation")  # type: ignore[misc]
@click.pass_context  # type: ignore[misc]
def config_reset(ctx: click.Context, yes: bool) -> None:
    """Restore the default configuration (the old file is kept as a backup)."""
    manager = get_config(ctx)
    if not confirm_or_abort("Restore all settings to their defaults?", yes):
        return

    if manager.config_path.exists():
        console.print(f"Previous config saved to {manager.backup()}")
    manager.reset()
    console.print("[green]✓[/green] Defaults restored")


@config.command("path")  # type: ignore[misc]
@click.pass_context  # type: ignore[misc]
def config_path(ctx: click.Context) -> None:
    """Print where the configuration file lives."""
    console.print(str(get_config(ctx).config_path))
