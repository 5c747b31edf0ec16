"""Helpers shared by the CLI command modules."""

import logging
import sys
from pathlib import Path
from typing import NoReturn

import click
from rich.console import Console

from billable_hours.core.config import ConfigManager
from billable_hours.core.models import DEFAULT_TARGET_RATE, Settings
from billable_hours.core.money import Money
from billable_hours.core.storage import JSONFileStore
from billable_hours.core.tracker import TimeTracker

console = Console()
error_console = Console(stderr=True)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level_name: str) -> None:
    """Configure root logging to stderr at ``level_name``."""
    level = getattr(logging, level_name.upper(), logging.WARNING)
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    for handler in root_logger.handlers:
        if getattr(handler, "_billable_hours", False):
            handler.setStream(sys.stderr)  # type: ignore[attr-defined]
            return

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler._billable_hours = True  # type: ignore[attr-defined]
    root_logger.addHandler(handler)


def get_config(ctx: click.Context) -> ConfigManager:
    """Config manager for the --config path (or the default one)."""
    obj = ctx.find_root().obj or {}
    if obj.get("config") is None:
        config_path = obj.get("config_path")
        obj["config"] = ConfigManager(Path(config_path) if config_path else None)
    return obj["config"]


def get_tracker(ctx: click.Context) -> TimeTracker:
    """TimeTracker backed by the --data-dir directory or the configured one.

    Until a monthly target is saved, ``defaults.monthly_target`` is used.
    """
    obj = ctx.find_root().obj or {}
    config = get_config(ctx)
    data_dir = obj.get("data_dir")
    storage = JSONFileStore(Path(data_dir) if data_dir else config.data_dir)
    monthly_target = dollars_to_units(config.get("defaults.monthly_target", 2500))
    return TimeTracker(
        storage,
        csv_date_format=config.get("export.csv_date_format"),
        default_settings=Settings(monthly_target, DEFAULT_TARGET_RATE),
    )


def default_rate(ctx: click.Context) -> float:
    """Configured default rate in dollars."""
    return float(get_config(ctx).get("defaults.rate", 20))


def dollars_to_units(dollars: float) -> float:
    units = Money.from_dollars(dollars).units
    return int(units) if float(units).is_integer() else units


def fail(message: object) -> NoReturn:
    error_console.print(f"[red]Error:[/red] {message}")
    sys.exit(1)


def confirm_or_abort(prompt: str, yes: bool) -> bool:
    if yes:
        return True
    if click.confirm(prompt, default=False):
        return True
    console.print("Cancelled")
    return False