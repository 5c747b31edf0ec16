"""Configuration management for Billable Hours."""

import copy
import logging
import shutil
from pathlib import Path
from typing import Any, Optional

import yaml  # type: ignore[import-untyped]
from jsonschema import ValidationError, validate  # type: ignore[import-untyped]

from billable_hours.core.models import DEFAULT_MONTHLY_TARGET, DEFAULT_RATE
from billable_hours.core.money import to_dollars

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path.home() / ".billable-hours" / "config.yml"


class ConfigManager:
    """User preferences kept in a YAML file and checked with jsonschema."""

    DEFAULT_CONFIG = {
        "version": "1.0",
        "general": {
            "data_dir": "~/.billable-hours/data",
            "date_format": "%Y-%m-%d %H:%M",
        },
        "defaults": {
            "rate": to_dollars(DEFAULT_RATE),
            "monthly_target": to_dollars(DEFAULT_MONTHLY_TARGET),
        },
        "export": {
            "csv_date_format": "%m/%d/%Y, %I:%M:%S %p",
            "directory": None,
        },
        "display": {
            "show_seconds": True,
        },
        "advanced": {
            "backup_on_clear": True,
            "log_level": "WARNING",
        },
    }

    CONFIG_SCHEMA = {
        "type": "object",
        "properties": {
            "version": {"type": "string"},
            "general": {
                "type": "object",
                "properties": {
                    "data_dir": {"type": "string"},
                    "date_format": {"type": "string"},
                },
            },
            "defaults": {
                "type": "object",
                "properties": {
                    "rate": {"type": "number", "minimum": 10, "maximum": 50},
                    "monthly_target": {"type": "number", "minimum": 0},
                },
            },
            "export": {
                "type": "object",
                "properties": {
                    "csv_date_format": {"type": "string"},
                    "directory": {"type": ["string", "null"]},
                },
            },
            "display": {
                "type": "object",
                "properties": {
                    "show_seconds": {"type": "boolean"},
                },
            },
            "advanced": {
                "type": "object",
                "properties": {
                    "backup_on_clear": {"type": "boolean"},
                    "log_level": {
                        "type": "string",
                        "enum": ["DEBUG", "INFO", "WARNING", "ERROR"],
                    },
                },
            },
        },
        "required": ["version"],
    }

    def __init__(self, config_path: Optional[Path] = None):
        """Load ``config_path``, writing the defaults there if it is missing.

        Args:
            config_path: YAML file. Defaults to ~/.billable-hours/config.yml

        Raises:
            ValueError: If the file fails validation. It is moved aside and
                the defaults are written in its place before raising.
        """
        self.config_path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH
        self._config: dict[str, Any] = copy.deepcopy(self.DEFAULT_CONFIG)

        if not self.config_path.exists():
            self.save()
            return

        with open(self.config_path, encoding="utf-8") as f:
            user_config = yaml.safe_load(f) or {}
        _merge_into(self._config, user_config)

        try:
            self.validate()
        except ValueError as e:
            moved_to = self.backup(move=True)
            self.reset()
            logger.warning(f"Replaced invalid config with defaults (old file: {moved_to}): {e}")
            raise ValueError(
                f"Config validation failed, backed up to {moved_to}. Using defaults. Error: {e}"
            ) from e

    def get(self, key: str, default: Any = None) -> Any:
        """Look up a dotted key such as ``defaults.rate``.

        Missing keys and null values both return ``default``.
        """
        node: Any = self._config
        for part in key.split("."):
            node = node.get(part) if isinstance(node, dict) else None
            if node is None:
                return default
        return node

    def set(self, key: str, value: Any) -> None:
        """Change a dotted key and save.

        Raises:
            ValueError: If the result fails validation (nothing is changed)
        """
        updated = copy.deepcopy(self._config)
        *parents, leaf = key.split(".")
        node = updated
        for part in parents:
            node = node.setdefault(part, {})
        node[leaf] = value

        self._check(updated)
        self._config = updated
        self.save()

    def validate(self) -> bool:
        """Check the loaded values against CONFIG_SCHEMA.

        Raises:
            ValueError: If a value has the wrong type or is out of range
        """
        self._check(self._config)
        return True

    def _check(self, candidate: dict[str, Any]) -> None:
        try:
            validate(instance=candidate, schema=self.CONFIG_SCHEMA)
        except ValidationError as e:
            raise ValueError(f"Invalid configuration: {e.message}") from e

    def save(self) -> None:
        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.config_path, "w", encoding="utf-8") as f:
            yaml.safe_dump(self._config, f, sort_keys=False, allow_unicode=True)

    def backup(self, move: bool = False) -> Path:
        """Keep a copy of the config file next to it as ``config.yml.backup``.

        Args:
            move: Rename the file instead of copying it

        Returns:
            Path of the backup
        """
        target = self.config_path.with_name(self.config_path.name + ".backup")
        if move:
            self.config_path.replace(target)
        else:
            shutil.copy2(self.config_path, target)
        return target

    def reset(self) -> None:
        self._config = copy.deepcopy(self.DEFAULT_CONFIG)
        self.save()

    def to_dict(self) -> dict[str, Any]:
        return copy.deepcopy(self._config)

    def flatten(self) -> dict[str, Any]:
        """Every leaf value keyed by its dotted name, in file order."""
        flat: dict[str, Any] = {}

        def walk(prefix: str, node: dict[str, Any]) -> None:
            for name, value in node.items():
                dotted = f"{prefix}.{name}" if prefix else name
                if isinstance(value, dict):
                    walk(dotted, value)
                else:
                    flat[dotted] = value

        walk("", self._config)
        return flat

    @property
    def data_dir(self) -> Path:
        return Path(self.get("general.data_dir")).expanduser()


def _merge_into(base: dict[str, Any], override: dict[str, Any]) -> None:
    """Overlay ``override`` on ``base`` section by section."""
    for name, value in override.items():
        if isinstance(value, dict) and isinstance(base.get(name), dict):
            _merge_into(base[name], value)
        else:
            base[name] = value
