"""
Runtime settings (``inventory_kernel.config``).

Responsibility
--------------
Loads ``LedgerSettings`` from the packaged ``defaults.yaml``, an optional
override YAML file, and a small set of environment variables, in that order.

Invariants enforced
-------------------
* Every setting is validated at load time; a bad value raises ``ValueError``
  naming the key, never a silent default.
* Ratios are ``Decimal`` so threshold arithmetic stays exact.

Failure modes
-------------
* Missing override file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Invalid value  -> ``ValueError``.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, fields
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

DEFAULTS_PATH = Path(__file__).with_name("defaults.yaml")

ENV_DATABASE_URL = "INVENTORY_DATABASE_URL"
ENV_LOG_LEVEL = "INVENTORY_LOG_LEVEL"

# YAML section/key -> LedgerSettings field
_KEY_MAP: dict[tuple[str, str], str] = {
    ("database", "url"): "database_url",
    ("database", "echo_sql"): "echo_sql",
    ("database", "pool_size"): "pool_size",
    ("database", "max_overflow"): "max_overflow",
    ("logging", "level"): "log_level",
    ("ledger", "default_reorder_level"): "default_reorder_level",
    ("ledger", "history_page_size"): "history_page_size",
    ("ledger", "max_notes_length"): "max_notes_length",
    ("alerts", "critical_ratio"): "critical_ratio",
    ("alerts", "recovery_ratio"): "recovery_ratio",
}


@dataclass(frozen=True)
class LedgerSettings:
    """Validated runtime settings for the ledger and alert engine."""

    database_url: str = "sqlite:///inventory.db"
    echo_sql: bool = False
    pool_size: int = 20
    max_overflow: int = 10
    log_level: str = "INFO"
    default_reorder_level: int = 10
    history_page_size: int = 100
    critical_ratio: Decimal = Decimal("0.5")
    recovery_ratio: Decimal = Decimal("1.2")
    max_notes_length: int = 500

    def __post_init__(self):
        if not self.database_url:
            raise ValueError("database.url must be set")
        for name in ("pool_size", "history_page_size", "max_notes_length"):
            value = getattr(self, name)
            if not _is_int(value) or value < 1:
                raise ValueError(f"{name} must be a positive integer, got {value!r}")
        for name in ("max_overflow", "default_reorder_level"):
            value = getattr(self, name)
            if not _is_int(value) or value < 0:
                raise ValueError(f"{name} must be a non-negative integer, got {value!r}")
        if not isinstance(self.echo_sql, bool):
            raise ValueError(f"echo_sql must be a boolean, got {self.echo_sql!r}")
        level = str(self.log_level).upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level {self.log_level!r}")
        object.__setattr__(self, "log_level", level)
        for name in ("critical_ratio", "recovery_ratio"):
            object.__setattr__(self, name, _to_ratio(name, getattr(self, name)))


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _to_ratio(name: str, value: Any) -> Decimal:
    # YAML floats go through str() so 0.5 stays Decimal("0.5")
    if isinstance(value, bool):
        raise ValueError(f"{name} must be a positive number, got {value!r}")
    try:
        ratio = Decimal(str(value))
    except InvalidOperation:
        raise ValueError(f"{name} must be a positive number, got {value!r}")
    if not ratio.is_finite() or ratio <= 0:
        raise ValueError(f"{name} must be a positive number, got {value!r}")
    return ratio


def _flatten(data: dict[str, Any], source: str) -> dict[str, Any]:
    if not isinstance(data, dict):
        raise ValueError(f"{source}: top level must be a mapping")
    values: dict[str, Any] = {}
    for section, entries in data.items():
        if not isinstance(entries, dict):
            raise ValueError(f"{source}: section {section!r} must be a mapping")
        for key, value in entries.items():
            field_name = _KEY_MAP.get((section, key))
            if field_name is None:
                raise ValueError(f"{source}: unknown setting {section}.{key}")
            values[field_name] = value
    return values


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a YAML file; an empty file yields an empty dict."""
    with open(path) as f:
        return yaml.safe_load(f) or {}


def load_settings(path: str | Path | None = None) -> LedgerSettings:
    """
    Build LedgerSettings from defaults, an optional YAML file and env vars.

    Raises:
        FileNotFoundError: ``path`` given but missing.
        ValueError: any invalid or unknown setting.
    """
    values = _flatten(load_yaml_file(DEFAULTS_PATH), str(DEFAULTS_PATH))
    if path is not None:
        values.update(_flatten(load_yaml_file(Path(path)), str(path)))

    env_url = os.environ.get(ENV_DATABASE_URL)
    if env_url:
        values["database_url"] = env_url
    env_level = os.environ.get(ENV_LOG_LEVEL)
    if env_level:
        values["log_level"] = env_level

    known = {f.name for f in fields(LedgerSettings)}
    return LedgerSettings(**{k: v for k, v in values.items() if k in known})
