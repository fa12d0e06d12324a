"""
Configuration Loader (``fleet_config.loader``).

Responsibility
--------------
Loads a YAML configuration file and parses it into the typed
``fleet_config.schema`` dataclasses.  Callers use
``fleet_config.get_active_config()``; the functions here are its
building blocks and are public for tests.

Invariants enforced
-------------------
* Parse errors raise ``ValueError`` naming the offending key; the only
  required key is ``database.url``.
* Every parsed object is a frozen dataclass from ``schema.py``.
* ``compute_checksum`` produces a deterministic SHA-256 hash of the
  source document.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
"""

from __future__ import annotations

import hashlib
import json
import logging
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from fleet_config.schema import (
    DatabaseConfig,
    FleetConfig,
    FleetDefaults,
    LoggingConfig,
    ReportingConfig,
)

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ValueError: if the document is not a mapping.
    """
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: top level must be a mapping")
    return data


def _section(data: dict[str, Any], key: str) -> dict[str, Any]:
    value = data.get(key) or {}
    if not isinstance(value, dict):
        raise ValueError(f"'{key}' must be a mapping")
    return value


def _positive_int(data: dict[str, Any], key: str, default: int) -> int:
    value = data.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValueError(f"'{key}' must be a non-negative integer, got {value!r}")
    return value


def _text(data: dict[str, Any], key: str, default: str) -> str:
    value = data.get(key, default)
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"'{key}' must be a non-empty string, got {value!r}")
    return value.strip()


def parse_database(data: dict[str, Any]) -> DatabaseConfig:
    """Parse the ``database`` section; ``url`` is required."""
    url = data.get("url")
    if not isinstance(url, str) or not url.strip():
        raise ValueError("'database.url' is required")

    echo = data.get("echo", False)
    if not isinstance(echo, bool):
        raise ValueError(f"'echo' must be a boolean, got {echo!r}")

    busy_timeout = data.get("busy_timeout_seconds", 30.0)
    if isinstance(busy_timeout, bool) or not isinstance(busy_timeout, (int, float)):
        raise ValueError(
            f"'busy_timeout_seconds' must be a number, got {busy_timeout!r}"
        )
    if busy_timeout < 0:
        raise ValueError("'busy_timeout_seconds' must not be negative")

    return DatabaseConfig(
        url=url.strip(),
        echo=echo,
        pool_size=_positive_int(data, "pool_size", 5),
        max_overflow=_positive_int(data, "max_overflow", 10),
        pool_timeout=_positive_int(data, "pool_timeout", 30),
        pool_recycle=_positive_int(data, "pool_recycle", 1800),
        busy_timeout_seconds=float(busy_timeout),
    )


def parse_logging(data: dict[str, Any]) -> LoggingConfig:
    level = _text(data, "level", "INFO").upper()
    if level not in _LOG_LEVELS:
        raise ValueError(f"'logging.level' must be one of {', '.join(_LOG_LEVELS)}")
    return LoggingConfig(level=level)


def parse_reporting(data: dict[str, Any]) -> ReportingConfig:
    """
    Parse the ``reporting`` section.

    The threshold may be written as a number or a quoted string; floats go
    through ``str()`` so 30000.5 stays 30000.5.
    """
    raw = data.get("productivity_threshold", "30000")
    if isinstance(raw, bool):
        raise ValueError("'productivity_threshold' must be a number")
    try:
        threshold = Decimal(str(raw))
    except InvalidOperation:
        raise ValueError(
            f"'productivity_threshold' must be a number, got {raw!r}"
        ) from None
    if not threshold.is_finite():
        raise ValueError("'productivity_threshold' must be finite")

    return ReportingConfig(
        productivity_threshold=threshold,
        profit_label=_text(data, "profit_label", "Profit"),
        loss_label=_text(data, "loss_label", "Loss"),
    )


def parse_fleet(data: dict[str, Any]) -> FleetDefaults:
    return FleetDefaults(
        default_truck_status=_text(data, "default_truck_status", "Available"),
    )


def parse_config(
    data: dict[str, Any],
    *,
    source: str | None = None,
    database_url: str | None = None,
) -> FleetConfig:
    """
    Parse a whole configuration document.

    Args:
        data: The loaded YAML mapping.
        source: Where the document came from (recorded on the result).
        database_url: Overrides ``database.url`` when given.
    """
    database = dict(_section(data, "database"))
    if database_url:
        database["url"] = database_url

    return FleetConfig(
        database=parse_database(database),
        logging=parse_logging(_section(data, "logging")),
        reporting=parse_reporting(_section(data, "reporting")),
        fleet=parse_fleet(_section(data, "fleet")),
        source=source,
        checksum=compute_checksum(data),
    )


def compute_checksum(data: dict[str, Any]) -> str:
    """
    Compute SHA-256 checksum of canonical JSON serialization.

    Identical ``data`` always produces identical checksums.
    """
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()


def log_level(config: LoggingConfig) -> int:
    """The stdlib logging level for ``config.level``."""
    return logging.getLevelName(config.level)
