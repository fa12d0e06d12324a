"""
fleet_config -- single public entrypoint for fleet configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``.  No other component reads configuration files
    or environment variables directly.

Architecture position:
    Configuration -- YAML-driven.  This package sits above ``fleet_kernel``
    and below ``fleet_services``.  The kernel MUST NEVER import from
    ``fleet_config``; ``fleet_config.bridges`` translates a FleetConfig
    into kernel objects.

Failure modes:
    - ``FileNotFoundError`` -- the selected file does not exist.
    - ``ValueError`` -- a value fails validation.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from fleet_config.loader import load_yaml_file, parse_config
from fleet_config.schema import (
    DatabaseConfig,
    FleetConfig,
    FleetDefaults,
    LoggingConfig,
    ReportingConfig,
)

_logger = logging.getLogger("fleet_kernel.config")

DEFAULT_CONFIG_PATH = Path(__file__).parent / "sets" / "default.yaml"

CONFIG_PATH_ENV = "FLEET_CONFIG_PATH"
DATABASE_URL_ENV = "FLEET_DATABASE_URL"


def get_active_config(path: str | Path | None = None) -> FleetConfig:
    """The ONLY public configuration entrypoint.

    Resolution order for the file: ``path`` argument, then the
    ``FLEET_CONFIG_PATH`` environment variable, then the packaged
    ``sets/default.yaml``.  ``FLEET_DATABASE_URL``, when set, overrides
    ``database.url``.

    A ``FLEET_CONFIG_TRACE`` log entry is emitted on every successful call.

    Raises:
        FileNotFoundError: If the selected file does not exist.
        ValueError: If configuration validation fails.
    """
    selected = Path(path or os.environ.get(CONFIG_PATH_ENV) or DEFAULT_CONFIG_PATH)
    data = load_yaml_file(selected)
    config = parse_config(
        data,
        source=str(selected),
        database_url=os.environ.get(DATABASE_URL_ENV) or None,
    )

    _logger.info(
        "FLEET_CONFIG_TRACE",
        extra={
            "trace_type": "FLEET_CONFIG_TRACE",
            "source": config.source,
            "checksum": config.checksum,
            "productivity_threshold": config.reporting.productivity_threshold,
        },
    )
    return config


__all__ = [
    "DatabaseConfig",
    "FleetConfig",
    "FleetDefaults",
    "LoggingConfig",
    "ReportingConfig",
    "get_active_config",
]
