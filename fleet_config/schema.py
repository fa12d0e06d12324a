"""
FleetConfig schema.

Frozen dataclasses the YAML configuration is parsed into.  The loader
builds them; everything downstream receives them read-only.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal


@dataclass(frozen=True)
class DatabaseConfig:
    """Connection settings for FleetDatabase."""

    url: str
    echo: bool = False
    pool_size: int = 5
    max_overflow: int = 10
    pool_timeout: int = 30
    pool_recycle: int = 1800
    busy_timeout_seconds: float = 30.0


@dataclass(frozen=True)
class LoggingConfig:
    level: str = "INFO"


@dataclass(frozen=True)
class ReportingConfig:
    """Productivity report settings."""

    productivity_threshold: Decimal = Decimal("30000")
    profit_label: str = "Profit"
    loss_label: str = "Loss"


@dataclass(frozen=True)
class FleetDefaults:
    default_truck_status: str = "Available"


@dataclass(frozen=True)
class FleetConfig:
    """
    The complete runtime configuration.

    ``checksum`` identifies the source document, so two processes can tell
    whether they run with the same settings.
    """

    database: DatabaseConfig
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    reporting: ReportingConfig = field(default_factory=ReportingConfig)
    fleet: FleetDefaults = field(default_factory=FleetDefaults)
    source: str | None = None
    checksum: str | None = None
