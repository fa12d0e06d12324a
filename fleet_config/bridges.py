"""
Config -> Kernel Bridges.

Functions that convert a FleetConfig into kernel objects.  These live in
fleet_config (the producer) because the kernel must NEVER import
fleet_config.

Usage:
    from fleet_config.bridges import build_database, build_productivity_rule

    config = get_active_config()
    database = build_database(config)
    rule = build_productivity_rule(config)
"""

from __future__ import annotations

from fleet_config.loader import log_level
from fleet_config.schema import FleetConfig
from fleet_kernel.db.engine import FleetDatabase
from fleet_kernel.domain.financials import ProductivityRule
from fleet_kernel.logging_config import configure_logging


def build_database(config: FleetConfig) -> FleetDatabase:
    """Construct (but do not create tables in) the configured database."""
    db = config.database
    return FleetDatabase(
        db.url,
        echo=db.echo,
        pool_size=db.pool_size,
        max_overflow=db.max_overflow,
        pool_timeout=db.pool_timeout,
        pool_recycle=db.pool_recycle,
        busy_timeout_seconds=db.busy_timeout_seconds,
    )


def build_productivity_rule(config: FleetConfig) -> ProductivityRule:
    reporting = config.reporting
    return ProductivityRule(
        threshold=reporting.productivity_threshold,
        profit_label=reporting.profit_label,
        loss_label=reporting.loss_label,
    )


def apply_logging(config: FleetConfig) -> None:
    """Configure kernel logging at the configured level (idempotent)."""
    configure_logging(level=log_level(config.logging))
