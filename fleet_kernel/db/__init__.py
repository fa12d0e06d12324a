"""Database layer - engine, base classes, money helpers."""

from fleet_kernel.db.base import Base, TrackedBase
from fleet_kernel.db.engine import FleetDatabase
from fleet_kernel.db.types import MONEY_DECIMAL_PLACES, round_money

__all__ = [
    "Base",
    "FleetDatabase",
    "MONEY_DECIMAL_PLACES",
    "TrackedBase",
    "round_money",
]
