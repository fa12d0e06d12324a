"""
Pure domain layer.

This module contains value objects and domain logic with NO dependencies on:
- ORM (SQLAlchemy sessions or models)
- Database
- I/O (other than SystemClock)

All domain objects are immutable and deterministic.
"""

from fleet_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from fleet_kernel.domain.dtos import (
    ClientInfo,
    DriverInfo,
    ProductivityRow,
    SituationRow,
    TripRecord,
    TripView,
    TruckInfo,
    TruckTrips,
)
from fleet_kernel.domain.financials import ProductivityRule, compute_profit
from fleet_kernel.domain.references import EntityKind, normalize_plate, parse_entity_id
from fleet_kernel.domain.trip_input import TripInput, parse_money
from fleet_kernel.domain.trip_workflow import TRIP_WORKFLOW, TripStatus

__all__ = [
    "ClientInfo",
    "Clock",
    "DeterministicClock",
    "DriverInfo",
    "EntityKind",
    "ProductivityRow",
    "ProductivityRule",
    "SituationRow",
    "SystemClock",
    "TRIP_WORKFLOW",
    "TripInput",
    "TripRecord",
    "TripStatus",
    "TripView",
    "TruckInfo",
    "TruckTrips",
    "compute_profit",
    "normalize_plate",
    "parse_entity_id",
    "parse_money",
]
