"""
Data Transfer Objects for the fleet kernel.

Immutable value objects returned by services and selectors.  No ORM
dependencies: callers can hold on to them after the session is closed and
serialize them with ``to_dict()``.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from decimal import Decimal
from typing import Any


def _plain(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    return value


class _Serializable:
    def to_dict(self) -> dict[str, Any]:
        """JSON-friendly mapping (Decimals rendered as strings)."""
        return _plain(asdict(self))


@dataclass(frozen=True)
class TruckInfo(_Serializable):
    id: int
    plate: str
    name: str | None
    status: str


@dataclass(frozen=True)
class DriverInfo(_Serializable):
    id: int
    name: str
    phone: str | None
    license_number: str | None = None


@dataclass(frozen=True)
class ClientInfo(_Serializable):
    id: int
    name: str
    phone: str | None
    email: str | None
    address: str | None


@dataclass(frozen=True)
class TripRecord(_Serializable):
    """A persisted trip with its resolved foreign ids."""

    id: int
    truck_id: int
    driver_id: int
    client_id: int
    start_date: str
    end_date: str
    origin: str
    destination: str
    revenue: Decimal
    cost: Decimal
    profit: Decimal
    completion_date: str | None
    status: str

    @property
    def is_finished(self) -> bool:
        return self.status == "Finished"


@dataclass(frozen=True)
class TripView(_Serializable):
    """A trip joined with the names of the entities it references."""

    id: int
    plate: str
    truck_name: str | None
    driver_id: int
    driver_name: str
    client_id: int
    client_name: str
    start_date: str
    end_date: str
    origin: str
    destination: str
    revenue: Decimal
    cost: Decimal
    profit: Decimal
    completion_date: str | None
    status: str


@dataclass(frozen=True)
class TruckTrips(_Serializable):
    """All trips hauled by one truck."""

    plate: str
    trips: tuple[TripView, ...]


@dataclass(frozen=True)
class SituationRow(_Serializable):
    """Where an in-progress trip stands: who is driving what, for whom."""

    plate: str
    trip_id: int
    start_date: str
    status: str
    origin: str
    destination: str
    driver_name: str
    client_name: str


@dataclass(frozen=True)
class ProductivityRow(_Serializable):
    """One trip's financial outcome with its profit/loss classification."""

    plate: str
    profit: Decimal
    completion_date: str | None
    driver_name: str
    origin: str
    destination: str
    classification: str
