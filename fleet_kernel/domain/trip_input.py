"""
Trip input schema (``fleet_kernel.domain.trip_input``).

Responsibility
--------------
The boundary validation step for trip mutations.  Raw payloads (decoded
JSON, form data, keyword arguments) are parsed into a frozen ``TripInput``
before any domain logic or store access runs.

Invariants enforced
-------------------
* Fields are checked in a fixed order and the first violation wins, so a
  caller always gets the same ``InvalidInputError.field`` for the same bad
  payload.
* Money is Decimal.  Floats are accepted only through their ``str()`` form;
  NaN, infinities and booleans are rejected.
* ``status`` is exactly one of the TripStatus values.
* ``profit`` is never read from the payload; it is always derived.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any

from fleet_kernel.db.types import (
    DATE_LENGTH,
    PLACE_LENGTH,
    money_from_str,
    round_money,
)
from fleet_kernel.domain.references import normalize_plate, parse_entity_id
from fleet_kernel.domain.trip_workflow import TripStatus
from fleet_kernel.exceptions import InvalidInputError

_VALID_STATUSES = tuple(s.value for s in TripStatus)

# Numeric(18, 2) holds 16 integer digits
MONEY_LIMIT = Decimal(10) ** 16


def _check_length(text: str, field: str, max_length: int | None) -> str:
    if max_length is not None and len(text) > max_length:
        raise InvalidInputError(field, f"must be at most {max_length} characters")
    return text


def require_text(value: Any, field: str, max_length: int | None = None) -> str:
    """Non-empty string, trimmed, no longer than max_length."""
    if not isinstance(value, str) or not value.strip():
        raise InvalidInputError(field, "must be a non-empty string")
    return _check_length(value.strip(), field, max_length)


def optional_text(
    value: Any, field: str, max_length: int | None = None
) -> str | None:
    """None/empty means absent; otherwise a trimmed string within max_length."""
    if value is None:
        return None
    if not isinstance(value, str):
        raise InvalidInputError(field, "must be a string")
    text = value.strip()
    return _check_length(text, field, max_length) if text else None


def parse_money(value: Any, field: str) -> Decimal:
    """
    Parse a non-negative monetary amount.

    Raises:
        InvalidInputError: missing, non-numeric, non-finite, negative, or
            at least MONEY_LIMIT once rounded to cents.
    """
    if value is None or isinstance(value, bool):
        raise InvalidInputError(field, "must be a number")
    try:
        if isinstance(value, Decimal):
            amount = value
        elif isinstance(value, (int, float)):
            amount = money_from_str(str(value))
        elif isinstance(value, str):
            amount = money_from_str(value)
        else:
            raise InvalidInputError(field, "must be a number")
    except (ValueError, InvalidOperation):
        raise InvalidInputError(field, "must be a number") from None
    if not amount.is_finite():
        raise InvalidInputError(field, "must be a finite number")
    if amount < 0:
        raise InvalidInputError(field, "must not be negative")
    # quantize overflows the context past the limit, so round only in range;
    # rounding can still carry a value up to the limit
    if amount < MONEY_LIMIT:
        amount = round_money(amount)
    if amount >= MONEY_LIMIT:
        raise InvalidInputError(field, "is too large")
    return amount


def parse_status(value: Any, field: str = "status") -> TripStatus:
    if not isinstance(value, str) or value not in _VALID_STATUSES:
        raise InvalidInputError(
            field, f"must be one of {', '.join(_VALID_STATUSES)}"
        )
    return TripStatus(value)


@dataclass(frozen=True)
class TripInput:
    """Validated payload for creating or editing a trip.

    ``truck_plate`` is already normalized (trimmed, uppercase).  ``cost`` is
    None when the caller did not supply it.
    """

    truck_plate: str
    driver_id: int
    client_id: int
    start_date: str
    end_date: str
    origin: str
    destination: str
    revenue: Decimal
    status: TripStatus
    cost: Decimal | None = None
    completion_date: str | None = None

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> TripInput:
        """
        Parse a raw payload.

        Raises:
            InvalidInputError: for the first field that fails validation.
        """
        if not isinstance(payload, Mapping):
            raise InvalidInputError("payload", "must be a mapping")

        truck_plate = normalize_plate(payload.get("truck_plate"))
        driver_id = parse_entity_id(payload.get("driver_id"), "driver_id")
        client_id = parse_entity_id(payload.get("client_id"), "client_id")
        start_date = require_text(payload.get("start_date"), "start_date", DATE_LENGTH)
        end_date = require_text(payload.get("end_date"), "end_date", DATE_LENGTH)
        origin = require_text(payload.get("origin"), "origin", PLACE_LENGTH)
        destination = require_text(
            payload.get("destination"), "destination", PLACE_LENGTH
        )
        revenue = parse_money(payload.get("revenue"), "revenue")

        raw_cost = payload.get("cost")
        cost = None if raw_cost is None else parse_money(raw_cost, "cost")

        status = parse_status(payload.get("status"))
        completion_date = optional_text(
            payload.get("completion_date"), "completion_date", DATE_LENGTH
        )

        return cls(
            truck_plate=truck_plate,
            driver_id=driver_id,
            client_id=client_id,
            start_date=start_date,
            end_date=end_date,
            origin=origin,
            destination=destination,
            revenue=revenue,
            status=status,
            cost=cost,
            completion_date=completion_date,
        )
