"""
Reference keys (``fleet_kernel.domain.references``).

Pure normalization of the human-facing keys that identify referenced
entities at the boundary: a truck plate, or the numeric id of a driver,
client or trip.  No I/O; the ReferenceResolver service does the lookups.
"""

from __future__ import annotations

from decimal import Decimal
from enum import Enum
from typing import Any

from fleet_kernel.exceptions import InvalidInputError

PLATE_MAX_LENGTH = 10

# Largest value an INTEGER primary key can hold
MAX_ENTITY_ID = 2**31 - 1


class EntityKind(str, Enum):
    """Kinds of entity a trip references."""

    TRUCK = "truck"
    DRIVER = "driver"
    CLIENT = "client"


def normalize_plate(value: Any, field: str = "truck_plate") -> str:
    """
    Trim and uppercase a plate.

    Raises:
        InvalidInputError: not a string, empty after trimming, or longer
            than PLATE_MAX_LENGTH.
    """
    if not isinstance(value, str) or not value.strip():
        raise InvalidInputError(field, "plate is required")
    plate = value.strip().upper()
    if len(plate) > PLATE_MAX_LENGTH:
        raise InvalidInputError(
            field, f"plate must be at most {PLATE_MAX_LENGTH} characters"
        )
    return plate


def _is_integer_text(text: str) -> bool:
    digits = text[1:] if text.startswith(("+", "-")) else text
    return digits.isascii() and digits.isdecimal() and len(digits) <= 19


def parse_entity_id(value: Any, field: str) -> int:
    """
    Parse an integer id from an int, an integral Decimal, or a digit string.

    Booleans, floats with a fraction, and non-numeric strings are rejected.

    Raises:
        InvalidInputError: value is missing or not an integer.
    """
    if value is None:
        raise InvalidInputError(field, "is required")
    if isinstance(value, bool):
        raise InvalidInputError(field, "must be an integer")
    if isinstance(value, int):
        parsed = value
    elif isinstance(value, Decimal) and value.is_finite() and value == value.to_integral_value():
        parsed = int(value)
    elif isinstance(value, str) and _is_integer_text(value.strip()):
        parsed = int(value.strip())
    else:
        raise InvalidInputError(field, "must be an integer")
    if parsed <= 0 or parsed > MAX_ENTITY_ID:
        raise InvalidInputError(field, "must be a positive integer")
    return parsed
