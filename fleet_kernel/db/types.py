"""
Column precision and width (``fleet_kernel.db.types``).

Trip amounts are stored as Numeric(18, 2).  Values are parsed from text
and quantized to cents with ROUND_HALF_UP in one place, here, so revenue,
cost and the derived profit always agree to the cent.

Text columns take their widths from the ``*_LENGTH`` constants below; the
boundary parsers check input against the same constants, so an over-long
value is rejected as invalid input instead of failing at the database.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

MONEY_DECIMAL_PLACES = 2
DEFAULT_ROUNDING = ROUND_HALF_UP

_CENT = Decimal(1).scaleb(-MONEY_DECIMAL_PLACES)

DATE_LENGTH = 50
PLACE_LENGTH = 255
NAME_LENGTH = 255
PHONE_LENGTH = 20
EMAIL_LENGTH = 255
ADDRESS_LENGTH = 500
STATUS_LENGTH = 50
LICENSE_LENGTH = 20


def money_from_str(value: str) -> Decimal:
    """
    Parse a textual amount, unrounded.

    Only ASCII digits, sign, point and exponent are accepted; Python's
    digit-group underscores ("1_000") and non-ASCII digits are not.

    Raises:
        ValueError: not a number, or NaN / infinity.
    """
    text = value.strip()
    if not text.isascii() or "_" in text:
        raise ValueError(f"not a number: {value!r}")
    try:
        amount = Decimal(text)
    except InvalidOperation:
        raise ValueError(f"not a number: {value!r}") from None
    if not amount.is_finite():
        raise ValueError(f"not a finite number: {value!r}")
    return amount


def round_money(value: Decimal, rounding: str = DEFAULT_ROUNDING) -> Decimal:
    """Quantize to cents (half-up by default)."""
    return value.quantize(_CENT, rounding=rounding)
