"""
Amount Handling Module

Fixed-point amounts with two fractional digits. NEVER uses float for
monetary values: inputs are converted through str() into Decimal and
quantized to cents.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any

from .errors import InvalidAmount, InvalidLimit

CENTS = Decimal('0.01')
ZERO = Decimal('0.00')
# Largest values of the DECIMAL(15,2) money columns and DECIMAL(10,2) card limits
MAX_AMOUNT = Decimal('9999999999999.99')
MAX_DAILY_LIMIT = Decimal('99999999.99')


def to_decimal(value: Any) -> Decimal:
    """
    Convert an arbitrary input to a Decimal quantized to cents.

    Raises:
        InvalidOperation: if the value is not a finite number
    """
    if isinstance(value, bool):
        raise InvalidOperation(f"Not a number: {value!r}")
    if isinstance(value, Decimal):
        amount = value
    else:
        amount = Decimal(str(value).strip())
    if not amount.is_finite():
        raise InvalidOperation(f"Not a finite number: {value!r}")
    return amount.quantize(CENTS, rounding=ROUND_HALF_UP)


def parse_amount(value: Any) -> Decimal:
    """Parse a strictly positive amount, raising InvalidAmount otherwise"""
    try:
        amount = to_decimal(value)
    except (InvalidOperation, ValueError, TypeError):
        raise InvalidAmount(f"Invalid amount: {value!r}")
    if amount <= ZERO:
        raise InvalidAmount(f"Amount must be positive: {value!r}")
    if amount > MAX_AMOUNT:
        raise InvalidAmount(f"Amount exceeds {format_amount(MAX_AMOUNT)}: {value!r}")
    return amount


def parse_limit(value: Any) -> Decimal:
    """Parse a non-negative daily limit, raising InvalidLimit otherwise"""
    try:
        limit = to_decimal(value)
    except (InvalidOperation, ValueError, TypeError):
        raise InvalidLimit(f"Invalid daily limit: {value!r}")
    if limit < ZERO:
        raise InvalidLimit(f"Daily limit must not be negative: {value!r}")
    if limit > MAX_DAILY_LIMIT:
        raise InvalidLimit(f"Daily limit exceeds {format_amount(MAX_DAILY_LIMIT)}: {value!r}")
    return limit


def format_amount(amount: Decimal) -> str:
    """Format for storage and JSON payloads ("12.50")"""
    return str(amount.quantize(CENTS, rounding=ROUND_HALF_UP))
