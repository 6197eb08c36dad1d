"""
Card number, CVV and expiry generation.

Numbers are brand prefix + random fill + Luhn check digit:
Visa "4" (16 digits), Mastercard "51"-"55" (16), Amex "34"/"37" (15).
"""

import calendar
import secrets
from datetime import datetime, timezone
from typing import Optional

BRAND_LENGTHS = {
    "visa": 16,
    "mastercard": 16,
    "amex": 15,
}


def luhn_check_digit(partial: str) -> int:
    """Check digit to append to partial so the whole number passes Luhn"""
    total = 0
    # The check digit will sit at position 0 from the right, so the
    # rightmost digit of partial is the first one doubled.
    for position, char in enumerate(reversed(partial)):
        digit = int(char)
        if position % 2 == 0:
            digit *= 2
            if digit > 9:
                digit -= 9
        total += digit
    return (10 - (total % 10)) % 10


def is_luhn_valid(number: str) -> bool:
    if not number or not number.isdigit():
        return False
    return luhn_check_digit(number[:-1]) == int(number[-1])


def _brand_prefix(card_type: str) -> str:
    if card_type == "visa":
        return "4"
    if card_type == "mastercard":
        return "5" + str(secrets.choice(range(1, 6)))
    if card_type == "amex":
        return "3" + secrets.choice("47")
    raise ValueError(f"Unknown card brand: {card_type}")


def generate_card_number(card_type: str) -> str:
    """Random Luhn-valid number for a brand (visa, mastercard, amex)"""
    prefix = _brand_prefix(card_type)
    length = BRAND_LENGTHS[card_type]
    fill = "".join(secrets.choice("0123456789") for _ in range(length - len(prefix) - 1))
    partial = prefix + fill
    return partial + str(luhn_check_digit(partial))


def generate_cvv() -> str:
    return str(100 + secrets.randbelow(900))


def expiration_date(issued_at: Optional[datetime] = None, years: int = 3) -> datetime:
    """Last instant of the month `years` after issuance"""
    issued_at = issued_at or datetime.now(timezone.utc)
    year = issued_at.year + years
    month = issued_at.month
    last_day = calendar.monthrange(year, month)[1]
    return issued_at.replace(
        year=year, month=month, day=last_day,
        hour=23, minute=59, second=59, microsecond=999000
    )
