"""Shared validation and parsing helpers."""

import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation

_EMAIL_RE = re.compile(r'^[^@\s]+@[^@\s]+\.[^@\s]+$')
_DIGITS_RE = re.compile(r'\D')

DATE_FORMATS = ("%Y-%m-%d", "%d/%m/%Y", "%d-%m-%Y", "%m/%d/%Y")


def is_valid_email(value: str) -> bool:
    """Return True if *value* looks like a valid email address."""
    return bool(value and _EMAIL_RE.match(value.strip()))


def is_valid_phone(value: str) -> bool:
    """Return True if *value* contains 10–15 digits.

    Accepts any mix of digits, spaces, hyphens, parentheses, dots, and a
    leading +.  Strips all non-digit characters before counting.
    """
    if not value:
        return False
    digits = _DIGITS_RE.sub('', value.strip())
    return 10 <= len(digits) <= 15


def clean(value) -> str:
    """Strip a form/CSV value, treating None as blank."""
    if value is None:
        return ""
    return str(value).strip()


def parse_int(value):
    """Parse an integer, returning None when *value* is not a whole number."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    value = clean(value)
    if not value:
        return None
    try:
        return int(value)
    except ValueError:
        return None


def parse_amount(value, default=Decimal("0")):
    """Parse a money amount; blank gives *default*, garbage gives None."""
    if isinstance(value, Decimal):
        return value
    value = clean(value)
    if not value:
        return default
    try:
        amount = Decimal(value)
    except InvalidOperation:
        return None
    if not amount.is_finite():
        return None
    return amount


def parse_date(value):
    """Parse a date string in the formats we accept, or None."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    value = clean(value)
    if not value:
        return None

    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(value, fmt).date()
        except ValueError:
            continue
    return None


def format_address(town, district, state, pincode=None, address_line=None) -> str:
    """Render structured address fields as a single display string."""
    parts = [p for p in (address_line, town, district, state) if p]
    text = ", ".join(parts)
    if pincode:
        text = f"{text} - {pincode}"
    return text
