"""Book serial numbers.

A serial is an optional alphabetic prefix followed by digits (``PSSM00041``).
Ranges keep the prefix and the zero padding of their start serial.
"""

import re

from booktracker.errors import ValidationError

_SERIAL_RE = re.compile(r'^(?P<prefix>\D*?)(?P<number>\d+)$')

# Upper bound on a single expanded range, so a typo cannot create a million rows
MAX_RANGE_SIZE = 10000


def split_serial(serial: str):
    """Split *serial* into ``(prefix, number, width)``, or None if it has no numeric tail."""
    match = _SERIAL_RE.match((serial or "").strip())
    if not match:
        return None
    digits = match.group("number")
    return match.group("prefix"), int(digits), len(digits)


def make_serial(prefix: str, number: int, width: int) -> str:
    return f"{prefix}{str(number).zfill(width)}"


def serial_sort_key(serial: str):
    parts = split_serial(serial)
    if parts is None:
        return (serial, -1)
    return (parts[0], parts[1])


def sort_serials(serials) -> list:
    return sorted(set(serials), key=serial_sort_key)


def expand_range(start: str, end: str) -> list:
    """Return every serial from *start* to *end* inclusive."""
    first = split_serial(start)
    last = split_serial(end)
    if first is None or last is None:
        raise ValidationError(f"Invalid serial range: {start} - {end}", field="serials")

    prefix, start_num, width = first
    end_prefix, end_num, _ = last
    if end_prefix != prefix:
        raise ValidationError(
            f"Serial range endpoints have different prefixes: {start} - {end}", field="serials"
        )
    if end_num < start_num:
        raise ValidationError(f"Invalid serial range: {start} - {end}", field="serials")
    if end_num - start_num + 1 > MAX_RANGE_SIZE:
        raise ValidationError(
            f"Serial range {start} - {end} exceeds {MAX_RANGE_SIZE} books", field="serials"
        )

    return [make_serial(prefix, n, width) for n in range(start_num, end_num + 1)]


def expand_count(start: str, count: int) -> list:
    """Return *count* consecutive serials beginning at *start*."""
    first = split_serial(start)
    if first is None:
        raise ValidationError(f"Invalid serial: {start}", field="serial_start")
    if count < 1:
        raise ValidationError("Count must be at least 1", field="count")
    prefix, start_num, width = first
    return expand_range(start, make_serial(prefix, start_num + count - 1, width))


def format_range(serials) -> str:
    """Display form of a serial set: ``-``, the single serial, or ``first - last``."""
    ordered = sort_serials(serials)
    if not ordered:
        return "-"
    if len(ordered) == 1:
        return ordered[0]
    return f"{ordered[0]} - {ordered[-1]}"
