"""
Phone, date and amount normalizers.

Pure functions.  The date normalizer never raises: a value it cannot read
becomes the clock's current date.  The amount parser does raise
(``InvalidAmountError``) so callers can decide whether a bad amount rejects
the row; a missing amount is ``Decimal("0")``.
"""

from __future__ import annotations

import re
from datetime import date, datetime, timedelta
from decimal import Decimal, InvalidOperation
from typing import Any

from dateutil import parser as date_parser

from ledger_kernel.domain.clock import Clock, SystemClock
from ledger_kernel.exceptions import InvalidAmountError

ZERO = Decimal("0")

# Serial day 0.  1899-12-31 is day 1 in spreadsheet arithmetic, and the
# phantom 1900-02-29 shifts every later serial by one more day.
SPREADSHEET_EPOCH = date(1899, 12, 30)

_COUNTRY_PREFIX = "91"
_NON_DIGIT = re.compile(r"\D")
_ISO_PREFIX = re.compile(r"^(\d{4})-(\d{2})-(\d{2})")
_DAY_MONTH_YEAR = re.compile(r"^(\d{1,2})[/-](\d{1,2})[/-](\d{4})$")
_AMOUNT_NOISE = re.compile(r"[\s,₹]|^Rs\.?", re.IGNORECASE)


def normalize_phone(value: Any) -> str:
    """
    Reduce a phone value to its national number.

    Strips non-digits; drops a ``91`` prefix from 12-digit numbers and a
    leading ``0`` from 11-digit numbers; anything still longer than 10
    digits keeps its last 10.  Shorter results are returned as-is.
    """
    if value is None:
        return ""
    digits = _NON_DIGIT.sub("", str(value))
    if len(digits) == 12 and digits.startswith(_COUNTRY_PREFIX):
        digits = digits[2:]
    elif len(digits) == 11 and digits.startswith("0"):
        digits = digits[1:]
    if len(digits) > 10:
        digits = digits[-10:]
    return digits


def serial_to_date(serial: int | float | Decimal) -> date:
    """Convert a spreadsheet serial day number to a date (fraction dropped)."""
    return SPREADSHEET_EPOCH + timedelta(days=int(serial))


def parse_date(value: Any, clock: Clock | None = None) -> date:
    """
    Read a date from any of the forms found in exports.

    Accepted, in order: date/datetime objects; numeric spreadsheet serials;
    ``YYYY-MM-DD`` prefixed strings; ``D/M/YYYY`` or ``D-M-YYYY``; anything
    ``dateutil`` understands (day-first).  Empty or unreadable input yields
    ``clock.today()``.
    """
    clock = clock or SystemClock()

    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, (int, float, Decimal)) and not isinstance(value, bool):
        try:
            return serial_to_date(value)
        except (OverflowError, ValueError):
            return clock.today()

    text = str(value).strip() if value is not None else ""
    if not text:
        return clock.today()

    match = _ISO_PREFIX.match(text)
    if match:
        try:
            return date(int(match.group(1)), int(match.group(2)), int(match.group(3)))
        except ValueError:
            pass

    match = _DAY_MONTH_YEAR.match(text)
    if match:
        try:
            return date(int(match.group(3)), int(match.group(2)), int(match.group(1)))
        except ValueError:
            pass

    try:
        return date_parser.parse(text, dayfirst=True).date()
    except (ValueError, OverflowError):
        return clock.today()


def normalize_date(value: Any, clock: Clock | None = None) -> str:
    """ISO ``YYYY-MM-DD`` form of :func:`parse_date`."""
    return parse_date(value, clock).isoformat()


def parse_amount(value: Any) -> Decimal:
    """
    Parse a monetary value without going through float.

    ``None`` and blank strings are zero.  Thousands separators, whitespace,
    the rupee sign and a leading ``Rs`` are ignored.  Floats are read via
    ``repr`` so ``0.1`` stays ``0.1``.

    Raises:
        InvalidAmountError: if the value is not a number.
    """
    if value is None:
        return ZERO
    if isinstance(value, bool):
        raise InvalidAmountError(value)
    if isinstance(value, Decimal):
        return value
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        return Decimal(repr(value))

    text = _AMOUNT_NOISE.sub("", str(value).strip())
    if not text:
        return ZERO
    try:
        amount = Decimal(text)
    except InvalidOperation:
        raise InvalidAmountError(value) from None
    if not amount.is_finite():
        raise InvalidAmountError(value)
    return amount


def amount_string(value: Any) -> str:
    """Canonical decimal string for a monetary value (see parse_amount)."""
    return str(parse_amount(value))
