"""Timestamp normalization for ledger entries.

Every entry timestamp is stored as a canonical string: ISO-8601, UTC, with
millisecond precision (``2018-01-01T00:00:00.000Z``). Inputs may be:

- a ``datetime`` (naive values are taken as UTC) or a ``date`` (midnight UTC),
- an ISO-8601 string, read with :meth:`datetime.fromisoformat`,
- a number of milliseconds since the Unix epoch.

Sub-millisecond precision is truncated.

Two entry points share one reader. :func:`normalize_timestamp` raises on bad
input and is used when building entries; :func:`parse_timestamp` returns
``None`` instead and is used where an unreadable timestamp must simply fail a
comparison.
"""

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
import math
from typing import Optional, Union

from .exceptions import LedgerError, LedgerTypeError, TimestampFormatError

TimestampInput = Union[datetime, date, str, int, float, Decimal]

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def _truncate_ms(value: datetime) -> datetime:
    return value.replace(microsecond=value.microsecond // 1000 * 1000)


def _from_datetime(value: datetime) -> Union[datetime, LedgerError]:
    if value.tzinfo is None or value.tzinfo.utcoffset(value) is None:
        return _truncate_ms(value.replace(tzinfo=timezone.utc))
    try:
        return _truncate_ms(value.astimezone(timezone.utc))
    except OverflowError:
        return TimestampFormatError(f"Date is outside the representable range: {value!r}")


def _from_epoch_ms(value: Union[int, float, Decimal]) -> Union[datetime, LedgerError]:
    if isinstance(value, Decimal):
        if not value.is_finite():
            return TimestampFormatError("Date number format is not valid.")
    elif isinstance(value, float) and (math.isnan(value) or math.isinf(value)):
        return TimestampFormatError("Date number format is not valid.")
    try:
        return _EPOCH + timedelta(milliseconds=int(value))
    except OverflowError:
        return TimestampFormatError(f"Date number is outside the representable range: {value}")


def _from_string(value: str) -> Union[datetime, LedgerError]:
    try:
        parsed = datetime.fromisoformat(value.strip())
    except ValueError:
        return TimestampFormatError(f"Date string format is not readable: {value!r}")
    return _from_datetime(parsed)


def _read(value: object) -> Union[datetime, LedgerError]:
    """Read any supported input into an aware UTC datetime, or an error value."""
    if isinstance(value, datetime):
        return _from_datetime(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if isinstance(value, str):
        return _from_string(value)
    # bool is an int subclass but never a point in time
    if isinstance(value, (int, float, Decimal)) and not isinstance(value, bool):
        return _from_epoch_ms(value)
    return LedgerTypeError(f"Invalid type of date input was provided: {type(value).__name__}")


def format_timestamp(value: datetime) -> str:
    """Render an aware UTC datetime in canonical form.

    Example:
        >>> format_timestamp(datetime(2018, 1, 1, tzinfo=timezone.utc))
        '2018-01-01T00:00:00.000Z'
    """
    return f"{value:%Y-%m-%dT%H:%M:%S}.{value.microsecond // 1000:03d}Z"


def normalize_timestamp(value: Optional[TimestampInput] = None) -> str:
    """Normalize a timestamp input to its canonical string.

    Args:
        value: Datetime, date, ISO-8601 string or epoch milliseconds.
            ``None`` means the current time.

    Returns:
        Canonical ISO-8601 UTC string with millisecond precision.

    Raises:
        TimestampFormatError: If a string or number is not a valid point in time.
        LedgerTypeError: If the input is of an unsupported type.

    Example:
        >>> normalize_timestamp(0)
        '1970-01-01T00:00:00.000Z'
        >>> normalize_timestamp("2018-01-01T01:00:00+01:00")
        '2018-01-01T00:00:00.000Z'
    """
    result = _read(utc_now() if value is None else value)
    if isinstance(result, LedgerError):
        raise result
    return format_timestamp(result)


def parse_timestamp(value: object) -> Optional[datetime]:
    """Parse a timestamp for comparison, returning ``None`` if unreadable.

    Empty and missing values are unreadable.
    """
    if value is None or (isinstance(value, str) and not value):
        return None
    result = _read(value)
    if isinstance(result, LedgerError):
        return None
    return result
