import math
import re
from datetime import date, datetime, timezone
from typing import Any, Optional, Union

from pydantic import TypeAdapter, ValidationError

# Lenient datetime parsing: ISO-8601, bare YYYY-MM-DD, trailing Z
_datetime_adapter = TypeAdapter(datetime)

_NON_AMOUNT_CHARS = re.compile(r"[^\d-]")
_LEADING_INTEGER = re.compile(r"-?\d+")
# Bare numbers in a string are neither a calendar date nor a store timestamp
_NUMERIC_STRING = re.compile(r"[+-]?\d+(\.\d+)?")

Amount = Union[int, float]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def parse_date(value: Any) -> Optional[datetime]:
    """
    Best-effort conversion of a stored date into an aware datetime.
    Returns None when the value is empty or cannot be read as a point in time.
    Numbers are epoch milliseconds, the realtime store's timestamp format.
    """
    if not value:
        return None
    if isinstance(value, datetime):
        return _as_utc(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        if not math.isfinite(value):
            return None
        try:
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, str):
        text = value.strip()
        if _NUMERIC_STRING.fullmatch(text):
            return None
        try:
            return _as_utc(_datetime_adapter.validate_python(text))
        except ValidationError:
            return None
    return None


def coerce_date(value: Any, now: Optional[datetime] = None) -> datetime:
    """Always returns a valid datetime; unreadable input becomes the current time."""
    parsed = parse_date(value)
    if parsed is not None:
        return parsed
    return now if now is not None else utcnow()


def coerce_amount(value: Any) -> Amount:
    """
    Numbers pass through. Strings keep only digits and minus signs and are read
    as a leading integer ("PKR 12,345" -> 12345). Everything else is 0.
    """
    if isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        return value if math.isfinite(value) else 0
    if isinstance(value, str):
        digits = _NON_AMOUNT_CHARS.sub("", value)
        match = _LEADING_INTEGER.match(digits)
        return int(match.group()) if match else 0
    return 0


def coerce_identifier(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def coerce_text(value: Any) -> Optional[str]:
    if value is None or isinstance(value, str):
        return value
    return str(value)
