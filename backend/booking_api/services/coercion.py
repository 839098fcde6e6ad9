"""
Safe value coercion used by every row-preparation step.
None of these helpers raise: absent or unparsable input yields the fallback.
"""

from __future__ import annotations
from datetime import date, datetime, timezone
from typing import Any, Optional
import math
import re

_INT_RE = re.compile(r"\s*([+-]?\d+)")
_FLOAT_RE = re.compile(r"\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")

SOURCES = ("manual", "connector", "import", "database", "api", "migration")
_SOURCE_ALIASES = {
    "integration": "connector",
    "imported": "import",
    "db": "database",
}


def utcnow() -> datetime:
    """Naive UTC timestamp, the representation stored in DateTime columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def _parse(value: Any) -> Optional[datetime]:
    """Parse a date-like value, keeping any UTC offset it carries."""
    if value is None or value == "" or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, (int, float)):
        if isinstance(value, float) and not math.isfinite(value):
            return None
        try:
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, str):
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            return datetime.fromisoformat(text)
        except ValueError:
            return None
    return None


def safe_date(value: Any, fallback: Optional[datetime] = None) -> Optional[datetime]:
    """
    Parse a date-like value into a naive UTC datetime.

    Accepts datetime/date objects, ISO-8601 strings (a trailing "Z" is
    understood) and epoch milliseconds. Returns ``fallback`` when the value is
    absent or cannot be parsed.
    """
    parsed = _parse(value)
    if parsed is None:
        return fallback
    return _to_naive_utc(parsed)


def calendar_day(value: Any) -> Optional[date]:
    """The value's own calendar day, read in its own offset (naive values as UTC)."""
    parsed = _parse(value)
    return parsed.date() if parsed is not None else None


def today_for(value: Any) -> date:
    """Today's date in the offset carried by ``value``, UTC when it has none."""
    parsed = _parse(value)
    tz = parsed.tzinfo if parsed is not None and parsed.tzinfo is not None else timezone.utc
    return datetime.now(tz).date()


def safe_day(value: Any, fallback: Optional[date] = None) -> Optional[date]:
    """safe_date reduced to the calendar day."""
    parsed = safe_date(value)
    if parsed is None:
        if isinstance(fallback, datetime):
            return fallback.date()
        return fallback
    return parsed.date()


def safe_date_string(value: Any, fallback: Optional[date] = None) -> Optional[str]:
    """safe_date formatted as YYYY-MM-DD (time of day stripped)."""
    day = safe_day(value, fallback)
    return day.isoformat() if day is not None else None


def parse_int(value: Any, default: Optional[int] = 0) -> Optional[int]:
    """Integer with leading-digit parsing ("12abc" -> 12); default when unparsable."""
    if value is None or value == "" or isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else default
    match = _INT_RE.match(str(value))
    return int(match.group(1)) if match else default


def parse_float(value: Any, default: Optional[float] = 0.0) -> Optional[float]:
    """Float with leading-number parsing; default when unparsable or not finite."""
    if value is None or value == "" or isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        number = float(value)
        return number if math.isfinite(number) else default
    match = _FLOAT_RE.match(str(value))
    if not match:
        return default
    number = float(match.group(1))
    return number if math.isfinite(number) else default


def normalize_source(value: Any) -> str:
    """Map a free-text source tag onto SOURCES; anything unknown is 'manual'."""
    if not isinstance(value, str):
        return "manual"
    tag = value.strip().lower()
    tag = _SOURCE_ALIASES.get(tag, tag)
    return tag if tag in SOURCES else "manual"
