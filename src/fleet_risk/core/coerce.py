from __future__ import annotations

import math
from datetime import date, datetime, timezone
from typing import Any, Optional

_SECONDS_PER_DAY = 86400


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_number(value: Any) -> Optional[float]:
    """
    Return value as a finite float, or None when nothing usable was reported.

    Booleans, strings and other objects are treated as "not reported" rather
    than parsed; the column mapping upstream owns text parsing.
    """
    if value is None or isinstance(value, bool):
        return None
    if not isinstance(value, (int, float)):
        return None
    try:
        number = float(value)
    except OverflowError:
        return None
    if not math.isfinite(number):
        return None
    return number


def to_flag(value: Any) -> bool:
    return value is True


def parse_timestamp(value: Any) -> Optional[datetime]:
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def days_since(timestamp: Any, as_of: Optional[datetime] = None) -> Optional[int]:
    """Whole days elapsed since timestamp (negative for future dates)."""
    parsed = parse_timestamp(timestamp)
    if parsed is None:
        return None
    now = parse_timestamp(as_of) if as_of is not None else utc_now()
    if now is None:
        now = utc_now()
    return math.floor((now - parsed).total_seconds() / _SECONDS_PER_DAY)


def scan_age(timestamp: Any, as_of: Optional[datetime] = None) -> Optional[int]:
    age = days_since(timestamp, as_of)
    if age is None or age < 0:
        return None
    return age
