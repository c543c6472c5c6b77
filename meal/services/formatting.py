# meal/services/formatting.py
from __future__ import annotations

import json
import logging
from datetime import date, datetime, time, timezone as dt_timezone
from typing import Any, Optional

from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime

logger = logging.getLogger(__name__)

DISPLAY_FORMAT = "%d/%m/%Y, %H:%M:%S"
INVALID_DATE = "Invalid Date"


def coerce_datetime(value: Any) -> Optional[datetime]:
    """
    datetime | date | ISO 8601 string | epoch milliseconds -> datetime.
    Returns None when the value cannot be read as a date.
    Raises ValueError for strings shaped like a date but out of range.
    """
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time.min)
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value / 1000, tz=dt_timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, str):
        s = value.strip()
        if not s:
            return None
        parsed = parse_datetime(s)
        if parsed is None:
            d = parse_date(s)
            parsed = datetime.combine(d, time.min) if d else None
        return parsed
    return None


def to_local(value: datetime) -> datetime:
    if timezone.is_aware(value):
        return timezone.localtime(value)
    return value


def format_datetime(value: Any) -> str:
    """DD/MM/YYYY, HH:MM:SS in the configured time zone."""
    if not value:
        return "Unknown"
    try:
        parsed = coerce_datetime(value)
        if parsed is None:
            raise ValueError("unreadable date")
        # aware values near year 1 or 9999 overflow when shifted to local time
        return to_local(parsed).strftime(DISPLAY_FORMAT)
    except (ValueError, OverflowError) as e:
        logger.error(f"Date formatting error: {e} Input: {value!r}")
        return INVALID_DATE


def format_field_value(key: str, value: Any) -> str:
    if value is None:
        return "Not provided"

    if "date" in key or "time" in key:
        try:
            parsed = coerce_datetime(value)
            shown = to_local(parsed).strftime(DISPLAY_FORMAT) if parsed is not None else None
        except (ValueError, OverflowError):
            shown = None
        if shown is not None:
            return shown

    if ("latitude" in key or "longitude" in key or "coordinates" in key) and isinstance(value, (int, float)) \
            and not isinstance(value, bool):
        return f"{value:.6f}"

    if isinstance(value, bool):
        return "Yes" if value else "No"
    if isinstance(value, (list, tuple)):
        return ", ".join(str(v) for v in value)
    if isinstance(value, dict):
        return json.dumps(value, indent=2, ensure_ascii=False)
    return str(value)
