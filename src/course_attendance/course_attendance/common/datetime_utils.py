from __future__ import annotations

from datetime import date, datetime, time
from typing import Optional

from ..core.exceptions import ValidationError


def parse_datetime(value) -> datetime:
    """Parse a caller-supplied date into a naive datetime.

    Accepts ``date``/``datetime`` objects, ``YYYY-MM-DD`` and full ISO strings
    (a trailing ``Z`` or offset is dropped without conversion, so the calendar
    day the caller sent is the day that gets stored).
    """

    if isinstance(value, datetime):
        return value.replace(tzinfo=None)
    if isinstance(value, date):
        return datetime.combine(value, time.min)

    raw = str(value or "").strip()
    if not raw:
        raise ValidationError("Date is required")
    if raw.endswith("Z"):
        raw = raw[:-1]
    try:
        return datetime.fromisoformat(raw).replace(tzinfo=None)
    except ValueError:
        raise ValidationError("Invalid date format")


def parse_optional_day(value) -> Optional[date]:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return parse_datetime(value).date()


def day_window(value: datetime | date) -> tuple[datetime, datetime]:
    """[start_of_day, end_of_day] for the calendar day of ``value``."""
    day = value.date() if isinstance(value, datetime) else value
    return datetime.combine(day, time.min), datetime.combine(day, time.max)
