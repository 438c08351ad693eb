from __future__ import annotations

import re
from typing import Optional

from ..core.enums import Component
from ..core.exceptions import ValidationError

_TIME_RE = re.compile(r"^([0-1]?[0-9]|2[0-3]):([0-5][0-9])$")
_ACADEMIC_YEAR_RE = re.compile(r"^\d{4}-\d{2}$")


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{field_name} is required")
    return value.strip()


def require_id(value, field_name: str = "ID") -> int:
    try:
        parsed = int(str(value).strip())
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid {field_name} format")
    if parsed <= 0:
        raise ValidationError(f"Invalid {field_name} format")
    return parsed


def is_valid_id(value) -> bool:
    try:
        require_id(value)
    except ValidationError:
        return False
    return True


def canonical_time(value: Optional[str]) -> Optional[str]:
    """Zero-padded ``HH:MM`` for a valid time, the stripped input otherwise.

    Never raises; empty values come back as None.
    """

    v = "".join((value or "").split())
    if not v:
        return None
    m = _TIME_RE.match(v)
    if not m:
        return v
    return f"{int(m.group(1)):02d}:{m.group(2)}"


def require_time(value: Optional[str], field_name: str) -> Optional[str]:
    """Validate a 24-hour ``HH:MM`` string and return it zero-padded.

    Empty values mean "no time slot" and come back as None.
    """

    if value is not None and not isinstance(value, str):
        raise ValidationError(f"Invalid {field_name} format. Use HH:MM format")
    v = canonical_time(value)
    if v is None:
        return None
    if not _TIME_RE.match(v):
        raise ValidationError(f"Invalid {field_name} format. Use HH:MM format")
    return v


def require_time_slot(
    start: Optional[str],
    end: Optional[str],
    label: str = "",
) -> tuple[Optional[str], Optional[str]]:
    """Canonical (start, end); a slot is either fully given or absent."""

    prefix = f"{label} " if label else ""
    start_time = require_time(start, f"{prefix}start time")
    end_time = require_time(end, f"{prefix}end time")
    if (start_time is None) != (end_time is None):
        raise ValidationError("Start and end time must be given together")
    return start_time, end_time


def parse_time_slot(value: Optional[str]) -> tuple[Optional[str], Optional[str]]:
    """Split "HH:MM - HH:MM" or "HH:MM-HH:MM" into canonical start/end."""

    if value is not None and not isinstance(value, str):
        raise ValidationError("Invalid time slot. Use HH:MM-HH:MM format")
    v = (value or "").strip()
    if not v:
        return None, None
    parts = [p.strip() for p in v.split("-")]
    if len(parts) != 2:
        raise ValidationError("Invalid time slot. Use HH:MM-HH:MM format")
    return require_time_slot(parts[0], parts[1])


def require_component(value) -> Optional[Component]:
    if value is None or value == "":
        return None
    if isinstance(value, Component):
        return value
    try:
        return Component(str(value).strip().lower())
    except ValueError:
        raise ValidationError("Component must be 'theory' or 'lab'")


def require_academic_year(value: Optional[str]) -> Optional[str]:
    if value is not None and not isinstance(value, str):
        raise ValidationError("Academic year must use YYYY-YY format")
    v = (value or "").strip()
    if not v:
        return None
    if not _ACADEMIC_YEAR_RE.match(v):
        raise ValidationError("Academic year must use YYYY-YY format")
    return v
