"""Session identity.

A class session is (calendar day, time slot, component). Every comparison of
"is this the same session" in the package goes through ``session_key``, which
canonicalizes times itself so "9:00" and "09:00" name the same session.
"""

from __future__ import annotations

from typing import Optional

from ..common.validators import canonical_time
from ..core.constants import DEFAULT_SESSION_COMPONENT
from .model import AttendanceRecord


def session_key(record: AttendanceRecord) -> str:
    day = record.date.isoformat()[:10]
    slot = f"{canonical_time(record.start_time) or ''}{canonical_time(record.end_time) or ''}"
    component = record.component.value if record.component else DEFAULT_SESSION_COMPONENT
    return f"{day}_{slot}_{component}"


def time_slot_label(record: AttendanceRecord) -> Optional[str]:
    start, end = canonical_time(record.start_time), canonical_time(record.end_time)
    if start and end:
        return f"{start}-{end}"
    return None
