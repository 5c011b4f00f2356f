from __future__ import annotations
import re
from datetime import date

from core.errors import InvalidDateError, InvalidTimeError

MINUTES_PER_DAY = 24 * 60
SLOT_DURATION_MINUTES = 30
END_OF_DAY = "24:00"

_HHMM = re.compile(r"^(\d{2}):(\d{2})$")


def time_to_minutes(value: str, *, allow_end_of_day: bool = False) -> int:
    """
    "HH:MM" -> minutes since midnight, in [0, 1439].
    With allow_end_of_day=True the end boundary token "24:00" maps to 1440.
    """
    if not isinstance(value, str):
        raise InvalidTimeError(f"time must be an 'HH:MM' string, got {value!r}")
    m = _HHMM.match(value)
    if not m:
        raise InvalidTimeError(f"time must be formatted 'HH:MM', got {value!r}")
    hours, minutes = int(m.group(1)), int(m.group(2))
    if allow_end_of_day and value == END_OF_DAY:
        return MINUTES_PER_DAY
    if hours > 23 or minutes > 59:
        raise InvalidTimeError(f"time out of range: {value!r}")
    return hours * 60 + minutes


def minutes_to_time(minutes: int) -> str:
    # wraps into [0, 1440) first: 1500 -> "01:00", -60 -> "23:00"
    normalized = minutes % MINUTES_PER_DAY
    return f"{normalized // 60:02d}:{normalized % 60:02d}"


def is_slot_aligned(value: str, *, allow_end_of_day: bool = False) -> bool:
    return time_to_minutes(value, allow_end_of_day=allow_end_of_day) % SLOT_DURATION_MINUTES == 0


def parse_date(value: date | str) -> date:
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise InvalidDateError(f"date must be an ISO 'YYYY-MM-DD' string, got {value!r}")
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise InvalidDateError(f"unparsable date {value!r}: {exc}") from exc
