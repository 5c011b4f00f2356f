"""
Timezone conversion for availability rules.

Rules are stored in UTC: patterns as (day_of_week, "HH:MM", "HH:MM"),
overrides as (date, "HH:MM", "HH:MM"). Converting a pattern can move it to a
different weekday, so the clock times are pushed through a concrete
reference week and the weekday shift is read off the converted date.

Daylight-saving policy: a local wall-clock time is always read with the
offset in force *before* a transition (fold=0). A time inside a
spring-forward gap or a fall-back overlap therefore resolves to the
pre-transition offset; such instants are the only ones where
local_to_utc/utc_to_local are not exact inverses.
"""
from __future__ import annotations
from datetime import date, datetime, timedelta, timezone
from typing import Iterable, Iterator, NamedTuple, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from core.errors import InvalidRuleError, UnknownTimezoneError
from .timecodec import END_OF_DAY, minutes_to_time, parse_date, time_to_minutes

UTC = "UTC"

# Sunday; REFERENCE_SUNDAY + n days falls on day_of_week n (0=Sun .. 6=Sat)
REFERENCE_SUNDAY = date(2024, 1, 7)

_ONE_DAY = timedelta(days=1)


class ZonedTime(NamedTuple):
    date: date
    time: str


class PatternTimes(NamedTuple):
    day_of_week: int
    start_time: str
    end_time: str
    crosses_midnight: bool


class OverrideTimes(NamedTuple):
    date: date
    start_time: str
    end_time: str
    crosses_midnight: bool


# ---------- helpers ----------

def get_zone(zone: str) -> ZoneInfo:
    if not isinstance(zone, str) or not zone:
        raise UnknownTimezoneError(str(zone))
    try:
        return ZoneInfo(zone)
    except (ZoneInfoNotFoundError, ValueError, OSError) as exc:
        # OSError: a tzdata directory such as "America" is not a zone
        raise UnknownTimezoneError(zone) from exc


def validate_zone(zone: str) -> str:
    get_zone(zone)
    return zone


def utc_day_of_week(d: date | str) -> int:
    """0=Sunday .. 6=Saturday (date.weekday() counts from Monday)."""
    return (parse_date(d).weekday() + 1) % 7


def date_range(start: date | str, end: date | str) -> Iterator[date]:
    first = parse_date(start)
    for offset in range((parse_date(end) - first).days + 1):
        yield first + timedelta(days=offset)


def _reference_date(day_of_week: int) -> date:
    if isinstance(day_of_week, bool) or not isinstance(day_of_week, int) or not 0 <= day_of_week <= 6:
        raise InvalidRuleError(f"day_of_week must be between 0 (Sunday) and 6 (Saturday), got {day_of_week!r}")
    return REFERENCE_SUNDAY + timedelta(days=day_of_week)


def _split_end_of_day(time: str, d: date) -> tuple[int, date]:
    # "24:00" is 00:00 of the following date
    minutes = time_to_minutes(time, allow_end_of_day=True)
    if time == END_OF_DAY:
        return 0, d + _ONE_DAY
    return minutes, d


def is_overnight(start_time: str, end_time: str) -> bool:
    """Wall-clock end at or before start (and not equal) means the span runs past midnight."""
    start = time_to_minutes(start_time)
    end = time_to_minutes(end_time, allow_end_of_day=True)
    return end <= start and start_time != end_time


# ---------- instants ----------

def local_to_utc(time: str, d: date | str, zone: str) -> ZonedTime:
    d = parse_date(d)
    tz = get_zone(zone)
    minutes, d = _split_end_of_day(time, d)
    if zone == UTC:
        return ZonedTime(d, minutes_to_time(minutes))

    local = datetime(d.year, d.month, d.day, minutes // 60, minutes % 60, tzinfo=tz, fold=0)
    as_utc = local.astimezone(timezone.utc)
    return ZonedTime(as_utc.date(), as_utc.strftime("%H:%M"))


def utc_to_local(time: str, d: date | str, zone: str) -> ZonedTime:
    d = parse_date(d)
    tz = get_zone(zone)
    minutes, d = _split_end_of_day(time, d)
    if zone == UTC:
        return ZonedTime(d, minutes_to_time(minutes))

    as_utc = datetime(d.year, d.month, d.day, minutes // 60, minutes % 60, tzinfo=timezone.utc)
    local = as_utc.astimezone(tz)
    return ZonedTime(local.date(), local.strftime("%H:%M"))


# ---------- weekly patterns ----------

def convert_pattern_to_utc(day_of_week: int, start_time: str, end_time: str, zone: str) -> PatternTimes:
    """
    Local weekly pattern -> UTC weekly pattern.

    Tuesday 01:00-05:00 in Asia/Manila (UTC+8) is Monday 17:00-21:00 UTC.
    """
    ref = _reference_date(day_of_week)
    validate_zone(zone)
    # must be decided on the source clock times, before any anchor is chosen
    overnight = is_overnight(start_time, end_time)

    if zone == UTC:
        return PatternTimes(day_of_week, start_time, end_time, overnight)

    utc_start = local_to_utc(start_time, ref, zone)
    utc_end = local_to_utc(end_time, ref + _ONE_DAY if overnight else ref, zone)

    shift = (utc_start.date - ref).days
    return PatternTimes(
        day_of_week=(day_of_week + shift) % 7,
        start_time=utc_start.time,
        end_time=utc_end.time,
        crosses_midnight=utc_end.date > utc_start.date,
    )


def convert_pattern_from_utc(
    day_of_week: int,
    start_time: str,
    end_time: str,
    zone: str,
    crosses_midnight: Optional[bool] = None,
) -> PatternTimes:
    """
    UTC weekly pattern -> local weekly pattern, for display and editing.

    crosses_midnight, when known, overrides the inference from the clock
    times; it is required to tell a stored full-day span (start == end)
    from an empty one.
    """
    ref = _reference_date(day_of_week)
    validate_zone(zone)
    overnight = is_overnight(start_time, end_time) if crosses_midnight is None else crosses_midnight

    if zone == UTC:
        return PatternTimes(day_of_week, start_time, end_time, overnight)

    local_start = utc_to_local(start_time, ref, zone)
    local_end = utc_to_local(end_time, ref + _ONE_DAY if overnight else ref, zone)

    shift = (local_start.date - ref).days
    end_out, crosses = _render_end(local_start, local_end)
    return PatternTimes(
        day_of_week=(day_of_week + shift) % 7,
        start_time=local_start.time,
        end_time=end_out,
        crosses_midnight=crosses,
    )


def convert_pattern_between_timezones(
    days: Iterable[int],
    start_time: str,
    end_time: str,
    from_zone: str,
    to_zone: str,
) -> tuple[list[int], str, str]:
    """Re-express a multi-day weekly pattern in another zone, via UTC."""
    days = list(days)
    if from_zone == to_zone:
        validate_zone(from_zone)
        return sorted(set(days)), start_time, end_time

    new_days: set[int] = set()
    new_start, new_end = start_time, end_time
    for day in days:
        utc = convert_pattern_to_utc(day, start_time, end_time, from_zone)
        local = convert_pattern_from_utc(utc.day_of_week, utc.start_time, utc.end_time, to_zone, utc.crosses_midnight)
        new_days.add(local.day_of_week)
        # every day shares the same clock times
        new_start, new_end = local.start_time, local.end_time
    return sorted(new_days), new_start, new_end


# ---------- dated overrides ----------

def convert_override_to_utc(local_date: date | str, start_time: str, end_time: str, zone: str) -> OverrideTimes:
    local_date = parse_date(local_date)
    validate_zone(zone)
    overnight = is_overnight(start_time, end_time)

    if zone == UTC:
        return OverrideTimes(local_date, start_time, end_time, overnight)

    utc_start = local_to_utc(start_time, local_date, zone)
    utc_end = local_to_utc(end_time, local_date + _ONE_DAY if overnight else local_date, zone)
    return OverrideTimes(
        date=utc_start.date,
        start_time=utc_start.time,
        end_time=utc_end.time,
        crosses_midnight=utc_end.date > utc_start.date,
    )


def convert_override_from_utc(
    utc_date: date | str,
    start_time: str,
    end_time: str,
    zone: str,
    crosses_midnight: Optional[bool] = None,
) -> OverrideTimes:
    utc_date = parse_date(utc_date)
    validate_zone(zone)
    overnight = is_overnight(start_time, end_time) if crosses_midnight is None else crosses_midnight

    if zone == UTC:
        return OverrideTimes(utc_date, start_time, end_time, overnight)

    local_start = utc_to_local(start_time, utc_date, zone)
    local_end = utc_to_local(end_time, utc_date + _ONE_DAY if overnight else utc_date, zone)
    end_out, crosses = _render_end(local_start, local_end)
    return OverrideTimes(
        date=local_start.date,
        start_time=local_start.time,
        end_time=end_out,
        crosses_midnight=crosses,
    )


def _render_end(local_start: ZonedTime, local_end: ZonedTime) -> tuple[str, bool]:
    # a span from local midnight to the next local midnight reads as 00:00-24:00
    if local_start.time == "00:00" and local_end.time == "00:00" and local_end.date > local_start.date:
        return END_OF_DAY, False
    return local_end.time, local_end.date > local_start.date
