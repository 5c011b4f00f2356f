"""
Effective availability engine.

Priority, lowest to highest:
    available_pattern < blocked_pattern < available_override < blocked_override

Per UTC date D (weekday W):
    1. union of available patterns for W
    2. minus blocked patterns for W
    3. plus available overrides for D
    4. minus blocked overrides for D (applied last, so it outranks everything)

Only intervals that overlap or touch are merged; a gap between two
available ranges is never bridged. Everything here is pure: rules are read,
never mutated, and results are rebuilt on every call.
"""
from __future__ import annotations
import datetime as dt
from collections import defaultdict
from typing import Iterable, Mapping

from .ranges import TimeRange, add_ranges, create_range, merge_ranges, minute_in_ranges, split_at_midnight, subtract_ranges
from .schema import AvailabilityRule, DateRange, DayAvailability, RuleType
from .timecodec import parse_date, time_to_minutes
from .timezone import utc_day_of_week


class RuleIndex:
    """Rules bucketed by (type, weekday) and (type, date), built once per query."""

    def __init__(self, rules: Iterable[AvailabilityRule]):
        self._by_weekday: dict[tuple[RuleType, int], list[TimeRange]] = defaultdict(list)
        self._by_date: dict[tuple[RuleType, dt.date], list[TimeRange]] = defaultdict(list)
        for rule in rules:
            r = create_range(rule.start_time, rule.end_time)
            if rule.is_pattern:
                self._by_weekday[(rule.rule_type, rule.day_of_week)].append(r)
            else:
                self._by_date[(rule.rule_type, rule.specific_date)].append(r)

    def patterns(self, rule_type: RuleType, weekday: int) -> list[TimeRange]:
        return self._by_weekday.get((rule_type, weekday), [])

    def overrides(self, rule_type: RuleType, day: dt.date) -> list[TimeRange]:
        return self._by_date.get((rule_type, day), [])


def _resolve_day(index: RuleIndex, day: dt.date) -> DayAvailability:
    weekday = utc_day_of_week(day)

    available = merge_ranges(index.patterns(RuleType.available_pattern, weekday))
    blocked_patterns = index.patterns(RuleType.blocked_pattern, weekday)
    available = subtract_ranges(available, blocked_patterns)

    available = add_ranges(available, index.overrides(RuleType.available_override, day))
    blocked_overrides = index.overrides(RuleType.blocked_override, day)
    available = subtract_ranges(available, blocked_overrides)

    return DayAvailability(
        date=day,
        available_ranges=available,
        blocked_ranges=merge_ranges([*blocked_patterns, *blocked_overrides]),
    )


def compute_effective_for_date(rules: Iterable[AvailabilityRule], day: dt.date | str) -> DayAvailability:
    return _resolve_day(RuleIndex(rules), parse_date(day))


def compute_effective_ranges(
    rules: Iterable[AvailabilityRule],
    date_range: DateRange,
) -> dict[dt.date, DayAvailability]:
    """
    Effective availability for every UTC date in date_range (inclusive),
    keyed by date in ascending order.

    Ranges may end past 1440 for overnight spans; they are not split onto
    the following date here (see split_overnight).
    """
    index = RuleIndex(rules)
    return {day: _resolve_day(index, day) for day in date_range.days()}


def is_slot_available(rules: Iterable[AvailabilityRule], day: dt.date | str, time: str) -> bool:
    effective = compute_effective_for_date(rules, day)
    return minute_in_ranges(time_to_minutes(time), effective.available_ranges)


def split_overnight(days: Mapping[dt.date, DayAvailability]) -> dict[dt.date, DayAvailability]:
    """
    Cut every range at 24:00 and move the continuation onto the next date.

    The continuation is merged with that date's own ranges. A continuation
    out of the last date in `days` produces an entry for the date after it.
    """
    carried: dict[dt.date, list[TimeRange]] = defaultdict(list)
    carried_blocked: dict[dt.date, list[TimeRange]] = defaultdict(list)
    same_day: dict[dt.date, list[TimeRange]] = {}
    same_day_blocked: dict[dt.date, list[TimeRange]] = {}

    for day, availability in days.items():
        nxt = day + dt.timedelta(days=1)
        same_day[day] = _split_into(availability.available_ranges, carried[nxt])
        same_day_blocked[day] = _split_into(availability.blocked_ranges, carried_blocked[nxt])

    out: dict[dt.date, DayAvailability] = {}
    for day in sorted(set(same_day) | {d for d, v in carried.items() if v} | {d for d, v in carried_blocked.items() if v}):
        out[day] = DayAvailability(
            date=day,
            available_ranges=merge_ranges([*same_day.get(day, []), *carried.get(day, [])]),
            blocked_ranges=merge_ranges([*same_day_blocked.get(day, []), *carried_blocked.get(day, [])]),
        )
    return out


def _split_into(ranges: Iterable[TimeRange], next_day: list[TimeRange]) -> list[TimeRange]:
    kept: list[TimeRange] = []
    for r in ranges:
        head, tail = split_at_midnight(r)
        if head is not None:
            kept.append(head)
        if tail is not None:
            next_day.append(tail)
    return kept
