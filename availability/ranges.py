"""
Minute-interval algebra used by the effective availability engine.

A TimeRange is a half-open interval [start_minutes, end_minutes) measured
from midnight of its anchor date. end_minutes may run past 1440 (up to 2880)
so an overnight span stays one interval; split_at_midnight is the single
place where it gets cut into "same date" and "next date" pieces.
"""
from __future__ import annotations
from typing import Iterable, Optional

from pydantic import BaseModel, ConfigDict, model_validator
from pydantic.alias_generators import to_camel

from .timecodec import MINUTES_PER_DAY, time_to_minutes

MAX_END_MINUTES = 2 * MINUTES_PER_DAY


class TimeRange(BaseModel):
    start_minutes: int
    end_minutes: int

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    @model_validator(mode="after")
    def check_bounds(self):
        if not (0 <= self.start_minutes < self.end_minutes <= MAX_END_MINUTES):
            raise ValueError(
                f"invalid range [{self.start_minutes}, {self.end_minutes}): "
                f"need 0 <= start < end <= {MAX_END_MINUTES}"
            )
        return self

    @property
    def duration(self) -> int:
        return self.end_minutes - self.start_minutes

    @property
    def is_overnight(self) -> bool:
        return self.end_minutes > MINUTES_PER_DAY


def make_range(start_minutes: int, end_minutes: int) -> TimeRange:
    return TimeRange(start_minutes=start_minutes, end_minutes=end_minutes)


def create_range(start_time: str, end_time: str) -> TimeRange:
    """
    Build a range from wall-clock boundaries. An end at or before the start
    continues past midnight; equal boundaries therefore mean a full 24 hours.
    """
    start = time_to_minutes(start_time)
    end = time_to_minutes(end_time, allow_end_of_day=True)
    if end <= start:
        end += MINUTES_PER_DAY
    return make_range(start, end)


def ranges_overlap(a: TimeRange, b: TimeRange) -> bool:
    return a.start_minutes < b.end_minutes and b.start_minutes < a.end_minutes


def merge_ranges(ranges: Iterable[TimeRange]) -> list[TimeRange]:
    """Sort and coalesce ranges that overlap or touch. Gaps are kept."""
    ordered = sorted(ranges, key=lambda r: (r.start_minutes, r.end_minutes))
    if not ordered:
        return []

    merged = [ordered[0]]
    for cur in ordered[1:]:
        last = merged[-1]
        if cur.start_minutes <= last.end_minutes:
            if cur.end_minutes > last.end_minutes:
                merged[-1] = make_range(last.start_minutes, cur.end_minutes)
        else:
            merged.append(cur)
    return merged


def add_ranges(base: Iterable[TimeRange], additions: Iterable[TimeRange]) -> list[TimeRange]:
    return merge_ranges([*base, *additions])


def subtract_one(a: TimeRange, b: TimeRange) -> list[TimeRange]:
    """a minus b: zero, one or two pieces."""
    if not ranges_overlap(a, b):
        return [a]

    pieces: list[TimeRange] = []
    if a.start_minutes < b.start_minutes:
        pieces.append(make_range(a.start_minutes, b.start_minutes))
    if a.end_minutes > b.end_minutes:
        pieces.append(make_range(b.end_minutes, a.end_minutes))
    return pieces


def subtract_ranges(base: Iterable[TimeRange], to_subtract: Iterable[TimeRange]) -> list[TimeRange]:
    result = merge_ranges(base)
    for sub in merge_ranges(to_subtract):
        if not result:
            break
        result = [piece for r in result for piece in subtract_one(r, sub)]
    return result


def intersect_one(a: TimeRange, b: TimeRange) -> Optional[TimeRange]:
    if not ranges_overlap(a, b):
        return None
    return make_range(max(a.start_minutes, b.start_minutes), min(a.end_minutes, b.end_minutes))


def intersect_ranges(a: Iterable[TimeRange], b: Iterable[TimeRange]) -> list[TimeRange]:
    b = list(b)
    pieces: list[TimeRange] = []
    for x in a:
        for y in b:
            piece = intersect_one(x, y)
            if piece is not None:
                pieces.append(piece)
    return merge_ranges(pieces)


def clamp_to_window(ranges: Iterable[TimeRange], window_start: int, window_end: int) -> list[TimeRange]:
    """Keep only the parts of ranges inside [window_start, window_end), e.g. an event's daily hours."""
    return intersect_ranges(ranges, [make_range(window_start, window_end)])


def total_minutes(ranges: Iterable[TimeRange]) -> int:
    # overlapping ranges are counted once
    return sum(r.duration for r in merge_ranges(ranges))


def minute_in_ranges(minute: int, ranges: Iterable[TimeRange]) -> bool:
    return any(r.start_minutes <= minute < r.end_minutes for r in ranges)


def split_at_midnight(r: TimeRange) -> tuple[Optional[TimeRange], Optional[TimeRange]]:
    """
    Cut a range at 24:00 of its anchor date.

    Returns (same_date_piece, next_date_piece); the next-date piece is
    re-based to the next date's midnight. Either side may be None.
    """
    if r.end_minutes <= MINUTES_PER_DAY:
        return r, None
    if r.start_minutes >= MINUTES_PER_DAY:
        return None, make_range(r.start_minutes - MINUTES_PER_DAY, r.end_minutes - MINUTES_PER_DAY)
    return (
        make_range(r.start_minutes, MINUTES_PER_DAY),
        make_range(0, r.end_minutes - MINUTES_PER_DAY),
    )
