from __future__ import annotations
import datetime as dt
from enum import Enum
from typing import Iterator, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from core.config_loader import settings

from .ranges import TimeRange
from .timecodec import SLOT_DURATION_MINUTES, is_slot_aligned, time_to_minutes
from .timezone import date_range, validate_zone


class RuleType(str, Enum):
    available_pattern = "available_pattern"
    blocked_pattern = "blocked_pattern"
    available_override = "available_override"
    blocked_override = "blocked_override"

    @property
    def is_pattern(self) -> bool:
        return self in (RuleType.available_pattern, RuleType.blocked_pattern)

    @property
    def is_blocked(self) -> bool:
        return self in (RuleType.blocked_pattern, RuleType.blocked_override)


class RuleSource(str, Enum):
    manual = "manual"
    import_ = "import"
    ai = "ai"


class CamelModel(BaseModel):
    # JSON uses camelCase (ruleType, dayOfWeek, ...); python keeps snake_case
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------- shared checks ----------

def _check_anchor(rule_type: RuleType, day_of_week: Optional[int], specific_date: Optional[dt.date]) -> None:
    if rule_type.is_pattern:
        if day_of_week is None or specific_date is not None:
            raise ValueError(f"{rule_type.value} needs day_of_week and no specific_date")
    else:
        if specific_date is None or day_of_week is not None:
            raise ValueError(f"{rule_type.value} needs specific_date and no day_of_week")


def _check_times(start_time: str, end_time: str) -> None:
    time_to_minutes(start_time)
    time_to_minutes(end_time, allow_end_of_day=True)


# ---------- user input (local zone) ----------

class AvailabilityRuleInput(CamelModel):
    rule_type: RuleType
    day_of_week: Optional[int] = Field(None, ge=0, le=6, description="0=Sun .. 6=Sat, in the user's zone")
    specific_date: Optional[dt.date] = Field(None, description="calendar date in the user's zone")
    start_time: str = Field(..., description="HH:MM, 30-minute steps")
    end_time: str = Field(..., description="HH:MM or 24:00; at or before start_time means overnight")
    reason: Optional[str] = Field(None, max_length=500)
    source: RuleSource = RuleSource.manual

    model_config = ConfigDict(extra="forbid")

    @model_validator(mode="after")
    def validate_rule(self):
        _check_anchor(self.rule_type, self.day_of_week, self.specific_date)
        _check_times(self.start_time, self.end_time)
        if self.start_time == self.end_time:
            raise ValueError("start time and end time cannot be equal")
        for value, eod in ((self.start_time, False), (self.end_time, True)):
            if not is_slot_aligned(value, allow_end_of_day=eod):
                raise ValueError(f"times must fall on {SLOT_DURATION_MINUTES}-minute boundaries, got {value}")
        if self.reason is not None and self.rule_type.is_pattern:
            raise ValueError("reason is only kept for override rules")
        return self


# ---------- normalized (UTC) form ----------

class PreparedRule(CamelModel):
    rule_type: RuleType
    day_of_week: Optional[int] = None
    specific_date: Optional[dt.date] = None
    start_time: str
    end_time: str
    crosses_midnight: bool
    original_timezone: str
    original_day_of_week: Optional[int] = None
    reason: Optional[str] = None
    source: RuleSource = RuleSource.manual


class AvailabilityRule(CamelModel):
    """Persisted rule, always in UTC. Read-only snapshot for the engine."""
    id: str
    participant_id: str
    rule_type: RuleType
    day_of_week: Optional[int] = Field(None, ge=0, le=6)
    specific_date: Optional[dt.date] = None
    start_time: str
    end_time: str
    # None for rows written before the flag existed: infer from the times
    crosses_midnight: Optional[bool] = None
    original_timezone: str = "UTC"
    original_day_of_week: Optional[int] = Field(None, ge=0, le=6)
    reason: Optional[str] = None
    source: RuleSource = RuleSource.manual

    model_config = ConfigDict(frozen=True)

    @field_validator("original_timezone")
    @classmethod
    def known_zone(cls, v: str) -> str:
        return validate_zone(v)

    @model_validator(mode="after")
    def validate_rule(self):
        _check_anchor(self.rule_type, self.day_of_week, self.specific_date)
        _check_times(self.start_time, self.end_time)
        if self.start_time == self.end_time and not self.crosses_midnight:
            raise ValueError("start time and end time cannot be equal unless the rule spans a full day")
        if self.original_day_of_week is not None and not self.rule_type.is_pattern:
            raise ValueError("original_day_of_week is only kept for pattern rules")
        return self

    @property
    def is_pattern(self) -> bool:
        return self.rule_type.is_pattern

    @property
    def is_blocked(self) -> bool:
        return self.rule_type.is_blocked


class DisplayRule(CamelModel):
    rule_type: RuleType
    day_of_week: Optional[int] = None
    specific_date: Optional[dt.date] = None
    start_time: str
    end_time: str
    crosses_midnight: bool
    timezone: str


# ---------- query window / results ----------

class DateRange(CamelModel):
    start_date: dt.date
    end_date: dt.date

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def validate_range(self):
        if self.end_date < self.start_date:
            raise ValueError("end_date must be on/after start_date")
        return self

    @property
    def num_days(self) -> int:
        return (self.end_date - self.start_date).days + 1

    def days(self) -> Iterator[dt.date]:
        return date_range(self.start_date, self.end_date)

    def widened(self, days: Optional[int] = None) -> "DateRange":
        """Pad both ends, for callers rendering local days that straddle two UTC dates."""
        pad = dt.timedelta(days=settings.DISPLAY_WINDOW_PADDING_DAYS if days is None else days)
        return DateRange(start_date=self.start_date - pad, end_date=self.end_date + pad)


class DayAvailability(CamelModel):
    date: dt.date
    available_ranges: List[TimeRange] = Field(default_factory=list)
    blocked_ranges: List[TimeRange] = Field(default_factory=list)


# ---------- Client -> API ----------

class EffectiveRangesPayload(CamelModel):
    rules: List[AvailabilityRule]
    date_range: DateRange
    split_overnight: bool = False

    model_config = ConfigDict(extra="forbid")


class EffectiveRangesResponse(CamelModel):
    days: List[DayAvailability]


class PrepareRulePayload(CamelModel):
    rule: AvailabilityRuleInput
    timezone: str

    model_config = ConfigDict(extra="forbid")


class DisplayRulePayload(CamelModel):
    rule: AvailabilityRule
    timezone: str

    model_config = ConfigDict(extra="forbid")
