from __future__ import annotations

from .schema import AvailabilityRule, AvailabilityRuleInput, DisplayRule, PreparedRule
from .timezone import (
    convert_override_from_utc,
    convert_override_to_utc,
    convert_pattern_from_utc,
    convert_pattern_to_utc,
    validate_zone,
)


# ---------- write path: user input -> UTC storage form ----------

def prepare_rule_for_storage(rule: AvailabilityRuleInput, zone: str) -> PreparedRule:
    """
    Normalize a user-entered rule into its UTC, persistable form.

    original_timezone and original_day_of_week are copied from the input as
    entered; they are never re-derived from the UTC values.
    """
    validate_zone(zone)

    if rule.rule_type.is_pattern:
        converted = convert_pattern_to_utc(rule.day_of_week, rule.start_time, rule.end_time, zone)
        return PreparedRule(
            rule_type=rule.rule_type,
            day_of_week=converted.day_of_week,
            specific_date=None,
            start_time=converted.start_time,
            end_time=converted.end_time,
            crosses_midnight=converted.crosses_midnight,
            original_timezone=zone,
            original_day_of_week=rule.day_of_week,
            reason=None,
            source=rule.source,
        )

    converted = convert_override_to_utc(rule.specific_date, rule.start_time, rule.end_time, zone)
    return PreparedRule(
        rule_type=rule.rule_type,
        day_of_week=None,
        specific_date=converted.date,
        start_time=converted.start_time,
        end_time=converted.end_time,
        crosses_midnight=converted.crosses_midnight,
        original_timezone=zone,
        original_day_of_week=None,
        reason=rule.reason,
        source=rule.source,
    )


def build_rule(prepared: PreparedRule, *, id: str, participant_id: str) -> AvailabilityRule:
    return AvailabilityRule(id=id, participant_id=participant_id, **prepared.model_dump())


# ---------- read path: UTC rule -> participant's current zone ----------

def convert_rule_for_display(rule: AvailabilityRule, zone: str) -> DisplayRule:
    if rule.is_pattern:
        local = convert_pattern_from_utc(
            rule.day_of_week, rule.start_time, rule.end_time, zone, rule.crosses_midnight
        )
        return DisplayRule(
            rule_type=rule.rule_type,
            day_of_week=local.day_of_week,
            specific_date=None,
            start_time=local.start_time,
            end_time=local.end_time,
            crosses_midnight=local.crosses_midnight,
            timezone=zone,
        )

    local = convert_override_from_utc(
        rule.specific_date, rule.start_time, rule.end_time, zone, rule.crosses_midnight
    )
    return DisplayRule(
        rule_type=rule.rule_type,
        day_of_week=None,
        specific_date=local.date,
        start_time=local.start_time,
        end_time=local.end_time,
        crosses_midnight=local.crosses_midnight,
        timezone=zone,
    )
