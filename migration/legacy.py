"""
One-time import of the pre-rule availability representation.

The old model kept three separate record kinds per participant, all in the
participant's local zone:

    weekly availability  (day_of_week, start, end, is_available)
    dated slots          (date, start, end)              -> available_override
    dated exceptions     (date, start, end, reason)      -> blocked_override

Every record is pushed through prepare_rule_for_storage so imported rules
are indistinguishable from ones entered by hand. Nothing here evaluates
availability; the rule engine in availability.compute is the only one.

Usage:
    python -m migration.legacy legacy.json --output rules.json
    python -m migration.legacy legacy.json --dry-run
"""
from __future__ import annotations

import argparse
import datetime as dt
import json
import sys
from pathlib import Path
from typing import List, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from availability.schema import AvailabilityRuleInput, PreparedRule, RuleSource, RuleType
from availability.service import prepare_rule_for_storage
from availability.timezone import validate_zone
from core.errors import AvailabilityError, UnknownTimezoneError
from core.logging_config import get_logger, setup_logging

logger = get_logger(__name__)


# ---------- legacy records ----------

class LegacyWeeklyAvailability(BaseModel):
    day_of_week: int = Field(ge=0, le=6, description="0=Sun .. 6=Sat, participant's zone")
    start_time: str
    end_time: str
    is_available: bool = True


class LegacyDateSlot(BaseModel):
    date: dt.date
    start_time: str
    end_time: str


class LegacyException(BaseModel):
    date: dt.date
    start_time: str
    end_time: str
    reason: Optional[str] = None


class LegacyParticipant(BaseModel):
    id: str
    timezone: Optional[str] = None
    event_timezone: Optional[str] = None
    existing_rule_count: int = 0
    weekly: List[LegacyWeeklyAvailability] = Field(default_factory=list)
    slots: List[LegacyDateSlot] = Field(default_factory=list)
    exceptions: List[LegacyException] = Field(default_factory=list)

    model_config = ConfigDict(extra="ignore")


# ---------- results ----------

class MigrationStats(BaseModel):
    participants_processed: int = 0
    participants_skipped: int = 0
    available_patterns: int = 0
    blocked_patterns: int = 0
    available_overrides: int = 0
    blocked_overrides: int = 0
    errors: List[str] = Field(default_factory=list)

    @property
    def rules_created(self) -> int:
        return self.available_patterns + self.blocked_patterns + self.available_overrides + self.blocked_overrides

    def count(self, rule_type: RuleType) -> None:
        name = rule_type.value + "s"
        setattr(self, name, getattr(self, name) + 1)

    def absorb(self, other: "MigrationStats") -> None:
        for name in (
            "participants_processed", "participants_skipped",
            "available_patterns", "blocked_patterns", "available_overrides", "blocked_overrides",
        ):
            setattr(self, name, getattr(self, name) + getattr(other, name))
        self.errors.extend(other.errors)


class MigrationResult(BaseModel):
    participant_id: str
    timezone: Optional[str] = None
    rules: List[PreparedRule] = Field(default_factory=list)
    stats: MigrationStats = Field(default_factory=MigrationStats)


# ---------- conversion ----------

def resolve_timezone(participant: LegacyParticipant, fallback_timezone: Optional[str] = None) -> str:
    """
    Participant zone, then the event's zone. A configured fallback is only
    used when neither exists, and the substitution is logged.
    """
    zone = participant.timezone or participant.event_timezone
    if zone:
        return validate_zone(zone)
    if fallback_timezone:
        logger.warning("legacy_timezone_fallback", participant_id=participant.id, substituted=fallback_timezone)
        return validate_zone(fallback_timezone)
    raise UnknownTimezoneError("")


def legacy_rule_inputs(participant: LegacyParticipant) -> list[AvailabilityRuleInput | str]:
    """Map each legacy record to a rule input; records that fail validation come back as error strings."""
    out: list[AvailabilityRuleInput | str] = []

    def _build(label: str, **fields) -> None:
        try:
            out.append(AvailabilityRuleInput(source=RuleSource.import_, **fields))
        except ValidationError as exc:
            out.append(f"participant {participant.id}: {label} rejected: {exc.errors()[0]['msg']}")

    for w in participant.weekly:
        _build(
            f"weekly {w.day_of_week} {w.start_time}-{w.end_time}",
            rule_type=RuleType.available_pattern if w.is_available else RuleType.blocked_pattern,
            day_of_week=w.day_of_week,
            start_time=w.start_time,
            end_time=w.end_time,
        )
    for s in participant.slots:
        _build(
            f"slot {s.date} {s.start_time}-{s.end_time}",
            rule_type=RuleType.available_override,
            specific_date=s.date,
            start_time=s.start_time,
            end_time=s.end_time,
        )
    for e in participant.exceptions:
        _build(
            f"exception {e.date} {e.start_time}-{e.end_time}",
            rule_type=RuleType.blocked_override,
            specific_date=e.date,
            start_time=e.start_time,
            end_time=e.end_time,
            reason=e.reason,
        )
    return out


def migrate_participant(
    participant: LegacyParticipant,
    *,
    fallback_timezone: Optional[str] = None,
) -> MigrationResult:
    result = MigrationResult(participant_id=participant.id)
    stats = result.stats
    stats.participants_processed = 1

    if participant.existing_rule_count > 0:
        logger.info("legacy_participant_skipped", participant_id=participant.id,
                    existing_rules=participant.existing_rule_count)
        stats.participants_skipped = 1
        return result

    try:
        zone = resolve_timezone(participant, fallback_timezone)
    except UnknownTimezoneError as exc:
        msg = f"participant {participant.id}: no usable timezone ({exc})"
        logger.error("legacy_participant_failed", participant_id=participant.id, error=str(exc))
        stats.errors.append(msg)
        return result
    result.timezone = zone

    for item in legacy_rule_inputs(participant):
        if isinstance(item, str):
            stats.errors.append(item)
            continue
        try:
            prepared = prepare_rule_for_storage(item, zone)
        except AvailabilityError as exc:
            stats.errors.append(f"participant {participant.id}: {exc}")
            continue
        result.rules.append(prepared)
        stats.count(prepared.rule_type)

    logger.info(
        "legacy_participant_migrated",
        participant_id=participant.id,
        timezone=zone,
        available_patterns=stats.available_patterns,
        blocked_patterns=stats.blocked_patterns,
        available_overrides=stats.available_overrides,
        blocked_overrides=stats.blocked_overrides,
        errors=len(stats.errors),
    )
    return result


def migrate_all(
    participants: Sequence[LegacyParticipant],
    *,
    fallback_timezone: Optional[str] = None,
) -> tuple[list[MigrationResult], MigrationStats]:
    results: list[MigrationResult] = []
    total = MigrationStats()
    for p in participants:
        res = migrate_participant(p, fallback_timezone=fallback_timezone)
        results.append(res)
        total.absorb(res.stats)
    return results, total


# ---------- CLI ----------

_participants_adapter = TypeAdapter(List[LegacyParticipant])


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="python -m migration.legacy",
        description="Convert legacy availability records into UTC availability rules.",
    )
    parser.add_argument("input", type=Path, help="JSON file: list of legacy participants")
    parser.add_argument("--output", "-o", type=Path, help="write prepared rules here (default: stdout)")
    parser.add_argument("--dry-run", action="store_true", help="report what would be created, write nothing")
    parser.add_argument("--fallback-timezone", help="zone for participants with none recorded (logged per use)")
    args = parser.parse_args(argv)

    setup_logging()

    participants = _participants_adapter.validate_json(args.input.read_bytes())
    results, total = migrate_all(participants, fallback_timezone=args.fallback_timezone)

    logger.info(
        "legacy_migration_summary",
        dry_run=args.dry_run,
        participants=total.participants_processed,
        skipped=total.participants_skipped,
        rules=total.rules_created,
        errors=len(total.errors),
    )
    for err in total.errors:
        logger.warning("legacy_migration_error", error=err)

    if not args.dry_run:
        payload = {
            r.participant_id: [rule.model_dump(mode="json", by_alias=True) for rule in r.rules]
            for r in results
            if r.rules
        }
        text = json.dumps(payload, indent=2)
        if args.output:
            args.output.write_text(text + "\n")
        else:
            sys.stdout.write(text + "\n")

    return 1 if total.errors else 0


if __name__ == "__main__":
    sys.exit(main())
