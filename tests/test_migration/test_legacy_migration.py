import json
import tempfile
import unittest
from datetime import date
from pathlib import Path

from availability.schema import RuleSource, RuleType
from core.errors import UnknownTimezoneError
from migration.legacy import (
    LegacyParticipant,
    legacy_rule_inputs,
    main,
    migrate_all,
    migrate_participant,
    resolve_timezone,
)


def participant(**overrides):
    data = {
        "id": "p1",
        "timezone": "America/Los_Angeles",
        "weekly": [
            {"day_of_week": 1, "start_time": "02:00", "end_time": "13:00"},
            {"day_of_week": 1, "start_time": "17:00", "end_time": "22:00"},
            {"day_of_week": 3, "start_time": "12:00", "end_time": "13:00", "is_available": False},
        ],
        "slots": [{"date": "2025-01-11", "start_time": "10:00", "end_time": "12:00"}],
        "exceptions": [{"date": "2025-01-06", "start_time": "20:00", "end_time": "23:00", "reason": "Dentist"}],
    }
    data.update(overrides)
    return LegacyParticipant.model_validate(data)


class ResolveTimezoneTests(unittest.TestCase):

    def test_participant_zone_first(self):
        p = participant(event_timezone="Europe/Berlin")
        self.assertEqual(resolve_timezone(p), "America/Los_Angeles")

    def test_event_zone_second(self):
        p = participant(timezone=None, event_timezone="Europe/Berlin")
        self.assertEqual(resolve_timezone(p, "UTC"), "Europe/Berlin")

    def test_fallback_only_when_configured(self):
        p = participant(timezone=None)
        self.assertEqual(resolve_timezone(p, "UTC"), "UTC")
        with self.assertRaises(UnknownTimezoneError):
            resolve_timezone(p)

    def test_bad_zone_is_not_replaced(self):
        p = participant(timezone="Mars/Olympus_Mons")
        with self.assertRaises(UnknownTimezoneError):
            resolve_timezone(p, "UTC")


class LegacyRuleInputTests(unittest.TestCase):

    def test_record_kinds_map_to_rule_types(self):
        items = legacy_rule_inputs(participant())
        self.assertEqual(
            [i.rule_type for i in items],
            [
                RuleType.available_pattern,
                RuleType.available_pattern,
                RuleType.blocked_pattern,
                RuleType.available_override,
                RuleType.blocked_override,
            ],
        )
        self.assertTrue(all(i.source == RuleSource.import_ for i in items))
        self.assertEqual(items[-1].reason, "Dentist")

    def test_invalid_record_reported(self):
        p = participant(weekly=[{"day_of_week": 1, "start_time": "9:00", "end_time": "10:00"}], slots=[], exceptions=[])
        items = legacy_rule_inputs(p)
        self.assertEqual(len(items), 1)
        self.assertIsInstance(items[0], str)
        self.assertIn("participant p1", items[0])


class MigrateParticipantTests(unittest.TestCase):

    def test_converts_through_normalizer(self):
        result = migrate_participant(participant())
        self.assertEqual(result.timezone, "America/Los_Angeles")
        self.assertEqual(result.stats.errors, [])
        self.assertEqual(result.stats.available_patterns, 2)
        self.assertEqual(result.stats.blocked_patterns, 1)
        self.assertEqual(result.stats.available_overrides, 1)
        self.assertEqual(result.stats.blocked_overrides, 1)
        self.assertEqual(result.stats.rules_created, 5)

        first, second = result.rules[0], result.rules[1]
        self.assertEqual((first.day_of_week, first.start_time, first.end_time), (1, "10:00", "21:00"))
        self.assertEqual((second.day_of_week, second.start_time, second.end_time), (2, "01:00", "06:00"))
        self.assertEqual(second.original_day_of_week, 1)
        self.assertTrue(all(r.original_timezone == "America/Los_Angeles" for r in result.rules))

        exception = result.rules[-1]
        self.assertEqual(exception.specific_date, date(2025, 1, 7))
        self.assertEqual((exception.start_time, exception.end_time), ("04:00", "07:00"))

    def test_skips_participant_with_rules(self):
        result = migrate_participant(participant(existing_rule_count=3))
        self.assertEqual(result.rules, [])
        self.assertEqual(result.stats.participants_skipped, 1)

    def test_missing_zone_is_an_error(self):
        result = migrate_participant(participant(timezone=None))
        self.assertEqual(result.rules, [])
        self.assertEqual(len(result.stats.errors), 1)
        self.assertIn("no usable timezone", result.stats.errors[0])

    def test_bad_record_does_not_stop_others(self):
        p = participant(weekly=[
            {"day_of_week": 1, "start_time": "09:00", "end_time": "09:00"},
            {"day_of_week": 2, "start_time": "09:00", "end_time": "10:00"},
        ])
        result = migrate_participant(p)
        self.assertEqual(len(result.stats.errors), 1)
        self.assertEqual(result.stats.available_patterns, 1)

    def test_totals(self):
        results, total = migrate_all([
            participant(),
            participant(id="p2", existing_rule_count=1),
            participant(id="p3", timezone=None),
        ])
        self.assertEqual(len(results), 3)
        self.assertEqual(total.participants_processed, 3)
        self.assertEqual(total.participants_skipped, 1)
        self.assertEqual(total.rules_created, 5)
        self.assertEqual(len(total.errors), 1)


class MigrationCliTests(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.dir = Path(self.tmp.name)
        self.input = self.dir / "legacy.json"
        self.output = self.dir / "rules.json"

    def tearDown(self):
        self.tmp.cleanup()

    def _write(self, participants):
        self.input.write_text(json.dumps([p.model_dump(mode="json") for p in participants]))

    def test_writes_camel_case_rules(self):
        self._write([participant()])
        code = main([str(self.input), "--output", str(self.output)])
        self.assertEqual(code, 0)
        data = json.loads(self.output.read_text())
        self.assertEqual(list(data), ["p1"])
        self.assertEqual(len(data["p1"]), 5)
        self.assertEqual(data["p1"][0]["ruleType"], "available_pattern")
        self.assertEqual(data["p1"][0]["originalTimezone"], "America/Los_Angeles")
        self.assertEqual(data["p1"][0]["source"], "import")

    def test_dry_run_writes_nothing(self):
        self._write([participant()])
        code = main([str(self.input), "--output", str(self.output), "--dry-run"])
        self.assertEqual(code, 0)
        self.assertFalse(self.output.exists())

    def test_errors_give_nonzero_exit(self):
        self._write([participant(timezone=None)])
        self.assertEqual(main([str(self.input), "--output", str(self.output)]), 1)

    def test_fallback_flag(self):
        self._write([participant(timezone=None)])
        code = main([str(self.input), "--output", str(self.output), "--fallback-timezone", "UTC"])
        self.assertEqual(code, 0)
        data = json.loads(self.output.read_text())
        self.assertEqual(data["p1"][0]["originalTimezone"], "UTC")


if __name__ == "__main__":
    unittest.main()
