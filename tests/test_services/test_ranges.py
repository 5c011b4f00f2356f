import unittest

from pydantic import ValidationError

from availability.ranges import (
    TimeRange,
    add_ranges,
    clamp_to_window,
    create_range,
    intersect_one,
    intersect_ranges,
    make_range,
    merge_ranges,
    minute_in_ranges,
    split_at_midnight,
    subtract_one,
    subtract_ranges,
    total_minutes,
)


def spans(ranges):
    return [(r.start_minutes, r.end_minutes) for r in ranges]


class TimeRangeTypeTests(unittest.TestCase):

    def test_valid_bounds(self):
        r = make_range(0, 2880)
        self.assertEqual(r.duration, 2880)
        self.assertTrue(r.is_overnight)
        self.assertFalse(make_range(540, 1020).is_overnight)

    def test_invalid_bounds_rejected(self):
        for s, e in ((-1, 10), (10, 10), (20, 10), (0, 2881)):
            with self.subTest(start=s, end=e):
                with self.assertRaises(ValidationError):
                    make_range(s, e)

    def test_json_uses_camel_case(self):
        dumped = make_range(600, 1260).model_dump(by_alias=True)
        self.assertEqual(dumped, {"startMinutes": 600, "endMinutes": 1260})
        self.assertEqual(TimeRange(startMinutes=60, endMinutes=360), make_range(60, 360))


class CreateRangeTests(unittest.TestCase):

    def test_same_day(self):
        self.assertEqual(spans([create_range("09:00", "17:00")]), [(540, 1020)])

    def test_overnight_continues_past_1440(self):
        # 22:00-02:00 ends 120 minutes into the next day
        self.assertEqual(spans([create_range("22:00", "02:00")]), [(1320, 1560)])
        self.assertEqual(spans([create_range("23:00", "01:00")]), [(1380, 1500)])

    def test_end_of_day_token(self):
        self.assertEqual(spans([create_range("00:00", "24:00")]), [(0, 1440)])
        self.assertEqual(spans([create_range("18:00", "24:00")]), [(1080, 1440)])

    def test_end_at_midnight_wraps_to_1440(self):
        self.assertEqual(spans([create_range("18:00", "00:00")]), [(1080, 1440)])

    def test_equal_boundaries_mean_full_day(self):
        self.assertEqual(spans([create_range("08:00", "08:00")]), [(480, 1920)])


class MergeTests(unittest.TestCase):

    def test_gap_is_never_bridged(self):
        merged = merge_ranges([make_range(1020, 1320), make_range(120, 780)])
        self.assertEqual(spans(merged), [(120, 780), (1020, 1320)])

    def test_touching_ranges_merge(self):
        merged = merge_ranges([make_range(540, 720), make_range(720, 1020)])
        self.assertEqual(spans(merged), [(540, 1020)])

    def test_overlapping_and_contained(self):
        merged = merge_ranges([make_range(540, 900), make_range(600, 700), make_range(800, 1020)])
        self.assertEqual(spans(merged), [(540, 1020)])

    def test_one_minute_gap_stays_split(self):
        merged = merge_ranges([make_range(0, 60), make_range(61, 120)])
        self.assertEqual(len(merged), 2)

    def test_empty(self):
        self.assertEqual(merge_ranges([]), [])

    def test_add_ranges_unions(self):
        out = add_ranges([make_range(540, 720)], [make_range(840, 1020), make_range(700, 760)])
        self.assertEqual(spans(out), [(540, 760), (840, 1020)])


class SubtractTests(unittest.TestCase):

    def test_contained_block_splits_in_two(self):
        original = make_range(540, 1020)
        gap = make_range(720, 780)
        pieces = subtract_one(original, gap)
        self.assertEqual(spans(pieces), [(540, 720), (780, 1020)])
        # pieces plus the removed gap rebuild the original exactly
        rebuilt = merge_ranges([*pieces, gap])
        self.assertEqual(rebuilt, [original])

    def test_no_overlap_leaves_range(self):
        self.assertEqual(spans(subtract_one(make_range(540, 720), make_range(720, 800))), [(540, 720)])

    def test_full_cover_removes(self):
        self.assertEqual(subtract_one(make_range(540, 720), make_range(500, 800)), [])

    def test_trim_edges(self):
        self.assertEqual(spans(subtract_one(make_range(540, 1020), make_range(480, 600))), [(600, 1020)])
        self.assertEqual(spans(subtract_one(make_range(540, 1020), make_range(960, 1100))), [(540, 960)])

    def test_subtract_many(self):
        base = [make_range(0, 1440)]
        out = subtract_ranges(base, [make_range(600, 660), make_range(120, 180), make_range(630, 700)])
        self.assertEqual(spans(out), [(0, 120), (180, 600), (700, 1440)])

    def test_subtract_nothing_merges_base(self):
        out = subtract_ranges([make_range(60, 120), make_range(120, 180)], [])
        self.assertEqual(spans(out), [(60, 180)])

    def test_subtract_from_overnight_can_leave_continuation_only(self):
        out = subtract_ranges([make_range(1380, 1500)], [make_range(1380, 1440)])
        self.assertEqual(spans(out), [(1440, 1500)])

    def test_minute_in_ranges_half_open(self):
        ranges = [make_range(540, 600)]
        self.assertTrue(minute_in_ranges(540, ranges))
        self.assertTrue(minute_in_ranges(599, ranges))
        self.assertFalse(minute_in_ranges(600, ranges))


class SplitAtMidnightTests(unittest.TestCase):

    def test_same_day_untouched(self):
        r = make_range(540, 1440)
        self.assertEqual(split_at_midnight(r), (r, None))

    def test_overnight_split(self):
        head, tail = split_at_midnight(make_range(1380, 1500))
        self.assertEqual((head.start_minutes, head.end_minutes), (1380, 1440))
        self.assertEqual((tail.start_minutes, tail.end_minutes), (0, 60))

    def test_continuation_only(self):
        head, tail = split_at_midnight(make_range(1440, 1500))
        self.assertIsNone(head)
        self.assertEqual((tail.start_minutes, tail.end_minutes), (0, 60))

    def test_full_two_days(self):
        head, tail = split_at_midnight(make_range(0, 2880))
        self.assertEqual((head.start_minutes, head.end_minutes), (0, 1440))
        self.assertEqual((tail.start_minutes, tail.end_minutes), (0, 1440))


class IntersectClampTests(unittest.TestCase):

    def test_intersect_one(self):
        self.assertEqual(intersect_one(make_range(540, 1020), make_range(960, 1200)), make_range(960, 1020))
        self.assertIsNone(intersect_one(make_range(540, 600), make_range(600, 660)))

    def test_intersect_sets(self):
        a = [make_range(540, 720), make_range(780, 1020)]
        b = [make_range(600, 900)]
        self.assertEqual(spans(intersect_ranges(a, b)), [(600, 720), (780, 900)])
        self.assertEqual(intersect_ranges(a, []), [])

    def test_intersect_keeps_gaps(self):
        a = [make_range(540, 720)]
        b = [make_range(540, 600), make_range(660, 720)]
        self.assertEqual(spans(intersect_ranges(a, b)), [(540, 600), (660, 720)])

    def test_clamp_to_window(self):
        ranges = [make_range(360, 600), make_range(1200, 1500)]
        self.assertEqual(spans(clamp_to_window(ranges, 480, 1320)), [(480, 600), (1200, 1320)])
        self.assertEqual(clamp_to_window(ranges, 600, 1200), [])

    def test_clamp_overnight_window(self):
        self.assertEqual(spans(clamp_to_window([make_range(1380, 1500)], 1320, 1470)), [(1380, 1470)])

    def test_total_minutes_counts_overlap_once(self):
        self.assertEqual(total_minutes([make_range(540, 720), make_range(600, 780), make_range(900, 960)]), 300)
        self.assertEqual(total_minutes([]), 0)


if __name__ == "__main__":
    unittest.main()
