from __future__ import annotations

import unittest
from datetime import date

from app.services.limits.periods import (
    DAY,
    MONTH,
    WEEK,
    YEAR,
    month_window,
    parse_month,
    resolve_periods,
    week_start,
)


class PeriodResolverTests(unittest.TestCase):
    def test_week_starts_on_monday(self):
        # 2026-02-18 is a Wednesday
        self.assertEqual(week_start(date(2026, 2, 18)), date(2026, 2, 16))
        self.assertEqual(week_start(date(2026, 2, 16)), date(2026, 2, 16))

    def test_sunday_belongs_to_the_week_that_started_six_days_earlier(self):
        self.assertEqual(week_start(date(2026, 2, 22)), date(2026, 2, 16))

    def test_week_start_can_cross_month_boundary(self):
        # Sunday 2026-03-01 -> Monday 2026-02-23
        self.assertEqual(week_start(date(2026, 3, 1)), date(2026, 2, 23))

    def test_resolve_periods_values(self):
        w = resolve_periods(date(2026, 2, 18))
        self.assertEqual((w.day.kind, w.day.value), (DAY, "2026-02-18"))
        self.assertEqual((w.week.kind, w.week.value), (WEEK, "2026-02-16"))
        self.assertEqual((w.month.kind, w.month.value), (MONTH, "2026-02"))
        self.assertEqual((w.year.kind, w.year.value), (YEAR, "2026"))
        self.assertIs(w.get(MONTH), w.month)
        self.assertIsNone(w.get("fortnight"))

    def test_window_membership(self):
        w = resolve_periods(date(2026, 2, 18))
        self.assertTrue(w.day.contains(date(2026, 2, 18)))
        self.assertFalse(w.day.contains(date(2026, 2, 17)))
        self.assertFalse(w.day.contains(date(2026, 2, 19)))

        self.assertTrue(w.week.contains(date(2026, 2, 16)))
        self.assertFalse(w.week.contains(date(2026, 2, 15)))
        # Week is open-ended.
        self.assertTrue(w.week.contains(date(2026, 3, 30)))

        self.assertTrue(w.month.contains(date(2026, 2, 1)))
        self.assertTrue(w.month.contains(date(2026, 2, 28)))
        self.assertFalse(w.month.contains(date(2026, 3, 1)))
        self.assertFalse(w.month.contains(date(2025, 2, 10)))

        self.assertTrue(w.year.contains(date(2026, 12, 31)))
        self.assertFalse(w.year.contains(date(2025, 12, 31)))

    def test_december_month_window_rolls_into_next_year(self):
        w = month_window("2025-12")
        self.assertEqual(w.start, date(2025, 12, 1))
        self.assertEqual(w.end, date(2026, 1, 1))

    def test_parse_month_rejects_bad_input(self):
        self.assertEqual(parse_month("2026-02"), date(2026, 2, 1))
        for bad in ("2026-13", "2026-00", "2026-2", "26-02", "2026-02-01", "", "2026-02' OR 1=1"):
            with self.assertRaises(ValueError):
                parse_month(bad)


if __name__ == "__main__":
    unittest.main()
