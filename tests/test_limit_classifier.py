from __future__ import annotations

import unittest
from decimal import Decimal

from app.services.limits.classifier import EXCEEDED, WARNING, classify


def D(v) -> Decimal:
    return Decimal(str(v))


class ThresholdClassifierTests(unittest.TestCase):
    def test_exactly_at_limit_is_warning_not_exceeded(self):
        r = classify(D(1000), D(900), D(100))
        self.assertIsNotNone(r)
        self.assertEqual(r.severity, WARNING)
        self.assertEqual(r.remaining, D(0))
        self.assertIsNone(r.overage)
        self.assertEqual(r.display_percentage, 100.0)

    def test_exactly_ninety_percent_is_warning(self):
        r = classify(D(1000), D(800), D(100))
        self.assertIsNotNone(r)
        self.assertEqual(r.severity, WARNING)
        self.assertEqual(r.display_percentage, 90.0)
        self.assertEqual(r.remaining, D(100))

    def test_just_below_ninety_percent_is_nothing(self):
        self.assertIsNone(classify(D(1000), D("799.99"), D(100)))

    def test_over_limit_reports_overage(self):
        r = classify(D(3000), D(2700), D(500))
        self.assertEqual(r.severity, EXCEEDED)
        self.assertEqual(r.overage, D(200))
        self.assertIsNone(r.remaining)
        self.assertEqual(r.projected, D(3200))
        self.assertEqual(r.display_percentage, 106.7)

    def test_percentage_rounding_is_display_only(self):
        # 899.96 / 1000 rounds to 90.0 for display but stays below the threshold.
        self.assertIsNone(classify(D(1000), D("799.96"), D(100)))

    def test_zero_candidate_only_exceeds_when_already_over(self):
        self.assertEqual(classify(D(3000), D(2700), D(0)).severity, WARNING)
        self.assertEqual(classify(D(3000), D(3100), D(0)).severity, EXCEEDED)
        self.assertIsNone(classify(D(3000), D(0), D(0)))

    def test_severity_is_monotonic_in_candidate_amount(self):
        rank = {None: 0, WARNING: 1, EXCEEDED: 2}
        last = 0
        for amount in range(0, 600, 7):
            r = classify(D(3000), D(2600), D(amount))
            current = rank[r.severity if r else None]
            self.assertGreaterEqual(current, last, f"amount={amount}")
            last = current
        self.assertEqual(last, 2)


if __name__ == "__main__":
    unittest.main()
