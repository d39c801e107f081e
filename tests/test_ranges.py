from __future__ import annotations

import unittest

import numpy as np

from tradechart.errors import InvalidRangeError
from tradechart.ranges import Range


class RangeTests(unittest.TestCase):
    def test_rejects_upper_below_lower(self) -> None:
        with self.assertRaises(InvalidRangeError):
            Range(upper=1.0, lower=2.0)

    def test_accepts_degenerate_range(self) -> None:
        r = Range(upper=3.0, lower=3.0)
        self.assertEqual(r.width, 0.0)
        self.assertTrue(r.contains(3.0))

    def test_rejects_nan_bounds(self) -> None:
        with self.assertRaises(InvalidRangeError):
            Range(upper=float("nan"), lower=0.0)

    def test_contains_is_inclusive(self) -> None:
        r = Range(upper=10.0, lower=0.0)
        self.assertTrue(r.contains(0.0))
        self.assertTrue(r.contains(10.0))
        self.assertFalse(r.contains(10.0001))
        self.assertFalse(r.contains(-0.0001))

    def test_setters_guard_against_the_other_bound(self) -> None:
        r = Range(upper=10.0, lower=0.0)
        with self.assertRaises(InvalidRangeError):
            r.set_upper(-1.0)
        with self.assertRaises(InvalidRangeError):
            r.set_lower(11.0)
        r.set_upper(5.0)
        r.set_lower(5.0)
        self.assertEqual((r.upper, r.lower), (5.0, 5.0))

    def test_merge_is_pure_and_covers_both_inputs(self) -> None:
        a = Range(upper=5.0, lower=1.0)
        b = Range(upper=9.0, lower=3.0)
        merged = a.merge(b)
        self.assertEqual((merged.upper, merged.lower), (9.0, 1.0))
        self.assertEqual((a.upper, a.lower), (5.0, 1.0))
        for v in np.linspace(-2.0, 12.0, 57):
            if a.contains(float(v)) or b.contains(float(v)):
                self.assertTrue(merged.contains(float(v)))

    def test_bounds_cannot_be_assigned_directly(self) -> None:
        r = Range(upper=10.0, lower=0.0)
        with self.assertRaises(AttributeError):
            r.upper = -5.0  # type: ignore[misc]
        with self.assertRaises(AttributeError):
            r.lower = 50.0  # type: ignore[misc]
        self.assertEqual(r, Range(upper=10.0, lower=0.0))
        self.assertEqual(r.width, 10.0)

    def test_copy_is_independent(self) -> None:
        r = Range(upper=2.0, lower=1.0)
        c = r.copy()
        c.set_upper(4.0)
        self.assertEqual(r.upper, 2.0)

    def test_from_values_skips_non_finite(self) -> None:
        r = Range.from_values([3.0, float("nan"), -1.0, 7.5])
        assert r is not None
        self.assertEqual((r.upper, r.lower), (7.5, -1.0))
        self.assertIsNone(Range.from_values([float("nan")]))
        self.assertIsNone(Range.from_values([]))


if __name__ == "__main__":
    unittest.main()
