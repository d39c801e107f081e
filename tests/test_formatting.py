from __future__ import annotations

import unittest

from tradechart.formatting import format_tick, format_tick_values, format_value


class FormattingTests(unittest.TestCase):
    def test_format_value_fixed_decimals(self) -> None:
        self.assertEqual(format_value(1.234567), "1.23457")
        self.assertEqual(format_value(1.5, decimals=2), "1.50")
        self.assertEqual(format_value(-0.000001, decimals=2), "0.00")
        self.assertEqual(format_value(12.0, decimals=0), "12")
        self.assertEqual(format_value(float("nan")), "nan")

    def test_format_tick_trims_fraction_only(self) -> None:
        self.assertEqual(format_tick(30.0, step=10.0), "30")
        self.assertEqual(format_tick(0.25, step=0.05), "0.25")
        self.assertEqual(format_tick(1.5, step=0.25), "1.5")
        self.assertEqual(format_tick(1e-12, step=0.5), "0")

    def test_price_labels_stay_in_plain_notation(self) -> None:
        self.assertEqual(format_tick(1.23456, step=0.00001), "1.23456")
        self.assertEqual(format_tick(12500000000.0, step=500000000.0), "12500000000")
        self.assertEqual(format_tick(-0.0000001, step=0.5), "0")
        self.assertEqual(format_tick(2.5), "2.5")

    def test_tick_values_share_precision(self) -> None:
        self.assertEqual(format_tick_values([1.0, 1.25, 1.5]), ["1", "1.25", "1.5"])
        self.assertEqual(format_tick_values([114.0, 110.5, 107.0]), ["114", "110.5", "107"])
        self.assertEqual(format_tick_values([]), [])
        self.assertEqual(format_tick_values([2.0, 2.0]), ["2", "2"])

    def test_irregular_gaps_do_not_explode_precision(self) -> None:
        labels = format_tick_values([0.0, 21.052631578947366, 42.10526315789473])
        self.assertEqual(labels, ["0", "21", "42"])


if __name__ == "__main__":
    unittest.main()
