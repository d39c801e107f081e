from __future__ import annotations

from datetime import datetime
import unittest

import numpy as np

from tradechart.errors import InvalidParameterError
from tradechart.mapper import (
    ELEMENT_DIMENSIONS,
    AxisGeometry,
    CoordinateMapper,
    bar_geometry,
    candle_geometry,
    element_dimension,
    pixel_to_value,
    value_to_pixel,
    values_to_pixels,
)
from tradechart.ranges import Range
from tradechart.series import Candle


def _mapper(alignment: str = "end", axis_length: int = 800, origin: float = 0.0) -> CoordinateMapper:
    return CoordinateMapper(
        AxisGeometry.from_dimension(axis_length, element_dimension(2), alignment=alignment, origin_pixels=origin)  # type: ignore[arg-type]
    )


class ElementDimensionTests(unittest.TestCase):
    def test_table(self) -> None:
        table = [(d.index, d.spacing_pixels, d.width_pixels) for d in ELEMENT_DIMENSIONS]
        self.assertEqual(table, [(1, 4, 3), (2, 8, 5), (3, 16, 11), (4, 32, 19)])
        self.assertEqual(element_dimension(3).name, "large")

    def test_unknown_index(self) -> None:
        with self.assertRaises(InvalidParameterError):
            element_dimension(0)
        with self.assertRaises(InvalidParameterError):
            element_dimension(5)


class CoordinateMapperTests(unittest.TestCase):
    def test_end_alignment_centres_on_slot_boundary(self) -> None:
        mapper = _mapper("end")
        self.assertEqual(mapper.adjustment, 0.0)
        self.assertEqual(mapper.index_to_pixel(0), 0.0)
        self.assertEqual(mapper.index_to_pixel(3), 24.0)

    def test_start_alignment_shifts_by_half_width(self) -> None:
        mapper = _mapper("start")
        self.assertEqual(mapper.adjustment, -2.5)
        self.assertEqual(mapper.index_to_pixel(0), 2.5)
        self.assertEqual(mapper.index_to_pixel(3), 26.5)

    def test_index_round_trip(self) -> None:
        for alignment in ("start", "end"):
            for origin in (0.0, 13.0):
                mapper = _mapper(alignment, origin=origin)
                for i in range(0, 10001):
                    self.assertEqual(mapper.pixel_to_index(mapper.index_to_pixel(i)), i)

    def test_pixel_snaps_to_nearest_centre(self) -> None:
        mapper = _mapper("end")
        self.assertEqual(mapper.pixel_to_index(3.9), 0)
        self.assertEqual(mapper.pixel_to_index(4.0), 1)
        self.assertEqual(mapper.pixel_to_index(11.9), 1)
        self.assertEqual(mapper.pixel_to_index(-4.1), -1)

    def test_vectorised_matches_scalar(self) -> None:
        mapper = _mapper("start")
        xs = mapper.indices_to_pixels(np.arange(20))
        self.assertEqual(xs.tolist(), [mapper.index_to_pixel(i) for i in range(20)])

    def test_hit_test_outside_elements(self) -> None:
        mapper = _mapper("end")
        self.assertEqual(mapper.hit_test(-3.0, 10), 0)
        self.assertIsNone(mapper.hit_test(-5.0, 10))
        self.assertEqual(mapper.hit_test(75.0, 10), 9)
        self.assertIsNone(mapper.hit_test(76.0, 10))
        self.assertIsNone(mapper.hit_test(10.0, 0))

    def test_visible_window(self) -> None:
        mapper = _mapper("end", axis_length=80)
        self.assertEqual(mapper.visible_index_window(100), (0, 10))
        self.assertEqual(mapper.visible_index_window(5), (0, 4))
        self.assertIsNone(mapper.visible_index_window(0))
        self.assertIsNone(_mapper("end", axis_length=0).visible_index_window(5))

    def test_geometry_validation(self) -> None:
        with self.assertRaises(InvalidParameterError):
            AxisGeometry(axis_length_pixels=10, element_spacing_pixels=0.0, element_width_pixels=1.0)
        with self.assertRaises(InvalidParameterError):
            AxisGeometry(axis_length_pixels=-1, element_spacing_pixels=8.0, element_width_pixels=5.0)
        with self.assertRaises(InvalidParameterError):
            AxisGeometry(axis_length_pixels=10, element_spacing_pixels=8.0, element_width_pixels=-5.0)
        with self.assertRaises(InvalidParameterError):
            AxisGeometry(10, 8.0, 5.0, alignment="centre")  # type: ignore[arg-type]


class ValueMappingTests(unittest.TestCase):
    def test_upper_maps_to_top(self) -> None:
        r = Range(upper=10.0, lower=0.0)
        self.assertEqual(value_to_pixel(10.0, r, 100), 0.0)
        self.assertEqual(value_to_pixel(0.0, r, 100), 100.0)
        self.assertEqual(value_to_pixel(5.0, r, 100), 50.0)
        self.assertEqual(pixel_to_value(25.0, r, 100), 7.5)

    def test_inverse_within_tolerance(self) -> None:
        r = Range(upper=1.23456, lower=1.10001)
        for v in np.linspace(r.lower, r.upper, 57):
            p = value_to_pixel(float(v), r, 613)
            self.assertAlmostEqual(pixel_to_value(p, r, 613), float(v), places=9)

    def test_degenerate_range_maps_to_midpoint(self) -> None:
        r = Range(upper=5.0, lower=5.0)
        self.assertEqual(value_to_pixel(5.0, r, 100), 50.0)
        self.assertEqual(pixel_to_value(80.0, r, 100), 5.0)
        self.assertEqual(values_to_pixels([5.0, 5.0], r, 100).tolist(), [50.0, 50.0])

    def test_non_positive_height_rejected(self) -> None:
        r = Range(upper=1.0, lower=0.0)
        with self.assertRaises(InvalidParameterError):
            value_to_pixel(0.5, r, 0)
        with self.assertRaises(InvalidParameterError):
            pixel_to_value(0.5, r, -10)

    def test_vectorised_keeps_nan(self) -> None:
        r = Range(upper=10.0, lower=0.0)
        ys = values_to_pixels([10.0, float("nan"), 0.0], r, 100)
        self.assertEqual(ys[0], 0.0)
        self.assertTrue(np.isnan(ys[1]))
        self.assertEqual(ys[2], 100.0)


class CandleGeometryTests(unittest.TestCase):
    def test_body_and_wick(self) -> None:
        candles = [
            Candle(datetime(2024, 1, 2, 9, 0), open=2.0, high=8.0, low=1.0, close=6.0),
            Candle(datetime(2024, 1, 2, 9, 1), open=6.0, high=7.0, low=3.0, close=4.0),
        ]
        out = candle_geometry(candles, _mapper("end"), Range(upper=10.0, lower=0.0), 100)
        first, second = out
        self.assertEqual(first.center_x, 0.0)
        self.assertEqual(first.body_left, -2.5)
        self.assertEqual(first.body_width, 5.0)
        self.assertEqual((first.wick_top, first.wick_bottom), (20.0, 90.0))
        self.assertEqual((first.body_top, first.body_bottom), (40.0, 80.0))
        self.assertTrue(first.upward)
        self.assertEqual(second.center_x, 8.0)
        self.assertEqual((second.body_top, second.body_bottom), (40.0, 60.0))
        self.assertFalse(second.upward)

    def test_empty(self) -> None:
        self.assertEqual(candle_geometry([], _mapper(), Range(upper=1.0, lower=0.0), 10), [])



class BarGeometryTests(unittest.TestCase):
    def test_mixed_sign_bars_hang_from_zero(self) -> None:
        bars = bar_geometry([4.0, -2.0, float("nan"), 0.0], _mapper("end"), Range(upper=4.0, lower=-2.0), 60)
        self.assertEqual([b.index for b in bars], [0, 1, 3])
        up, down, flat = bars
        self.assertEqual((up.top, up.height, up.negative), (0.0, 40.0, False))
        self.assertEqual((down.top, down.height, down.negative), (40.0, 20.0, True))
        self.assertEqual((flat.top, flat.height), (40.0, 0.0))
        self.assertEqual(down.center_x, 8.0)
        self.assertEqual(flat.left, 24.0 - 2.5)
        self.assertEqual(flat.width, 5.0)

    def test_empty(self) -> None:
        self.assertEqual(bar_geometry([], _mapper(), Range(upper=1.0, lower=0.0), 10), [])

if __name__ == "__main__":
    unittest.main()
