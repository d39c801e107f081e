from __future__ import annotations

from dataclasses import dataclass
import math
from typing import TYPE_CHECKING, Any, Sequence

import numpy as np

from tradechart.distribution import AXIS_ALIGNMENTS, AxisAlignment
from tradechart.errors import InvalidParameterError
from tradechart.ranges import Range

if TYPE_CHECKING:
    from tradechart.series import Candle


@dataclass(frozen=True)
class ElementDimension:
    index: int
    name: str
    spacing_pixels: int
    width_pixels: int


ELEMENT_DIMENSIONS: tuple[ElementDimension, ...] = (
    ElementDimension(index=1, name="very_small", spacing_pixels=4, width_pixels=3),
    ElementDimension(index=2, name="small", spacing_pixels=8, width_pixels=5),
    ElementDimension(index=3, name="large", spacing_pixels=16, width_pixels=11),
    ElementDimension(index=4, name="very_large", spacing_pixels=32, width_pixels=19),
)


def element_dimension(index: int) -> ElementDimension:
    if not 1 <= index <= len(ELEMENT_DIMENSIONS):
        raise InvalidParameterError(f"unknown element dimension index: {index}")
    return ELEMENT_DIMENSIONS[index - 1]


@dataclass(frozen=True)
class AxisGeometry:
    axis_length_pixels: int
    element_spacing_pixels: float
    element_width_pixels: float
    alignment: AxisAlignment = "end"
    origin_pixels: float = 0.0

    def __post_init__(self) -> None:
        if self.axis_length_pixels < 0:
            raise InvalidParameterError("axis_length_pixels must be >= 0")
        if not math.isfinite(self.element_spacing_pixels) or self.element_spacing_pixels <= 0:
            raise InvalidParameterError("element_spacing_pixels must be > 0")
        if not math.isfinite(self.element_width_pixels) or self.element_width_pixels < 0:
            raise InvalidParameterError("element_width_pixels must be >= 0")
        if self.alignment not in AXIS_ALIGNMENTS:
            raise InvalidParameterError(f"unsupported axis alignment: {self.alignment}")
        if not math.isfinite(self.origin_pixels):
            raise InvalidParameterError("origin_pixels must be finite")

    @classmethod
    def from_dimension(
        cls,
        axis_length_pixels: int,
        dimension: ElementDimension,
        *,
        alignment: AxisAlignment = "end",
        origin_pixels: float = 0.0,
    ) -> "AxisGeometry":
        return cls(
            axis_length_pixels=axis_length_pixels,
            element_spacing_pixels=float(dimension.spacing_pixels),
            element_width_pixels=float(dimension.width_pixels),
            alignment=alignment,
            origin_pixels=origin_pixels,
        )


class CoordinateMapper:
    """Maps element indices to pixel centres along the time axis and back.

    With ``end`` alignment an element is centred on its slot boundary; with
    ``start`` alignment its left edge sits on the boundary, so the centre is
    shifted right by half the element width.
    """

    def __init__(self, geometry: AxisGeometry) -> None:
        self.geometry = geometry

    @property
    def adjustment(self) -> float:
        if self.geometry.alignment == "start":
            return -self.geometry.element_width_pixels / 2.0
        return 0.0

    def index_to_pixel(self, index: int) -> float:
        g = self.geometry
        return g.origin_pixels + float(index) * g.element_spacing_pixels - self.adjustment

    def pixel_to_index(self, pixel: float) -> int:
        g = self.geometry
        spacing = g.element_spacing_pixels
        # Nearest element centre, halves resolve towards the later element.
        return int(math.floor((float(pixel) - g.origin_pixels + self.adjustment + spacing / 2.0) / spacing))

    def indices_to_pixels(self, indices: Any) -> np.ndarray:
        g = self.geometry
        idx = np.asarray(indices, dtype=np.float64)
        return g.origin_pixels + idx * g.element_spacing_pixels - self.adjustment

    def hit_test(self, pixel: float, element_count: int) -> int | None:
        if element_count <= 0:
            return None
        index = self.pixel_to_index(pixel)
        if index < 0 or index >= element_count:
            return None
        return index

    def visible_index_window(self, element_count: int) -> tuple[int, int] | None:
        if element_count <= 0 or self.geometry.axis_length_pixels <= 0:
            return None
        g = self.geometry
        half = g.element_width_pixels / 2.0
        first = max(0, self.pixel_to_index(g.origin_pixels - half))
        last = min(element_count - 1, self.pixel_to_index(g.origin_pixels + g.axis_length_pixels + half))
        if first > last:
            return None
        return (first, last)


def value_to_pixel(value: float, value_range: Range, axis_height: float) -> float:
    """Top-down pixel for ``value``: upper maps to 0, lower to ``axis_height``."""
    height = _validate_height(axis_height)
    width = value_range.width
    if width == 0:
        return height / 2.0
    return (value_range.upper - float(value)) * height / width


def pixel_to_value(pixel: float, value_range: Range, axis_height: float) -> float:
    height = _validate_height(axis_height)
    width = value_range.width
    if width == 0:
        return value_range.upper
    return value_range.upper - float(pixel) * width / height


def values_to_pixels(values: Any, value_range: Range, axis_height: float) -> np.ndarray:
    height = _validate_height(axis_height)
    arr = np.asarray(values, dtype=np.float64)
    width = value_range.width
    if width == 0:
        return np.full(arr.shape, height / 2.0, dtype=np.float64)
    return (value_range.upper - arr) * height / width


@dataclass(frozen=True)
class CandleGeometry:
    center_x: float
    body_left: float
    body_width: float
    wick_top: float
    wick_bottom: float
    body_top: float
    body_bottom: float
    upward: bool


def candle_geometry(
    candles: Sequence["Candle"],
    mapper: CoordinateMapper,
    value_range: Range,
    axis_height: float,
) -> list[CandleGeometry]:
    if not candles:
        return []
    highs = np.asarray([c.high for c in candles], dtype=np.float64)
    lows = np.asarray([c.low for c in candles], dtype=np.float64)
    opens = np.asarray([c.open for c in candles], dtype=np.float64)
    closes = np.asarray([c.close for c in candles], dtype=np.float64)
    xs = mapper.indices_to_pixels(np.arange(len(candles)))
    wick_top = values_to_pixels(highs, value_range, axis_height)
    wick_bottom = values_to_pixels(lows, value_range, axis_height)
    body_top = values_to_pixels(np.maximum(opens, closes), value_range, axis_height)
    body_bottom = values_to_pixels(np.minimum(opens, closes), value_range, axis_height)
    body_width = mapper.geometry.element_width_pixels
    out: list[CandleGeometry] = []
    for i in range(len(candles)):
        out.append(
            CandleGeometry(
                center_x=float(xs[i]),
                body_left=float(xs[i]) - body_width / 2.0,
                body_width=body_width,
                wick_top=float(wick_top[i]),
                wick_bottom=float(wick_bottom[i]),
                body_top=float(body_top[i]),
                body_bottom=float(body_bottom[i]),
                upward=bool(closes[i] >= opens[i]),
            )
        )
    return out


@dataclass(frozen=True)
class BarGeometry:
    index: int
    center_x: float
    left: float
    width: float
    top: float
    height: float
    negative: bool


def bar_geometry(
    values: Any,
    mapper: CoordinateMapper,
    value_range: Range,
    axis_height: float,
) -> list[BarGeometry]:
    """Rectangles from the zero baseline to each finite value; negative bars hang below it."""
    arr = np.asarray(values, dtype=np.float64)
    if arr.size == 0:
        return []
    baseline = value_to_pixel(0.0, value_range, axis_height)
    ys = values_to_pixels(arr, value_range, axis_height)
    xs = mapper.indices_to_pixels(np.arange(arr.size))
    bar_width = mapper.geometry.element_width_pixels
    out: list[BarGeometry] = []
    for i in np.flatnonzero(np.isfinite(arr)).tolist():
        y = float(ys[i])
        out.append(
            BarGeometry(
                index=i,
                center_x=float(xs[i]),
                left=float(xs[i]) - bar_width / 2.0,
                width=bar_width,
                top=min(y, baseline),
                height=abs(y - baseline),
                negative=bool(arr[i] < 0),
            )
        )
    return out


def _validate_height(axis_height: float) -> float:
    height = float(axis_height)
    if not math.isfinite(height) or height <= 0:
        raise InvalidParameterError("axis_height must be > 0")
    return height
