from tradechart.aggregator import OverflowPolicy, RangeAggregator, RangeUpdate
from tradechart.config import EngineConfig
from tradechart.curve import CurveSegment, classify_slopes, flatten_curve, interpolate_curve
from tradechart.distribution import (
    FixedDistribution,
    GeometricDistribution,
    LinearDistribution,
    LogarithmicDistribution,
    Tick,
    compute_ticks,
    distribute,
    range_distribute,
)
from tradechart.engine import ChartEngine, ChartLayout, CursorInfo
from tradechart.errors import ChartEngineError, InvalidCandleError, InvalidParameterError, InvalidRangeError
from tradechart.mapper import (
    AxisGeometry,
    BarGeometry,
    CoordinateMapper,
    bar_geometry,
    element_dimension,
    pixel_to_value,
    value_to_pixel,
)
from tradechart.ranges import Range
from tradechart.series import BarSeries, Candle, CandleSeries, LineSeries

__all__ = [
    "AxisGeometry",
    "BarGeometry",
    "BarSeries",
    "Candle",
    "CandleSeries",
    "ChartEngine",
    "ChartEngineError",
    "ChartLayout",
    "CoordinateMapper",
    "CurveSegment",
    "CursorInfo",
    "EngineConfig",
    "FixedDistribution",
    "GeometricDistribution",
    "InvalidCandleError",
    "InvalidParameterError",
    "InvalidRangeError",
    "LineSeries",
    "LinearDistribution",
    "LogarithmicDistribution",
    "OverflowPolicy",
    "Range",
    "RangeAggregator",
    "RangeUpdate",
    "Tick",
    "bar_geometry",
    "classify_slopes",
    "compute_ticks",
    "distribute",
    "element_dimension",
    "flatten_curve",
    "interpolate_curve",
    "pixel_to_value",
    "range_distribute",
    "value_to_pixel",
]
