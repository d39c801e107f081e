from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import Literal

import numpy as np

from tradechart.aggregator import RangeAggregator
from tradechart.config import EngineConfig
from tradechart.curve import CurveSegment, interpolate_curve
from tradechart.distribution import (
    AXIS_ALIGNMENTS,
    AxisAlignment,
    DistributionSpec,
    FixedDistribution,
    Tick,
    compute_ticks,
)
from tradechart.errors import InvalidParameterError
from tradechart.formatting import format_tick_values, format_value
from tradechart.mapper import (
    AxisGeometry,
    BarGeometry,
    CandleGeometry,
    CoordinateMapper,
    ElementDimension,
    bar_geometry,
    candle_geometry,
    element_dimension,
    pixel_to_value,
    values_to_pixels,
)
from tradechart.ranges import Range
from tradechart.series import BarSeries, CandleSeries, LineSeries


LOGGER = logging.getLogger(__name__)

ChartSeries = CandleSeries | LineSeries | BarSeries
SeriesKind = Literal["candles", "line", "bars"]


@dataclass(frozen=True)
class SeriesLayout:
    series_id: str
    kind: SeriesKind
    candles: tuple[CandleGeometry, ...] = ()
    bars: tuple[BarGeometry, ...] = ()
    xs: np.ndarray = field(default_factory=lambda: np.empty(0, dtype=np.float64))
    ys: np.ndarray = field(default_factory=lambda: np.empty(0, dtype=np.float64))
    segments: tuple[CurveSegment, ...] = ()


@dataclass(frozen=True)
class ChartLayout:
    width: int
    height: int
    range: Range
    x_ticks: tuple[Tick, ...]
    x_tick_indices: tuple[int, ...]
    x_tick_labels: tuple[str, ...]
    y_ticks: tuple[Tick, ...]
    y_tick_labels: tuple[str, ...]
    visible_indices: tuple[int, int] | None
    series: tuple[SeriesLayout, ...]


@dataclass(frozen=True)
class CursorInfo:
    x: float
    y: float
    index: int | None
    value: float
    value_label: str
    time_label: str
    series_info: tuple[tuple[str, str], ...]
    text: str


class ChartEngine:
    """Numeric core behind one chart panel.

    The GUI layer pushes buffers, viewport size and axis configuration in and
    reads positions back out; nothing here draws.
    """

    def __init__(self, config: EngineConfig | None = None, *, title: str = "") -> None:
        self.config = config or EngineConfig()
        self.title = title
        self.aggregator = RangeAggregator()
        self._series: dict[str, ChartSeries] = {}
        self._width = 0
        self._height = 0
        self._dimension = element_dimension(self.config.element_dimension)
        self._x_distribution: DistributionSpec = FixedDistribution(interval_pixels=self.config.x_grid_spacing)
        self._x_alignment: AxisAlignment = self.config.x_alignment
        self._y_distribution: DistributionSpec = FixedDistribution(interval_pixels=self.config.y_grid_spacing)
        self._y_alignment: AxisAlignment = self.config.y_alignment

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def dimension(self) -> ElementDimension:
        return self._dimension

    @property
    def range(self) -> Range:
        return self.aggregator.merged

    def series(self, series_id: str) -> ChartSeries:
        found = self._series.get(series_id)
        if found is None:
            raise InvalidParameterError(f"unknown series: {series_id}")
        return found

    def series_ids(self) -> list[str]:
        return list(self._series)

    def add_series(self, series: ChartSeries) -> None:
        if series.series_id in self._series:
            raise InvalidParameterError(f"series already added: {series.series_id}")
        series.attach(self.aggregator)
        self._series[series.series_id] = series
        LOGGER.debug("added series %s (%s)", series.series_id, type(series).__name__)

    def remove_series(self, series_id: str) -> ChartSeries:
        series = self.series(series_id)
        series.detach()
        del self._series[series_id]
        LOGGER.debug("removed series %s", series_id)
        return series

    def resize(self, width: int, height: int) -> None:
        if width < 0 or height < 0:
            raise InvalidParameterError("viewport width and height must be >= 0")
        self._width = int(width)
        self._height = int(height)

    def set_element_dimension(self, index: int) -> None:
        self._dimension = element_dimension(index)

    def set_x_distribution(self, spec: DistributionSpec, *, alignment: AxisAlignment = "start") -> None:
        _validate_alignment(alignment)
        self._x_distribution = spec
        self._x_alignment = alignment

    def set_y_distribution(self, spec: DistributionSpec, *, alignment: AxisAlignment = "end") -> None:
        _validate_alignment(alignment)
        self._y_distribution = spec
        self._y_alignment = alignment

    def x_mapper(self) -> CoordinateMapper:
        return CoordinateMapper(AxisGeometry.from_dimension(self._width, self._dimension))

    def element_count(self) -> int:
        return max((len(s) for s in self._series.values()), default=0)

    def layout(self) -> ChartLayout:
        merged = self.aggregator.merged
        mapper = self.x_mapper()
        count = self.element_count()

        x_ticks = tuple(compute_ticks(self._x_distribution, self._width, alignment=self._x_alignment))
        x_indices = tuple(mapper.pixel_to_index(t.pixel_position) for t in x_ticks)
        x_labels = tuple(self._time_label(i) for i in x_indices)

        if self._height > 0:
            y_ticks = tuple(
                compute_ticks(
                    self._y_distribution,
                    self._height,
                    alignment=self._y_alignment,
                    value_range=merged,
                    inverted=True,
                )
            )
        else:
            y_ticks = ()
        y_labels = tuple(format_tick_values([t.value for t in y_ticks], max_decimals=self.config.value_decimals))

        layouts = tuple(self._series_layout(s, mapper, merged) for s in self._series.values())
        LOGGER.debug(
            "layout %dx%d range=[%s, %s] x_ticks=%d y_ticks=%d series=%d",
            self._width,
            self._height,
            merged.lower,
            merged.upper,
            len(x_ticks),
            len(y_ticks),
            len(layouts),
        )
        return ChartLayout(
            width=self._width,
            height=self._height,
            range=merged,
            x_ticks=x_ticks,
            x_tick_indices=x_indices,
            x_tick_labels=x_labels,
            y_ticks=y_ticks,
            y_tick_labels=y_labels,
            visible_indices=mapper.visible_index_window(count),
            series=layouts,
        )

    def cursor(self, x: float, y: float) -> CursorInfo:
        merged = self.aggregator.merged
        index = self.x_mapper().hit_test(x, self.element_count())
        value = pixel_to_value(y, merged, self._height) if self._height > 0 else merged.upper
        decimals = self.config.value_decimals

        info: list[tuple[str, str]] = []
        if index is not None:
            for series in self._series.values():
                text = series.info_at(index, decimals=decimals)
                if text:
                    info.append((series.title, text))

        parts = [self.title] if self.title else []
        parts.extend(f"{title}: {text}" for title, text in info)
        return CursorInfo(
            x=float(x),
            y=float(y),
            index=index,
            value=value,
            value_label=format_value(value, decimals=decimals),
            time_label="" if index is None else self._time_label(index),
            series_info=tuple(info),
            text="     ".join(parts),
        )

    def _time_label(self, index: int) -> str:
        for series in self._series.values():
            if isinstance(series, CandleSeries) and index < len(series):
                return series.time_label_at(index)
        if 0 <= index < self.element_count():
            return str(index)
        return ""

    def _series_layout(self, series: ChartSeries, mapper: CoordinateMapper, merged: Range) -> SeriesLayout:
        if isinstance(series, CandleSeries):
            if self._height <= 0:
                return SeriesLayout(series_id=series.series_id, kind="candles")
            geometry = candle_geometry(series.candles, mapper, merged, self._height)
            return SeriesLayout(series_id=series.series_id, kind="candles", candles=tuple(geometry))

        if isinstance(series, BarSeries):
            if self._height <= 0:
                return SeriesLayout(series_id=series.series_id, kind="bars")
            bars = bar_geometry(series.values, mapper, merged, self._height)
            return SeriesLayout(series_id=series.series_id, kind="bars", bars=tuple(bars))

        if self._height <= 0 or len(series) == 0:
            return SeriesLayout(series_id=series.series_id, kind="line")
        xs = mapper.indices_to_pixels(np.arange(len(series)))
        ys = values_to_pixels(series.values, merged, self._height)
        segments: list[CurveSegment] = []
        if series.smoothed:
            spacing = mapper.geometry.element_spacing_pixels
            for start, stop in _true_runs(np.isfinite(ys)):
                points = list(zip(xs[start:stop].tolist(), ys[start:stop].tolist()))
                segments.extend(interpolate_curve(points, spacing))
        return SeriesLayout(series_id=series.series_id, kind="line", xs=xs, ys=ys, segments=tuple(segments))


def _true_runs(mask: np.ndarray) -> list[tuple[int, int]]:
    """Half-open [start, stop) bounds of every run of True in ``mask``."""
    padded = np.concatenate(([0], np.asarray(mask, dtype=np.int8), [0]))
    edges = np.flatnonzero(np.diff(padded))
    return [(int(start), int(stop)) for start, stop in zip(edges[::2], edges[1::2])]


def _validate_alignment(alignment: str) -> None:
    if alignment not in AXIS_ALIGNMENTS:
        raise InvalidParameterError(f"unsupported axis alignment: {alignment}")
