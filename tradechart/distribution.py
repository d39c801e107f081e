from __future__ import annotations

from dataclasses import dataclass
import math
from typing import Literal, TypeAlias

import numpy as np

from tradechart.errors import InvalidParameterError
from tradechart.ranges import Range


AxisAlignment = Literal["start", "end"]
AXIS_ALIGNMENTS: tuple[AxisAlignment, ...] = ("start", "end")


@dataclass(frozen=True)
class FixedDistribution:
    interval_pixels: float = 32.0

    def __post_init__(self) -> None:
        _require_positive(self.interval_pixels, "interval_pixels")


@dataclass(frozen=True)
class LinearDistribution:
    target_divisions: int = 5
    min_division_pixels: float = 25.0

    def __post_init__(self) -> None:
        if isinstance(self.target_divisions, bool) or not isinstance(self.target_divisions, int):
            raise InvalidParameterError("target_divisions must be an int")
        if self.target_divisions < 0:
            raise InvalidParameterError("target_divisions must be >= 0")
        _require_positive(self.min_division_pixels, "min_division_pixels")


@dataclass(frozen=True)
class GeometricDistribution:
    min_division_pixels: float = 25.0
    growth_rate: float = 1.5

    def __post_init__(self) -> None:
        _require_positive(self.min_division_pixels, "min_division_pixels")
        _require_finite(self.growth_rate, "growth_rate")
        if self.growth_rate <= 1.0:
            raise InvalidParameterError("growth_rate must be > 1")


@dataclass(frozen=True)
class LogarithmicDistribution:
    base: float = 1.5
    min_division_pixels: float = 25.0

    def __post_init__(self) -> None:
        _require_finite(self.base, "base")
        if self.base <= 1.0:
            raise InvalidParameterError("base must be > 1")
        _require_positive(self.min_division_pixels, "min_division_pixels")


DistributionSpec: TypeAlias = FixedDistribution | LinearDistribution | GeometricDistribution | LogarithmicDistribution


@dataclass(frozen=True)
class Tick:
    pixel_position: float
    value: float | None = None


def distribute(spec: DistributionSpec, axis_length: float, *, alignment: AxisAlignment = "start") -> np.ndarray:
    """Pixel positions of the gridlines along an axis, ascending."""
    length = _validate_axis_length(axis_length)
    _validate_alignment(alignment)
    if length == 0:
        return np.empty(0, dtype=np.float64)
    return _offsets(spec, length, length, alignment)


def range_distribute(
    spec: DistributionSpec,
    value_range: Range,
    axis_length: float,
    *,
    alignment: AxisAlignment = "start",
) -> np.ndarray:
    """Values matching ``distribute`` position for position, pixel 0 at ``value_range.lower``."""
    length = _validate_axis_length(axis_length)
    _validate_alignment(alignment)
    if length == 0:
        return np.empty(0, dtype=np.float64)
    return value_range.lower + _offsets(spec, length, value_range.width, alignment)


def compute_ticks(
    spec: DistributionSpec,
    axis_length: float,
    *,
    alignment: AxisAlignment = "start",
    value_range: Range | None = None,
    inverted: bool = False,
) -> list[Tick]:
    pixels = distribute(spec, axis_length, alignment=alignment)
    if value_range is None:
        return [Tick(pixel_position=float(p)) for p in pixels]
    offsets = _offsets(spec, float(axis_length), value_range.width, alignment) if pixels.size else pixels
    if inverted:
        values = value_range.upper - offsets
    else:
        values = value_range.lower + offsets
    return [Tick(pixel_position=float(p), value=float(v)) for p, v in zip(pixels, values, strict=True)]


def division_count(spec: DistributionSpec, axis_length: float) -> int:
    length = _validate_axis_length(axis_length)
    if length == 0:
        return 0
    if isinstance(spec, FixedDistribution):
        return int(math.floor(length / spec.interval_pixels + 1e-9))
    if isinstance(spec, LinearDistribution):
        return _linear_divisions(spec, length)
    if isinstance(spec, GeometricDistribution):
        return _series_divisions(length, spec.growth_rate, spec.min_division_pixels)
    if isinstance(spec, LogarithmicDistribution):
        return _series_divisions(length, spec.base, spec.min_division_pixels)
    raise TypeError(f"Unsupported distribution: {type(spec)!r}")


def _offsets(spec: DistributionSpec, length: float, span: float, alignment: AxisAlignment) -> np.ndarray:
    # Offsets from the axis origin for an axis of `length` pixels, scaled so
    # the full axis covers `span`. span == length yields pixel positions.
    if isinstance(spec, FixedDistribution):
        return _fixed_offsets(spec, length, span, alignment)
    if isinstance(spec, LinearDistribution):
        return _linear_offsets(spec, length, span)
    if isinstance(spec, GeometricDistribution):
        out = _geometric_offsets(spec, length, span)
    elif isinstance(spec, LogarithmicDistribution):
        out = _logarithmic_offsets(spec, length, span)
    else:
        raise TypeError(f"Unsupported distribution: {type(spec)!r}")
    if alignment == "end":
        # Mirror so the short divisions sit at the origin and the last tick
        # lands on the far edge.
        out = span - out[::-1]
    return out


def _fixed_offsets(spec: FixedDistribution, length: float, span: float, alignment: AxisAlignment) -> np.ndarray:
    interval = float(spec.interval_pixels)
    start = 0.0 if alignment == "start" else math.fmod(length, interval)
    count = int(math.floor((length - start) / interval + 1e-9)) + 1
    pixels = start + np.arange(count, dtype=np.float64) * interval
    pixels = pixels[pixels <= length]
    scale = span / length
    return pixels * scale


def _linear_divisions(spec: LinearDistribution, length: float) -> int:
    divisions = spec.target_divisions
    while divisions > 0 and length / divisions < spec.min_division_pixels:
        divisions -= 1
    return divisions


def _linear_offsets(spec: LinearDistribution, length: float, span: float) -> np.ndarray:
    divisions = _linear_divisions(spec, length)
    if divisions == 0:
        return np.asarray([0.0, span], dtype=np.float64)
    k = np.arange(divisions + 1, dtype=np.float64)
    return k * span / divisions


def _series_divisions(length: float, ratio: float, min_division: float) -> int:
    # Smallest n with min_division * (ratio**n - 1) / (ratio - 1) >= length.
    n = math.log(length * (ratio - 1.0) / min_division + 1.0) / math.log(ratio)
    return max(1, int(math.ceil(n)))


def _geometric_offsets(spec: GeometricDistribution, length: float, span: float) -> np.ndarray:
    n = _series_divisions(length, spec.growth_rate, spec.min_division_pixels)
    divisions = spec.min_division_pixels * np.power(spec.growth_rate, np.arange(n, dtype=np.float64))
    geometric_sum = float(np.sum(divisions))
    steps = divisions[::-1] * (span / geometric_sum)
    out = np.concatenate(([0.0], np.cumsum(steps)))
    return np.minimum(out, span)


def _logarithmic_offsets(spec: LogarithmicDistribution, length: float, span: float) -> np.ndarray:
    n = _series_divisions(length, spec.base, spec.min_division_pixels)
    # log_base(i + 1) / log_base(n + 1); the base cancels out.
    logs = np.log(np.arange(1, n + 2, dtype=np.float64))
    return np.minimum(logs / logs[-1] * span, span)


def _validate_axis_length(axis_length: float) -> float:
    length = float(axis_length)
    if not math.isfinite(length) or length < 0:
        raise InvalidParameterError("axis_length must be a finite value >= 0")
    return length


def _validate_alignment(alignment: str) -> None:
    if alignment not in AXIS_ALIGNMENTS:
        raise InvalidParameterError(f"unsupported axis alignment: {alignment}")


def _require_finite(value: float, label: str) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
        raise InvalidParameterError(f"{label} must be a finite number")


def _require_positive(value: float, label: str) -> None:
    _require_finite(value, label)
    if value <= 0:
        raise InvalidParameterError(f"{label} must be > 0")
