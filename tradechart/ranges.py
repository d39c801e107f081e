from __future__ import annotations

import math
from typing import Any

import numpy as np

from tradechart.errors import InvalidRangeError


class Range:
    """Closed value interval [lower, upper] shown along a price axis.

    Bounds are read-only; ``set_upper`` and ``set_lower`` are the only mutators
    and both keep ``upper >= lower``.
    """

    __slots__ = ("_upper", "_lower")

    def __init__(self, upper: float, lower: float) -> None:
        upper = _coerce_bound(upper, "upper")
        lower = _coerce_bound(lower, "lower")
        if upper < lower:
            raise InvalidRangeError(f"upper ({upper}) must be >= lower ({lower})")
        self._upper = upper
        self._lower = lower

    def __repr__(self) -> str:
        return f"Range(upper={self._upper!r}, lower={self._lower!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Range):
            return NotImplemented
        return self._upper == other._upper and self._lower == other._lower

    __hash__ = None  # type: ignore[assignment]

    @classmethod
    def empty(cls) -> "Range":
        return cls(upper=0.0, lower=0.0)

    @classmethod
    def from_values(cls, values: Any) -> "Range | None":
        arr = np.asarray(values, dtype=np.float64).ravel()
        finite = arr[np.isfinite(arr)]
        if finite.size == 0:
            return None
        return cls(upper=float(np.max(finite)), lower=float(np.min(finite)))

    @property
    def upper(self) -> float:
        return self._upper

    @property
    def lower(self) -> float:
        return self._lower

    @property
    def width(self) -> float:
        return self._upper - self._lower

    def set_upper(self, upper: float) -> None:
        value = _coerce_bound(upper, "upper")
        if value < self._lower:
            raise InvalidRangeError(f"upper ({value}) must be >= lower ({self._lower})")
        self._upper = value

    def set_lower(self, lower: float) -> None:
        value = _coerce_bound(lower, "lower")
        if value > self._upper:
            raise InvalidRangeError(f"lower ({value}) must be <= upper ({self._upper})")
        self._lower = value

    def contains(self, value: float) -> bool:
        return self._lower <= value <= self._upper

    def merge(self, other: "Range") -> "Range":
        return Range(upper=max(self._upper, other.upper), lower=min(self._lower, other.lower))

    def copy(self) -> "Range":
        return Range(upper=self._upper, lower=self._lower)


def _coerce_bound(value: Any, label: str) -> float:
    try:
        out = float(value)
    except (TypeError, ValueError) as exc:
        raise InvalidRangeError(f"{label} must be numeric, got {value!r}") from exc
    if math.isnan(out):
        raise InvalidRangeError(f"{label} must not be NaN")
    return out
