from __future__ import annotations

from decimal import Decimal
from typing import Sequence

import numpy as np


DEFAULT_VALUE_DECIMALS = 5


def format_value(value: float, *, decimals: int = DEFAULT_VALUE_DECIMALS) -> str:
    """Fixed-decimals text used for cursor price tags and candle info."""
    if not np.isfinite(value):
        return str(value)
    out = f"{float(value):.{max(0, int(decimals))}f}"
    if out.startswith("-") and float(out) == 0.0:
        out = out[1:]
    return out


def format_tick(value: float, *, step: float | None = None) -> str:
    """Price-axis label with as many decimals as ``step`` needs; fractional zeros dropped."""
    if not np.isfinite(value):
        return str(value)
    decimals = DEFAULT_VALUE_DECIMALS if step is None else _decimals_from_step(step)
    text = f"{float(value):.{decimals}f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return "0" if text == "-0" else text


def format_tick_values(values: Sequence[float] | np.ndarray, *, max_decimals: int = DEFAULT_VALUE_DECIMALS) -> list[str]:
    """Labels for a run of tick values sharing one precision.

    Non-uniform distributions have no single step, so the smallest gap between
    neighbours decides the precision.
    """
    arr = np.asarray(values, dtype=np.float64)
    if arr.size == 0:
        return []
    if arr.size == 1:
        return [format_tick(float(arr[0]))]
    gaps = np.abs(np.diff(arr))
    gaps = gaps[gaps > 0]
    if gaps.size == 0:
        return [format_tick(float(v)) for v in arr]
    step = max(float(np.min(gaps)), 10.0 ** (-max_decimals))
    step = _round_step(step)
    return [format_tick(float(v), step=step) for v in arr]


def _round_step(step: float) -> float:
    # Keep two significant digits so irregular gaps (e.g. 21.0526...) do not
    # explode the label precision.
    exp = int(np.floor(np.log10(step)))
    return float(round(step, 1 - exp)) if exp < 1 else float(10 ** exp)


def _decimals_from_step(step: float) -> int:
    if step <= 0 or not np.isfinite(step):
        return DEFAULT_VALUE_DECIMALS
    d = Decimal(str(step)).normalize()
    exp = d.as_tuple().exponent
    decimals = max(0, -int(exp))
    return min(12, decimals)
