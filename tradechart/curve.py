from __future__ import annotations

from dataclasses import dataclass
import math
from typing import Literal, Sequence

import numpy as np

from tradechart.errors import InvalidParameterError


SlopeContinuity = Literal[
    "start",
    "end",
    "change_to_change",
    "change_to_continue",
    "continue_to_change",
    "continue_to_continue",
    "indeterminate",
]

Point = tuple[float, float]

# Control point offsets along x, as fractions of the element spacing.
REVERSAL_OFFSET = 0.5
CONTINUE_OFFSET = 0.3


@dataclass(frozen=True)
class CurveSegment:
    p0: Point
    c0: Point
    c1: Point
    p1: Point
    continuity: SlopeContinuity


def slope(y0: float, y1: float, element_spacing: float) -> float:
    return (y1 - y0) / element_spacing


def classify_slopes(back: float, current: float, forward: float) -> SlopeContinuity:
    b = _sign(back)
    c = _sign(current)
    f = _sign(forward)
    if b == 0 or c == 0 or f == 0:
        return "indeterminate"
    if b != c and c != f:
        return "change_to_change"
    if b != c:
        return "change_to_continue"
    if c != f:
        return "continue_to_change"
    return "continue_to_continue"


def interpolate_curve(points: Sequence[Point], element_spacing: float) -> list[CurveSegment]:
    """Chain of cubic Bezier segments passing through every point.

    Each segment looks at the slopes before, across and after it and picks its
    control points accordingly. Control y values are clamped to the band
    spanned by the segment's endpoints so the curve never overshoots them.
    """
    if not math.isfinite(element_spacing) or element_spacing <= 0:
        raise InvalidParameterError("element_spacing must be > 0")
    pts = [(float(x), float(y)) for x, y in points]
    count = len(pts)
    if count < 2:
        return []

    s = float(element_spacing)
    segments: list[CurveSegment] = []
    for i in range(count - 1):
        x1, y1 = pts[i]
        x2, y2 = pts[i + 1]
        x0, y0 = pts[i - 1] if i > 0 else (x1 - s, y1)
        y3 = pts[i + 2][1] if i + 2 < count else y2

        back = slope(y0, y1, s) if i > 0 else 0.0
        current = slope(y1, y2, s)
        forward = slope(y2, y3, s)
        lo = min(y1, y2)
        hi = max(y1, y2)

        if i == 0:
            continuity: SlopeContinuity = "start"
        elif i == count - 2:
            continuity = "end"
        else:
            continuity = classify_slopes(back, current, forward)

        if continuity in ("change_to_change", "change_to_continue"):
            cx0 = x1 + s * REVERSAL_OFFSET
            cy0 = _clamp(y0 + back * (cx0 - x0), lo, hi)
            cx1 = x2 - s * REVERSAL_OFFSET
            cy1 = _clamp(y2 + forward * (cx1 - x2), lo, hi)
        elif continuity in ("start", "continue_to_change"):
            cx0, cy0 = x1, y1
            cx1 = x1 + s * REVERSAL_OFFSET
            cy1 = _clamp(y2 + forward * (cx1 - x2), lo, hi)
        elif continuity in ("continue_to_continue", "indeterminate"):
            # Flat or tied slopes carry no direction change; treat them as
            # continuing.
            cx0, cy0 = x1, y1
            cx1 = x1 + s * CONTINUE_OFFSET
            cy1 = _clamp(y2 + forward * (cx1 - x2), lo, hi)
        else:
            cx0 = x1 + s * REVERSAL_OFFSET
            cy0 = _clamp(y0 + back * (cx0 - x0), lo, hi)
            cx1, cy1 = x2, y2

        segments.append(
            CurveSegment(
                p0=(x1, y1),
                c0=(cx0, cy0),
                c1=(cx1, cy1),
                p1=(x2, y2),
                continuity=continuity,
            )
        )
    return segments


def flatten_curve(segments: Sequence[CurveSegment], samples_per_segment: int = 16) -> tuple[np.ndarray, np.ndarray]:
    if samples_per_segment < 1:
        raise InvalidParameterError("samples_per_segment must be >= 1")
    if not segments:
        return np.empty(0, dtype=np.float64), np.empty(0, dtype=np.float64)

    t = np.linspace(0.0, 1.0, samples_per_segment + 1, dtype=np.float64)[1:]
    basis = np.stack(
        [
            (1.0 - t) ** 3,
            3.0 * (1.0 - t) ** 2 * t,
            3.0 * (1.0 - t) * t**2,
            t**3,
        ],
        axis=1,
    )
    xs: list[np.ndarray] = [np.asarray([segments[0].p0[0]], dtype=np.float64)]
    ys: list[np.ndarray] = [np.asarray([segments[0].p0[1]], dtype=np.float64)]
    for seg in segments:
        ctrl = np.asarray([seg.p0, seg.c0, seg.c1, seg.p1], dtype=np.float64)
        pts = basis @ ctrl
        xs.append(pts[:, 0])
        ys.append(pts[:, 1])
    return np.concatenate(xs), np.concatenate(ys)


def _sign(value: float) -> int:
    if value > 0:
        return 1
    if value < 0:
        return -1
    return 0


def _clamp(value: float, lo: float, hi: float) -> float:
    return min(max(value, lo), hi)
