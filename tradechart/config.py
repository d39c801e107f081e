from __future__ import annotations

from dataclasses import dataclass
import math
import os

from tradechart.distribution import AXIS_ALIGNMENTS, AxisAlignment
from tradechart.errors import InvalidParameterError
from tradechart.formatting import DEFAULT_VALUE_DECIMALS
from tradechart.mapper import ELEMENT_DIMENSIONS


@dataclass(frozen=True)
class EngineConfig:
    element_dimension: int = 2
    x_grid_spacing: float = 64.0
    y_grid_spacing: float = 32.0
    x_alignment: AxisAlignment = "start"
    y_alignment: AxisAlignment = "end"
    value_decimals: int = DEFAULT_VALUE_DECIMALS

    def __post_init__(self) -> None:
        if not 1 <= self.element_dimension <= len(ELEMENT_DIMENSIONS):
            raise InvalidParameterError(f"element_dimension must be in [1, {len(ELEMENT_DIMENSIONS)}]")
        for label, value in (("x_grid_spacing", self.x_grid_spacing), ("y_grid_spacing", self.y_grid_spacing)):
            if not math.isfinite(value) or value <= 0:
                raise InvalidParameterError(f"{label} must be > 0")
        for label, value in (("x_alignment", self.x_alignment), ("y_alignment", self.y_alignment)):
            if value not in AXIS_ALIGNMENTS:
                raise InvalidParameterError(f"{label} must be one of {', '.join(AXIS_ALIGNMENTS)}")
        if self.value_decimals < 0 or self.value_decimals > 12:
            raise InvalidParameterError("value_decimals must be in [0, 12]")

    @classmethod
    def from_env(
        cls,
        *,
        element_dimension_env_var: str = "TRADECHART_ELEMENT_DIMENSION",
        x_grid_env_var: str = "TRADECHART_X_GRID_SPACING",
        y_grid_env_var: str = "TRADECHART_Y_GRID_SPACING",
        decimals_env_var: str = "TRADECHART_VALUE_DECIMALS",
    ) -> "EngineConfig":
        defaults = cls()
        return cls(
            element_dimension=_parse_int(element_dimension_env_var, defaults.element_dimension),
            x_grid_spacing=_parse_float(x_grid_env_var, defaults.x_grid_spacing),
            y_grid_spacing=_parse_float(y_grid_env_var, defaults.y_grid_spacing),
            value_decimals=_parse_int(decimals_env_var, defaults.value_decimals),
        )


def _parse_int(env_var: str, default: int) -> int:
    raw = os.getenv(env_var, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise InvalidParameterError(f"{env_var} must be an integer, got {raw!r}") from exc


def _parse_float(env_var: str, default: float) -> float:
    raw = os.getenv(env_var, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise InvalidParameterError(f"{env_var} must be a number, got {raw!r}") from exc
