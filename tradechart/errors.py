from __future__ import annotations


class ChartEngineError(ValueError):
    pass


class InvalidRangeError(ChartEngineError):
    """Raised when a range would end up with upper < lower."""


class InvalidParameterError(ChartEngineError):
    pass


class InvalidCandleError(ChartEngineError):
    pass
