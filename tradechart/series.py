from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
import logging
import math
from typing import Any, Iterable

import numpy as np

from tradechart.adapters.normalize import candles_from_records, coerce_values
from tradechart.aggregator import OverflowPolicy, RangeAggregator, validate_policy
from tradechart.errors import InvalidCandleError, InvalidParameterError
from tradechart.formatting import DEFAULT_VALUE_DECIMALS, format_value
from tradechart.ranges import Range


LOGGER = logging.getLogger(__name__)

INFO_TIME_FORMAT = "%d %b %H:%M"
DESCRIBE_TIME_FORMAT = "%Y.%m.%d %H:%M"


@dataclass(frozen=True)
class Candle:
    timestamp: datetime
    open: float
    high: float
    low: float
    close: float
    volume: int = 0

    def __post_init__(self) -> None:
        if not isinstance(self.timestamp, datetime):
            raise InvalidCandleError("timestamp must be a datetime")
        for name in ("open", "high", "low", "close"):
            raw = getattr(self, name)
            try:
                object.__setattr__(self, name, float(raw))
            except (TypeError, ValueError) as exc:
                raise InvalidCandleError(f"{name} must be numeric, got {raw!r}") from exc
        try:
            object.__setattr__(self, "volume", int(self.volume))
        except (TypeError, ValueError, OverflowError) as exc:
            raise InvalidCandleError(f"volume must be an integer, got {self.volume!r}") from exc
        prices = (self.open, self.high, self.low, self.close)
        if not all(math.isfinite(p) for p in prices):
            raise InvalidCandleError("prices must be finite")
        if min(prices) < 0 or self.volume < 0:
            raise InvalidCandleError("values must not be negative")
        if self.high < self.low:
            raise InvalidCandleError("high must be >= low")
        if not (self.low <= self.open <= self.high and self.low <= self.close <= self.high):
            raise InvalidCandleError("open and close must lie within [low, high]")

    @property
    def upward(self) -> bool:
        return self.close >= self.open

    def time_label(self) -> str:
        return self.timestamp.strftime(INFO_TIME_FORMAT)

    def describe(self, *, decimals: int = DEFAULT_VALUE_DECIMALS) -> str:
        return (
            f"O: {format_value(self.open, decimals=decimals)}  "
            f"H: {format_value(self.high, decimals=decimals)}  "
            f"L: {format_value(self.low, decimals=decimals)}  "
            f"C: {format_value(self.close, decimals=decimals)}  "
            f"V: {self.volume}  "
            f"D: {self.timestamp.strftime(DESCRIBE_TIME_FORMAT)}"
        )


class _SeriesBuffer:
    """Ordered element buffer that owns its range and reports it to an aggregator.

    Only copies of the range leave the series, so later buffer mutation can
    never corrupt a merge already folded by the aggregator. With ``max_size``
    set, appending drops the oldest elements and prepending drops the newest.
    """

    def __init__(
        self,
        series_id: str,
        *,
        policy: OverflowPolicy = "dynamic",
        max_size: int | None = None,
        title: str = "",
    ) -> None:
        if not series_id:
            raise InvalidParameterError("series_id must be a non-empty string")
        validate_policy(policy)
        if max_size is not None and max_size <= 0:
            raise InvalidParameterError("max_size must be > 0 when provided")
        self.series_id = series_id
        self.title = title or series_id
        self.max_size = max_size
        self._policy: OverflowPolicy = policy
        self._range: Range | None = None
        self._aggregator: RangeAggregator | None = None

    @property
    def policy(self) -> OverflowPolicy:
        return self._policy

    @property
    def range(self) -> Range | None:
        return None if self._range is None else self._range.copy()

    def __len__(self) -> int:
        raise NotImplementedError

    def attach(self, aggregator: RangeAggregator) -> None:
        if self._aggregator is not None:
            raise InvalidParameterError(f"series {self.series_id} is already attached")
        aggregator.register(self.series_id, self._range, self._policy)
        self._aggregator = aggregator

    def detach(self) -> None:
        if self._aggregator is None:
            return
        self._aggregator.unregister(self.series_id)
        self._aggregator = None

    def set_policy(self, policy: OverflowPolicy) -> None:
        validate_policy(policy)
        self._policy = policy
        if self._aggregator is not None:
            self._aggregator.set_policy(self.series_id, policy)

    def info_at(self, index: int, *, decimals: int = DEFAULT_VALUE_DECIMALS) -> str:
        raise NotImplementedError

    def _range_changed(self, new_range: Range | None) -> None:
        self._range = new_range
        if self._aggregator is not None:
            self._aggregator.update(self.series_id, new_range)

    def _element_index(self, index: int) -> int:
        size = len(self)
        if not -size <= index < size:
            raise InvalidParameterError(f"index {index} out of range for series {self.series_id} of size {size}")
        return index % size

    def _cap(self, size: int, *, keep_head: bool) -> slice:
        if self.max_size is None or size <= self.max_size:
            return slice(None)
        if keep_head:
            return slice(None, self.max_size)
        return slice(size - self.max_size, None)


class CandleSeries(_SeriesBuffer):
    def __init__(
        self,
        series_id: str,
        candles: Iterable[Any] = (),
        *,
        policy: OverflowPolicy = "dynamic",
        max_size: int | None = None,
        title: str = "",
    ) -> None:
        super().__init__(series_id, policy=policy, max_size=max_size, title=title)
        self._candles: tuple[Candle, ...] = ()
        items = candles_from_records(candles)
        if items:
            self.replace(items)

    def __len__(self) -> int:
        return len(self._candles)

    @property
    def candles(self) -> tuple[Candle, ...]:
        return self._candles

    def append(self, candle: Candle) -> None:
        self._store(self._candles + (candle,))

    def extend(self, candles: Iterable[Any]) -> None:
        self._store(self._candles + tuple(candles_from_records(candles)))

    def prepend(self, candle: Candle) -> None:
        self._store((candle,) + self._candles, keep_head=True)

    def prepend_many(self, candles: Iterable[Any]) -> None:
        """Puts older history in front; ``candles`` stay in their given order."""
        self._store(tuple(candles_from_records(candles)) + self._candles, keep_head=True)

    def replace(self, candles: Iterable[Any]) -> None:
        self._store(tuple(candles_from_records(candles)))

    def remove(self, index: int) -> Candle:
        i = self._element_index(index)
        removed = self._candles[i]
        self._store(self._candles[:i] + self._candles[i + 1 :])
        return removed

    def clear(self) -> None:
        self._store(())

    def info_at(self, index: int, *, decimals: int = DEFAULT_VALUE_DECIMALS) -> str:
        if not 0 <= index < len(self._candles):
            return ""
        return self._candles[index].describe(decimals=decimals)

    def time_label_at(self, index: int) -> str:
        if not 0 <= index < len(self._candles):
            return ""
        return self._candles[index].time_label()

    def _store(self, candles: tuple[Candle, ...], *, keep_head: bool = False) -> None:
        candles = candles[self._cap(len(candles), keep_head=keep_head)]
        self._candles = candles
        if not candles:
            self._range_changed(None)
            return
        self._range_changed(
            Range(upper=max(c.high for c in candles), lower=min(c.low for c in candles))
        )


class _ValueSeries(_SeriesBuffer):
    def __init__(
        self,
        series_id: str,
        values: Any = (),
        *,
        policy: OverflowPolicy = "dynamic",
        max_size: int | None = None,
        title: str = "",
    ) -> None:
        super().__init__(series_id, policy=policy, max_size=max_size, title=title)
        self._values = _readonly(np.empty(0, dtype=np.float64))
        self.replace(values)

    def __len__(self) -> int:
        return int(self._values.size)

    @property
    def values(self) -> np.ndarray:
        return self._values

    def append(self, value: float) -> None:
        self._store(np.append(self._values, float(value)))

    def extend(self, values: Any) -> None:
        self._store(np.concatenate((self._values, coerce_values(values))))

    def prepend(self, value: float) -> None:
        self._store(np.concatenate(([float(value)], self._values)), keep_head=True)

    def prepend_many(self, values: Any) -> None:
        self._store(np.concatenate((coerce_values(values), self._values)), keep_head=True)

    def replace(self, values: Any) -> None:
        self._store(coerce_values(values))

    def remove(self, index: int) -> float:
        i = self._element_index(index)
        removed = float(self._values[i])
        self._store(np.delete(self._values, i))
        return removed

    def clear(self) -> None:
        self._store(np.empty(0, dtype=np.float64))

    def info_at(self, index: int, *, decimals: int = DEFAULT_VALUE_DECIMALS) -> str:
        if not 0 <= index < self._values.size:
            return ""
        return format_value(float(self._values[index]), decimals=decimals)

    def _value_range(self, values: np.ndarray) -> Range | None:
        return Range.from_values(values)

    def _store(self, values: np.ndarray, *, keep_head: bool = False) -> None:
        values = values[self._cap(values.size, keep_head=keep_head)].copy()
        skipped = int(np.count_nonzero(~np.isfinite(values)))
        if skipped:
            LOGGER.debug("series %s holds %d non-finite values; excluded from its range", self.series_id, skipped)
        self._values = _readonly(values)
        self._range_changed(self._value_range(values))


class LineSeries(_ValueSeries):
    def __init__(
        self,
        series_id: str,
        values: Any = (),
        *,
        smoothed: bool = False,
        policy: OverflowPolicy = "dynamic",
        max_size: int | None = None,
        title: str = "",
    ) -> None:
        self.smoothed = smoothed
        super().__init__(series_id, values, policy=policy, max_size=max_size, title=title)


class BarSeries(_ValueSeries):
    """Value bars drawn from a zero baseline; the range always includes 0."""

    def _value_range(self, values: np.ndarray) -> Range | None:
        found = Range.from_values(values)
        if found is None:
            return None
        return found.merge(Range.empty())


def _readonly(values: np.ndarray) -> np.ndarray:
    values.setflags(write=False)
    return values
