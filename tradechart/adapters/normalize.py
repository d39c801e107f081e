from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import datetime
from typing import TYPE_CHECKING, Any

import numpy as np

from tradechart.errors import InvalidCandleError, InvalidParameterError

if TYPE_CHECKING:
    from tradechart.series import Candle


try:
    import pandas as pd
except Exception:  # pragma: no cover - optional dependency
    pd = None  # type: ignore[assignment]


CANDLE_COLUMNS = ("open", "high", "low", "close")


def coerce_values(values: Any, *, label: str = "values") -> np.ndarray:
    """Returns a fresh 1-D float64 copy of a line buffer; None becomes NaN."""
    if pd is not None and isinstance(values, pd.DataFrame):
        numeric_cols = [c for c in values.columns if _is_numeric_dtype(values[c])]
        if len(numeric_cols) != 1:
            raise InvalidParameterError(f"{label} DataFrame must contain exactly one numeric column")
        values = values[numeric_cols[0]]

    if pd is not None and isinstance(values, pd.Series):
        return _to_float64(values.to_numpy(), label=label).copy()

    if isinstance(values, np.ndarray):
        if values.ndim != 1:
            raise InvalidParameterError(f"{label} must be 1-D")
        return _to_float64(values, label=label).copy()

    if isinstance(values, Sequence) and not isinstance(values, (str, bytes, bytearray)):
        return _to_float64(np.asarray(values, dtype=object), label=label)

    raise InvalidParameterError(f"unsupported {label} input type: {type(values)!r}")


def candles_from_records(records: Any) -> list["Candle"]:
    """Accepts Candle objects, OHLC mappings or (timestamp, o, h, l, c[, v]) tuples."""
    from tradechart.series import Candle

    if pd is not None and isinstance(records, pd.DataFrame):
        return candles_from_frame(records)

    out: list[Candle] = []
    for i, raw in enumerate(records):
        if isinstance(raw, Candle):
            out.append(raw)
        elif isinstance(raw, Mapping):
            out.append(_candle_from_mapping(raw, index=i))
        elif isinstance(raw, Sequence) and not isinstance(raw, (str, bytes, bytearray)):
            if len(raw) not in (5, 6):
                raise InvalidCandleError(f"candle record {i} must have 5 or 6 fields, got {len(raw)}")
            timestamp, open_, high, low, close = raw[:5]
            volume = raw[5] if len(raw) == 6 else 0
            out.append(
                Candle(
                    timestamp=_coerce_timestamp(timestamp, index=i),
                    open=float(open_),
                    high=float(high),
                    low=float(low),
                    close=float(close),
                    volume=int(volume),
                )
            )
        else:
            raise InvalidCandleError(f"unsupported candle record at index {i}: {raw!r}")
    return out


def candles_from_frame(frame: Any) -> list["Candle"]:
    from tradechart.series import Candle

    if pd is None:
        raise InvalidParameterError("pandas is required to read candles from a DataFrame")
    if not isinstance(frame, pd.DataFrame):
        raise InvalidParameterError("frame must be a pandas DataFrame")
    columns = {str(c).lower(): c for c in frame.columns}
    missing = [name for name in CANDLE_COLUMNS if name not in columns]
    if missing:
        raise InvalidParameterError(f"DataFrame is missing candle columns: {', '.join(missing)}")

    if "timestamp" in columns:
        stamps = frame[columns["timestamp"]].tolist()
    elif isinstance(frame.index, pd.DatetimeIndex):
        stamps = frame.index.tolist()
    else:
        raise InvalidParameterError("DataFrame needs a timestamp column or a DatetimeIndex")

    volumes = frame[columns["volume"]].tolist() if "volume" in columns else [0] * len(frame)
    out: list[Candle] = []
    for i, (stamp, o, h, l, c, v) in enumerate(
        zip(
            stamps,
            frame[columns["open"]].tolist(),
            frame[columns["high"]].tolist(),
            frame[columns["low"]].tolist(),
            frame[columns["close"]].tolist(),
            volumes,
            strict=True,
        )
    ):
        out.append(
            Candle(
                timestamp=_coerce_timestamp(stamp, index=i),
                open=float(o),
                high=float(h),
                low=float(l),
                close=float(c),
                volume=int(v),
            )
        )
    return out


def _candle_from_mapping(raw: Mapping[str, Any], *, index: int) -> "Candle":
    from tradechart.series import Candle

    missing = [name for name in ("timestamp", *CANDLE_COLUMNS) if name not in raw]
    if missing:
        raise InvalidCandleError(f"candle record {index} is missing: {', '.join(missing)}")
    return Candle(
        timestamp=_coerce_timestamp(raw["timestamp"], index=index),
        open=float(raw["open"]),
        high=float(raw["high"]),
        low=float(raw["low"]),
        close=float(raw["close"]),
        volume=int(raw.get("volume", 0)),
    )


def _coerce_timestamp(value: Any, *, index: int) -> datetime:
    if pd is not None and isinstance(value, pd.Timestamp):
        return value.to_pydatetime()
    if isinstance(value, datetime):
        return value
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value)
        except ValueError as exc:
            raise InvalidCandleError(f"candle record {index} has an invalid timestamp: {value!r}") from exc
    raise InvalidCandleError(f"candle record {index} has an unsupported timestamp: {value!r}")


def _is_numeric_dtype(series: Any) -> bool:
    if pd is None:
        return False
    try:
        return bool(pd.api.types.is_numeric_dtype(series))
    except Exception:
        return False


def _to_float64(arr: np.ndarray, *, label: str) -> np.ndarray:
    if arr.dtype.kind in "iufb":
        return arr.astype(np.float64, copy=False)
    # Object buffers: missing entries (None, pandas NA) become NaN gaps.
    out = np.full(arr.shape[0], np.nan, dtype=np.float64)
    for i, raw in enumerate(arr.tolist()):
        if raw is None or (pd is not None and raw is pd.NA):
            continue
        try:
            out[i] = float(raw)
        except (TypeError, ValueError) as exc:
            raise InvalidParameterError(f"{label} has a non-numeric entry at index {i}: {raw!r}") from exc
    return out
