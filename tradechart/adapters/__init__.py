from tradechart.adapters.normalize import candles_from_frame, candles_from_records, coerce_values

__all__ = ["candles_from_frame", "candles_from_records", "coerce_values"]
