"""
DataFrame interop for the sanitizer.

Upstream exports and notebooks hand over pandas frames with long column
names; the pipeline speaks short-key point records.
"""

from typing import Any, Dict, List, Sequence
import logging

import pandas as pd

from ochart.sanitizer.schemas import Candle

LOG = logging.getLogger(__name__)

COLUMN_ALIASES = {
    "t": "t", "timestamp": "t", "timestamp_utc": "t", "time": "t", "date": "t", "datetime": "t",
    "o": "o", "open": "o",
    "h": "h", "high": "h",
    "l": "l", "low": "l",
    "c": "c", "close": "c",
    "v": "v", "volume": "v", "tick_volume": "v",
}

CANDLE_COLUMNS = ["timestamp_utc", "open", "high", "low", "close", "volume", "interpolated", "filled"]


def records_from_frame(df: pd.DataFrame) -> List[Dict[str, Any]]:
    """
    Convert a raw OHLCV frame to point records.

    Columns are matched case-insensitively against COLUMN_ALIASES; the first
    matching column wins. Datetime timestamp columns become epoch ms, other
    values are passed through untouched (the pipeline does the coercion).
    """
    mapping = {}
    for column in df.columns:
        key = COLUMN_ALIASES.get(str(column).strip().lower())
        if key is not None and key not in mapping.values():
            mapping[column] = key

    if "t" not in mapping.values():
        LOG.warning(f"No timestamp column among {list(df.columns)}")

    frame = df[list(mapping)].rename(columns=mapping).copy()

    if "t" in frame.columns:
        frame["t"] = _timestamp_to_ms(frame["t"])

    frame = frame.astype(object).where(frame.notna(), None)
    return frame.to_dict(orient="records")


def _timestamp_to_ms(series: pd.Series) -> pd.Series:
    if pd.api.types.is_datetime64_any_dtype(series):
        ts = pd.to_datetime(series, utc=True)
    elif not pd.api.types.is_numeric_dtype(series):
        # epoch values (numbers or numeric strings) are left for the pipeline
        if pd.to_numeric(series, errors="coerce").notna().any():
            return series
        ts = pd.to_datetime(series, utc=True, errors="coerce")
        if ts.isna().all():
            return series
    else:
        return series

    epoch = pd.Timestamp("1970-01-01", tz="UTC")
    ms = (ts - epoch) // pd.Timedelta(milliseconds=1)
    return ms.astype(object).where(ts.notna(), None)


def candles_to_frame(candles: Sequence[Candle]) -> pd.DataFrame:
    """Convert sanitized candles to a frame with a UTC timestamp column"""
    if not candles:
        df = pd.DataFrame(columns=CANDLE_COLUMNS)
        df["timestamp_utc"] = pd.to_datetime(df["timestamp_utc"], utc=True)
        return df

    df = pd.DataFrame({
        "timestamp_utc": pd.to_datetime([c.t for c in candles], unit="ms", utc=True),
        "open": [c.o for c in candles],
        "high": [c.h for c in candles],
        "low": [c.l for c in candles],
        "close": [c.c for c in candles],
        "volume": [c.v for c in candles],
        "interpolated": [c.interpolated for c in candles],
        "filled": [c.filled for c in candles],
    })
    return df[CANDLE_COLUMNS]
