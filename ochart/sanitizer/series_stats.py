"""
Series helpers consumed by the chart front-end: a single-point validity
predicate and a summary of an already-sanitized series.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Sequence, Union

import numpy as np

from ochart.sanitizer.primitives import field_value, to_number
from ochart.sanitizer.schemas import Candle


def is_valid_point(point: Union[Candle, Dict[str, Any], None]) -> bool:
    """
    Quick validity check for one point.

    True iff the timestamp and the four prices are finite and low/high are
    the min/max of the four prices.
    """
    if isinstance(point, Candle):
        point = point.to_dict()

    t = to_number(field_value(point, "t"))
    prices = [to_number(field_value(point, key)) for key in ("o", "h", "l", "c")]

    if np.isnan(t) or any(np.isnan(p) for p in prices):
        return False

    _, h, l, _ = prices
    return l == min(prices) and h == max(prices)


@dataclass
class PriceStats:
    min: float
    max: float
    avg: float
    last: float


@dataclass
class VolumeStats:
    min: float
    max: float
    avg: float
    total: float


@dataclass
class SeriesStats:
    """Summary of a sanitized series"""
    count: int
    start_ms: int
    end_ms: int
    # None when the timestamp is outside the datetime range
    start: Optional[datetime]
    end: Optional[datetime]
    price: PriceStats
    volume: VolumeStats

    def to_dict(self) -> Dict:
        return {
            "count": self.count,
            "date_range": {
                "start": self.start.isoformat() if self.start else None,
                "end": self.end.isoformat() if self.end else None,
                "start_ms": self.start_ms,
                "end_ms": self.end_ms,
            },
            "price": {
                "min": self.price.min,
                "max": self.price.max,
                "avg": self.price.avg,
                "last": self.price.last,
            },
            "volume": {
                "min": self.volume.min,
                "max": self.volume.max,
                "avg": self.volume.avg,
                "total": self.volume.total,
            },
        }


def get_series_stats(data: Sequence[Candle]) -> Optional[SeriesStats]:
    """
    Summarize a sanitized series.

    Returns:
        SeriesStats, or None when there is no data
    """
    if not data:
        return None

    closes = np.array([c.c for c in data], dtype=float)
    volumes = np.array([c.v for c in data], dtype=float)
    closes = closes[np.isfinite(closes)]
    volumes = volumes[np.isfinite(volumes)]

    return SeriesStats(
        count=len(data),
        start_ms=data[0].t,
        end_ms=data[-1].t,
        start=_to_datetime(data[0].t),
        end=_to_datetime(data[-1].t),
        price=PriceStats(
            min=_stat(closes, np.min),
            max=_stat(closes, np.max),
            avg=_stat(closes, np.mean),
            last=float(closes[-1]) if closes.size else float("nan"),
        ),
        volume=VolumeStats(
            min=_stat(volumes, np.min),
            max=_stat(volumes, np.max),
            avg=_stat(volumes, np.mean),
            total=float(volumes.sum()),
        ),
    )


def _stat(values: np.ndarray, func) -> float:
    return float(func(values)) if values.size else float("nan")


def _to_datetime(t: int) -> Optional[datetime]:
    try:
        return datetime.fromtimestamp(t / 1000, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None
