"""
Point Cleaner Module

Turns each deduplicated raw point into a Candle or rejects it.

Process (per point, first failure wins):
    1. Timestamp must be finite            → invalid_timestamp error
    2. o/h/l/c must be numeric and finite  → invalid_price error
    3. Prices must be > 0, also after quantization (optional)
                                           → negative_price error
    4. low/high rebuilt from the four prices (ohlc_inconsistency warning)
    5. Volume coerced; bad values become 0
    6. Prices quantized to the configured price unit
"""

from collections.abc import Mapping
from typing import List, Optional
import copy
import math
import logging

from ochart.sanitizer.config import SanitizerConfig
from ochart.sanitizer.primitives import quantize, to_number
from ochart.sanitizer.schemas import Candle, IssueType, SanitizationContext
from ochart.sanitizer.timestamp_normalization import WorkPoint

LOG = logging.getLogger(__name__)

DEFAULT_VOLUME = 0.0


class PointCleaner:
    """
    Validates and repairs individual points.
    """

    def __init__(self, config: SanitizerConfig):
        self.config = config

    def clean(self, points: List[WorkPoint], ctx: SanitizationContext) -> List[Candle]:
        cleaned = []

        for point in points:
            candle = self.clean_point(point, ctx)
            if candle is None:
                ctx.stats.dropped_invalid += 1
            else:
                cleaned.append(candle)

        dropped = len(points) - len(cleaned)
        if dropped:
            LOG.warning(f"Dropped {dropped}/{len(points)} unusable points")
        if ctx.stats.fixed_ohlc:
            LOG.info(f"Repaired OHLC ordering on {ctx.stats.fixed_ohlc} points")

        return cleaned

    def clean_point(self, point: WorkPoint, ctx: SanitizationContext) -> Optional[Candle]:
        """
        Returns:
            Cleaned Candle, or None if the point must be dropped
        """
        raw = point["_raw"]
        t = point["t"]

        if not math.isfinite(t):
            ctx.error(IssueType.INVALID_TIMESTAMP, "Invalid timestamp", raw)
            return None

        o = to_number(point["o"])
        h = to_number(point["h"])
        l = to_number(point["l"])
        c = to_number(point["c"])
        prices = (o, h, l, c)

        if any(math.isnan(p) for p in prices):
            ctx.error(IssueType.INVALID_PRICE, "OHLC prices contain invalid values", raw)
            return None

        if self.config.require_positive and any(p <= 0 for p in prices):
            ctx.error(IssueType.NEGATIVE_PRICE, "Negative or zero prices found", raw)
            return None

        low = min(prices)
        high = max(prices)
        quantum = self.config.price_quantum

        # sub-unit prices can round down to zero
        if self.config.require_positive and quantize(low, quantum) <= 0:
            ctx.error(
                IssueType.NEGATIVE_PRICE,
                f"Prices round to zero at price unit {quantum}",
                raw,
            )
            return None

        if low != l or high != h:
            ctx.stats.fixed_ohlc += 1
            ctx.warning(
                IssueType.OHLC_INCONSISTENCY,
                f"OHLC repaired: low {l} -> {low}, high {h} -> {high}",
                {"t": int(t), "original": raw},
            )

        v = self._clean_volume(point["v"], ctx)

        return Candle(
            t=int(t),
            o=quantize(o, quantum),
            h=quantize(high, quantum),
            l=quantize(low, quantum),
            c=quantize(c, quantum),
            v=v,
            original=self._preserve(raw),
        )

    def _clean_volume(self, value, ctx: SanitizationContext) -> float:
        if value is None:
            return DEFAULT_VOLUME

        v = to_number(value)
        if math.isnan(v) or v < 0:
            ctx.stats.neg_or_nan_vol_to_zero += 1
            return DEFAULT_VOLUME
        return v

    def _preserve(self, raw) -> Optional[dict]:
        if not self.config.preserve_original:
            return None
        return copy.deepcopy(dict(raw)) if isinstance(raw, Mapping) else None
