"""
Gap Filling Module

Inserts synthetic bars where the series skips one or more sampling slots.
Opt-in: charting wants a continuous axis, analytics usually does not.

Method:
    1. Nominal interval = median of the first adjacent intervals
    2. expected = round(Δt / interval) per adjacent pair
    3. expected - 1 bars inserted, linearly interpolated with fraction
       j / expected; the synthetic open runs from the left close to the
       right open
"""

from typing import List
import logging

import numpy as np

from ochart.sanitizer.config import SanitizerConfig
from ochart.sanitizer.primitives import lerp, round_half_up
from ochart.sanitizer.schemas import Candle, IssueType, SanitizationContext

LOG = logging.getLogger(__name__)


class GapFiller:
    """
    Detects the dominant sampling interval and fills missing bars.
    """

    def __init__(self, config: SanitizerConfig):
        self.config = config
        self.settings = config.gap_fill

    def estimate_interval(self, data: List[Candle]) -> float:
        """
        Median interval over the first sampled adjacent pairs.

        Upper median (``sorted[n // 2]``) so the result is always an observed
        interval.
        """
        head = data[: self.settings.interval_sample_pairs + 1]
        intervals = np.sort(np.diff(np.array([c.t for c in head], dtype=np.int64)))
        return float(intervals[len(intervals) // 2])

    def fill_gaps(self, data: List[Candle], ctx: SanitizationContext) -> List[Candle]:
        if len(data) < 2:
            return data

        interval = self.estimate_interval(data)
        if interval <= 0:
            LOG.warning(f"Cannot fill gaps: non-positive median interval {interval}")
            return data

        filled = []
        for left, right in zip(data, data[1:]):
            filled.append(left)

            expected = round_half_up((right.t - left.t) / interval)
            for j in range(1, expected):
                filled.append(self._synthetic(left, right, j / expected))
                ctx.stats.gaps_filled += 1
        filled.append(data[-1])

        if ctx.stats.gaps_filled > 0:
            ctx.warning(
                IssueType.GAPS_FILLED,
                f"{ctx.stats.gaps_filled} temporal gaps filled",
            )
            LOG.info(
                f"Filled {ctx.stats.gaps_filled} missing bars (interval {interval:.0f} ms)"
            )

        return filled

    @staticmethod
    def _synthetic(left: Candle, right: Candle, ratio: float) -> Candle:
        return Candle(
            t=round_half_up(lerp(left.t, right.t, ratio)),
            o=lerp(left.c, right.o, ratio),
            h=lerp(left.h, right.h, ratio),
            l=lerp(left.l, right.l, ratio),
            c=lerp(left.c, right.c, ratio),
            v=lerp(left.v, right.v, ratio),
            filled=True,
        )
