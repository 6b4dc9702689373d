"""
Outlier Detection Module

Neutralizes isolated price spikes caused by upstream glitches.

Method:
    - Close-to-close ratio against the previous bar flags a candidate when it
      exceeds the threshold (or falls below its inverse)
    - A candidate with a successor is confirmed only if the series snaps back:
      next.c / cur.c ≈ 1 / change
    - Confirmed spikes are replaced by a bar interpolated from both neighbours
    - The last bar has no successor: it needs twice the threshold and is
      dropped instead of interpolated

Neighbours are positional (previous / next element of the stage input), not
timestamp based.
"""

from dataclasses import replace
from typing import List, Optional
import logging

from ochart.sanitizer.config import SanitizerConfig
from ochart.sanitizer.primitives import describe_ms, safe_ratio
from ochart.sanitizer.schemas import Candle, IssueType, SanitizationContext

LOG = logging.getLogger(__name__)


class OutlierDetector:
    """
    Detects and interpolates isolated spikes.
    """

    def __init__(self, config: SanitizerConfig):
        self.config = config
        self.thresholds = config.outlier_thresholds

    def detect_outliers(self, data: List[Candle], ctx: SanitizationContext) -> List[Candle]:
        if len(data) < self.thresholds.min_points:
            return data

        cleaned = []

        for i, current in enumerate(data):
            prev = data[i - 1] if i > 0 else None
            nxt = data[i + 1] if i + 1 < len(data) else None

            if prev is None or not self.is_outlier(prev, current, nxt):
                cleaned.append(current)
                continue

            ctx.stats.outliers_detected += 1
            ctx.warning(
                IssueType.OUTLIER_DETECTED,
                f"Outlier detected: close {current.c} at {describe_ms(current.t)}",
                current,
            )

            if nxt is not None:
                cleaned.append(self.interpolate(prev, current, nxt))
            else:
                LOG.debug(f"Dropping boundary outlier at t={current.t}")

        if ctx.stats.outliers_detected:
            LOG.warning(f"Detected {ctx.stats.outliers_detected} outliers in {len(data)} bars")

        return cleaned

    def is_outlier(self, prev: Candle, current: Candle, nxt: Optional[Candle]) -> bool:
        """Apply the spike test to ``current`` given its neighbours"""
        threshold = self.thresholds.threshold

        change = safe_ratio(current.c, prev.c)
        if change is None or not _beyond(change, threshold):
            return False

        if nxt is None:
            return _beyond(change, threshold * self.thresholds.boundary_multiplier)

        back = safe_ratio(nxt.c, current.c)
        if back is None or change == 0:
            return False
        return abs(back - 1 / change) < self.thresholds.snap_back_tolerance

    @staticmethod
    def interpolate(prev: Candle, current: Candle, nxt: Candle) -> Candle:
        """Replacement bar built from the neighbours of a spike"""
        bridge = (prev.c + nxt.o) / 2
        return replace(
            current,
            o=bridge,
            h=max((prev.h + nxt.h) / 2, bridge),
            l=min((prev.l + nxt.l) / 2, bridge),
            c=(prev.c + nxt.c) / 2,
            v=(prev.v + nxt.v) / 2,
            interpolated=True,
        )


def _beyond(ratio: float, threshold: float) -> bool:
    return ratio > threshold or ratio < 1 / threshold

