"""
Timestamp Normalization Module

Brings every timestamp to epoch milliseconds and discards points outside the
sane calendar range. First data-touching step of the pipeline.

Rules:
    - Unit inferred from the mean of the first sampled timestamps
      (below 1e12 → seconds), unless the caller gives an explicit unit
    - Finite timestamps rounded to whole milliseconds
    - Out-of-range points dropped with a warning
    - Caller's points are copied, never modified
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Tuple
import math
import logging

from ochart.sanitizer.config import SanitizerConfig
from ochart.sanitizer.primitives import describe_ms, field_value, round_half_up, to_number
from ochart.sanitizer.schemas import IssueType, SanitizationContext

LOG = logging.getLogger(__name__)

# Stage-internal point: raw fields with ``t`` coerced to int ms or NaN
WorkPoint = Dict[str, Any]


class TimestampNormalizer:
    """
    Normalizes timestamp units and validates the calendar range.
    """

    def __init__(self, config: SanitizerConfig):
        self.config = config
        self.rules = config.timestamp_rules

    def normalize(self, points: List[Any], ctx: SanitizationContext) -> List[WorkPoint]:
        """
        Args:
            points: Raw points (mappings; anything else has no fields)
            ctx: Per-call context

        Returns:
            Copied points with ``t`` in epoch milliseconds
        """
        if not points:
            return []

        work = [self._copy_point(p) for p in points]

        if self._should_convert(points):
            ctx.stats.ms_converted = True
            for point in work:
                point["t"] = point["t"] * self.rules.ms_multiplier
            ctx.warning(
                IssueType.TIMESTAMP_CONVERTED,
                "Timestamps converted from seconds to milliseconds",
            )
            LOG.info(f"Converted {len(work)} timestamps from seconds to milliseconds")

        for point in work:
            if math.isfinite(point["t"]):
                point["t"] = round_half_up(point["t"])

        if self.config.validate_dates:
            work = self._filter_date_range(work, ctx)

        return work

    def _copy_point(self, point: Any) -> WorkPoint:
        copied = {key: field_value(point, key) for key in ("o", "h", "l", "c", "v")}
        copied["t"] = to_number(field_value(point, "t"))
        copied["_raw"] = point
        return copied

    def _should_convert(self, points: List[Any]) -> bool:
        """Decide whether timestamps are in seconds"""
        if self.rules.unit == "s":
            return True
        if self.rules.unit == "ms":
            return False

        samples = points[: min(self.rules.sample_size, len(points))]
        mean = sum(to_number(field_value(p, "t"), 0.0) for p in samples) / len(samples)
        return 0 < mean < self.rules.ms_threshold

    def valid_range_ms(self) -> Tuple[int, int]:
        """Inclusive [min, max] accepted timestamps in epoch ms"""
        start = datetime(self.rules.min_valid_year, 1, 1, tzinfo=timezone.utc)
        end = datetime(self.rules.max_valid_year, 12, 31, tzinfo=timezone.utc)
        return int(start.timestamp() * 1000), int(end.timestamp() * 1000)

    def _filter_date_range(self, work: List[WorkPoint], ctx: SanitizationContext) -> List[WorkPoint]:
        min_ms, max_ms = self.valid_range_ms()
        kept = []

        for point in work:
            t = point["t"]
            # non-finite timestamps are left for the point cleaner to reject
            if math.isfinite(t) and (t < min_ms or t > max_ms):
                ctx.stats.dropped_invalid += 1
                ctx.warning(
                    IssueType.INVALID_TIMESTAMP,
                    f"Timestamp outside valid range: {describe_ms(t)}",
                    point["_raw"],
                )
                continue
            kept.append(point)

        dropped = len(work) - len(kept)
        if dropped:
            LOG.warning(f"Dropped {dropped} points with out-of-range timestamps")

        return kept

