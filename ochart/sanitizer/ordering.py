"""
Ordering Module

Chronological sort and timestamp deduplication.

Rules:
    - Stable ascending sort by timestamp
    - Same timestamp → last occurrence (in sorted order) wins
    - Non-finite timestamps are neither sorted nor merged; they trail the
      series and are rejected by the point cleaner
"""

from typing import List
import math
import logging

from ochart.sanitizer.schemas import IssueType, SanitizationContext
from ochart.sanitizer.timestamp_normalization import WorkPoint

LOG = logging.getLogger(__name__)


class ChronologicalSorter:
    """Orders points ascending by timestamp"""

    def sort(self, points: List[WorkPoint]) -> List[WorkPoint]:
        return sorted(points, key=_sort_key)


def _sort_key(point: WorkPoint):
    t = point["t"]
    if math.isfinite(t):
        return (0, t)
    return (1, 0)


class Deduplicator:
    """
    Collapses points sharing a timestamp.

    The surviving point is the last one seen; it keeps the position of the
    first occurrence, which for sorted input is the same slot.
    """

    def deduplicate(self, points: List[WorkPoint], ctx: SanitizationContext) -> List[WorkPoint]:
        unique = {}
        trailing = []
        duplicates = 0

        for point in points:
            t = point["t"]
            if not math.isfinite(t):
                trailing.append(point)
                continue
            if t in unique:
                duplicates += 1
            unique[t] = point

        if duplicates > 0:
            ctx.stats.deduped = duplicates
            ctx.warning(
                IssueType.DUPLICATE_TIMESTAMP,
                f"{duplicates} duplicate timestamps removed",
            )
            LOG.warning(f"Removed {duplicates} duplicate timestamps (last value kept)")

        return list(unique.values()) + trailing
