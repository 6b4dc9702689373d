"""
Numeric primitives shared by the sanitizer stages.
"""

from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any, Optional
import math


def to_number(value: Any, default: float = math.nan) -> float:
    """
    Coerce a raw field to a finite float.

    Numbers and numeric strings are accepted; None, booleans, unparsable
    strings and non-finite results yield ``default``.
    """
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, str):
        value = value.strip()
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return default
    return number if math.isfinite(number) else default


def field_value(point: Any, key: str) -> Any:
    """Read a raw field; non-mapping points have no fields"""
    if isinstance(point, Mapping):
        return point.get(key)
    return None


def is_finite(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def round_half_up(value: float) -> int:
    """Round to nearest integer, ties towards +inf"""
    return int(math.floor(value + 0.5))


def quantize(value: float, quantum: Optional[float]) -> float:
    """Snap a price to a multiple of ``quantum`` (None or 0 = unchanged)"""
    if not quantum:
        return value
    return float(round_half_up(value / quantum) * quantum)


def lerp(start: float, end: float, ratio: float) -> float:
    return start + (end - start) * ratio


def safe_ratio(numerator: float, denominator: float) -> Optional[float]:
    """numerator / denominator, or None when the denominator is zero"""
    if denominator == 0:
        return None
    return numerator / denominator


def describe_ms(t: float) -> str:
    """ISO-8601 rendering of an epoch-ms timestamp, tolerant of bad values"""
    try:
        return datetime.fromtimestamp(t / 1000, tz=timezone.utc).isoformat()
    except (OverflowError, OSError, ValueError):
        return f"{t:.0f} ms"
