"""
Sanitizer Schemas

Defines the output contract of the sanitization pipeline: the Candle record,
the structured Issue records and the SanitizationReport counters.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class IssueType(Enum):
    """Issue types recorded by the pipeline"""
    # Errors: point (or input) unusable
    INVALID_TIMESTAMP = "invalid_timestamp"
    INVALID_PRICE = "invalid_price"
    NEGATIVE_PRICE = "negative_price"
    MISSING_REQUIRED = "missing_required"

    # Warnings: point kept but corrected, or observation
    OHLC_INCONSISTENCY = "ohlc_inconsistency"
    DUPLICATE_TIMESTAMP = "duplicate_timestamp"
    OUTLIER_DETECTED = "outlier_detected"
    TIMESTAMP_CONVERTED = "timestamp_converted"
    GAPS_FILLED = "gaps_filled"
    EMPTY_INPUT = "empty_input"


class Severity(Enum):
    """Event levels delivered to observers"""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@dataclass
class Issue:
    """Structured error or warning record"""
    type: IssueType
    message: str
    data: Optional[Any] = None

    def to_dict(self) -> Dict:
        result = {"type": self.type.value, "message": self.message}
        if self.data is not None:
            result["data"] = self.data.to_dict() if isinstance(self.data, Candle) else self.data
        return result


@dataclass(frozen=True)
class Candle:
    """
    Sanitized OHLCV bar.

    Guarantees (for pipeline output):
        - t is epoch milliseconds (UTC)
        - l == min(o, h, l, c) and h == max(o, h, l, c)
        - v finite and >= 0
    """
    t: int
    o: float
    h: float
    l: float
    c: float
    v: float

    # Provenance tags
    interpolated: bool = False
    filled: bool = False
    original: Optional[Dict[str, Any]] = field(default=None, compare=False)

    def to_dict(self) -> Dict:
        """Serialize using the short field names of the raw feed"""
        result = {"t": self.t, "o": self.o, "h": self.h, "l": self.l, "c": self.c, "v": self.v}
        if self.interpolated:
            result["_interpolated"] = True
        if self.filled:
            result["_filled"] = True
        if self.original is not None:
            result["_original"] = self.original
        return result


@dataclass
class SanitizationReport:
    """Counters accumulated by the pipeline stages"""
    input: int = 0
    output: int = 0
    ms_converted: bool = False
    deduped: int = 0
    dropped_invalid: int = 0
    fixed_ohlc: int = 0
    neg_or_nan_vol_to_zero: int = 0
    outliers_detected: int = 0
    gaps_filled: int = 0
    processing_time_ms: float = 0.0

    def to_dict(self) -> Dict:
        return {
            "input": self.input,
            "output": self.output,
            "ms_converted": self.ms_converted,
            "deduped": self.deduped,
            "dropped_invalid": self.dropped_invalid,
            "fixed_ohlc": self.fixed_ohlc,
            "neg_or_nan_vol_to_zero": self.neg_or_nan_vol_to_zero,
            "outliers_detected": self.outliers_detected,
            "gaps_filled": self.gaps_filled,
            "processing_time_ms": self.processing_time_ms,
        }


@dataclass
class SanitizationContext:
    """
    Per-call mutable state threaded through the stages.

    A fresh context is created for every pipeline run so pipeline instances
    stay free of cross-call state.
    """
    stats: SanitizationReport = field(default_factory=SanitizationReport)
    errors: List[Issue] = field(default_factory=list)
    warnings: List[Issue] = field(default_factory=list)

    def error(self, issue_type: IssueType, message: str, data: Any = None) -> None:
        self.errors.append(Issue(issue_type, message, data))

    def warning(self, issue_type: IssueType, message: str, data: Any = None) -> None:
        self.warnings.append(Issue(issue_type, message, data))


@dataclass
class SanitizationResult:
    """Pipeline output: cleaned bars plus diagnostics"""
    data: List[Candle]
    stats: SanitizationReport
    errors: List[Issue] = field(default_factory=list)
    warnings: List[Issue] = field(default_factory=list)

    def issues_of(self, issue_type: IssueType) -> List[Issue]:
        """Return errors and warnings of the given type, errors first"""
        return [i for i in self.errors + self.warnings if i.type == issue_type]

    def to_dict(self) -> Dict:
        return {
            "data": [candle.to_dict() for candle in self.data],
            "stats": self.stats.to_dict(),
            "errors": [issue.to_dict() for issue in self.errors],
            "warnings": [issue.to_dict() for issue in self.warnings],
        }
