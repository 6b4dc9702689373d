"""
ochart Sanitizer Layer

Purpose:
    Turn raw OHLCV points from an untrusted market-data feed into a
    validated, internally consistent, chronologically ordered series for
    charting and indicator computation.

Philosophy:
    - Pure, composable stages; no I/O, no shared state
    - Repair what is safely repairable, drop what is not
    - Every correction and rejection is reported, nothing is silent
    - Caller input is never mutated

Contract:
    Input:  list of raw points {t, o, h, l, c, v} (untrusted)
    Output: SanitizationResult(data, stats, errors, warnings)

Guarantees:
    - Timestamps in epoch milliseconds, strictly increasing, unique
    - low/high equal the min/max of the four prices
    - Volume finite and non-negative
"""

__version__ = "1.0.0"

from ochart.sanitizer.config import SanitizerConfig, DEFAULT_CONFIG
from ochart.sanitizer.events import EventRecorder, log_event
from ochart.sanitizer.pipeline import (
    SanitizationPipeline,
    sanitize,
    sanitize_line,
    sanitize_series,
)
from ochart.sanitizer.schemas import (
    Candle,
    Issue,
    IssueType,
    SanitizationReport,
    SanitizationResult,
    Severity,
)
from ochart.sanitizer.series_stats import SeriesStats, get_series_stats, is_valid_point

__all__ = [
    "SanitizerConfig",
    "DEFAULT_CONFIG",
    "EventRecorder",
    "log_event",
    "SanitizationPipeline",
    "sanitize",
    "sanitize_line",
    "sanitize_series",
    "Candle",
    "Issue",
    "IssueType",
    "SanitizationReport",
    "SanitizationResult",
    "Severity",
    "SeriesStats",
    "get_series_stats",
    "is_valid_point",
]
