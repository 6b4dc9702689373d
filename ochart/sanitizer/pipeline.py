"""
Sanitization Pipeline

Orchestrates the sanitization stages for one raw OHLCV series.

Philosophy:
    - Never raise on bad data: every problem becomes an error or warning
    - Never touch the caller's input
    - One linear pass per call, no state kept between calls
"""

from typing import Any, Dict, Optional, Tuple, List
import time
import logging

from ochart.sanitizer.config import SanitizerConfig
from ochart.sanitizer.events import EventCallback, log_event
from ochart.sanitizer.gap_filling import GapFiller
from ochart.sanitizer.input_validation import InputValidator
from ochart.sanitizer.ordering import ChronologicalSorter, Deduplicator
from ochart.sanitizer.outlier_detection import OutlierDetector
from ochart.sanitizer.point_cleaner import PointCleaner
from ochart.sanitizer.schemas import (
    Candle,
    SanitizationContext,
    SanitizationReport,
    SanitizationResult,
    Severity,
)
from ochart.sanitizer.timestamp_normalization import TimestampNormalizer

LOG = logging.getLogger(__name__)

# Issues forwarded with the summary event
SUMMARY_ISSUE_LIMIT = 5


class SanitizationPipeline:
    """
    Main pipeline for transforming raw points into clean candles.

    Execution Flow:
        Raw Points
         → Input Validation
         → Timestamp Normalization
         → Chronological Sort
         → Deduplication
         → Point Cleaning
         → Outlier Detection (optional)
         → Gap Filling (optional)
         → Stats + summary event

    Instances hold only configuration and the observer, so a single pipeline
    can serve concurrent callers.
    """

    def __init__(
        self,
        config: Optional[SanitizerConfig] = None,
        observer: Optional[EventCallback] = None,
    ):
        """
        Initialize pipeline with configuration.

        Args:
            config: SanitizerConfig instance (fresh defaults if None)
            observer: on_event(level, message, payload) sink for the run summary
        """
        self.config = config or SanitizerConfig()
        self.observer = observer or log_event

        self.input_validator = InputValidator()
        self.timestamp_normalizer = TimestampNormalizer(self.config)
        self.sorter = ChronologicalSorter()
        self.deduplicator = Deduplicator()
        self.point_cleaner = PointCleaner(self.config)
        self.outlier_detector = OutlierDetector(self.config)
        self.gap_filler = GapFiller(self.config)

    def sanitize(self, raw: Any) -> SanitizationResult:
        """
        Sanitize a complete raw series.

        Args:
            raw: List of raw points ({t, o, h, l, c, v} mappings)

        Returns:
            SanitizationResult with data, stats, errors and warnings
        """
        ctx = SanitizationContext()
        start = time.perf_counter()

        if not self.input_validator.validate(raw, ctx):
            ctx.stats.processing_time_ms = (time.perf_counter() - start) * 1000
            return self._result([], ctx)

        ctx.stats.input = len(raw)
        LOG.debug(f"Sanitizing {len(raw)} raw points")

        work = self.timestamp_normalizer.normalize(list(raw), ctx)
        work = self.sorter.sort(work)
        work = self.deduplicator.deduplicate(work, ctx)
        data = self.point_cleaner.clean(work, ctx)

        if self.config.detect_outliers:
            data = self.outlier_detector.detect_outliers(data, ctx)

        if self.config.fill_gaps:
            data = self.gap_filler.fill_gaps(data, ctx)

        ctx.stats.output = len(data)
        ctx.stats.processing_time_ms = (time.perf_counter() - start) * 1000

        self._emit_summary(ctx)

        return self._result(data, ctx)

    def _result(self, data: List[Candle], ctx: SanitizationContext) -> SanitizationResult:
        return SanitizationResult(
            data=data,
            stats=ctx.stats,
            errors=ctx.errors,
            warnings=ctx.warnings,
        )

    def _emit_summary(self, ctx: SanitizationContext) -> None:
        stats = ctx.stats
        message = (
            f"Sanitization complete: {stats.output}/{stats.input} points valid "
            f"({stats.processing_time_ms:.1f}ms)"
        )

        if ctx.errors:
            level = Severity.ERROR
            payload = {
                "stats": stats.to_dict(),
                "errors": [i.to_dict() for i in ctx.errors[:SUMMARY_ISSUE_LIMIT]],
            }
        elif ctx.warnings:
            level = Severity.WARNING
            payload = {
                "stats": stats.to_dict(),
                "warnings": [i.to_dict() for i in ctx.warnings[:SUMMARY_ISSUE_LIMIT]],
            }
        else:
            level = Severity.INFO
            payload = {"stats": stats.to_dict()}

        self.observer(level.value, message, payload)


def sanitize(
    raw: Any,
    config: Optional[SanitizerConfig] = None,
    observer: Optional[EventCallback] = None,
    **options,
) -> SanitizationResult:
    """
    Sanitize a raw series in one call.

    Keyword options (``require_positive``, ``fill_gaps``...) are applied on
    top of ``config``.
    """
    config = config or SanitizerConfig()
    if options:
        config = config.with_options(**options)
    return SanitizationPipeline(config, observer).sanitize(raw)


def sanitize_series(
    raw: Any = None,
    options: Optional[Dict[str, Any]] = None,
    **kwargs,
) -> Tuple[List[Candle], SanitizationReport]:
    """
    Compatibility wrapper returning only (data, stats).

    ``options`` may use the camelCase names of the chart front-end.
    """
    config = SanitizerConfig.from_options(options, **kwargs)
    result = SanitizationPipeline(config).sanitize([] if raw is None else raw)
    return result.data, result.stats


def sanitize_line(
    raw: Any = None,
    options: Optional[Dict[str, Any]] = None,
    **kwargs,
) -> Tuple[List[Candle], SanitizationReport]:
    """
    Line-chart variant: keeps the full OHLC for KPIs, charts use the close.
    """
    return sanitize_series(raw, options, **kwargs)
