"""
End-to-end tests for the sanitization pipeline.

Run: pytest tests/test_sanitizer_pipeline.py -v
"""

import copy
from concurrent.futures import ThreadPoolExecutor

import pytest

from ochart.sanitizer import (
    DEFAULT_CONFIG,
    EventRecorder,
    SanitizationPipeline,
    SanitizerConfig,
    sanitize,
    sanitize_line,
    sanitize_series,
)
from ochart.sanitizer.schemas import IssueType

from conftest import BASE_MS, MINUTE_MS


def ohlcv(candles):
    return [(c.t, c.o, c.h, c.l, c.c, c.v) for c in candles]


# ============================================================================
# REFERENCE SCENARIOS
# ============================================================================

class TestReferenceScenarios:
    """Small hand-checked inputs"""

    def test_seconds_swapped_high_low_negative_volume(self):
        result = sanitize([{"t": 1700000000, "o": 100, "h": 90, "l": 110, "c": 95, "v": -5}])

        assert len(result.data) == 1
        bar = result.data[0]
        assert bar.t == 1_700_000_000_000
        assert bar.l == 90
        assert bar.h == 110
        assert bar.v == 0
        assert result.stats.ms_converted is True
        assert result.stats.fixed_ohlc == 1
        assert result.stats.neg_or_nan_vol_to_zero == 1
        assert result.errors == []

    def test_duplicate_timestamp_keeps_later_point(self, make_point):
        result = sanitize([make_point(BASE_MS, 100), make_point(BASE_MS, 105)])

        assert len(result.data) == 1
        assert result.data[0].c == 105
        assert result.stats.deduped == 1

    def test_spike_replaced_by_interpolation(self, closes_series):
        result = sanitize(closes_series([100, 101, 99, 1000, 102, 100]))

        assert len(result.data) == 6
        assert result.stats.outliers_detected == 1
        spike = result.data[3]
        assert spike.interpolated is True
        assert spike.c == pytest.approx(100.5)
        assert spike.t == BASE_MS + 3 * MINUTE_MS

    def test_zero_open_dropped_when_positive_required(self):
        result = sanitize([{"t": BASE_MS, "o": 0, "h": 10, "l": 5, "c": 8}], require_positive=True)

        assert result.data == []
        assert result.stats.dropped_invalid == 1
        assert [e.type for e in result.errors] == [IssueType.NEGATIVE_PRICE]

    def test_empty_input(self):
        body = sanitize([]).to_dict()

        assert body["data"] == []
        assert body["stats"]["input"] == 0
        assert body["stats"]["output"] == 0
        assert body["errors"] == []
        assert [w["type"] for w in body["warnings"]] == ["empty_input"]

    @pytest.mark.parametrize("raw", [None, {"data": []}, "t,o,h,l,c"])
    def test_non_list_input(self, raw):
        result = sanitize(raw)

        assert result.data == []
        assert result.stats.input == 0
        assert [e.type for e in result.errors] == [IssueType.MISSING_REQUIRED]


# ============================================================================
# OUTPUT GUARANTEES
# ============================================================================

class TestOutputGuarantees:
    """Properties of any pipeline output on a realistic messy feed"""

    @pytest.fixture
    def result(self, messy_raw_series):
        return sanitize(messy_raw_series)

    def test_counters(self, result):
        stats = result.stats
        assert stats.input == 202
        assert stats.deduped == 2
        assert stats.dropped_invalid == 2
        assert stats.fixed_ohlc == 3
        assert stats.neg_or_nan_vol_to_zero == 2
        assert stats.ms_converted is False
        assert stats.output == len(result.data) == 198

    def test_strictly_increasing_timestamps(self, result):
        ts = [c.t for c in result.data]
        assert all(a < b for a, b in zip(ts, ts[1:]))

    def test_ohlc_consistency(self, result):
        for c in result.data:
            assert c.l == min(c.o, c.h, c.l, c.c)
            assert c.h == max(c.o, c.h, c.l, c.c)

    def test_volume_non_negative(self, result):
        assert all(c.v >= 0 for c in result.data)

    def test_prices_quantized(self, result):
        for c in result.data:
            assert c.o == int(c.o) and c.c == int(c.c)

    def test_prices_positive(self, result):
        assert all(min(c.o, c.h, c.l, c.c) > 0 for c in result.data)

    def test_sub_unit_prices_never_become_zero(self, make_point):
        points = [
            make_point(BASE_MS, 0.4, h=0.45, l=0.3),
            make_point(BASE_MS + MINUTE_MS, 1.2, l=0.49),
            make_point(BASE_MS + 2 * MINUTE_MS, 0.6),
        ]
        result = sanitize(points)

        assert [c.t for c in result.data] == [BASE_MS + 2 * MINUTE_MS]
        assert result.data[0].c == 1
        assert result.stats.dropped_invalid == 2
        assert [e.type for e in result.errors] == [IssueType.NEGATIVE_PRICE] * 2

    def test_dropped_points_reported_as_errors(self, result):
        assert len(result.errors) == 2
        assert all(e.type == IssueType.INVALID_PRICE for e in result.errors)

    def test_numeric_strings_accepted(self, result):
        assert BASE_MS + 9 * MINUTE_MS in {c.t for c in result.data}

    def test_unusable_points_missing(self, result):
        ts = {c.t for c in result.data}
        assert BASE_MS + 30 * MINUTE_MS not in ts
        assert BASE_MS + 31 * MINUTE_MS not in ts

    def test_second_pass_is_a_no_op(self, result):
        again = sanitize([c.to_dict() for c in result.data])

        assert ohlcv(again.data) == ohlcv(result.data)
        assert again.stats.deduped == 0
        assert again.stats.fixed_ohlc == 0
        assert again.stats.dropped_invalid == 0
        assert again.errors == []

    def test_conservation_without_optional_stages(self, messy_raw_series):
        result = sanitize(messy_raw_series, detect_outliers=False, fill_gaps=False)
        stats = result.stats
        assert stats.input == stats.output + stats.deduped + stats.dropped_invalid

    def test_input_not_mutated(self, messy_raw_series):
        snapshot = copy.deepcopy(messy_raw_series)
        sanitize(messy_raw_series, fill_gaps=True, preserve_original=True)
        assert messy_raw_series == snapshot

    def test_seconds_input_not_mutated(self, make_point):
        points = [make_point(1_700_000_000 + i * 60, 100) for i in range(3)]
        snapshot = copy.deepcopy(points)

        result = sanitize(points)

        assert points == snapshot
        assert result.data[0].t == 1_700_000_000_000


# ============================================================================
# OPTIONS
# ============================================================================

class TestOptions:
    """Per-call switches"""

    def test_allow_non_positive(self):
        result = sanitize(
            [{"t": BASE_MS, "o": -1, "h": 2, "l": -3, "c": 1, "v": 1}],
            require_positive=False,
        )
        assert len(result.data) == 1
        assert result.data[0].l == -3

    def test_outliers_disabled(self, closes_series):
        result = sanitize(closes_series([100, 101, 99, 1000, 102, 100]), detect_outliers=False)

        assert result.data[3].c == 1000
        assert result.stats.outliers_detected == 0

    def test_fill_gaps(self, closes_series):
        points = closes_series([100, 101, 102, 103, 104, 105])
        del points[3]

        result = sanitize(points, fill_gaps=True)

        assert [c.t for c in result.data] == [BASE_MS + i * MINUTE_MS for i in range(6)]
        assert result.data[3].filled is True
        assert result.stats.gaps_filled == 1
        assert result.stats.output == 6

    def test_gaps_left_alone_by_default(self, closes_series):
        points = closes_series([100, 101, 102, 103, 104, 105])
        del points[3]
        assert len(sanitize(points).data) == 5

    def test_date_validation(self, closes_series):
        points = closes_series([100, 101], start=1_000_000_000_000)

        assert sanitize(points).data == []
        assert len(sanitize(points, validate_dates=False).data) == 2

    def test_preserve_original(self, make_point):
        point = make_point(BASE_MS, "100.4")
        result = sanitize([point], preserve_original=True)

        body = result.to_dict()["data"][0]
        assert body["_original"] == point
        assert body["c"] == 100

    def test_explicit_timestamp_unit(self, make_point):
        points = [make_point(5_000_000, 100)]

        inferred = sanitize(points, validate_dates=False)
        hinted = sanitize(points, validate_dates=False, timestamp_unit="ms")

        assert inferred.data[0].t == 5_000_000_000
        assert hinted.data[0].t == 5_000_000
        assert hinted.stats.ms_converted is False

    def test_price_quantum(self, make_point):
        point = make_point(BASE_MS, 1.23456)
        assert sanitize([point], price_quantum=0.01).data[0].c == pytest.approx(1.23)
        assert sanitize([point], price_quantum=None).data[0].c == 1.23456

    def test_unknown_option_rejected(self, make_point):
        with pytest.raises(ValueError):
            sanitize([make_point(BASE_MS, 100)], fillgaps=True)

    def test_config_object(self, closes_series):
        config = SanitizerConfig(detect_outliers=False)
        result = sanitize(closes_series([100, 101, 99, 1000, 102, 100]), config=config)
        assert result.stats.outliers_detected == 0

    def test_shared_default_config_not_used(self, monkeypatch, closes_series):
        monkeypatch.setattr(DEFAULT_CONFIG, "detect_outliers", False)
        result = sanitize(closes_series([100, 101, 99, 1000, 102, 100]))

        assert result.stats.outliers_detected == 1
        assert SanitizationPipeline().config is not DEFAULT_CONFIG


# ============================================================================
# COMPATIBILITY WRAPPERS
# ============================================================================

class TestSeriesWrappers:
    """Tuple-returning helpers used by the chart front-end"""

    def test_sanitize_series_returns_data_and_stats(self, closes_series):
        data, stats = sanitize_series(closes_series([100, 101, 102]))
        assert len(data) == 3
        assert stats.output == 3

    def test_camel_case_options(self, closes_series):
        data, stats = sanitize_series(
            closes_series([100, 101, 99, 1000, 102, 100]),
            {"detectOutliers": False, "priceQuantum": 0},
        )
        assert data[3].c == 1000
        assert stats.outliers_detected == 0

    def test_keyword_options_override(self, closes_series):
        _, stats = sanitize_series(
            closes_series([100, 101, 99, 1000, 102, 100]),
            {"detectOutliers": False},
            detect_outliers=True,
        )
        assert stats.outliers_detected == 1

    def test_no_input(self):
        data, stats = sanitize_series()
        assert data == []
        assert stats.input == 0

    def test_sanitize_line_matches_series(self, messy_raw_series):
        line, _ = sanitize_line(messy_raw_series)
        series, _ = sanitize_series(messy_raw_series)
        assert ohlcv(line) == ohlcv(series)


# ============================================================================
# OBSERVER
# ============================================================================

class TestObserver:
    """Summary event delivered once per run"""

    def test_clean_run_is_info(self, closes_series):
        recorder = EventRecorder()
        sanitize(closes_series([100, 101, 102]), observer=recorder)

        assert recorder.levels() == ["info"]
        assert recorder.events[0].payload["stats"]["output"] == 3

    def test_warnings_only(self, make_point):
        recorder = EventRecorder()
        sanitize([make_point(BASE_MS, 100), make_point(BASE_MS, 101)], observer=recorder)

        assert recorder.levels() == ["warning"]
        assert recorder.events[0].payload["warnings"][0]["type"] == "duplicate_timestamp"

    def test_errors_take_precedence(self, messy_raw_series):
        recorder = EventRecorder()
        sanitize(messy_raw_series, observer=recorder)

        assert recorder.levels() == ["error"]
        assert len(recorder.events[0].payload["errors"]) == 2

    def test_issue_list_truncated(self, make_point):
        recorder = EventRecorder()
        points = [make_point(BASE_MS + i * MINUTE_MS, 0) for i in range(8)]
        sanitize(points, observer=recorder)

        assert len(recorder.events[0].payload["errors"]) == 5

    def test_recorder_is_bounded(self, closes_series):
        recorder = EventRecorder(max_events=2)
        pipeline = SanitizationPipeline(observer=recorder)
        for _ in range(5):
            pipeline.sanitize(closes_series([100, 101]))

        assert len(recorder.events) == 2
        recorder.clear()
        assert recorder.events == []


# ============================================================================
# CONCURRENCY
# ============================================================================

class TestConcurrency:
    """One pipeline instance shared between threads"""

    def test_shared_pipeline(self, messy_raw_series, closes_series):
        pipeline = SanitizationPipeline(SanitizerConfig(fill_gaps=True))
        inputs = [
            messy_raw_series,
            closes_series([100, 101, 99, 1000, 102, 100]),
            closes_series([100 + i for i in range(50)], step=3_600_000),
            [],
        ] * 5

        expected = [ohlcv(pipeline.sanitize(raw).data) for raw in inputs]
        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(pipeline.sanitize, inputs))

        assert [ohlcv(r.data) for r in results] == expected
        assert [r.stats.input for r in results] == [len(raw) for raw in inputs]
