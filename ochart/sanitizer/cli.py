"""
Sanitizer CLI

Command-line interface for the sanitization pipeline.

Usage:
    python -m ochart.sanitizer.cli --input raw_points.json --output clean.json
"""

import argparse
import sys
import logging
from pathlib import Path
from typing import Any, List, Optional
import json

import pandas as pd

from ochart.sanitizer.config import SanitizerConfig, TIMESTAMP_UNITS
from ochart.sanitizer.frames import candles_to_frame, records_from_frame
from ochart.sanitizer.pipeline import SanitizationPipeline
from ochart.sanitizer.schemas import IssueType, SanitizationResult

LOG = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="ochart OHLCV Sanitizer CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Sanitize a JSON array of {t, o, h, l, c, v} points
    python -m ochart.sanitizer.cli --input raw/btc_1d.json --output clean/btc_1d.json

    # Sanitize a CSV export and fill missing bars
    python -m ochart.sanitizer.cli --input raw/btc_1h.csv --output clean/btc_1h.csv --fill-gaps

    # Use a config file, timestamps known to be in seconds
    python -m ochart.sanitizer.cli --input raw.json --config my_config.json --timestamp-unit s
        """
    )

    parser.add_argument("--input", type=str, required=True, help="Input file (.json or .csv)")
    parser.add_argument(
        "--output",
        type=str,
        help="Output file (.json or .csv); summary only when omitted"
    )
    parser.add_argument("--config", type=str, help="Path to config JSON file")

    # Pipeline switches
    parser.add_argument(
        "--allow-non-positive",
        action="store_true",
        help="Keep bars with zero or negative prices"
    )
    parser.add_argument("--no-outliers", action="store_true", help="Disable spike detection")
    parser.add_argument("--outlier-threshold", type=float, help="Spike ratio threshold (default: 10)")
    parser.add_argument("--fill-gaps", action="store_true", help="Interpolate missing bars")
    parser.add_argument(
        "--no-date-validation",
        action="store_true",
        help="Keep timestamps outside 2009-2100"
    )
    parser.add_argument(
        "--preserve-original",
        action="store_true",
        help="Attach the raw record to every output bar"
    )
    parser.add_argument(
        "--timestamp-unit",
        choices=["auto", *TIMESTAMP_UNITS],
        default=None,
        help="Timestamp unit of the input (default: infer)"
    )
    parser.add_argument(
        "--price-quantum",
        type=float,
        help="Price unit for rounding, 0 disables (default: 1)"
    )

    # Verbosity
    parser.add_argument("--verbose", action="store_true", help="Enable verbose logging")
    parser.add_argument("--quiet", action="store_true", help="Suppress all output except errors")

    return parser


def build_config(args: argparse.Namespace) -> SanitizerConfig:
    """Config file (if any) overridden by explicit command-line switches"""
    if args.config:
        LOG.info(f"Loading config from {args.config}")
        with open(args.config, 'r') as f:
            config = SanitizerConfig.from_dict(json.load(f))
    else:
        config = SanitizerConfig()

    options = {}
    if args.allow_non_positive:
        options["require_positive"] = False
    if args.no_outliers:
        options["detect_outliers"] = False
    if args.outlier_threshold is not None:
        options["outlier_threshold"] = args.outlier_threshold
    if args.fill_gaps:
        options["fill_gaps"] = True
    if args.no_date_validation:
        options["validate_dates"] = False
    if args.preserve_original:
        options["preserve_original"] = True
    if args.timestamp_unit is not None:
        options["timestamp_unit"] = args.timestamp_unit
    if args.price_quantum is not None:
        options["price_quantum"] = args.price_quantum

    return config.with_options(**options) if options else config


def load_points(input_path: Path) -> Any:
    """Load raw points from JSON (array, or object with a 'data' array) or CSV"""
    if input_path.suffix.lower() == ".csv":
        return records_from_frame(pd.read_csv(input_path))

    with open(input_path, 'r') as f:
        payload = json.load(f)
    if isinstance(payload, dict) and "data" in payload:
        return payload["data"]
    return payload


def write_result(result: SanitizationResult, output_path: Path) -> Path:
    output_path.parent.mkdir(parents=True, exist_ok=True)

    if output_path.suffix.lower() == ".csv":
        candles_to_frame(result.data).to_csv(output_path, index=False)
        # issues do not fit a CSV; keep them next to it
        report_path = output_path.with_name(output_path.stem + "_report.json")
        report = result.to_dict()
        report.pop("data")
        with open(report_path, 'w') as f:
            json.dump(report, f, indent=2, default=str)
        LOG.info(f"Written report to {report_path}")
    else:
        with open(output_path, 'w') as f:
            json.dump(result.to_dict(), f, indent=2, default=str)

    LOG.info(f"Written {len(result.data)} candles to {output_path}")
    return output_path


def print_summary(result: SanitizationResult, input_path: Path, output_path: Optional[Path]):
    stats = result.stats
    print("\n" + "="*70)
    print(f"SANITIZATION SUMMARY: {input_path.name}")
    print("="*70)
    print(f"Input points:     {stats.input}")
    print(f"Output points:    {stats.output}")
    print(f"Seconds -> ms:    {'yes' if stats.ms_converted else 'no'}")
    print(f"Deduplicated:     {stats.deduped}")
    print(f"Dropped invalid:  {stats.dropped_invalid}")
    print(f"OHLC repaired:    {stats.fixed_ohlc}")
    print(f"Volume zeroed:    {stats.neg_or_nan_vol_to_zero}")
    print(f"Outliers:         {stats.outliers_detected}")
    print(f"Gaps filled:      {stats.gaps_filled}")
    print(f"Errors:           {len(result.errors)}")
    print(f"Warnings:         {len(result.warnings)}")
    print(f"Time:             {stats.processing_time_ms:.1f} ms")
    if output_path is not None:
        print(f"Output file:      {output_path}")
    print("="*70)


def run(argv: Optional[List[str]] = None) -> int:
    """Run the CLI; returns the process exit code"""
    args = build_parser().parse_args(argv)

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)
    elif args.quiet:
        logging.getLogger().setLevel(logging.ERROR)

    input_path = Path(args.input)
    try:
        raw = load_points(input_path)
        LOG.info(f"Loaded input from {input_path}")
    except (OSError, ValueError) as e:
        LOG.error(f"Failed to load {input_path}: {e}")
        return 1

    try:
        config = build_config(args)
    except (OSError, ValueError, TypeError) as e:
        LOG.error(f"Invalid configuration: {e}")
        return 1

    result = SanitizationPipeline(config).sanitize(raw)

    output_path = Path(args.output) if args.output else None
    if output_path is not None:
        write_result(result, output_path)

    if not args.quiet:
        print_summary(result, input_path, output_path)

    if result.issues_of(IssueType.MISSING_REQUIRED):
        LOG.error("Input is not a list of points")
        return 1
    if not result.data:
        LOG.error("No valid points left after sanitization")
        return 1
    return 0


def main():
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    sys.exit(run())


if __name__ == "__main__":
    main()
