"""
Sanitizer Configuration

Defines thresholds, switches and calendar bounds for the sanitization pipeline.
All parameters are explicitly versioned so a report can be reproduced.
"""

from dataclasses import dataclass, field, fields
from typing import Any, Dict, Optional
import json


TIMESTAMP_UNITS = ("s", "ms")


@dataclass
class TimestampRules:
    """Timestamp unit inference and calendar range parameters"""

    # Number of leading points sampled for unit inference
    sample_size: int = 10

    # Mean timestamps below this are treated as seconds
    ms_threshold: float = 1e12

    # Seconds -> milliseconds
    ms_multiplier: int = 1000

    # Accepted calendar range (UTC)
    min_valid_year: int = 2009
    max_valid_year: int = 2100

    # Explicit unit hint: None = infer, "s" = seconds, "ms" = milliseconds
    unit: Optional[str] = None


@dataclass
class OutlierThresholds:
    """Spike detection parameters"""

    # Close-to-close ratio that makes a bar suspicious (10x by default)
    threshold: float = 10.0

    # Multiplier applied to the threshold for the last bar (no successor)
    boundary_multiplier: float = 2.0

    # Max distance between return ratio and inverse change ratio
    snap_back_tolerance: float = 0.1

    # Minimum series length for detection
    min_points: int = 3


@dataclass
class GapFillSettings:
    """Gap filling parameters"""

    # Adjacent pairs sampled to estimate the nominal interval
    interval_sample_pairs: int = 100


@dataclass
class SanitizerConfig:
    """
    Complete configuration for the sanitization pipeline.

    The six top-level switches mirror the options the chart front-end
    passes per call; nested groups hold the tunable constants.
    """

    config_version: str = "1.0.0"

    require_positive: bool = True
    detect_outliers: bool = True
    fill_gaps: bool = False
    validate_dates: bool = True
    preserve_original: bool = False

    # Price unit; None disables quantization
    price_quantum: Optional[float] = 1.0

    timestamp_rules: TimestampRules = field(default_factory=TimestampRules)
    outlier_thresholds: OutlierThresholds = field(default_factory=OutlierThresholds)
    gap_fill: GapFillSettings = field(default_factory=GapFillSettings)

    def __post_init__(self):
        if self.outlier_thresholds.threshold <= 1:
            raise ValueError(
                f"outlier threshold must be greater than 1, got {self.outlier_thresholds.threshold}"
            )
        if self.price_quantum is not None and self.price_quantum < 0:
            raise ValueError(f"price_quantum must be non-negative, got {self.price_quantum}")
        if self.timestamp_rules.unit is not None and self.timestamp_rules.unit not in TIMESTAMP_UNITS:
            raise ValueError(
                f"timestamp unit must be one of {TIMESTAMP_UNITS} or None, got {self.timestamp_rules.unit!r}"
            )

    @property
    def outlier_threshold(self) -> float:
        return self.outlier_thresholds.threshold

    @property
    def timestamp_unit(self) -> Optional[str]:
        return self.timestamp_rules.unit

    def to_dict(self) -> Dict:
        """Serialize configuration to dictionary"""
        return {
            "config_version": self.config_version,
            "require_positive": self.require_positive,
            "detect_outliers": self.detect_outliers,
            "fill_gaps": self.fill_gaps,
            "validate_dates": self.validate_dates,
            "preserve_original": self.preserve_original,
            "price_quantum": self.price_quantum,
            "timestamp_rules": {
                "sample_size": self.timestamp_rules.sample_size,
                "ms_threshold": self.timestamp_rules.ms_threshold,
                "ms_multiplier": self.timestamp_rules.ms_multiplier,
                "min_valid_year": self.timestamp_rules.min_valid_year,
                "max_valid_year": self.timestamp_rules.max_valid_year,
                "unit": self.timestamp_rules.unit,
            },
            "outlier_thresholds": {
                "threshold": self.outlier_thresholds.threshold,
                "boundary_multiplier": self.outlier_thresholds.boundary_multiplier,
                "snap_back_tolerance": self.outlier_thresholds.snap_back_tolerance,
                "min_points": self.outlier_thresholds.min_points,
            },
            "gap_fill": {
                "interval_sample_pairs": self.gap_fill.interval_sample_pairs,
            },
        }

    def to_json(self) -> str:
        """Serialize configuration to JSON string"""
        return json.dumps(self.to_dict(), indent=2)

    @classmethod
    def from_dict(cls, data: Dict) -> "SanitizerConfig":
        """Deserialize configuration from dictionary"""
        return cls(
            config_version=data.get("config_version", "1.0.0"),
            require_positive=data.get("require_positive", True),
            detect_outliers=data.get("detect_outliers", True),
            fill_gaps=data.get("fill_gaps", False),
            validate_dates=data.get("validate_dates", True),
            preserve_original=data.get("preserve_original", False),
            price_quantum=data.get("price_quantum", 1.0),
            timestamp_rules=TimestampRules(**data.get("timestamp_rules", {})),
            outlier_thresholds=OutlierThresholds(**data.get("outlier_thresholds", {})),
            gap_fill=GapFillSettings(**data.get("gap_fill", {})),
        )

    @classmethod
    def from_options(cls, options: Optional[Dict[str, Any]] = None, **overrides) -> "SanitizerConfig":
        """
        Build a configuration from flat call options.

        Accepts the snake_case names as well as the camelCase spellings used
        by the chart front-end (``requirePositive``, ``outlierThreshold``...).
        Unknown keys raise ValueError.
        """
        merged = dict(options or {})
        merged.update(overrides)
        return cls().with_options(**merged)

    def with_options(self, **options) -> "SanitizerConfig":
        """Return a copy of this configuration with flat options applied"""
        data = self.to_dict()
        for key, value in options.items():
            name = OPTION_ALIASES.get(key, key)
            if name == "outlier_threshold":
                data["outlier_thresholds"]["threshold"] = value
            elif name == "timestamp_unit":
                data["timestamp_rules"]["unit"] = None if value in (None, "auto") else value
            elif name in _FLAT_OPTIONS:
                data[name] = value
            else:
                raise ValueError(f"Unknown sanitizer option: {key}")
        return SanitizerConfig.from_dict(data)


_FLAT_OPTIONS = {
    f.name for f in fields(SanitizerConfig)
    if f.name not in ("timestamp_rules", "outlier_thresholds", "gap_fill")
}

OPTION_ALIASES = {
    "requirePositive": "require_positive",
    "detectOutliers": "detect_outliers",
    "outlierThreshold": "outlier_threshold",
    "fillGaps": "fill_gaps",
    "validateDates": "validate_dates",
    "preserveOriginal": "preserve_original",
    "timestampUnit": "timestamp_unit",
    "priceQuantum": "price_quantum",
}


# Default configuration instance
DEFAULT_CONFIG = SanitizerConfig()
