"""
Shared fixtures for the sanitizer test suite.
"""

import pytest
import numpy as np

from ochart.sanitizer.config import SanitizerConfig
from ochart.sanitizer.schemas import SanitizationContext


BASE_MS = 1_700_000_000_000   # 2023-11-14T22:13:20Z
MINUTE_MS = 60_000


@pytest.fixture
def clean_config():
    """Default sanitizer configuration"""
    return SanitizerConfig()


@pytest.fixture
def ctx():
    """Fresh per-call context"""
    return SanitizationContext()


@pytest.fixture
def make_point():
    """Factory for raw points; flat bars around ``c`` unless given"""
    def _make(t, c, o=None, h=None, l=None, v=100):
        o = c if o is None else o
        h = max(o, c) if h is None else h
        l = min(o, c) if l is None else l
        return {"t": t, "o": o, "h": h, "l": l, "c": c, "v": v}
    return _make


@pytest.fixture
def closes_series(make_point):
    """Factory: minute bars in ms with the given closes"""
    def _series(closes, start=BASE_MS, step=MINUTE_MS):
        return [make_point(start + i * step, c) for i, c in enumerate(closes)]
    return _series


@pytest.fixture
def messy_raw_series():
    """
    200 minute bars of a random walk with injected upstream defects:
    shuffled order, duplicate bars, swapped high/low, bad volumes,
    numeric strings and a few unusable points.
    """
    rng = np.random.RandomState(42)
    n = 200

    closes = 30000 * np.exp(np.cumsum(rng.normal(0, 0.002, size=n)))
    opens = closes * (1 + rng.normal(0, 0.0005, size=n))
    highs = np.maximum(opens, closes) * (1 + np.abs(rng.normal(0, 0.001, size=n)))
    lows = np.minimum(opens, closes) * (1 - np.abs(rng.normal(0, 0.001, size=n)))
    volumes = rng.randint(1, 500, size=n).astype(float)

    points = []
    for i in range(n):
        points.append({
            "t": BASE_MS + i * MINUTE_MS,
            "o": float(opens[i]),
            "h": float(highs[i]),
            "l": float(lows[i]),
            "c": float(closes[i]),
            "v": float(volumes[i]),
        })

    # swapped high/low
    for i in (5, 50, 120):
        points[i]["h"], points[i]["l"] = points[i]["l"], points[i]["h"]
    # bad volumes
    points[7]["v"] = -3
    points[8]["v"] = "n/a"
    # numeric strings
    points[9] = {k: str(v) for k, v in points[9].items()}
    # unusable
    points[30]["c"] = None
    points[31]["o"] = "abc"
    # duplicates of existing bars
    points.append(dict(points[40], c=points[40]["c"] * 1.001, h=points[40]["h"] * 1.002))
    points.append(dict(points[41]))

    order = rng.permutation(len(points))
    return [points[i] for i in order]
