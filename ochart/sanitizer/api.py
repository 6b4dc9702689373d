"""
Sanitizer REST API

Provides HTTP endpoints for:
1. Series sanitization (raw points in, clean candles + report out)
2. Single-point validation
3. Series summary statistics
4. Health and configuration inspection

Usage:
    uvicorn ochart.sanitizer.api:app --host 0.0.0.0 --port 8002 --reload
"""

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field, field_validator
from typing import Optional, List, Dict, Any
from datetime import datetime, timezone
import logging

from ochart.sanitizer import __version__
from ochart.sanitizer.config import DEFAULT_CONFIG, TIMESTAMP_UNITS
from ochart.sanitizer.pipeline import sanitize
from ochart.sanitizer.schemas import Candle
from ochart.sanitizer.series_stats import get_series_stats, is_valid_point


# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
)
logger = logging.getLogger(__name__)


# ============================================================================
# Pydantic Models for API
# ============================================================================

class SanitizeOptions(BaseModel):
    """Per-request pipeline options (unset = server default)"""
    require_positive: Optional[bool] = None
    detect_outliers: Optional[bool] = None
    outlier_threshold: Optional[float] = Field(None, gt=1, description="Spike ratio threshold")
    fill_gaps: Optional[bool] = None
    validate_dates: Optional[bool] = None
    preserve_original: Optional[bool] = None
    timestamp_unit: Optional[str] = Field(None, description="s, ms or auto")
    price_quantum: Optional[float] = Field(None, ge=0, description="Price unit, 0 disables rounding")

    @field_validator("timestamp_unit")
    @classmethod
    def validate_timestamp_unit(cls, v):
        if v is not None and v != "auto" and v not in TIMESTAMP_UNITS:
            raise ValueError(f"timestamp_unit must be one of {TIMESTAMP_UNITS} or 'auto'")
        return v


class SanitizeRequest(BaseModel):
    """Raw series to sanitize"""
    # Left untyped: shape problems are reported by the pipeline itself
    points: Any = Field(..., description="List of raw {t, o, h, l, c, v} points")
    options: Optional[SanitizeOptions] = None


class CandleModel(BaseModel):
    t: int
    o: float
    h: float
    l: float
    c: float
    v: float


class SeriesStatsRequest(BaseModel):
    data: List[CandleModel] = Field(..., description="Already sanitized candles")


class HealthStatus(BaseModel):
    """Service health status"""
    status: str = Field(..., description="healthy or degraded")
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    version: str = Field(default=__version__)
    uptime_seconds: float = Field(..., description="API uptime in seconds")

    runs_total: int = Field(..., description="Sanitization requests served")
    runs_with_errors: int = Field(..., description="Requests that dropped points")


# ============================================================================
# FastAPI Application
# ============================================================================

app = FastAPI(
    title="ochart Sanitizer API",
    description="REST API for sanitizing raw OHLCV series",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Process-local counters
APP_START_TIME = datetime.now(timezone.utc)
RUN_COUNTERS = {"runs_total": 0, "runs_with_errors": 0}


# ============================================================================
# Endpoints
# ============================================================================

@app.get("/", tags=["Info"])
async def root():
    """API entry point"""
    return {
        "service": "ochart Sanitizer API",
        "version": __version__,
        "endpoints": ["/health", "/config", "/sanitize", "/validate-point", "/series-stats"],
    }


@app.get("/health", response_model=HealthStatus, tags=["Health"])
async def get_health():
    """Service health: uptime and request counters"""
    uptime = (datetime.now(timezone.utc) - APP_START_TIME).total_seconds()
    total = RUN_COUNTERS["runs_total"]
    with_errors = RUN_COUNTERS["runs_with_errors"]

    # every request dropping points usually means a broken upstream feed
    status = "degraded" if total >= 10 and with_errors == total else "healthy"

    return HealthStatus(
        status=status,
        uptime_seconds=uptime,
        runs_total=total,
        runs_with_errors=with_errors,
    )


@app.get("/config", tags=["Info"])
async def get_config():
    """Default pipeline configuration"""
    return DEFAULT_CONFIG.to_dict()


@app.post("/sanitize", tags=["Sanitizer"])
async def sanitize_points(request: SanitizeRequest):
    """
    Sanitize a raw series.

    Returns cleaned candles, counters, errors and warnings. Bad points never
    cause an HTTP error; they are reported in the body.
    """
    options = request.options.model_dump(exclude_none=True) if request.options else {}

    try:
        result = sanitize(request.points, **options)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))

    RUN_COUNTERS["runs_total"] += 1
    if result.errors:
        RUN_COUNTERS["runs_with_errors"] += 1

    logger.info(
        f"Sanitized {result.stats.input} -> {result.stats.output} points "
        f"({len(result.errors)} errors, {len(result.warnings)} warnings)"
    )

    return result.to_dict()


@app.post("/validate-point", tags=["Sanitizer"])
async def validate_point(point: Dict[str, Any]):
    """Check a single point for finite values and consistent low/high"""
    return {"valid": is_valid_point(point)}


@app.post("/series-stats", tags=["Sanitizer"])
async def series_stats(request: SeriesStatsRequest):
    """Summary statistics of a sanitized series (null when empty)"""
    candles = [Candle(**c.model_dump()) for c in request.data]
    stats = get_series_stats(candles)
    return {"stats": stats.to_dict() if stats is not None else None}
