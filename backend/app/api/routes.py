import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Path, Query, Request

from app.core.cache import generate_analysis_cache_key, get_analysis_cache
from app.core.config import get_settings
from app.core.errors import ErrorCodes, get_error_response
from app.core.rate_limit import analysis_rate_limit, limiter
from app.core.sanitization import sanitize_for_logging, sanitize_headers_for_logging
from app.core.schemas import (
    AnalyzeRequest,
    AnalyzeResponse,
    EnhancedAnalyzeRequest,
    EnhancedAnalyzeResponse,
    PerformanceReport,
    PreprocessingSummary,
    ShapeRequest,
    ValidateRequest,
    ValidationResult,
)
from app.services.performance_tier import (
    get_performance_recommendations,
    get_rendering_strategy,
    select_tier,
)
from app.services.preprocessing import preprocess_data
from app.services.recommender import analyze_data_patterns
from app.services.shaping import (
    DEFAULT_MAX_PIE_SLICES,
    SHAPEABLE_CHART_TYPES,
    downsample,
    optimize_pie_data,
    process_data_for_chart,
)
from app.services.statistics import calculate_correlations, column_statistics
from app.services.validation import validate_data_for_charting

logger = logging.getLogger(__name__)

settings = get_settings()

router = APIRouter()

# Chart types whose payload is one point per row, so rows can be thinned
SAMPLEABLE_CHART_TYPES = ("line", "bar", "area", "bubble")


def _raise(request: Request, status_code: int, error_code: str, detail: Optional[str] = None):
    error_info = get_error_response(error_code, detail)
    error_info['correlation_id'] = getattr(request.state, 'correlation_id', 'unknown')
    raise HTTPException(status_code=status_code, detail=error_info)


def _check_row_limit(request: Request, row_count: int):
    if row_count > settings.max_dataset_rows:
        _raise(
            request, 413, ErrorCodes.DATASET_TOO_LARGE,
            f"Maximum is {settings.max_dataset_rows:,} rows; received {row_count:,}."
        )


def _check_size(request: Request, row_count: int):
    if row_count == 0:
        _raise(request, 400, ErrorCodes.NO_DATA)
    _check_row_limit(request, row_count)


@router.get("/health")
async def health_check():
    return {"status": "ok"}


def _analyze(body: AnalyzeRequest) -> AnalyzeResponse:
    limit = body.limit or settings.max_recommendations
    cache = get_analysis_cache()
    cache_key = generate_analysis_cache_key(body.data, body.headers, limit)

    cached = cache.get(cache_key)
    if cached is not None:
        logger.info(f"Using cached analysis for {len(body.data)} rows")
        return cached

    headers = body.headers if body.headers is not None else list(body.data[0].keys())
    logger.info(f"Analyzing {len(body.data)} rows, columns: {sanitize_headers_for_logging(headers)}")

    analysis = analyze_data_patterns(body.data, headers, limit=limit, sample_size=settings.sample_size)
    result = AnalyzeResponse(
        **analysis.model_dump(),
        row_count=len(body.data),
        performance=select_tier(len(body.data))
    )
    cache.set(cache_key, result, ttl=settings.cache_ttl_seconds)
    return result


@router.post("/analyze", response_model=AnalyzeResponse)
@limiter.limit(analysis_rate_limit)
async def analyze(request: Request, body: AnalyzeRequest):
    """
    Classify the columns of a dataset and recommend charts for it.

    Rate limited per client address (configurable).
    """
    _check_size(request, len(body.data))

    try:
        return _analyze(body)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Unexpected error analyzing dataset: {e}", exc_info=True)
        _raise(request, 500, ErrorCodes.UNKNOWN_ERROR)


def _analyze_enhanced(body: EnhancedAnalyzeRequest) -> EnhancedAnalyzeResponse:
    prepared = preprocess_data(body.data, body.preprocessing)
    rows = prepared.data

    if body.headers is not None:
        headers = body.headers
    else:
        headers = list(rows[0].keys()) if rows else []
    logger.info(
        f"Enhanced analysis of {len(body.data)} rows ({len(rows)} after preprocessing), "
        f"columns: {sanitize_headers_for_logging(headers)}"
    )

    analysis = analyze_data_patterns(
        rows,
        headers,
        limit=body.limit or settings.max_recommendations,
        sample_size=settings.sample_size,
        preferred_types=body.preferred_chart_types,
        avoid_types=body.avoid_chart_types
    )
    numeric = [profile.name for profile in analysis.patterns.numerical]

    return EnhancedAnalyzeResponse(
        analysis=AnalyzeResponse(
            **analysis.model_dump(),
            row_count=len(rows),
            performance=select_tier(len(rows))
        ),
        preprocessing=PreprocessingSummary(**prepared.model_dump(exclude={"data"})),
        statistics=column_statistics(rows, numeric),
        correlations=calculate_correlations(rows, numeric)
    )


@router.post("/analyze-enhanced", response_model=EnhancedAnalyzeResponse)
@limiter.limit(analysis_rate_limit)
async def analyze_enhanced(request: Request, body: EnhancedAnalyzeRequest):
    """
    Preprocess a dataset, then analyse it.

    Adds preprocessing counters, a data-quality score, per-column
    statistics and correlations to the usual analysis. Not cached.
    """
    _check_size(request, len(body.data))

    try:
        return _analyze_enhanced(body)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Unexpected error in enhanced analysis: {e}", exc_info=True)
        _raise(request, 500, ErrorCodes.UNKNOWN_ERROR)


@router.post("/validate", response_model=ValidationResult)
async def validate(request: Request, body: ValidateRequest):
    """Check a chart configuration against the data. Always 200; see `valid`."""
    _check_row_limit(request, len(body.data))
    return validate_data_for_charting(body.data, body.config)


@router.get("/performance/{row_count}", response_model=PerformanceReport)
async def performance(
    row_count: int = Path(..., ge=0),
    chart_type: Optional[str] = Query(default=None)
):
    """Rendering tier, flags and advice for a dataset size."""
    return PerformanceReport(
        row_count=row_count,
        performance=select_tier(row_count),
        strategy=get_rendering_strategy(row_count, chart_type),
        advice=get_performance_recommendations(row_count, chart_type)
    )


@router.post("/shape")
async def shape(request: Request, body: ShapeRequest):
    """Shape rows into the payload a chart library expects."""
    if body.chart_type not in SHAPEABLE_CHART_TYPES:
        _raise(
            request, 400, ErrorCodes.UNSUPPORTED_CHART_TYPE,
            f"Got '{sanitize_for_logging(body.chart_type, max_length=40)}'."
        )
    _check_size(request, len(body.data))

    rows = body.data
    sampled = False
    if body.max_points and body.chart_type in SAMPLEABLE_CHART_TYPES and len(rows) > body.max_points:
        rows = downsample(rows, body.max_points)
        sampled = True

    payload = process_data_for_chart(rows, body.chart_type, body.x_axis, body.y_axis, body.series)

    if body.chart_type == "pie" and payload and len(payload) > DEFAULT_MAX_PIE_SLICES:
        payload = optimize_pie_data(payload, "name", "value")

    return {
        "chart_type": body.chart_type,
        "row_count": len(body.data),
        "sampled": sampled,
        "payload": payload
    }
