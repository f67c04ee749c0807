"""
Chart recommendation service.

Combines classified columns into ranked chart proposals using
independent, deterministic rules. A dataset can match several rules.
"""
import logging
import math
from typing import Any, Dict, List, Optional, Sequence, Union

import pandas as pd

from app.core.performance import track_performance
from app.core.schemas import PatternAnalysis, PatternGroups, Recommendation
from app.services.classifier import SAMPLE_SIZE, group_columns

logger = logging.getLogger(__name__)

PRIORITY_WEIGHT = {"high": 3, "medium": 2, "low": 1}

# Heuristic constants. Tunable, not derived from any model.
MAX_TREND_SERIES = 3
MAX_COMPARISON_CATEGORIES = 2
MAX_COMPARISON_MEASURES = 2
FEW_CATEGORIES = 10
PIE_MIN_SLICES = 2
PIE_MAX_SLICES = 8
MAX_CORRELATION_COLUMNS = 3
LARGE_DATASET_ROWS = 5000
LARGE_DATASET_PENALTY = 0.95
DEFAULT_LIMIT = 8
PREFERRED_TYPE_BOOST = 0.2
AVOIDED_TYPE_FACTOR = 0.5

SAMPLING_NOTE = "Auto-sampling will be applied for optimal performance"


def _time_series(patterns: PatternGroups) -> List[Recommendation]:
    recs = []
    for temporal in patterns.temporal:
        for numerical in patterns.numerical[:MAX_TREND_SERIES]:
            recs.append(Recommendation(
                chart_type="line",
                title=f"{numerical.name} Trend Over {temporal.name}",
                description=f"Track how {numerical.name} changes over time",
                x_axis=temporal.name,
                y_axis=numerical.name,
                confidence=0.95,
                priority="high",
                reasoning="Time series data detected - perfect for trend analysis",
                suitability="excellent"
            ))
    return recs


def _category_comparison(patterns: PatternGroups) -> List[Recommendation]:
    recs = []
    for categorical in patterns.categorical[:MAX_COMPARISON_CATEGORIES]:
        few = categorical.unique_values <= FEW_CATEGORIES
        for numerical in patterns.numerical[:MAX_COMPARISON_MEASURES]:
            recs.append(Recommendation(
                chart_type="bar",
                title=f"{numerical.name} by {categorical.name}",
                description=f"Compare {numerical.name} across different {categorical.name} categories",
                x_axis=categorical.name,
                y_axis=numerical.name,
                group_by=categorical.name,
                confidence=0.9 if few else 0.7,
                priority="high" if few else "medium",
                reasoning=f"{categorical.unique_values} categories found - ideal for comparison",
                suitability="excellent" if few else "good"
            ))
    return recs


def _distribution(patterns: PatternGroups) -> List[Recommendation]:
    recs = []
    for categorical in patterns.categorical:
        if not PIE_MIN_SLICES <= categorical.unique_values <= PIE_MAX_SLICES:
            continue
        recs.append(Recommendation(
            chart_type="pie",
            title=f"{categorical.name} Distribution",
            description=f"Show the proportion of each {categorical.name} category",
            label_field=categorical.name,
            value_field="count",
            group_by=categorical.name,
            confidence=0.85,
            priority="medium",
            reasoning=f"{categorical.unique_values} categories - perfect for distribution view",
            suitability="excellent"
        ))
    return recs


def _correlation(patterns: PatternGroups) -> List[Recommendation]:
    recs = []
    candidates = patterns.numerical[:MAX_CORRELATION_COLUMNS]
    for i, x_col in enumerate(candidates):
        for y_col in candidates[i + 1:]:
            recs.append(Recommendation(
                chart_type="scatter",
                title=f"{x_col.name} vs {y_col.name} Correlation",
                description=f"Explore the relationship between {x_col.name} and {y_col.name}",
                x_axis=x_col.name,
                y_axis=y_col.name,
                confidence=0.8,
                priority="medium",
                reasoning="Two numerical variables - ideal for correlation analysis",
                suitability="good"
            ))
    return recs


def _multi_dimensional(patterns: PatternGroups) -> List[Recommendation]:
    if len(patterns.numerical) < 3:
        return []
    x_col, y_col, size_col = patterns.numerical[:3]
    names = ", ".join(c.name for c in (x_col, y_col, size_col))
    return [Recommendation(
        chart_type="bubble",
        title="Multi-dimensional Analysis",
        description=f"Explore relationships between {names}",
        x_axis=x_col.name,
        y_axis=y_col.name,
        size_by=size_col.name,
        confidence=0.75,
        priority="low",
        reasoning="Multiple numerical variables - suitable for multi-dimensional analysis",
        suitability="good"
    )]


def _apply_large_dataset_adjustment(recs: List[Recommendation], row_count: int) -> None:
    if row_count <= LARGE_DATASET_ROWS:
        return
    for rec in recs:
        if rec.chart_type in ("scatter", "line"):
            rec.confidence *= LARGE_DATASET_PENALTY
            rec.performance_note = SAMPLING_NOTE


def apply_preferences(
    recs: List[Recommendation],
    preferred_types: Sequence[str] = (),
    avoid_types: Sequence[str] = ()
) -> None:
    """Raise confidence of preferred chart types (capped at 1.0) and halve avoided ones."""
    for rec in recs:
        if rec.chart_type in preferred_types:
            rec.confidence = min(rec.confidence + PREFERRED_TYPE_BOOST, 1.0)
        if rec.chart_type in avoid_types:
            rec.confidence *= AVOIDED_TYPE_FACTOR


def rank_recommendations(recs: List[Recommendation]) -> List[Recommendation]:
    """Priority first (high > medium > low), then confidence. Stable."""
    return sorted(recs, key=lambda r: (-PRIORITY_WEIGHT[r.priority], -r.confidence))


def generate_recommendations(
    patterns: PatternGroups,
    row_count: int,
    preferred_types: Sequence[str] = (),
    avoid_types: Sequence[str] = ()
) -> List[Recommendation]:
    """
    Generate ranked chart recommendations from grouped column profiles.

    Mixed columns are never used. The large-dataset penalty only touches
    line and scatter charts, so it is applied before the bubble rule runs.

    Args:
        patterns: Column profiles grouped by type
        row_count: Total rows in the dataset (not the sample size)
        preferred_types: Chart types whose confidence is boosted
        avoid_types: Chart types whose confidence is halved

    Returns:
        Recommendations sorted by priority, then confidence
    """
    recs = (
        _time_series(patterns)
        + _category_comparison(patterns)
        + _distribution(patterns)
        + _correlation(patterns)
    )
    _apply_large_dataset_adjustment(recs, row_count)
    recs += _multi_dimensional(patterns)
    apply_preferences(recs, preferred_types, avoid_types)
    return rank_recommendations(recs)


def calculate_overall_confidence(recs: Sequence[Recommendation]) -> int:
    """Mean confidence as a whole percentage (half rounds up); 0 when empty."""
    if not recs:
        return 0
    mean = sum(r.confidence for r in recs) / len(recs)
    return int(math.floor(mean * 100 + 0.5))


def _to_records(data: Union[pd.DataFrame, Sequence[Dict[str, Any]], None]) -> List[Dict[str, Any]]:
    if data is None:
        return []
    if isinstance(data, pd.DataFrame):
        return data.rename(columns=str).to_dict(orient="records")
    if isinstance(data, (list, tuple)):
        return list(data)
    return []


@track_performance("analyze_data_patterns")
def analyze_data_patterns(
    data: Union[pd.DataFrame, Sequence[Dict[str, Any]], None],
    headers: Optional[Sequence[str]] = None,
    limit: int = DEFAULT_LIMIT,
    sample_size: int = SAMPLE_SIZE,
    preferred_types: Sequence[str] = (),
    avoid_types: Sequence[str] = ()
) -> PatternAnalysis:
    """
    Classify every column and propose charts for the dataset.

    Args:
        data: Rows as mappings, or a DataFrame
        headers: Columns to analyse; defaults to the DataFrame columns or
            the first row's keys
        limit: Maximum number of recommendations returned
        sample_size: Non-empty values sampled per column
        preferred_types: Chart types to favour in the ranking
        avoid_types: Chart types to push down the ranking

    Returns:
        PatternAnalysis. Confidence is computed over every generated
        recommendation, not just the returned ones.
    """
    if isinstance(data, pd.DataFrame) and headers is None:
        headers = [str(c) for c in data.columns]
    rows = _to_records(data)
    if not rows:
        return PatternAnalysis()

    if headers is None:
        headers = list(rows[0].keys()) if isinstance(rows[0], dict) else []

    patterns = group_columns(rows, headers, sample_size)
    recs = generate_recommendations(patterns, len(rows), preferred_types, avoid_types)

    logger.info(
        f"Generated {len(recs)} recommendations for {len(rows)} rows "
        f"({len(patterns.temporal)} temporal, {len(patterns.numerical)} numerical, "
        f"{len(patterns.categorical)} categorical, {len(patterns.mixed)} mixed columns)"
    )

    return PatternAnalysis(
        patterns=patterns,
        recommendations=recs[:limit],
        confidence=calculate_overall_confidence(recs)
    )
