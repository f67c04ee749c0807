"""
Descriptive statistics for numeric columns.

Per-column summaries (quartiles, spread, shape, IQR outliers) and
pairwise Pearson correlations, returned alongside the enhanced analysis.
"""
import logging
import math
from typing import Any, Dict, List, Mapping, Optional, Sequence

import numpy as np

from app.core.performance import track_performance
from app.core.schemas import ColumnStatistics, Correlation, OutlierSummary
from app.services.classifier import parse_number

logger = logging.getLogger(__name__)

IQR_MULTIPLIER = 1.5
MAX_OUTLIER_VALUES = 10
PERCENTILES = {"p5": 0.05, "p10": 0.10, "p90": 0.90, "p95": 0.95, "p99": 0.99}


def _round(value: Any, digits: int = 4) -> Optional[float]:
    if value is None:
        return None
    value = float(value)
    return round(value, digits) if math.isfinite(value) else None


def numeric_values(data: Sequence[Mapping[str, Any]], column: str) -> List[float]:
    """Finite numbers of a column, in row order."""
    values = []
    for row in data:
        if not isinstance(row, Mapping):
            continue
        number = parse_number(row.get(column))
        if number is not None and math.isfinite(number):
            values.append(number)
    return values


def correlation_strength(abs_correlation: float) -> str:
    if abs_correlation >= 0.7:
        return "Strong"
    if abs_correlation >= 0.3:
        return "Moderate"
    if abs_correlation >= 0.1:
        return "Weak"
    return "Very Weak"


def describe_column(values: Sequence[float]) -> Optional[ColumnStatistics]:
    """
    Summarise a list of numbers.

    Quartiles and percentiles are taken by position in the sorted values
    (index floor(n * p)), variance is the sample variance, skewness and
    kurtosis (excess) are the standardised third and fourth moments.
    Returns None for an empty list.
    """
    if not values:
        return None

    arr = np.sort(np.asarray(values, dtype=float))
    count = len(arr)

    def at(fraction: float) -> float:
        return float(arr[int(math.floor(count * fraction))])

    with np.errstate(over="ignore", invalid="ignore"):
        mean = float(arr.mean())
        variance = float(arr.var(ddof=1)) if count > 1 else None
        std_dev = math.sqrt(variance) if variance is not None and math.isfinite(variance) else None

        skewness = kurtosis = 0.0
        if std_dev:
            z = (arr - mean) / std_dev
            skewness = float(np.mean(z ** 3))
            kurtosis = float(np.mean(z ** 4)) - 3

        q1, median, q3 = at(0.25), at(0.5), at(0.75)
        iqr = q3 - q1
        lower, upper = q1 - IQR_MULTIPLIER * iqr, q3 + IQR_MULTIPLIER * iqr
        outliers = [float(v) for v in values if v < lower or v > upper]
        value_range = float(arr[-1] - arr[0])

    return ColumnStatistics(
        count=count,
        mean=_round(mean),
        median=_round(median),
        std_dev=_round(std_dev),
        variance=_round(variance),
        min=_round(arr[0], 12),
        max=_round(arr[-1], 12),
        q1=_round(q1),
        q3=_round(q3),
        range=_round(value_range, 12),
        skewness=_round(skewness),
        kurtosis=_round(kurtosis),
        percentiles={name: _round(at(fraction), 12) for name, fraction in PERCENTILES.items()},
        outliers=OutlierSummary(
            count=len(outliers),
            percentage=round(len(outliers) / count * 100, 2),
            values=outliers[:MAX_OUTLIER_VALUES]
        )
    )


@track_performance("column_statistics")
def column_statistics(
    data: Sequence[Mapping[str, Any]],
    columns: Sequence[str]
) -> Dict[str, Optional[ColumnStatistics]]:
    """Statistics per column; None for a column with no numeric values."""
    return {column: describe_column(numeric_values(data, column)) for column in columns}


def _pearson(xs: np.ndarray, ys: np.ndarray) -> float:
    with np.errstate(over="ignore", invalid="ignore"):
        dx = xs - xs.mean()
        dy = ys - ys.mean()
        denominator = math.sqrt(float((dx * dx).sum()) * float((dy * dy).sum()))
        if denominator == 0 or not math.isfinite(denominator):
            return 0.0
        correlation = float((dx * dy).sum()) / denominator
    return correlation if math.isfinite(correlation) else 0.0


@track_performance("calculate_correlations")
def calculate_correlations(data: Sequence[Mapping[str, Any]], columns: Sequence[str]) -> List[Correlation]:
    """
    Pearson correlation for every pair of columns.

    Only rows where both cells are finite numbers count; pairs with
    fewer than two such rows are skipped. A constant column correlates 0.
    """
    rows = [row for row in data if isinstance(row, Mapping)]
    correlations = []

    for i, first in enumerate(columns):
        for second in columns[i + 1:]:
            pairs = [(parse_number(row.get(first)), parse_number(row.get(second))) for row in rows]
            pairs = [
                (x, y) for x, y in pairs
                if x is not None and y is not None and math.isfinite(x) and math.isfinite(y)
            ]
            if len(pairs) < 2:
                continue

            xs, ys = np.asarray(pairs, dtype=float).T
            correlation = _pearson(xs, ys)
            correlations.append(Correlation(
                columns=[first, second],
                correlation=round(correlation, 4),
                strength=correlation_strength(abs(correlation)),
                sample_size=len(pairs)
            ))

    logger.debug(f"Computed {len(correlations)} correlations over {len(columns)} columns")
    return correlations
