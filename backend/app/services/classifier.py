"""
Column classification service.

Inspects a bounded sample of each column and assigns it one of four
roles (categorical, numerical, temporal, mixed) that drive chart
recommendations downstream.
"""
import logging
import math
import re
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

import numpy as np
import pandas as pd

from app.core.schemas import ColumnProfile, PatternGroups

logger = logging.getLogger(__name__)

# Heuristic constants. Tunable, not derived from any model.
SAMPLE_SIZE = 100
NUMERIC_RATIO_THRESHOLD = 0.8
CONTINUOUS_UNIQUE_RATIO = 0.8
CATEGORICAL_UNIQUE_RATIO = 0.1
CATEGORICAL_MAX_UNIQUE = 20
LOW_CARDINALITY_MAX = 5

TEMPORAL_PATTERNS = [
    re.compile(r'\d{4}-\d{2}-\d{2}', re.ASCII),  # YYYY-MM-DD
    re.compile(r'\d{2}/\d{2}/\d{4}', re.ASCII),  # MM/DD/YYYY
    re.compile(r'\d{1,2}/\d{1,2}/\d{2,4}', re.ASCII),  # M/D/YY
    re.compile(r'(Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec)', re.ASCII),
    re.compile(r'(Monday|Tuesday|Wednesday|Thursday|Friday|Saturday|Sunday)', re.ASCII),
    re.compile(r'\d{4}$', re.ASCII),  # Year
    re.compile(r'Q[1-4]', re.ASCII),  # Quarter
]

TEMPORAL_KEYWORDS = ("date", "time", "month", "year")

# Leading numeric prefix, e.g. "12.5kg" -> 12.5, "1e3" -> 1000
_NUMBER_PREFIX = re.compile(r'\s*([+-]?(?:Infinity|(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?))', re.ASCII)


def is_empty(value: Any) -> bool:
    """True for missing cells: None, empty string, NaN and NaT."""
    if value is None or value is pd.NaT:
        return True
    if isinstance(value, str):
        return value == ""
    if isinstance(value, float):
        return math.isnan(value)
    return False


def _overflows_float(value: int) -> bool:
    try:
        float(value)
    except OverflowError:
        return True
    return False


def as_text(value: Any) -> str:
    """Render a cell the way it appears in the uploaded sheet."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int) and _overflows_float(value):
        return "Infinity" if value > 0 else "-Infinity"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def parse_number(value: Any) -> Optional[float]:
    """
    Parse a cell as a number.

    Accepts real numbers and strings with a leading numeric prefix.
    Returns None when the value does not parse; never raises.
    """
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float, np.integer, np.floating)):
        try:
            number = float(value)
        except OverflowError:
            # Integers beyond float range read as +/-Infinity
            return math.inf if value > 0 else -math.inf
        return None if math.isnan(number) else number

    match = _NUMBER_PREFIX.match(as_text(value))
    if not match:
        return None
    text = match.group(1)
    if text.lstrip('+-') == "Infinity":
        return float("-inf") if text.startswith("-") else float("inf")
    return float(text)


def looks_temporal(value: Any) -> bool:
    text = as_text(value)
    return any(pattern.match(text) for pattern in TEMPORAL_PATTERNS)


def has_temporal_name(column_name: str) -> bool:
    lowered = str(column_name).lower()
    return any(keyword in lowered for keyword in TEMPORAL_KEYWORDS)


def _finite(value: float) -> Optional[float]:
    value = float(value)
    return value if math.isfinite(value) else None


def _hashable(value: Any) -> Any:
    try:
        hash(value)
    except TypeError:
        return as_text(value)
    return value


def classify_column(sample_values: Iterable[Any], column_name: str) -> ColumnProfile:
    """
    Classify a column from a sample of its raw values.

    Checks run in a fixed order and the first match wins:
    temporal, numerical, categorical, then mixed as the fallback.

    Args:
        sample_values: Raw cell values (already bounded by the caller)
        column_name: Header of the column; temporal keywords in it count

    Returns:
        ColumnProfile with type, cardinality, confidence and tags
    """
    values = [v for v in sample_values if not is_empty(v)]

    if not values:
        return ColumnProfile(
            name=column_name,
            type="mixed",
            unique_values=0,
            unique_ratio=0.0,
            confidence=0.0,
            characteristics=["empty"]
        )

    unique_count = int(pd.Series([_hashable(v) for v in values], dtype=object).nunique())
    unique_ratio = unique_count / len(values)

    # Temporal is checked first so "2024-01-01" never ends up numerical
    if has_temporal_name(column_name) or any(looks_temporal(v) for v in values):
        return ColumnProfile(
            name=column_name,
            type="temporal",
            unique_values=unique_count,
            unique_ratio=unique_ratio,
            confidence=0.9,
            characteristics=["time-series", "sequential"]
        )

    parsed = [parse_number(v) for v in values]
    numbers = [n for n in parsed if n is not None]
    numeric_ratio = len(numbers) / len(values)

    if numeric_ratio > NUMERIC_RATIO_THRESHOLD:
        arr = np.asarray(numbers, dtype=float)
        with np.errstate(invalid="ignore", over="ignore"):
            value_range = _finite(arr.max() - arr.min())
            mean = _finite(arr.mean())
            variance = _finite(arr.var())
        return ColumnProfile(
            name=column_name,
            type="numerical",
            unique_values=unique_count,
            unique_ratio=unique_ratio,
            confidence=0.85,
            characteristics=["continuous"] if unique_ratio > CONTINUOUS_UNIQUE_RATIO else ["discrete"],
            range=value_range,
            mean=mean,
            variance=variance
        )

    if unique_ratio < CATEGORICAL_UNIQUE_RATIO or unique_count < CATEGORICAL_MAX_UNIQUE:
        return ColumnProfile(
            name=column_name,
            type="categorical",
            unique_values=unique_count,
            unique_ratio=unique_ratio,
            confidence=0.8,
            characteristics=["low-cardinality"] if unique_count <= LOW_CARDINALITY_MAX else ["medium-cardinality"]
        )

    return ColumnProfile(
        name=column_name,
        type="mixed",
        unique_values=unique_count,
        unique_ratio=unique_ratio,
        confidence=0.6,
        characteristics=["text", "heterogeneous"]
    )


def sample_column(data: Sequence[Dict[str, Any]], header: str, sample_size: int = SAMPLE_SIZE) -> List[Any]:
    """First `sample_size` non-empty values of a column, in row order."""
    sample = []
    for row in data:
        if not isinstance(row, Mapping):
            continue
        value = row.get(header)
        if is_empty(value):
            continue
        sample.append(value)
        if len(sample) >= sample_size:
            break
    return sample


def group_columns(
    data: Sequence[Dict[str, Any]],
    headers: Sequence[str],
    sample_size: int = SAMPLE_SIZE
) -> PatternGroups:
    """Classify every header and bucket the profiles by type."""
    groups = PatternGroups()
    for header in headers:
        profile = classify_column(sample_column(data, header, sample_size), str(header))
        groups.add(profile)
        logger.debug(
            f"Column classified: {header!r} -> {profile.type} "
            f"(unique={profile.unique_values}, confidence={profile.confidence})"
        )
    return groups
