"""
Dataset preprocessing.

Prepares uploaded rows for analysis: drops blank rows, turns null tokens
into real nulls, fills missing values, removes duplicate rows, normalises
numeric columns and optionally treats outliers. The result carries a
data-quality score (completeness and type consistency).
"""
import json
import logging
import math
import re
from collections import Counter
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from app.core.performance import track_performance
from app.core.schemas import (
    ConsistencyReport,
    DataQuality,
    PreprocessingOptions,
    PreprocessingResult,
    PreprocessingStats,
)
from app.services.classifier import as_text, has_temporal_name, is_empty, looks_temporal, parse_number

logger = logging.getLogger(__name__)

NULL_TOKENS = {"null", "NULL", "n/a", "N/A", "undefined", "#N/A", ""}
UNKNOWN_CATEGORY = "Unknown"

# Heuristic constants. Tunable, not derived from any model.
TYPE_SAMPLE_SIZE = 100
NUMERIC_TYPE_RATIO = 0.8
KEY_COLUMN_UNIQUE_RATIO = 0.9
IQR_MULTIPLIER = 1.5
STD_MULTIPLIER = 3
LARGE_RANGE_FACTOR = 1000

_NUMBER_DECORATIONS = re.compile(r'[,$%]')


def _clean_cell(value: Any) -> Any:
    if isinstance(value, str):
        value = value.strip()
        if value in NULL_TOKENS:
            return None
    return value


def _to_numbers(column: pd.Series) -> pd.Series:
    return pd.to_numeric(column.map(parse_number), errors="coerce")


def is_numeric_column(column: pd.Series) -> bool:
    """
    More than 80% of the first 100 present values parse as numbers.

    Columns the classifier treats as temporal never count, so "2024-01-15"
    is not rewritten as 2024.
    """
    sample = column.dropna().head(TYPE_SAMPLE_SIZE)
    if sample.empty:
        return False
    if has_temporal_name(str(column.name)) or any(looks_temporal(v) for v in sample):
        return False
    return _to_numbers(sample).notna().mean() > NUMERIC_TYPE_RATIO


def numeric_columns(df: pd.DataFrame) -> List[str]:
    return [column for column in df.columns if is_numeric_column(df[column])]


def _mode(values: pd.Series) -> Any:
    """Most frequent value; ties go to the value seen first."""
    counts: Counter = Counter()
    first_seen: Dict[str, Any] = {}
    for value in values:
        key = as_text(value)
        counts[key] += 1
        first_seen.setdefault(key, value)
    if not counts:
        return None
    key, _ = counts.most_common(1)[0]
    return first_seen[key]


def _numeric_fill(present: pd.Series, strategy: str) -> Any:
    if strategy == "mode":
        fill = _mode(present)
        return 0 if fill is None else fill

    numbers = _to_numbers(present).dropna()
    numbers = numbers[np.isfinite(numbers)]
    if numbers.empty:
        return 0
    # 'interpolate' has no neighbour information here, so it falls back to the mean
    if strategy in ("mean", "interpolate"):
        return float(numbers.mean())
    return float(numbers.median())


def clean_data(rows: Sequence[Mapping[str, Any]]) -> pd.DataFrame:
    """Trim strings, map null tokens to None and drop rows with no content."""
    cleaned = [{key: _clean_cell(value) for key, value in row.items()} for row in rows]
    df = pd.DataFrame(cleaned, dtype=object)
    return df.dropna(how="all").reset_index(drop=True)


def fill_missing_values(df: pd.DataFrame, strategy: str, stats: PreprocessingStats) -> pd.DataFrame:
    """
    Fill null cells column by column.

    Numeric columns use the median ('auto', 'median'), the mean ('mean',
    'interpolate') or the mode ('mode'); other columns use the mode, or
    "Unknown" when the column has no values at all.
    """
    for column in df.columns:
        missing = df[column].isna()
        if not missing.any():
            continue

        present = df.loc[~missing, column]
        if is_numeric_column(df[column]):
            fill = _numeric_fill(present, strategy)
        else:
            fill = _mode(present)
            if fill is None:
                fill = UNKNOWN_CATEGORY

        df[column] = [fill if is_missing else value for value, is_missing in zip(df[column], missing)]
        stats.missing_values_handled += int(missing.sum())

    return df


def _key_columns(df: pd.DataFrame) -> List[str]:
    """Columns whose values are nearly all distinct."""
    if df.empty:
        return []
    return [
        column for column in df.columns
        if df[column].map(as_text).nunique() / len(df) > KEY_COLUMN_UNIQUE_RATIO
    ]


def _row_key(row: Dict[str, Any], strategy: str, key_columns: List[str]) -> str:
    if strategy == "fuzzy":
        return "|".join("" if is_empty(v) else as_text(v).lower().strip() for v in row.values())
    if strategy == "key_columns" and key_columns:
        row = {column: row.get(column) for column in key_columns}
    return json.dumps(row, sort_keys=True, default=str)


def remove_duplicates(df: pd.DataFrame, strategy: str, stats: PreprocessingStats) -> pd.DataFrame:
    """
    Keep the first of each group of duplicate rows.

    'strict' compares whole rows, 'fuzzy' compares case- and
    whitespace-insensitive text, 'key_columns' compares only near-unique
    columns (whole rows when there are none).
    """
    if df.empty:
        return df

    key_columns = _key_columns(df) if strategy == "key_columns" else []
    keys = pd.Series([_row_key(row, strategy, key_columns) for row in df.to_dict(orient="records")])
    duplicated = keys.duplicated(keep="first").to_numpy()

    stats.duplicates_removed += int(duplicated.sum())
    return df[~duplicated].reset_index(drop=True)


def _normalise_number(value: Any) -> float:
    if isinstance(value, str):
        value = _NUMBER_DECORATIONS.sub("", value)
    number = parse_number(value)
    return 0.0 if number is None else number


def normalize_data_types(df: pd.DataFrame, stats: PreprocessingStats) -> pd.DataFrame:
    """Numeric columns become floats; "$1,200" reads as 1200, unparseable cells as 0."""
    for column in numeric_columns(df):
        present = df[column].notna()
        stats.data_types_normalized += int(present.sum())
        df[column] = [
            _normalise_number(value) if is_present else 0.0
            for value, is_present in zip(df[column], present)
        ]
    return df


def outlier_bounds(numbers: pd.Series, strategy: str = "iqr") -> Optional[Tuple[float, float]]:
    """Lower and upper bounds beyond which a value counts as an outlier."""
    numbers = numbers.dropna()
    numbers = numbers[np.isfinite(numbers)]
    if numbers.empty:
        return None

    if strategy == "std":
        mean = numbers.mean()
        std = numbers.std(ddof=0)
        return mean - STD_MULTIPLIER * std, mean + STD_MULTIPLIER * std

    q1 = numbers.quantile(0.25)
    q3 = numbers.quantile(0.75)
    iqr = q3 - q1
    return q1 - IQR_MULTIPLIER * iqr, q3 + IQR_MULTIPLIER * iqr


def handle_outliers(df: pd.DataFrame, strategy: str, stats: PreprocessingStats) -> pd.DataFrame:
    """
    Cap numeric outliers at their bounds ('iqr', 'cap', 'std'), or drop
    the rows that contain them ('remove').
    """
    rows_to_drop = np.zeros(len(df), dtype=bool)

    for column in numeric_columns(df):
        numbers = _to_numbers(df[column])
        bounds = outlier_bounds(numbers, strategy)
        if bounds is None:
            continue

        lower, upper = bounds
        outside = ((numbers < lower) | (numbers > upper)).to_numpy()
        stats.outliers_treated += int(outside.sum())

        if strategy == "remove":
            rows_to_drop |= outside
        else:
            df[column] = df[column].mask(outside, numbers.clip(lower, upper))

    if strategy == "remove":
        df = df[~rows_to_drop].reset_index(drop=True)
    return df


def validate_consistency(df: pd.DataFrame) -> ConsistencyReport:
    report = ConsistencyReport()
    if df.empty:
        report.is_consistent = False
        report.issues.append("No data rows found")
        return report

    for column in numeric_columns(df):
        present = df[column].dropna()
        non_numeric = int(_to_numbers(present).isna().sum())
        if non_numeric:
            report.warnings.append(f"Column '{column}' has {non_numeric} non-numeric values in numeric column")

        numbers = _to_numbers(present).dropna()
        numbers = numbers[np.isfinite(numbers)]
        if numbers.empty:
            continue
        with np.errstate(over="ignore", invalid="ignore"):
            if numbers.max() - numbers.min() > numbers.mean() * LARGE_RANGE_FACTOR:
                report.warnings.append(f"Column '{column}' has unusually large range, potential data quality issues")

    return report


def _round2(value: float) -> float:
    return math.floor(value * 100 + 0.5) / 100


def calculate_data_quality(df: pd.DataFrame) -> DataQuality:
    """
    Score = mean of completeness (non-null cells) and consistency (present
    cells that fit their column's type), both in percent.
    """
    if df.empty:
        return DataQuality()

    total_cells = int(df.size)
    missing = df.isna()
    null_cells = int(missing.to_numpy().sum())
    numeric = set(numeric_columns(df))

    consistent_cells = 0
    for column in df.columns:
        present = df.loc[~missing[column], column]
        if column in numeric:
            consistent_cells += int(_to_numbers(present).notna().sum())
        else:
            consistent_cells += len(present)

    present_cells = total_cells - null_cells
    completeness = present_cells / total_cells * 100
    consistency = consistent_cells / present_cells * 100 if present_cells else 0.0

    return DataQuality(
        score=_round2((completeness + consistency) / 2),
        completeness=_round2(completeness),
        consistency=_round2(consistency),
        total_cells=total_cells,
        null_cells=null_cells,
        processed_rows=len(df)
    )


def _to_records(df: pd.DataFrame) -> List[Dict[str, Any]]:
    df = df.astype(object)
    return df.where(df.notna(), None).to_dict(orient="records")


@track_performance("preprocess_data")
def preprocess_data(
    data: Optional[Sequence[Mapping[str, Any]]],
    options: Optional[PreprocessingOptions] = None
) -> PreprocessingResult:
    """
    Run the preprocessing pipeline.

    Steps, in order: clean, fill missing values, remove duplicates,
    normalise numeric columns, then (when enabled) treat outliers.

    Args:
        data: Dataset rows; anything that is not a mapping is skipped
        options: Strategies for each step; defaults when omitted

    Returns:
        PreprocessingResult with the processed rows, counters, consistency
        warnings and the data-quality score
    """
    options = options or PreprocessingOptions()
    rows = [row for row in (data or []) if isinstance(row, Mapping)]
    stats = PreprocessingStats(rows_processed=len(rows))

    df = clean_data(rows)
    df = fill_missing_values(df, options.missing_value_strategy, stats)
    df = remove_duplicates(df, options.duplicate_strategy, stats)
    df = normalize_data_types(df, stats)
    if options.handle_outliers:
        df = handle_outliers(df, options.outlier_strategy, stats)

    validation = validate_consistency(df)
    quality = calculate_data_quality(df)

    logger.info(
        f"Preprocessed {len(rows)} rows -> {len(df)} "
        f"(missing={stats.missing_values_handled}, duplicates={stats.duplicates_removed}, "
        f"outliers={stats.outliers_treated}, quality={quality.score})"
    )

    return PreprocessingResult(
        data=_to_records(df),
        original_count=len(data or []),
        processed_count=len(df),
        stats=stats,
        validation=validation,
        quality=quality
    )
