"""
Unit tests for column statistics and correlations.
"""
import math

import pytest

from app.services.statistics import (
    calculate_correlations,
    column_statistics,
    correlation_strength,
    describe_column,
    numeric_values,
)


@pytest.mark.unit
def test_describe_column():
    stats = describe_column([7, 3, 1, 9, 100, 2, 5, 4, 6, 8])

    assert stats.count == 10
    assert (stats.min, stats.q1, stats.median, stats.q3, stats.max) == (1, 3, 6, 8, 100)
    assert stats.range == 99
    assert stats.mean == 14.5
    assert stats.std_dev == pytest.approx(math.sqrt(stats.variance), abs=1e-3)
    assert stats.skewness > 0
    assert stats.percentiles == {"p5": 1, "p10": 2, "p90": 100, "p95": 100, "p99": 100}
    assert stats.outliers.count == 1
    assert stats.outliers.percentage == 10.0
    assert stats.outliers.values == [100.0]


@pytest.mark.unit
def test_single_value_has_no_spread():
    stats = describe_column([5])

    assert stats.variance is None
    assert stats.std_dev is None
    assert (stats.skewness, stats.kurtosis) == (0, 0)
    assert stats.q1 == stats.q3 == 5


@pytest.mark.unit
def test_constant_column_has_zero_shape():
    stats = describe_column([3, 3, 3])

    assert stats.std_dev == 0
    assert (stats.skewness, stats.kurtosis) == (0, 0)
    assert stats.outliers.count == 0


@pytest.mark.unit
def test_describe_empty_column():
    assert describe_column([]) is None


@pytest.mark.unit
def test_numeric_values_skip_text_and_infinity():
    rows = [{"v": "12kg"}, {"v": "n/a"}, {"v": "Infinity"}, {"v": 4}, "junk", {"w": 1}]

    assert numeric_values(rows, "v") == [12.0, 4.0]


@pytest.mark.unit
def test_column_statistics_per_column():
    rows = [{"a": i, "label": f"x{i}"} for i in range(1, 6)]

    result = column_statistics(rows, ["a", "label"])

    assert result["a"].count == 5
    assert result["label"] is None


@pytest.mark.unit
def test_correlations():
    rows = [{"x": i, "y": i * 2, "flat": 7, "sparse": None} for i in range(1, 6)]
    rows[0]["sparse"] = 1

    correlations = calculate_correlations(rows, ["x", "y", "flat", "sparse"])

    by_pair = {tuple(c.columns): c for c in correlations}
    assert set(by_pair) == {("x", "y"), ("x", "flat"), ("y", "flat")}
    assert by_pair[("x", "y")].correlation == 1.0
    assert by_pair[("x", "y")].strength == "Strong"
    assert by_pair[("x", "y")].sample_size == 5
    assert by_pair[("x", "flat")].correlation == 0.0
    assert by_pair[("x", "flat")].strength == "Very Weak"


@pytest.mark.unit
@pytest.mark.parametrize("value,expected", [
    (0.7, "Strong"),
    (0.69, "Moderate"),
    (0.3, "Moderate"),
    (0.1, "Weak"),
    (0.09, "Very Weak"),
])
def test_correlation_strength(value, expected):
    assert correlation_strength(value) == expected
