"""
Unit tests for the recommendation generator.
"""
import pandas as pd
import pytest

from app.core.schemas import ColumnProfile, PatternGroups, Recommendation
from app.services.recommender import (
    AVOIDED_TYPE_FACTOR,
    PREFERRED_TYPE_BOOST,
    PRIORITY_WEIGHT,
    analyze_data_patterns,
    apply_preferences,
    calculate_overall_confidence,
    generate_recommendations,
)


def _column(name, col_type, unique_values=10):
    return ColumnProfile(
        name=name,
        type=col_type,
        unique_values=unique_values,
        unique_ratio=0.5,
        confidence=0.8,
    )


@pytest.fixture
def sales_rows():
    """28 days of sales across three regions."""
    regions = ["North", "South", "East"]
    return [
        {
            "Date": f"2024-01-{day:02d}",
            "Region": regions[day % 3],
            "Revenue": 100 + day * 7.5,
            "Units": (day * 3) % 17 + 1,
            "Cost": 50 + day * 2.25,
        }
        for day in range(1, 29)
    ]


@pytest.mark.unit
def test_end_to_end_trend_example():
    data = [
        {"Date": "2024-01-01", "Revenue": 100},
        {"Date": "2024-01-02", "Revenue": 150},
    ]

    analysis = analyze_data_patterns(data, ["Date", "Revenue"])

    assert [c.name for c in analysis.patterns.temporal] == ["Date"]
    assert [c.name for c in analysis.patterns.numerical] == ["Revenue"]
    top = analysis.recommendations[0]
    assert top.chart_type == "line"
    assert top.title == "Revenue Trend Over Date"
    assert top.x_axis == "Date"
    assert top.y_axis == "Revenue"
    assert top.confidence == 0.95
    assert top.priority == "high"
    assert analysis.confidence == 95


@pytest.mark.unit
def test_large_dataset_penalises_line_and_scatter():
    patterns = PatternGroups(
        temporal=[_column("Date", "temporal")],
        numerical=[_column("Revenue", "numerical"), _column("Cost", "numerical")],
        categorical=[_column("Region", "categorical", unique_values=3)],
    )

    recs = generate_recommendations(patterns, row_count=6000)

    lines = [r for r in recs if r.chart_type == "line"]
    scatters = [r for r in recs if r.chart_type == "scatter"]
    bars = [r for r in recs if r.chart_type == "bar"]
    assert lines and scatters and bars
    for rec in lines:
        assert rec.confidence == pytest.approx(0.95 * 0.95)
        assert rec.performance_note
    for rec in scatters:
        assert rec.confidence == pytest.approx(0.8 * 0.95)
        assert rec.performance_note
    for rec in bars:
        assert rec.confidence == 0.9
        assert rec.performance_note is None


@pytest.mark.unit
def test_no_penalty_at_exactly_5000_rows():
    patterns = PatternGroups(
        temporal=[_column("Date", "temporal")],
        numerical=[_column("Revenue", "numerical")],
    )

    recs = generate_recommendations(patterns, row_count=5000)

    assert recs[0].confidence == 0.95
    assert recs[0].performance_note is None


@pytest.mark.unit
def test_trend_uses_at_most_three_measures_per_time_column():
    patterns = PatternGroups(
        temporal=[_column("Date", "temporal"), _column("Week", "temporal")],
        numerical=[_column(f"m{i}", "numerical") for i in range(4)],
    )

    lines = [r for r in generate_recommendations(patterns, 10) if r.chart_type == "line"]

    assert len(lines) == 6
    assert {r.y_axis for r in lines} == {"m0", "m1", "m2"}


@pytest.mark.unit
def test_category_comparison_limits_and_confidence():
    patterns = PatternGroups(
        categorical=[
            _column("Region", "categorical", unique_values=4),
            _column("Store", "categorical", unique_values=12),
            _column("Channel", "categorical", unique_values=3),
        ],
        numerical=[_column(f"m{i}", "numerical") for i in range(3)],
    )

    bars = [r for r in generate_recommendations(patterns, 10) if r.chart_type == "bar"]

    assert len(bars) == 4
    assert {r.x_axis for r in bars} == {"Region", "Store"}
    for bar in bars:
        assert bar.group_by == bar.x_axis
        if bar.x_axis == "Region":
            assert (bar.confidence, bar.priority) == (0.9, "high")
        else:
            assert (bar.confidence, bar.priority) == (0.7, "medium")


@pytest.mark.unit
@pytest.mark.parametrize("unique_values,expected", [(1, 0), (2, 1), (8, 1), (9, 0)])
def test_pie_requires_two_to_eight_categories(unique_values, expected):
    patterns = PatternGroups(categorical=[_column("Segment", "categorical", unique_values)])

    pies = [r for r in generate_recommendations(patterns, 10) if r.chart_type == "pie"]

    assert len(pies) == expected
    if pies:
        assert pies[0].title == "Segment Distribution"
        assert pies[0].label_field == "Segment"
        assert pies[0].value_field == "count"
        assert pies[0].confidence == 0.85


@pytest.mark.unit
def test_correlation_pairs_and_bubble():
    patterns = PatternGroups(numerical=[_column(n, "numerical") for n in ["a", "b", "c", "d"]])

    recs = generate_recommendations(patterns, 10)

    scatter_pairs = {(r.x_axis, r.y_axis) for r in recs if r.chart_type == "scatter"}
    assert scatter_pairs == {("a", "b"), ("a", "c"), ("b", "c")}

    bubbles = [r for r in recs if r.chart_type == "bubble"]
    assert len(bubbles) == 1
    assert (bubbles[0].x_axis, bubbles[0].y_axis, bubbles[0].size_by) == ("a", "b", "c")
    assert bubbles[0].priority == "low"
    assert recs[-1].chart_type == "bubble"


@pytest.mark.unit
def test_no_bubble_with_two_measures():
    patterns = PatternGroups(numerical=[_column("a", "numerical"), _column("b", "numerical")])

    recs = generate_recommendations(patterns, 10)

    assert [r.chart_type for r in recs] == ["scatter"]


@pytest.mark.unit
def test_mixed_columns_are_ignored():
    patterns = PatternGroups(mixed=[_column(f"text{i}", "mixed") for i in range(3)])
    assert generate_recommendations(patterns, 100) == []


@pytest.mark.unit
def test_recommendations_sorted_by_priority_then_confidence(sales_rows):
    recs = generate_recommendations(
        analyze_data_patterns(sales_rows, limit=50).patterns,
        len(sales_rows)
    )

    keys = [(PRIORITY_WEIGHT[r.priority], r.confidence) for r in recs]
    assert keys == sorted(keys, reverse=True)


@pytest.mark.unit
def test_analysis_truncates_but_scores_everything(sales_rows):
    full = analyze_data_patterns(sales_rows, limit=50)
    top = analyze_data_patterns(sales_rows, limit=2)

    assert len(full.recommendations) == 10
    assert len(top.recommendations) == 2
    assert top.confidence == full.confidence == calculate_overall_confidence(full.recommendations)
    assert [r.chart_type for r in full.recommendations[:3]] == ["line", "line", "line"]


@pytest.mark.unit
def test_analysis_defaults_to_eight_recommendations(sales_rows):
    analysis = analyze_data_patterns(sales_rows)
    assert len(analysis.recommendations) == 8


@pytest.mark.unit
def test_analysis_accepts_dataframe(sales_rows):
    df = pd.DataFrame(sales_rows)

    from_frame = analyze_data_patterns(df)
    from_rows = analyze_data_patterns(sales_rows)

    assert from_frame == from_rows


@pytest.mark.unit
@pytest.mark.parametrize("data", [None, [], pd.DataFrame()])
def test_analysis_of_empty_data(data):
    analysis = analyze_data_patterns(data, ["a"])

    assert analysis.recommendations == []
    assert analysis.confidence == 0


@pytest.mark.unit
def test_overall_confidence_rounds_half_up():
    recs = [
        Recommendation(chart_type="bar", title="t", description="d", confidence=0.125,
                       priority="low", reasoning="r")
        for _ in range(2)
    ]

    assert calculate_overall_confidence(recs) == 13
    assert calculate_overall_confidence([]) == 0


@pytest.mark.unit
def test_preferred_chart_type_is_boosted_and_capped():
    patterns = PatternGroups(numerical=[_column("a", "numerical"), _column("b", "numerical")])
    baseline = generate_recommendations(patterns, 10)[0].confidence

    boosted = generate_recommendations(patterns, 10, preferred_types=["scatter"])[0]

    assert boosted.confidence == pytest.approx(min(baseline + PREFERRED_TYPE_BOOST, 1.0))
    assert boosted.confidence <= 1.0


@pytest.mark.unit
def test_avoided_chart_type_is_halved(sales_rows):
    baseline = analyze_data_patterns(sales_rows, limit=50)
    avoided = analyze_data_patterns(sales_rows, limit=50, avoid_types=["line"])

    before = sorted(r.confidence for r in baseline.recommendations if r.chart_type == "line")
    after = sorted(r.confidence for r in avoided.recommendations if r.chart_type == "line")
    assert after == pytest.approx([c * AVOIDED_TYPE_FACTOR for c in before])
    assert avoided.confidence < baseline.confidence

    keys = [(PRIORITY_WEIGHT[r.priority], r.confidence) for r in avoided.recommendations]
    assert keys == sorted(keys, reverse=True)


@pytest.mark.unit
def test_apply_preferences_ignores_unlisted_types():
    recs = [
        Recommendation(chart_type=chart_type, title="t", description="d", confidence=0.9,
                       priority="high", reasoning="r")
        for chart_type in ("bar", "pie")
    ]

    apply_preferences(recs, preferred_types=["bar"], avoid_types=["histogram"])

    assert [r.confidence for r in recs] == [1.0, 0.9]
