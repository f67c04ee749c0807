"""
Unit tests for chart configuration validation.
"""
import pytest

from app.core.schemas import ChartConfig
from app.services.validation import validate_data_for_charting


@pytest.fixture
def rows():
    return [{"Date": f"2024-02-{d:02d}", "Revenue": d * 10, "Notes": None} for d in range(1, 13)]


@pytest.mark.unit
@pytest.mark.parametrize("data", [None, []])
def test_no_data(data):
    result = validate_data_for_charting(data, {"x_axis": "a"})

    assert result.valid is False
    assert [e.type for e in result.errors] == ["no_data"]
    assert result.errors[0].message == "No data available for chart creation"
    assert result.errors[0].suggestion == "Please upload a valid dataset first"
    assert result.warnings == []


@pytest.mark.unit
def test_single_row_warns_but_is_valid():
    result = validate_data_for_charting([{"A": 1}], {"x_axis": "A"})

    assert result.valid is True
    assert [w.type for w in result.warnings] == ["insufficient_data"]
    assert result.data_size == 1


@pytest.mark.unit
def test_missing_column_is_an_error():
    data = [{"A": 1}, {"A": 2}]

    result = validate_data_for_charting(data, {"x_axis": "B"})

    assert result.valid is False
    assert len(result.errors) == 1
    assert result.errors[0].type == "missing_column"
    assert result.errors[0].message == "Column 'B' not found in data"
    assert result.errors[0].suggestion == "Please select a valid column for X-axis"


@pytest.mark.unit
def test_both_axes_missing(rows):
    result = validate_data_for_charting(rows, ChartConfig(x_axis="Day", y_axis="Sales"))

    assert result.valid is False
    assert [e.message for e in result.errors] == [
        "Column 'Day' not found in data",
        "Column 'Sales' not found in data",
    ]
    assert result.errors[1].suggestion == "Please select a valid column for Y-axis"


@pytest.mark.unit
@pytest.mark.parametrize("config", [
    {"xAxis": "Date", "yAxis": "Sales"},
    ChartConfig(xAxis="Date", yAxis="Sales"),
    ChartConfig.model_validate({"xAxis": "Date", "yAxis": "Sales"}),
])
def test_camel_case_axes(rows, config):
    result = validate_data_for_charting(rows, config)

    assert result.valid is False
    assert [e.message for e in result.errors] == ["Column 'Sales' not found in data"]
    assert result.errors[0].suggestion == "Please select a valid column for Y-axis"


@pytest.mark.unit
def test_empty_column_warning(rows):
    result = validate_data_for_charting(rows, {"x_axis": "Date", "y_axis": "Notes"})

    assert result.valid is True
    assert [w.type for w in result.warnings] == ["empty_column"]
    assert result.warnings[0].message == "Column 'Notes' appears to be empty"


@pytest.mark.unit
def test_only_first_ten_rows_are_checked_for_emptiness():
    data = [{"Value": None} for _ in range(10)] + [{"Value": 5}]

    result = validate_data_for_charting(data, {"x_axis": "Value"})

    assert [w.type for w in result.warnings] == ["empty_column"]


@pytest.mark.unit
def test_valid_configuration(rows):
    result = validate_data_for_charting(rows, ChartConfig(x_axis="Date", y_axis="Revenue"))

    assert result.valid is True
    assert result.errors == []
    assert result.warnings == []
    assert result.data_size == 12
    assert result.performance_mode is False


@pytest.mark.unit
def test_unset_axes_are_skipped(rows):
    result = validate_data_for_charting(rows)

    assert result.valid is True
    assert result.errors == []


@pytest.mark.unit
@pytest.mark.parametrize("size,expected", [(1000, False), (1001, True)])
def test_performance_mode_above_one_thousand_rows(size, expected):
    data = [{"A": i} for i in range(size)]

    result = validate_data_for_charting(data, {"x_axis": "A"})

    assert result.performance_mode is expected
