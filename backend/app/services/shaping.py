"""
Chart data shaping.

Turns dataset rows into the structures chart libraries consume:
category/series arrays, pie slices, histogram bins, bubble points,
box-plot quartiles and radar indicators.
"""
import logging
import math
from typing import Any, Dict, List, Optional, Sequence

import numpy as np

from app.core.performance import track_performance
from app.services.classifier import parse_number

logger = logging.getLogger(__name__)

CHART_PALETTE = [
    '#059669', '#10b981', '#34d399', '#6ee7b7', '#a7f3d0',
    '#d1fae5', '#047857', '#065f46', '#064e3b', '#022c22'
]

MIN_HISTOGRAM_BINS = 5
MAX_HISTOGRAM_BINS = 20
DEFAULT_MAX_PIE_SLICES = 25
DEFAULT_MAX_POINTS = 1000

SHAPEABLE_CHART_TYPES = ("line", "bar", "area", "pie", "histogram", "bubble", "box", "radar")


def _color(index: int) -> str:
    return CHART_PALETTE[index % len(CHART_PALETTE)]


def _number_or_zero(value: Any) -> float:
    number = parse_number(value)
    return 0.0 if number is None or not math.isfinite(number) else number


def _numbers(data: Sequence[Dict[str, Any]], column: str) -> List[float]:
    values = []
    for row in data:
        number = parse_number(row.get(column))
        if number is not None and math.isfinite(number):
            values.append(number)
    return values


def shape_series(data, x_axis, y_axis, series=None) -> Dict[str, Any]:
    """Categories from the x column plus one numeric series per y column."""
    columns = list(series) if series else [y_axis]
    categories = []
    values: Dict[str, List[float]] = {c: [] for c in columns}

    for row in data:
        x_value = row.get(x_axis)
        if x_value is None:
            continue
        categories.append(str(x_value))
        for column in columns:
            values[column].append(_number_or_zero(row.get(column)))

    return {
        "categories": categories,
        "series": [
            {"name": column, "data": values[column], "color": _color(i)}
            for i, column in enumerate(columns)
        ]
    }


def _pie_slice(name: Any, value: float, index: int, grouped_items: Optional[List[Dict[str, Any]]] = None) -> Dict[str, Any]:
    """Every pie slice has the same keys; only an "Others" slice is grouped."""
    return {
        "name": name,
        "value": value,
        "color": _color(index),
        "is_grouped": grouped_items is not None,
        "grouped_items": grouped_items or []
    }


def shape_pie(data, x_axis, y_axis) -> List[Dict[str, Any]]:
    """Sum y per x label, keeping first-seen label order."""
    totals: Dict[str, float] = {}
    for row in data:
        value = parse_number(row.get(y_axis))
        if value is None or not math.isfinite(value):
            continue
        name = str(row.get(x_axis))
        totals[name] = totals.get(name, 0.0) + value

    return [_pie_slice(name, value, i) for i, (name, value) in enumerate(totals.items())]


def shape_histogram(data, column) -> Optional[List[Dict[str, float]]]:
    values = _numbers(data, column)
    if not values:
        return None

    bins = int(min(MAX_HISTOGRAM_BINS, max(MIN_HISTOGRAM_BINS, math.sqrt(len(values)))))
    counts, edges = np.histogram(values, bins=bins)

    return [
        {
            "x": float((edges[i] + edges[i + 1]) / 2),
            "y": int(counts[i]),
            "bin_start": float(edges[i]),
            "bin_end": float(edges[i + 1]),
        }
        for i in range(len(counts))
    ]


def shape_bubble(data, x_axis, y_axis, size_axis) -> List[List[float]]:
    points = []
    for row in data:
        triple = [parse_number(row.get(c)) for c in (x_axis, y_axis, size_axis)]
        if all(v is not None and math.isfinite(v) for v in triple):
            points.append(triple)
    return points


def shape_box(data, column) -> Optional[Dict[str, Any]]:
    values = sorted(_numbers(data, column))
    if not values:
        return None

    def at(fraction: float) -> float:
        return values[int(math.floor(len(values) * fraction))]

    return {
        "min": values[0],
        "q1": at(0.25),
        "median": at(0.5),
        "q3": at(0.75),
        "max": values[-1],
        "outliers": []
    }


def shape_radar(data, series_column, value_columns) -> Dict[str, Any]:
    if isinstance(value_columns, str) or value_columns is None:
        value_columns = [value_columns]

    indicators = [
        {"name": column, "max": max(_number_or_zero(row.get(column)) for row in data)}
        for column in value_columns
    ]

    def averages(rows):
        return [
            sum(_number_or_zero(row.get(column)) for row in rows) / len(rows)
            for column in value_columns
        ]

    if not series_column:
        return {"indicators": indicators, "data": [{"name": "Data", "value": averages(data)}]}

    groups: Dict[str, List[Dict[str, Any]]] = {}
    for row in data:
        groups.setdefault(str(row.get(series_column)), []).append(row)

    return {
        "indicators": indicators,
        "data": [{"name": name, "value": averages(rows)} for name, rows in groups.items()]
    }


@track_performance("process_data_for_chart")
def process_data_for_chart(
    data: Sequence[Dict[str, Any]],
    chart_type: str,
    x_axis: Optional[str] = None,
    y_axis: Optional[str] = None,
    series: Optional[Sequence[str]] = None
) -> Any:
    """
    Shape rows for a chart type.

    For bubble charts the first `series` entry is the size column; for
    radar charts `x_axis` groups rows and `series` (or `y_axis`) lists
    the value columns.

    Returns:
        The shaped payload, or None for empty data or an unknown chart type
    """
    if not data:
        return None

    if chart_type in ("line", "bar", "area"):
        return shape_series(data, x_axis, y_axis, series)
    if chart_type == "pie":
        return shape_pie(data, x_axis, y_axis)
    if chart_type == "histogram":
        return shape_histogram(data, x_axis)
    if chart_type == "bubble":
        size_axis = series[0] if series else None
        return shape_bubble(data, x_axis, y_axis, size_axis)
    if chart_type == "box":
        return shape_box(data, y_axis)
    if chart_type == "radar":
        return shape_radar(data, x_axis, list(series) if series else y_axis)

    logger.warning(f"No shaping available for chart type: {chart_type}")
    return None


def optimize_pie_data(data, x_axis, y_axis, max_slices: int = DEFAULT_MAX_PIE_SLICES) -> List[Dict[str, Any]]:
    """
    One slice per row, with the smallest rows folded into an "Others" slice
    once there are more than `max_slices` of them.

    Slices are coloured by position and share the keys `shape_pie` emits.
    The folded rows are listed under the "Others" slice's `grouped_items`;
    when their values sum to zero or less no "Others" slice is added.
    """
    pairs = [(row.get(x_axis), _number_or_zero(row.get(y_axis))) for row in data]
    if len(pairs) <= max_slices:
        top, rest = pairs, []
    else:
        pairs.sort(key=lambda pair: pair[1], reverse=True)
        top, rest = pairs[:max_slices - 1], pairs[max_slices - 1:]

    slices = [_pie_slice(name, value, i) for i, (name, value) in enumerate(top)]

    others_value = sum(value for _, value in rest)
    if others_value > 0:
        slices.append(_pie_slice(
            f"Others ({len(rest)} items)",
            others_value,
            len(slices),
            grouped_items=[{"name": name, "value": value} for name, value in rest]
        ))
    return slices


def downsample(data: Sequence[Any], max_points: int = DEFAULT_MAX_POINTS) -> List[Any]:
    """Keep every n-th row so at most `max_points` remain."""
    if len(data) <= max_points:
        return list(data)
    step = math.ceil(len(data) / max_points)
    return list(data[::step])
