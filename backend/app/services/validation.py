"""
Pre-flight validation of a chart configuration against its data.

Advisory only: problems come back as structured errors and warnings,
and the caller decides whether to block chart creation.
"""
import logging
from typing import Any, Dict, Mapping, Optional, Sequence, Union

from app.core.errors import get_validation_issue
from app.core.schemas import ChartConfig, ValidationIssue, ValidationResult
from app.services.classifier import is_empty
from app.services.performance_tier import TIER_THRESHOLDS

logger = logging.getLogger(__name__)

EMPTY_CHECK_ROWS = 10
MIN_ROWS = 2


def _axes(config: Union[ChartConfig, Mapping[str, Any], None]) -> Dict[str, Optional[str]]:
    if config is None:
        return {}
    if isinstance(config, ChartConfig):
        return {"X-axis": config.x_axis, "Y-axis": config.y_axis}
    # Plain mappings may use either the snake_case or the camelCase keys
    return {
        "X-axis": config.get("x_axis", config.get("xAxis")),
        "Y-axis": config.get("y_axis", config.get("yAxis")),
    }


def validate_data_for_charting(
    data: Optional[Sequence[Dict[str, Any]]],
    config: Union[ChartConfig, Mapping[str, Any], None] = None
) -> ValidationResult:
    """
    Check that a chart config can be drawn from the data.

    Args:
        data: Dataset rows
        config: Axis bindings (`x_axis`, `y_axis`); unset axes are skipped

    Returns:
        ValidationResult; `valid` is False only when there are errors
    """
    if not data:
        return ValidationResult(
            valid=False,
            errors=[ValidationIssue(**get_validation_issue("no_data"))]
        )

    errors = []
    warnings = []

    if len(data) < MIN_ROWS:
        warnings.append(ValidationIssue(**get_validation_issue("insufficient_data")))

    first_row = data[0] if isinstance(data[0], Mapping) else {}
    axes = {axis: column for axis, column in _axes(config).items() if column}

    for axis, column in axes.items():
        if column not in first_row:
            errors.append(ValidationIssue(**get_validation_issue("missing_column", column=column, axis=axis)))

    for column in axes.values():
        sample = [row.get(column) if isinstance(row, Mapping) else None for row in data[:EMPTY_CHECK_ROWS]]
        if all(is_empty(value) for value in sample):
            warnings.append(ValidationIssue(**get_validation_issue("empty_column", column=column)))

    if errors:
        logger.info(f"Chart config rejected: {[e.message for e in errors]}")

    return ValidationResult(
        valid=not errors,
        errors=errors,
        warnings=warnings,
        data_size=len(data),
        performance_mode=len(data) > TIER_THRESHOLDS["small"]
    )
