"""
Error message constants and utilities for user-friendly error handling.
"""
from typing import Dict, Optional


class ErrorCodes:
    NO_DATA = "NO_DATA"
    DATASET_TOO_LARGE = "DATASET_TOO_LARGE"
    UNSUPPORTED_CHART_TYPE = "UNSUPPORTED_CHART_TYPE"
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"
    TIMEOUT = "TIMEOUT"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


ERROR_MESSAGES: Dict[str, Dict[str, str]] = {
    ErrorCodes.NO_DATA: {
        "message": "There's no data to analyze",
        "detail": "The request did not contain any rows.",
        "suggestion": "💡 Upload a spreadsheet with a header row and at least one row of data, then try again."
    },
    ErrorCodes.DATASET_TOO_LARGE: {
        "message": "That's more rows than we analyze in one go",
        "detail": "The dataset exceeds the row limit for a single request.",
        "suggestion": "💡 Send a sample of your rows (the first few thousand are usually enough to pick a chart)."
    },
    ErrorCodes.UNSUPPORTED_CHART_TYPE: {
        "message": "We can't prepare data for that chart type",
        "detail": "The requested chart type is not one we know how to shape data for.",
        "suggestion": "💡 Use one of: line, bar, area, pie, histogram, bubble, box, radar."
    },
    ErrorCodes.RATE_LIMIT_EXCEEDED: {
        "message": "Whoa there! Slow down a bit",
        "detail": "You're sending requests faster than we can keep up with.",
        "suggestion": "💡 Wait about a minute and try again. Your data will still be there!"
    },
    ErrorCodes.TIMEOUT: {
        "message": "This is taking longer than expected",
        "detail": "Analyzing this dataset took longer than the request time limit.",
        "suggestion": "💡 Try a smaller sample of your data."
    },
    ErrorCodes.UNKNOWN_ERROR: {
        "message": "Hmm, something unexpected happened",
        "detail": "We encountered an issue we weren't expecting. Don't worry - it's not your fault!",
        "suggestion": "💡 Give it another try in a moment."
    }
}

# Chart validation issues: returned as data, never raised
VALIDATION_MESSAGES: Dict[str, Dict[str, str]] = {
    "no_data": {
        "message": "No data available for chart creation",
        "suggestion": "Please upload a valid dataset first"
    },
    "insufficient_data": {
        "message": "Very small dataset detected",
        "suggestion": "Charts work better with more data points"
    },
    "missing_column": {
        "message": "Column '{column}' not found in data",
        "suggestion": "Please select a valid column for {axis}"
    },
    "empty_column": {
        "message": "Column '{column}' appears to be empty",
        "suggestion": "Consider using a different column or cleaning your data"
    },
}


def get_error_response(error_code: str, additional_detail: Optional[str] = None) -> Dict[str, str]:
    """
    Get user-friendly error response for an error code.

    Args:
        error_code: One of the ErrorCodes constants
        additional_detail: Optional additional detail to append

    Returns:
        Dictionary with code, message, detail, and suggestion
    """
    error_info = ERROR_MESSAGES.get(error_code, ERROR_MESSAGES[ErrorCodes.UNKNOWN_ERROR])

    response = {
        "code": error_code,
        "message": error_info["message"],
        "detail": error_info["detail"],
        "suggestion": error_info["suggestion"]
    }

    if additional_detail:
        response["detail"] = f"{response['detail']} {additional_detail}"

    return response


def get_validation_issue(issue_type: str, **context: str) -> Dict[str, str]:
    """Build a {type, message, suggestion} validation entry."""
    template = VALIDATION_MESSAGES[issue_type]
    return {
        "type": issue_type,
        "message": template["message"].format(**context),
        "suggestion": template["suggestion"].format(**context)
    }
