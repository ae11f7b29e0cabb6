"""
EduBoost Gateway — Request Field Validation
============================================

What:  Pure checks for the text fields posted by the browser client.
Why:   Every AI endpoint takes one free-text field; the checks and error codes
       must be identical everywhere.
How:   require_text() inspects the decoded JSON body and raises ApiError.

Why not Pydantic request models:
    FastAPI turns model failures into 422 responses with its own shape.
    The client expects 400 with INVALID_INPUT / INPUT_TOO_LARGE, and the
    length check applies to the *trimmed* value.
"""

from typing import Any

from eduboost.exceptions import ApiError


def require_text(body: Any, field: str, max_length: int) -> str:
    """
    Return the trimmed string value of `field` from a JSON object body.

    Raises:
        ApiError(400, INVALID_INPUT): body is not an object (lists included),
            field is missing or not a string, or the value is blank.
        ApiError(400, INPUT_TOO_LARGE): trimmed value is longer than max_length.
    """
    # JSON arrays decode to list; they are not records even though they are truthy
    if not isinstance(body, dict):
        raise ApiError(400, "INVALID_INPUT", "Request body must be a JSON object.")

    raw = body.get(field)
    if not isinstance(raw, str):
        raise ApiError(400, "INVALID_INPUT", f'Field "{field}" must be a string.')

    value = raw.strip()
    if not value:
        raise ApiError(400, "INVALID_INPUT", f'Field "{field}" cannot be empty.')

    if len(value) > max_length:
        raise ApiError(
            400,
            "INPUT_TOO_LARGE",
            f'Field "{field}" exceeds maximum length.',
            details={"field": field, "maxLength": max_length},
        )

    return value
