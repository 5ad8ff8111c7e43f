"""Value validation for individual settings.

Example:
    >>> from settera.values import validate_setting_value
    >>> validate_setting_value({"type": "number", "validation": {"min": 2, "step": 3}}, 6)
    'Must be a multiple of 3'
"""

from .lib import (
    REQUIRED,
    STEP_TOLERANCE,
    AsyncValidator,
    format_number,
    parse_iso_date,
    to_number,
    validate_confirm_text,
    validate_setting_value,
    validate_setting_value_async,
)

__all__ = [
    "REQUIRED",
    "STEP_TOLERANCE",
    "AsyncValidator",
    "format_number",
    "to_number",
    "parse_iso_date",
    "validate_setting_value",
    "validate_setting_value_async",
    "validate_confirm_text",
]
