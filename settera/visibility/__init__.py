"""Visibility evaluator for visible_when rules.

Example:
    >>> from settera.visibility import evaluate_visibility
    >>> evaluate_visibility({"setting": "sso", "equals": True}, {"sso": True})
    True
"""

from .lib import (
    MISSING,
    evaluate_visibility,
    is_empty_value,
    is_setting_visible,
    is_truthy,
    strict_equals,
)

__all__ = [
    "MISSING",
    "evaluate_visibility",
    "is_setting_visible",
    "is_empty_value",
    "is_truthy",
    "strict_equals",
]
