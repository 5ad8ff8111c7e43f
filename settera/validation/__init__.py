"""Structural schema validation.

Example:
    >>> from settera.validation import load_schema, validate_schema
    >>> for error in validate_schema(data):
    ...     print(error.path, error.code.value, error.message)
    >>> schema = load_schema(data, strict=True)  # raises SchemaLoadError
"""

from .lib import (
    FIELD_TYPES,
    ITEM_FIELD_TYPES,
    SchemaLoadError,
    SetteraError,
    is_valid_schema,
    load_schema,
    validate_schema,
)

__all__ = [
    "FIELD_TYPES",
    "ITEM_FIELD_TYPES",
    # Errors
    "SetteraError",
    "SchemaLoadError",
    # Validation
    "validate_schema",
    "is_valid_schema",
    "load_schema",
]
