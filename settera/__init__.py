"""settera: settings schema engine.

Loads declarative settings schemas (pages, sections, typed settings) and
provides structural validation, traversal and indexing, conditional
visibility, per-type value validation and search.
"""

from settera.model import (
    SCHEMA_VERSION,
    FlattenedSetting,
    Page,
    PageGroup,
    Schema,
    SchemaErrorCode,
    SchemaValidationError,
    Section,
    SettingDefinition,
    Subsection,
)
from settera.search import SearchResult, search_schema
from settera.traversal import (
    SchemaVisitor,
    WalkContext,
    flatten_settings,
    get_page_by_key,
    get_schema_index,
    get_setting_by_key,
    resolve_dependencies,
    resolve_page_key,
    walk_schema,
)
from settera.validation import (
    SchemaLoadError,
    SetteraError,
    is_valid_schema,
    load_schema,
    validate_schema,
)
from settera.values import (
    validate_confirm_text,
    validate_setting_value,
    validate_setting_value_async,
)
from settera.visibility import evaluate_visibility, is_setting_visible

__version__ = "0.1.0"

__all__ = [
    "SCHEMA_VERSION",
    # Model
    "Schema",
    "Page",
    "PageGroup",
    "Section",
    "Subsection",
    "SettingDefinition",
    "FlattenedSetting",
    "SchemaErrorCode",
    "SchemaValidationError",
    # Validation
    "SetteraError",
    "SchemaLoadError",
    "load_schema",
    "validate_schema",
    "is_valid_schema",
    # Traversal
    "WalkContext",
    "SchemaVisitor",
    "walk_schema",
    "flatten_settings",
    "get_setting_by_key",
    "get_page_by_key",
    "resolve_page_key",
    "resolve_dependencies",
    "get_schema_index",
    # Visibility
    "evaluate_visibility",
    "is_setting_visible",
    # Values
    "validate_setting_value",
    "validate_setting_value_async",
    "validate_confirm_text",
    # Search
    "SearchResult",
    "search_schema",
]
