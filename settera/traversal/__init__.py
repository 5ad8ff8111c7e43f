"""Traversal, flattening and indexing utilities for settings schemas.

Example:
    >>> from settera.traversal import flatten_settings, get_schema_index
    >>> keys = [flat.key for flat in flatten_settings(schema)]
    >>> index = get_schema_index(schema)  # built once per schema instance
    >>> index.settings_by_key["general.autoSave"]
"""

from .lib import (
    MAX_FLATTEN_DEPTH,
    SchemaIndex,
    SchemaVisitor,
    WalkContext,
    build_parent_map,
    build_section_index,
    build_setting_index,
    flatten_page_items,
    flatten_settings,
    get_flattened_setting,
    get_page_by_key,
    get_schema_index,
    get_section,
    get_setting_by_key,
    is_flattened_page,
    is_page_group,
    iter_conditions,
    resolve_dependencies,
    resolve_page_key,
    walk_schema,
)

__all__ = [
    "MAX_FLATTEN_DEPTH",
    # Walker
    "WalkContext",
    "SchemaVisitor",
    "walk_schema",
    # Flattening and lookups
    "flatten_settings",
    "get_setting_by_key",
    "get_page_by_key",
    # Page resolution
    "is_page_group",
    "flatten_page_items",
    "is_flattened_page",
    "resolve_page_key",
    # Indices
    "build_setting_index",
    "build_section_index",
    "build_parent_map",
    "iter_conditions",
    "resolve_dependencies",
    "SchemaIndex",
    "get_schema_index",
    "get_flattened_setting",
    "get_section",
]
