"""Centralized configuration management for settera.

Provides unified access to all configuration via the `get_environment()` function.

Example:
    >>> from settera.config import EnvVar, get_environment
    >>>
    >>> level = get_environment(EnvVar.SETTERA_LOG_LEVEL)  # Returns str: "WARNING"
    >>> strict = get_environment(EnvVar.SETTERA_STRICT_SCHEMA, override=True)
    >>>
    >>> for var in list_environment_variables("schema"):
    ...     info = get_environment_info(var)
    ...     print(f"{info.name}: {info.description}")

Environment Variable Categories:
    logging: Log output configuration
    schema: Schema loading and diagnostics behavior
"""

from .lib import (
    EnvConfig,
    EnvVar,
    diagnostics_enabled,
    get_environment,
    get_environment_info,
    get_log_level,
    list_environment_variables,
    strict_schema,
)

__all__ = [
    # Core types
    "EnvConfig",
    "EnvVar",
    # Main interface
    "get_environment",
    "get_environment_info",
    # Convenience functions
    "get_log_level",
    "diagnostics_enabled",
    "strict_schema",
    # Introspection
    "list_environment_variables",
]
