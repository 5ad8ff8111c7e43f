"""Centralized environment configuration management for settera.

Provides a unified interface for all environment variables with:
- Single `get_environment()` function for all configuration
- Type-safe enum with metadata (default, type, description)
- Consistent resolution: override > environment > default

Example:
    >>> from settera.config import EnvVar, get_environment
    >>>
    >>> strict = get_environment(EnvVar.SETTERA_STRICT_SCHEMA)  # Returns bool
    >>> strict = get_environment(EnvVar.SETTERA_STRICT_SCHEMA, override=True)
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from enum import Enum
from typing import Any, overload

from settera.core.log import resolve_level

# =============================================================================
# Environment Variable Configuration
# =============================================================================


@dataclass(frozen=True)
class EnvConfig:
    """Metadata for an environment variable.

    Attributes:
        name: Environment variable name (e.g., "SETTERA_LOG_LEVEL").
        default: Default value if not set in environment.
        var_type: Python type for value conversion (str, int, bool).
        description: Human-readable description.
        category: Grouping category for documentation.
    """

    name: str
    default: Any
    var_type: type
    description: str = ""
    category: str = "general"


class EnvVar(Enum):
    """All environment variables used by settera.

    Each member contains an EnvConfig with name, default, type, and description.
    Use with `get_environment()` for type-safe access.

    Categories:
        - logging: Log output configuration
        - schema: Schema loading and diagnostics behavior
    """

    # -------------------------------------------------------------------------
    # Logging
    # -------------------------------------------------------------------------
    SETTERA_LOG_LEVEL = EnvConfig(
        name="SETTERA_LOG_LEVEL",
        default="WARNING",
        var_type=str,
        description="Log level name used by setup_logging (DEBUG, INFO, ...)",
        category="logging",
    )

    # -------------------------------------------------------------------------
    # Schema loading
    # -------------------------------------------------------------------------
    SETTERA_SCHEMA_DIAGNOSTICS = EnvConfig(
        name="SETTERA_SCHEMA_DIAGNOSTICS",
        default=True,
        var_type=bool,
        description="Run structural schema validation when loading a schema",
        category="schema",
    )
    SETTERA_STRICT_SCHEMA = EnvConfig(
        name="SETTERA_STRICT_SCHEMA",
        default=False,
        var_type=bool,
        description="Raise SchemaLoadError instead of logging schema diagnostics",
        category="schema",
    )


# =============================================================================
# Type Conversion Helpers
# =============================================================================


def _parse_bool(value: str) -> bool | None:
    """Parse string to boolean.

    Recognizes: true/false, 1/0, yes/no, on/off (case-insensitive).
    Returns None for unrecognized values.
    """
    normalized = value.lower().strip()
    if normalized in ("true", "1", "yes", "on"):
        return True
    if normalized in ("false", "0", "no", "off"):
        return False
    return None


def _convert_value(value: str | None, var_type: type, default: Any) -> Any:
    """Convert string value to target type.

    Args:
        value: Raw string value from environment (or None).
        var_type: Target Python type.
        default: Default value if conversion fails or value is None.

    Returns:
        Converted value or default.
    """
    if value is None:
        return default

    if var_type is str:
        return value

    if var_type is int:
        try:
            return int(value)
        except ValueError:
            return default

    if var_type is bool:
        result = _parse_bool(value)
        return result if result is not None else default

    # Unknown type, return as-is
    return value


# =============================================================================
# Main Interface
# =============================================================================


@overload
def get_environment(env_var: EnvVar, override: int) -> int: ...
@overload
def get_environment(env_var: EnvVar, override: str) -> str: ...
@overload
def get_environment(env_var: EnvVar, override: bool) -> bool: ...
@overload
def get_environment(env_var: EnvVar, override: None = None) -> Any: ...


def get_environment(env_var: EnvVar, override: Any = None) -> Any:
    """Get environment variable value with type conversion.

    Resolution priority:
        1. Explicit override parameter (highest)
        2. Environment variable value
        3. Default from EnvConfig (lowest)

    Args:
        env_var: Environment variable enum member.
        override: Optional override value (bypasses env lookup).

    Returns:
        Value converted to the appropriate type (str, int or bool).

    Example:
        >>> get_environment(EnvVar.SETTERA_STRICT_SCHEMA)
        False
        >>> get_environment(EnvVar.SETTERA_STRICT_SCHEMA, override=True)
        True
    """
    config: EnvConfig = env_var.value

    if override is not None:
        return override

    raw_value = os.environ.get(config.name)

    return _convert_value(raw_value, config.var_type, config.default)


def get_environment_info(env_var: EnvVar) -> EnvConfig:
    """Get metadata for an environment variable.

    Args:
        env_var: Environment variable enum member.

    Returns:
        EnvConfig with name, default, type, and description.
    """
    return env_var.value


# =============================================================================
# Convenience Functions
# =============================================================================


def get_log_level(override: int | str | None = None) -> int:
    """Get the configured log level as a logging constant.

    Resolution: override > SETTERA_LOG_LEVEL > WARNING
    """
    if override is not None:
        return resolve_level(override)
    return resolve_level(get_environment(EnvVar.SETTERA_LOG_LEVEL) or logging.WARNING)


def diagnostics_enabled(override: bool | None = None) -> bool:
    """Whether load_schema should run structural validation."""
    return bool(get_environment(EnvVar.SETTERA_SCHEMA_DIAGNOSTICS, override=override))


def strict_schema(override: bool | None = None) -> bool:
    """Whether load_schema should raise on schema diagnostics."""
    return bool(get_environment(EnvVar.SETTERA_STRICT_SCHEMA, override=override))


def list_environment_variables(category: str | None = None) -> list[EnvVar]:
    """List all environment variables, optionally filtered by category.

    Args:
        category: Filter by category (logging, schema).
                 None returns all variables.

    Returns:
        List of EnvVar enum members.
    """
    if category is None:
        return list(EnvVar)

    return [var for var in EnvVar if var.value.category == category]


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
