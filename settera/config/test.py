"""Tests for configuration management."""

import logging

import pytest

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

# =============================================================================
# Tests for get_environment (main interface)
# =============================================================================


class TestGetEnvironment:
    """Tests for the unified get_environment interface."""

    @pytest.mark.unit
    def test_returns_default_when_not_set(self, monkeypatch):
        """Returns default value when env var is not set."""
        monkeypatch.delenv("SETTERA_LOG_LEVEL", raising=False)
        assert get_environment(EnvVar.SETTERA_LOG_LEVEL) == "WARNING"

    @pytest.mark.unit
    def test_override_takes_priority(self, monkeypatch):
        """Override parameter takes highest priority."""
        monkeypatch.setenv("SETTERA_STRICT_SCHEMA", "false")
        assert get_environment(EnvVar.SETTERA_STRICT_SCHEMA, override=True) is True

    @pytest.mark.unit
    def test_env_var_overrides_default(self, monkeypatch):
        """Environment variable overrides default value."""
        monkeypatch.setenv("SETTERA_LOG_LEVEL", "DEBUG")
        assert get_environment(EnvVar.SETTERA_LOG_LEVEL) == "DEBUG"

    @pytest.mark.unit
    def test_bool_type_conversion_true(self, monkeypatch):
        """Boolean type conversion for true values."""
        for value in ("true", "1", "yes", "TRUE", "On"):
            monkeypatch.setenv("SETTERA_STRICT_SCHEMA", value)
            assert get_environment(EnvVar.SETTERA_STRICT_SCHEMA) is True

    @pytest.mark.unit
    def test_bool_type_conversion_false(self, monkeypatch):
        """Boolean type conversion for false values."""
        for value in ("false", "0", "no", "FALSE", "off"):
            monkeypatch.setenv("SETTERA_SCHEMA_DIAGNOSTICS", value)
            assert get_environment(EnvVar.SETTERA_SCHEMA_DIAGNOSTICS) is False

    @pytest.mark.unit
    def test_invalid_bool_returns_default(self, monkeypatch):
        """Unrecognized boolean value returns default."""
        monkeypatch.setenv("SETTERA_SCHEMA_DIAGNOSTICS", "maybe")
        assert get_environment(EnvVar.SETTERA_SCHEMA_DIAGNOSTICS) is True


class TestGetEnvironmentInfo:
    """Tests for environment variable metadata."""

    @pytest.mark.unit
    def test_returns_env_config(self):
        """Returns EnvConfig dataclass."""
        info = get_environment_info(EnvVar.SETTERA_STRICT_SCHEMA)
        assert isinstance(info, EnvConfig)
        assert info.name == "SETTERA_STRICT_SCHEMA"
        assert info.default is False
        assert info.var_type is bool
        assert info.category == "schema"

    @pytest.mark.unit
    def test_names_match_members(self):
        """Every member's EnvConfig name matches the member name."""
        for var in EnvVar:
            assert var.value.name == var.name


class TestListEnvironmentVariables:
    """Tests for listing environment variables."""

    @pytest.mark.unit
    def test_list_all(self):
        """No category returns every variable."""
        assert set(list_environment_variables()) == set(EnvVar)

    @pytest.mark.unit
    def test_filter_by_category(self):
        """Category filter returns only matching variables."""
        schema_vars = list_environment_variables("schema")
        assert EnvVar.SETTERA_STRICT_SCHEMA in schema_vars
        assert EnvVar.SETTERA_LOG_LEVEL not in schema_vars

    @pytest.mark.unit
    def test_unknown_category_is_empty(self):
        """Unknown category returns an empty list."""
        assert list_environment_variables("nope") == []


class TestConvenienceFunctions:
    """Tests for typed convenience accessors."""

    @pytest.mark.unit
    def test_log_level_from_env(self, monkeypatch):
        """Log level name from env resolves to a logging constant."""
        monkeypatch.setenv("SETTERA_LOG_LEVEL", "info")
        assert get_log_level() == logging.INFO

    @pytest.mark.unit
    def test_log_level_override(self, monkeypatch):
        """Override wins over the environment."""
        monkeypatch.setenv("SETTERA_LOG_LEVEL", "info")
        assert get_log_level("ERROR") == logging.ERROR

    @pytest.mark.unit
    def test_diagnostics_default_on(self, monkeypatch):
        """Diagnostics are enabled unless switched off."""
        monkeypatch.delenv("SETTERA_SCHEMA_DIAGNOSTICS", raising=False)
        assert diagnostics_enabled() is True
        assert diagnostics_enabled(False) is False

    @pytest.mark.unit
    def test_strict_default_off(self, monkeypatch):
        """Strict mode is off by default."""
        monkeypatch.delenv("SETTERA_STRICT_SCHEMA", raising=False)
        assert strict_schema() is False
        monkeypatch.setenv("SETTERA_STRICT_SCHEMA", "1")
        assert strict_schema() is True
