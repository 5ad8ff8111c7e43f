"""Unit tests for value validation."""

import logging
import math

import pytest

from settera.model import BooleanSetting, NumberSetting, NumberValidation

from .lib import (
    format_number,
    parse_iso_date,
    to_number,
    validate_confirm_text,
    validate_setting_value,
    validate_setting_value_async,
)


def _text(**validation):
    return {"key": "t", "title": "T", "type": "text", "validation": validation}


def _number(**validation):
    return {"key": "n", "title": "N", "type": "number", "validation": validation}


def _select(validation=None):
    definition = {
        "key": "s",
        "title": "S",
        "type": "select",
        "options": [{"value": "a", "label": "A"}, {"value": "b", "label": "B"}],
    }
    if validation is not None:
        definition["validation"] = validation
    return definition


def _multiselect(validation=None):
    definition = _select(validation)
    definition["type"] = "multiselect"
    definition["options"].append({"value": "c", "label": "C"})
    return definition


def _date(**validation):
    definition = {"key": "d", "title": "D", "type": "date"}
    if validation:
        definition["validation"] = validation
    return definition


class TestText:
    """Tests for the text pipeline."""

    @pytest.mark.unit
    def test_no_validation_passes(self):
        """Without rules any value passes."""
        assert validate_setting_value({"type": "text"}, "") is None

    @pytest.mark.unit
    def test_required(self):
        """Empty and non-string values fail required."""
        definition = _text(required=True)
        assert validate_setting_value(definition, "") == "This field is required"
        assert validate_setting_value(definition, None) == "This field is required"
        assert validate_setting_value(definition, "x") is None

    @pytest.mark.unit
    def test_empty_optional_skips_rules(self):
        """Optional empty values skip length and pattern checks."""
        assert validate_setting_value(_text(minLength=3, pattern="^x"), "") is None

    @pytest.mark.unit
    def test_lengths(self):
        """Length bounds use the default messages."""
        definition = _text(minLength=2, maxLength=4)
        assert validate_setting_value(definition, "a") == "Must be at least 2 characters"
        assert validate_setting_value(definition, "abcde") == "Must be at most 4 characters"
        assert validate_setting_value(definition, "abc") is None

    @pytest.mark.unit
    def test_pattern(self):
        """Patterns are searched, not fully matched."""
        definition = _text(pattern="^https?://")
        assert validate_setting_value(definition, "ftp://x") == "Invalid format"
        assert validate_setting_value(definition, "https://x") is None

    @pytest.mark.unit
    def test_malformed_pattern(self):
        """Broken patterns are reported, not raised."""
        assert validate_setting_value(_text(pattern="(unclosed"), "x") == "Invalid validation pattern"

    @pytest.mark.unit
    def test_custom_message_overrides(self):
        """validation.message replaces every default message."""
        definition = _text(required=True, minLength=5, message="Nope")
        assert validate_setting_value(definition, "") == "Nope"
        assert validate_setting_value(definition, "ab") == "Nope"

    @pytest.mark.unit
    def test_rule_priority(self):
        """The first violated rule wins."""
        definition = _text(minLength=5, pattern="^z")
        assert validate_setting_value(definition, "abc") == "Must be at least 5 characters"


class TestNumber:
    """Tests for the number pipeline."""

    @pytest.mark.unit
    def test_step_from_min(self):
        """Steps are counted from min."""
        definition = {"type": "number", "validation": {"min": 2, "step": 3}}
        assert validate_setting_value(definition, 5) is None
        assert validate_setting_value(definition, 6) == "Must be a multiple of 3"

    @pytest.mark.unit
    def test_step_one_is_whole_number(self):
        """Step 1 reports a whole-number message."""
        assert validate_setting_value(_number(step=1), 2.5) == "Must be a whole number"
        assert validate_setting_value(_number(step=1), 3) is None

    @pytest.mark.unit
    def test_step_tolerates_float_error(self):
        """Floating-point error does not trip the step check."""
        assert validate_setting_value(_number(step=0.1), 0.3) is None
        assert validate_setting_value(_number(step=0.1), 0.7) is None

    @pytest.mark.unit
    def test_fractional_step_message(self):
        """Fractional steps are rendered as-is."""
        assert validate_setting_value(_number(step=0.5), 0.3) == "Must be a multiple of 0.5"

    @pytest.mark.unit
    def test_required_and_empty(self):
        """None and "" are empty; 0 is not."""
        definition = _number(required=True)
        assert validate_setting_value(definition, None) == "This field is required"
        assert validate_setting_value(definition, "") == "This field is required"
        assert validate_setting_value(definition, 0) is None
        assert validate_setting_value(_number(min=1), None) is None

    @pytest.mark.unit
    def test_not_a_number(self):
        """Non-numeric strings fail coercion."""
        assert validate_setting_value(_number(), "abc") == "Must be a number"
        assert validate_setting_value(_number(min=0), " 12 ") is None

    @pytest.mark.unit
    def test_bounds(self):
        """min and max are inclusive."""
        definition = _number(min=8, max=72)
        assert validate_setting_value(definition, 7) == "Must be at least 8"
        assert validate_setting_value(definition, 73) == "Must be at most 72"
        assert validate_setting_value(definition, 8) is None
        assert validate_setting_value(definition, 72) is None

    @pytest.mark.unit
    def test_no_validation(self):
        """Without rules any value passes."""
        assert validate_setting_value({"type": "number"}, "abc") is None

    @pytest.mark.unit
    def test_model_instance(self):
        """Model definitions work like mappings."""
        definition = NumberSetting(key="n", title="N", validation=NumberValidation(max=1.5))
        assert validate_setting_value(definition, 2) == "Must be at most 1.5"


class TestSelect:
    """Tests for select and multiselect pipelines."""

    @pytest.mark.unit
    def test_required(self):
        """Empty select values fail required."""
        assert validate_setting_value(_select({"required": True}), "") == "This field is required"
        assert validate_setting_value(_select(), "") is None

    @pytest.mark.unit
    def test_membership(self):
        """Values outside the options are rejected."""
        assert validate_setting_value(_select(), "z") == "Invalid selection"
        assert validate_setting_value(_select(), "a") is None

    @pytest.mark.unit
    def test_multiselect_required(self):
        """Empty or non-list multiselect values fail required."""
        definition = _multiselect({"required": True})
        assert validate_setting_value(definition, []) == "At least one selection is required"
        assert validate_setting_value(definition, "a") == "At least one selection is required"

    @pytest.mark.unit
    def test_multiselect_counts(self):
        """Selection counts are bounded."""
        definition = _multiselect({"minSelections": 2, "maxSelections": 2})
        assert validate_setting_value(definition, ["a"]) == "Select at least 2"
        assert validate_setting_value(definition, ["a", "b", "c"]) == "Select at most 2"
        assert validate_setting_value(definition, ["a", "b"]) is None

    @pytest.mark.unit
    def test_multiselect_membership(self):
        """Every element must be an option."""
        assert validate_setting_value(_multiselect(), ["a", "z"]) == "Contains invalid selection"


class TestDate:
    """Tests for the date pipeline."""

    @pytest.mark.unit
    def test_required(self):
        """Empty dates fail required."""
        assert validate_setting_value(_date(required=True), "") == "This field is required"
        assert validate_setting_value(_date(), "") is None

    @pytest.mark.unit
    def test_calendar_validity(self):
        """Impossible dates are rejected."""
        assert validate_setting_value(_date(), "2023-02-30") == "Invalid date"
        assert validate_setting_value(_date(), "yesterday") == "Invalid date"
        assert validate_setting_value(_date(), "2024-02-29") is None

    @pytest.mark.unit
    def test_bounds_inclusive(self):
        """Bounds compare by calendar date, inclusively."""
        definition = _date(minDate="2024-01-01", maxDate="2024-12-31")
        assert validate_setting_value(definition, "2023-12-31") == "Date must be on or after 2024-01-01"
        assert validate_setting_value(definition, "2025-01-01") == "Date must be on or before 2024-12-31"
        assert validate_setting_value(definition, "2024-01-01") is None
        assert validate_setting_value(definition, "2024-12-31T23:59:00Z") is None


class TestCompoundAndRepeatable:
    """Tests for compound rules and repeatable counts."""

    @pytest.fixture
    def compound(self):
        return {
            "key": "smtp",
            "title": "SMTP",
            "type": "compound",
            "fields": [
                {"key": "auth", "title": "Auth", "type": "boolean"},
                {"key": "user", "title": "User", "type": "text"},
                {"key": "tls", "title": "TLS", "type": "boolean"},
                {"key": "cert", "title": "Cert", "type": "text"},
            ],
            "validation": {
                "rules": [
                    {"when": "auth", "require": "user", "message": "User required"},
                    {"when": "tls", "require": "cert", "message": "Cert required"},
                ]
            },
        }

    @pytest.mark.unit
    def test_rule_fires(self, compound):
        """A truthy 'when' with an empty 'require' fails."""
        assert validate_setting_value(compound, {"auth": True, "user": ""}) == "User required"
        assert validate_setting_value(compound, {"auth": True, "user": "bob"}) is None
        assert validate_setting_value(compound, {"auth": False}) is None

    @pytest.mark.unit
    def test_first_rule_wins(self, compound):
        """Rules are checked in order."""
        value = {"auth": True, "tls": True}
        assert validate_setting_value(compound, value) == "User required"

    @pytest.mark.unit
    def test_non_mapping_value(self, compound):
        """Non-mapping values behave as an empty record."""
        assert validate_setting_value(compound, None) is None
        assert validate_setting_value(compound, ["auth"]) is None

    @pytest.mark.unit
    def test_repeatable_counts(self):
        """Item counts are bounded; non-lists count as empty."""
        definition = {
            "type": "repeatable",
            "validation": {"minItems": 1, "maxItems": 2},
        }
        assert validate_setting_value(definition, None) == "Add at least 1 items"
        assert validate_setting_value(definition, [1, 2, 3]) == "Add at most 2 items"
        assert validate_setting_value(definition, ["x"]) is None


class TestPassThroughTypes:
    """Tests for types without intrinsic rules."""

    @pytest.mark.unit
    def test_boolean_action_custom(self):
        """boolean, action and custom values always pass."""
        assert validate_setting_value(BooleanSetting(key="b", title="B"), "anything") is None
        assert validate_setting_value({"type": "action"}, None) is None
        assert validate_setting_value({"type": "custom", "renderer": "x"}, 42) is None

    @pytest.mark.unit
    def test_unsupported_type(self):
        """Unknown types pass."""
        assert validate_setting_value({"type": "color"}, "#fff") is None

    @pytest.mark.unit
    def test_malformed_definition(self, caplog):
        """Definitions that do not parse pass and log a warning."""
        definition = {
            "key": "n",
            "title": "N",
            "type": "number",
            "validation": {"min": "low"},
        }
        with caplog.at_level(logging.WARNING, logger="settera.values"):
            assert validate_setting_value(definition, 5) is None
        assert "malformed setting definition" in caplog.text


class TestConfirmText:
    """Tests for confirmation text matching."""

    @pytest.mark.unit
    def test_no_required_text(self):
        """Absent or empty required text always passes."""
        assert validate_confirm_text(None, "") is True
        assert validate_confirm_text("", "whatever") is True

    @pytest.mark.unit
    def test_exact_match(self):
        """Typed text must match exactly."""
        assert validate_confirm_text("DELETE", "DELETE") is True
        assert validate_confirm_text("DELETE", "delete") is False


class TestAsyncValidation:
    """Tests for the host-supplied async stage."""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_runs_after_sync_pass(self):
        """The host validator runs when the sync pipeline passes."""
        seen = []

        async def taken(value):
            seen.append(value)
            return "Name already taken"

        result = await validate_setting_value_async(_text(minLength=2), "bob", taken)
        assert result == "Name already taken"
        assert seen == ["bob"]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_skipped_after_sync_failure(self):
        """The host validator is not called when sync checks fail."""
        seen = []

        async def never(value):
            seen.append(value)
            return None

        result = await validate_setting_value_async(_text(minLength=5), "bob", never)
        assert result == "Must be at least 5 characters"
        assert seen == []

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_without_host_validator(self):
        """Without a host validator the sync result is returned."""
        assert await validate_setting_value_async(_text(), "x") is None


class TestHelpers:
    """Tests for coercion helpers."""

    @pytest.mark.unit
    def test_to_number(self):
        """Strings, booleans and numbers coerce numerically."""
        assert to_number(" 12 ") == 12
        assert to_number("1e3") == 1000
        assert to_number("   ") == 0
        assert to_number(True) == 1
        assert to_number("-Infinity") == -math.inf
        assert math.isnan(to_number("abc"))
        assert math.isnan(to_number([1]))

    @pytest.mark.unit
    def test_format_number(self):
        """Integral floats render without a decimal part."""
        assert format_number(3.0) == "3"
        assert format_number(0.5) == "0.5"
        assert format_number(10) == "10"

    @pytest.mark.unit
    def test_parse_iso_date(self):
        """Only real calendar dates parse."""
        assert parse_iso_date("2024-02-29").day == 29
        assert parse_iso_date("2023-13-01") is None
        assert parse_iso_date(20240101) is None
