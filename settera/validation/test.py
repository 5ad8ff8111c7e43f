"""Unit tests for structural schema validation."""

import logging
from typing import Any

import pytest

from settera.model import Schema, SchemaErrorCode

from .lib import SchemaLoadError, is_valid_schema, load_schema, validate_schema

Code = SchemaErrorCode


def _data(*settings: dict[str, Any]) -> dict[str, Any]:
    return {
        "version": "1.0",
        "pages": [
            {
                "key": "p",
                "title": "P",
                "sections": [{"key": "s", "title": "S", "settings": list(settings)}],
            }
        ],
    }


def _codes(data: dict[str, Any]) -> list[SchemaErrorCode]:
    return [error.code for error in validate_schema(data)]


SELECT = {
    "key": "color",
    "title": "Color",
    "type": "select",
    "options": [{"value": "red", "label": "Red"}, {"value": "blue", "label": "Blue"}],
}


class TestValidSchemas:
    """Tests for schemas without problems."""

    @pytest.mark.unit
    def test_reference_schema(self, reference_schema):
        """The reference schema validates cleanly."""
        assert validate_schema(reference_schema) == []
        assert is_valid_schema(reference_schema) is True

    @pytest.mark.unit
    def test_accepts_mapping(self, reference_schema_data):
        """Mappings are parsed before validation."""
        assert validate_schema(reference_schema_data) == []

    @pytest.mark.unit
    def test_forward_visibility_reference(self):
        """Rules may reference settings declared later."""
        data = _data(
            {"key": "a", "title": "A", "type": "text", "visibleWhen": {"setting": "b"}},
            {"key": "b", "title": "B", "type": "boolean"},
        )
        assert validate_schema(data) == []


class TestTopLevel:
    """Tests for version and pages checks."""

    @pytest.mark.unit
    def test_invalid_version(self):
        """Only version "1.0" is accepted."""
        data = _data()
        data["version"] = "2.0"
        errors = validate_schema(data)
        assert [e.code for e in errors] == [Code.INVALID_VERSION]
        assert errors[0].path == "version"
        assert errors[0].message == 'Expected version "1.0", got "2.0".'

    @pytest.mark.unit
    def test_missing_pages_stops_validation(self):
        """An empty page list is reported and nothing else is checked."""
        assert _codes({"version": "1.0", "pages": []}) == [Code.MISSING_PAGES]
        assert _codes({"version": "0", "pages": []}) == [
            Code.INVALID_VERSION,
            Code.MISSING_PAGES,
        ]

    @pytest.mark.unit
    def test_unparsable_mapping(self):
        """Shape errors are reported as INVALID_STRUCTURE and checking goes on."""
        errors = validate_schema({"version": "1.0", "pages": "nope"})
        assert [(e.code, e.path) for e in errors] == [
            (Code.INVALID_STRUCTURE, "pages"),
            (Code.MISSING_PAGES, "pages"),
        ]

    @pytest.mark.unit
    def test_null_pages(self):
        """A null page list counts as missing pages."""
        assert _codes({"version": "1.0", "pages": None}) == [Code.MISSING_PAGES]
        assert _codes({"version": "1.0"}) == [Code.MISSING_PAGES]

    @pytest.mark.unit
    def test_wrongly_typed_default(self):
        """Structure errors carry a camelCase path to the bad value."""
        errors = validate_schema(
            _data({"key": "n", "title": "N", "type": "number", "default": "abc"})
        )
        assert [(e.code, e.path) for e in errors] == [
            (Code.INVALID_STRUCTURE, "pages[0].sections[0].settings[0].default")
        ]

    @pytest.mark.unit
    def test_structure_errors_accumulate_with_other_checks(self):
        """A mistyped value does not hide version or key problems."""
        data = _data(
            {"key": "a", "title": "A", "type": "boolean"},
            {"key": "a", "title": "Again", "type": "number", "default": "abc"},
        )
        data["version"] = "2.0"
        errors = validate_schema(data)
        assert [e.code for e in errors] == [
            Code.INVALID_STRUCTURE,
            Code.INVALID_VERSION,
            Code.DUPLICATE_KEY,
        ]
        assert errors[2].path == "pages[0].sections[0].settings[1].key"

    @pytest.mark.unit
    def test_malformed_list_element(self):
        """A non-object setting is reported and checked as an empty one."""
        data = _data({"key": "a", "title": "A", "type": "boolean"}, 5)
        errors = validate_schema(data)
        assert errors[0].code == Code.INVALID_STRUCTURE
        assert errors[0].path == "pages[0].sections[0].settings[1]"
        assert [e.path for e in errors[1:]] == [
            "pages[0].sections[0].settings[1].key",
            "pages[0].sections[0].settings[1].title",
            "pages[0].sections[0].settings[1].type",
        ]

    @pytest.mark.unit
    def test_invalid_validation_bound(self):
        """Mistyped validation bounds are dropped; the setting is still checked."""
        setting = {
            "key": "n",
            "title": "",
            "type": "number",
            "validation": {"min": "low", "max": 10},
            "default": 11,
        }
        errors = validate_schema(_data(setting))
        assert [(e.code, e.path.rsplit(".", 1)[-1]) for e in errors] == [
            (Code.INVALID_STRUCTURE, "min"),
            (Code.MISSING_REQUIRED_FIELD, "title"),
            (Code.INVALID_DEFAULT, "default"),
        ]


class TestRequiredFieldsAndKeys:
    """Tests for missing fields and key uniqueness."""

    @pytest.mark.unit
    def test_missing_setting_fields(self):
        """Settings need a key, a title and a type."""
        errors = validate_schema(_data({"description": "no key"}))
        assert [e.path for e in errors] == [
            "pages[0].sections[0].settings[0].key",
            "pages[0].sections[0].settings[0].title",
            "pages[0].sections[0].settings[0].type",
        ]
        assert all(e.code == Code.MISSING_REQUIRED_FIELD for e in errors)

    @pytest.mark.unit
    def test_missing_page_and_section_fields(self):
        """Pages and sections need a key and a title."""
        data = {"version": "1.0", "pages": [{"key": "p", "sections": [{"title": "S"}]}]}
        errors = validate_schema(data)
        assert [(e.path, e.message) for e in errors] == [
            ("pages[0].title", "Page must have a title."),
            ("pages[0].sections[0].key", "Section must have a key."),
        ]

    @pytest.mark.unit
    def test_unknown_type(self):
        """Unknown setting types are reported."""
        errors = validate_schema(_data({"key": "a", "title": "A", "type": "slider"}))
        assert [e.code for e in errors] == [Code.INVALID_TYPE]
        assert errors[0].message == 'Invalid setting type "slider".'

    @pytest.mark.unit
    def test_duplicate_setting_key_across_pages(self):
        """Setting keys are unique across the whole schema."""
        data = {
            "version": "1.0",
            "pages": [
                {
                    "key": f"p{i}",
                    "title": f"P{i}",
                    "sections": [
                        {
                            "key": "s",
                            "title": "S",
                            "settings": [{"key": "a", "title": "A", "type": "boolean"}],
                        }
                    ],
                }
                for i in range(2)
            ],
        }
        errors = validate_schema(data)
        assert len(errors) == 1
        assert errors[0].code == Code.DUPLICATE_KEY
        assert errors[0].path == "pages[1].sections[0].settings[0].key"
        assert errors[0].message == 'Duplicate setting key "a".'

    @pytest.mark.unit
    def test_duplicate_page_key_in_nested_page(self):
        """Page keys are unique across nesting levels."""
        data = {
            "version": "1.0",
            "pages": [{"key": "p", "title": "P", "pages": [{"key": "p", "title": "Q"}]}],
        }
        errors = validate_schema(data)
        assert [(e.path, e.code) for e in errors] == [("pages[0].pages[0].key", Code.DUPLICATE_KEY)]

    @pytest.mark.unit
    def test_section_keys_are_scoped_per_page(self):
        """The same section key may appear on different pages but not twice on one."""
        section = {"key": "s", "title": "S"}
        data = {
            "version": "1.0",
            "pages": [
                {"key": "a", "title": "A", "sections": [section]},
                {"key": "b", "title": "B", "sections": [section, section]},
            ],
        }
        errors = validate_schema(data)
        assert [e.path for e in errors] == ["pages[1].sections[1].key"]

    @pytest.mark.unit
    def test_page_group_needs_label(self):
        """Groups without a label are reported and their pages still checked."""
        data = {
            "version": "1.0",
            "pages": [{"label": "", "pages": [{"key": "p"}]}],
        }
        errors = validate_schema(data)
        assert [e.path for e in errors] == ["pages[0].label", "pages[0].pages[0].title"]

    @pytest.mark.unit
    def test_custom_page_needs_renderer(self):
        """Custom-mode pages must name a renderer."""
        data = {"version": "1.0", "pages": [{"key": "p", "title": "P", "mode": "custom"}]}
        assert _codes(data) == [Code.MISSING_REQUIRED_FIELD]


class TestVisibilityChecks:
    """Tests for visibleWhen references and operators."""

    @pytest.mark.unit
    def test_unknown_reference(self):
        """References must resolve to a declared setting."""
        errors = validate_schema(
            _data({"key": "a", "title": "A", "type": "text", "visibleWhen": {"setting": "ghost"}})
        )
        assert [e.code for e in errors] == [Code.INVALID_VISIBILITY_REF]
        assert errors[0].path == "pages[0].sections[0].settings[0].visibleWhen"
        assert errors[0].message == 'visibleWhen references unknown setting "ghost".'

    @pytest.mark.unit
    def test_or_group_reference(self):
        """References inside OR groups are checked too."""
        data = _data(
            {
                "key": "a",
                "title": "A",
                "type": "text",
                "visibleWhen": {"or": [{"setting": "a"}, {"setting": "ghost"}]},
            }
        )
        assert _codes(data) == [Code.INVALID_VISIBILITY_REF]

    @pytest.mark.unit
    def test_section_reference(self):
        """Section rules are checked against setting keys."""
        data = _data({"key": "a", "title": "A", "type": "boolean"})
        data["pages"][0]["sections"][0]["visibleWhen"] = {"setting": "ghost"}
        errors = validate_schema(data)
        assert [e.path for e in errors] == ["pages[0].sections[0].visibleWhen"]

    @pytest.mark.unit
    def test_multiple_operators(self):
        """A condition may define one operator at most."""
        data = _data(
            {"key": "b", "title": "B", "type": "boolean"},
            {
                "key": "a",
                "title": "A",
                "type": "text",
                "visibleWhen": {"setting": "b", "equals": None, "isEmpty": True},
            },
        )
        assert _codes(data) == [Code.MULTIPLE_VISIBILITY_OPERATORS]


class TestOptionsAndDefaults:
    """Tests for option lists and default values."""

    @pytest.mark.unit
    def test_empty_options(self):
        """Select settings need options."""
        setting = dict(SELECT, options=[])
        errors = validate_schema(_data(setting))
        assert [e.code for e in errors] == [Code.EMPTY_OPTIONS]
        assert errors[0].message == 'select setting "color" must have at least one option.'

    @pytest.mark.unit
    def test_duplicate_option(self):
        """Option values are unique."""
        setting = dict(SELECT, type="multiselect")
        setting["options"] = SELECT["options"] + [{"value": "red", "label": "Again"}]
        errors = validate_schema(_data(setting))
        assert [(e.code, e.path) for e in errors] == [
            (Code.DUPLICATE_OPTION_VALUE, "pages[0].sections[0].settings[0].options[2].value")
        ]

    @pytest.mark.unit
    def test_select_default(self):
        """Select defaults must be one of the options."""
        assert _codes(_data(dict(SELECT, default="blue"))) == []
        assert _codes(_data(dict(SELECT, default="green"))) == [Code.INVALID_DEFAULT]

    @pytest.mark.unit
    def test_multiselect_default_reports_once(self):
        """Only the first invalid multiselect default is reported."""
        setting = dict(SELECT, type="multiselect", default=["x", "y"])
        errors = validate_schema(_data(setting))
        assert [e.code for e in errors] == [Code.INVALID_DEFAULT]
        assert '"x"' in errors[0].message

    @pytest.mark.unit
    def test_number_default_bounds(self):
        """Number defaults must lie within min and max."""
        setting = {
            "key": "n",
            "title": "N",
            "type": "number",
            "default": 0,
            "validation": {"min": 1, "max": 10},
        }
        errors = validate_schema(_data(setting))
        assert [e.message for e in errors] == ['Default 0 is below min 1 for number setting "n".']
        setting["default"] = 11
        assert _codes(_data(setting)) == [Code.INVALID_DEFAULT]

    @pytest.mark.unit
    def test_date_default(self):
        """Date defaults must be real dates inside the range."""
        setting = {
            "key": "d",
            "title": "D",
            "type": "date",
            "default": "2024-06-01",
            "validation": {"maxDate": "2024-01-01"},
        }
        assert _codes(_data(setting)) == [Code.INVALID_DEFAULT]
        setting["default"] = "2023-02-30"
        assert _codes(_data(setting)) == [Code.INVALID_DEFAULT]
        setting["default"] = "2023-12-31"
        assert _codes(_data(setting)) == []

    @pytest.mark.unit
    def test_invalid_pattern(self):
        """Text patterns must compile."""
        setting = {"key": "t", "title": "T", "type": "text", "validation": {"pattern": "[a-"}}
        errors = validate_schema(_data(setting))
        assert [(e.code, e.path) for e in errors] == [
            (Code.INVALID_PATTERN, "pages[0].sections[0].settings[0].validation.pattern")
        ]


class TestCompositeSettings:
    """Tests for compound, repeatable and custom settings."""

    @pytest.mark.unit
    def test_compound_needs_fields_and_display_style(self):
        """Compound settings need at least one field and a displayStyle."""
        errors = validate_schema(_data({"key": "c", "title": "C", "type": "compound"}))
        assert [(e.code, e.path) for e in errors] == [
            (Code.MISSING_REQUIRED_FIELD, "pages[0].sections[0].settings[0].fields"),
            (Code.MISSING_REQUIRED_FIELD, "pages[0].sections[0].settings[0].displayStyle"),
        ]
        assert errors[1].message == 'Compound setting "c" must have a displayStyle.'

    @pytest.mark.unit
    def test_compound_field_checks(self):
        """Field keys are local, dot-free and of an allowed type."""
        setting = {
            "key": "c",
            "title": "C",
            "type": "compound",
            "displayStyle": "inline",
            "fields": [
                {"key": "c", "title": "Same as parent", "type": "text"},
                {"key": "a.b", "title": "Dotted", "type": "text"},
                {"key": "list", "title": "Nested list", "type": "repeatable"},
                {"key": "list", "title": "Again", "type": "boolean"},
            ],
        }
        errors = validate_schema(_data(setting))
        assert [e.code for e in errors] == [
            Code.COMPOUND_FIELD_DOT_KEY,
            Code.INVALID_TYPE,
            Code.DUPLICATE_KEY,
        ]
        assert errors[2].message == 'Duplicate field key "list".'

    @pytest.mark.unit
    def test_compound_rules(self):
        """Rules reference existing fields."""
        setting = {
            "key": "c",
            "title": "C",
            "type": "compound",
            "displayStyle": "modal",
            "fields": [{"key": "a", "title": "A", "type": "boolean"}],
            "validation": {"rules": [{"when": "a", "require": "b", "message": "Need b"}]},
        }
        errors = validate_schema(_data(setting))
        assert [(e.code, e.path) for e in errors] == [
            (Code.INVALID_COMPOUND_RULE, "pages[0].sections[0].settings[0].validation.rules[0].require")
        ]

    @pytest.mark.unit
    def test_repeatable_config(self):
        """itemFields go with compound items only."""
        base = {"key": "r", "title": "R", "type": "repeatable"}
        assert _codes(_data(dict(base, itemType="compound"))) == [Code.INVALID_REPEATABLE_CONFIG]
        fields = [{"key": "x", "title": "X", "type": "text"}]
        assert _codes(_data(dict(base, itemFields=fields))) == [Code.INVALID_REPEATABLE_CONFIG]
        assert _codes(_data(dict(base, itemType="grid"))) == [Code.INVALID_REPEATABLE_CONFIG]
        assert _codes(_data(dict(base, itemType="compound", itemFields=fields))) == []

    @pytest.mark.unit
    def test_repeatable_item_field_types(self):
        """Repeatable items allow a narrower set of field types."""
        setting = {
            "key": "r",
            "title": "R",
            "type": "repeatable",
            "itemType": "compound",
            "itemFields": [{"key": "d", "title": "D", "type": "date"}],
        }
        assert _codes(_data(setting)) == [Code.INVALID_TYPE]

    @pytest.mark.unit
    def test_custom_needs_renderer(self):
        """Custom settings must name a renderer."""
        errors = validate_schema(_data({"key": "x", "title": "X", "type": "custom"}))
        assert [e.message for e in errors] == ['Custom setting "x" must have a renderer.']


class TestActionSettings:
    """Tests for action setting configuration."""

    @pytest.mark.unit
    def test_single_action(self, reference_schema_data):
        """buttonLabel/actionType actions are accepted."""
        assert validate_schema(reference_schema_data) == []

    @pytest.mark.unit
    def test_neither_form(self):
        """An action without either form misses both single-form fields."""
        errors = validate_schema(_data({"key": "a", "title": "A", "type": "action"}))
        assert [e.path.rsplit(".", 1)[-1] for e in errors] == ["buttonLabel", "actionType"]
        assert all(e.code == Code.MISSING_REQUIRED_FIELD for e in errors)

    @pytest.mark.unit
    def test_both_forms(self):
        """Single and multi forms cannot be combined."""
        setting = {
            "key": "a",
            "title": "A",
            "type": "action",
            "buttonLabel": "Go",
            "actionType": "callback",
            "actions": [{"key": "x", "buttonLabel": "X", "actionType": "callback"}],
        }
        errors = validate_schema(_data(setting))
        assert [(e.code, e.path) for e in errors] == [
            (Code.INVALID_ACTION_CONFIG, "pages[0].sections[0].settings[0]")
        ]

    @pytest.mark.unit
    def test_empty_actions(self):
        """The actions list may not be empty."""
        setting = {"key": "a", "title": "A", "type": "action", "actions": []}
        assert _codes(_data(setting)) == [Code.INVALID_ACTION_CONFIG]

    @pytest.mark.unit
    def test_action_items(self):
        """Item keys are unique and may not shadow setting keys."""
        setting = {
            "key": "a",
            "title": "A",
            "type": "action",
            "actions": [
                {"key": "export", "buttonLabel": "Export", "actionType": "callback"},
                {"key": "export", "buttonLabel": "Again", "actionType": "callback"},
                {"key": "other", "actionType": "callback"},
                {"key": "flag", "buttonLabel": "Flag", "actionType": "callback"},
            ],
        }
        data = _data({"key": "flag", "title": "Flag", "type": "boolean"}, setting)
        errors = validate_schema(data)
        assert [e.message for e in errors] == [
            'Duplicate action item key "export".',
            'Action item "other" must have a buttonLabel.',
            'Action item key "flag" conflicts with an existing setting key.',
        ]

    @pytest.mark.unit
    def test_modal_config(self):
        """Modal actions need a modal with fields."""
        setting = {
            "key": "a",
            "title": "A",
            "type": "action",
            "buttonLabel": "Open",
            "actionType": "modal",
        }
        errors = validate_schema(_data(setting))
        assert [e.path for e in errors] == ["pages[0].sections[0].settings[0].modal"]

        setting["modal"] = {"fields": []}
        errors = validate_schema(_data(setting))
        assert [e.path for e in errors] == ["pages[0].sections[0].settings[0].modal.fields"]

        setting["modal"] = {"fields": [{"key": "a", "title": "Name", "type": "text"}]}
        assert validate_schema(_data(setting)) == []

    @pytest.mark.unit
    def test_page_config(self):
        """Page actions need a renderer or fields."""
        setting = {
            "key": "a",
            "title": "A",
            "type": "action",
            "buttonLabel": "Open",
            "actionType": "page",
        }
        assert _codes(_data(setting)) == [Code.MISSING_ACTION_PAGE_CONFIG]
        setting["page"] = {"title": "Details"}
        assert _codes(_data(setting)) == [Code.MISSING_ACTION_PAGE_CONFIG]
        setting["page"] = {"renderer": "details"}
        assert _codes(_data(setting)) == []


class TestLoadSchema:
    """Tests for the load_schema entry point."""

    @pytest.mark.unit
    def test_returns_schema(self, reference_schema_data):
        """Valid mappings load into a Schema."""
        schema = load_schema(reference_schema_data)
        assert isinstance(schema, Schema)
        assert load_schema(schema) is schema

    @pytest.mark.unit
    def test_logs_diagnostics(self, caplog):
        """Non-strict loading logs each diagnostic and still returns."""
        data = _data({"key": "a", "title": "A", "type": "slider"})
        with caplog.at_level(logging.WARNING, logger="settera"):
            schema = load_schema(data, strict=False)
        assert isinstance(schema, Schema)
        assert "INVALID_TYPE" in caplog.text

    @pytest.mark.unit
    def test_strict_raises(self):
        """Strict loading raises with the diagnostics attached."""
        data = _data({"key": "a", "title": "A", "type": "slider"})
        with pytest.raises(SchemaLoadError) as info:
            load_schema(data, strict=True)
        assert [e.code for e in info.value.errors] == [Code.INVALID_TYPE]

    @pytest.mark.unit
    def test_strict_from_environment(self, monkeypatch):
        """SETTERA_STRICT_SCHEMA enables strict loading."""
        monkeypatch.setenv("SETTERA_STRICT_SCHEMA", "true")
        with pytest.raises(SchemaLoadError):
            load_schema(_data({"key": "a", "type": "boolean"}))

    @pytest.mark.unit
    def test_diagnostics_disabled(self):
        """Disabling diagnostics skips validation entirely."""
        data = _data({"key": "a", "title": "A", "type": "slider"})
        schema = load_schema(data, strict=True, diagnostics=False)
        assert isinstance(schema, Schema)

    @pytest.mark.unit
    def test_unparsable_always_raises(self):
        """Parse failures raise even when not strict."""
        with pytest.raises(SchemaLoadError) as info:
            load_schema({"version": "1.0", "pages": 3}, strict=False)
        assert info.value.errors[0].code == Code.INVALID_STRUCTURE
