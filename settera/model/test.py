"""Unit tests for the schema model."""

import pytest
from pydantic import ValidationError

from settera.model import (
    SETTING_TYPES,
    ActionSetting,
    BooleanSetting,
    CompoundSetting,
    Page,
    PageGroup,
    RepeatableSetting,
    Schema,
    Section,
    SettingType,
    TextSetting,
    UnsupportedSetting,
    VisibilityCondition,
    VisibilityConditionGroup,
    is_value_setting,
)


def _schema(settings: list[dict]) -> Schema:
    return Schema.model_validate(
        {
            "version": "1.0",
            "pages": [
                {
                    "key": "p",
                    "title": "P",
                    "sections": [{"key": "s", "title": "S", "settings": settings}],
                }
            ],
        }
    )


class TestSettingUnion:
    """Tests for the type-discriminated setting union."""

    @pytest.mark.unit
    def test_setting_types_closed_set(self):
        """SETTING_TYPES covers exactly the SettingType members."""
        assert SETTING_TYPES == {t.value for t in SettingType}
        assert len(SETTING_TYPES) == 10

    @pytest.mark.unit
    def test_dispatches_on_type(self):
        """Each mapping parses into the variant named by its type."""
        schema = _schema(
            [
                {"key": "a", "title": "A", "type": "boolean", "default": True},
                {"key": "b", "title": "B", "type": "text", "placeholder": "x"},
                {
                    "key": "c",
                    "title": "C",
                    "type": "action",
                    "buttonLabel": "Go",
                    "actionType": "callback",
                },
            ]
        )
        settings = schema.pages[0].sections[0].settings
        assert isinstance(settings[0], BooleanSetting)
        assert isinstance(settings[1], TextSetting)
        assert settings[1].placeholder == "x"
        assert isinstance(settings[2], ActionSetting)
        assert settings[2].button_label == "Go"

    @pytest.mark.unit
    def test_unknown_type_falls_back_to_unsupported(self):
        """Unknown or missing types load as UnsupportedSetting."""
        schema = _schema(
            [
                {"key": "a", "title": "A", "type": "color"},
                {"key": "b", "title": "B"},
            ]
        )
        settings = schema.pages[0].sections[0].settings
        assert isinstance(settings[0], UnsupportedSetting)
        assert settings[0].type == "color"
        assert isinstance(settings[1], UnsupportedSetting)
        assert settings[1].type == ""

    @pytest.mark.unit
    def test_nested_fields_parse_recursively(self):
        """Compound fields and repeatable item fields are settings too."""
        schema = _schema(
            [
                {
                    "key": "smtp",
                    "title": "SMTP",
                    "type": "compound",
                    "displayStyle": "inline",
                    "fields": [{"key": "host", "title": "Host", "type": "text"}],
                },
                {
                    "key": "hosts",
                    "title": "Hosts",
                    "type": "repeatable",
                    "itemType": "compound",
                    "itemFields": [{"key": "port", "title": "Port", "type": "number"}],
                },
            ]
        )
        compound, repeatable = schema.pages[0].sections[0].settings
        assert isinstance(compound, CompoundSetting)
        assert isinstance(compound.fields[0], TextSetting)
        assert isinstance(repeatable, RepeatableSetting)
        assert repeatable.item_fields[0].type == "number"

    @pytest.mark.unit
    def test_accepts_model_instances(self):
        """Already-built setting models pass through the union."""
        section = Section(
            key="s",
            title="S",
            settings=[TextSetting(key="t", title="T")],
        )
        assert isinstance(section.settings[0], TextSetting)

    @pytest.mark.unit
    def test_is_value_setting(self):
        """Action is the only known type that holds no value."""
        assert is_value_setting(TextSetting(key="t", title="T")) is True
        assert is_value_setting(ActionSetting(key="a", title="A")) is False
        assert is_value_setting(UnsupportedSetting(key="u", type="x")) is False


class TestPageItems:
    """Tests for the Page / PageGroup union."""

    @pytest.mark.unit
    def test_group_detected_by_label_without_key(self):
        """A mapping with a label and no key is a page group."""
        schema = Schema.model_validate(
            {
                "version": "1.0",
                "pages": [
                    {"key": "a", "title": "A"},
                    {"label": "Admin", "pages": [{"key": "b", "title": "B"}]},
                ],
            }
        )
        assert isinstance(schema.pages[0], Page)
        assert isinstance(schema.pages[1], PageGroup)
        assert schema.pages[1].pages[0].key == "b"

    @pytest.mark.unit
    def test_nested_pages(self):
        """Pages nest pages."""
        page = Page.model_validate(
            {"key": "a", "title": "A", "pages": [{"key": "b", "title": "B"}]}
        )
        assert page.pages[0].key == "b"


class TestVisibilityModels:
    """Tests for visibility rule parsing."""

    @pytest.mark.unit
    def test_condition_and_group(self):
        """Mappings with 'or' parse as groups, others as conditions."""
        schema = _schema(
            [
                {
                    "key": "x",
                    "title": "X",
                    "type": "boolean",
                    "visibleWhen": [
                        {"setting": "a", "equals": 1},
                        {"or": [{"setting": "b"}, {"setting": "c", "isEmpty": True}]},
                    ],
                }
            ]
        )
        rules = schema.pages[0].sections[0].settings[0].visible_when
        assert isinstance(rules[0], VisibilityCondition)
        assert isinstance(rules[1], VisibilityConditionGroup)
        assert rules[1].or_[1].is_empty is True

    @pytest.mark.unit
    def test_explicit_null_counts_as_operator(self):
        """An explicit equals: None is a defined operator."""
        condition = VisibilityCondition.model_validate({"setting": "a", "equals": None})
        assert condition.operators == ["equals"]
        assert VisibilityCondition(setting="a").operators == []

    @pytest.mark.unit
    def test_operators_in_priority_order(self):
        """Operators are listed in evaluation priority order."""
        condition = VisibilityCondition.model_validate(
            {"setting": "a", "isEmpty": True, "notEquals": 3, "oneOf": None}
        )
        assert condition.operators == ["not_equals", "is_empty"]


class TestSchema:
    """Tests for Schema helpers."""

    @pytest.mark.unit
    def test_frozen(self):
        """Schema nodes are immutable."""
        schema = _schema([])
        with pytest.raises(ValidationError):
            schema.version = "2.0"

    @pytest.mark.unit
    def test_to_dict_uses_camel_case(self):
        """to_dict emits camelCase aliases and omits unset fields."""
        schema = _schema(
            [{"key": "t", "title": "T", "type": "text", "helpText": "h"}]
        )
        data = schema.to_dict()
        setting = data["pages"][0]["sections"][0]["settings"][0]
        assert setting == {"key": "t", "title": "T", "type": "text", "helpText": "h"}

    @pytest.mark.unit
    def test_derive_memoises(self):
        """derive builds once per instance."""
        schema = _schema([])
        calls = []

        def build(s):
            calls.append(s)
            return object()

        first = schema.derive("thing", build)
        second = schema.derive("thing", build)
        assert first is second
        assert len(calls) == 1

    @pytest.mark.unit
    def test_derive_not_shared_with_copies(self):
        """A model_copy gets its own derived cache."""
        schema = _schema([])
        original = schema.derive("thing", lambda s: object())
        copy = schema.model_copy()
        assert copy.derive("thing", lambda s: object()) is not original
        assert schema.derive("thing", lambda s: object()) is original
