"""Schema model: typed pydantic shapes for settings schemas.

Example:
    >>> from settera.model import Schema
    >>> schema = Schema.model_validate({"version": "1.0", "pages": [...]})
    >>> schema.pages[0].sections[0].settings[0].visible_when
"""

from .lib import (
    SCHEMA_VERSION,
    SETTING_TYPES,
    SUPPORTED_VERSIONS,
    VALUE_SETTING_TYPES,
    VISIBILITY_OPERATORS,
    ActionItem,
    ActionModalConfig,
    ActionPageConfig,
    ActionSetting,
    BaseSetting,
    BooleanSetting,
    CompoundRule,
    CompoundSetting,
    CompoundValidation,
    ConfirmConfig,
    CustomSetting,
    CustomValidation,
    DateSetting,
    DateValidation,
    FlattenedSetting,
    MultiSelectSetting,
    MultiSelectValidation,
    NumberSetting,
    NumberValidation,
    Page,
    PageGroup,
    PageItem,
    RepeatableSetting,
    RepeatableValidation,
    Schema,
    SchemaErrorCode,
    SchemaMeta,
    SchemaModel,
    SchemaValidationError,
    Section,
    SelectOption,
    SelectSetting,
    SelectValidation,
    SettingDefinition,
    SettingType,
    Subsection,
    TextSetting,
    TextValidation,
    UnsupportedSetting,
    ValueSettingBase,
    VisibilityCondition,
    VisibilityConditionGroup,
    VisibilityRule,
    VisibleWhen,
    is_value_setting,
)

__all__ = [
    "SCHEMA_VERSION",
    "SUPPORTED_VERSIONS",
    "SETTING_TYPES",
    "VALUE_SETTING_TYPES",
    "VISIBILITY_OPERATORS",
    # Enums
    "SettingType",
    "SchemaErrorCode",
    # Base
    "SchemaModel",
    # Visibility
    "VisibilityCondition",
    "VisibilityConditionGroup",
    "VisibilityRule",
    "VisibleWhen",
    # Shared setting parts
    "ConfirmConfig",
    "SelectOption",
    "TextValidation",
    "NumberValidation",
    "SelectValidation",
    "MultiSelectValidation",
    "DateValidation",
    "CompoundRule",
    "CompoundValidation",
    "RepeatableValidation",
    "CustomValidation",
    # Settings
    "BaseSetting",
    "ValueSettingBase",
    "BooleanSetting",
    "TextSetting",
    "NumberSetting",
    "SelectSetting",
    "MultiSelectSetting",
    "DateSetting",
    "CompoundSetting",
    "RepeatableSetting",
    "ActionModalConfig",
    "ActionPageConfig",
    "ActionItem",
    "ActionSetting",
    "CustomSetting",
    "UnsupportedSetting",
    "SettingDefinition",
    "is_value_setting",
    # Hierarchy
    "Subsection",
    "Section",
    "Page",
    "PageGroup",
    "PageItem",
    "SchemaMeta",
    "Schema",
    # Derived
    "FlattenedSetting",
    "SchemaValidationError",
]
