"""Schema model for declarative settings screens.

The model is the **contract** between a host application and every other
settera component. It describes a versioned hierarchy of pages, page groups,
sections, subsections and typed settings, plus the visibility rules that
link settings together.

Models are pydantic v2 models with camelCase aliases, so schemas authored as
plain JSON-style mappings (``visibleWhen``, ``buttonLabel``) load directly
while Python code uses snake_case attributes. Fields are deliberately lenient
(empty-string defaults for keys and titles, an ``UnsupportedSetting`` branch
for unknown types) so that incomplete schemas still load and are reported by
the structural validator rather than failing at parse time.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Annotated, Any, Callable, Literal, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Discriminator, Field, PrivateAttr, Tag
from pydantic.alias_generators import to_camel

SCHEMA_VERSION = "1.0"
SUPPORTED_VERSIONS = frozenset({SCHEMA_VERSION})

T = TypeVar("T")


class SettingType(str, Enum):
    """Closed set of setting kinds understood by the engine."""

    BOOLEAN = "boolean"
    TEXT = "text"
    NUMBER = "number"
    SELECT = "select"
    MULTISELECT = "multiselect"
    DATE = "date"
    COMPOUND = "compound"
    REPEATABLE = "repeatable"
    ACTION = "action"
    CUSTOM = "custom"


SETTING_TYPES = frozenset(t.value for t in SettingType)
VALUE_SETTING_TYPES = SETTING_TYPES - {SettingType.ACTION.value}


class SchemaErrorCode(str, Enum):
    """Machine-readable codes reported by the schema validator."""

    INVALID_VERSION = "INVALID_VERSION"
    INVALID_STRUCTURE = "INVALID_STRUCTURE"
    INVALID_TYPE = "INVALID_TYPE"
    MISSING_PAGES = "MISSING_PAGES"
    MISSING_REQUIRED_FIELD = "MISSING_REQUIRED_FIELD"
    DUPLICATE_KEY = "DUPLICATE_KEY"
    INVALID_VISIBILITY_REF = "INVALID_VISIBILITY_REF"
    MULTIPLE_VISIBILITY_OPERATORS = "MULTIPLE_VISIBILITY_OPERATORS"
    COMPOUND_FIELD_DOT_KEY = "COMPOUND_FIELD_DOT_KEY"
    EMPTY_OPTIONS = "EMPTY_OPTIONS"
    DUPLICATE_OPTION_VALUE = "DUPLICATE_OPTION_VALUE"
    INVALID_DEFAULT = "INVALID_DEFAULT"
    INVALID_REPEATABLE_CONFIG = "INVALID_REPEATABLE_CONFIG"
    INVALID_PATTERN = "INVALID_PATTERN"
    INVALID_COMPOUND_RULE = "INVALID_COMPOUND_RULE"
    INVALID_ACTION_CONFIG = "INVALID_ACTION_CONFIG"
    MISSING_ACTION_PAGE_CONFIG = "MISSING_ACTION_PAGE_CONFIG"


@dataclass
class SchemaValidationError:
    """Represents a structural problem found in a schema.

    Attributes:
        path: Declaration-order locator of the offending node or field.
        code: Machine-readable error classification.
        message: Human-readable error description.
    """

    path: str
    code: SchemaErrorCode
    message: str


class SchemaModel(BaseModel):
    """Base for every schema node: frozen, camelCase aliases, extras ignored."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )

    def to_dict(self) -> dict[str, Any]:
        """Convert to the camelCase mapping form, omitting unset fields."""
        return self.model_dump(by_alias=True, exclude_unset=True)


# =============================================================================
# Visibility
# =============================================================================

VISIBILITY_OPERATORS = (
    "equals",
    "not_equals",
    "one_of",
    "greater_than",
    "less_than",
    "contains",
    "is_empty",
)

# Operators where an explicit null is a meaningful operand.
_NULLABLE_OPERATORS = frozenset({"equals", "not_equals", "contains"})


class VisibilityCondition(SchemaModel):
    """Predicate over another setting's current value."""

    setting: str = ""
    equals: Any = None
    not_equals: Any = None
    one_of: list[Any] | None = None
    greater_than: float | None = None
    less_than: float | None = None
    contains: Any = None
    is_empty: bool | None = None

    @property
    def operators(self) -> list[str]:
        """Operators defined on this condition, in evaluation priority order."""
        defined = []
        for op in VISIBILITY_OPERATORS:
            if op not in self.model_fields_set:
                continue
            if op in _NULLABLE_OPERATORS or getattr(self, op) is not None:
                defined.append(op)
        return defined


class VisibilityConditionGroup(SchemaModel):
    """OR group: visible when at least one inner condition holds."""

    or_: list[VisibilityCondition] = Field(default_factory=list, alias="or")


def _rule_tag(value: Any) -> str:
    if isinstance(value, dict):
        return "group" if "or" in value or "or_" in value else "condition"
    return "group" if isinstance(value, VisibilityConditionGroup) else "condition"


VisibilityRule = Annotated[
    Union[
        Annotated[VisibilityCondition, Tag("condition")],
        Annotated[VisibilityConditionGroup, Tag("group")],
    ],
    Discriminator(_rule_tag),
]

# A single rule, or a list of rules combined with AND.
VisibleWhen = Union[VisibilityRule, list[VisibilityRule], None]


# =============================================================================
# Shared setting parts
# =============================================================================


class ConfirmConfig(SchemaModel):
    """Confirmation dialog shown before a value change is committed."""

    title: str | None = None
    message: str = ""
    confirm_label: str | None = None
    cancel_label: str | None = None
    require_text: str | None = None


class SelectOption(SchemaModel):
    value: str = ""
    label: str = ""
    description: str | None = None


class TextValidation(SchemaModel):
    required: bool = False
    min_length: int | None = None
    max_length: int | None = None
    pattern: str | None = None
    message: str | None = None


class NumberValidation(SchemaModel):
    required: bool = False
    min: int | float | None = None
    max: int | float | None = None
    step: int | float | None = None
    message: str | None = None


class SelectValidation(SchemaModel):
    required: bool = False
    message: str | None = None


class MultiSelectValidation(SchemaModel):
    required: bool = False
    min_selections: int | None = None
    max_selections: int | None = None
    message: str | None = None


class DateValidation(SchemaModel):
    required: bool = False
    min_date: str | None = None
    max_date: str | None = None
    message: str | None = None


class CompoundRule(SchemaModel):
    """Cross-field rule: when ``when`` is set, ``require`` must be filled."""

    when: str = ""
    require: str | None = None
    message: str = ""


class CompoundValidation(SchemaModel):
    rules: list[CompoundRule] = Field(default_factory=list)


class RepeatableValidation(SchemaModel):
    min_items: int | None = None
    max_items: int | None = None
    message: str | None = None


class CustomValidation(SchemaModel):
    required: bool = False
    message: str | None = None


# =============================================================================
# Settings
# =============================================================================


class BaseSetting(SchemaModel):
    """Fields shared by every setting variant."""

    key: str = ""
    title: str = ""
    description: str | None = None
    help_text: str | None = None
    dangerous: bool = False
    disabled: bool = False
    badge: str | None = None
    deprecated: bool | str | None = None
    visible_when: VisibleWhen = None


class ValueSettingBase(BaseSetting):
    """Settings that hold a value."""

    confirm: ConfirmConfig | None = None


class BooleanSetting(ValueSettingBase):
    type: Literal["boolean"] = "boolean"
    default: bool | None = None


class TextSetting(ValueSettingBase):
    type: Literal["text"] = "text"
    default: str | None = None
    placeholder: str | None = None
    input_type: str | None = None
    validation: TextValidation | None = None


class NumberSetting(ValueSettingBase):
    type: Literal["number"] = "number"
    default: int | float | None = None
    placeholder: str | None = None
    validation: NumberValidation | None = None


class SelectSetting(ValueSettingBase):
    type: Literal["select"] = "select"
    options: list[SelectOption] = Field(default_factory=list)
    default: str | None = None
    validation: SelectValidation | None = None


class MultiSelectSetting(ValueSettingBase):
    type: Literal["multiselect"] = "multiselect"
    options: list[SelectOption] = Field(default_factory=list)
    default: list[str] | None = None
    validation: MultiSelectValidation | None = None


class DateSetting(ValueSettingBase):
    type: Literal["date"] = "date"
    default: str | None = None
    validation: DateValidation | None = None


class CompoundSetting(ValueSettingBase):
    """A record-valued setting edited through a group of nested fields."""

    type: Literal["compound"] = "compound"
    display_style: str | None = None
    fields: list["SettingDefinition"] = Field(default_factory=list)
    default: dict[str, Any] | None = None
    validation: CompoundValidation | None = None


class RepeatableSetting(ValueSettingBase):
    """A list-valued setting; items are text or compound records."""

    type: Literal["repeatable"] = "repeatable"
    item_type: str = "text"
    item_fields: list["SettingDefinition"] | None = None
    default: list[Any] | None = None
    validation: RepeatableValidation | None = None


class ActionModalConfig(SchemaModel):
    title: str | None = None
    description: str | None = None
    submit_label: str | None = None
    cancel_label: str | None = None
    fields: list["SettingDefinition"] = Field(default_factory=list)


class ActionPageConfig(SchemaModel):
    title: str | None = None
    description: str | None = None
    renderer: str | None = None
    fields: list["SettingDefinition"] | None = None


class ActionItem(SchemaModel):
    """One button of a multi-button action setting."""

    key: str = ""
    button_label: str = ""
    action_type: str | None = None
    modal: ActionModalConfig | None = None
    page: ActionPageConfig | None = None
    dangerous: bool = False


class ActionSetting(BaseSetting):
    """A button (or row of buttons) that triggers host behavior; holds no value."""

    type: Literal["action"] = "action"
    button_label: str | None = None
    action_type: str | None = None
    modal: ActionModalConfig | None = None
    page: ActionPageConfig | None = None
    actions: list[ActionItem] | None = None


class CustomSetting(ValueSettingBase):
    type: Literal["custom"] = "custom"
    renderer: str = ""
    config: dict[str, Any] | None = None
    default: Any = None
    validation: CustomValidation | None = None


class UnsupportedSetting(BaseSetting):
    """Catch-all for a missing or unknown ``type``; reported by the validator."""

    type: str = ""


def _setting_tag(value: Any) -> str:
    if isinstance(value, dict):
        kind = value.get("type")
    else:
        kind = getattr(value, "type", None)
    if isinstance(kind, str) and kind in SETTING_TYPES:
        return str(kind.value) if isinstance(kind, SettingType) else kind
    return "unsupported"


SettingDefinition = Annotated[
    Union[
        Annotated[BooleanSetting, Tag("boolean")],
        Annotated[TextSetting, Tag("text")],
        Annotated[NumberSetting, Tag("number")],
        Annotated[SelectSetting, Tag("select")],
        Annotated[MultiSelectSetting, Tag("multiselect")],
        Annotated[DateSetting, Tag("date")],
        Annotated[CompoundSetting, Tag("compound")],
        Annotated[RepeatableSetting, Tag("repeatable")],
        Annotated[ActionSetting, Tag("action")],
        Annotated[CustomSetting, Tag("custom")],
        Annotated[UnsupportedSetting, Tag("unsupported")],
    ],
    Discriminator(_setting_tag),
]

for _model in (
    CompoundSetting,
    RepeatableSetting,
    ActionModalConfig,
    ActionPageConfig,
    ActionItem,
    ActionSetting,
):
    _model.model_rebuild()


def is_value_setting(definition: BaseSetting) -> bool:
    """True for settings that hold a value (every known type except action)."""
    return getattr(definition, "type", None) in VALUE_SETTING_TYPES


# =============================================================================
# Navigation hierarchy
# =============================================================================


class Subsection(SchemaModel):
    key: str = ""
    title: str = ""
    description: str | None = None
    visible_when: VisibleWhen = None
    settings: list[SettingDefinition] = Field(default_factory=list)


class Section(SchemaModel):
    key: str = ""
    title: str = ""
    description: str | None = None
    collapsible: bool = False
    visible_when: VisibleWhen = None
    settings: list[SettingDefinition] | None = None
    subsections: list[Subsection] | None = None


class Page(SchemaModel):
    """A navigable page; pages may nest pages independently of grouping."""

    key: str = ""
    title: str = ""
    description: str | None = None
    icon: str | None = None
    mode: str | None = None
    renderer: str | None = None
    sections: list[Section] | None = None
    pages: list["Page"] | None = None


class PageGroup(SchemaModel):
    """Sidebar grouping wrapper; has no key and no nesting semantics."""

    label: str = ""
    pages: list[Page] = Field(default_factory=list)


def _page_item_tag(value: Any) -> str:
    if isinstance(value, dict):
        return "group" if "label" in value and "key" not in value else "page"
    return "group" if isinstance(value, PageGroup) else "page"


PageItem = Annotated[
    Union[
        Annotated[Page, Tag("page")],
        Annotated[PageGroup, Tag("group")],
    ],
    Discriminator(_page_item_tag),
]


class SchemaMeta(SchemaModel):
    title: str | None = None
    description: str | None = None


class Schema(SchemaModel):
    """Root of a settings schema.

    A schema is supplied once by the host and treated as immutable. Derived
    structures (flattened settings, key indices, parent maps) are memoised on
    the instance through ``derive`` and reused for its lifetime.
    """

    version: Any = None
    meta: SchemaMeta | None = None
    pages: list[PageItem] = Field(default_factory=list)

    _derived: dict[str, Any] = PrivateAttr(default_factory=dict)
    _derived_owner: int = PrivateAttr(default=0)

    def derive(self, name: str, build: Callable[["Schema"], T]) -> T:
        """Return the derived structure ``name``, building it on first use.

        The cache belongs to this instance; copies made with ``model_copy``
        start with an empty cache even though pydantic copies private state.
        """
        if self._derived_owner != id(self):
            self._derived = {}
            self._derived_owner = id(self)
        if name not in self._derived:
            self._derived[name] = build(self)
        return self._derived[name]


@dataclass(frozen=True)
class FlattenedSetting:
    """A setting together with where it sits in the schema.

    Attributes:
        definition: The setting definition.
        path: Locator such as ``pages[0].sections[1].settings[2]``.
        page_key: Key of the page that owns the setting.
        section_key: Key of the owning section.
        subsection_key: Key of the owning subsection, or "" when direct.
    """

    definition: Any
    path: str
    page_key: str
    section_key: str
    subsection_key: str = ""

    @property
    def key(self) -> str:
        return self.definition.key


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
