"""Structural validation of settings schemas.

This module provides diagnostics for schema authors: ``validate_schema``
checks a schema for structural problems (missing fields, duplicate keys,
dangling visibility references, inconsistent option or action
configuration) and returns every problem found instead of stopping at the
first one. It never raises and never takes part in runtime value checks.

``load_schema`` is the host entry point that parses a mapping and surfaces
the diagnostics through logging, or raises in strict mode.
"""

import copy
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from pydantic import ValidationError

from settera.config import diagnostics_enabled, strict_schema
from settera.core.log import get_logger
from settera.model import (
    SCHEMA_VERSION,
    SETTING_TYPES,
    SUPPORTED_VERSIONS,
    Page,
    Schema,
    SchemaErrorCode,
    SchemaValidationError,
    Section,
    Subsection,
)
from settera.traversal import WalkContext, is_page_group, iter_conditions, walk_schema
from settera.values import parse_iso_date

logger = get_logger(__name__)

# Setting types allowed as compound, modal and action-page fields.
FIELD_TYPES = frozenset({"text", "number", "select", "multiselect", "date", "boolean"})

# Setting types allowed as repeatable item fields.
ITEM_FIELD_TYPES = frozenset({"text", "number", "select", "boolean"})

REPEATABLE_ITEM_TYPES = ("text", "compound")

# pydantic location segments naming a union branch rather than a field.
_UNION_TAGS = SETTING_TYPES | {"unsupported", "page", "group", "condition"}
_MEMBER_LABELS = frozenset({"int", "float", "str", "bool", "none"})

# Raw keys holding lists of schema objects.
_OBJECT_LISTS = frozenset(
    {
        "pages",
        "sections",
        "subsections",
        "settings",
        "fields",
        "itemFields",
        "actions",
        "options",
        "rules",
        "visibleWhen",
        "or",
    }
)

# Prune-and-retry rounds before a mapping is given up as unparsable.
MAX_PARSE_ATTEMPTS = 5

Code = SchemaErrorCode


class SetteraError(Exception):
    """Base class for settera errors."""


class SchemaLoadError(SetteraError):
    """Raised by load_schema when a schema cannot be used.

    Attributes:
        errors: Diagnostics that caused the failure.
    """

    def __init__(self, message: str, errors: list[SchemaValidationError] | None = None):
        super().__init__(message)
        self.errors = list(errors or [])


# =============================================================================
# Checker
# =============================================================================


@dataclass
class _SchemaChecker:
    """Walk visitor accumulating diagnostics."""

    errors: list[SchemaValidationError] = field(default_factory=list)
    setting_keys: set[str] = field(default_factory=set)
    page_keys: set[str] = field(default_factory=set)
    section_keys: dict[str, set[str]] = field(default_factory=dict)
    subsection_keys: dict[str, set[str]] = field(default_factory=dict)
    visibility_refs: list[tuple[str, str]] = field(default_factory=list)

    def add(self, path: str, code: SchemaErrorCode, message: str) -> None:
        self.errors.append(SchemaValidationError(path=path, code=code, message=message))

    def check_version(self, version: Any) -> None:
        if not isinstance(version, str) or version not in SUPPORTED_VERSIONS:
            self.add(
                "version",
                Code.INVALID_VERSION,
                f'Expected version "{SCHEMA_VERSION}", got "{version}".',
            )

    # -------------------------------------------------------------------------
    # Navigation nodes
    # -------------------------------------------------------------------------

    def on_page(self, page: Page, ctx: WalkContext) -> None:
        path = ctx.path
        if not page.key:
            self.add(f"{path}.key", Code.MISSING_REQUIRED_FIELD, "Page must have a key.")
        if not page.title:
            self.add(f"{path}.title", Code.MISSING_REQUIRED_FIELD, "Page must have a title.")
        if page.key:
            if page.key in self.page_keys:
                self.add(f"{path}.key", Code.DUPLICATE_KEY, f'Duplicate page key "{page.key}".')
            self.page_keys.add(page.key)
        if page.mode == "custom" and not page.renderer:
            self.add(
                f"{path}.renderer",
                Code.MISSING_REQUIRED_FIELD,
                f'Custom page "{page.key}" must define a renderer.',
            )

    def on_section(self, section: Section, ctx: WalkContext) -> None:
        path = ctx.path
        if not section.key:
            self.add(f"{path}.key", Code.MISSING_REQUIRED_FIELD, "Section must have a key.")
        if not section.title:
            self.add(f"{path}.title", Code.MISSING_REQUIRED_FIELD, "Section must have a title.")
        if section.key:
            siblings = self.section_keys.setdefault(path.rsplit(".sections[", 1)[0], set())
            if section.key in siblings:
                self.add(
                    f"{path}.key",
                    Code.DUPLICATE_KEY,
                    f'Duplicate section key "{section.key}".',
                )
            siblings.add(section.key)
        self.collect_visibility(section.visible_when, f"{path}.visibleWhen")

    def on_subsection(self, sub: Subsection, ctx: WalkContext) -> None:
        path = ctx.path
        if not sub.key:
            self.add(f"{path}.key", Code.MISSING_REQUIRED_FIELD, "Subsection must have a key.")
        if not sub.title:
            self.add(f"{path}.title", Code.MISSING_REQUIRED_FIELD, "Subsection must have a title.")
        if sub.key:
            siblings = self.subsection_keys.setdefault(path.rsplit(".subsections[", 1)[0], set())
            if sub.key in siblings:
                self.add(
                    f"{path}.key",
                    Code.DUPLICATE_KEY,
                    f'Duplicate subsection key "{sub.key}".',
                )
            siblings.add(sub.key)
        self.collect_visibility(sub.visible_when, f"{path}.visibleWhen")

    def on_setting(self, setting: Any, ctx: WalkContext) -> None:
        self.check_setting(setting, ctx.path)

    # -------------------------------------------------------------------------
    # Settings
    # -------------------------------------------------------------------------

    def check_setting(self, setting: Any, path: str, local_keys: set[str] | None = None) -> None:
        if not setting.key:
            self.add(f"{path}.key", Code.MISSING_REQUIRED_FIELD, "Setting must have a key.")
        if not setting.title:
            self.add(f"{path}.title", Code.MISSING_REQUIRED_FIELD, "Setting must have a title.")
        if not setting.type:
            self.add(f"{path}.type", Code.MISSING_REQUIRED_FIELD, "Setting must have a type.")
            return
        if setting.type not in SETTING_TYPES:
            self.add(
                f"{path}.type",
                Code.INVALID_TYPE,
                f'Invalid setting type "{setting.type}".',
            )
            check = None
        else:
            check = getattr(self, f"check_{setting.type}", None)

        keys = local_keys if local_keys is not None else self.setting_keys
        if setting.key:
            if setting.key in keys:
                label = "field" if local_keys is not None else "setting"
                self.add(
                    f"{path}.key",
                    Code.DUPLICATE_KEY,
                    f'Duplicate {label} key "{setting.key}".',
                )
            keys.add(setting.key)

        if check is not None:
            check(setting, path)

        self.collect_visibility(setting.visible_when, f"{path}.visibleWhen")

    def check_text(self, setting: Any, path: str) -> None:
        pattern = setting.validation.pattern if setting.validation else None
        if not pattern:
            return
        try:
            re.compile(pattern)
        except re.error:
            self.add(
                f"{path}.validation.pattern",
                Code.INVALID_PATTERN,
                f'Invalid regex pattern "{pattern}" in text setting "{setting.key}".',
            )

    def check_number(self, setting: Any, path: str) -> None:
        default = setting.default
        if default is None or setting.validation is None:
            return
        low, high = setting.validation.min, setting.validation.max
        if low is not None and default < low:
            self.add(
                f"{path}.default",
                Code.INVALID_DEFAULT,
                f'Default {default} is below min {low} for number setting "{setting.key}".',
            )
        if high is not None and default > high:
            self.add(
                f"{path}.default",
                Code.INVALID_DEFAULT,
                f'Default {default} is above max {high} for number setting "{setting.key}".',
            )

    def check_select(self, setting: Any, path: str) -> None:
        if not self.check_options(setting, path):
            return
        values = [option.value for option in setting.options]
        if setting.default is not None and setting.default not in values:
            self.add(
                f"{path}.default",
                Code.INVALID_DEFAULT,
                f'Default "{setting.default}" is not a valid option '
                f'for select setting "{setting.key}".',
            )

    def check_multiselect(self, setting: Any, path: str) -> None:
        if not self.check_options(setting, path):
            return
        values = {option.value for option in setting.options}
        for value in setting.default or []:
            if value not in values:
                self.add(
                    f"{path}.default",
                    Code.INVALID_DEFAULT,
                    f'Default value "{value}" is not a valid option '
                    f'for multiselect setting "{setting.key}".',
                )
                break

    def check_options(self, setting: Any, path: str) -> bool:
        """Report empty or duplicated options; True if options exist."""
        if not setting.options:
            self.add(
                f"{path}.options",
                Code.EMPTY_OPTIONS,
                f'{setting.type} setting "{setting.key}" must have at least one option.',
            )
            return False
        seen: set[str] = set()
        for i, option in enumerate(setting.options):
            if option.value in seen:
                self.add(
                    f"{path}.options[{i}].value",
                    Code.DUPLICATE_OPTION_VALUE,
                    f'Duplicate option value "{option.value}" '
                    f'in {setting.type} setting "{setting.key}".',
                )
            seen.add(option.value)
        return True

    def check_date(self, setting: Any, path: str) -> None:
        default = setting.default
        if default is None:
            return
        parsed = parse_iso_date(default)
        if parsed is None:
            self.add(
                f"{path}.default",
                Code.INVALID_DEFAULT,
                f'Default "{default}" is not a valid date for date setting "{setting.key}".',
            )
            return
        rules = setting.validation
        if rules is None:
            return
        low, high = parse_iso_date(rules.min_date), parse_iso_date(rules.max_date)
        if low is not None and parsed < low:
            self.add(
                f"{path}.default",
                Code.INVALID_DEFAULT,
                f'Default "{default}" is before minDate "{rules.min_date}" '
                f'for date setting "{setting.key}".',
            )
        if high is not None and parsed > high:
            self.add(
                f"{path}.default",
                Code.INVALID_DEFAULT,
                f'Default "{default}" is after maxDate "{rules.max_date}" '
                f'for date setting "{setting.key}".',
            )

    def check_compound(self, setting: Any, path: str) -> None:
        if not setting.fields:
            self.add(
                f"{path}.fields",
                Code.MISSING_REQUIRED_FIELD,
                f'Compound setting "{setting.key}" must have at least one field.',
            )
        else:
            self.check_fields(setting.fields, f"{path}.fields", FIELD_TYPES, "compound")
        if not setting.display_style:
            self.add(
                f"{path}.displayStyle",
                Code.MISSING_REQUIRED_FIELD,
                f'Compound setting "{setting.key}" must have a displayStyle.',
            )

        if setting.validation is None:
            return
        field_keys = {f.key for f in setting.fields}
        for i, rule in enumerate(setting.validation.rules):
            for part in ("when", "require"):
                ref = getattr(rule, part)
                if ref and ref not in field_keys:
                    self.add(
                        f"{path}.validation.rules[{i}].{part}",
                        Code.INVALID_COMPOUND_RULE,
                        f'Compound rule "{part}" references unknown field "{ref}" '
                        f'in setting "{setting.key}".',
                    )

    def check_repeatable(self, setting: Any, path: str) -> None:
        if setting.item_type not in REPEATABLE_ITEM_TYPES:
            self.add(
                f"{path}.itemType",
                Code.INVALID_REPEATABLE_CONFIG,
                f'Repeatable setting "{setting.key}" has unknown itemType "{setting.item_type}".',
            )
            return
        if setting.item_type == "compound":
            if not setting.item_fields:
                self.add(
                    f"{path}.itemFields",
                    Code.INVALID_REPEATABLE_CONFIG,
                    f'Repeatable setting "{setting.key}" with itemType "compound" '
                    "must have at least one itemField.",
                )
                return
            self.check_fields(
                setting.item_fields, f"{path}.itemFields", ITEM_FIELD_TYPES, "repeatable"
            )
        elif setting.item_fields:
            self.add(
                f"{path}.itemFields",
                Code.INVALID_REPEATABLE_CONFIG,
                f'Repeatable setting "{setting.key}" with itemType "text" '
                "must not define itemFields.",
            )

    def check_custom(self, setting: Any, path: str) -> None:
        if not setting.renderer:
            self.add(
                f"{path}.renderer",
                Code.MISSING_REQUIRED_FIELD,
                f'Custom setting "{setting.key}" must have a renderer.',
            )

    def check_fields(
        self,
        fields: list[Any],
        path: str,
        allowed: frozenset[str],
        container: str,
        dotted_keys: bool = False,
    ) -> None:
        """Check nested fields in their own key scope."""
        local_keys: set[str] = set()
        for i, nested in enumerate(fields):
            field_path = f"{path}[{i}]"
            if not dotted_keys and nested.key and "." in nested.key:
                self.add(
                    f"{field_path}.key",
                    Code.COMPOUND_FIELD_DOT_KEY,
                    f'Compound field key "{nested.key}" must not contain dots.',
                )
            if nested.type in SETTING_TYPES and nested.type not in allowed:
                self.add(
                    f"{field_path}.type",
                    Code.INVALID_TYPE,
                    f'Field type "{nested.type}" is not allowed in a {container} setting.',
                )
            self.check_setting(nested, field_path, local_keys)

    # -------------------------------------------------------------------------
    # Actions
    # -------------------------------------------------------------------------

    def check_action(self, setting: Any, path: str) -> None:
        single = setting.button_label is not None or setting.action_type is not None
        multi = setting.actions is not None

        if single and multi:
            self.add(
                path,
                Code.INVALID_ACTION_CONFIG,
                f'Action setting "{setting.key}" must use either buttonLabel/actionType '
                "or actions, not both.",
            )
            return

        if multi:
            self.check_action_items(setting, path)
            return

        if not setting.button_label:
            self.add(
                f"{path}.buttonLabel",
                Code.MISSING_REQUIRED_FIELD,
                f'Action setting "{setting.key}" must have a buttonLabel.',
            )
        if not setting.action_type:
            self.add(
                f"{path}.actionType",
                Code.MISSING_REQUIRED_FIELD,
                f'Action setting "{setting.key}" must have an actionType.',
            )
        else:
            self.check_action_target(
                setting.action_type, setting.modal, setting.page, path, setting.key
            )

    def check_action_items(self, setting: Any, path: str) -> None:
        if not setting.actions:
            self.add(
                f"{path}.actions",
                Code.INVALID_ACTION_CONFIG,
                f'Action setting "{setting.key}" actions array must not be empty.',
            )
            return

        item_keys: set[str] = set()
        for i, item in enumerate(setting.actions):
            item_path = f"{path}.actions[{i}]"
            name = item.key or "(unnamed)"
            if not item.key:
                self.add(f"{item_path}.key", Code.MISSING_REQUIRED_FIELD, "Action item must have a key.")
            if not item.button_label:
                self.add(
                    f"{item_path}.buttonLabel",
                    Code.MISSING_REQUIRED_FIELD,
                    f'Action item "{name}" must have a buttonLabel.',
                )
            if not item.action_type:
                self.add(
                    f"{item_path}.actionType",
                    Code.MISSING_REQUIRED_FIELD,
                    f'Action item "{name}" must have an actionType.',
                )

            if item.key:
                if item.key in item_keys:
                    self.add(
                        f"{item_path}.key",
                        Code.DUPLICATE_KEY,
                        f'Duplicate action item key "{item.key}".',
                    )
                elif item.key in self.setting_keys:
                    self.add(
                        f"{item_path}.key",
                        Code.DUPLICATE_KEY,
                        f'Action item key "{item.key}" conflicts with an existing setting key.',
                    )
                item_keys.add(item.key)
                self.setting_keys.add(item.key)

            if item.action_type:
                self.check_action_target(
                    item.action_type, item.modal, item.page, item_path, item.key or setting.key
                )

    def check_action_target(
        self, action_type: str, modal: Any, page: Any, path: str, label: str
    ) -> None:
        if action_type == "modal":
            if modal is None:
                self.add(
                    f"{path}.modal",
                    Code.MISSING_REQUIRED_FIELD,
                    f'Action "{label}" with actionType "modal" must define modal config.',
                )
            elif not modal.fields:
                self.add(
                    f"{path}.modal.fields",
                    Code.MISSING_REQUIRED_FIELD,
                    f'Action "{label}" modal must define at least one field.',
                )
            else:
                self.check_fields(
                    modal.fields, f"{path}.modal.fields", FIELD_TYPES, "modal", dotted_keys=True
                )

        elif action_type == "page":
            if page is None:
                self.add(
                    f"{path}.page",
                    Code.MISSING_ACTION_PAGE_CONFIG,
                    f'Action "{label}" with actionType "page" must define page config.',
                )
            elif not page.renderer and not page.fields:
                self.add(
                    f"{path}.page",
                    Code.MISSING_ACTION_PAGE_CONFIG,
                    f'Action "{label}" page config must define either a renderer or fields.',
                )
            elif page.fields:
                self.check_fields(
                    page.fields, f"{path}.page.fields", FIELD_TYPES, "page", dotted_keys=True
                )

    # -------------------------------------------------------------------------
    # Visibility
    # -------------------------------------------------------------------------

    def collect_visibility(self, visible_when: Any, path: str) -> None:
        """Record setting references and check operator usage."""
        for condition in iter_conditions(visible_when):
            if not condition.setting:
                self.add(
                    path,
                    Code.MISSING_REQUIRED_FIELD,
                    "Visibility condition must reference a setting.",
                )
            else:
                self.visibility_refs.append((path, condition.setting))
            if len(condition.operators) > 1:
                self.add(
                    path,
                    Code.MULTIPLE_VISIBILITY_OPERATORS,
                    f'Visibility condition for "{condition.setting}" defines multiple '
                    "operators. Use exactly one.",
                )

    def resolve_visibility_refs(self) -> None:
        for path, key in self.visibility_refs:
            if key not in self.setting_keys:
                self.add(
                    path,
                    Code.INVALID_VISIBILITY_REF,
                    f'visibleWhen references unknown setting "{key}".',
                )


# =============================================================================
# Public API
# =============================================================================


def _loc_to_path(loc: tuple[Any, ...]) -> str:
    path = ""
    skip_tag = False
    for part in loc:
        if isinstance(part, int):
            path += f"[{part}]"
            skip_tag = True
            continue
        if (
            (skip_tag and part in _UNION_TAGS)
            or part in _MEMBER_LABELS
            or not str(part).isidentifier()
        ):
            continue
        path = f"{path}.{part}" if path else str(part)
        skip_tag = False
    return path or "$"


def _structure_errors(exc: ValidationError) -> list[SchemaValidationError]:
    errors: dict[str, SchemaValidationError] = {}
    for error in exc.errors():
        path = _loc_to_path(error["loc"])
        errors.setdefault(
            path,
            SchemaValidationError(path=path, code=Code.INVALID_STRUCTURE, message=error["msg"]),
        )
    return list(errors.values())


def _locate(data: Any, loc: tuple[Any, ...]) -> list[tuple[Any, Any]]:
    """Containers and keys stepped through while following ``loc`` in raw data."""
    trail: list[tuple[Any, Any]] = []
    node = data
    for part in loc:
        if isinstance(node, dict) and part in node:
            trail.append((node, part))
        elif isinstance(node, list) and isinstance(part, int) and 0 <= part < len(node):
            trail.append((node, part))
        else:
            continue
        node = node[part]
    return trail


def _prune(data: dict[str, Any], exc: ValidationError) -> bool:
    """Drop every value pydantic rejected; True if anything changed.

    Rejected dict entries are removed so model defaults apply. A rejected
    element of a list of schema objects becomes an empty object, which keeps
    sibling indices and paths stable.
    """
    targets: dict[tuple[int, Any], tuple[Any, Any, bool]] = {}
    for error in exc.errors():
        trail = _locate(data, error["loc"])
        if not trail:
            continue
        container, key = trail[-1]
        if isinstance(container, list):
            owner = trail[-2][1] if len(trail) > 1 else None
            if owner in _OBJECT_LISTS:
                if not isinstance(container[key], dict):
                    targets[(id(container), key)] = (container, key, True)
                continue
            dict_steps = [step for step in trail if isinstance(step[0], dict)]
            if not dict_steps:
                continue
            container, key = dict_steps[-1]
        targets[(id(container), key)] = (container, key, False)

    changed = False
    for container, key, replace in targets.values():
        if replace:
            container[key] = {}
            changed = True
        elif key in container:
            del container[key]
            changed = True
    return changed


def _parse_leniently(data: Mapping[str, Any]) -> tuple[Schema | None, list[SchemaValidationError]]:
    """Parse a mapping, pruning rejected values until the rest loads."""
    data = copy.deepcopy(dict(data))
    if data.get("pages") is None:
        data.pop("pages", None)

    errors: list[SchemaValidationError] = []
    seen: set[str] = set()
    for _ in range(MAX_PARSE_ATTEMPTS):
        try:
            return Schema.model_validate(data), errors
        except ValidationError as exc:
            for error in _structure_errors(exc):
                if error.path not in seen:
                    seen.add(error.path)
                    errors.append(error)
            if not _prune(data, exc):
                break
    return None, errors


def validate_schema(schema: Schema | Mapping[str, Any]) -> list[SchemaValidationError]:
    """Validate a schema for structural issues.

    Performs one depth-first pass in declaration order and accumulates every
    problem. Visibility references are resolved after the pass, so rules may
    refer to settings declared later.

    Args:
        schema: A Schema, or a camelCase mapping. Values in a mapping that do
            not parse are reported as INVALID_STRUCTURE errors and left out,
            and the remaining checks still run.

    Returns:
        list[SchemaValidationError]: Errors found (empty if valid).

    Example:
        >>> errors = validate_schema(schema)
        >>> for e in errors:
        ...     print(f"{e.path} [{e.code.value}] {e.message}")
    """
    checker = _SchemaChecker()
    if isinstance(schema, Mapping):
        parsed, structure = _parse_leniently(schema)
        checker.errors.extend(structure)
        if parsed is None:
            checker.check_version(schema.get("version"))
            if not schema.get("pages"):
                checker.add("pages", Code.MISSING_PAGES, "Schema must have at least one page.")
            return checker.errors
        schema = parsed

    checker.check_version(schema.version)

    if not schema.pages:
        checker.add("pages", Code.MISSING_PAGES, "Schema must have at least one page.")
        return checker.errors

    for i, item in enumerate(schema.pages):
        if is_page_group(item) and not item.label:
            checker.add(
                f"pages[{i}].label",
                Code.MISSING_REQUIRED_FIELD,
                "Page group must have a label.",
            )

    walk_schema(schema, checker)
    checker.resolve_visibility_refs()
    return checker.errors


def is_valid_schema(schema: Schema | Mapping[str, Any]) -> bool:
    """Check if a schema has no structural errors.

    Example:
        >>> if not is_valid_schema(schema):
        ...     print(validate_schema(schema))
    """
    return not validate_schema(schema)


def load_schema(
    data: Schema | Mapping[str, Any],
    *,
    strict: bool | None = None,
    diagnostics: bool | None = None,
) -> Schema:
    """Parse a schema and surface its diagnostics.

    Diagnostics are logged as warnings. In strict mode any diagnostic raises
    instead.

    Args:
        data: A Schema instance or a camelCase mapping.
        strict: Raise on diagnostics (default: SETTERA_STRICT_SCHEMA).
        diagnostics: Run the validator at all (default:
            SETTERA_SCHEMA_DIAGNOSTICS).

    Returns:
        The parsed schema.

    Raises:
        SchemaLoadError: If the mapping cannot be parsed, or in strict mode
            when the schema has structural errors.
    """
    if isinstance(data, Schema):
        schema = data
    else:
        try:
            schema = Schema.model_validate(data)
        except ValidationError as exc:
            errors = _structure_errors(exc)
            raise SchemaLoadError(
                f"Schema could not be parsed ({len(errors)} errors)", errors
            ) from exc

    if not diagnostics_enabled(diagnostics):
        return schema

    errors = validate_schema(schema)
    for error in errors:
        logger.warning("Schema %s at %s: %s", error.code.value, error.path, error.message)

    if errors and strict_schema(strict):
        raise SchemaLoadError(f"Schema has {len(errors)} structural errors", errors)
    return schema


__all__ = [
    "FIELD_TYPES",
    "ITEM_FIELD_TYPES",
    "SetteraError",
    "SchemaLoadError",
    "validate_schema",
    "is_valid_schema",
    "load_schema",
]
