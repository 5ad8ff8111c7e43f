"""Conditional visibility evaluation.

A setting, section or subsection may carry a ``visible_when`` rule that
references other settings' current values. Rules are evaluated against the
host-owned values mapping, which is only read.

Comparison semantics follow the data-interchange conventions the schema was
authored under: equality is strict (``True`` never equals ``1``), missing and
``None`` are distinct, and the no-operator fallback uses loose truthiness
where empty lists and mappings count as truthy.
"""

import logging
import math
from typing import Any, Mapping

from pydantic import TypeAdapter, ValidationError

from settera.model import (
    Schema,
    SchemaModel,
    VisibilityCondition,
    VisibilityConditionGroup,
    VisibleWhen,
)
from settera.traversal import get_flattened_setting, get_section

logger = logging.getLogger(__name__)

_RULES = TypeAdapter(VisibleWhen)


class _Missing:
    def __repr__(self) -> str:
        return "<missing>"


MISSING = _Missing()


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_nan(value: Any) -> bool:
    return isinstance(value, float) and math.isnan(value)


def strict_equals(a: Any, b: Any) -> bool:
    """Type-strict equality; containers compare by identity."""
    if isinstance(a, bool) or isinstance(b, bool):
        return isinstance(a, bool) and isinstance(b, bool) and a == b
    if _is_number(a) and _is_number(b):
        return a == b
    if isinstance(a, str) and isinstance(b, str):
        return a == b
    return a is b


def _includes(items: Any, needle: Any) -> bool:
    return any(
        strict_equals(item, needle) or (_is_nan(item) and _is_nan(needle))
        for item in items
    )


def is_truthy(value: Any) -> bool:
    """Loose truthiness: empty lists and mappings are truthy, NaN is not."""
    if value is MISSING or value is None:
        return False
    if isinstance(value, bool):
        return value
    if _is_number(value):
        return value != 0 and not _is_nan(value)
    if isinstance(value, str):
        return value != ""
    return True


def is_empty_value(value: Any) -> bool:
    """Missing, None, "" and zero-length lists are empty."""
    if value is MISSING or value is None or value == "":
        return True
    if isinstance(value, (list, tuple)):
        return len(value) == 0
    return False


def _evaluate_condition(condition: VisibilityCondition, values: Mapping[str, Any]) -> bool:
    value = values.get(condition.setting, MISSING)
    operators = condition.operators

    if "equals" in operators:
        return strict_equals(value, condition.equals)
    if "not_equals" in operators:
        return not strict_equals(value, condition.not_equals)
    if "one_of" in operators:
        return _includes(condition.one_of, value)
    if "greater_than" in operators:
        return _is_number(value) and value > condition.greater_than
    if "less_than" in operators:
        return _is_number(value) and value < condition.less_than
    if "contains" in operators:
        return isinstance(value, (list, tuple)) and _includes(value, condition.contains)
    if "is_empty" in operators:
        return is_empty_value(value) == condition.is_empty

    return is_truthy(value)


def _evaluate_rule(rule: Any, values: Mapping[str, Any]) -> bool:
    if isinstance(rule, VisibilityConditionGroup):
        return any(_evaluate_condition(c, values) for c in rule.or_)
    return _evaluate_condition(rule, values)


def _coerce(rules: Any) -> Any:
    if isinstance(rules, SchemaModel):
        return rules
    if isinstance(rules, list) and all(isinstance(r, SchemaModel) for r in rules):
        return rules
    return _RULES.validate_python(rules)


def evaluate_visibility(rules: Any, values: Mapping[str, Any]) -> bool:
    """Evaluate a visibility rule against current values.

    Args:
        rules: None, a condition, an OR-group, or a list of those (AND).
            Model instances and raw camelCase mappings are both accepted.
        values: Setting key to current value.

    Returns:
        True if visible. Rules that cannot be interpreted leave the node
        visible.
    """
    if rules is None:
        return True
    try:
        rules = _coerce(rules)
    except ValidationError as exc:
        logger.warning("Ignoring malformed visibility rule: %s", exc)
        return True
    if rules is None:
        return True

    rule_list = rules if isinstance(rules, list) else [rules]
    return all(_evaluate_rule(rule, values) for rule in rule_list)


def is_setting_visible(schema: Schema, key: str, values: Mapping[str, Any]) -> bool:
    """Whether a setting and the containers around it are all visible.

    Combines the setting's own rule with its section's and subsection's.
    Unknown keys are not visible.
    """
    flat = get_flattened_setting(schema, key)
    if flat is None:
        return False

    section = get_section(schema, flat.page_key, flat.section_key)
    if section is not None:
        if not evaluate_visibility(section.visible_when, values):
            return False
        if flat.subsection_key:
            for sub in section.subsections or []:
                if sub.key == flat.subsection_key:
                    if not evaluate_visibility(sub.visible_when, values):
                        return False
                    break

    return evaluate_visibility(getattr(flat.definition, "visible_when", None), values)


__all__ = [
    "MISSING",
    "evaluate_visibility",
    "is_setting_visible",
    "is_empty_value",
    "is_truthy",
    "strict_equals",
]
