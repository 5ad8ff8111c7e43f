"""Per-type validation of setting values.

``validate_setting_value`` dispatches on the setting type and runs that
type's ordered rule pipeline, returning the first violated rule's message or
None. A ``validation.message`` on the definition replaces every default
message. Hosts may layer an asynchronous check on top with
``validate_setting_value_async``; it only runs once the synchronous pipeline
has passed.
"""

import logging
import math
import re
from collections.abc import Mapping
from datetime import date
from typing import Any, Awaitable, Callable

from pydantic import TypeAdapter, ValidationError

from settera.model import (
    CompoundSetting,
    DateSetting,
    MultiSelectSetting,
    NumberSetting,
    RepeatableSetting,
    SelectSetting,
    SettingDefinition,
    TextSetting,
)
from settera.visibility import MISSING, is_truthy

logger = logging.getLogger(__name__)

REQUIRED = "This field is required"

# Floating-point slack for step checks.
STEP_TOLERANCE = 1e-10

_SETTING = TypeAdapter(SettingDefinition)
_DECIMAL = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$")
_ISO_DATE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})(?:T.*)?$")

AsyncValidator = Callable[[Any], Awaitable[str | None]]


def _message(rules: Any, default: str) -> str:
    custom = getattr(rules, "message", None)
    return custom if custom is not None else default


def format_number(value: int | float) -> str:
    """Render a number without a trailing ``.0``."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def to_number(value: Any) -> float:
    """Coerce a value to a number; NaN when it has no numeric reading.

    Strings are stripped, an all-whitespace string reads as 0 and booleans
    read as 0 or 1.
    """
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return 0
        if _DECIMAL.match(text):
            return float(text)
        if text.lstrip("+-") == "Infinity":
            return -math.inf if text.startswith("-") else math.inf
    return math.nan


def parse_iso_date(value: Any) -> date | None:
    """Parse ``YYYY-MM-DD`` (optionally followed by a time part)."""
    if not isinstance(value, str):
        return None
    match = _ISO_DATE.match(value)
    if match is None:
        return None
    try:
        return date(*(int(part) for part in match.groups()))
    except ValueError:
        return None


# =============================================================================
# Per-type pipelines
# =============================================================================


def _validate_text(definition: TextSetting, value: Any) -> str | None:
    rules = definition.validation
    if rules is None:
        return None

    text = value if isinstance(value, str) else ""
    if not text:
        return _message(rules, REQUIRED) if rules.required else None

    if rules.min_length is not None and len(text) < rules.min_length:
        return _message(rules, f"Must be at least {rules.min_length} characters")
    if rules.max_length is not None and len(text) > rules.max_length:
        return _message(rules, f"Must be at most {rules.max_length} characters")
    if rules.pattern is not None:
        try:
            matched = re.search(rules.pattern, text) is not None
        except re.error:
            return _message(rules, "Invalid validation pattern")
        if not matched:
            return _message(rules, "Invalid format")
    return None


def _validate_number(definition: NumberSetting, value: Any) -> str | None:
    rules = definition.validation
    if rules is None:
        return None

    if value is None or value is MISSING or value == "":
        return _message(rules, REQUIRED) if rules.required else None

    num = to_number(value)
    if math.isnan(num):
        return _message(rules, "Must be a number")
    if rules.min is not None and num < rules.min:
        return _message(rules, f"Must be at least {format_number(rules.min)}")
    if rules.max is not None and num > rules.max:
        return _message(rules, f"Must be at most {format_number(rules.max)}")

    step = rules.step
    if step is not None and step > 0 and math.isfinite(num):
        base = rules.min if rules.min is not None else 0
        remainder = abs(math.fmod(num - base, step))
        if remainder > STEP_TOLERANCE and abs(remainder - step) > STEP_TOLERANCE:
            if step == 1:
                return _message(rules, "Must be a whole number")
            return _message(rules, f"Must be a multiple of {format_number(step)}")
    return None


def _validate_select(definition: SelectSetting, value: Any) -> str | None:
    rules = definition.validation
    if value is None or value is MISSING or value == "":
        return _message(rules, REQUIRED) if rules and rules.required else None
    if not any(option.value == value for option in definition.options):
        return _message(rules, "Invalid selection")
    return None


def _validate_multiselect(definition: MultiSelectSetting, value: Any) -> str | None:
    rules = definition.validation
    selected = list(value) if isinstance(value, (list, tuple)) else []
    if not selected:
        if rules and rules.required:
            return _message(rules, "At least one selection is required")
        return None

    if rules is not None:
        if rules.min_selections is not None and len(selected) < rules.min_selections:
            return _message(rules, f"Select at least {rules.min_selections}")
        if rules.max_selections is not None and len(selected) > rules.max_selections:
            return _message(rules, f"Select at most {rules.max_selections}")

    allowed = {option.value for option in definition.options}
    if any(not isinstance(item, str) or item not in allowed for item in selected):
        return _message(rules, "Contains invalid selection")
    return None


def _validate_date(definition: DateSetting, value: Any) -> str | None:
    rules = definition.validation
    text = value if isinstance(value, str) else ""
    if not text:
        return _message(rules, REQUIRED) if rules and rules.required else None

    parsed = parse_iso_date(text)
    if parsed is None:
        return _message(rules, "Invalid date")
    if rules is None:
        return None

    lower = parse_iso_date(rules.min_date)
    if lower is not None and parsed < lower:
        return _message(rules, f"Date must be on or after {rules.min_date}")
    upper = parse_iso_date(rules.max_date)
    if upper is not None and parsed > upper:
        return _message(rules, f"Date must be on or before {rules.max_date}")
    return None


def _validate_compound(definition: CompoundSetting, value: Any) -> str | None:
    rules = definition.validation
    if rules is None or not rules.rules:
        return None

    record = value if isinstance(value, Mapping) else {}
    for rule in rules.rules:
        if not rule.require:
            continue
        when = record.get(rule.when, MISSING)
        required = record.get(rule.require, MISSING)
        if is_truthy(when) and not is_truthy(required):
            return rule.message
    return None


def _validate_repeatable(definition: RepeatableSetting, value: Any) -> str | None:
    rules = definition.validation
    if rules is None:
        return None

    items = value if isinstance(value, (list, tuple)) else []
    if rules.min_items is not None and len(items) < rules.min_items:
        return _message(rules, f"Add at least {rules.min_items} items")
    if rules.max_items is not None and len(items) > rules.max_items:
        return _message(rules, f"Add at most {rules.max_items} items")
    return None


_PIPELINES: dict[str, Callable[[Any, Any], str | None]] = {
    "text": _validate_text,
    "number": _validate_number,
    "select": _validate_select,
    "multiselect": _validate_multiselect,
    "date": _validate_date,
    "compound": _validate_compound,
    "repeatable": _validate_repeatable,
}


# =============================================================================
# Public API
# =============================================================================


def validate_setting_value(definition: Any, value: Any) -> str | None:
    """Validate a value against its setting definition.

    Args:
        definition: Setting model, or a camelCase mapping that parses as one.
        value: Current value supplied by the host.

    Returns:
        The first violated rule's message, or None when the value passes.
        Boolean, action, custom and unsupported settings always pass, and so
        do mapping definitions that do not parse.
    """
    if isinstance(definition, Mapping):
        try:
            definition = _SETTING.validate_python(definition)
        except ValidationError as exc:
            logger.warning("Ignoring malformed setting definition: %s", exc)
            return None
    pipeline = _PIPELINES.get(getattr(definition, "type", ""))
    if pipeline is None:
        return None
    return pipeline(definition, value)


async def validate_setting_value_async(
    definition: Any,
    value: Any,
    validator: AsyncValidator | None = None,
) -> str | None:
    """Synchronous pipeline first, then the host's async validator.

    The host validator only runs when the synchronous checks pass. Its
    cancellation and retry behavior is left to the host.
    """
    message = validate_setting_value(definition, value)
    if message is not None or validator is None:
        return message
    return await validator(value)


def validate_confirm_text(required_text: str | None, typed: str) -> bool:
    """Whether typed confirmation text satisfies ``required_text``."""
    if not required_text:
        return True
    return typed == required_text


__all__ = [
    "REQUIRED",
    "STEP_TOLERANCE",
    "AsyncValidator",
    "format_number",
    "to_number",
    "parse_iso_date",
    "validate_setting_value",
    "validate_setting_value_async",
    "validate_confirm_text",
]
