"""Unit tests for visibility evaluation."""

import itertools

import pytest

from settera.model import Schema, VisibilityCondition, VisibilityConditionGroup

from .lib import evaluate_visibility, is_setting_visible


class TestNoRules:
    """Tests for absent rules."""

    @pytest.mark.unit
    def test_none_is_visible(self):
        """No rule means always visible."""
        assert evaluate_visibility(None, {}) is True

    @pytest.mark.unit
    def test_empty_list_is_visible(self):
        """An empty AND list holds."""
        assert evaluate_visibility([], {"a": 1}) is True

    @pytest.mark.unit
    def test_empty_condition_is_a_rule(self):
        """An empty mapping is a condition on a missing value, not an absent rule."""
        assert evaluate_visibility({}, {}) is False
        assert evaluate_visibility({}, {"a": True}) is False
        assert evaluate_visibility({"setting": ""}, {}) is False


class TestOperators:
    """Tests for individual condition operators."""

    @pytest.mark.unit
    def test_equals(self):
        """equals matches identical values."""
        rule = {"setting": "mode", "equals": "dark"}
        assert evaluate_visibility(rule, {"mode": "dark"}) is True
        assert evaluate_visibility(rule, {"mode": "light"}) is False

    @pytest.mark.unit
    def test_equals_is_type_strict(self):
        """True never equals 1, and "1" never equals 1."""
        assert evaluate_visibility({"setting": "a", "equals": True}, {"a": 1}) is False
        assert evaluate_visibility({"setting": "a", "equals": 1}, {"a": True}) is False
        assert evaluate_visibility({"setting": "a", "equals": 1}, {"a": "1"}) is False
        assert evaluate_visibility({"setting": "a", "equals": 1}, {"a": 1.0}) is True

    @pytest.mark.unit
    def test_equals_null(self):
        """equals None matches None but not a missing value."""
        rule = {"setting": "a", "equals": None}
        assert evaluate_visibility(rule, {"a": None}) is True
        assert evaluate_visibility(rule, {}) is False
        assert evaluate_visibility(rule, {"a": 0}) is False

    @pytest.mark.unit
    def test_not_equals(self):
        """not_equals is the negation of equals."""
        rule = {"setting": "a", "notEquals": "x"}
        assert evaluate_visibility(rule, {"a": "y"}) is True
        assert evaluate_visibility(rule, {"a": "x"}) is False
        assert evaluate_visibility(rule, {}) is True

    @pytest.mark.unit
    def test_one_of(self):
        """one_of checks membership."""
        rule = {"setting": "a", "oneOf": ["x", "y"]}
        assert evaluate_visibility(rule, {"a": "y"}) is True
        assert evaluate_visibility(rule, {"a": "z"}) is False
        assert evaluate_visibility({"setting": "a", "oneOf": [1]}, {"a": True}) is False

    @pytest.mark.unit
    def test_greater_than(self):
        """greater_than requires a real number above the bound."""
        rule = {"setting": "n", "greaterThan": 5}
        assert evaluate_visibility(rule, {"n": 6}) is True
        assert evaluate_visibility(rule, {"n": 5}) is False
        assert evaluate_visibility(rule, {"n": "10"}) is False
        assert evaluate_visibility(rule, {"n": True}) is False

    @pytest.mark.unit
    def test_less_than(self):
        """less_than requires a real number below the bound."""
        rule = {"setting": "n", "lessThan": 5}
        assert evaluate_visibility(rule, {"n": 4.5}) is True
        assert evaluate_visibility(rule, {"n": 5}) is False
        assert evaluate_visibility(rule, {}) is False

    @pytest.mark.unit
    def test_contains(self):
        """contains tests list membership of the operand."""
        rule = {"setting": "tags", "contains": "beta"}
        assert evaluate_visibility(rule, {"tags": ["alpha", "beta"]}) is True
        assert evaluate_visibility(rule, {"tags": ["alpha"]}) is False
        assert evaluate_visibility(rule, {"tags": "beta"}) is False

    @pytest.mark.unit
    def test_is_empty(self):
        """is_empty matches missing, None, "" and empty lists."""
        empty = {"setting": "a", "isEmpty": True}
        for value in ({}, {"a": None}, {"a": ""}, {"a": []}):
            assert evaluate_visibility(empty, value) is True
        for value in ({"a": 0}, {"a": "x"}, {"a": [1]}, {"a": False}):
            assert evaluate_visibility(empty, value) is False
        assert evaluate_visibility({"setting": "a", "isEmpty": False}, {"a": "x"}) is True

    @pytest.mark.unit
    def test_operator_priority(self):
        """equals wins over later operators when several are defined."""
        rule = {"setting": "a", "equals": "x", "isEmpty": True}
        assert evaluate_visibility(rule, {"a": "x"}) is True
        assert evaluate_visibility(rule, {}) is False


class TestTruthinessFallback:
    """Tests for operator-less conditions."""

    @pytest.mark.unit
    def test_empty_string_hides(self):
        """An empty string is falsy."""
        assert evaluate_visibility({"setting": "toggle"}, {"toggle": ""}) is False

    @pytest.mark.unit
    def test_falsy_values(self):
        """0, NaN, False, None and missing hide."""
        for value in (0, 0.0, float("nan"), False, None):
            assert evaluate_visibility({"setting": "a"}, {"a": value}) is False
        assert evaluate_visibility({"setting": "a"}, {}) is False

    @pytest.mark.unit
    def test_truthy_values(self):
        """Empty containers count as truthy."""
        for value in ([], {}, "x", -1, 0.5, True, [0]):
            assert evaluate_visibility({"setting": "a"}, {"a": value}) is True


class TestCombinators:
    """Tests for AND lists and OR groups."""

    @pytest.mark.unit
    def test_and_list(self):
        """All rules in a list must hold."""
        rules = [
            {"setting": "a", "equals": True},
            {"setting": "b", "equals": "okta"},
        ]
        assert evaluate_visibility(rules, {"a": True, "b": "okta"}) is True
        assert evaluate_visibility(rules, {"a": True, "b": "azure"}) is False

    @pytest.mark.unit
    def test_or_group(self):
        """At least one condition in an OR group must hold."""
        rule = {"or": [{"setting": "a", "equals": 1}, {"setting": "b", "equals": 2}]}
        assert evaluate_visibility(rule, {"b": 2}) is True
        assert evaluate_visibility(rule, {"a": 2, "b": 1}) is False

    @pytest.mark.unit
    def test_empty_or_group_hides(self):
        """An OR group with no conditions never holds."""
        assert evaluate_visibility({"or": []}, {}) is False

    @pytest.mark.unit
    def test_mixed_list(self):
        """Lists may mix conditions and OR groups."""
        rules = [
            {"setting": "on"},
            {"or": [{"setting": "x", "isEmpty": True}, {"setting": "y", "greaterThan": 0}]},
        ]
        assert evaluate_visibility(rules, {"on": True, "y": 3, "x": "set"}) is True
        assert evaluate_visibility(rules, {"on": True, "y": 0, "x": "set"}) is False

    @pytest.mark.unit
    def test_and_is_commutative(self):
        """Order of rules in an AND list does not matter."""
        a = {"setting": "a", "equals": True}
        b = {"or": [{"setting": "b", "oneOf": ["x"]}, {"setting": "c"}]}
        for va, vb, vc in itertools.product([True, False], ["x", "y"], [0, 1]):
            values = {"a": va, "b": vb, "c": vc}
            assert evaluate_visibility([a, b], values) == evaluate_visibility([b, a], values)

    @pytest.mark.unit
    def test_accepts_model_instances(self):
        """Parsed models evaluate the same as mappings."""
        rules = [
            VisibilityCondition(setting="a", equals=1),
            VisibilityConditionGroup.model_validate({"or": [{"setting": "b"}]}),
        ]
        assert evaluate_visibility(rules, {"a": 1, "b": "x"}) is True
        assert evaluate_visibility(rules, {"a": 1, "b": ""}) is False

    @pytest.mark.unit
    def test_malformed_rule_stays_visible(self):
        """Rules that cannot be interpreted do not hide anything."""
        assert evaluate_visibility({"setting": ["not", "a", "key"]}, {}) is True


class TestIsSettingVisible:
    """Tests for combined setting/section/subsection visibility."""

    @pytest.fixture
    def schema(self) -> Schema:
        return Schema.model_validate(
            {
                "version": "1.0",
                "pages": [
                    {
                        "key": "p",
                        "title": "P",
                        "sections": [
                            {
                                "key": "main",
                                "title": "Main",
                                "settings": [
                                    {"key": "advanced", "title": "Advanced", "type": "boolean"},
                                    {"key": "beta", "title": "Beta", "type": "boolean"},
                                ],
                            },
                            {
                                "key": "extra",
                                "title": "Extra",
                                "visibleWhen": {"setting": "advanced", "equals": True},
                                "settings": [
                                    {
                                        "key": "level",
                                        "title": "Level",
                                        "type": "number",
                                        "visibleWhen": {"setting": "beta"},
                                    }
                                ],
                                "subsections": [
                                    {
                                        "key": "deep",
                                        "title": "Deep",
                                        "visibleWhen": {"setting": "beta"},
                                        "settings": [
                                            {"key": "depth", "title": "Depth", "type": "number"}
                                        ],
                                    }
                                ],
                            },
                        ],
                    }
                ],
            }
        )

    @pytest.mark.unit
    def test_section_rule_applies(self, schema):
        """A hidden section hides its settings."""
        assert is_setting_visible(schema, "level", {"advanced": False, "beta": True}) is False
        assert is_setting_visible(schema, "level", {"advanced": True, "beta": True}) is True

    @pytest.mark.unit
    def test_own_rule_applies(self, schema):
        """The setting's own rule still applies."""
        assert is_setting_visible(schema, "level", {"advanced": True, "beta": False}) is False

    @pytest.mark.unit
    def test_subsection_rule_applies(self, schema):
        """A hidden subsection hides its settings."""
        assert is_setting_visible(schema, "depth", {"advanced": True}) is False
        assert is_setting_visible(schema, "depth", {"advanced": True, "beta": True}) is True

    @pytest.mark.unit
    def test_unconditional_and_unknown(self, schema):
        """Settings without rules are visible; unknown keys are not."""
        assert is_setting_visible(schema, "beta", {}) is True
        assert is_setting_visible(schema, "missing", {}) is False
