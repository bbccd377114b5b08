"""Tests for the conditional rule evaluator."""

import math

import pytest

from formforge.config import ConditionMode, EngineSettings
from formforge.schema.types import (
    ConditionalRule,
    FormSchema,
    FormSection,
    Logic,
    Operator,
    TextField,
)
from formforge.validation.conditions import (
    ConditionDepthError,
    evaluate,
    evaluate_visible,
    find_condition_cycles,
    referenced_fields,
    strict_equals,
    to_number,
    to_text,
)


def make_rule(
    field: str = "type",
    operator: Operator | None = Operator.EQUALS,
    value=None,
    rules: list[ConditionalRule] | None = None,
    logic: Logic = Logic.AND,
) -> ConditionalRule:
    """Helper to create a ConditionalRule for testing."""
    return ConditionalRule(
        field=field,
        operator=operator,
        value=value,
        rules=rules or [],
        logic=logic,
    )


def make_chain(depth: int) -> ConditionalRule:
    """A rule nested ``depth`` levels deep."""
    rule = make_rule(field="leaf", value="x")
    for _ in range(depth - 1):
        rule = make_rule(field="node", operator=None, rules=[rule])
    return rule


# =============================================================================
# Coercion
# =============================================================================


class TestCoercion:
    def test_to_number_parses_strings(self):
        assert to_number("42") == 42.0
        assert to_number(" 3.5 ") == 3.5
        assert to_number("") == 0.0

    def test_to_number_booleans(self):
        assert to_number(True) == 1.0
        assert to_number(False) == 0.0

    def test_to_number_none_is_nan(self):
        assert math.isnan(to_number(None))

    def test_to_number_garbage_is_nan(self):
        assert math.isnan(to_number("12abc"))
        assert math.isnan(to_number([1]))

    def test_to_text(self):
        assert to_text(None) == ""
        assert to_text(5.0) == "5"
        assert to_text(["a", "b"]) == "a,b"
        assert to_text(True) == "true"

    def test_strict_equals_does_not_mix_bool_and_number(self):
        assert not strict_equals(True, 1)
        assert not strict_equals(0, False)
        assert strict_equals(True, True)
        assert strict_equals("a", "a")
        assert not strict_equals("1", 1)


# =============================================================================
# Operators
# =============================================================================


class TestOperators:
    def test_equals(self):
        rule = make_rule(value="sales")
        assert evaluate(rule, {"type": "sales"}) is True
        assert evaluate(rule, {"type": "support"}) is False

    def test_not_equals(self):
        rule = make_rule(operator=Operator.NOT_EQUALS, value="sales")
        assert evaluate(rule, {"type": "support"}) is True
        assert evaluate(rule, {"type": "sales"}) is False

    def test_missing_field_equals_none(self):
        assert evaluate(make_rule(value=None), {}) is True
        assert evaluate(make_rule(value="x"), {}) is False

    def test_greater_than_coerces(self):
        rule = make_rule(field="age", operator=Operator.GREATER_THAN, value=18)
        assert evaluate(rule, {"age": "21"}) is True
        assert evaluate(rule, {"age": 18}) is False

    def test_less_than(self):
        rule = make_rule(field="age", operator=Operator.LESS_THAN, value="18")
        assert evaluate(rule, {"age": 17}) is True
        assert evaluate(rule, {"age": 30}) is False

    def test_numeric_comparison_with_missing_value_is_false(self):
        gt = make_rule(field="age", operator=Operator.GREATER_THAN, value=0)
        lt = make_rule(field="age", operator=Operator.LESS_THAN, value=0)
        assert evaluate(gt, {}) is False
        assert evaluate(lt, {}) is False

    def test_contains(self):
        rule = make_rule(field="notes", operator=Operator.CONTAINS, value="urgent")
        assert evaluate(rule, {"notes": "this is urgent"}) is True
        assert evaluate(rule, {"notes": "later"}) is False
        assert evaluate(rule, {}) is False

    def test_contains_on_list_value(self):
        rule = make_rule(field="tags", operator=Operator.CONTAINS, value="vip")
        assert evaluate(rule, {"tags": ["new", "vip"]}) is True

    def test_not_contains(self):
        rule = make_rule(field="notes", operator=Operator.NOT_CONTAINS, value="spam")
        assert evaluate(rule, {"notes": "hello"}) is True
        assert evaluate(rule, {"notes": "spam!"}) is False

    def test_unset_operator_is_true(self):
        assert evaluate(make_rule(operator=None), {"type": "anything"}) is True

    def test_no_rule_is_true(self):
        assert evaluate(None, {}) is True


# =============================================================================
# Nested Rules
# =============================================================================


class TestNestedRules:
    @pytest.fixture
    def sales_us(self):
        return make_rule(
            value="sales",
            rules=[make_rule(field="region", value="US")],
            logic=Logic.AND,
        )

    def test_and_all_match(self, sales_us):
        assert evaluate(sales_us, {"type": "sales", "region": "US"}) is True

    def test_and_nested_fails(self, sales_us):
        assert evaluate(sales_us, {"type": "sales", "region": "EU"}) is False

    def test_and_base_fails_regardless_of_nested(self, sales_us):
        assert evaluate(sales_us, {"type": "support"}) is False
        assert evaluate(sales_us, {"type": "support", "region": "US"}) is False

    def test_or_either_matches(self):
        rule = make_rule(
            value="sales",
            rules=[make_rule(field="region", value="US")],
            logic=Logic.OR,
        )
        assert evaluate(rule, {"type": "support", "region": "US"}) is True
        assert evaluate(rule, {"type": "sales", "region": "EU"}) is True
        assert evaluate(rule, {"type": "support", "region": "EU"}) is False

    def test_source_mode_unset_operator_with_or_is_always_true(self):
        rule = make_rule(
            operator=None,
            rules=[make_rule(field="region", value="US")],
            logic=Logic.OR,
        )
        assert evaluate(rule, {"region": "EU"}) is True

    def test_nested_only_mode_ignores_unset_operator(self):
        settings = EngineSettings(condition_mode=ConditionMode.NESTED_ONLY)
        rule = make_rule(
            operator=None,
            rules=[
                make_rule(field="region", value="US"),
                make_rule(field="tier", value="gold"),
            ],
            logic=Logic.OR,
        )
        assert evaluate(rule, {"region": "EU"}, settings) is False
        assert evaluate(rule, {"tier": "gold"}, settings) is True

    def test_nested_only_mode_keeps_explicit_operator(self):
        settings = EngineSettings(condition_mode=ConditionMode.NESTED_ONLY)
        rule = make_rule(
            value="sales",
            rules=[make_rule(field="region", value="US")],
            logic=Logic.OR,
        )
        assert evaluate(rule, {"type": "sales", "region": "EU"}, settings) is True

    def test_evaluation_is_pure(self, sales_us):
        values = {"type": "sales", "region": "US"}
        snapshot = dict(values)
        first = evaluate(sales_us, values)
        second = evaluate(sales_us, values)
        assert first == second
        assert values == snapshot


# =============================================================================
# Depth Limit
# =============================================================================


class TestDepthLimit:
    def test_within_limit(self):
        settings = EngineSettings(max_condition_depth=5)
        assert evaluate(make_chain(5), {"leaf": "x"}, settings) is True

    def test_beyond_limit_raises(self):
        settings = EngineSettings(max_condition_depth=5)
        with pytest.raises(ConditionDepthError):
            evaluate(make_chain(6), {"leaf": "x"}, settings)

    def test_cyclic_tree_raises(self):
        rule = make_rule(operator=None)
        rule.rules.append(rule)
        with pytest.raises(ConditionDepthError):
            evaluate(rule, {})

    def test_evaluate_visible_treats_errors_as_hidden(self):
        rule = make_rule(operator=None)
        rule.rules.append(rule)
        assert evaluate_visible(rule, {}) is False


# =============================================================================
# Dependencies
# =============================================================================


class TestDependencies:
    def test_referenced_fields_in_first_seen_order(self):
        rule = make_rule(
            field="a",
            rules=[make_rule(field="b"), make_rule(field="a"), make_rule(field="c")],
        )
        assert referenced_fields(rule) == ["a", "b", "c"]

    def test_referenced_fields_depth_limit(self):
        with pytest.raises(ConditionDepthError):
            referenced_fields(make_chain(4), max_depth=3)

    def test_find_cycles(self):
        schema = FormSchema(
            id="f",
            title="Form",
            sections=[FormSection(id="s", title="S", fields=[
                TextField(name="a", label="A", conditional=make_rule(field="b", value="x")),
                TextField(name="b", label="B", conditional=make_rule(field="a", value="y")),
                TextField(name="c", label="C", conditional=make_rule(field="a", value="z")),
                TextField(name="d", label="D", conditional=make_rule(field="d", value="z")),
            ])],
        )
        assert find_condition_cycles(schema) == ["a", "b", "d"]

    def test_section_conditional_counts_as_dependency(self):
        schema = FormSchema(
            id="f",
            title="Form",
            sections=[FormSection(
                id="s",
                title="S",
                conditional=make_rule(field="a", value="x"),
                fields=[TextField(name="a", label="A")],
            )],
        )
        assert find_condition_cycles(schema) == ["a"]

    def test_no_cycles(self):
        schema = FormSchema(
            id="f",
            title="Form",
            sections=[FormSection(id="s", title="S", fields=[
                TextField(name="a", label="A"),
                TextField(name="b", label="B", conditional=make_rule(field="a", value="x")),
            ])],
        )
        assert find_condition_cycles(schema) == []

    def test_too_deep_rule_does_not_hide_other_cycles(self):
        schema = FormSchema(
            id="f",
            title="Form",
            sections=[FormSection(id="s", title="S", fields=[
                TextField(name="a", label="A", conditional=make_rule(field="b", value="x")),
                TextField(name="b", label="B", conditional=make_rule(field="a", value="y")),
                TextField(name="d", label="D", conditional=make_chain(21)),
            ])],
        )
        assert find_condition_cycles(schema) == ["a", "b"]
