"""Tests for form-level validation and step gating."""

import pytest

from formforge.schema.types import (
    ConditionalRule,
    FormSchema,
    FormSection,
    FormSettings,
    NumberField,
    NumberRule,
    Operator,
    StringRule,
    TextField,
)
from formforge.validation.form import (
    can_advance,
    can_jump_to,
    is_form_valid,
    is_section_visible,
    validate_all,
    validate_section,
    visible_fields,
)
from formforge.validation.types import ErrorType


def required_text(name: str, **kwargs) -> TextField:
    return TextField(
        name=name,
        label=name.title(),
        validation=StringRule(required=True),
        **kwargs,
    )


def equals(field: str, value) -> ConditionalRule:
    return ConditionalRule(field=field, operator=Operator.EQUALS, value=value)


@pytest.fixture
def wizard() -> FormSchema:
    """Three-step form: contact, company (only for business), review."""
    return FormSchema(
        id="wizard",
        title="Sign up",
        settings=FormSettings(multi_step=True),
        sections=[
            FormSection(id="contact", title="Contact", fields=[
                required_text("name"),
                required_text("kind"),
            ]),
            FormSection(
                id="company",
                title="Company",
                conditional=equals("kind", "business"),
                fields=[required_text("company")],
            ),
            FormSection(id="review", title="Review", fields=[
                NumberField(name="rating", label="Rating", validation=NumberRule(min=1, max=5)),
                required_text("notes", conditional=equals("rating", 1)),
            ]),
        ],
    )


class TestValidateAll:
    def test_reports_errors_in_declaration_order(self, wizard):
        errors = validate_all(wizard, {"kind": "business", "rating": 9})
        assert [e.field for e in errors] == ["name", "company", "rating"]
        assert [e.type for e in errors] == [ErrorType.REQUIRED, ErrorType.REQUIRED, ErrorType.MAX]

    def test_one_error_per_field(self, wizard):
        errors = validate_all(wizard, {})
        assert len(errors) == len({e.field for e in errors})

    def test_hidden_required_field_never_reported(self):
        schema = FormSchema(id="f", title="F", sections=[FormSection(id="s", title="S", fields=[
            required_text("secret", hidden=True),
            required_text("visible"),
        ])])
        errors = validate_all(schema, {"secret": ""})
        assert [e.field for e in errors] == ["visible"]

    def test_disabled_field_never_reported(self):
        schema = FormSchema(id="f", title="F", sections=[FormSection(id="s", title="S", fields=[
            required_text("locked", disabled=True),
        ])])
        assert validate_all(schema, {}) == []

    def test_invisible_section_is_skipped(self, wizard):
        errors = validate_all(wizard, {"name": "Ann", "kind": "personal"})
        assert errors == []

    def test_conditional_field_validated_when_visible(self, wizard):
        values = {"name": "Ann", "kind": "personal", "rating": 1}
        errors = validate_all(wizard, values)
        assert [e.field for e in errors] == ["notes"]

    def test_is_form_valid(self, wizard):
        assert is_form_valid(wizard, {"name": "Ann", "kind": "personal"})
        assert not is_form_valid(wizard, {"kind": "personal"})

    def test_circular_conditionals_reported_once(self):
        schema = FormSchema(id="f", title="F", sections=[FormSection(id="s", title="S", fields=[
            required_text("a", conditional=equals("b", "x")),
            required_text("b", conditional=equals("a", "y")),
            required_text("c"),
        ])])
        errors = validate_all(schema, {"a": "y", "b": "x"})
        assert [e.field for e in errors] == ["a", "b", "c"]
        assert errors[0].type == ErrorType.CUSTOM
        assert "circular" in errors[0].message
        assert errors[2].type == ErrorType.REQUIRED

    def test_too_deep_field_keeps_cycle_errors(self):
        rule = ConditionalRule(field="leaf", operator=Operator.EQUALS, value="x")
        for _ in range(20):
            rule = ConditionalRule(field="node", rules=[rule])
        schema = FormSchema(id="f", title="F", sections=[FormSection(id="s", title="S", fields=[
            required_text("a", conditional=equals("b", "x")),
            required_text("b", conditional=equals("a", "y")),
            TextField(name="d", label="D", conditional=rule),
        ])])

        errors = validate_all(schema, {"a": "y", "b": "x"})

        assert [e.field for e in errors] == ["a", "b", "d"]
        assert all(e.type == ErrorType.CUSTOM for e in errors)
        assert "circular" in errors[0].message
        assert "circular" in errors[1].message
        assert "invalid conditional rule" in errors[2].message

    def test_values_are_not_mutated(self, wizard):
        values = {"name": "Ann", "kind": "business"}
        validate_all(wizard, values)
        assert values == {"name": "Ann", "kind": "business"}


class TestSections:
    def test_validate_section(self, wizard):
        errors = validate_section(wizard.sections[0], {"name": "Ann"})
        assert [e.field for e in errors] == ["kind"]

    def test_invisible_section_has_no_errors(self, wizard):
        assert validate_section(wizard.sections[1], {"kind": "personal"}) == []

    def test_is_section_visible(self, wizard):
        assert is_section_visible(wizard.sections[1], {"kind": "business"})
        assert not is_section_visible(wizard.sections[1], {})

    def test_visible_fields(self, wizard):
        names = [f.name for f in visible_fields(wizard, {"kind": "personal", "rating": 3})]
        assert names == ["name", "kind", "rating"]


class TestStepGating:
    def test_can_advance_when_section_valid(self, wizard):
        assert can_advance(wizard, {"name": "Ann", "kind": "business"}, 0)

    def test_cannot_advance_with_errors(self, wizard):
        assert not can_advance(wizard, {"name": "Ann"}, 0)

    def test_cannot_advance_past_last_step(self, wizard):
        assert not can_advance(wizard, {"name": "Ann", "kind": "x"}, 2)

    def test_jump_backwards_always_allowed(self, wizard):
        assert can_jump_to(wizard, {}, current_step=2, target_step=0)

    def test_jump_forward_requires_earlier_sections(self, wizard):
        values = {"name": "Ann", "kind": "business"}
        assert not can_jump_to(wizard, values, current_step=1, target_step=2)
        values["company"] = "Acme"
        assert can_jump_to(wizard, values, current_step=1, target_step=2)

    def test_jump_out_of_range(self, wizard):
        assert not can_jump_to(wizard, {}, current_step=0, target_step=7)
