"""Form schema types.

A form schema is a tree of sections holding field definitions. Each field
kind is its own dataclass so that compilers can dispatch on the class:
- TextField: text, email, textarea
- NumberField: number
- DateField: date
- ChoiceField: select, radio
- CheckboxField: checkbox (single boolean or option group)

Schemas are read-only once loaded; only the schema builder creates them.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union


class FieldType(Enum):
    TEXT = "text"
    EMAIL = "email"
    TEXTAREA = "textarea"
    NUMBER = "number"
    DATE = "date"
    SELECT = "select"
    RADIO = "radio"
    CHECKBOX = "checkbox"


class Operator(Enum):
    """Comparison operators available in conditional rules."""

    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    GREATER_THAN = "greater_than"
    LESS_THAN = "less_than"
    CONTAINS = "contains"
    NOT_CONTAINS = "not_contains"


class Logic(Enum):
    AND = "and"
    OR = "or"


class StringFormat(Enum):
    EMAIL = "email"
    URL = "url"
    PHONE = "phone"


# =============================================================================
# Validation Rules
# =============================================================================


@dataclass(frozen=True)
class BaseRule:
    """Constraints shared by every field kind.

    Attributes:
        required: Field must hold a non-empty value
        message: Custom message used instead of every generated default
    """

    required: bool = False
    message: str | None = None


@dataclass(frozen=True)
class StringRule(BaseRule):
    min_length: int | None = None
    max_length: int | None = None
    pattern: str | None = None
    format: StringFormat | None = None


@dataclass(frozen=True)
class NumberRule(BaseRule):
    min: float | None = None
    max: float | None = None
    step: float | None = None
    integer: bool = False


@dataclass(frozen=True)
class DateRule(BaseRule):
    # ISO 8601 strings, compared as instants
    min_date: str | None = None
    max_date: str | None = None


@dataclass(frozen=True)
class SelectRule(BaseRule):
    min_items: int | None = None
    max_items: int | None = None


ValidationRule = Union[BaseRule, StringRule, NumberRule, DateRule, SelectRule]


# =============================================================================
# Conditional Rules
# =============================================================================


@dataclass
class ConditionalRule:
    """Visibility condition over other field values.

    The rule compares ``values[field]`` against ``value`` with ``operator``,
    then combines that result with every nested rule using ``logic``.

    Attributes:
        field: Name of the field whose value is compared
        operator: Comparison to apply; None means "no comparison"
        value: Right-hand operand
        rules: Nested rules evaluated against the same values
        logic: How nested results are combined with the comparison
    """

    field: str
    operator: Operator | None = None
    value: Any = None
    rules: list[ConditionalRule] = field(default_factory=list)
    logic: Logic = Logic.AND


# =============================================================================
# Fields
# =============================================================================


@dataclass(frozen=True)
class SelectOption:
    value: str
    label: str
    disabled: bool = False


@dataclass
class BaseField:
    """Attributes shared by every field kind.

    ``name`` is the field identity and the key used in form values.
    """

    name: str
    label: str
    type: FieldType
    id: str = ""
    description: str | None = None
    placeholder: str | None = None
    default_value: Any = None
    hidden: bool = False
    disabled: bool = False
    readonly: bool = False
    order: int | None = None
    conditional: ConditionalRule | None = None

    @property
    def rule(self) -> BaseRule:
        """The field's validation rule, or an empty rule."""
        validation = getattr(self, "validation", None)
        return validation if validation is not None else BaseRule()


@dataclass
class TextField(BaseField):
    type: FieldType = FieldType.TEXT
    validation: StringRule | None = None
    rows: int | None = None


@dataclass
class NumberField(BaseField):
    type: FieldType = FieldType.NUMBER
    validation: NumberRule | None = None
    unit: str | None = None
    prefix: str | None = None
    suffix: str | None = None


@dataclass
class DateField(BaseField):
    type: FieldType = FieldType.DATE
    validation: DateRule | None = None
    show_time: bool = False


@dataclass
class ChoiceField(BaseField):
    type: FieldType = FieldType.SELECT
    validation: SelectRule | None = None
    options: list[SelectOption] = field(default_factory=list)
    multiple: bool = False


@dataclass
class CheckboxField(BaseField):
    type: FieldType = FieldType.CHECKBOX
    validation: BaseRule | None = None
    options: list[SelectOption] | None = None


FieldSchema = Union[TextField, NumberField, DateField, ChoiceField, CheckboxField]

# Field kind for each declared type
FIELD_CLASSES: dict[FieldType, type] = {
    FieldType.TEXT: TextField,
    FieldType.EMAIL: TextField,
    FieldType.TEXTAREA: TextField,
    FieldType.NUMBER: NumberField,
    FieldType.DATE: DateField,
    FieldType.SELECT: ChoiceField,
    FieldType.RADIO: ChoiceField,
    FieldType.CHECKBOX: CheckboxField,
}


# =============================================================================
# Sections and Forms
# =============================================================================


@dataclass
class FormSection:
    id: str
    title: str
    description: str | None = None
    fields: list[FieldSchema] = field(default_factory=list)
    collapsible: bool = False
    collapsed: bool = False
    conditional: ConditionalRule | None = None


@dataclass
class FormSettings:
    multi_step: bool = False
    show_progress: bool = False
    allow_drafts: bool = False
    submit_button_text: str = "Submit"
    reset_button_text: str = "Reset"


@dataclass
class FormMetadata:
    created_at: str | None = None
    updated_at: str | None = None
    created_by: str | None = None
    version: str = "1.0.0"
    tags: list[str] = field(default_factory=list)
    category: str | None = None
    status: str = "draft"  # "draft" | "published" | "archived"


@dataclass
class FormSchema:
    id: str
    title: str
    sections: list[FormSection] = field(default_factory=list)
    description: str | None = None
    version: str = "1.0.0"
    settings: FormSettings = field(default_factory=FormSettings)
    metadata: FormMetadata = field(default_factory=FormMetadata)

    def fields(self) -> Iterator[FieldSchema]:
        """Yield every field in declaration order."""
        for section in self.sections:
            yield from section.fields

    def get_field(self, name: str) -> FieldSchema | None:
        for f in self.fields():
            if f.name == name:
                return f
        return None

    @property
    def is_multi_step(self) -> bool:
        return self.settings.multi_step and len(self.sections) > 1
