"""Human-readable descriptions of field rules and values.

- describe_rules: constraint summary shown next to a field
- display_value: presentation of a stored value (option labels, Yes/No, units)
"""

from datetime import date, datetime
from typing import Any

from formforge.schema.types import (
    CheckboxField,
    ChoiceField,
    DateField,
    FieldSchema,
    FieldType,
    NumberField,
    SelectOption,
    StringRule,
    StringFormat,
    TextField,
)
from formforge.validation.compiler import parse_instant


def _number(value: float) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _date_text(value: str) -> str:
    try:
        return parse_instant(value).date().isoformat()
    except ValueError:
        return value


def describe_rules(field: FieldSchema) -> list[str]:
    """List the constraints of a field as short sentences."""
    rules: list[str] = []

    if field.rule.required:
        rules.append("Required field")

    if isinstance(field, TextField):
        v = field.validation or StringRule()
        if v.min_length:
            rules.append(f"Minimum {v.min_length} characters")
        if v.max_length:
            rules.append(f"Maximum {v.max_length} characters")
        if v.pattern:
            rules.append("Must match required pattern")
        if field.type == FieldType.EMAIL or v.format == StringFormat.EMAIL:
            rules.append("Must be a valid email address")
        if v.format == StringFormat.URL:
            rules.append("Must be a valid URL")
        if v.format == StringFormat.PHONE:
            rules.append("Must be a valid phone number")

    elif isinstance(field, NumberField) and field.validation:
        v = field.validation
        if v.min is not None:
            rules.append(f"Minimum value: {_number(v.min)}")
        if v.max is not None:
            rules.append(f"Maximum value: {_number(v.max)}")
        if v.integer:
            rules.append("Must be a whole number")

    elif isinstance(field, DateField) and field.validation:
        v = field.validation
        if v.min_date:
            rules.append(f"Earliest date: {_date_text(v.min_date)}")
        if v.max_date:
            rules.append(f"Latest date: {_date_text(v.max_date)}")

    elif isinstance(field, ChoiceField) and field.validation:
        v = field.validation
        if v.min_items:
            rules.append(f"Select at least {v.min_items} option(s)")
        if v.max_items:
            rules.append(f"Select at most {v.max_items} option(s)")

    return rules


def _option_label(options: list[SelectOption] | None, value: Any) -> str:
    for option in options or []:
        if option.value == value:
            return option.label
    return str(value)


def display_value(field: FieldSchema, value: Any) -> str:
    """Format a field value for display."""
    if value is None or value == "":
        return ""

    if isinstance(field, DateField):
        if isinstance(value, datetime):
            return value.strftime("%Y-%m-%d %H:%M") if field.show_time else value.date().isoformat()
        if isinstance(value, date):
            return value.isoformat()
        if isinstance(value, str):
            try:
                return parse_instant(value).date().isoformat()
            except ValueError:
                return value
        return str(value)

    if isinstance(field, ChoiceField):
        if isinstance(value, list):
            return ", ".join(_option_label(field.options, v) for v in value)
        return _option_label(field.options, value)

    if isinstance(field, CheckboxField):
        if field.options is not None and isinstance(value, list):
            return ", ".join(_option_label(field.options, v) for v in value)
        return "Yes" if value else "No"

    if isinstance(field, NumberField):
        text = _number(value) if isinstance(value, float) else str(value)
        if field.prefix:
            text = field.prefix + text
        if field.suffix:
            text += field.suffix
        if field.unit:
            text += " " + field.unit
        return text

    return str(value)
