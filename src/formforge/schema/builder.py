"""Fluent construction of form schemas.

Example:
    builder = SchemaBuilder("Contact Us")
    builder.add_section("About you") \\
        .add_text_field("firstName", "First Name", validation=StringRule(required=True)) \\
        .add_email_field("email", "Email")
    schema = builder.build()
"""

import copy
import uuid
from datetime import datetime, timezone
from typing import Any

from formforge.schema.types import (
    CheckboxField,
    ChoiceField,
    DateField,
    FieldSchema,
    FieldType,
    FormMetadata,
    FormSchema,
    FormSection,
    FormSettings,
    NumberField,
    SelectOption,
    TextField,
)


def _new_id() -> str:
    return str(uuid.uuid4())


class SectionBuilder:
    """Adds fields to one section. Every ``add_*`` method returns self."""

    def __init__(self, section: FormSection):
        self.section = section

    def add_field(self, field: FieldSchema) -> "SectionBuilder":
        if not field.id:
            field.id = _new_id()
        self.section.fields.append(field)
        return self

    def add_text_field(self, name: str, label: str, **options: Any) -> "SectionBuilder":
        return self.add_field(TextField(name=name, label=label, type=FieldType.TEXT, **options))

    def add_email_field(self, name: str, label: str, **options: Any) -> "SectionBuilder":
        return self.add_field(TextField(name=name, label=label, type=FieldType.EMAIL, **options))

    def add_textarea_field(self, name: str, label: str, **options: Any) -> "SectionBuilder":
        return self.add_field(TextField(name=name, label=label, type=FieldType.TEXTAREA, **options))

    def add_number_field(self, name: str, label: str, **options: Any) -> "SectionBuilder":
        return self.add_field(NumberField(name=name, label=label, **options))

    def add_date_field(self, name: str, label: str, **options: Any) -> "SectionBuilder":
        return self.add_field(DateField(name=name, label=label, **options))

    def add_select_field(
        self,
        name: str,
        label: str,
        options: list[SelectOption],
        **field_options: Any,
    ) -> "SectionBuilder":
        return self.add_field(ChoiceField(
            name=name, label=label, type=FieldType.SELECT, options=options, **field_options,
        ))

    def add_radio_field(
        self,
        name: str,
        label: str,
        options: list[SelectOption],
        **field_options: Any,
    ) -> "SectionBuilder":
        return self.add_field(ChoiceField(
            name=name, label=label, type=FieldType.RADIO, options=options, **field_options,
        ))

    def add_checkbox_field(
        self,
        name: str,
        label: str,
        options: list[SelectOption] | None = None,
        **field_options: Any,
    ) -> "SectionBuilder":
        return self.add_field(CheckboxField(name=name, label=label, options=options, **field_options))


class SchemaBuilder:
    """Builds a FormSchema section by section."""

    def __init__(self, title: str, description: str | None = None):
        now = datetime.now(timezone.utc).isoformat()
        self.schema = FormSchema(
            id=_new_id(),
            title=title,
            description=description,
            settings=FormSettings(),
            metadata=FormMetadata(created_at=now, updated_at=now),
        )

    def add_section(self, title: str, description: str | None = None, **options: Any) -> SectionBuilder:
        section = FormSection(id=_new_id(), title=title, description=description, **options)
        self.schema.sections.append(section)
        return SectionBuilder(section)

    def set_settings(self, **settings: Any) -> "SchemaBuilder":
        for key, value in settings.items():
            if not hasattr(self.schema.settings, key):
                raise ValueError(f"Unknown form setting '{key}'")
            setattr(self.schema.settings, key, value)
        return self

    def build(self) -> FormSchema:
        """Return the schema.

        Raises:
            ValueError: If no section was added
        """
        if not self.schema.sections:
            raise ValueError("Form must have at least one section")
        return self.schema


def create_select_options(values: list[str]) -> list[SelectOption]:
    """Build options from labels; values are lower-case, dash-separated."""
    return [
        SelectOption(value="-".join(label.lower().split()), label=label)
        for label in values
    ]


def clone_schema(schema: FormSchema) -> FormSchema:
    return copy.deepcopy(schema)


def merge_schemas(base: FormSchema, *others: FormSchema) -> FormSchema:
    """Copy of ``base`` with the sections of ``others`` appended."""
    merged = clone_schema(base)
    for other in others:
        merged.sections.extend(copy.deepcopy(other.sections))
    return merged
