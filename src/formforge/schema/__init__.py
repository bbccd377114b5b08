"""Form schema model, loading and fluent construction.

Structural checks live in ``formforge.schema.validator`` (it depends on the
validation package, so it is not imported here).
"""

from formforge.schema.builder import (
    SchemaBuilder,
    SectionBuilder,
    clone_schema,
    create_select_options,
    merge_schemas,
)
from formforge.schema.loader import SchemaLoader, SchemaLoadError, load_schema
from formforge.schema.types import (
    BaseField,
    BaseRule,
    CheckboxField,
    ChoiceField,
    ConditionalRule,
    DateField,
    DateRule,
    FieldSchema,
    FieldType,
    FormMetadata,
    FormSchema,
    FormSection,
    FormSettings,
    Logic,
    NumberField,
    NumberRule,
    Operator,
    SelectOption,
    SelectRule,
    StringFormat,
    StringRule,
    TextField,
)

__all__ = [
    # Types
    "BaseField",
    "BaseRule",
    "CheckboxField",
    "ChoiceField",
    "ConditionalRule",
    "DateField",
    "DateRule",
    "FieldSchema",
    "FieldType",
    "FormMetadata",
    "FormSchema",
    "FormSection",
    "FormSettings",
    "Logic",
    "NumberField",
    "NumberRule",
    "Operator",
    "SelectOption",
    "SelectRule",
    "StringFormat",
    "StringRule",
    "TextField",
    # Loader
    "SchemaLoadError",
    "SchemaLoader",
    "load_schema",
    # Builder
    "SchemaBuilder",
    "SectionBuilder",
    "clone_schema",
    "create_select_options",
    "merge_schemas",
]
