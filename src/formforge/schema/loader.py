"""Load form schemas from dicts, YAML or JSON files.

Stored schemas use camelCase keys (``minLength``, ``defaultValue``); the
loader resolves them into the dataclasses in ``formforge.schema.types``.
"""

import json
import logging
from pathlib import Path
from typing import Any

import yaml

from formforge.schema.types import (
    FIELD_CLASSES,
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

logger = logging.getLogger(__name__)


class SchemaLoadError(ValueError):
    """A schema document cannot be turned into a FormSchema."""
    pass


class SchemaLoader:
    """Resolves schema documents into FormSchema objects.

    Example:
        schema = SchemaLoader().load_file(Path("forms/contact.yaml"))
    """

    def load_file(self, path: Path) -> FormSchema:
        """Load a schema from a ``.yaml``/``.yml`` or ``.json`` file."""
        return self.from_dict(read_document(path))

    def from_dict(self, data: dict[str, Any]) -> FormSchema:
        """Resolve a schema document.

        Raises:
            SchemaLoadError: If required keys are missing or values are invalid
        """
        if not isinstance(data, dict):
            raise SchemaLoadError("Schema document must be a mapping")

        try:
            sections = [
                self._resolve_section(s, index)
                for index, s in enumerate(data.get("sections") or [])
            ]
            return FormSchema(
                id=str(data.get("id", "")),
                title=data.get("title", ""),
                description=data.get("description"),
                version=str(data.get("version", "1.0.0")),
                sections=sections,
                settings=self._resolve_settings(data.get("settings") or {}),
                metadata=self._resolve_metadata(data.get("metadata") or {}),
            )
        except (KeyError, TypeError, ValueError) as e:
            if isinstance(e, SchemaLoadError):
                raise
            raise SchemaLoadError(f"Invalid schema document: {e}") from e

    def _resolve_section(self, data: dict, index: int) -> FormSection:
        return FormSection(
            id=str(data.get("id", f"section-{index + 1}")),
            title=data.get("title", ""),
            description=data.get("description"),
            fields=[self.resolve_field(f) for f in data.get("fields") or []],
            collapsible=data.get("collapsible", False),
            collapsed=data.get("collapsed", False),
            conditional=self.resolve_conditional(data.get("conditional")),
        )

    def _resolve_settings(self, data: dict) -> FormSettings:
        return FormSettings(
            multi_step=data.get("multiStep", False),
            show_progress=data.get("showProgress", False),
            allow_drafts=data.get("allowDrafts", False),
            submit_button_text=data.get("submitButtonText", "Submit"),
            reset_button_text=data.get("resetButtonText", "Reset"),
        )

    def _resolve_metadata(self, data: dict) -> FormMetadata:
        return FormMetadata(
            created_at=data.get("createdAt"),
            updated_at=data.get("updatedAt"),
            created_by=data.get("createdBy"),
            version=str(data.get("version", "1.0.0")),
            tags=list(data.get("tags") or []),
            category=data.get("category"),
            status=data.get("status", "draft"),
        )

    def resolve_field(self, data: dict) -> FieldSchema:
        """Convert a field dict into the matching field dataclass."""
        name = data["name"]
        type_name = data.get("type", "text")
        try:
            field_type = FieldType(type_name)
        except ValueError:
            raise SchemaLoadError(f"Field '{name}' has unknown type '{type_name}'") from None

        common: dict[str, Any] = {
            "name": name,
            "label": data["label"] if data.get("label") is not None else _to_display_name(name),
            "type": field_type,
            "id": str(data.get("id", name)),
            "description": data.get("description"),
            "placeholder": data.get("placeholder"),
            "default_value": data.get("defaultValue"),
            "hidden": data.get("hidden", False),
            "disabled": data.get("disabled", False),
            "readonly": data.get("readonly", False),
            "order": data.get("order"),
            "conditional": self.resolve_conditional(data.get("conditional")),
        }
        validation = data.get("validation") or {}
        field_class = FIELD_CLASSES[field_type]

        if field_class is TextField:
            return TextField(
                **common,
                validation=self._string_rule(validation) if validation else None,
                rows=data.get("rows"),
            )
        if field_class is NumberField:
            return NumberField(
                **common,
                validation=self._number_rule(validation) if validation else None,
                unit=data.get("unit"),
                prefix=data.get("prefix"),
                suffix=data.get("suffix"),
            )
        if field_class is DateField:
            return DateField(
                **common,
                validation=self._date_rule(validation) if validation else None,
                show_time=data.get("showTime", False),
            )
        if field_class is ChoiceField:
            return ChoiceField(
                **common,
                validation=self._select_rule(validation) if validation else None,
                options=self._resolve_options(data.get("options")) or [],
                multiple=data.get("multiple", False),
            )
        return CheckboxField(
            **common,
            validation=self._base_rule(validation) if validation else None,
            options=self._resolve_options(data.get("options")),
        )

    def _resolve_options(self, data: list | None) -> list[SelectOption] | None:
        """Accept ``{value, label}`` dicts or bare strings."""
        if data is None:
            return None
        options = []
        for item in data:
            if isinstance(item, dict):
                value = str(item["value"])
                options.append(SelectOption(
                    value=value,
                    label=item.get("label", value),
                    disabled=item.get("disabled", False),
                ))
            else:
                options.append(SelectOption(value=str(item), label=str(item)))
        return options

    def resolve_conditional(
        self,
        data: dict | None,
        _resolved: dict[int, ConditionalRule] | None = None,
    ) -> ConditionalRule | None:
        """Convert a conditional dict (and its nested rules) to ConditionalRule.

        A document that nests a rule inside itself (possible with YAML
        anchors) resolves to a cyclic rule tree; the evaluator's depth limit
        reports it instead of the loader recursing forever.
        """
        if not data:
            return None

        resolved = _resolved if _resolved is not None else {}
        if id(data) in resolved:
            return resolved[id(data)]

        operator_name = data.get("operator")
        operator = None
        if operator_name is not None:
            try:
                operator = Operator(operator_name)
            except ValueError:
                # Unknown operators behave like an unset operator
                logger.warning(
                    "Unknown conditional operator '%s' on field '%s'",
                    operator_name,
                    data.get("field"),
                )

        logic_name = data.get("logic", "and")
        try:
            logic = Logic(logic_name)
        except ValueError:
            raise SchemaLoadError(f"Unknown conditional logic '{logic_name}'") from None

        rule = ConditionalRule(
            field=data["field"],
            operator=operator,
            value=data.get("value"),
            logic=logic,
        )
        resolved[id(data)] = rule
        rule.rules = [
            self.resolve_conditional(r, resolved) for r in data.get("rules") or [] if r
        ]
        return rule

    def _base_rule(self, data: dict) -> BaseRule:
        return BaseRule(required=data.get("required", False), message=data.get("message"))

    def _string_rule(self, data: dict) -> StringRule:
        fmt = data.get("format")
        return StringRule(
            required=data.get("required", False),
            message=data.get("message"),
            min_length=data.get("minLength"),
            max_length=data.get("maxLength"),
            pattern=data.get("pattern"),
            format=StringFormat(fmt) if fmt else None,
        )

    def _number_rule(self, data: dict) -> NumberRule:
        return NumberRule(
            required=data.get("required", False),
            message=data.get("message"),
            min=data.get("min"),
            max=data.get("max"),
            step=data.get("step"),
            integer=data.get("integer", False),
        )

    def _date_rule(self, data: dict) -> DateRule:
        return DateRule(
            required=data.get("required", False),
            message=data.get("message"),
            min_date=_date_text(data.get("minDate")),
            max_date=_date_text(data.get("maxDate")),
        )

    def _select_rule(self, data: dict) -> SelectRule:
        return SelectRule(
            required=data.get("required", False),
            message=data.get("message"),
            min_items=data.get("minItems"),
            max_items=data.get("maxItems"),
        )


def _date_text(value: Any) -> str | None:
    # PyYAML turns unquoted ISO dates into date objects
    if value is None:
        return None
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return str(value)


def read_document(path: Path) -> Any:
    """Read a YAML or JSON document from disk.

    Raises:
        SchemaLoadError: If the file cannot be parsed
    """
    try:
        with open(path) as f:
            if path.suffix.lower() == ".json":
                return json.load(f)
            return yaml.safe_load(f)
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise SchemaLoadError(f"Cannot parse {path}: {e}") from e


def load_schema(path: Path) -> FormSchema:
    """Shortcut for ``SchemaLoader().load_file(path)``."""
    return SchemaLoader().load_file(path)


def _to_display_name(name: str) -> str:
    """Convert camelCase to Title Case."""
    result = []
    for i, char in enumerate(name):
        if char.isupper() and i > 0:
            result.append(" ")
        result.append(char)
    return "".join(result).title()
