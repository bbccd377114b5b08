"""
schema/validator.py — structural and semantic checks for form schema documents.

Two passes:
1. JSON Schema (Draft 2020-12) validation of the raw document
2. Semantic checks on the resolved FormSchema: titles, unique field names,
   labels, options for choice fields, conditionals pointing at unknown
   fields and conditional dependency cycles

Usage:
    from formforge.schema.validator import check_schema_file

    for issue in check_schema_file(Path("forms/contact.yaml")):
        print(issue)

PyYAML quirk: unquoted ISO dates (``minDate: 2024-01-01``) load as ``date``
objects. They are converted back to strings before schema validation.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import date
from functools import lru_cache
from pathlib import Path
from typing import Any

from jsonschema import Draft202012Validator
from jsonschema.exceptions import ValidationError

from formforge.schema.loader import SchemaLoader, SchemaLoadError, read_document
from formforge.schema.types import ChoiceField, FormSchema
from formforge.validation.conditions import (
    ConditionError,
    find_condition_cycles,
    referenced_fields,
)

logger = logging.getLogger(__name__)

_SCHEMA_PATH = Path(__file__).parent / "schemas" / "form.schema.json"


# ---------------------------------------------------------------------------
# Public data types
# ---------------------------------------------------------------------------


@dataclass
class SchemaIssue:
    """A single finding for a form schema document."""

    message: str
    path: str = ""          # location within the document, e.g. "sections[0]/fields[2]"
    severity: str = "error" # "error" | "warning"

    def __str__(self) -> str:
        loc = f" at {self.path}" if self.path else ""
        return f"[{self.severity.upper()}]{loc}: {self.message}"


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


@lru_cache(maxsize=1)
def _load_validator() -> Draft202012Validator:
    with _SCHEMA_PATH.open() as fh:
        schema = json.load(fh)
    return Draft202012Validator(schema)


def _preprocess_dates(obj: Any) -> Any:
    """Recursively convert ``date``/``datetime`` values to ISO strings."""
    if isinstance(obj, dict):
        return {k: _preprocess_dates(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_preprocess_dates(item) for item in obj]
    if isinstance(obj, date):
        return obj.isoformat()
    return obj


def _json_path(error: ValidationError) -> str:
    """Convert a jsonschema error path to a readable string."""
    parts = []
    for p in error.absolute_path:
        if isinstance(p, int):
            parts.append(f"[{p}]")
        else:
            parts.append(str(p))
    return "/".join(parts).replace("/[", "[")


def _semantic_issues(schema: FormSchema) -> list[SchemaIssue]:
    issues: list[SchemaIssue] = []

    if not schema.title or not schema.title.strip():
        issues.append(SchemaIssue(message="Form title is required", path="title"))

    if not schema.sections:
        issues.append(SchemaIssue(message="Form must have at least one section", path="sections"))

    known = {f.name for f in schema.fields()}
    seen: set[str] = set()

    for s_index, section in enumerate(schema.sections):
        s_path = f"sections[{s_index}]"
        if not section.title or not section.title.strip():
            issues.append(SchemaIssue(
                message=f"Section {s_index + 1} must have a title", path=s_path,
            ))
        if not section.fields:
            issues.append(SchemaIssue(
                message=f'Section "{section.title}" must have at least one field', path=s_path,
            ))

        issues.extend(_unknown_references(section.conditional, known, f"{s_path}/conditional"))

        for f_index, f in enumerate(section.fields):
            f_path = f"{s_path}/fields[{f_index}]"
            if not f.name or not f.name.strip():
                issues.append(SchemaIssue(
                    message=f'Field {f_index + 1} in section "{section.title}" must have a name',
                    path=f_path,
                ))
            elif f.name in seen:
                issues.append(SchemaIssue(
                    message=f'Duplicate field name "{f.name}"', path=f_path,
                ))
            seen.add(f.name)

            if not f.label or not f.label.strip():
                issues.append(SchemaIssue(message=f'Field "{f.name}" must have a label', path=f_path))

            if isinstance(f, ChoiceField) and not f.options:
                issues.append(SchemaIssue(
                    message=f'Field "{f.name}" of type {f.type.value} must have options',
                    path=f_path,
                ))

            issues.extend(_unknown_references(f.conditional, known, f"{f_path}/conditional"))

    for name in find_condition_cycles(schema):
        issues.append(SchemaIssue(
            message=f'Field "{name}" has a conditional that depends on itself',
            path=name,
        ))

    return issues


def _unknown_references(rule, known: set[str], path: str) -> list[SchemaIssue]:
    try:
        names = referenced_fields(rule)
    except ConditionError as e:
        return [SchemaIssue(message=str(e), path=path)]
    return [
        SchemaIssue(
            message=f'Conditional references unknown field "{name}"',
            path=path,
            severity="warning",
        )
        for name in names
        if name not in known
    ]


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def check_schema(data: Any, *, strict: bool = False) -> list[SchemaIssue]:
    """
    Check a raw schema document (as loaded from YAML/JSON).

    Args:
        data:   The parsed document.
        strict: If ``True``, warnings are escalated to errors.

    Returns:
        A list of :class:`SchemaIssue` objects (empty on success). Semantic
        checks only run when the structural pass finds no errors.
    """
    if data is None:
        return [SchemaIssue(message="Schema document is empty")]

    try:
        doc = _preprocess_dates(data)
    except RecursionError:
        return [SchemaIssue(message="Schema document contains itself (recursive alias)")]

    issues = [
        SchemaIssue(message=error.message, path=_json_path(error))
        for error in sorted(_load_validator().iter_errors(doc), key=_json_path)
    ]

    if not issues:
        try:
            schema = SchemaLoader().from_dict(doc)
        except SchemaLoadError as e:
            issues.append(SchemaIssue(message=str(e)))
        else:
            issues.extend(_semantic_issues(schema))

    if strict:
        for issue in issues:
            issue.severity = "error"

    for issue in issues:
        logger.debug("Schema issue: %s", issue)
    return issues


def check_schema_file(path: Path, *, strict: bool = False) -> list[SchemaIssue]:
    """Parse a YAML/JSON file and check it. Parse failures become issues."""
    try:
        data = read_document(path)
    except (OSError, SchemaLoadError) as e:
        return [SchemaIssue(message=str(e), path=str(path))]
    return check_schema(data, strict=strict)


def check_form(schema: FormSchema) -> list[SchemaIssue]:
    """Run the semantic checks on an already resolved FormSchema."""
    return _semantic_issues(schema)
