"""Form-level validation.

Applies the field compiler to every visible, enabled field of a form and
collects the errors in declaration order. Used to gate submission and
multi-step navigation. Everything here is synchronous and side-effect free.
"""

import logging
from collections.abc import Mapping
from typing import Any

from formforge.config import EngineSettings
from formforge.schema.types import FieldSchema, FormSchema, FormSection
from formforge.validation.compiler import validate_field
from formforge.validation.conditions import evaluate_visible, find_condition_cycles
from formforge.validation.types import ErrorType, ValidationError

logger = logging.getLogger(__name__)


def is_section_visible(
    section: FormSection,
    values: Mapping[str, Any],
    settings: EngineSettings | None = None,
) -> bool:
    return evaluate_visible(section.conditional, values, settings)


def visible_fields(
    schema: FormSchema,
    values: Mapping[str, Any],
    settings: EngineSettings | None = None,
) -> list[FieldSchema]:
    """Fields currently shown to the user, in declaration order."""
    result = []
    for section in schema.sections:
        if not is_section_visible(section, values, settings):
            continue
        for f in section.fields:
            if not f.hidden and evaluate_visible(f.conditional, values, settings):
                result.append(f)
    return result


def validate_section(
    section: FormSection,
    values: Mapping[str, Any],
    settings: EngineSettings | None = None,
    skip: set[str] | None = None,
) -> list[ValidationError]:
    """Validate the fields of one section.

    Args:
        section: Section to validate
        values: All current form values
        settings: Engine settings
        skip: Field names already reported (excluded from validation)

    Returns:
        One error per invalid field, in declaration order
    """
    if not is_section_visible(section, values, settings):
        return []

    errors: list[ValidationError] = []
    for f in section.fields:
        if skip and f.name in skip:
            continue
        error = validate_field(f, values.get(f.name), values, settings)
        if error is not None:
            errors.append(error)
    return errors


def _cycle_errors(
    schema: FormSchema,
    settings: EngineSettings | None,
) -> tuple[list[ValidationError], set[str]]:
    """Report fields whose visibility depends on themselves."""
    depth = (settings or EngineSettings()).max_condition_depth
    # Depth overruns are left out of the graph and reported by validate_field
    cyclic = find_condition_cycles(schema, depth)

    errors = []
    for name in cyclic:
        f = schema.get_field(name)
        if f is None or f.hidden or f.disabled:
            continue
        logger.warning("Field '%s' is part of a conditional dependency cycle", name)
        errors.append(ValidationError(
            field=name,
            message=f"{f.label} has a circular conditional rule",
            type=ErrorType.CUSTOM,
        ))
    return errors, set(cyclic)


def validate_all(
    schema: FormSchema,
    values: Mapping[str, Any],
    settings: EngineSettings | None = None,
) -> list[ValidationError]:
    """Validate every field of a form.

    Hidden, disabled and conditionally invisible fields (or fields in an
    invisible section) are skipped, so they never block submission. Fields
    caught in a conditional dependency cycle get one ``custom`` error each.

    Returns:
        Errors in field declaration order (not sorted)
    """
    errors, cyclic = _cycle_errors(schema, settings)
    for section in schema.sections:
        errors.extend(validate_section(section, values, settings, skip=cyclic))
    return _declaration_order(schema, errors)


def _declaration_order(
    schema: FormSchema,
    errors: list[ValidationError],
) -> list[ValidationError]:
    position = {f.name: i for i, f in enumerate(schema.fields())}
    return sorted(errors, key=lambda e: position.get(e.field, len(position)))


def is_form_valid(
    schema: FormSchema,
    values: Mapping[str, Any],
    settings: EngineSettings | None = None,
) -> bool:
    return not validate_all(schema, values, settings)


def can_advance(
    schema: FormSchema,
    values: Mapping[str, Any],
    current_step: int,
    settings: EngineSettings | None = None,
) -> bool:
    """Check whether a multi-step form may move past ``current_step``.

    The current section must be valid and a later step must exist.
    """
    if current_step < 0 or current_step >= len(schema.sections) - 1:
        return False
    return not validate_section(schema.sections[current_step], values, settings)


def can_jump_to(
    schema: FormSchema,
    values: Mapping[str, Any],
    current_step: int,
    target_step: int,
    settings: EngineSettings | None = None,
) -> bool:
    """Check whether a multi-step form may jump to ``target_step``.

    Every section before the target, up to and including the current one,
    must be valid. Jumping backwards is always allowed.
    """
    if target_step < 0 or target_step >= len(schema.sections):
        return False

    last_checked = min(target_step - 1, current_step)
    for index in range(last_checked + 1):
        if validate_section(schema.sections[index], values, settings):
            return False
    return True
