"""Validation engine for formforge.

This module provides:
- Rule evaluator: nested show/hide conditions against live values
- Field compiler: executable validators built from field definitions
- Form aggregator: whole-form and per-section validation, step gating
- Descriptions: human-readable rule lists and display values
"""

from formforge.validation.compiler import (
    CompiledValidator,
    coerce_input,
    compile_field,
    is_field_active,
    validate_field,
)
from formforge.validation.conditions import (
    ConditionDepthError,
    ConditionError,
    evaluate,
    evaluate_visible,
    find_condition_cycles,
    referenced_fields,
)
from formforge.validation.describe import describe_rules, display_value
from formforge.validation.form import (
    can_advance,
    can_jump_to,
    is_form_valid,
    is_section_visible,
    validate_all,
    validate_section,
    visible_fields,
)
from formforge.validation.types import (
    ErrorType,
    FieldStatus,
    ParseResult,
    ValidationError,
    ValidationState,
)

__all__ = [
    # Types
    "ErrorType",
    "FieldStatus",
    "ParseResult",
    "ValidationError",
    "ValidationState",
    # Conditions
    "ConditionDepthError",
    "ConditionError",
    "evaluate",
    "evaluate_visible",
    "find_condition_cycles",
    "referenced_fields",
    # Compiler
    "CompiledValidator",
    "coerce_input",
    "compile_field",
    "is_field_active",
    "validate_field",
    # Form
    "can_advance",
    "can_jump_to",
    "is_form_valid",
    "is_section_visible",
    "validate_all",
    "validate_section",
    "visible_fields",
    # Descriptions
    "describe_rules",
    "display_value",
]
