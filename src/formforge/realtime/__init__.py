"""Real-time validation for interactive hosts.

Usage:
    from formforge.realtime import FormState, create_real_time_validation

    form = FormState.for_schema(schema)
    email = create_real_time_validation(schema.get_field("email"), form)
"""

from formforge.realtime.controller import (
    RealTimeValidation,
    ValidationOptions,
    create_real_time_validation,
)
from formforge.realtime.form import FormValidationController, FormValidationState
from formforge.realtime.state import FormEvent, FormEventKind, FormState

__all__ = [
    "FormEvent",
    "FormEventKind",
    "FormState",
    "FormValidationController",
    "FormValidationState",
    "RealTimeValidation",
    "ValidationOptions",
    "create_real_time_validation",
]
