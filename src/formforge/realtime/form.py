"""Form-level validation for hosts that submit or step through a form."""

import asyncio
import logging
from dataclasses import dataclass, field

from formforge.config import EngineSettings
from formforge.realtime.state import FormState
from formforge.schema.types import FormSchema, FormSection
from formforge.validation.form import (
    can_advance,
    can_jump_to,
    validate_all,
)
from formforge.validation.form import validate_section as validate_section_values
from formforge.validation.types import ErrorType, ValidationError

logger = logging.getLogger(__name__)


@dataclass
class FormValidationState:
    is_validating: bool = False
    errors: list[ValidationError] = field(default_factory=list)
    is_valid: bool = True


class FormValidationController:
    """Validates the whole form (or one section) against a FormState.

    Any unexpected failure is reported as a single ``custom`` error on the
    pseudo-field ``form`` rather than raised.
    """

    FORM_FIELD = "form"

    def __init__(
        self,
        schema: FormSchema,
        form: FormState,
        settings: EngineSettings | None = None,
    ):
        self.schema = schema
        self.form = form
        self.settings = settings or EngineSettings()
        self.state = FormValidationState()

    async def validate_form(self) -> FormValidationState:
        return await self._run(
            lambda: validate_all(self.schema, self.form.values, self.settings),
            "Form validation failed",
        )

    async def validate_section(self, section: FormSection | int) -> FormValidationState:
        if isinstance(section, int):
            section = self.schema.sections[section]
        return await self._run(
            lambda: validate_section_values(section, self.form.values, self.settings),
            "Section validation failed",
        )

    def can_advance(self, current_step: int) -> bool:
        return can_advance(self.schema, self.form.values, current_step, self.settings)

    def can_jump_to(self, current_step: int, target_step: int) -> bool:
        return can_jump_to(
            self.schema, self.form.values, current_step, target_step, self.settings,
        )

    def get_field_error(self, name: str) -> ValidationError | None:
        for error in self.state.errors:
            if error.field == name:
                return error
        return None

    def clear_errors(self) -> None:
        self.state = FormValidationState()

    async def _run(self, validate, failure_message: str) -> FormValidationState:
        self.state.is_validating = True
        try:
            await asyncio.sleep(0)
            errors = validate()
        except Exception:
            logger.exception("Form '%s': %s", self.schema.id, failure_message)
            errors = [ValidationError(
                field=self.FORM_FIELD,
                message=failure_message,
                type=ErrorType.CUSTOM,
            )]

        self.state = FormValidationState(
            is_validating=False,
            errors=errors,
            is_valid=not errors,
        )
        return self.state
