"""Real-time validation of a single field.

A RealTimeValidation follows one field of a FormState and keeps its
ValidationState current:

- value change (field already touched, ``validate_on_change``): validation
  runs after the debounce interval; every new change cancels the pending
  timer, so a burst of keystrokes produces one validation of the final value
- blur (``validate_on_blur``): validation runs immediately
- form reset: state returns to idle and pending work is dropped

Touched and dirty flags follow the FormState. A value change that does not
schedule a validation still supersedes any request in flight.

Every request gets a sequence number when it is issued. A result is only
committed if no newer request was issued in the meantime; an in-flight
validator call is never cancelled, its stale result is discarded instead.

Usage:
    form = FormState.for_schema(schema)
    email = create_real_time_validation(schema.get_field("email"), form)
    form.mark_touched("email")
    form.set_value("email", "a@b")      # debounced
    await email.on_blur()               # immediate
    print(email.state.error_message)
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from typing import Any

from formforge.config import DEFAULT_DEBOUNCE_MS, EngineSettings
from formforge.realtime.state import FormEvent, FormEventKind, FormState
from formforge.schema.types import FieldSchema
from formforge.validation.compiler import validate_field
from formforge.validation.types import (
    ErrorType,
    FieldStatus,
    ValidationError,
    ValidationState,
)

logger = logging.getLogger(__name__)

AsyncValidator = Callable[
    [FieldSchema, Any, Mapping[str, Any]],
    Awaitable[ValidationError | None],
]


@dataclass(frozen=True)
class ValidationOptions:
    """Triggers and timing for real-time validation.

    Attributes:
        validate_on_change: Validate (debounced) when a touched field changes
        validate_on_blur: Validate immediately on blur
        debounce_ms: Quiet interval before a change-triggered validation
        validator: Async ``(field, value, values)`` callable; defaults to the
            compiled field validator
    """

    validate_on_change: bool = True
    validate_on_blur: bool = True
    debounce_ms: int = DEFAULT_DEBOUNCE_MS
    validator: AsyncValidator | None = None

    @classmethod
    def from_settings(cls, settings: EngineSettings) -> "ValidationOptions":
        return cls(
            validate_on_change=settings.validate_on_change,
            validate_on_blur=settings.validate_on_blur,
            debounce_ms=settings.debounce_ms,
        )


class RealTimeValidation:
    """Validation lifecycle for one mounted field."""

    def __init__(
        self,
        field: FieldSchema,
        form: FormState,
        options: ValidationOptions | None = None,
        settings: EngineSettings | None = None,
    ):
        self.field = field
        self.form = form
        self.settings = settings or EngineSettings()
        self.options = options or ValidationOptions.from_settings(self.settings)
        self.state = ValidationState(
            is_dirty=form.is_dirty(field.name),
            is_touched=form.is_touched(field.name),
        )

        self._validator = self.options.validator or self._compiled_validator
        self._sequence = 0
        self._handle: asyncio.TimerHandle | None = None
        self._tasks: set[asyncio.Task] = set()
        self._closed = False
        self._unsubscribe = form.subscribe(self._on_form_event)

    # -------------------------------------------------------------------------
    # Host triggers
    # -------------------------------------------------------------------------

    def on_blur(self) -> "asyncio.Task[ValidationState] | None":
        """Mark the field touched and, if enabled, validate right away.

        Returns:
            The validation task, or None if blur validation is disabled
        """
        self.form.mark_touched(self.field.name)
        self.state.is_touched = True
        if not self.options.validate_on_blur or self._closed:
            return None
        self._cancel_timer()
        return self._start(self._next_sequence())

    async def trigger_validate(self) -> ValidationState:
        """Validate the current value now, whatever the trigger options say.

        After ``close()`` the current state is returned unchanged.
        """
        if self._closed:
            return self.state
        self.form.mark_touched(self.field.name)
        self.state.is_touched = True
        self._cancel_timer()
        return await self._start(self._next_sequence())

    def reset(self) -> None:
        """Return to the initial idle state and drop pending work."""
        self._cancel_timer()
        # In-flight results become stale
        self._next_sequence()
        self.state = ValidationState(
            is_dirty=self.form.is_dirty(self.field.name),
            is_touched=self.form.is_touched(self.field.name),
        )

    def close(self) -> None:
        """Stop following the form (the field was unmounted)."""
        self._closed = True
        self._cancel_timer()
        self._next_sequence()
        self._unsubscribe()

    async def wait_idle(self) -> ValidationState:
        """Wait until no timer is pending and no validation is in flight."""
        loop = asyncio.get_running_loop()
        while self._handle is not None or self._tasks:
            if self._tasks:
                await asyncio.gather(*self._tasks, return_exceptions=True)
            else:
                await asyncio.sleep(max(0.0, self._handle.when() - loop.time()))
        return self.state

    @property
    def is_pending(self) -> bool:
        return self._handle is not None

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _on_form_event(self, event: FormEvent) -> None:
        if event.kind is FormEventKind.RESET:
            self.reset()
            return
        if event.name != self.field.name:
            return

        self.state.is_touched = self.form.is_touched(self.field.name)
        if event.kind is FormEventKind.TOUCH:
            return

        self.state.is_dirty = self.form.is_dirty(self.field.name)
        # Any new value supersedes requests issued for the previous one
        sequence = self._next_sequence()
        if self.options.validate_on_change and self.state.is_touched:
            self._schedule(sequence)
        elif self.state.is_validating:
            self._cancel_timer()
            self.state.is_validating = False
            self.state.error = None
            self.state.is_valid = True
            self._transition(FieldStatus.IDLE)

    def _next_sequence(self) -> int:
        self._sequence += 1
        return self._sequence

    def _schedule(self, sequence: int) -> None:
        self._cancel_timer()
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(
            self.options.debounce_ms / 1000,
            self._fire,
            sequence,
        )

    def _fire(self, sequence: int) -> None:
        self._handle = None
        self._start(sequence)

    def _cancel_timer(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _start(self, sequence: int) -> "asyncio.Task[ValidationState]":
        self._transition(FieldStatus.VALIDATING)
        self.state.is_validating = True

        value = self.form.get(self.field.name)
        task = asyncio.get_running_loop().create_task(self._run(sequence, value))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _run(self, sequence: int, value: Any) -> ValidationState:
        try:
            error = await self._validator(self.field, value, dict(self.form.values))
        except Exception:
            logger.exception("Validator for field '%s' raised", self.field.name)
            error = ValidationError(
                field=self.field.name,
                message="Validation failed",
                type=ErrorType.CUSTOM,
            )

        if sequence != self._sequence:
            logger.debug(
                "Discarding stale result for field '%s' (request %d, latest %d)",
                self.field.name,
                sequence,
                self._sequence,
            )
            return self.state

        self.state.is_validating = False
        self.state.error = error
        self.state.is_valid = error is None
        self._transition(FieldStatus.VALID if error is None else FieldStatus.ERROR)
        return self.state

    def _transition(self, status: FieldStatus) -> None:
        self.state.status = status
        self.state.history.append(status)

    async def _compiled_validator(
        self,
        field: FieldSchema,
        value: Any,
        values: Mapping[str, Any],
    ) -> ValidationError | None:
        # Yield once so results are always delivered asynchronously
        await asyncio.sleep(0)
        return validate_field(field, value, values, self.settings)


def create_real_time_validation(
    field: FieldSchema,
    form: FormState,
    options: ValidationOptions | None = None,
    settings: EngineSettings | None = None,
) -> RealTimeValidation:
    """Attach real-time validation to a field of ``form``."""
    return RealTimeValidation(field, form, options, settings)
