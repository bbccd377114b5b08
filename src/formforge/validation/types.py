"""Core types for the formforge validation engine.

- ErrorType / ValidationError: structured description of one failed constraint
- ParseResult: outcome of running a compiled validator
- FieldStatus / ValidationState: per-field real-time validation state
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorType(Enum):
    """Kind of constraint that failed."""

    REQUIRED = "required"
    MIN = "min"
    MAX = "max"
    PATTERN = "pattern"
    FORMAT = "format"
    CUSTOM = "custom"


@dataclass(frozen=True)
class ValidationError:
    """A single validation failure.

    Attributes:
        field: Name of the field the error belongs to
        message: Human-readable message shown inline next to the field
        type: Machine-readable error kind
    """

    field: str
    message: str
    type: ErrorType = ErrorType.CUSTOM

    def to_dict(self) -> dict[str, Any]:
        return {
            "field": self.field,
            "message": self.message,
            "type": self.type.value,
        }


@dataclass(frozen=True)
class ParseResult:
    """Result of ``CompiledValidator.parse``.

    ``ok`` is True when ``errors`` is empty; ``value`` is the parsed value.
    """

    value: Any = None
    errors: tuple[ValidationError, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.errors

    @property
    def first_error(self) -> ValidationError | None:
        return self.errors[0] if self.errors else None

    @classmethod
    def success(cls, value: Any) -> ParseResult:
        return cls(value=value)

    @classmethod
    def failure(cls, *errors: ValidationError) -> ParseResult:
        return cls(errors=tuple(errors))


class FieldStatus(Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    VALID = "valid"
    ERROR = "error"


@dataclass
class ValidationState:
    """Real-time validation state of one mounted field.

    Created at zero/idle, mutated only by the real-time controller and
    reset to zero on form reset.
    """

    is_validating: bool = False
    error: ValidationError | None = None
    is_valid: bool = True
    is_dirty: bool = False
    is_touched: bool = False
    status: FieldStatus = FieldStatus.IDLE
    history: list[FieldStatus] = field(default_factory=list, repr=False)

    @property
    def error_message(self) -> str | None:
        return self.error.message if self.error else None

    @property
    def should_show_error(self) -> bool:
        return self.is_touched and not self.is_valid and not self.is_validating

    def to_dict(self) -> dict[str, Any]:
        return {
            "isValidating": self.is_validating,
            "error": self.error.to_dict() if self.error else None,
            "isValid": self.is_valid,
            "isDirty": self.is_dirty,
            "isTouched": self.is_touched,
            "status": self.status.value,
            "errorMessage": self.error_message,
        }
