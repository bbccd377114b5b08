"""Field validator compiler.

Turns a field definition into a CompiledValidator:
- A base validator per field kind (type check, then constraints)
- A single required/optional wrapper applied on top of any base validator

``validate_field`` adds the surrounding rules used by forms: hidden,
disabled and conditionally invisible fields are always valid, and raw host
input is coerced before the compiled validator sees it.
"""

import logging
import math
import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any
from urllib.parse import urlparse

from formforge.config import EngineSettings
from formforge.schema.types import (
    BaseRule,
    CheckboxField,
    ChoiceField,
    DateField,
    DateRule,
    FieldSchema,
    FieldType,
    NumberField,
    NumberRule,
    SelectRule,
    StringFormat,
    StringRule,
    TextField,
)
from formforge.validation.conditions import (
    ConditionError,
    evaluate,
    referenced_fields,
)
from formforge.validation.types import ErrorType, ParseResult, ValidationError

logger = logging.getLogger(__name__)


# =============================================================================
# Format Patterns
# =============================================================================

EMAIL_PATTERN = re.compile(
    r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"
)

PHONE_PATTERN = re.compile(r"^\+?[1-9]\d{0,15}$")

URL_SCHEME_PATTERN = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*$")

# Leading decimal number, as read from a text input
_NUMBER_PREFIX = re.compile(r"^\s*[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?")


def is_valid_url(value: str) -> bool:
    """Check that a string parses as an absolute URL."""
    if any(ch.isspace() for ch in value):
        return False
    try:
        parsed = urlparse(value)
    except ValueError:
        return False
    if not parsed.scheme or not URL_SCHEME_PATTERN.match(parsed.scheme):
        return False
    if parsed.scheme.lower() in ("http", "https", "ftp", "ws", "wss"):
        return bool(parsed.netloc)
    return bool(parsed.netloc or parsed.path)


def is_empty(value: Any) -> bool:
    """Check if a value counts as "no input"."""
    if value is None:
        return True
    if isinstance(value, str) and value == "":
        return True
    if isinstance(value, (list, tuple)) and len(value) == 0:
        return True
    return False


# =============================================================================
# Compiled Validator
# =============================================================================

# A check returns None when the value passes, or (type, message) when it fails
Check = Callable[[Any], "tuple[ErrorType, str] | None"]


@dataclass(frozen=True)
class CompiledValidator:
    """Executable validator for one field.

    Attributes:
        field: Name reported on every error
        type_check: Base check; when it fails no constraint runs
        checks: Constraint checks, each producing at most one error
    """

    field: str
    type_check: Check
    checks: tuple[Check, ...] = ()

    def parse(self, value: Any) -> ParseResult:
        failure = self.type_check(value)
        if failure:
            return ParseResult.failure(self._error(failure))

        errors = []
        for check in self.checks:
            failure = check(value)
            if failure:
                errors.append(self._error(failure))
        if errors:
            return ParseResult.failure(*errors)
        return ParseResult.success(value)

    def _error(self, failure: tuple[ErrorType, str]) -> ValidationError:
        error_type, message = failure
        return ValidationError(field=self.field, message=message, type=error_type)


def _passes(value: Any) -> None:
    return None


def _config_error(field: FieldSchema, reason: str) -> CompiledValidator:
    """Validator that reports a broken field configuration on every input."""
    logger.warning("Invalid validation config for field '%s': %s", field.name, reason)

    def check(value: Any) -> tuple[ErrorType, str]:
        return ErrorType.CUSTOM, f"{field.label} has an invalid configuration"

    return CompiledValidator(field=field.name, type_check=check)


# =============================================================================
# Base Validators
# =============================================================================


def _string_validator(field: TextField) -> CompiledValidator:
    rules = field.validation or StringRule()
    message = rules.message
    checks: list[Check] = []

    def type_check(value: Any):
        if not isinstance(value, str):
            return ErrorType.FORMAT, message or "Must be text"
        return None

    if rules.min_length is not None:
        min_length = rules.min_length

        def check_min_length(value: str):
            if len(value) < min_length:
                return ErrorType.MIN, message or f"Must be at least {min_length} characters"
            return None

        checks.append(check_min_length)

    if rules.max_length is not None:
        max_length = rules.max_length

        def check_max_length(value: str):
            if len(value) > max_length:
                return ErrorType.MAX, message or f"Must be at most {max_length} characters"
            return None

        checks.append(check_max_length)

    if rules.pattern:
        try:
            regex = re.compile(rules.pattern)
        except re.error as e:
            return _config_error(field, f"invalid pattern {rules.pattern!r}: {e}")

        def check_pattern(value: str):
            if not regex.search(value):
                return ErrorType.PATTERN, message or "Invalid format"
            return None

        checks.append(check_pattern)

    if field.type == FieldType.EMAIL or rules.format == StringFormat.EMAIL:

        def check_email(value: str):
            if not EMAIL_PATTERN.match(value):
                return ErrorType.FORMAT, message or "Invalid email format"
            return None

        checks.append(check_email)

    if rules.format == StringFormat.URL:

        def check_url(value: str):
            if not is_valid_url(value):
                return ErrorType.FORMAT, message or "Invalid URL format"
            return None

        checks.append(check_url)

    if rules.format == StringFormat.PHONE:

        def check_phone(value: str):
            if not PHONE_PATTERN.match(value):
                return ErrorType.FORMAT, message or "Invalid phone number format"
            return None

        checks.append(check_phone)

    return CompiledValidator(field=field.name, type_check=type_check, checks=tuple(checks))


def _number_validator(field: NumberField) -> CompiledValidator:
    rules = field.validation or NumberRule()
    message = rules.message
    checks: list[Check] = []

    def type_check(value: Any):
        # bool is an int subclass but never a number here
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return ErrorType.FORMAT, "Must be a valid number"
        try:
            finite = math.isfinite(value)
        except OverflowError:
            # int too large for a float
            finite = False
        if not finite:
            return ErrorType.FORMAT, "Must be a valid number"
        return None

    if rules.min is not None:
        minimum = rules.min

        def check_min(value: float):
            if value < minimum:
                return ErrorType.MIN, message or f"Must be at least {_format_number(minimum)}"
            return None

        checks.append(check_min)

    if rules.max is not None:
        maximum = rules.max

        def check_max(value: float):
            if value > maximum:
                return ErrorType.MAX, message or f"Must be at most {_format_number(maximum)}"
            return None

        checks.append(check_max)

    if rules.integer:

        def check_integer(value: float):
            if isinstance(value, float) and not value.is_integer():
                return ErrorType.FORMAT, message or "Must be a whole number"
            return None

        checks.append(check_integer)

    return CompiledValidator(field=field.name, type_check=type_check, checks=tuple(checks))


def _format_number(value: float) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def parse_instant(value: str | date) -> datetime:
    """Parse an ISO date/datetime (or date object) into an aware datetime.

    Naive values are taken as UTC.

    Raises:
        ValueError: If the string is not ISO 8601
    """
    if isinstance(value, datetime):
        instant = value
    elif isinstance(value, date):
        instant = datetime(value.year, value.month, value.day)
    else:
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        instant = datetime.fromisoformat(text)
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=timezone.utc)
    return instant


def _date_validator(field: DateField) -> CompiledValidator:
    rules = field.validation or DateRule()
    message = rules.message
    checks: list[Check] = []

    def type_check(value: Any):
        if not isinstance(value, date):
            return ErrorType.FORMAT, "Must be a valid date"
        return None

    try:
        min_date = parse_instant(rules.min_date) if rules.min_date else None
        max_date = parse_instant(rules.max_date) if rules.max_date else None
    except ValueError as e:
        return _config_error(field, f"invalid date bound: {e}")

    if min_date is not None:

        def check_min_date(value: date):
            if parse_instant(value) < min_date:
                return ErrorType.MIN, message or f"Date must be after {min_date.date().isoformat()}"
            return None

        checks.append(check_min_date)

    if max_date is not None:

        def check_max_date(value: date):
            if parse_instant(value) > max_date:
                return ErrorType.MAX, message or f"Date must be before {max_date.date().isoformat()}"
            return None

        checks.append(check_max_date)

    return CompiledValidator(field=field.name, type_check=type_check, checks=tuple(checks))


def _invalid_option(value: Any, allowed: set[str]) -> bool:
    return not isinstance(value, str) or value not in allowed


def _choice_validator(field: ChoiceField) -> CompiledValidator:
    rules = field.validation or SelectRule()
    message = rules.message
    allowed = {opt.value for opt in field.options}
    checks: list[Check] = []

    if not field.multiple:

        def type_check(value: Any):
            if _invalid_option(value, allowed):
                return ErrorType.CUSTOM, message or "Invalid option selected"
            return None

        return CompiledValidator(field=field.name, type_check=type_check)

    def list_check(value: Any):
        if not isinstance(value, list):
            return ErrorType.FORMAT, message or "Expected a list of options"
        if any(_invalid_option(v, allowed) for v in value):
            return ErrorType.CUSTOM, message or "Invalid option selected"
        return None

    if rules.min_items is not None:
        min_items = rules.min_items

        def check_min_items(value: list):
            if len(value) < min_items:
                return ErrorType.MIN, message or f"Select at least {min_items} option(s)"
            return None

        checks.append(check_min_items)

    if rules.max_items is not None:
        max_items = rules.max_items

        def check_max_items(value: list):
            if len(value) > max_items:
                return ErrorType.MAX, message or f"Select at most {max_items} option(s)"
            return None

        checks.append(check_max_items)

    return CompiledValidator(field=field.name, type_check=list_check, checks=tuple(checks))


def _checkbox_validator(field: CheckboxField) -> CompiledValidator:
    message = field.rule.message

    if field.options is not None:
        allowed = {opt.value for opt in field.options}

        def group_check(value: Any):
            if not isinstance(value, list):
                return ErrorType.FORMAT, message or "Expected a list of options"
            if any(_invalid_option(v, allowed) for v in value):
                return ErrorType.CUSTOM, message or "Invalid option selected"
            return None

        return CompiledValidator(field=field.name, type_check=group_check)

    def bool_check(value: Any):
        if not isinstance(value, bool):
            return ErrorType.FORMAT, message or "Must be checked or unchecked"
        return None

    return CompiledValidator(field=field.name, type_check=bool_check)


# =============================================================================
# Required / Optional Wrapper
# =============================================================================


def _with_presence(field: FieldSchema, inner: CompiledValidator) -> CompiledValidator:
    """Wrap a base validator with the field's required/optional semantics.

    Required: None, "", [] (and False for a boolean checkbox) fail with a
    ``required`` error before the base validator runs.
    Optional: None, "" and [] pass without running the base validator.
    """
    rules: BaseRule = field.rule
    boolean_checkbox = isinstance(field, CheckboxField) and field.options is None

    if rules.required:
        required_message = rules.message or f"{field.label} is required"

        def presence(value: Any):
            if is_empty(value) or (boolean_checkbox and value is not True):
                return ErrorType.REQUIRED, required_message
            return inner.type_check(value)

        return CompiledValidator(field=inner.field, type_check=presence, checks=inner.checks)

    def optional(value: Any):
        if is_empty(value):
            return None
        return inner.type_check(value)

    def skip_when_empty(check: Check) -> Check:
        def wrapped(value: Any):
            if is_empty(value):
                return None
            return check(value)

        return wrapped

    return CompiledValidator(
        field=inner.field,
        type_check=optional,
        checks=tuple(skip_when_empty(c) for c in inner.checks),
    )


# =============================================================================
# Compiler
# =============================================================================


def compile_field(field: FieldSchema) -> CompiledValidator:
    """Compile a field definition into an executable validator.

    Compiling is deterministic: the same definition always produces a
    validator with the same pass/fail behaviour.

    Raises:
        TypeError: If ``field`` is not one of the known field kinds
    """
    if isinstance(field, TextField):
        base = _string_validator(field)
    elif isinstance(field, NumberField):
        base = _number_validator(field)
    elif isinstance(field, DateField):
        base = _date_validator(field)
    elif isinstance(field, ChoiceField):
        base = _choice_validator(field)
    elif isinstance(field, CheckboxField):
        base = _checkbox_validator(field)
    else:
        raise TypeError(f"Unsupported field kind: {type(field).__name__}")

    return _with_presence(field, base)


# =============================================================================
# Host Input Coercion
# =============================================================================


def coerce_input(field: FieldSchema, raw: Any) -> Any:
    """Convert raw host input into the value the compiled validator expects.

    - number fields: strings with a leading decimal number become floats
      ("42", "3.5kg"); other strings are left as-is and fail the type check
    - date fields: non-empty ISO strings become date/datetime objects;
      unparseable strings are left as-is
    """
    if isinstance(field, NumberField) and isinstance(raw, str):
        match = _NUMBER_PREFIX.match(raw)
        if match:
            return float(match.group(0))
        return raw

    if isinstance(field, DateField) and isinstance(raw, str) and raw.strip():
        text = raw.strip()
        try:
            if len(text) == 10:
                return date.fromisoformat(text)
            return parse_instant(text)
        except ValueError:
            return raw

    return raw


# =============================================================================
# Field Validation
# =============================================================================


def is_field_active(
    field: FieldSchema,
    values: Mapping[str, Any],
    settings: EngineSettings | None = None,
) -> bool:
    """Check whether a field takes part in validation.

    Hidden and disabled fields never do; conditional fields only while
    their condition holds.

    Raises:
        ConditionError: If the field's conditional cannot be evaluated
    """
    if field.hidden or field.disabled:
        return False
    return evaluate(field.conditional, values, settings)


def validate_field(
    field: FieldSchema,
    value: Any,
    values: Mapping[str, Any] | None = None,
    settings: EngineSettings | None = None,
) -> ValidationError | None:
    """Validate one field value in the context of the whole form.

    Never raises: configuration faults come back as a ``custom`` error.

    Args:
        field: Field definition
        value: Raw value supplied by the host
        values: All current form values (for conditional visibility)
        settings: Engine settings

    Returns:
        The first error, or None if the value is valid or the field inactive
    """
    values = values if values is not None else {}
    if field.hidden or field.disabled:
        return None

    try:
        if field.conditional is not None:
            if field.name in referenced_fields(
                field.conditional,
                (settings or EngineSettings()).max_condition_depth,
            ):
                logger.warning("Field '%s' has a conditional referencing itself", field.name)
                return ValidationError(
                    field=field.name,
                    message=f"{field.label} has a conditional rule that references itself",
                    type=ErrorType.CUSTOM,
                )

        if not is_field_active(field, values, settings):
            return None

        result = compile_field(field).parse(coerce_input(field, value))
        return result.first_error
    except ConditionError as e:
        logger.warning("Field '%s' conditional rule is invalid: %s", field.name, e)
        return ValidationError(
            field=field.name,
            message=f"{field.label} has an invalid conditional rule",
            type=ErrorType.CUSTOM,
        )
    except Exception:
        logger.exception("Unexpected error validating field '%s'", field.name)
        return ValidationError(field=field.name, message="Invalid value", type=ErrorType.CUSTOM)
