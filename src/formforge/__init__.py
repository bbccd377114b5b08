"""formforge — schema-driven form validation and conditional logic engine.

Usage:
    from formforge import load_schema, validate_all

    schema = load_schema(Path("forms/contact.yaml"))
    errors = validate_all(schema, {"email": "a@b"})
"""

from formforge.config import ConditionMode, EngineSettings
from formforge.schema.loader import SchemaLoadError, load_schema
from formforge.validation.compiler import compile_field, validate_field
from formforge.validation.conditions import evaluate, evaluate_visible
from formforge.validation.form import validate_all
from formforge.validation.types import ErrorType, ValidationError

__version__ = "0.1.0"

__all__ = [
    "ConditionMode",
    "EngineSettings",
    "ErrorType",
    "SchemaLoadError",
    "ValidationError",
    "compile_field",
    "evaluate",
    "evaluate_visible",
    "load_schema",
    "validate_all",
    "validate_field",
]
