"""Conditional rule evaluator.

Evaluates a ConditionalRule tree against the current form values to decide
whether a field or section is visible. Evaluation is pure: values are read,
never mutated.

Recursion is bounded by ``EngineSettings.max_condition_depth`` so that a rule
tree containing itself (or an absurdly deep tree) fails fast with
ConditionDepthError instead of exhausting the stack.
"""

import logging
import math
import re
from collections.abc import Mapping
from typing import Any

from formforge.config import ConditionMode, EngineSettings
from formforge.schema.types import ConditionalRule, FormSchema, Logic, Operator

logger = logging.getLogger(__name__)

_DEFAULT_SETTINGS = EngineSettings()

# Decimal literal accepted by numeric coercion (whole string, after strip)
_NUMBER_PATTERN = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$")


class ConditionError(Exception):
    """A conditional rule tree cannot be evaluated."""
    pass


class ConditionDepthError(ConditionError):
    """A conditional rule tree is nested deeper than the configured limit."""

    def __init__(self, field: str, depth: int):
        self.field = field
        self.depth = depth
        super().__init__(
            f"Conditional rule on '{field}' exceeds maximum depth {depth} "
            "(cyclic or self-referencing rule?)"
        )


# =============================================================================
# Coercion
# =============================================================================


def to_number(value: Any) -> float:
    """Convert a value to a number the way a browser form would.

    - bool -> 1.0 / 0.0
    - int / float -> float
    - str -> parsed decimal ("" and whitespace -> 0.0), otherwise NaN
    - None and anything else -> NaN
    """
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        text = value.strip()
        if text == "":
            return 0.0
        if text in ("Infinity", "+Infinity"):
            return math.inf
        if text == "-Infinity":
            return -math.inf
        if _NUMBER_PATTERN.match(text):
            return float(text)
    return math.nan


def to_text(value: Any) -> str:
    """Convert a value to text for substring tests (None -> "")."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (list, tuple)):
        return ",".join(to_text(v) for v in value)
    return str(value)


def strict_equals(left: Any, right: Any) -> bool:
    """Equality without coercion; booleans never equal numbers."""
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left == right
    return left == right


# =============================================================================
# Evaluation
# =============================================================================


def _compare(rule: ConditionalRule, values: Mapping[str, Any]) -> bool:
    """Apply the rule's own operator; an unset operator yields True."""
    field_value = values.get(rule.field)
    operator = rule.operator

    if operator is Operator.EQUALS:
        return strict_equals(field_value, rule.value)
    if operator is Operator.NOT_EQUALS:
        return not strict_equals(field_value, rule.value)
    if operator is Operator.GREATER_THAN:
        # NaN compares False in both directions
        return to_number(field_value) > to_number(rule.value)
    if operator is Operator.LESS_THAN:
        return to_number(field_value) < to_number(rule.value)
    if operator is Operator.CONTAINS:
        return to_text(rule.value) in to_text(field_value)
    if operator is Operator.NOT_CONTAINS:
        return to_text(rule.value) not in to_text(field_value)
    return True


def _evaluate(
    rule: ConditionalRule,
    values: Mapping[str, Any],
    depth: int,
    settings: EngineSettings,
) -> bool:
    if depth > settings.max_condition_depth:
        raise ConditionDepthError(rule.field, settings.max_condition_depth)

    if not rule.rules:
        return _compare(rule, values)

    nested = [_evaluate(child, values, depth + 1, settings) for child in rule.rules]

    if rule.operator is None and settings.condition_mode is ConditionMode.NESTED_ONLY:
        return any(nested) if rule.logic is Logic.OR else all(nested)

    base = _compare(rule, values)
    if rule.logic is Logic.OR:
        return base or any(nested)
    return base and all(nested)


def evaluate(
    rule: ConditionalRule | None,
    values: Mapping[str, Any],
    settings: EngineSettings | None = None,
) -> bool:
    """Evaluate a conditional rule tree against form values.

    Args:
        rule: Rule to evaluate; None means "no restriction"
        values: Current form values keyed by field name
        settings: Engine settings (depth limit, combination mode)

    Returns:
        True if the rule holds

    Raises:
        ConditionDepthError: If the tree is nested beyond the depth limit
    """
    if rule is None:
        return True
    return _evaluate(rule, values, 1, settings or _DEFAULT_SETTINGS)


def evaluate_visible(
    rule: ConditionalRule | None,
    values: Mapping[str, Any],
    settings: EngineSettings | None = None,
) -> bool:
    """Evaluate a visibility rule without raising.

    A rule tree that cannot be evaluated is logged and treated as hidden.
    """
    try:
        return evaluate(rule, values, settings)
    except ConditionError as e:
        logger.warning("Conditional rule could not be evaluated: %s", e)
        return False


def referenced_fields(
    rule: ConditionalRule | None,
    max_depth: int = _DEFAULT_SETTINGS.max_condition_depth,
) -> list[str]:
    """List the field names a rule tree reads, in first-seen order.

    Raises:
        ConditionDepthError: If the tree is nested beyond ``max_depth``
    """
    names: list[str] = []
    if rule is None:
        return names

    # Explicit worklist of (rule, depth)
    pending = [(rule, 1)]
    while pending:
        current, depth = pending.pop()
        if depth > max_depth:
            raise ConditionDepthError(current.field, max_depth)
        if current.field not in names:
            names.append(current.field)
        for child in reversed(current.rules):
            pending.append((child, depth + 1))
    return names


# =============================================================================
# Dependency Cycles
# =============================================================================


def condition_dependencies(
    schema: FormSchema,
    max_depth: int = _DEFAULT_SETTINGS.max_condition_depth,
) -> dict[str, set[str]]:
    """Map each field name to the field names its visibility depends on.

    A field depends on the fields read by its own conditional and by the
    conditional of its section. A rule tree nested beyond ``max_depth``
    contributes no edges; evaluating it reports the fault for that field.
    """
    graph: dict[str, set[str]] = {}
    for section in schema.sections:
        section_refs = _bounded_references(section.conditional, max_depth)
        for f in section.fields:
            deps = graph.setdefault(f.name, set())
            deps.update(section_refs)
            deps.update(_bounded_references(f.conditional, max_depth))
    return graph


def _bounded_references(rule: ConditionalRule | None, max_depth: int) -> list[str]:
    try:
        return referenced_fields(rule, max_depth)
    except ConditionDepthError as e:
        logger.debug("Skipping dependencies of rule on '%s': %s", e.field, e)
        return []


def find_condition_cycles(
    schema: FormSchema,
    max_depth: int = _DEFAULT_SETTINGS.max_condition_depth,
) -> list[str]:
    """Return the names of fields whose visibility depends on themselves.

    Names come back in declaration order.
    """
    graph = condition_dependencies(schema, max_depth)
    cyclic: list[str] = []

    for name in graph:
        seen: set[str] = set()
        pending = list(graph[name])
        while pending:
            current = pending.pop()
            if current == name:
                cyclic.append(name)
                break
            if current in seen:
                continue
            seen.add(current)
            pending.extend(graph.get(current, ()))

    return cyclic
