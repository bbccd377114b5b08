"""Engine settings for formforge."""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum


class ConditionMode(Enum):
    """How a conditional rule combines its own comparison with nested rules.

    SOURCE: The top-level comparison is always part of the result. An unset
        operator contributes a permissive ``True``.
    NESTED_ONLY: When the operator is unset and nested rules exist, only the
        nested rules decide (pure AND/OR over the children).
    """

    SOURCE = "source"
    NESTED_ONLY = "nested_only"


DEFAULT_DEBOUNCE_MS = 300
DEFAULT_MAX_CONDITION_DEPTH = 16


@dataclass(frozen=True)
class EngineSettings:
    """Settings shared by the evaluator, compiler and real-time controller.

    Attributes:
        debounce_ms: Quiet interval before a change-triggered validation runs
        max_condition_depth: Nesting limit for conditional rule trees
        condition_mode: Combination semantics for unset top-level operators
        validate_on_change: Default for real-time validation on value change
        validate_on_blur: Default for real-time validation on blur
        log_level: Level name used by the CLI when configuring logging
    """

    debounce_ms: int = DEFAULT_DEBOUNCE_MS
    max_condition_depth: int = DEFAULT_MAX_CONDITION_DEPTH
    condition_mode: ConditionMode = ConditionMode.SOURCE
    validate_on_change: bool = True
    validate_on_blur: bool = True
    log_level: str = "WARNING"

    @classmethod
    def from_env(cls) -> EngineSettings:
        """Create settings from environment variables.

        Recognised variables:
        - FORMFORGE_DEBOUNCE_MS
        - FORMFORGE_MAX_CONDITION_DEPTH
        - FORMFORGE_CONDITION_MODE ("source" or "nested_only")
        - FORMFORGE_LOG_LEVEL

        Raises:
            ValueError: If a variable holds an unparseable value.
        """
        debounce = os.environ.get("FORMFORGE_DEBOUNCE_MS")
        depth = os.environ.get("FORMFORGE_MAX_CONDITION_DEPTH")
        mode = os.environ.get("FORMFORGE_CONDITION_MODE")
        level = os.environ.get("FORMFORGE_LOG_LEVEL")

        settings = cls(
            debounce_ms=int(debounce) if debounce else DEFAULT_DEBOUNCE_MS,
            max_condition_depth=int(depth) if depth else DEFAULT_MAX_CONDITION_DEPTH,
            condition_mode=ConditionMode(mode.lower()) if mode else ConditionMode.SOURCE,
            log_level=level.upper() if level else "WARNING",
        )
        if settings.debounce_ms < 0:
            raise ValueError("FORMFORGE_DEBOUNCE_MS must not be negative")
        if settings.max_condition_depth < 1:
            raise ValueError("FORMFORGE_MAX_CONDITION_DEPTH must be at least 1")
        return settings
