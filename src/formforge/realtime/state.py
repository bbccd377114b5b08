"""Host form-state container.

Holds the live value map the engine reads. It is the only writer of values;
validators and the rule evaluator read ``values`` but never mutate it.
Subscribers are notified of every change and of form resets.
"""

import copy
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from formforge.schema.types import FormSchema

logger = logging.getLogger(__name__)


class FormEventKind(Enum):
    CHANGE = "change"
    TOUCH = "touch"
    RESET = "reset"


@dataclass(frozen=True)
class FormEvent:
    """Notification sent to subscribers.

    ``name`` is set for ``CHANGE`` and ``TOUCH`` events, ``value`` only for
    ``CHANGE``.
    """

    kind: FormEventKind
    name: str | None = None
    value: Any = None


Listener = Callable[[FormEvent], None]


class FormState:
    """Values, defaults and touched/dirty tracking for one form instance.

    Example:
        state = FormState.for_schema(schema)
        unsubscribe = state.subscribe(print)
        state.set_value("email", "a@b.co")
        unsubscribe()
    """

    def __init__(self, defaults: Mapping[str, Any] | None = None):
        self.defaults: dict[str, Any] = dict(defaults or {})
        self.values: dict[str, Any] = copy.deepcopy(self.defaults)
        self.touched: set[str] = set()
        self._listeners: list[Listener] = []

    @classmethod
    def for_schema(cls, schema: FormSchema) -> "FormState":
        """Create a state seeded with each field's ``default_value``."""
        return cls({
            f.name: f.default_value
            for f in schema.fields()
            if f.default_value is not None
        })

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def get(self, name: str) -> Any:
        return self.values.get(name)

    def is_touched(self, name: str) -> bool:
        return name in self.touched

    def is_dirty(self, name: str) -> bool:
        """A field is dirty while its value differs from its default."""
        return self.values.get(name) != self.defaults.get(name)

    @property
    def dirty(self) -> set[str]:
        names = set(self.values) | set(self.defaults)
        return {name for name in names if self.is_dirty(name)}

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def set_value(self, name: str, value: Any) -> None:
        self.values[name] = value
        self._emit(FormEvent(kind=FormEventKind.CHANGE, name=name, value=value))

    def mark_touched(self, name: str) -> None:
        if name in self.touched:
            return
        self.touched.add(name)
        self._emit(FormEvent(kind=FormEventKind.TOUCH, name=name))

    def reset(self, defaults: Mapping[str, Any] | None = None) -> None:
        """Restore default values and clear touched state.

        Args:
            defaults: New defaults to reset to (keeps the current ones if None)
        """
        if defaults is not None:
            self.defaults = dict(defaults)
        self.values = copy.deepcopy(self.defaults)
        self.touched.clear()
        self._emit(FormEvent(kind=FormEventKind.RESET))

    # -------------------------------------------------------------------------
    # Subscriptions
    # -------------------------------------------------------------------------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener; returns a function that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self, event: FormEvent) -> None:
        # Copy so listeners may unsubscribe while being notified
        for listener in list(self._listeners):
            listener(event)
        logger.debug("Form event %s for '%s'", event.kind.value, event.name)
