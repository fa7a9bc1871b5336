"""Observable state containers for the formstate engine.

Every piece of form state lives in a store that follows the observer pattern:
listeners subscribe and are called with the latest snapshot.

Features:
- Replay-one subscriptions (a new listener is called at once with the
  current value)
- Synchronous dispatch (listeners run in subscription order before the
  mutator returns; no batching)
- Error isolation (a failing listener is logged and does not affect other
  listeners or the caller)

ValueStore and ErrorStore specialize the generic Writable for the two form
mappings.
"""

import logging
from typing import Any, Callable, Generic, Iterable, List, Mapping, Optional, TypeVar

from formstate.types import FormErrors, FormValues
from formstate.utils import clone, deep_clone

logger = logging.getLogger(__name__)

T = TypeVar("T")

Listener = Callable[[Any], None]
"""Type alias for store listener callbacks.

Listeners are called synchronously with the store's new snapshot.
They should not perform long-running operations.
"""

Unsubscribe = Callable[[], None]


class Writable(Generic[T]):
    """A value that notifies its subscribers whenever it is set.

    Examples:
        >>> flag = Writable(False)
        >>> seen = []
        >>> unsubscribe = flag.subscribe(seen.append)
        >>> flag.set(True)
        >>> seen
        [False, True]
        >>> unsubscribe()
        >>> flag.listener_count()
        0
    """

    def __init__(self, initial: T):
        self._value = initial
        self._listeners: List[Listener] = []

    def get(self) -> T:
        """Return the current value."""
        return self._snapshot()

    def set(self, value: T) -> None:
        """Replace the value and notify every subscriber."""
        self._value = value
        self._notify()

    def update(self, updater: Callable[[T], T]) -> None:
        """Replace the value with ``updater(current)`` and notify."""
        self.set(updater(self._value))

    def subscribe(self, listener: Listener) -> Unsubscribe:
        """Register a listener and call it immediately with the current value.

        Returns:
            A callable that removes the listener. Calling it twice is harmless.
        """
        self._listeners.append(listener)
        self._call(listener, self._snapshot())

        def unsubscribe() -> None:
            try:
                self._listeners.remove(listener)
            except ValueError:
                pass  # Already removed

        return unsubscribe

    def listener_count(self) -> int:
        """Number of currently registered listeners."""
        return len(self._listeners)

    def _snapshot(self) -> Any:
        return self._value

    def _notify(self) -> None:
        # Copy so listeners may unsubscribe while being notified
        for listener in list(self._listeners):
            self._call(listener, self._snapshot())

    def _call(self, listener: Listener, value: Any) -> None:
        try:
            listener(value)
        except Exception:
            logger.exception("Store listener %r raised", listener)


class Readable(Generic[T]):
    """Read-only view over a Writable.

    Exposes ``get`` and ``subscribe`` only, so consumers cannot write flags
    or errors behind the engine's back.
    """

    def __init__(self, source: Writable[T]):
        self._source = source

    def get(self) -> T:
        return self._source.get()

    def subscribe(self, listener: Listener) -> Unsubscribe:
        return self._source.subscribe(listener)


class ValueStore(Writable[FormValues]):
    """Holds the current field values.

    The initial mapping is copied structurally on construction, so mutating
    the caller's object afterwards has no effect. ``get`` hands out a clone
    for the same reason in the other direction.

    No validation happens here; see ValidationOrchestrator.set_field_value.
    """

    def __init__(self, initial_values: Mapping[str, Any]):
        super().__init__(deep_clone(dict(initial_values)))

    def set_field(self, name: str, value: Any) -> None:
        """Replace exactly one field, leaving the others untouched."""
        values = dict(self._value)
        values[name] = value
        self.set(values)

    def replace_all(self, values: Mapping[str, Any]) -> None:
        """Overwrite the entire mapping."""
        self.set(dict(values))

    def _snapshot(self) -> FormValues:
        return clone(self._value)


class ErrorStore(Writable[FormErrors]):
    """Holds the current field name -> error message mapping.

    Starts with one key per known field, each mapped to None.
    """

    def __init__(self, field_names: Iterable[str] = ()):
        super().__init__({name: None for name in field_names})

    def set_field_error(self, name: str, message: Optional[str] = None) -> None:
        """Set the message for ``name``; omit ``message`` to clear it."""
        errors = dict(self._value)
        errors[name] = message
        self.set(errors)

    def replace_all(self, errors: Mapping[str, Optional[str]]) -> None:
        """Overwrite the entire mapping (used after whole-form validation)."""
        self.set(dict(errors))

    def has_errors(self) -> bool:
        """Whether any field currently carries a message."""
        return any(message for message in self._value.values())

    def _snapshot(self) -> FormErrors:
        return dict(self._value)


__all__ = [
    "Listener",
    "Unsubscribe",
    "Writable",
    "Readable",
    "ValueStore",
    "ErrorStore",
]
