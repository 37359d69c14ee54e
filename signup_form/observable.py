"""A value that notifies its listeners whenever it changes."""

import logging
from typing import Any, Callable, Generic, List, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

Listener = Callable[[Any], None]


class Observable(Generic[T]):
    def __init__(self, initial: T):
        self._value = initial
        self._listeners: List[Listener] = []

    @property
    def value(self) -> T:
        return self._value

    def set(self, value: T) -> bool:
        """Store ``value`` and notify listeners. Returns False if nothing changed."""
        if value == self._value:
            return False
        self._value = value
        for listener in list(self._listeners):
            try:
                listener(value)
            except Exception:
                logger.exception("Listener %r failed", listener)
        return True

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener``; returns a callable that removes it again."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def clear(self) -> None:
        self._listeners.clear()

    def __repr__(self) -> str:
        return f"Observable({self._value!r})"
