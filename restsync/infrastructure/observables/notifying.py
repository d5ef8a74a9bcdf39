"""Observable containers that notify subscribers on every change.

A UI layer subscribes once and re-renders whatever an entity's snapshot,
error map or error summary changes to.
"""

from collections.abc import Callable, Iterator, MutableMapping
from typing import Any

from restsync.domain.observable import ObservableFactory, ObservableValue

# (container, key, value): key is None for single values, value is None on delete
Listener = Callable[[Any, str | None, Any], None]


class NotifyingMapping(MutableMapping):
    def __init__(self, emit: Callable[[Any, str | None, Any], None]):
        self._data: dict[str, Any] = {}
        self._emit = emit

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __setitem__(self, key: str, value: Any) -> None:
        self._data[key] = value
        self._emit(self, key, value)

    def __delitem__(self, key: str) -> None:
        del self._data[key]
        self._emit(self, key, None)

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"NotifyingMapping({self._data!r})"


class NotifyingValue(ObservableValue):
    def __init__(self, emit: Callable[[Any, str | None, Any], None], initial: Any = None):
        self._value = initial
        self._emit = emit

    def get(self) -> Any:
        return self._value

    def set(self, value: Any) -> None:
        if value == self._value:
            return
        self._value = value
        self._emit(self, None, value)


class NotifyingObservables(ObservableFactory):
    """Factory whose containers report changes to every subscriber."""

    def __init__(self):
        self._listeners: list[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener``; returns a callable that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self, container: Any, key: str | None, value: Any) -> None:
        for listener in list(self._listeners):
            listener(container, key, value)

    def mapping(self) -> MutableMapping[str, Any]:
        return NotifyingMapping(self._emit)

    def value(self, initial: Any = None) -> ObservableValue:
        return NotifyingValue(self._emit, initial)
