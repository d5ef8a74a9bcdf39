"""Observable-value capability required by entities.

Entities never depend on a UI runtime. They ask an ``ObservableFactory`` for
the containers that a front-end must be able to watch (the old-value
snapshot, the error map and the error summary), so a reactive host can
inject containers that notify on change while tests run on plain ones.
"""

from abc import ABC, abstractmethod
from collections.abc import MutableMapping
from typing import Any


class ObservableValue(ABC):
    """A single watched value."""

    @abstractmethod
    def get(self) -> Any:
        ...

    @abstractmethod
    def set(self, value: Any) -> None:
        ...


class ObservableFactory(ABC):
    """Port for creating watched containers."""

    @abstractmethod
    def mapping(self) -> MutableMapping[str, Any]:
        """Return an empty watched mapping."""
        ...

    @abstractmethod
    def value(self, initial: Any = None) -> ObservableValue:
        """Return a watched value holding ``initial``."""
        ...


class PlainValue(ObservableValue):
    def __init__(self, initial: Any = None):
        self._value = initial

    def get(self) -> Any:
        return self._value

    def set(self, value: Any) -> None:
        self._value = value


class PlainObservables(ObservableFactory):
    """Default factory — plain dicts and holders, no notifications."""

    def mapping(self) -> MutableMapping[str, Any]:
        return {}

    def value(self, initial: Any = None) -> ObservableValue:
        return PlainValue(initial)
