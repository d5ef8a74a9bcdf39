"""Abstract local store interfaces (ports) — define the contract, not the implementation."""

from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable
from typing import Any

from restsync.domain.entities import Entity

QueryConstraint = Callable[["StoreQuery"], Any]


class StoreQuery(ABC):
    """A query against one entity type, built fluently and run with ``get()``."""

    @abstractmethod
    def where_in(self, key: str | tuple[str, ...], values: Iterable[Any]) -> "StoreQuery":
        """Keep records whose ``key`` is one of ``values``.

        For a composite ``key`` every value is a tuple, matched as a whole.
        """
        ...

    @abstractmethod
    def order_by(self, field: str, direction: str = "asc") -> "StoreQuery":
        """Add a sort key; keys added earlier take precedence."""
        ...

    @abstractmethod
    def with_relation(
        self, name: str, constraint: QueryConstraint | None = None
    ) -> "StoreQuery":
        """Load relation ``name``; ``constraint`` customizes the related query."""
        ...

    @abstractmethod
    def get(self) -> list[Entity]:
        """Execute the query and return fresh entity instances."""
        ...


class EntityStore(ABC):
    """Port for the local entity store — implemented in the infrastructure layer."""

    @abstractmethod
    def upsert(self, model: type[Entity], entities: Iterable[Entity]) -> list[Entity]:
        """Insert or replace records by primary key and return the stored instances."""
        ...

    @abstractmethod
    def delete(self, model: type[Entity], key: Any) -> bool:
        """Remove a record. Returns True if deleted, False if not found."""
        ...

    @abstractmethod
    def find(self, model: type[Entity], key: Any) -> Entity | None:
        ...

    @abstractmethod
    def all(self, model: type[Entity]) -> list[Entity]:
        ...

    @abstractmethod
    def query(self, model: type[Entity]) -> StoreQuery:
        ...

    @abstractmethod
    def flush(self, model: type[Entity] | None = None) -> None:
        """Drop every record of ``model``, or of every type when omitted."""
        ...
