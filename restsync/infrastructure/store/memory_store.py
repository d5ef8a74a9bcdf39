"""In-memory implementation of the local entity store.

Records are kept as plain attribute dicts per entity type and keyed by primary
key (a tuple for composite keys). Every read hydrates fresh entity instances,
so callers never share mutable state with the store.
"""

import logging
from collections.abc import Iterable
from typing import Any

from restsync.application.interfaces import EntityStore, QueryConstraint, StoreQuery
from restsync.domain.entities import Entity, RelationKind
from restsync.domain.exceptions import StoreError
from restsync.domain.observable import ObservableFactory

logger = logging.getLogger(__name__)

_DIRECTIONS = ("asc", "desc")


def _normalize_key(model: type[Entity], key: Any) -> Any:
    if model.is_composite_key():
        return tuple(key)
    return key


def _record_key(model: type[Entity], record: dict[str, Any]) -> Any:
    fields = model.primary_key_fields()
    if model.is_composite_key():
        return tuple(record.get(name) for name in fields)
    return record.get(fields[0])


def _sort_key(value: Any) -> tuple[bool, Any]:
    # None sorts before every value in ascending order
    return (value is not None, value)


class MemoryEntityStore(EntityStore):
    """Implements the EntityStore port with dictionaries."""

    def __init__(self, observables: ObservableFactory | None = None):
        self._tables: dict[type[Entity], dict[Any, dict[str, Any]]] = {}
        self._observables = observables

    def _table(self, model: type[Entity]) -> dict[Any, dict[str, Any]]:
        return self._tables.setdefault(model, {})

    def hydrate(self, model: type[Entity], record: dict[str, Any]) -> Entity:
        return model.from_record(record, observables=self._observables)

    def records(self, model: type[Entity]) -> list[dict[str, Any]]:
        return list(self._table(model).values())

    def upsert(self, model: type[Entity], entities: Iterable[Entity]) -> list[Entity]:
        stored: list[Entity] = []
        for entity in entities:
            self._normalize(model, entity)
            if entity.is_new_record():
                raise StoreError(f"Cannot store {model.entity_name()} without a primary key")

            table = self._table(model)
            key = _normalize_key(model, entity.primary_key_value())
            created = key not in table
            table[key] = entity.to_record()

            instance = self.hydrate(model, table[key])
            instance.mark_synced()
            stored.append(instance)
            logger.debug(
                "%s %s %r", "Inserted" if created else "Updated", model.entity_name(), key
            )
        return stored

    def _normalize(self, model: type[Entity], entity: Entity) -> None:
        """Move loaded relations into their own tables and link foreign keys."""
        for name, relation in model.relation_fields().items():
            value = getattr(entity, name, None)
            if value is None:
                continue

            related = relation.model
            if relation.kind is RelationKind.BELONGS_TO:
                owner_key = relation.local_key or related.primary_key
                self.upsert(related, [value])
                setattr(entity, relation.foreign_key, getattr(value, owner_key))
                continue

            children = value if isinstance(value, list) else [value]
            local_key = relation.local_key or model.primary_key
            if not isinstance(local_key, str):
                raise StoreError(f"Relation '{name}' cannot be keyed by a composite key")
            parent_key = getattr(entity, local_key, None)
            if parent_key is not None:
                for child in children:
                    setattr(child, relation.foreign_key, parent_key)
            self.upsert(related, children)

    def delete(self, model: type[Entity], key: Any) -> bool:
        removed = self._table(model).pop(_normalize_key(model, key), None)
        if removed is None:
            return False
        logger.debug("Deleted %s %r", model.entity_name(), key)
        return True

    def find(self, model: type[Entity], key: Any) -> Entity | None:
        record = self._table(model).get(_normalize_key(model, key))
        return self.hydrate(model, record) if record is not None else None

    def all(self, model: type[Entity]) -> list[Entity]:
        return [self.hydrate(model, record) for record in self.records(model)]

    def query(self, model: type[Entity]) -> "MemoryQuery":
        return MemoryQuery(self, model)

    def flush(self, model: type[Entity] | None = None) -> None:
        if model is None:
            self._tables.clear()
        else:
            self._tables.pop(model, None)


class MemoryQuery(StoreQuery):
    """Fluent query over one table of a ``MemoryEntityStore``."""

    def __init__(self, store: MemoryEntityStore, model: type[Entity]):
        self._store = store
        self._model = model
        self._wheres: list[tuple[tuple[str, ...], set[Any]]] = []
        self._orders: list[tuple[str, str]] = []
        self._relations: dict[str, list[QueryConstraint]] = {}

    def where_in(self, key: str | tuple[str, ...], values: Iterable[Any]) -> "MemoryQuery":
        fields = (key,) if isinstance(key, str) else tuple(key)
        try:
            if len(fields) > 1:
                accepted = {tuple(value) for value in values}
            else:
                accepted = set(values)
        except TypeError as exc:
            raise StoreError(f"Unusable key values for {self._model.entity_name()}: {exc}") from exc

        self._wheres.append((fields, accepted))
        return self

    def order_by(self, field: str, direction: str = "asc") -> "MemoryQuery":
        direction = direction.lower()
        if direction not in _DIRECTIONS:
            raise StoreError(f"Unknown sort direction '{direction}'")
        if field not in self._model.attribute_fields():
            # Server-side columns are not stored; every record sorts as None
            logger.debug("Ordering %s by undeclared field '%s'", self._model.entity_name(), field)
        self._orders.append((field, direction))
        return self

    def with_relation(
        self, name: str, constraint: QueryConstraint | None = None
    ) -> "MemoryQuery":
        if name not in self._model.relation_fields():
            raise StoreError(f"{self._model.entity_name()} has no relation '{name}'")
        constraints = self._relations.setdefault(name, [])
        if constraint is not None:
            constraints.append(constraint)
        return self

    def get(self) -> list[Entity]:
        records = self._store.records(self._model)
        for fields, accepted in self._wheres:
            records = [record for record in records if self._value_of(record, fields) in accepted]

        records = self._sorted(records)
        entities = [self._store.hydrate(self._model, record) for record in records]

        for name, constraints in self._relations.items():
            self._load(entities, name, constraints)
        return entities

    @staticmethod
    def _value_of(record: dict[str, Any], fields: tuple[str, ...]) -> Any:
        if len(fields) > 1:
            return tuple(record.get(name) for name in fields)
        return record.get(fields[0])

    def _sorted(self, records: list[dict[str, Any]]) -> list[dict[str, Any]]:
        # Sorting by the last key first keeps earlier keys dominant (stable sort)
        try:
            for field, direction in reversed(self._orders):
                records = sorted(
                    records,
                    key=lambda record: _sort_key(record.get(field)),
                    reverse=direction == "desc",
                )
        except TypeError as exc:
            raise StoreError(
                f"Cannot order {self._model.entity_name()} records: {exc}"
            ) from exc
        return records

    def _load(self, entities: list[Entity], name: str, constraints: list[QueryConstraint]) -> None:
        relation = self._model.relation_fields()[name]
        related = relation.model
        query = MemoryQuery(self._store, related)
        for constraint in constraints:
            constraint(query)

        if relation.kind is RelationKind.BELONGS_TO:
            owner_key = relation.local_key or related.primary_key
            if not isinstance(owner_key, str):
                raise StoreError(f"Relation '{name}' cannot target a composite key")

            wanted = {getattr(entity, relation.foreign_key) for entity in entities} - {None}
            query.where_in(owner_key, wanted)
            by_key = {getattr(item, owner_key): item for item in query.get()}
            for entity in entities:
                setattr(entity, name, by_key.get(getattr(entity, relation.foreign_key)))
            return

        local_key = relation.local_key or self._model.primary_key
        if not isinstance(local_key, str):
            raise StoreError(f"Relation '{name}' cannot be keyed by a composite key")

        wanted = {getattr(entity, local_key) for entity in entities} - {None}
        query.where_in(relation.foreign_key, wanted)
        grouped: dict[Any, list[Entity]] = {}
        for item in query.get():
            grouped.setdefault(getattr(item, relation.foreign_key), []).append(item)

        for entity in entities:
            items = grouped.get(getattr(entity, local_key), [])
            if relation.many:
                setattr(entity, name, items)
            else:
                setattr(entity, name, items[0] if items else None)
