"""Entity base class — a record mirrored between the remote API and the local store."""

import copy
from collections.abc import Iterable, Mapping
from typing import Any, ClassVar

from restsync.domain.entities.error_state import ErrorState
from restsync.domain.entities.fields import Attr, Relation, Transformer
from restsync.domain.observable import ObservableFactory, PlainObservables


class Entity:
    """Base class for typed API records.

    Subclasses declare their shape through ``fields()`` and their endpoints
    through class attributes::

        class Post(Entity):
            entity = "posts"
            endpoint_list = "/posts"
            endpoint_view = "/posts/view"

            @classmethod
            def fields(cls):
                return {
                    "id": attr(None),
                    "title": attr(""),
                    "author_id": attr(None),
                    "author": belongs_to(User, "author_id"),
                }

    Each instance owns two value sets: the current values (plain attributes)
    and ``old_values``, the snapshot of the last synchronized values used for
    dirty checks.
    """

    entity: ClassVar[str] = ""
    primary_key: ClassVar[str | tuple[str, ...]] = "id"

    endpoint_create: ClassVar[str | None] = None
    endpoint_update: ClassVar[str | None] = None
    endpoint_delete: ClassVar[str | None] = None
    endpoint_list: ClassVar[str | None] = None
    endpoint_view: ClassVar[str | None] = None

    observables: ClassVar[ObservableFactory] = PlainObservables()

    def __init__(
        self,
        attributes: Mapping[str, Any] | None = None,
        *,
        observables: ObservableFactory | None = None,
        transform: bool = True,
    ):
        factory = observables or type(self).observables
        self._observables = factory
        self.old_values = factory.mapping()
        self.errors = ErrorState(factory)

        attributes = dict(attributes) if attributes else {}
        if transform:
            attributes = self.apply_transformers(attributes)
        self._fill(attributes)
        self.update_old_values(attributes)

    @classmethod
    def from_record(
        cls,
        record: Mapping[str, Any],
        *,
        observables: ObservableFactory | None = None,
    ) -> "Entity":
        """Rebuild an entity from a stored row.

        Store rows come from ``to_record()`` and already hold transformed
        values, so transformers are not run again.
        """
        return cls(record, observables=observables, transform=False)

    # ── Declarations ─────────────────────────────────────────────────

    @classmethod
    def fields(cls) -> dict[str, Attr | Relation]:
        return {}

    @classmethod
    def labels(cls) -> dict[str, str]:
        """Return a field => label mapping."""
        return {}

    @classmethod
    def transformers(cls) -> dict[str, Transformer]:
        """Return per-field transformers for list-valued attributes."""
        return {}

    @classmethod
    def entity_name(cls) -> str:
        return cls.entity or cls.__name__

    @classmethod
    def attribute_fields(cls) -> list[str]:
        return [name for name, spec in cls.fields().items() if isinstance(spec, Attr)]

    @classmethod
    def relation_fields(cls) -> dict[str, Relation]:
        return {name: spec for name, spec in cls.fields().items() if isinstance(spec, Relation)}

    @classmethod
    def primary_key_fields(cls) -> tuple[str, ...]:
        if isinstance(cls.primary_key, str):
            return (cls.primary_key,)
        return tuple(cls.primary_key)

    @classmethod
    def is_composite_key(cls) -> bool:
        return not isinstance(cls.primary_key, str)

    # ── Filling ──────────────────────────────────────────────────────

    def apply_transformers(self, attributes: dict[str, Any]) -> dict[str, Any]:
        """Run the ``get`` side of every transformer over ``attributes``."""
        for field, transformer in self.transformers().items():
            if attributes.get(field) and transformer.get is not None:
                attributes[field] = [transformer.get(item) for item in attributes[field]]
        return attributes

    def _fill(self, attributes: Mapping[str, Any]) -> None:
        for name, spec in self.fields().items():
            if name in attributes:
                setattr(self, name, self._fill_field(spec, attributes[name]))
            elif isinstance(spec, Attr):
                setattr(self, name, spec.make_default())
            else:
                setattr(self, name, None)

    def _fill_field(self, spec: Attr | Relation, value: Any) -> Any:
        if isinstance(spec, Attr) or value is None:
            return value

        related = spec.model
        if spec.many:
            return [self._to_related(related, item) for item in value]
        return self._to_related(related, value)

    def _to_related(self, related: type["Entity"], value: Any) -> "Entity":
        if isinstance(value, Entity):
            return value
        return related(value, observables=self._observables)

    def set_attributes(self, data: Mapping[str, Any], is_dirty: bool = True) -> None:
        """Assign declared fields from ``data``; undeclared keys are ignored.

        With ``is_dirty=False`` the values are also recorded in the
        snapshot, so the assignment does not make the entity dirty.
        """
        fields = self.fields()
        data = self.apply_transformers(dict(data))

        for name, value in data.items():
            spec = fields.get(name)
            if spec is None:
                continue
            setattr(self, name, self._fill_field(spec, value))
            if not is_dirty and isinstance(spec, Attr):
                self.old_values[name] = copy.deepcopy(value)

    # ── Dirty tracking ───────────────────────────────────────────────

    def update_old_values(self, attrs: Mapping[str, Any] | Iterable[str]) -> None:
        """Store values in the snapshot.

        A mapping is stored as given. Any other iterable is treated as field
        names whose current values are copied into the snapshot.
        """
        names = set(self.attribute_fields())
        if isinstance(attrs, Mapping):
            for name, value in attrs.items():
                if name in names:
                    self.old_values[name] = copy.deepcopy(value)
        else:
            for name in attrs:
                if name in names:
                    self.old_values[name] = copy.deepcopy(getattr(self, name))

    def mark_synced(self) -> None:
        self.update_old_values(self.attribute_fields())

    def is_dirty(self, attr: str) -> bool:
        """True if ``attr`` changed since it was last synchronized."""
        if attr not in self.old_values:
            return True
        return self.old_values[attr] != getattr(self, attr, None)

    def dirty_fields(self) -> list[str]:
        return [name for name in self.attribute_fields() if self.is_dirty(name)]

    # ── Keys ─────────────────────────────────────────────────────────

    def primary_key_value(self) -> Any:
        if self.is_composite_key():
            return tuple(getattr(self, name, None) for name in self.primary_key_fields())
        return getattr(self, self.primary_key, None)

    def is_new_record(self) -> bool:
        return any(getattr(self, name, None) is None for name in self.primary_key_fields())

    # ── Serialization ────────────────────────────────────────────────

    def to_record(self) -> dict[str, Any]:
        """Attribute values only, as the local store keeps them."""
        return {name: copy.deepcopy(getattr(self, name)) for name in self.attribute_fields()}

    def to_json(self) -> dict[str, Any]:
        """Attributes plus loaded relations, with transformers' ``set`` applied."""
        data = self.to_record()
        for name in self.relation_fields():
            value = getattr(self, name, None)
            if value is None:
                continue
            if isinstance(value, list):
                data[name] = [item.to_json() for item in value]
            else:
                data[name] = value.to_json()

        for field, transformer in self.transformers().items():
            if data.get(field) and transformer.set is not None:
                data[field] = [transformer.set(item) for item in data[field]]

        return data

    # ── Labels and nesting ───────────────────────────────────────────

    def get_attribute_label(self, field: str) -> str | None:
        return self.labels().get(field)

    def get_nested_entity(self, name: str) -> "Entity | None":
        if name not in self.fields():
            return None
        value = getattr(self, name, None)
        return value if isinstance(value, Entity) else None

    # ── Errors ───────────────────────────────────────────────────────

    @property
    def error_message(self) -> str | None:
        return self.errors.message

    @error_message.setter
    def error_message(self, value: str | None) -> None:
        self.errors.message = value

    def has_errors(self) -> bool:
        return self.errors.has_errors()

    def get_error(self, field: str) -> str | None:
        return self.errors.get(field)

    def clear_errors(self, field: str | None = None) -> None:
        """Clear one field's error, or every error and the summary message."""
        self.errors.clear(field)

    def get_error_summary(self, separator: str = "; ") -> str:
        return self.errors.summary(separator)

    def __repr__(self) -> str:
        return f"<{self.entity_name()} {self.primary_key_value()!r}>"
