"""Field and relation declarations used by ``Entity.fields()``."""

import copy
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any


@dataclass(frozen=True)
class Attr:
    """A plain attribute with a default value."""

    default: Any = None

    def make_default(self) -> Any:
        # Mutable defaults (lists, dicts) must not be shared between instances
        return copy.deepcopy(self.default)


class RelationKind(str, Enum):
    BELONGS_TO = "belongs_to"
    HAS_ONE = "has_one"
    HAS_MANY = "has_many"


@dataclass(frozen=True)
class Relation:
    """A relation to another entity type.

    ``related`` is either the entity class or a zero-argument callable
    returning it, which allows declaring relations between classes that
    reference each other.

    For ``belongs_to`` the foreign key lives on the declaring entity and
    points at ``local_key`` on the related one (its primary key by default).
    For ``has_one``/``has_many`` the foreign key lives on the related entity
    and points at ``local_key`` on the declaring one.
    """

    related: Any
    foreign_key: str
    kind: RelationKind
    local_key: str | None = None

    @property
    def model(self) -> Any:
        if isinstance(self.related, type):
            return self.related
        return self.related()

    @property
    def many(self) -> bool:
        return self.kind is RelationKind.HAS_MANY


@dataclass(frozen=True)
class Transformer:
    """Per-item hooks for list-valued fields.

    ``get`` runs when data is filled into an entity, ``set`` when the entity
    is serialized for the API.
    """

    get: Callable[[Any], Any] | None = None
    set: Callable[[Any], Any] | None = None


def attr(default: Any = None) -> Attr:
    return Attr(default)


def belongs_to(related: Any, foreign_key: str, owner_key: str | None = None) -> Relation:
    return Relation(related, foreign_key, RelationKind.BELONGS_TO, owner_key)


def has_one(related: Any, foreign_key: str, local_key: str | None = None) -> Relation:
    return Relation(related, foreign_key, RelationKind.HAS_ONE, local_key)


def has_many(related: Any, foreign_key: str, local_key: str | None = None) -> Relation:
    return Relation(related, foreign_key, RelationKind.HAS_MANY, local_key)
