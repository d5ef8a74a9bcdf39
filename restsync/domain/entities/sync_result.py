from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any

from restsync.domain.entities.entity import Entity
from restsync.domain.entities.request import RequestDescriptor
from restsync.domain.entities.transport_response import TransportResponse


@dataclass
class SyncResult:
    """Entities re-read from the local store, in requested order, plus pagination."""

    entities: list[Entity] = field(default_factory=list)
    page: int | None = None
    total_items: int | None = None
    request: RequestDescriptor | None = None
    response: TransportResponse | None = None

    def first(self) -> Entity | None:
        return self.entities[0] if self.entities else None

    def __len__(self) -> int:
        return len(self.entities)

    def __iter__(self) -> Iterator[Any]:
        return iter(self.entities)
