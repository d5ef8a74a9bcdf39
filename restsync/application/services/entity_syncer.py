"""Reconciles transport responses against the local entity store."""

import logging
from collections.abc import Mapping
from typing import Any

from restsync.application.interfaces import EntityStore
from restsync.application.services.query_expander import QueryExpander
from restsync.config import Settings, get_settings
from restsync.domain.entities import Entity, RequestDescriptor, SyncResult, TransportResponse

logger = logging.getLogger(__name__)


def parse_sort(sort: str | None) -> list[tuple[str, str]]:
    """Parse ``"-name,age"`` into ``[("name", "desc"), ("age", "asc")]``."""
    if not sort:
        return []

    orders: list[tuple[str, str]] = []
    for token in sort.split(","):
        token = token.strip()
        if not token:
            continue
        if token.startswith("-"):
            orders.append((token[1:], "desc"))
        else:
            orders.append((token, "asc"))
    return orders


def _header_int(headers: Mapping[str, str], name: str) -> int | None:
    raw = headers.get(name)
    if not raw:
        return None
    try:
        return int(raw)
    except (TypeError, ValueError):
        logger.warning("Ignoring non-numeric pagination header %s=%r", name, raw)
        return None


def _is_empty_body(data: Any) -> bool:
    return data is None or (isinstance(data, (str, bytes, list, dict)) and len(data) == 0)


class EntitySyncer:
    """Turns a successful response into up-to-date entities from the store.

    The instances a transport decoded are not returned directly: their keys
    are re-read through the store's query layer, which is where relation
    expansion and ordering are defined.
    """

    def __init__(self, store: EntityStore, settings: Settings | None = None):
        self._store = store
        self._settings = settings or get_settings()

    def reconcile(
        self,
        model: type[Entity],
        request: RequestDescriptor,
        response: TransportResponse,
    ) -> SyncResult:
        result = SyncResult(request=request, response=response)
        result.page = _header_int(response.headers, self._settings.page_header)
        result.total_items = _header_int(response.headers, self._settings.total_count_header)

        if _is_empty_body(response.data):
            return result

        keys = self.primary_keys(model, response.entities)
        if not keys:
            return result

        query = self._store.query(model).where_in(model.primary_key, keys)
        QueryExpander.with_all(query, request.relations)
        for field, direction in parse_sort(request.sort):
            query.order_by(field, direction)

        result.entities = query.get()
        logger.info(
            "Reconciled %d %s record(s) (page=%s, total=%s)",
            len(result.entities),
            model.entity_name(),
            result.page,
            result.total_items,
        )
        return result

    @staticmethod
    def primary_keys(model: type[Entity], entities: list[Entity]) -> list[Any]:
        """Primary key of each entity; a tuple per entity for composite keys."""
        fields = model.primary_key_fields()
        if model.is_composite_key():
            return [tuple(getattr(entity, name) for name in fields) for entity in entities]
        return [getattr(entity, fields[0]) for entity in entities]
