"""Application service (use case) for one entity type."""

import logging
from collections.abc import Mapping
from typing import Any, Generic, TypeVar

from restsync.application.interfaces import EntityStore, Transport
from restsync.application.schemas import RequestOptions
from restsync.application.services.entity_lifecycle import (
    EntityLifecycle,
    fill_url,
    key_params,
    key_values,
)
from restsync.application.services.entity_syncer import EntitySyncer
from restsync.application.services.request_planner import RequestPlanner
from restsync.config import Settings, get_settings
from restsync.domain.entities import Entity, RequestDescriptor, SyncResult, TransportResponse
from restsync.domain.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=Entity)

Options = RequestOptions | Mapping[str, Any] | None


class EntityClient(Generic[E]):
    """CRUD entry point for ``model``: plan → transport → reconcile."""

    def __init__(
        self,
        model: type[E],
        transport: Transport,
        store: EntityStore,
        *,
        planner: RequestPlanner | None = None,
        syncer: EntitySyncer | None = None,
        lifecycle: EntityLifecycle | None = None,
        settings: Settings | None = None,
    ):
        self._settings = settings or get_settings()
        self.model = model
        self._transport = transport
        self._store = store
        self._planner = planner or RequestPlanner(self._settings)
        self._syncer = syncer or EntitySyncer(store, self._settings)
        self._lifecycle = lifecycle or EntityLifecycle(transport, self._planner, self._settings)

    def new(self, **attributes: Any) -> E:
        return self.model(attributes)

    # Defined before list() so the annotation still sees the builtin
    def cached(self) -> list[E]:
        """Every record of this type currently held in the local store."""
        return self._store.all(self.model)

    async def list(self, options: Options = None) -> SyncResult:
        request = self._planner.plan(
            RequestOptions(
                url=self.model.endpoint_list,
                expand_name=self._settings.expand_param,
                page_size=self._settings.default_page_size,
            ),
            options,
        )
        return await self._fetch(request)

    async def view(self, key: Any, options: Options = None) -> SyncResult:
        request = self._planner.plan(
            RequestOptions(
                url=self.model.endpoint_view,
                expand_name=self._settings.expand_param,
                params=key_params(self.model, key),
            ),
            options,
        )
        return await self._fetch(request, key_values(self.model, key))

    async def save(self, entity: E, options: Options = None) -> TransportResponse:
        return await self._lifecycle.save(entity, options)

    async def validate(
        self, entity: E, url: str | None = None, options: Options = None
    ) -> TransportResponse:
        return await self._lifecycle.validate(entity, url, options)

    async def delete(self, entity: E, options: Options = None) -> TransportResponse:
        return await self._lifecycle.delete(entity, options)

    async def _fetch(
        self, request: RequestDescriptor, values: Mapping[str, Any] | None = None
    ) -> SyncResult:
        if not request.url:
            logger.error("No endpoint set for %s", self.model.entity_name())
            raise ConfigurationError(self.model.entity_name(), "no endpoint set")

        url = fill_url(self.model, request.url, values or {})
        response = await self._transport.get(
            self.model, url, params=request.params, config=request.transport
        )
        return self._syncer.reconcile(self.model, request, response)
