"""Typed lookup of entity clients sharing one transport and one store."""

from typing import TypeVar

from restsync.application.interfaces import EntityStore, Transport
from restsync.application.services.entity_client import EntityClient
from restsync.application.services.entity_lifecycle import EntityLifecycle
from restsync.application.services.entity_syncer import EntitySyncer
from restsync.application.services.request_planner import RequestPlanner
from restsync.config import Settings, get_settings
from restsync.domain.entities import Entity

E = TypeVar("E", bound=Entity)


class EntityRegistry:
    """Hands out one ``EntityClient`` per entity type.

    Replaces "give me the repository for this model" lookups against global
    state: the transport and store are explicit constructor arguments.
    """

    def __init__(self, transport: Transport, store: EntityStore, settings: Settings | None = None):
        self._settings = settings or get_settings()
        self.transport = transport
        self.store = store
        self._planner = RequestPlanner(self._settings)
        self._syncer = EntitySyncer(store, self._settings)
        self._lifecycle = EntityLifecycle(transport, self._planner, self._settings)
        self._clients: dict[type[Entity], EntityClient] = {}

    def client(self, model: type[E]) -> EntityClient[E]:
        client = self._clients.get(model)
        if client is None:
            client = EntityClient(
                model,
                self.transport,
                self.store,
                planner=self._planner,
                syncer=self._syncer,
                lifecycle=self._lifecycle,
                settings=self._settings,
            )
            self._clients[model] = client
        return client

    def __contains__(self, model: type[Entity]) -> bool:
        return model in self._clients
