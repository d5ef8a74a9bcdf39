"""Dependency wiring — connects infrastructure adapters to the application layer."""

import httpx

from restsync.application.interfaces import EntityStore
from restsync.application.services import EntityRegistry
from restsync.config import Settings, get_settings
from restsync.infrastructure.http.httpx_transport import HttpxTransport
from restsync.infrastructure.store.memory_store import MemoryEntityStore


def build_registry(
    settings: Settings | None = None,
    *,
    store: EntityStore | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> EntityRegistry:
    """Provides an EntityRegistry with the httpx transport and a memory store wired up."""
    settings = settings or get_settings()
    store = store or MemoryEntityStore()
    transport = HttpxTransport(
        store,
        base_url=settings.base_url,
        timeout_seconds=settings.timeout_seconds,
        http_client=http_client,
    )
    return EntityRegistry(transport, store, settings)
