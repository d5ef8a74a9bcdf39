"""httpx-backed transport — implements the Transport port.

Sends requests to the REST API, turns non-2xx answers and connection
problems into domain exceptions, and materializes successful bodies into
the local store the way the sync layer expects.
"""

import logging
from collections.abc import Mapping
from typing import Any

import httpx

from restsync.application.interfaces import EntityStore, Transport
from restsync.domain.entities import Entity, TransportConfig, TransportResponse
from restsync.domain.exceptions import (
    EntityValidationError,
    ServerError,
    TransportFailure,
)

logger = logging.getLogger(__name__)

VALIDATION_FAILED_STATUS = 422


class HttpxTransport(Transport):
    """Infrastructure adapter — talks to the REST API through httpx.

    An injected ``httpx.AsyncClient`` is reused (and left open); otherwise a
    short-lived client is created per request.
    """

    def __init__(
        self,
        store: EntityStore,
        base_url: str = "",
        *,
        timeout_seconds: float = 30.0,
        http_client: httpx.AsyncClient | None = None,
    ):
        self._store = store
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout_seconds
        self._http_client = http_client

    def _build_url(self, url: str) -> str:
        if not self._base_url or url.startswith(("http://", "https://")):
            return url
        return f"{self._base_url}/{url.lstrip('/')}"

    async def _get_client(self) -> httpx.AsyncClient:
        """Return the injected client or create a new one."""
        if self._http_client is not None:
            return self._http_client
        return httpx.AsyncClient(timeout=self._timeout)

    async def request(
        self,
        method: str,
        model: type[Entity],
        url: str,
        *,
        params: Mapping[str, Any] | None = None,
        body: Any = None,
        config: TransportConfig | None = None,
    ) -> TransportResponse:
        config = config or TransportConfig()
        target = self._build_url(url)
        query = {key: value for key, value in (params or {}).items() if value is not None}

        request_kwargs: dict[str, Any] = dict(config.extra)
        if config.params_serializer is not None:
            encoded = config.params_serializer(query)
            if encoded:
                target = f"{target}{'&' if '?' in target else '?'}{encoded}"
        elif query:
            request_kwargs["params"] = query
        if body is not None:
            request_kwargs["json"] = body
        if config.headers:
            request_kwargs["headers"] = dict(config.headers)

        client = await self._get_client()
        should_close = self._http_client is None

        logger.debug("%s %s", method, target)
        try:
            response = await client.request(method, target, **request_kwargs)
        except httpx.TransportError as exc:
            logger.error("%s %s failed without a response: %s", method, target, exc)
            raise TransportFailure(str(exc) or type(exc).__name__, exc) from exc
        finally:
            if should_close:
                await client.aclose()

        result = TransportResponse(
            status=response.status_code,
            reason=response.reason_phrase,
            headers=response.headers,
            data=self._decode(response),
        )

        if not result.is_success:
            logger.warning("%s %s answered %d %s", method, target, result.status, result.reason)
            if result.status == VALIDATION_FAILED_STATUS:
                raise EntityValidationError(result)
            raise ServerError(result)

        if config.save:
            result.entities = self._materialize(model, self._records(result.data, config.data_key))
        if config.delete is not None:
            self._store.delete(model, config.delete)

        return result

    @staticmethod
    def _decode(response: httpx.Response) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return response.text

    @staticmethod
    def _records(data: Any, data_key: str | None) -> list[Mapping[str, Any]]:
        if data_key and isinstance(data, Mapping):
            data = data.get(data_key)
        if isinstance(data, Mapping):
            return [data]
        if isinstance(data, list):
            return [item for item in data if isinstance(item, Mapping)]
        return []

    def _materialize(
        self, model: type[Entity], records: list[Mapping[str, Any]]
    ) -> list[Entity]:
        if not records:
            return []
        entities = [model(record) for record in records]
        stored = self._store.upsert(model, entities)
        logger.debug("Materialized %d %s record(s)", len(stored), model.entity_name())
        return stored
