"""Transport port — the HTTP boundary of the sync layer."""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any

from restsync.domain.entities import Entity, TransportConfig, TransportResponse


class Transport(ABC):
    """Executes requests for an entity type.

    Implementations return a ``TransportResponse`` for 2xx answers, raise
    ``HttpStatusError`` (with the response attached) for other statuses and
    ``TransportFailure`` when no response was received. Successful bodies are
    materialized into ``model`` instances and written to the local store when
    ``config.save`` is set.
    """

    @abstractmethod
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
        ...

    async def get(
        self,
        model: type[Entity],
        url: str,
        params: Mapping[str, Any] | None = None,
        config: TransportConfig | None = None,
    ) -> TransportResponse:
        return await self.request("GET", model, url, params=params, config=config)

    async def post(
        self,
        model: type[Entity],
        url: str,
        body: Any = None,
        params: Mapping[str, Any] | None = None,
        config: TransportConfig | None = None,
    ) -> TransportResponse:
        return await self.request("POST", model, url, params=params, body=body, config=config)

    async def put(
        self,
        model: type[Entity],
        url: str,
        body: Any = None,
        params: Mapping[str, Any] | None = None,
        config: TransportConfig | None = None,
    ) -> TransportResponse:
        return await self.request("PUT", model, url, params=params, body=body, config=config)

    async def delete(
        self,
        model: type[Entity],
        url: str,
        params: Mapping[str, Any] | None = None,
        config: TransportConfig | None = None,
    ) -> TransportResponse:
        return await self.request("DELETE", model, url, params=params, config=config)
