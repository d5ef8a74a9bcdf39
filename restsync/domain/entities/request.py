"""Outbound request description produced by the request planner."""

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

ParamsSerializer = Callable[[Mapping[str, Any]], str]


@dataclass(frozen=True)
class TransportConfig:
    """Transport-level settings for one request.

    ``save`` controls whether decoded entities are written to the local store,
    ``delete`` holds the primary key to drop from the store once a DELETE
    succeeds. ``data_key`` names the envelope key holding the records when the
    body is not a bare record or list. ``extra`` is passed through to the HTTP
    client untouched.
    """

    save: bool = True
    delete: Any = None
    params_serializer: ParamsSerializer | None = None
    data_key: str | None = None
    headers: Mapping[str, str] = field(default_factory=dict)
    extra: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class RequestDescriptor:
    """Canonical, immutable description of one outbound operation."""

    url: str | None
    params: Mapping[str, Any]
    transport: TransportConfig
    relations: str = ""
    sort: str | None = None
    data: Mapping[str, Any] = field(default_factory=dict)
    options: Any = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "params", MappingProxyType(dict(self.params)))
        object.__setattr__(self, "data", MappingProxyType(dict(self.data)))
