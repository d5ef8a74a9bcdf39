"""Decoded transport response envelope."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any


@dataclass
class TransportResponse:
    """What a transport hands back for an answered request.

    ``entities`` holds the instances the transport materialized into the local
    store while decoding ``data``; it is empty when the request was made with
    ``save=False`` or the body carried no records.
    """

    status: int
    reason: str = ""
    headers: Mapping[str, str] = field(default_factory=dict)
    data: Any = None
    entities: list[Any] = field(default_factory=list)

    @property
    def is_success(self) -> bool:
        return 200 <= self.status < 300
