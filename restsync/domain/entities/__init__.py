"""Domain entities — pure Python objects, no framework dependencies."""

from .entity import Entity
from .error_state import ErrorState
from .fields import (
    Attr,
    Relation,
    RelationKind,
    Transformer,
    attr,
    belongs_to,
    has_many,
    has_one,
)
from .request import ParamsSerializer, RequestDescriptor, TransportConfig
from .sync_result import SyncResult
from .transport_response import TransportResponse

__all__ = [
    "Entity",
    "ErrorState",
    "Attr",
    "Relation",
    "RelationKind",
    "Transformer",
    "attr",
    "belongs_to",
    "has_many",
    "has_one",
    "ParamsSerializer",
    "RequestDescriptor",
    "TransportConfig",
    "SyncResult",
    "TransportResponse",
]
