"""Keeps a local entity store in sync with a Yii2-style REST API."""

from restsync.application.schemas import RequestOptions
from restsync.application.services import (
    EntityClient,
    EntityLifecycle,
    EntityRegistry,
    EntitySyncer,
    QueryExpander,
    RequestPlanner,
)
from restsync.domain.entities import (
    Entity,
    SyncResult,
    Transformer,
    attr,
    belongs_to,
    has_many,
    has_one,
)
from restsync.domain.exceptions import (
    ConfigurationError,
    EntityValidationError,
    ErrorPathError,
    HttpStatusError,
    RestSyncError,
    ServerError,
    StoreError,
    TransportError,
    TransportFailure,
)

__version__ = "0.1.0"

__all__ = [
    "RequestOptions",
    "EntityClient",
    "EntityLifecycle",
    "EntityRegistry",
    "EntitySyncer",
    "QueryExpander",
    "RequestPlanner",
    "Entity",
    "SyncResult",
    "Transformer",
    "attr",
    "belongs_to",
    "has_many",
    "has_one",
    "ConfigurationError",
    "EntityValidationError",
    "ErrorPathError",
    "HttpStatusError",
    "RestSyncError",
    "ServerError",
    "StoreError",
    "TransportError",
    "TransportFailure",
]
