from .entity_client import EntityClient
from .entity_lifecycle import (
    EntityLifecycle,
    assign_error,
    fill_url,
    key_params,
    key_values,
    resolve_url,
)
from .entity_registry import EntityRegistry
from .entity_syncer import EntitySyncer, parse_sort
from .query_expander import QueryExpander
from .request_planner import RequestPlanner, serialize_params

__all__ = [
    "EntityClient",
    "EntityLifecycle",
    "assign_error",
    "fill_url",
    "key_params",
    "key_values",
    "resolve_url",
    "EntityRegistry",
    "EntitySyncer",
    "parse_sort",
    "QueryExpander",
    "RequestPlanner",
    "serialize_params",
]
