from .entity_store import EntityStore, QueryConstraint, StoreQuery
from .transport import Transport

__all__ = [
    "EntityStore",
    "QueryConstraint",
    "StoreQuery",
    "Transport",
]
