from .memory_store import MemoryEntityStore, MemoryQuery

__all__ = ["MemoryEntityStore", "MemoryQuery"]
