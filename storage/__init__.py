"""
storage package

Key-value persistence substrate, snapshot gateway and project index.
"""

from storage.store import JsonFileStore, KeyValueStore, MemoryStore, PersistenceError
from storage.gateway import INDEX_KEY, PROJECT_PREFIX, PersistenceGateway, ProjectEntry, ProjectIndex

__all__ = [
    "INDEX_KEY",
    "PROJECT_PREFIX",
    "JsonFileStore",
    "KeyValueStore",
    "MemoryStore",
    "PersistenceError",
    "PersistenceGateway",
    "ProjectEntry",
    "ProjectIndex",
]
