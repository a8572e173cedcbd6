"""Storage backends for ContextVault.

- KeyValueStore: flat passage store (key lookup + prefix listing)
- ActorStorage: durable fields owned by one single-writer actor
- Backends: memory, SQLite, Redis
"""

from .actor import Actor
from .base import ActorStorage, KeyValueStore, StorageFactory
from .memory_backend import MemoryActorStorage, MemoryKeyValueStore, MemoryStorageFactory
from .sqlite_backend import SQLiteActorStorage, SQLiteKeyValueStore, SQLiteStorageFactory
from .redis_backend import RedisActorStorage, RedisKeyValueStore, RedisStorageFactory
from .serializer import StateSerializer, serialize_value, deserialize_value

__all__ = [
    "Actor",
    "ActorStorage",
    "KeyValueStore",
    "StorageFactory",
    # Backends
    "MemoryActorStorage",
    "MemoryKeyValueStore",
    "MemoryStorageFactory",
    "SQLiteActorStorage",
    "SQLiteKeyValueStore",
    "SQLiteStorageFactory",
    "RedisActorStorage",
    "RedisKeyValueStore",
    "RedisStorageFactory",
    # Serializer
    "StateSerializer",
    "serialize_value",
    "deserialize_value",
]
