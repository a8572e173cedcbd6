"""In-memory storage backends for testing and single-process use."""

from __future__ import annotations

import copy
from typing import Any, Optional

from .base import ActorStorage, KeyValueStore


class MemoryKeyValueStore(KeyValueStore):
    """In-memory key/value store.

    Values are deep-copied on the way in and out so callers never share
    mutable state with the store. Keys are listed in insertion order.
    """

    def __init__(self) -> None:
        self._data: dict[str, dict[str, Any]] = {}

    async def put(self, key: str, value: dict[str, Any]) -> None:
        self._data[key] = copy.deepcopy(value)

    async def get(self, key: str) -> Optional[dict[str, Any]]:
        value = self._data.get(key)
        return copy.deepcopy(value) if value is not None else None

    async def delete(self, key: str) -> bool:
        return self._data.pop(key, None) is not None

    async def list(self, prefix: str = "") -> list[str]:
        return [key for key in self._data if key.startswith(prefix)]

    def __len__(self) -> int:
        return len(self._data)


class MemoryActorStorage(ActorStorage):
    """In-memory actor storage."""

    def __init__(self) -> None:
        self._fields: dict[str, Any] = {}

    async def get(self, field: str) -> Any:
        return copy.deepcopy(self._fields.get(field))

    async def put(self, field: str, value: Any) -> None:
        self._fields[field] = copy.deepcopy(value)

    async def delete(self, field: str) -> bool:
        return self._fields.pop(field, None) is not None


class MemoryStorageFactory:
    """Hands out one :class:`MemoryActorStorage` per actor name.

    Re-requesting a name returns the same storage, so state survives the
    actor object being rebuilt (the in-process analogue of a restart).
    """

    def __init__(self) -> None:
        self._storages: dict[str, MemoryActorStorage] = {}

    def __call__(self, name: str) -> MemoryActorStorage:
        if name not in self._storages:
            self._storages[name] = MemoryActorStorage()
        return self._storages[name]
