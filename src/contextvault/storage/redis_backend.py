"""Redis storage backends."""

from __future__ import annotations

from typing import Any, Optional

from .base import ActorStorage, KeyValueStore
from .serializer import deserialize_value, serialize_value


def _create_client(redis_url: str):
    try:
        import redis.asyncio as redis
    except ImportError:
        raise ImportError(
            "Redis backend requires 'redis'. "
            "Install it with: pip install redis"
        )
    return redis.from_url(redis_url)


class RedisKeyValueStore(KeyValueStore):
    """Redis-backed passage store.

    Prefix listing uses ``SCAN MATCH``; keys are returned sorted because
    SCAN order is unspecified.
    """

    def __init__(
        self,
        redis_url: str = "redis://localhost:6379",
        key_prefix: str = "contextvault:passage:",
        client: Any = None,
    ):
        """Initialize Redis backend.

        Args:
            redis_url: Redis connection URL
            key_prefix: Namespace prepended to every passage key
            client: Optional pre-built ``redis.asyncio`` client
        """
        self.redis_url = redis_url
        self.key_prefix = key_prefix
        self._client = client

    def _get_client(self):
        """Get or create Redis client."""
        if self._client is None:
            self._client = _create_client(self.redis_url)
        return self._client

    def _full_key(self, key: str) -> str:
        return f"{self.key_prefix}{key}"

    async def put(self, key: str, value: dict[str, Any]) -> None:
        await self._get_client().set(self._full_key(key), serialize_value(value))

    async def get(self, key: str) -> Optional[dict[str, Any]]:
        data = await self._get_client().get(self._full_key(key))
        return deserialize_value(data) if data else None

    async def delete(self, key: str) -> bool:
        return await self._get_client().delete(self._full_key(key)) > 0

    async def list(self, prefix: str = "") -> list[str]:
        client = self._get_client()
        pattern = f"{_escape_glob(self.key_prefix + prefix)}*"
        keys = []
        async for raw in client.scan_iter(match=pattern):
            key = raw.decode("utf-8") if isinstance(raw, bytes) else raw
            keys.append(key[len(self.key_prefix):])
        return sorted(keys)


class RedisActorStorage(ActorStorage):
    """Redis hash holding the fields of one named actor."""

    def __init__(
        self,
        redis_url: str = "redis://localhost:6379",
        actor: str = "global",
        key_prefix: str = "contextvault:actor:",
        client: Any = None,
    ):
        self.redis_url = redis_url
        self.actor = actor
        self.key_prefix = key_prefix
        self._client = client

    def _get_client(self):
        if self._client is None:
            self._client = _create_client(self.redis_url)
        return self._client

    @property
    def _hash_key(self) -> str:
        return f"{self.key_prefix}{self.actor}"

    async def get(self, field: str) -> Any:
        data = await self._get_client().hget(self._hash_key, field)
        return deserialize_value(data) if data else None

    async def put(self, field: str, value: Any) -> None:
        await self._get_client().hset(self._hash_key, field, serialize_value(value))

    async def delete(self, field: str) -> bool:
        return await self._get_client().hdel(self._hash_key, field) > 0


class RedisStorageFactory:
    """Builds :class:`RedisActorStorage` instances sharing one client."""

    def __init__(self, redis_url: str = "redis://localhost:6379", key_prefix: str = "contextvault:actor:"):
        self.redis_url = redis_url
        self.key_prefix = key_prefix
        self._client = None

    def __call__(self, name: str) -> RedisActorStorage:
        if self._client is None:
            self._client = _create_client(self.redis_url)
        return RedisActorStorage(self.redis_url, actor=name, key_prefix=self.key_prefix, client=self._client)


def _escape_glob(text: str) -> str:
    for char in "\\*?[]":
        text = text.replace(char, "\\" + char)
    return text
