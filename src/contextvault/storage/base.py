"""Abstract storage interfaces."""

from abc import ABC, abstractmethod
from typing import Any, Callable, Optional


class KeyValueStore(ABC):
    """Flat key -> value store holding passage records.

    Offers key lookup and prefix listing only; there is no range or
    similarity query.
    """

    @abstractmethod
    async def put(self, key: str, value: dict[str, Any]) -> None:
        """Store ``value`` under ``key``, replacing any previous value."""
        pass

    @abstractmethod
    async def get(self, key: str) -> Optional[dict[str, Any]]:
        """Return the value stored under ``key``, or None if absent."""
        pass

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """Delete ``key``.

        Returns:
            True if the key existed
        """
        pass

    @abstractmethod
    async def list(self, prefix: str = "") -> list[str]:
        """List stored keys starting with ``prefix``, in scan order."""
        pass


class ActorStorage(ABC):
    """Durable field storage owned by a single actor instance."""

    @abstractmethod
    async def get(self, field: str) -> Any:
        """Return the value of ``field``, or None if unset."""
        pass

    @abstractmethod
    async def put(self, field: str, value: Any) -> None:
        """Set ``field`` to ``value``."""
        pass

    @abstractmethod
    async def delete(self, field: str) -> bool:
        """Remove ``field``.

        Returns:
            True if the field existed
        """
        pass


StorageFactory = Callable[[str], ActorStorage]
"""Builds the storage for an actor from its stable name."""
