"""Single-writer actors over durable storage."""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator

from .base import ActorStorage


class Actor:
    """A serialized state machine addressed by a stable name.

    Every public operation of a subclass runs inside :meth:`exclusive`, so
    read-modify-write cycles on the backing storage never interleave.
    """

    def __init__(self, name: str, storage: ActorStorage):
        self.name = name
        self.storage = storage
        self._lock = asyncio.Lock()

    @asynccontextmanager
    async def exclusive(self) -> AsyncIterator[ActorStorage]:
        """Hold the actor's lock for the duration of the block."""
        async with self._lock:
            yield self.storage
