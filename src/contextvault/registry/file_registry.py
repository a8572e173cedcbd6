"""File registry: lifecycle tracking for ingested documents."""

from __future__ import annotations

import logging
import time
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from contextvault.exceptions import NotFoundError, ValidationError
from contextvault.storage.actor import Actor
from contextvault.storage.base import ActorStorage

logger = logging.getLogger(__name__)

STATE_FIELD = "state"


class FileStatus(str, Enum):
    """Lifecycle state of an ingested document."""
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self is not FileStatus.PROCESSING


class FileMetadata(BaseModel):
    """Registry entry for one ingested document.

    Attributes:
        document_id: Unique, immutable identifier
        name: Original file name
        type: MIME type
        uploaded_at: Registration time
        total_size: Size of the ingested text in characters
        chunk_count: Number of passages successfully stored
        status: processing, completed or error
        error: Joined failure messages when status is error
    """

    document_id: str
    name: str
    type: str
    uploaded_at: datetime = Field(default_factory=datetime.now)
    total_size: int = 0
    chunk_count: int = 0
    status: FileStatus = FileStatus.PROCESSING
    error: Optional[str] = None


class RegistryState(BaseModel):
    """In-memory view of the registry: a true mapping plus the id counter."""
    files: dict[str, FileMetadata] = Field(default_factory=dict)
    last_file_id: int = 0

    def to_storage(self) -> dict[str, Any]:
        """Encode ``files`` as an ordered association list."""
        return {
            "files": [[file_id, meta.model_dump()] for file_id, meta in self.files.items()],
            "last_file_id": self.last_file_id,
        }

    @classmethod
    def from_storage(cls, stored: Optional[dict[str, Any]]) -> "RegistryState":
        if not stored:
            return cls()
        files = {
            file_id: FileMetadata.model_validate(meta)
            for file_id, meta in stored.get("files") or []
        }
        return cls(files=files, last_file_id=stored.get("last_file_id") or 0)


class FileRegistry(Actor):
    """Single-writer registry of every ingested document.

    All operations take the actor lock, so concurrent register/update/delete
    calls are applied in a total order with no lost updates. State is
    reloaded from storage on every call.
    """

    UPDATABLE_FIELDS = frozenset({"name", "type", "total_size", "chunk_count", "status", "error"})

    def __init__(self, storage: ActorStorage, name: str = "registry"):
        super().__init__(name, storage)

    async def register(self, name: str, type: str, size: int) -> str:
        """Create a ``processing`` entry and return its new document id.

        The id embeds a persisted counter, so it never repeats across
        restarts as long as the storage survives.
        """
        async with self.exclusive() as storage:
            state = await self._load(storage)
            state.last_file_id += 1
            document_id = f"file_{state.last_file_id}_{int(time.time() * 1000)}"
            state.files[document_id] = FileMetadata(
                document_id=document_id,
                name=name,
                type=type,
                total_size=size,
            )
            await self._save(storage, state)

        logger.debug(f"Registered {name!r} as {document_id}")
        return document_id

    async def update(self, document_id: str, **fields: Any) -> FileMetadata:
        """Shallow-merge ``fields`` into an existing entry.

        Raises:
            NotFoundError: Unknown document id
            ValidationError: Unknown or immutable field, invalid value, or a
                status change out of a terminal state
        """
        unknown = set(fields) - self.UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(f"Cannot update field(s): {', '.join(sorted(unknown))}")

        async with self.exclusive() as storage:
            state = await self._load(storage)
            current = state.files.get(document_id)
            if current is None:
                raise NotFoundError("Document", document_id)

            try:
                updated = FileMetadata.model_validate({**current.model_dump(), **fields})
            except PydanticValidationError as e:
                raise ValidationError(f"Invalid update for '{document_id}': {e}") from e

            if current.status.is_terminal and updated.status != current.status:
                raise ValidationError(
                    f"Document '{document_id}' is already {current.status.value}; "
                    f"cannot move to {updated.status.value}"
                )

            state.files[document_id] = updated
            await self._save(storage, state)
            return updated

    async def get(self, document_id: str) -> FileMetadata:
        """Return the entry for ``document_id``.

        Raises:
            NotFoundError: Unknown document id
        """
        async with self.exclusive() as storage:
            state = await self._load(storage)
        meta = state.files.get(document_id)
        if meta is None:
            raise NotFoundError("Document", document_id)
        return meta

    async def list(self) -> list[FileMetadata]:
        """Return every entry in registration order."""
        async with self.exclusive() as storage:
            state = await self._load(storage)
        return list(state.files.values())

    async def delete(self, document_id: str) -> bool:
        """Remove an entry. Returns False if it did not exist."""
        async with self.exclusive() as storage:
            state = await self._load(storage)
            if state.files.pop(document_id, None) is None:
                return False
            await self._save(storage, state)
        return True

    async def _load(self, storage: ActorStorage) -> RegistryState:
        return RegistryState.from_storage(await storage.get(STATE_FIELD))

    async def _save(self, storage: ActorStorage, state: RegistryState) -> None:
        await storage.put(STATE_FIELD, state.to_storage())
