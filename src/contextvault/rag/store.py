"""Passage store: passage records over a flat key/value store."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, AsyncIterator, Optional

from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from contextvault.exceptions import StoreInconsistencyError
from contextvault.storage.base import KeyValueStore

from .document import PassageRecord, document_prefix, passage_key

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 100


class DeletionResult(BaseModel):
    """Outcome of deleting every passage of one document.

    Attributes:
        document_id: The deleted document
        deleted_keys: Keys that existed and were removed
        residual_keys: Keys still listed after the retry pass
    """

    document_id: str
    deleted_keys: list[str] = Field(default_factory=list)
    residual_keys: list[str] = Field(default_factory=list)

    @property
    def deleted_passage_count(self) -> int:
        return len(self.deleted_keys)

    @property
    def verification(self) -> str:
        if not self.residual_keys:
            return "passed"
        return f"failed ({len(self.residual_keys)} passages remaining)"

    def raise_for_residuals(self) -> None:
        """Raise :class:`StoreInconsistencyError` if any passage survived."""
        if self.residual_keys:
            raise StoreInconsistencyError(self.document_id, self.residual_keys)


class PassageInventory(BaseModel):
    """Every stored key, grouped by owning document."""
    total: int = 0
    by_document: dict[str, list[str]] = Field(default_factory=dict)


class PassageStore:
    """Passage records keyed ``"<document_id>:<index>"``.

    There is no secondary index: :meth:`scan` walks every stored key.
    Reads are issued in batches of ``batch_size`` concurrent gets, one
    batch at a time.
    """

    def __init__(self, kv: KeyValueStore, batch_size: int = DEFAULT_BATCH_SIZE):
        self.kv = kv
        self.batch_size = batch_size

    async def put(self, record: PassageRecord) -> None:
        await self.kv.put(record.key, record.to_value())

    async def get(self, key: str) -> Optional[PassageRecord]:
        """Return the record under ``key``; None if absent or malformed."""
        return _to_record(key, await self.kv.get(key))

    async def keys(self, prefix: str = "") -> list[str]:
        return await self.kv.list(prefix)

    async def scan(self) -> AsyncIterator[PassageRecord]:
        """Yield every well-formed record in store order.

        Records with a missing or malformed embedding are skipped.
        Store errors propagate.
        """
        keys = await self.kv.list()
        for i in range(0, len(keys), self.batch_size):
            batch = keys[i:i + self.batch_size]
            values = await asyncio.gather(*(self.kv.get(key) for key in batch))
            for key, value in zip(batch, values):
                record = _to_record(key, value)
                if record is None:
                    if value is not None:
                        logger.debug(f"Skipping malformed passage record {key}")
                    continue
                yield record

    async def delete_document(self, document_id: str, expected_count: int = 0) -> DeletionResult:
        """Delete all passages of a document, then verify by prefix listing.

        Deletes are issued concurrently. Keys still listed afterwards are
        retried once; whatever survives the retry is reported in
        ``residual_keys``.

        Args:
            document_id: Owning document
            expected_count: Passage count recorded in the registry; keys
                ``0..expected_count-1`` are deleted even if not listed
        """
        prefix = document_prefix(document_id)
        listed = await self.kv.list(prefix)
        expected = [passage_key(document_id, i) for i in range(expected_count)]
        keys = list(dict.fromkeys(expected + listed))

        deleted = await self._delete_many(keys)

        residual = await self.kv.list(prefix)
        if residual:
            logger.warning(
                f"{len(residual)} passages still exist after deleting {document_id}; retrying"
            )
            deleted += await self._delete_many(residual)
            residual = await self.kv.list(prefix)
            if residual:
                logger.warning(f"{len(residual)} passages of {document_id} survived the retry")

        return DeletionResult(
            document_id=document_id,
            deleted_keys=list(dict.fromkeys(deleted)),
            residual_keys=residual,
        )

    async def delete_keys(self, keys: list[str]) -> list[str]:
        """Delete ``keys`` concurrently; returns the keys that existed."""
        return await self._delete_many(keys)

    async def inventory(self) -> PassageInventory:
        keys = await self.kv.list()
        by_document: dict[str, list[str]] = {}
        for key in keys:
            document_id, sep, _ = key.rpartition(":")
            if sep:
                by_document.setdefault(document_id, []).append(key)
        return PassageInventory(total=len(keys), by_document=by_document)

    async def _delete_many(self, keys: list[str]) -> list[str]:
        results = await asyncio.gather(
            *(self.kv.delete(key) for key in keys),
            return_exceptions=True,
        )
        deleted = []
        for key, result in zip(keys, results):
            if isinstance(result, BaseException):
                logger.warning(f"Failed to delete passage {key}: {result}")
            elif result:
                deleted.append(key)
        return deleted


def _to_record(key: str, value: Optional[dict[str, Any]]) -> Optional[PassageRecord]:
    if not isinstance(value, dict) or not value.get("embedding"):
        return None
    try:
        return PassageRecord.model_validate({**value, "key": key})
    except PydanticValidationError:
        return None
