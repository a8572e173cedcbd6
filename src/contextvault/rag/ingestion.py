"""Ingestion orchestrator: register, chunk, embed, store.

Also owns the two operations that must keep the registry and the passage
store in step: document deletion and the orphan sweep.
"""

import logging
from typing import Optional

from pydantic import BaseModel, Field

from contextvault.exceptions import PartialIngestionError, ValidationError
from contextvault.registry import FileRegistry, FileStatus

from .base import BaseChunker, BaseEmbedding
from .chunking import ParagraphChunker, estimate_tokens
from .document import Passage, PassageRecord, document_prefix, passage_key
from .scoring import is_zero_vector, normalize_vector
from .store import DeletionResult, PassageInventory, PassageStore

logger = logging.getLogger(__name__)


class IngestionResult(BaseModel):
    """Outcome of ingesting one document.

    Attributes:
        document_id: Registry id of the document
        stored_passage_count: Passages embedded and stored
        status: Final registry status
        errors: One message per failed passage
        skipped: Indices of passages whose embedding had zero magnitude
    """

    document_id: str
    stored_passage_count: int = 0
    status: FileStatus = FileStatus.COMPLETED
    errors: list[str] = Field(default_factory=list)
    skipped: list[int] = Field(default_factory=list)

    def raise_for_status(self) -> None:
        """Raise :class:`PartialIngestionError` if any passage failed."""
        if self.errors:
            raise PartialIngestionError(self.document_id, self.errors)


class OrphanSweepResult(BaseModel):
    """Outcome of :meth:`Ingestor.cleanup_orphaned_passages`."""
    total_scanned: int = 0
    registered_documents: int = 0
    orphaned_found: int = 0
    orphaned_deleted: int = 0
    remaining: int = 0
    stale_entries_removed: int = 0


class Ingestor:
    """Turns raw text into stored, embedded passages.

    Passages are embedded one at a time. A failing passage is logged and
    recorded but never aborts the document; the registry entry ends up
    ``completed`` or ``error`` with ``chunk_count`` equal to the number of
    passages actually stored.
    """

    def __init__(
        self,
        embedding: BaseEmbedding,
        store: PassageStore,
        registry: FileRegistry,
        chunker: Optional[BaseChunker] = None,
    ):
        self.embedding = embedding
        self.store = store
        self.registry = registry
        self.chunker = chunker or ParagraphChunker()

    async def ingest(self, text: str, name: str, type: str) -> IngestionResult:
        """Ingest one document.

        Args:
            text: Full document text
            name: File name recorded in the registry and passage metadata
            type: MIME type

        Returns:
            IngestionResult; call ``raise_for_status()`` to turn passage
            failures into an exception

        Raises:
            ValidationError: Empty text
        """
        if not text or not text.strip():
            raise ValidationError("Document text is empty")

        document_id = await self.registry.register(name, type, len(text))
        passages = self.chunker.chunk(text)
        logger.info(
            f"Ingesting {name!r} as {document_id}: {len(text)} chars, "
            f"~{estimate_tokens(text)} tokens, {len(passages)} passages"
        )

        result = IngestionResult(document_id=document_id)
        for passage in passages:
            try:
                stored = await self._store_passage(document_id, passage, name, type)
            except Exception as e:
                message = f"Passage {passage.index}: {e}"
                logger.warning(f"Failed to ingest {message} of {document_id}")
                result.errors.append(message)
                continue

            if stored:
                result.stored_passage_count += 1
            else:
                logger.warning(f"Passage {passage.index} of {document_id} has a zero embedding; skipped")
                result.skipped.append(passage.index)

        result.status = FileStatus.ERROR if result.errors else FileStatus.COMPLETED
        await self.registry.update(
            document_id,
            chunk_count=result.stored_passage_count,
            status=result.status,
            error="; ".join(result.errors) if result.errors else None,
        )

        logger.info(
            f"Ingested {document_id}: {result.stored_passage_count}/{len(passages)} passages stored, "
            f"{len(result.errors)} failed, {len(result.skipped)} skipped"
        )
        return result

    async def _store_passage(self, document_id: str, passage: Passage, name: str, type: str) -> bool:
        embedding = await self.embedding.embed(passage.text)
        if len(embedding) != self.embedding.dimension:
            raise ValidationError(
                f"Embedding has {len(embedding)} dimensions, expected {self.embedding.dimension}"
            )
        if is_zero_vector(embedding):
            return False

        await self.store.put(PassageRecord(
            key=passage_key(document_id, passage.index),
            text=passage.text,
            embedding=normalize_vector(embedding),
            metadata={
                "file_name": name,
                "file_type": type,
                "chunk_index": passage.index,
                "start_offset": passage.start_offset,
                "end_offset": passage.end_offset,
            },
        ))
        return True

    async def delete_document(self, document_id: str) -> DeletionResult:
        """Delete a document's passages, then its registry entry.

        The registry entry is removed even if some passages survive the
        retry; they are reported in the result and picked up by the next
        orphan sweep.

        Raises:
            NotFoundError: Unknown document id
        """
        meta = await self.registry.get(document_id)

        result = await self.store.delete_document(document_id, meta.chunk_count)
        await self.registry.delete(document_id)

        logger.info(
            f"Deleted {document_id} ({meta.name!r}): {result.deleted_passage_count} passages, "
            f"verification {result.verification}"
        )
        return result

    async def cleanup_orphaned_passages(self) -> OrphanSweepResult:
        """Delete passages whose document is no longer registered.

        Also drops terminal registry entries that claim stored passages
        but have none left, which is what an interrupted delete leaves
        behind.
        An entry is only dropped after its keys are listed again, so a
        document whose ingestion finished after the inventory was taken
        keeps its entry.
        """
        inventory = await self.store.inventory()
        registered = {meta.document_id: meta for meta in await self.registry.list()}

        orphan_keys = [
            key
            for document_id, keys in inventory.by_document.items()
            if document_id not in registered
            for key in keys
        ]
        if orphan_keys:
            logger.info(f"Found {len(orphan_keys)} orphaned passages")
        deleted = await self.store.delete_keys(orphan_keys)

        stale = 0
        for document_id, meta in registered.items():
            if (
                meta.status.is_terminal
                and meta.chunk_count > 0
                and document_id not in inventory.by_document
            ):
                if await self.store.keys(document_prefix(document_id)):
                    continue
                if await self.registry.delete(document_id):
                    logger.info(f"Removed stale registry entry {document_id}")
                    stale += 1

        remaining = len(await self.store.keys())
        return OrphanSweepResult(
            total_scanned=inventory.total,
            registered_documents=len(registered) - stale,
            orphaned_found=len(orphan_keys),
            orphaned_deleted=len(deleted),
            remaining=remaining,
            stale_entries_removed=stale,
        )

    async def inventory(self) -> PassageInventory:
        """Count stored passages per owning document."""
        return await self.store.inventory()
