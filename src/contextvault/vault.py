"""
ContextVault facade.

Wires storage, embedding, language model, registry, memory and the two
orchestrators together and exposes the public entry points.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from contextvault.memory import ConversationMemory, ConversationState
from contextvault.providers import LLMProvider, OpenAIProvider, WorkersAIProvider
from contextvault.rag import (
    BaseEmbedding,
    DeletionResult,
    FakeEmbedding,
    IngestionResult,
    Ingestor,
    LocalEmbedding,
    OpenAIEmbedding,
    OrphanSweepResult,
    ParagraphChunker,
    PassageInventory,
    PassageStore,
    QueryPipeline,
    QueryResult,
    ScanRetriever,
    WorkersAIEmbedding,
    load_bytes,
    load_path,
)
from contextvault.registry import FileMetadata, FileRegistry
from contextvault.storage import (
    KeyValueStore,
    MemoryKeyValueStore,
    MemoryStorageFactory,
    RedisKeyValueStore,
    RedisStorageFactory,
    SQLiteKeyValueStore,
    SQLiteStorageFactory,
    StorageFactory,
)
from contextvault.utils import (
    EmbeddingConfig,
    LLMConfig,
    StorageConfig,
    VaultConfig,
    load_config,
    set_log_level,
)

logger = logging.getLogger(__name__)


def create_embedding(config: EmbeddingConfig) -> BaseEmbedding:
    """Build the embedding service selected by ``config.provider``."""
    if config.provider == "openai":
        return OpenAIEmbedding(
            model=config.model or "text-embedding-3-small",
            api_key=config.api_key,
            base_url=config.base_url,
            dimension=config.dimension,
        )
    elif config.provider == "workers_ai":
        return WorkersAIEmbedding(
            account_id=config.account_id,
            api_token=config.api_key,
            model=config.model or "@cf/baai/bge-large-en-v1.5",
            dimension=config.dimension,
        )
    elif config.provider == "local":
        return LocalEmbedding(
            model_name=config.model or "all-MiniLM-L6-v2",
            dimension=config.dimension,
        )
    else:
        return FakeEmbedding(dimension=config.dimension or 64)


def create_llm(config: LLMConfig) -> LLMProvider:
    """Build the language-model provider selected by ``config.provider``."""
    if config.provider == "workers_ai":
        return WorkersAIProvider(
            model=config.model or "@cf/meta/llama-3.1-70b-instruct",
            account_id=config.account_id,
            api_token=config.api_key,
        )
    return OpenAIProvider(
        model=config.model or "gpt-4o-mini",
        api_key=config.api_key,
        base_url=config.base_url,
    )


def create_storage(config: StorageConfig) -> tuple[KeyValueStore, StorageFactory]:
    """Build the passage store and the actor storage factory for a backend."""
    if config.backend == "sqlite":
        return SQLiteKeyValueStore(config.path), SQLiteStorageFactory(config.path)
    elif config.backend == "redis":
        return (
            RedisKeyValueStore(config.redis_url, key_prefix=f"{config.key_prefix}passage:"),
            RedisStorageFactory(config.redis_url, key_prefix=f"{config.key_prefix}actor:"),
        )
    return MemoryKeyValueStore(), MemoryStorageFactory()


class ContextVault:
    """
    Document question answering over a brute-force passage store.

    Example:
        ```python
        vault = ContextVault.from_config(load_config("contextvault.yaml"))
        result = await vault.ingest("Refunds are accepted within 30 days.", "policy.txt")
        answer = await vault.query("How long do I have to return an item?", "session-1")
        ```
    """

    def __init__(
        self,
        embedding: BaseEmbedding,
        llm: LLMProvider,
        kv: Optional[KeyValueStore] = None,
        storage_factory: Optional[StorageFactory] = None,
        config: Optional[VaultConfig] = None,
    ):
        """
        Initialize the vault.

        Args:
            embedding: Embedding service for passages and queries
            llm: Language-model provider
            kv: Passage key/value store (in-memory by default)
            storage_factory: Actor storage for the registry and sessions
                (in-memory by default)
            config: Tunables; defaults when omitted
        """
        self.config = config or VaultConfig()
        self.embedding = embedding
        self.llm = llm

        storage_factory = storage_factory or MemoryStorageFactory()
        self.store = PassageStore(kv or MemoryKeyValueStore(), batch_size=self.config.scan_batch_size)
        self.registry = FileRegistry(storage_factory("registry"))
        self.memory = ConversationMemory(storage_factory, max_turns=self.config.max_turns)

        self.ingestor = Ingestor(
            self.embedding,
            self.store,
            self.registry,
            ParagraphChunker(self.config.chunk_size, self.config.chunk_overlap),
        )
        self.pipeline = QueryPipeline(
            ScanRetriever(self.embedding, self.store),
            self.memory,
            self.llm,
            top_k=self.config.top_k,
            max_tokens=self.config.max_tokens,
            temperature=self.config.temperature,
            snippet_length=self.config.snippet_length,
        )

    @classmethod
    def from_config(cls, config: VaultConfig | str | Path | None = None) -> ContextVault:
        """Build a vault from a config object or a YAML/JSON file path."""
        if not isinstance(config, VaultConfig):
            config = load_config(config) if config else load_config()

        set_log_level(config.log_level)
        kv, storage_factory = create_storage(config.storage)
        logger.info(
            f"Starting ContextVault: storage={config.storage.backend}, "
            f"embedding={config.embedding.provider}, llm={config.llm.provider}"
        )
        return cls(
            embedding=create_embedding(config.embedding),
            llm=create_llm(config.llm),
            kv=kv,
            storage_factory=storage_factory,
            config=config,
        )

    async def ingest(
        self,
        text: str,
        name: str = "pasted_text.txt",
        type: str = "text/plain",
    ) -> IngestionResult:
        """Chunk, embed and store a document."""
        return await self.ingestor.ingest(text, name, type)

    async def ingest_file(
        self,
        source: str | Path | bytes,
        name: Optional[str] = None,
        content_type: Optional[str] = None,
    ) -> IngestionResult:
        """Ingest a file from disk or an uploaded byte string (text or PDF)."""
        if isinstance(source, bytes):
            document = await load_bytes(source, name=name, content_type=content_type)
        else:
            document = await load_path(source)
            if name:
                document.name = name
        return await self.ingestor.ingest(document.text, document.name, document.type)

    async def query(self, query: str, session_id: str, k: Optional[int] = None) -> QueryResult:
        """Answer a question from stored passages."""
        return await self.pipeline.query(query, session_id, k)

    async def list_documents(self) -> list[FileMetadata]:
        return await self.registry.list()

    async def get_document(self, document_id: str) -> FileMetadata:
        return await self.registry.get(document_id)

    async def delete_document(self, document_id: str) -> DeletionResult:
        """Delete a document and all of its passages."""
        return await self.ingestor.delete_document(document_id)

    async def get_conversation(self, session_id: str) -> ConversationState:
        return await self.memory.get_state(session_id)

    async def clear_conversation(self, session_id: str) -> bool:
        await self.memory.clear(session_id)
        return True

    async def cleanup_orphaned_passages(self) -> OrphanSweepResult:
        return await self.ingestor.cleanup_orphaned_passages()

    async def inventory(self) -> PassageInventory:
        return await self.ingestor.inventory()
