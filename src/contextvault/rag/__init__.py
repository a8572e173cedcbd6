"""Retrieval-augmented generation over a brute-force passage store.

This module provides:
- Passage and record data structures
- Paragraph/sentence chunking with character overlap
- Embedding services (OpenAI, Workers AI, local, fake)
- Vector normalization and top-k ranking with no index
- Ingestion, deletion and orphan cleanup
- The query pipeline with conversation memory

Example:
    ```python
    from contextvault.rag import (
        FakeEmbedding,
        Ingestor,
        PassageStore,
        ScanRetriever,
    )
    from contextvault.registry import FileRegistry
    from contextvault.storage import MemoryActorStorage, MemoryKeyValueStore

    embedding = FakeEmbedding()
    store = PassageStore(MemoryKeyValueStore())
    ingestor = Ingestor(embedding, store, FileRegistry(MemoryActorStorage()))

    result = await ingestor.ingest("Python is a programming language.", "notes.txt", "text/plain")
    passages = await ScanRetriever(embedding, store).retrieve("What is Python?")
    ```
"""

# Data structures
from .document import (
    Passage,
    PassageRecord,
    ScoredPassage,
    document_prefix,
    passage_key,
)

# Base classes
from .base import BaseChunker, BaseEmbedding, BaseRetriever

# Chunking
from .chunking import ParagraphChunker, chunk_text, estimate_tokens

# Embedding services
from .embeddings import (
    FakeEmbedding,
    LocalEmbedding,
    OpenAIEmbedding,
    WorkersAIEmbedding,
    coerce_embedding,
)

# Scoring
from .scoring import dot_similarity, is_zero_vector, normalize_vector, top_k

# Store and retrieval
from .store import DeletionResult, PassageInventory, PassageStore
from .retriever import ScanRetriever, format_context

# Loaders
from .loaders import LoadedDocument, load_bytes, load_path

# Orchestration
from .ingestion import IngestionResult, Ingestor, OrphanSweepResult
from .pipeline import QueryPipeline, QueryResult, SourceSummary, build_rag_prompt

__all__ = [
    # Data structures
    "Passage",
    "PassageRecord",
    "ScoredPassage",
    "passage_key",
    "document_prefix",
    # Base classes
    "BaseEmbedding",
    "BaseChunker",
    "BaseRetriever",
    # Chunking
    "ParagraphChunker",
    "chunk_text",
    "estimate_tokens",
    # Embeddings
    "OpenAIEmbedding",
    "WorkersAIEmbedding",
    "LocalEmbedding",
    "FakeEmbedding",
    "coerce_embedding",
    # Scoring
    "normalize_vector",
    "is_zero_vector",
    "dot_similarity",
    "top_k",
    # Store and retrieval
    "PassageStore",
    "DeletionResult",
    "PassageInventory",
    "ScanRetriever",
    "format_context",
    # Loaders
    "LoadedDocument",
    "load_bytes",
    "load_path",
    # Orchestration
    "Ingestor",
    "IngestionResult",
    "OrphanSweepResult",
    "QueryPipeline",
    "QueryResult",
    "SourceSummary",
    "build_rag_prompt",
]
