"""
ContextVault - document question answering with brute-force retrieval.

Upload documents, ask questions, and get answers grounded in the passages
most similar to the question, with per-session conversation memory.
"""

from contextvault.exceptions import (
    EmbeddingError,
    LLMError,
    NotFoundError,
    PartialIngestionError,
    StoreInconsistencyError,
    ValidationError,
    VaultError,
)
from contextvault.memory import ConversationMemory, ConversationState, ConversationTurn
from contextvault.rag import (
    DeletionResult,
    IngestionResult,
    OrphanSweepResult,
    PassageInventory,
    QueryResult,
)
from contextvault.registry import FileMetadata, FileRegistry, FileStatus
from contextvault.utils import VaultConfig, load_config
from contextvault.vault import ContextVault

__version__ = "0.1.0"

__all__ = [
    "ContextVault",
    "VaultConfig",
    "load_config",
    # Results
    "IngestionResult",
    "DeletionResult",
    "OrphanSweepResult",
    "PassageInventory",
    "QueryResult",
    # Registry and memory
    "FileMetadata",
    "FileRegistry",
    "FileStatus",
    "ConversationMemory",
    "ConversationState",
    "ConversationTurn",
    # Exceptions
    "VaultError",
    "ValidationError",
    "NotFoundError",
    "EmbeddingError",
    "LLMError",
    "PartialIngestionError",
    "StoreInconsistencyError",
]
