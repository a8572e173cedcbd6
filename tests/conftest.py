"""
Test configuration and fixtures.
"""

from typing import Any, Optional

import pytest

from contextvault.exceptions import EmbeddingError
from contextvault.memory import ConversationMemory
from contextvault.providers import LLMProvider
from contextvault.rag import BaseEmbedding, Ingestor, ParagraphChunker, PassageStore
from contextvault.registry import FileRegistry
from contextvault.storage import MemoryActorStorage, MemoryKeyValueStore


class MappingEmbedding(BaseEmbedding):
    """Embedding that returns fixed vectors for known texts.

    Texts containing a key of ``vectors`` get that vector; texts listed in
    ``failures`` raise EmbeddingError; anything else gets ``default``.
    """

    def __init__(
        self,
        vectors: Optional[dict[str, list[float]]] = None,
        default: Optional[list[float]] = None,
        failures: tuple[str, ...] = (),
    ):
        self.vectors = vectors or {}
        self.default = default or [1.0, 0.0]
        self.failures = failures
        self.calls: list[str] = []

    @property
    def dimension(self) -> int:
        return len(self.default)

    async def embed(self, text: str) -> list[float]:
        self.calls.append(text)
        for marker in self.failures:
            if marker in text:
                raise EmbeddingError(f"embedding service unavailable for {marker!r}")
        for marker, vector in self.vectors.items():
            if marker in text:
                return list(vector)
        return list(self.default)


class ScriptedLLM(LLMProvider):
    """LLM provider that replays a fixed response and records every call."""

    def __init__(self, response: Any = "Scripted answer."):
        self.response = response
        self.calls: list[dict[str, Any]] = []

    async def complete(self, messages, *, max_tokens=1000, temperature=0.7, **kwargs):
        self.calls.append({
            "messages": messages,
            "max_tokens": max_tokens,
            "temperature": temperature,
        })
        if isinstance(self.response, Exception):
            raise self.response
        return self.response


@pytest.fixture
def kv():
    """Empty in-memory passage key/value store."""
    return MemoryKeyValueStore()


@pytest.fixture
def store(kv):
    return PassageStore(kv)


@pytest.fixture
def registry():
    return FileRegistry(MemoryActorStorage())


@pytest.fixture
def memory():
    return ConversationMemory()


@pytest.fixture
def embedding():
    return MappingEmbedding()


@pytest.fixture
def ingestor(embedding, store, registry):
    """Ingestor with a small chunk size so short texts produce several passages."""
    return Ingestor(embedding, store, registry, ParagraphChunker(target_size=40, overlap=5))


@pytest.fixture
def llm():
    return ScriptedLLM()
