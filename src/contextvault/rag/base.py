"""Base classes and abstract interfaces for RAG components."""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .document import Passage, ScoredPassage


class BaseEmbedding(ABC):
    """Abstract base class for embedding services.

    Embedding services convert text into fixed-length dense vectors. They
    raise :class:`~contextvault.exceptions.EmbeddingError` when the service
    fails or answers with an unexpected shape.
    """

    @abstractmethod
    async def embed(self, text: str) -> list[float]:
        """Embed a single text.

        Args:
            text: Text to embed

        Returns:
            Embedding vector (not normalized)
        """
        pass

    async def embed_documents(self, texts: list[str]) -> list[list[float]]:
        """Embed several texts one after another.

        Args:
            texts: List of text strings to embed

        Returns:
            List of embedding vectors
        """
        return [await self.embed(text) for text in texts]

    @property
    @abstractmethod
    def dimension(self) -> int:
        """Return the dimension of the embedding vectors."""
        pass


class BaseChunker(ABC):
    """Abstract base class for text chunkers.

    Chunkers split raw document text into passages for embedding.
    """

    @abstractmethod
    def chunk(self, text: str) -> list["Passage"]:
        """Split text into passages.

        Args:
            text: Raw document text

        Returns:
            List of passages, in document order
        """
        pass


class BaseRetriever(ABC):
    """Abstract base class for retrievers."""

    @abstractmethod
    async def retrieve(self, query: str, k: int = 5) -> list["ScoredPassage"]:
        """Retrieve the passages most similar to a query.

        Args:
            query: Query string
            k: Number of results to return

        Returns:
            Scored passages, best first
        """
        pass
