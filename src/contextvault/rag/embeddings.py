"""Embedding service implementations."""

import asyncio
import hashlib
import logging
import re
from typing import Any, Optional

from contextvault.exceptions import EmbeddingError

from .base import BaseEmbedding

logger = logging.getLogger(__name__)


def coerce_embedding(response: Any) -> list[float]:
    """Extract a single vector from an embedding service response.

    Accepted shapes: a flat list of numbers, a batch (list of lists) whose
    first row is used, or a mapping with the vector(s) under ``data``.

    Raises:
        EmbeddingError: For any other shape
    """
    if isinstance(response, dict) and "data" in response:
        response = response["data"]

    if isinstance(response, list) and response and isinstance(response[0], list):
        response = response[0]

    if (
        isinstance(response, list)
        and response
        and all(isinstance(x, (int, float)) and not isinstance(x, bool) for x in response)
    ):
        return [float(x) for x in response]

    raise EmbeddingError(f"Unexpected embedding response format: {type(response).__name__}")


class OpenAIEmbedding(BaseEmbedding):
    """OpenAI embedding model.

    Uses OpenAI's embedding API (text-embedding-3-small/large).
    """

    # Known model dimensions
    MODEL_DIMENSIONS = {
        "text-embedding-3-small": 1536,
        "text-embedding-3-large": 3072,
        "text-embedding-ada-002": 1536,
    }

    def __init__(
        self,
        model: str = "text-embedding-3-small",
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        dimension: Optional[int] = None,
    ):
        """Initialize the OpenAI embedding model.

        Args:
            model: Model name (text-embedding-3-small, text-embedding-3-large)
            api_key: OpenAI API key (optional, uses env var if not provided)
            base_url: Optional base URL for API
            dimension: Vector size for models missing from MODEL_DIMENSIONS
        """
        self.model = model
        self.api_key = api_key
        self.base_url = base_url
        self._dimension = dimension
        self._client = None

    @property
    def dimension(self) -> int:
        return self._dimension or self.MODEL_DIMENSIONS.get(self.model, 1536)

    def _get_client(self):
        """Get or create the OpenAI client."""
        if self._client is None:
            from openai import AsyncOpenAI

            kwargs = {}
            if self.api_key:
                kwargs["api_key"] = self.api_key
            if self.base_url:
                kwargs["base_url"] = self.base_url

            self._client = AsyncOpenAI(**kwargs)
        return self._client

    async def embed(self, text: str) -> list[float]:
        """Embed a single text using the OpenAI API."""
        client = self._get_client()

        try:
            response = await client.embeddings.create(
                model=self.model,
                input=text.strip(),
            )
        except Exception as e:
            raise EmbeddingError(f"Failed to generate embedding: {e}") from e

        if not response.data:
            raise EmbeddingError("Embedding response contained no data")
        return coerce_embedding(response.data[0].embedding)


class WorkersAIEmbedding(BaseEmbedding):
    """Cloudflare Workers AI embedding model (``@cf/baai/bge-*``)."""

    MODEL_DIMENSIONS = {
        "@cf/baai/bge-small-en-v1.5": 384,
        "@cf/baai/bge-base-en-v1.5": 768,
        "@cf/baai/bge-large-en-v1.5": 1024,
    }

    def __init__(
        self,
        account_id: Optional[str] = None,
        api_token: Optional[str] = None,
        model: str = "@cf/baai/bge-large-en-v1.5",
        client: Any = None,
        dimension: Optional[int] = None,
    ):
        from contextvault.providers.workers_ai import WorkersAIClient

        self.model = model
        self.client = client or WorkersAIClient(account_id=account_id, api_token=api_token)
        self._dimension = dimension

    @property
    def dimension(self) -> int:
        return self._dimension or self.MODEL_DIMENSIONS.get(self.model, 1024)

    async def embed(self, text: str) -> list[float]:
        try:
            result = await self.client.run(self.model, {"text": text.strip()})
        except Exception as e:
            raise EmbeddingError(f"Failed to generate embedding: {e}") from e
        return coerce_embedding(result)


class LocalEmbedding(BaseEmbedding):
    """Local embedding model using sentence-transformers.

    Uses HuggingFace sentence-transformers models locally.
    No API calls required, runs entirely on the local machine.

    Note: Requires the 'local' extra to be installed.
    """

    # Known model dimensions
    MODEL_DIMENSIONS = {
        "all-MiniLM-L6-v2": 384,
        "all-mpnet-base-v2": 768,
        "BAAI/bge-large-en-v1.5": 1024,
    }

    def __init__(
        self,
        model_name: str = "all-MiniLM-L6-v2",
        device: Optional[str] = None,
        dimension: Optional[int] = None,
    ):
        """Initialize the local embedding model.

        Args:
            model_name: Name of the sentence-transformers model
            device: Device to run on (cuda, cpu, mps). Auto-detected if None.
            dimension: Vector size for models missing from MODEL_DIMENSIONS
        """
        self.model_name = model_name
        self.device = device
        self._dimension = dimension
        self._model = None

    @property
    def dimension(self) -> int:
        return self._dimension or self.MODEL_DIMENSIONS.get(self.model_name, 384)

    def _get_model(self):
        """Get or load the sentence-transformers model."""
        if self._model is None:
            try:
                from sentence_transformers import SentenceTransformer
            except ImportError:
                raise ImportError(
                    "Local embedding requires 'sentence-transformers'. "
                    "Install it with: pip install sentence-transformers"
                )

            self._model = SentenceTransformer(self.model_name, device=self.device)
            logger.info(f"Loaded embedding model: {self.model_name}")
        return self._model

    async def embed(self, text: str) -> list[float]:
        """Embed a single text using the local model."""
        model = self._get_model()

        # Run in thread pool to avoid blocking
        loop = asyncio.get_event_loop()
        try:
            vector = await loop.run_in_executor(
                None,
                lambda: model.encode(text.strip(), convert_to_numpy=True),
            )
        except Exception as e:
            raise EmbeddingError(f"Local embedding failed: {e}") from e

        return coerce_embedding(vector.tolist())


class FakeEmbedding(BaseEmbedding):
    """Deterministic bag-of-words embedding for tests and offline use.

    Each lower-cased word is hashed to a bucket and a sign, so texts that
    share words point in similar directions. Text with no words embeds to
    the zero vector.
    """

    _WORD = re.compile(r"\w+")

    def __init__(self, dimension: int = 64, seed: int = 42):
        """Initialize the fake embedding.

        Args:
            dimension: Dimension of the embedding vectors
            seed: Salt mixed into every hash
        """
        self._dimension = dimension
        self.seed = seed

    @property
    def dimension(self) -> int:
        return self._dimension

    async def embed(self, text: str) -> list[float]:
        vector = [0.0] * self._dimension
        for word in self._WORD.findall(text.lower()):
            digest = hashlib.sha256(f"{self.seed}:{word}".encode()).digest()
            bucket = int.from_bytes(digest[:4], "big") % self._dimension
            vector[bucket] += 1.0 if digest[4] % 2 == 0 else -1.0
        return vector
