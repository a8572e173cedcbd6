"""Brute-force retrieval over the passage store."""

import logging

from .base import BaseEmbedding, BaseRetriever
from .document import ScoredPassage
from .scoring import normalize_vector, top_k
from .store import PassageStore

logger = logging.getLogger(__name__)


class ScanRetriever(BaseRetriever):
    """Vector similarity retriever with no index.

    Each query embeds the text, normalizes it, and scores it against every
    stored passage, so cost grows linearly with the number of passages.
    Nothing is cached between queries.
    """

    def __init__(self, embedding: BaseEmbedding, store: PassageStore):
        """Initialize the retriever.

        Args:
            embedding: Embedding service for queries
            store: Passage store to scan
        """
        self.embedding = embedding
        self.store = store

    async def retrieve(self, query: str, k: int = 5) -> list[ScoredPassage]:
        """Retrieve the ``k`` passages most similar to ``query``."""
        query_embedding = normalize_vector(await self.embedding.embed(query))

        records = [record async for record in self.store.scan()]
        results = top_k(query_embedding, records, k)

        logger.debug(f"Scanned {len(records)} passages, returning {len(results)}")
        return results


def format_context(passages: list[ScoredPassage]) -> str:
    """Render passages as labelled sources, best first."""
    return "\n\n---\n\n".join(
        f"[Source {i + 1}: {passage.file_name}]\n{passage.text}"
        for i, passage in enumerate(passages)
    )
