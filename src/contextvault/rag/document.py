"""Passage and record data structures."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Passage(BaseModel):
    """A contiguous slice of a source document.

    Attributes:
        text: The passage text
        index: Zero-based position within the document, contiguous across
            the whole document
        start_offset: Start character offset in the original text
        end_offset: End character offset in the original text
    """

    model_config = ConfigDict(frozen=True)

    text: str
    index: int
    start_offset: int = 0
    end_offset: int = 0

    def __repr__(self) -> str:
        preview = self.text[:30] + "..." if len(self.text) > 30 else self.text
        return f"Passage(index={self.index}, text={preview!r})"


def passage_key(document_id: str, index: int) -> str:
    """Composite store key of a passage."""
    return f"{document_id}:{index}"


def document_prefix(document_id: str) -> str:
    """Key prefix shared by every passage of a document."""
    return f"{document_id}:"


class PassageRecord(BaseModel):
    """The persisted form of a passage plus its unit-normalized embedding.

    Attributes:
        key: ``"<document_id>:<index>"``
        text: Passage text
        embedding: Unit-length vector
        metadata: file_name, file_type, chunk_index, start_offset, end_offset
    """

    key: str
    text: str
    embedding: list[float]
    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def document_id(self) -> str:
        return self.key.rsplit(":", 1)[0]

    def to_value(self) -> dict[str, Any]:
        """Value stored under :attr:`key` (the key itself is not repeated)."""
        return {"text": self.text, "embedding": self.embedding, "metadata": self.metadata}

    def __repr__(self) -> str:
        preview = self.text[:30] + "..." if len(self.text) > 30 else self.text
        return f"PassageRecord(key={self.key!r}, text={preview!r})"


class ScoredPassage(BaseModel):
    """A ranked passage returned by retrieval.

    Attributes:
        key: Store key of the passage
        text: Passage text
        score: Similarity to the query (higher is better)
        metadata: Stored passage metadata
    """

    key: str
    text: str
    score: float
    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def file_name(self) -> str:
        return self.metadata.get("file_name") or "Unknown"

    def __repr__(self) -> str:
        return f"ScoredPassage(key={self.key!r}, score={self.score:.4f})"
