"""Text chunking."""

import math
import re
from typing import Iterator

from contextvault.exceptions import ValidationError

from .base import BaseChunker
from .document import Passage

_PARAGRAPH_BREAK = re.compile(r"\n\s*\n")
# Runs ending in terminal punctuation, plus an unterminated trailing fragment.
_SENTENCE = re.compile(r"[^.!?]*[.!?]+|[^.!?]+$")


class ParagraphChunker(BaseChunker):
    """Split text on blank lines, then on sentences, with character overlap.

    Paragraphs that fit in ``target_size`` become one passage. Longer ones are
    packed sentence by sentence; each time a passage is closed the next one
    is seeded with the last ``overlap`` characters of it, so adjacent passages
    share text across the cut.
    """

    def __init__(self, target_size: int = 500, overlap: int = 50):
        """Initialize the chunker.

        Args:
            target_size: Preferred maximum characters per passage
            overlap: Characters carried over from one passage to the next
        """
        if target_size <= 0:
            raise ValidationError("target_size must be positive")
        if overlap < 0:
            raise ValidationError("overlap must not be negative")
        if overlap >= target_size:
            raise ValidationError("overlap must be less than target_size")

        self.target_size = target_size
        self.overlap = overlap

    def chunk(self, text: str) -> list[Passage]:
        """Split text into passages with globally increasing indices."""
        passages: list[Passage] = []

        for para_start, paragraph in _paragraphs(text):
            if not paragraph.strip():
                continue

            if len(paragraph) <= self.target_size:
                stripped = paragraph.strip()
                start = para_start + len(paragraph) - len(paragraph.lstrip())
                passages.append(Passage(
                    text=stripped,
                    index=len(passages),
                    start_offset=start,
                    end_offset=start + len(stripped),
                ))
                continue

            passages.extend(self._split_paragraph(paragraph, para_start, len(passages)))

        return passages

    def _split_paragraph(self, paragraph: str, para_start: int, first_index: int) -> list[Passage]:
        """Pack the sentences of an oversized paragraph into passages."""
        passages: list[Passage] = []
        buffer = ""
        buffer_start = para_start

        def close(text: str, start: int) -> None:
            if text.strip():
                passages.append(Passage(
                    text=text,
                    index=first_index + len(passages),
                    start_offset=start,
                    end_offset=start + len(text),
                ))

        for match in _SENTENCE.finditer(paragraph):
            sentence = match.group(0)
            if not sentence.strip():
                buffer += sentence
                continue

            if buffer and len(buffer) + len(sentence) > self.target_size:
                closed = buffer.rstrip()
                close(closed, buffer_start)

                tail = closed[-self.overlap:] if self.overlap else ""
                buffer_start += len(closed) - len(tail)
                buffer = tail + (sentence if tail else sentence.lstrip())
                if not tail:
                    buffer_start = para_start + match.end() - len(buffer)
            elif not buffer:
                buffer = sentence.lstrip()
                buffer_start = para_start + match.end() - len(buffer)
            else:
                buffer += sentence

        close(buffer.rstrip(), buffer_start)
        return passages


def _paragraphs(text: str) -> Iterator[tuple[int, str]]:
    """Yield ``(offset, paragraph)`` pairs split on blank lines."""
    start = 0
    for match in _PARAGRAPH_BREAK.finditer(text):
        yield start, text[start:match.start()]
        start = match.end()
    yield start, text[start:]


def chunk_text(text: str, target_size: int = 500, overlap: int = 50) -> list[Passage]:
    """Split ``text`` into overlapping passages.

    Args:
        text: Raw document text
        target_size: Preferred maximum characters per passage
        overlap: Characters shared between adjacent passages of one paragraph

    Returns:
        Passages in document order; empty for blank input
    """
    return ParagraphChunker(target_size, overlap).chunk(text)


def estimate_tokens(text: str) -> int:
    """Rough token estimate (about four characters per token)."""
    return math.ceil(len(text) / 4)
