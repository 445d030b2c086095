"""
Text Chunker - Splits text into bounded pieces for embedding.

This module splits extracted study notes into units that are small enough
to embed cheaply and to paste into an LLM prompt.

Key Concepts:
- Max chunk size: upper bound on characters per chunk (default: 2000)
- Whole words only: words are packed greedily and never split
- No overlap: every word lands in exactly one chunk

Example:
    Text: "the cat sat on the mat" (max 10 chars)

    Chunk 1: "the cat"
    Chunk 2: "sat on the"
    Chunk 3: "mat"

Sentence and paragraph breaks are not taken into account.
"""

from collections.abc import Iterator
from dataclasses import dataclass, field

from notes_tutor.config import CHUNK_SIZE


@dataclass
class TextChunk:
    """
    Represents a single chunk of text with metadata.

    Attributes:
        text: The chunk content (words joined by single spaces)
        chunk_index: Position of this chunk (0-indexed)
        metadata: Additional metadata (upload id, subject, topic, ...)
    """
    text: str
    chunk_index: int
    metadata: dict = field(default_factory=dict)

    @property
    def char_count(self) -> int:
        """Return the number of characters in this chunk."""
        return len(self.text)


def chunk_text(text: str, max_chunk_chars: int = CHUNK_SIZE) -> Iterator[str]:
    """
    Split text into chunks of whole words.

    Words are whitespace-delimited. Each chunk is filled until adding the
    next word (plus its joining space) would exceed `max_chunk_chars`.
    A word that is longer than the limit on its own becomes its own chunk.

    Args:
        text: Text to chunk
        max_chunk_chars: Maximum characters per chunk

    Yields:
        Chunk strings, in document order

    Raises:
        ValueError: If max_chunk_chars is less than 1

    Example:
        list(chunk_text("one two three", max_chunk_chars=7))
        # ['one two', 'three']
    """
    if max_chunk_chars < 1:
        raise ValueError("max_chunk_chars must be at least 1")

    current: list[str] = []
    current_len = 0

    for word in text.split():
        if not current:
            current = [word]
            current_len = len(word)
        elif current_len + 1 + len(word) <= max_chunk_chars:
            current.append(word)
            current_len += 1 + len(word)
        else:
            yield " ".join(current)
            current = [word]
            current_len = len(word)

    if current:
        yield " ".join(current)


class TextChunker:
    """
    Splits document text into TextChunk objects.

    Example:
        chunker = TextChunker(max_chunk_chars=500)
        chunks = chunker.chunk(text, metadata={"topic": "Fractions"})
        for chunk in chunks:
            print(f"Chunk {chunk.chunk_index}: {chunk.char_count} chars")
    """

    def __init__(self, max_chunk_chars: int | None = None):
        """
        Initialize the chunker.

        Args:
            max_chunk_chars: Maximum chunk size (defaults to CHUNK_SIZE)

        Raises:
            ValueError: If the size is less than 1
        """
        self.max_chunk_chars = CHUNK_SIZE if max_chunk_chars is None else max_chunk_chars
        if self.max_chunk_chars < 1:
            raise ValueError("max_chunk_chars must be at least 1")

    def chunk(self, text: str, metadata: dict | None = None) -> list[TextChunk]:
        """
        Split text into chunks, attaching a copy of metadata to each.

        Args:
            text: The text to chunk
            metadata: Optional metadata to attach to all chunks

        Returns:
            List of TextChunk objects (empty for blank text)
        """
        metadata = metadata or {}
        return [
            TextChunk(text=piece, chunk_index=i, metadata=metadata.copy())
            for i, piece in enumerate(chunk_text(text, self.max_chunk_chars))
        ]


# =============================================================================
# MAIN - For testing
# =============================================================================

if __name__ == "__main__":
    """
    Test the chunker with sample text.
    Run: python -m notes_tutor.ingestion.chunker
    """
    sample_text = """
    Fractions describe parts of a whole. The number on top is the numerator
    and the number on the bottom is the denominator. Equivalent fractions
    name the same amount, for example 1/2 and 2/4.
    """

    chunker = TextChunker(max_chunk_chars=80)
    for chunk in chunker.chunk(sample_text):
        print(f"[Chunk {chunk.chunk_index}] ({chunk.char_count} chars) {chunk.text}")
