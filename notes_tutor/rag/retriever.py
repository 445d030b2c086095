"""
Retriever - Finds the chunks most similar to a query vector.

This module handles the retrieval part of RAG:
1. Takes a query embedding and the asking user's id
2. Loads every chunk that user owns
3. Drops chunks whose vectors have a different dimensionality
   (they come from another embedding model version and cannot be compared)
4. Scores the rest with cosine similarity
5. Returns the top-k, best first

Key Concept:
Per-user corpora are small (hundreds to low thousands of chunks), so an
exact, exhaustive comparison is used instead of an approximate index.
Cost is O(n * d) per query.
"""

import math
from typing import NamedTuple

import numpy as np
from sklearn.metrics.pairwise import cosine_similarity as _pairwise_cosine

from notes_tutor.config import TOP_K_CHUNKS
from notes_tutor.embeddings.vector_store import Chunk, CorpusStore


class ScoredChunk(NamedTuple):
    """A retrieved chunk and its cosine similarity to the query."""

    chunk: Chunk
    similarity: float


def cosine_similarity(a, b) -> float:
    """
    Cosine similarity of two vectors: dot(a, b) / (|a| * |b|).

    Returns 0.0 when either vector is all zeros. The result always lies in
    [-1, 1], and a vector compared with itself scores exactly 1.0.

    Raises:
        ValueError: If the vectors have different lengths
    """
    a = np.asarray(a, dtype=float).ravel()
    b = np.asarray(b, dtype=float).ravel()
    if a.shape != b.shape:
        raise ValueError(f"Vector length mismatch: {a.shape[0]} vs {b.shape[0]}")

    norms = math.fsum((a * a).tolist()) * math.fsum((b * b).tolist())
    if norms == 0.0:
        return 0.0
    # fsum is correctly rounded and sqrt(s * s) == s, so identical vectors give exactly 1.0
    dot = math.fsum((a * b).tolist())
    return float(np.clip(dot / math.sqrt(norms), -1.0, 1.0))


def format_context(chunks: list[Chunk], max_chars: int) -> str:
    """
    Format chunks for inclusion in a prompt.

    Each chunk is preceded by its [Subject / Topic / Subtopic] label (when
    it has one) so the LLM can tell sections apart. The whole block is cut
    at max_chars; chunks that no longer fit are dropped.
    """
    parts: list[str] = []
    used = 0
    for chunk in chunks:
        block = f"{chunk.label}\n{chunk.text}" if chunk.label else chunk.text
        separator = 2 if parts else 0
        room = max_chars - used - separator
        if room <= 0:
            break
        if len(block) > room:
            parts.append(block[:room])
            break
        parts.append(block)
        used += separator + len(block)
    return "\n\n".join(parts)


class Retriever:
    """
    Retrieves the most similar chunks of one user's corpus.

    Example:
        retriever = Retriever(corpus_store)
        matches = retriever.retrieve("user-1", query_vector, k=3)
        for chunk, score in matches:
            print(f"{score:.3f} {chunk.text[:50]}")
    """

    def __init__(self, corpus_store: CorpusStore, top_k: int | None = None):
        """
        Initialize the retriever.

        Args:
            corpus_store: Where the chunks live
            top_k: Default number of chunks to return
        """
        self.corpus_store = corpus_store
        self.top_k = TOP_K_CHUNKS if top_k is None else top_k

    def retrieve(
        self,
        owner_id: str,
        query_vector: list[float],
        k: int | None = None,
    ) -> list[ScoredChunk]:
        """
        Return up to k (chunk, similarity) pairs, highest similarity first.

        Ties keep corpus order. An empty list means the user has no chunk
        compatible with the query vector; that is not an error here.

        Raises:
            ValueError: If k is less than 1 or the query vector is empty
        """
        if k is None:
            k = self.top_k
        if k < 1:
            raise ValueError("k must be at least 1")
        if not query_vector:
            raise ValueError("query_vector is empty")

        dimension = len(query_vector)
        candidates = [
            chunk
            for chunk in self.corpus_store.list_by_owner(owner_id)
            if chunk.dimension == dimension
        ]
        if not candidates:
            return []

        matrix = np.array([chunk.vector for chunk in candidates], dtype=float)
        query = np.asarray(query_vector, dtype=float).reshape(1, -1)
        # Normalise-then-dot can overshoot the [-1, 1] range by an ulp
        scores = np.clip(_pairwise_cosine(query, matrix)[0], -1.0, 1.0)

        # Stable sort keeps corpus order between equal scores
        order = np.argsort(-scores, kind="stable")[:k]
        return [ScoredChunk(candidates[i], float(scores[i])) for i in order]
