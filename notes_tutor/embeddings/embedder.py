"""
Embedder - Converts text to vector embeddings.

This module is the embedding gateway used by both ingestion (documents)
and question answering (queries). Two backends are available:

- Embedder: a local sentence-transformers model (default)
- OllamaEmbedder: an embedding model served by Ollama

Key Concepts:
- Embeddings are lists of numbers that represent meaning
- The same model must be used for storing and querying
- Every vector has the model's declared dimensionality; a vector of any
  other length is rejected, never padded or truncated

Example:
    embedder = get_embedder()
    vector = embedder.embed("What is a fraction?", variant="query")
    print(len(vector))  # 384
"""

import logging
import math
from typing import Literal

import httpx
import ollama
from sentence_transformers import SentenceTransformer

from notes_tutor.config import (
    EMBEDDING_BACKEND,
    EMBEDDING_DIMENSION,
    EMBEDDING_DOCUMENT_PREFIX,
    EMBEDDING_MODEL,
    EMBEDDING_QUERY_PREFIX,
    EMBEDDING_TIMEOUT_SECONDS,
    OLLAMA_BASE_URL,
    OLLAMA_EMBEDDING_MODEL,
)
from notes_tutor.errors import InvalidResponse, ServiceUnavailable

logger = logging.getLogger(__name__)

Variant = Literal["query", "document"]


def _check_vector(values, expected_dimension: int | None, model_name: str) -> list[float]:
    """Validate a raw embedding and convert it to a list of floats."""
    try:
        vector = [float(v) for v in values]
    except (TypeError, ValueError) as exc:
        raise InvalidResponse(f"Embedding model {model_name} returned non-numeric data") from exc

    if not vector:
        raise InvalidResponse(f"Embedding model {model_name} returned an empty vector")
    if expected_dimension is not None and len(vector) != expected_dimension:
        raise InvalidResponse(
            f"Embedding model {model_name} returned {len(vector)} values, "
            f"expected {expected_dimension}"
        )
    if not all(math.isfinite(v) for v in vector):
        raise InvalidResponse(f"Embedding model {model_name} returned non-finite values")
    return vector


class Embedder:
    """
    Converts text to vector embeddings using sentence-transformers.

    IMPORTANT: Always use the same model for indexing and querying!
    Chunks embedded by a model of another dimensionality are ignored at
    query time.

    Example:
        embedder = Embedder()
        question_vector = embedder.embed("What is 5 + 3?", variant="query")
    """

    def __init__(
        self,
        model_name: str | None = None,
        dimension: int | None = None,
        query_prefix: str | None = None,
        document_prefix: str | None = None,
    ):
        """
        Initialize the embedder with a model.

        Args:
            model_name: Name of the sentence-transformer model to use
            dimension: Declared embedding dimension (defaults to config)
            query_prefix: Text prepended to queries (asymmetric models)
            document_prefix: Text prepended to documents

        Note:
            First run will download the model (~90MB for MiniLM).
            Subsequent runs use the cached version.
        """
        self.model_name = model_name or EMBEDDING_MODEL
        self.dimension = dimension or EMBEDDING_DIMENSION
        self.prefixes = {
            "query": EMBEDDING_QUERY_PREFIX if query_prefix is None else query_prefix,
            "document": EMBEDDING_DOCUMENT_PREFIX if document_prefix is None else document_prefix,
        }
        self._model = None  # Lazy loading

    @property
    def model(self) -> SentenceTransformer:
        """
        Lazy-load the model on first use.

        Raises:
            ServiceUnavailable: If the model cannot be loaded
        """
        if self._model is None:
            logger.info("Loading embedding model: %s", self.model_name)
            try:
                self._model = SentenceTransformer(self.model_name)
            except (OSError, ValueError) as exc:
                raise ServiceUnavailable(
                    f"Embedding model {self.model_name} could not be loaded"
                ) from exc
            loaded_dimension = self._model.get_sentence_embedding_dimension()
            if loaded_dimension != self.dimension:
                logger.warning(
                    "Model %s produces %s-dimensional vectors but %s were declared",
                    self.model_name,
                    loaded_dimension,
                    self.dimension,
                )
        return self._model

    def embed(self, text: str, variant: Variant = "document") -> list[float]:
        """
        Convert a single text to an embedding vector.

        Args:
            text: The text to embed
            variant: "query" for questions, "document" for stored chunks

        Returns:
            List of floats with exactly `dimension` values

        Raises:
            ValueError: If the text is empty
            ServiceUnavailable: If the model fails
            InvalidResponse: If the output has the wrong shape
        """
        if not text or not text.strip():
            raise ValueError("Cannot embed empty text")

        model = self.model
        try:
            embedding = model.encode(self.prefixes[variant] + text, convert_to_numpy=True)
        except RuntimeError as exc:
            raise ServiceUnavailable(f"Embedding model {self.model_name} failed") from exc

        return _check_vector(embedding, self.dimension, self.model_name)


class OllamaEmbedder:
    """
    Converts text to embeddings with a model served by Ollama.

    Unlike the local model this is a network call, so it runs under
    EMBEDDING_TIMEOUT_SECONDS.

    Example:
        embedder = OllamaEmbedder(model_name="nomic-embed-text", dimension=768)
        vector = embedder.embed("photosynthesis", variant="query")
    """

    def __init__(
        self,
        model_name: str | None = None,
        dimension: int | None = None,
        host: str | None = None,
        timeout: float | None = None,
        client: ollama.Client | None = None,
    ):
        self.model_name = model_name or OLLAMA_EMBEDDING_MODEL
        self.dimension = dimension
        self.prefixes = {"query": EMBEDDING_QUERY_PREFIX, "document": EMBEDDING_DOCUMENT_PREFIX}
        self._client = client or ollama.Client(
            host=host or OLLAMA_BASE_URL,
            timeout=timeout or EMBEDDING_TIMEOUT_SECONDS,
        )

    def embed(self, text: str, variant: Variant = "document") -> list[float]:
        """Embed one text. Same contract as Embedder.embed."""
        if not text or not text.strip():
            raise ValueError("Cannot embed empty text")

        try:
            response = self._client.embed(model=self.model_name, input=self.prefixes[variant] + text)
        except ollama.ResponseError as exc:
            raise ServiceUnavailable(f"Ollama embedding failed: {exc.error}") from exc
        except (httpx.HTTPError, ConnectionError) as exc:
            raise ServiceUnavailable("Cannot reach Ollama for embeddings") from exc

        embeddings = response["embeddings"] if response else None
        if not embeddings:
            raise InvalidResponse(f"Ollama returned no embedding for model {self.model_name}")

        return _check_vector(embeddings[0], self.dimension, self.model_name)


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================


def get_embedder(backend: str | None = None) -> Embedder | OllamaEmbedder:
    """
    Create the embedding gateway selected by EMBEDDING_BACKEND.

    Raises:
        ValueError: For an unknown backend name
    """
    backend = backend or EMBEDDING_BACKEND
    if backend == "sentence-transformers":
        return Embedder()
    if backend == "ollama":
        return OllamaEmbedder(dimension=EMBEDDING_DIMENSION)
    raise ValueError(f"Unknown embedding backend: {backend}")
