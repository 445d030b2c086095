"""
Embeddings module - Embedding gateway and chunk storage.

This module is responsible for:
1. Converting text to embeddings (sentence-transformers or Ollama)
2. Storing chunks and their vectors in ChromaDB
"""

from .embedder import Embedder, OllamaEmbedder, get_embedder
from .vector_store import Chunk, CorpusStore

__all__ = ["Embedder", "OllamaEmbedder", "get_embedder", "Chunk", "CorpusStore"]
