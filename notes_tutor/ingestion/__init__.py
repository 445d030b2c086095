"""
Ingestion module - Turns uploaded text into embedded chunks.

This module is responsible for:
1. Splitting text into bounded, whole-word chunks
2. Embedding and storing those chunks per upload
"""

from .chunker import TextChunk, TextChunker, chunk_text
from .ingestor import IngestionResult, Ingestor

__all__ = ["TextChunk", "TextChunker", "chunk_text", "IngestionResult", "Ingestor"]
