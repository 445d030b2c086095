"""
RAG module - Retrieval-Augmented Generation pipeline.

This module is responsible for:
1. Retrieving the chunks most similar to a question
2. Generating text using Ollama
3. Synthesizing grounded answers
"""

from .answerer import Answer, AnswerSynthesizer
from .generator import Generator
from .retriever import Retriever, ScoredChunk, cosine_similarity

__all__ = [
    "Answer",
    "AnswerSynthesizer",
    "Generator",
    "Retriever",
    "ScoredChunk",
    "cosine_similarity",
]
