"""
Notes Tutor - A per-user RAG tutor built on a student's own notes

This package provides:
- Text chunking and embedding of uploaded notes
- Per-user chunk storage with ChromaDB
- Grounded question answering with sources
- Adaptive quizzes on the weakest topics, with grading
- Per-topic mastery tracking and a student dashboard
- CLI and Web interfaces
"""

__version__ = "0.1.0"
