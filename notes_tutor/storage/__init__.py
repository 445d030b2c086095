"""
Storage module - The relational side of the store.

This module is responsible for:
1. Engine/session setup (SQLite by default)
2. ORM models for uploads, questions, quizzes and progress
3. Atomic queries (quiz completion, progress upsert)
"""

from .database import Base, init_db, make_engine, make_session_factory
from .models import Progress, QuestionRecord, Quiz, Upload

__all__ = [
    "Base",
    "init_db",
    "make_engine",
    "make_session_factory",
    "Progress",
    "QuestionRecord",
    "Quiz",
    "Upload",
]
