"""
Quiz module - The adaptive quiz loop.

This module is responsible for:
1. Generating quizzes from the student's weakest topics
2. Grading submissions
3. Tracking per-topic mastery

The three parts only share persisted Quiz and Progress rows.
"""

from .generator import QuizGenerator, QuizView
from .grader import QuizGrader, QuizResult
from .mastery import MasteryTracker

__all__ = ["QuizGenerator", "QuizView", "QuizGrader", "QuizResult", "MasteryTracker"]
