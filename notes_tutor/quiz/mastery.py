"""
Mastery Tracker - Running accuracy per (user, topic).

One graded quiz counts as one attempt at its topic, and as one correct
attempt when it scored at least MASTERY_PASS_SCORE. Mastery is
round(100 * correct / attempted).

The quiz generator reads these rows to pick weak topics and the quiz
grader writes them; the two never talk to each other directly.
"""

import logging

from sqlalchemy.orm import Session, sessionmaker

from notes_tutor.config import MASTERY_PASS_SCORE
from notes_tutor.storage import repository
from notes_tutor.storage.models import Progress

logger = logging.getLogger(__name__)


class MasteryTracker:
    """
    Example:
        tracker = MasteryTracker(session_factory)
        tracker.update_mastery("user-1", "Fractions", quiz_score=80)
        tracker.list_progress("user-1")[0].mastery_score  # 100
    """

    def __init__(self, session_factory: sessionmaker, pass_score: int | None = None):
        self.session_factory = session_factory
        self.pass_score = MASTERY_PASS_SCORE if pass_score is None else pass_score

    def update_mastery(
        self,
        owner_id: str,
        topic: str | None,
        subject: str | None = None,
        subtopic: str | None = None,
        quiz_score: int = 0,
        session: Session | None = None,
    ) -> Progress | None:
        """
        Record one graded quiz against a topic.

        Args:
            owner_id: The student
            topic: The quiz's topic; None makes this a no-op
            subject/subtopic: Stored on the row when given
            quiz_score: The quiz score (0-100)
            session: Join an open transaction instead of starting one

        Returns:
            The updated Progress row, or None when there was no topic
        """
        if not topic:
            logger.debug("Quiz for %s has no topic; mastery not updated", owner_id)
            return None

        passed = quiz_score >= self.pass_score
        if session is not None:
            return repository.upsert_progress(session, owner_id, topic, subject, subtopic, passed)

        with self.session_factory.begin() as own_session:
            progress = repository.upsert_progress(
                own_session, owner_id, topic, subject, subtopic, passed
            )
        return progress

    def list_progress(self, owner_id: str) -> list[Progress]:
        """All of an owner's topics, weakest first."""
        with self.session_factory() as session:
            return repository.list_progress(session, owner_id)

    def weakest_topics(self, owner_id: str, limit: int) -> list[Progress]:
        with self.session_factory() as session:
            return repository.list_progress(session, owner_id, limit=limit)
