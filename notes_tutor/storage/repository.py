"""
Repository - Queries that need the store's atomicity guarantees.

Two writes are raced by concurrent requests and must not be done as
read-then-write in Python:

- completing a quiz (a conditional UPDATE that only matches open quizzes)
- updating a topic's progress (a single INSERT ... ON CONFLICT DO UPDATE
  whose arithmetic runs inside the database)
"""

import uuid

from sqlalchemy import func, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from notes_tutor.storage.models import Progress, Quiz, utcnow

_UPSERT_INSERTS = {"sqlite": sqlite_insert, "postgresql": pg_insert}


def percentage(part: int, whole: int) -> int:
    """
    100 * part / whole, rounded half up.

    Integer-only so it matches the SQL expression used for mastery scores
    exactly. Returns 0 when whole is 0.
    """
    if whole <= 0:
        return 0
    return (200 * part + whole) // (2 * whole)


# =============================================================================
# QUIZZES
# =============================================================================


def complete_quiz(
    session: Session,
    owner_id: str,
    quiz_id: str,
    answers: list[int],
    score: int,
) -> bool:
    """
    Move an open quiz to the completed state.

    Returns:
        True if this call completed the quiz, False if it was not open
        (already completed by someone else, or not the owner's)
    """
    result = session.execute(
        update(Quiz)
        .where(Quiz.id == quiz_id, Quiz.owner_id == owner_id, Quiz.completed_at.is_(None))
        .values(user_answers=list(answers), score=score, completed_at=utcnow())
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


# =============================================================================
# PROGRESS
# =============================================================================


def get_progress(session: Session, owner_id: str, topic: str) -> Progress | None:
    return session.execute(
        select(Progress)
        .where(Progress.owner_id == owner_id, Progress.topic == topic)
        .execution_options(populate_existing=True)
    ).scalar_one_or_none()


def list_progress(session: Session, owner_id: str, limit: int | None = None) -> list[Progress]:
    """An owner's progress rows, weakest topic first (ties by topic name)."""
    stmt = (
        select(Progress)
        .where(Progress.owner_id == owner_id)
        .order_by(Progress.mastery_score.asc(), Progress.topic.asc())
    )
    if limit is not None:
        stmt = stmt.limit(limit)
    return list(session.execute(stmt).scalars())


def upsert_progress(
    session: Session,
    owner_id: str,
    topic: str,
    subject: str | None,
    subtopic: str | None,
    passed: bool,
) -> Progress:
    """
    Record one graded attempt at a topic.

    attempted += 1, correct += passed, and the mastery score is recomputed
    from the new totals, all in one statement. subject/subtopic are only
    replaced when a new value is given.
    """
    correct = 1 if passed else 0
    insert = _UPSERT_INSERTS.get(session.get_bind().dialect.name)

    if insert is None:
        _locked_update_progress(session, owner_id, topic, subject, subtopic, correct)
    else:
        table = Progress.__table__
        stmt = insert(table).values(
            id=str(uuid.uuid4()),
            owner_id=owner_id,
            topic=topic,
            subject=subject,
            subtopic=subtopic,
            mastery_score=percentage(correct, 1),
            questions_attempted=1,
            questions_correct=correct,
            updated_at=utcnow(),
        )
        attempted = table.c.questions_attempted + 1
        correct_total = table.c.questions_correct + correct
        stmt = stmt.on_conflict_do_update(
            index_elements=[table.c.owner_id, table.c.topic],
            set_={
                "questions_attempted": attempted,
                "questions_correct": correct_total,
                "mastery_score": (200 * correct_total + attempted) // (2 * attempted),
                "subject": func.coalesce(stmt.excluded.subject, table.c.subject),
                "subtopic": func.coalesce(stmt.excluded.subtopic, table.c.subtopic),
                "updated_at": stmt.excluded.updated_at,
            },
        )
        session.execute(stmt)

    return get_progress(session, owner_id, topic)


def _locked_update_progress(
    session: Session,
    owner_id: str,
    topic: str,
    subject: str | None,
    subtopic: str | None,
    correct: int,
) -> None:
    """Row-lock variant for databases without ON CONFLICT support."""
    progress = session.execute(
        select(Progress)
        .where(Progress.owner_id == owner_id, Progress.topic == topic)
        .with_for_update()
    ).scalar_one_or_none()

    if progress is None:
        progress = Progress(
            owner_id=owner_id,
            topic=topic,
            questions_attempted=0,
            questions_correct=0,
        )
        session.add(progress)

    progress.questions_attempted += 1
    progress.questions_correct += correct
    progress.mastery_score = percentage(progress.questions_correct, progress.questions_attempted)
    progress.subject = subject or progress.subject
    progress.subtopic = subtopic or progress.subtopic
    progress.updated_at = utcnow()
    session.flush()
