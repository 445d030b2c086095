"""
Dashboard - A read-only summary of one student's activity.

Everything here is derived from stored rows; nothing is written.
"""

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from notes_tutor.config import WEAK_TOPIC_THRESHOLD
from notes_tutor.storage.models import Progress, QuestionRecord, Quiz, Upload
from notes_tutor.storage.repository import list_progress, percentage

RECENT_LIMIT = 5
ACTIVITY_LIMIT = 10
ACTIVITY_TITLE_CHARS = 50


def _iso(value):
    return value.isoformat() if value is not None else None


def _question_row(q: QuestionRecord) -> dict:
    return {
        "id": q.id,
        "question_text": q.question_text,
        "answer_text": q.answer_text,
        "subject": q.subject,
        "topic": q.topic,
        "subtopic": q.subtopic,
        "created_at": _iso(q.created_at),
    }


def _quiz_row(quiz: Quiz) -> dict:
    return {
        "id": quiz.id,
        "title": quiz.title,
        "score": quiz.score,
        "total_questions": quiz.total_questions,
        "subject": quiz.subject,
        "topic": quiz.topic,
        "subtopic": quiz.subtopic,
        "created_at": _iso(quiz.created_at),
        "completed_at": _iso(quiz.completed_at),
    }


def _upload_row(upload: Upload) -> dict:
    return {
        "id": upload.id,
        "file_name": upload.file_name,
        "subject": upload.subject,
        "topic": upload.topic,
        "subtopic": upload.subtopic,
        "processing_status": upload.processing_status,
        "chunk_count": upload.chunk_count,
        "created_at": _iso(upload.created_at),
    }


def progress_row(p: Progress) -> dict:
    return {
        "topic": p.topic,
        "subject": p.subject,
        "subtopic": p.subtopic,
        "mastery_score": p.mastery_score,
        "questions_attempted": p.questions_attempted,
        "questions_correct": p.questions_correct,
        "updated_at": _iso(p.updated_at),
    }


def _activity_title(text: str) -> str:
    if len(text) <= ACTIVITY_TITLE_CHARS:
        return text
    return text[:ACTIVITY_TITLE_CHARS] + "..."


def build_dashboard(session: Session, owner_id: str) -> dict:
    """
    Build the student dashboard for one owner.

    Returns a JSON-ready dict with keys: stats, recent_questions,
    quiz_scores, weak_topics, recent_uploads, recent_activity, progress.
    """
    total_questions = session.scalar(
        select(func.count()).select_from(QuestionRecord).where(QuestionRecord.owner_id == owner_id)
    )
    total_uploads = session.scalar(
        select(func.count()).select_from(Upload).where(Upload.owner_id == owner_id)
    )
    completed_count, score_sum = session.execute(
        select(func.count(), func.coalesce(func.sum(Quiz.score), 0)).where(
            Quiz.owner_id == owner_id, Quiz.completed_at.is_not(None)
        )
    ).one()

    recent_questions = list(
        session.execute(
            select(QuestionRecord)
            .where(QuestionRecord.owner_id == owner_id)
            .order_by(QuestionRecord.created_at.desc())
            .limit(RECENT_LIMIT)
        ).scalars()
    )
    recent_quizzes = list(
        session.execute(
            select(Quiz)
            .where(Quiz.owner_id == owner_id)
            .order_by(Quiz.created_at.desc())
            .limit(RECENT_LIMIT)
        ).scalars()
    )
    completed_quizzes = list(
        session.execute(
            select(Quiz)
            .where(Quiz.owner_id == owner_id, Quiz.completed_at.is_not(None))
            .order_by(Quiz.completed_at.desc())
            .limit(RECENT_LIMIT)
        ).scalars()
    )
    recent_uploads = list(
        session.execute(
            select(Upload)
            .where(Upload.owner_id == owner_id)
            .order_by(Upload.created_at.desc())
            .limit(RECENT_LIMIT)
        ).scalars()
    )
    progress = list_progress(session, owner_id)

    activity = [
        {
            "type": "question",
            "title": f"Asked: {_activity_title(q.question_text)}",
            "subject": q.subject,
            "topic": q.topic,
            "created_at": q.created_at,
        }
        for q in recent_questions
    ]
    for quiz in recent_quizzes:
        score = f"{quiz.score}%" if quiz.is_completed else "not submitted"
        activity.append(
            {
                "type": "quiz",
                "title": f"Quiz: {quiz.title} ({score})",
                "subject": quiz.subject,
                "topic": quiz.topic,
                "created_at": quiz.created_at,
            }
        )
    activity.sort(key=lambda item: item["created_at"], reverse=True)
    for item in activity:
        item["created_at"] = _iso(item["created_at"])

    return {
        "stats": {
            "total_questions": total_questions,
            "completed_quizzes": completed_count,
            "average_score": percentage(score_sum, completed_count * 100),
            "total_uploads": total_uploads,
        },
        "recent_questions": [_question_row(q) for q in recent_questions],
        "quiz_scores": [_quiz_row(q) for q in completed_quizzes],
        "weak_topics": [
            progress_row(p) for p in progress if p.mastery_score < WEAK_TOPIC_THRESHOLD
        ][:RECENT_LIMIT],
        "recent_uploads": [_upload_row(u) for u in recent_uploads],
        "recent_activity": activity[:ACTIVITY_LIMIT],
        "progress": [progress_row(p) for p in progress],
    }
