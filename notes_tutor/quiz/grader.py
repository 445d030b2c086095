"""
Quiz Grader - Scores a submitted answer set and updates mastery.

A quiz can be graded once. The open -> completed transition is a single
conditional UPDATE, so two racing submissions cannot both succeed. The
mastery update runs in the same transaction.
"""

import logging
from dataclasses import dataclass, field

from sqlalchemy.orm import sessionmaker

from notes_tutor.errors import AlreadyCompleted, InvalidAnswerSet, NotFound
from notes_tutor.quiz.mastery import MasteryTracker
from notes_tutor.quiz.schema import QUIZ_QUESTIONS
from notes_tutor.storage import repository
from notes_tutor.storage.models import Quiz

logger = logging.getLogger(__name__)


@dataclass
class QuestionResult:
    question_text: str
    options: list[str]
    user_answer: int
    correct_answer: int
    is_correct: bool
    explanation: str


@dataclass
class QuizResult:
    """Outcome of a submission, with answers revealed for every question."""
    quiz_id: str
    score: int
    correct_answers: int
    total_questions: int
    results: list[QuestionResult] = field(default_factory=list)


def _validate_answers(answers, questions) -> list[int]:
    if len(answers) != len(questions):
        raise InvalidAnswerSet(
            f"Expected {len(questions)} answers, got {len(answers)}"
        )
    for position, (answer, question) in enumerate(zip(answers, questions)):
        if isinstance(answer, bool) or not isinstance(answer, int):
            raise InvalidAnswerSet(f"Answer {position + 1} is not an option number")
        if not 0 <= answer < len(question.options):
            raise InvalidAnswerSet(f"Answer {position + 1} is out of range")
    return list(answers)


class QuizGrader:
    """
    Example:
        grader = QuizGrader(session_factory, mastery)
        result = grader.submit_quiz("user-1", quiz_id, [0, 2, 1, 3, 0])
        print(f"{result.score}%")
    """

    def __init__(self, session_factory: sessionmaker, mastery: MasteryTracker):
        self.session_factory = session_factory
        self.mastery = mastery

    def submit_quiz(self, owner_id: str, quiz_id: str, answers: list[int]) -> QuizResult:
        """
        Grade a quiz.

        Raises:
            NotFound: No such quiz for this owner
            AlreadyCompleted: The quiz was already graded
            InvalidAnswerSet: Wrong number of answers, or an answer that is
                not a valid option index
        """
        with self.session_factory.begin() as session:
            quiz = session.get(Quiz, quiz_id)
            if quiz is None or quiz.owner_id != owner_id:
                raise NotFound("Quiz not found.")
            if quiz.is_completed:
                raise AlreadyCompleted()

            questions = QUIZ_QUESTIONS.validate_python(quiz.quiz_data)
            answers = _validate_answers(answers, questions)

            correct_flags = [
                answer == question.correct_option_index
                for answer, question in zip(answers, questions)
            ]
            correct_count = sum(correct_flags)
            score = repository.percentage(correct_count, len(questions))

            if not repository.complete_quiz(session, owner_id, quiz_id, answers, score):
                # Another submission completed it after we read it
                raise AlreadyCompleted()

            self.mastery.update_mastery(
                owner_id,
                quiz.topic,
                subject=quiz.subject,
                subtopic=quiz.subtopic,
                quiz_score=score,
                session=session,
            )

        logger.info(
            "Graded quiz %s for %s: %d%% (%d/%d)",
            quiz_id,
            owner_id,
            score,
            correct_count,
            len(questions),
        )

        return QuizResult(
            quiz_id=quiz_id,
            score=score,
            correct_answers=correct_count,
            total_questions=len(questions),
            results=[
                QuestionResult(
                    question_text=question.question_text,
                    options=list(question.options),
                    user_answer=answer,
                    correct_answer=question.correct_option_index,
                    is_correct=is_correct,
                    explanation=question.explanation,
                )
                for question, answer, is_correct in zip(questions, answers, correct_flags)
            ],
        )
