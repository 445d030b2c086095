"""
Quiz Generator - Builds adaptive multiple-choice quizzes.

Steps:
1. Pick the student's weakest topics from their progress rows
2. Gather note chunks for those topics (or an arbitrary sample when there
   is no progress yet, or nothing matches)
3. Ask the LLM for a fixed number of four-option questions as JSON
4. Validate the reply; if it is unusable, use one generic fallback question
5. Persist the quiz (open) and return it without answers or explanations
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime

from sqlalchemy.orm import sessionmaker

from notes_tutor.config import (
    MAX_CONTEXT_CHARS,
    QUIZ_MAX_TOKENS,
    QUIZ_NUM_QUESTIONS,
    QUIZ_PROMPT_TEMPLATE,
    QUIZ_SAMPLE_CHUNK_LIMIT,
    QUIZ_TEMPERATURE,
    QUIZ_TITLE,
    QUIZ_TOPIC_CHUNK_LIMIT,
    QUIZ_WEAK_TOPIC_LIMIT,
)
from notes_tutor.embeddings.vector_store import Chunk, CorpusStore
from notes_tutor.errors import InsufficientContent, InvalidResponse
from notes_tutor.quiz.mastery import MasteryTracker
from notes_tutor.quiz.schema import (
    QUIZ_QUESTIONS,
    GeneratedQuestion,
    fallback_question,
    parse_quiz_questions,
)
from notes_tutor.rag.retriever import format_context
from notes_tutor.storage.models import Quiz

logger = logging.getLogger(__name__)


@dataclass
class QuizView:
    """
    A quiz as handed to the student before grading.

    `questions` holds {index, question_text, options, is_generic} only;
    correct answers and explanations stay in the store until submission.
    """
    id: str
    title: str
    total_questions: int
    created_at: datetime
    subject: str | None = None
    topic: str | None = None
    subtopic: str | None = None
    questions: list[dict] = field(default_factory=list)

    @classmethod
    def from_quiz(cls, quiz: Quiz) -> "QuizView":
        questions = QUIZ_QUESTIONS.validate_python(quiz.quiz_data)
        return cls(
            id=quiz.id,
            title=quiz.title,
            total_questions=quiz.total_questions,
            created_at=quiz.created_at,
            subject=quiz.subject,
            topic=quiz.topic,
            subtopic=quiz.subtopic,
            questions=[q.public_dict(i) for i, q in enumerate(questions)],
        )


class QuizGenerator:
    """
    Example:
        quiz_generator = QuizGenerator(corpus_store, generator, mastery, session_factory)
        quiz = quiz_generator.generate_quiz("user-1")
        for question in quiz.questions:
            print(question["question_text"], question["options"])
    """

    def __init__(
        self,
        corpus_store: CorpusStore,
        generator,
        mastery: MasteryTracker,
        session_factory: sessionmaker,
        num_questions: int | None = None,
    ):
        self.corpus_store = corpus_store
        self.generator = generator
        self.mastery = mastery
        self.session_factory = session_factory
        self.num_questions = num_questions or QUIZ_NUM_QUESTIONS

    def gather_content(self, owner_id: str) -> list[Chunk]:
        """Chunks for the weakest topics, falling back to a sample of the corpus."""
        weakest = self.mastery.weakest_topics(owner_id, QUIZ_WEAK_TOPIC_LIMIT)
        topics = [progress.topic for progress in weakest if progress.topic]

        chunks = []
        if topics:
            chunks = self.corpus_store.list_by_topics(owner_id, topics, QUIZ_TOPIC_CHUNK_LIMIT)
            logger.debug("Weak topics for %s: %s (%d chunks)", owner_id, topics, len(chunks))
        if not chunks:
            chunks = self.corpus_store.sample(owner_id, QUIZ_SAMPLE_CHUNK_LIMIT)
        return chunks

    def _request_questions(self, chunks: list[Chunk]) -> list[GeneratedQuestion]:
        prompt = QUIZ_PROMPT_TEMPLATE.format(
            num_questions=self.num_questions,
            content=format_context(chunks, MAX_CONTEXT_CHARS),
        )
        raw = self.generator.generate(
            prompt,
            max_tokens=QUIZ_MAX_TOKENS,
            temperature=QUIZ_TEMPERATURE,
        )
        try:
            return parse_quiz_questions(raw, self.num_questions)
        except InvalidResponse:
            logger.warning("Unparseable quiz output: %.300r", raw)
            raise

    @staticmethod
    def _classify(question: GeneratedQuestion, chunks: list[Chunk]) -> GeneratedQuestion:
        """
        Make sure a question's topic is one of the gathered chunks' topics.

        Untagged questions, or ones tagged with a topic that is not in the
        notes, take the classification of the first chunk.
        """
        by_topic = {chunk.topic: chunk for chunk in chunks if chunk.topic}
        source = by_topic.get(question.topic) or chunks[0]
        if question.topic and question.topic in by_topic:
            return question.model_copy(
                update={
                    "subject": question.subject or source.subject,
                    "subtopic": question.subtopic or source.subtopic,
                }
            )
        return question.model_copy(
            update={"subject": source.subject, "topic": source.topic, "subtopic": source.subtopic}
        )

    def generate_quiz(self, owner_id: str) -> QuizView:
        """
        Generate and persist a quiz in the open state.

        Raises:
            InsufficientContent: If the student has no chunks at all
            ServiceUnavailable: If the LLM cannot be reached
        """
        chunks = self.gather_content(owner_id)
        if not chunks:
            raise InsufficientContent()

        try:
            questions = [self._classify(q, chunks) for q in self._request_questions(chunks)]
        except InvalidResponse as exc:
            logger.warning("Quiz generation for %s fell back to a generic question: %s", owner_id, exc)
            questions = [fallback_question()]

        first = questions[0]
        quiz = Quiz(
            owner_id=owner_id,
            title=QUIZ_TITLE,
            quiz_data=[question.model_dump() for question in questions],
            total_questions=len(questions),
            subject=first.subject,
            topic=first.topic,
            subtopic=first.subtopic,
        )
        with self.session_factory.begin() as session:
            session.add(quiz)

        logger.info(
            "Generated quiz %s for %s: %d questions (topic=%s)",
            quiz.id,
            owner_id,
            quiz.total_questions,
            quiz.topic,
        )
        return QuizView.from_quiz(quiz)
