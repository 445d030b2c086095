"""
Tutor Pipeline - Wires every component together.

This is the single entry point used by the CLI and the web app:
    ingest -> ask -> generate_quiz -> submit_quiz -> progress / dashboard

Each call is an independent request. No state is kept between calls
except what is persisted in the stores.
"""

import logging

from sqlalchemy.engine import Engine

from notes_tutor.dashboard import build_dashboard, progress_row
from notes_tutor.embeddings.embedder import get_embedder
from notes_tutor.embeddings.vector_store import CorpusStore
from notes_tutor.ingestion.chunker import TextChunker
from notes_tutor.ingestion.ingestor import IngestionResult, Ingestor
from notes_tutor.quiz.generator import QuizGenerator, QuizView
from notes_tutor.quiz.grader import QuizGrader, QuizResult
from notes_tutor.quiz.mastery import MasteryTracker
from notes_tutor.rag.answerer import Answer, AnswerSynthesizer
from notes_tutor.rag.generator import Generator
from notes_tutor.rag.retriever import Retriever
from notes_tutor.storage.database import init_db, make_engine, make_session_factory

logger = logging.getLogger(__name__)


class TutorPipeline:
    """
    Complete tutoring pipeline.

    Every collaborator can be injected; anything not given is built from
    config.py.

    Example:
        tutor = TutorPipeline()
        tutor.ingest("user-1", notes_text, "fractions.txt", subject="Maths", topic="Fractions")
        answer = tutor.ask("user-1", "How do I add fractions?")
        quiz = tutor.generate_quiz("user-1")
        result = tutor.submit_quiz("user-1", quiz.id, [0, 1, 2, 3, 0])
    """

    def __init__(
        self,
        database_url: str | None = None,
        engine: Engine | None = None,
        corpus_store: CorpusStore | None = None,
        embedder=None,
        generator=None,
        chunker: TextChunker | None = None,
    ):
        self.engine = engine or make_engine(database_url)
        init_db(self.engine)
        self.session_factory = make_session_factory(self.engine)

        self.corpus_store = corpus_store or CorpusStore()
        self.embedder = embedder or get_embedder()
        self.generator = generator or Generator()

        self.mastery = MasteryTracker(self.session_factory)
        self.retriever = Retriever(self.corpus_store)
        self.ingestor = Ingestor(
            chunker or TextChunker(), self.embedder, self.corpus_store, self.session_factory
        )
        self.answerer = AnswerSynthesizer(
            self.embedder, self.retriever, self.generator, self.session_factory
        )
        self.quiz_generator = QuizGenerator(
            self.corpus_store, self.generator, self.mastery, self.session_factory
        )
        self.grader = QuizGrader(self.session_factory, self.mastery)

        logger.debug("Tutor pipeline ready (db=%s)", self.engine.url)

    def ingest(
        self,
        owner_id: str,
        text: str,
        file_name: str,
        subject: str | None = None,
        topic: str | None = None,
        subtopic: str | None = None,
    ) -> IngestionResult:
        return self.ingestor.ingest(owner_id, text, file_name, subject, topic, subtopic)

    def ask(self, owner_id: str, question: str) -> Answer:
        return self.answerer.answer(owner_id, question)

    def generate_quiz(self, owner_id: str) -> QuizView:
        return self.quiz_generator.generate_quiz(owner_id)

    def submit_quiz(self, owner_id: str, quiz_id: str, answers: list[int]) -> QuizResult:
        return self.grader.submit_quiz(owner_id, quiz_id, answers)

    def progress(self, owner_id: str) -> list[dict]:
        """All progress rows for an owner, weakest topic first."""
        return [progress_row(p) for p in self.mastery.list_progress(owner_id)]

    def dashboard(self, owner_id: str) -> dict:
        with self.session_factory() as session:
            return build_dashboard(session, owner_id)
