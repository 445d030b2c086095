"""
Answer Synthesizer - Answers a student's question from their own notes.

This is the full question-answering path:
1. Embed the question (query variant)
2. Retrieve the most similar chunks of the student's corpus
3. Refuse with NoContext when nothing was retrieved (the LLM is never
   asked to answer without notes)
4. Build the tutor prompt around the retrieved context
5. Generate the answer
6. Classify the question by its best-matching chunk
7. Persist a Question record with full provenance
8. Return the answer with short source excerpts
"""

import logging
from dataclasses import dataclass, field

from sqlalchemy.orm import sessionmaker

from notes_tutor.config import (
    ANSWER_MAX_TOKENS,
    ANSWER_PROMPT_TEMPLATE,
    ANSWER_TEMPERATURE,
    MAX_CONTEXT_CHARS,
    SOURCE_EXCERPT_CHARS,
    TOP_K_CHUNKS,
)
from notes_tutor.embeddings.vector_store import Chunk
from notes_tutor.errors import NoContext
from notes_tutor.rag.retriever import Retriever, format_context
from notes_tutor.storage.models import QuestionRecord

logger = logging.getLogger(__name__)


def excerpt(text: str, max_chars: int = SOURCE_EXCERPT_CHARS) -> str:
    """Shorten text to max_chars, marking the cut with '...'."""
    if len(text) <= max_chars:
        return text
    return text[:max_chars] + "..."


@dataclass
class SourceExcerpt:
    """A short, payload-friendly reference to a chunk used for an answer."""
    content: str
    upload_id: str
    similarity: float


@dataclass
class Answer:
    """
    A grounded answer.

    Attributes:
        answer_text: The generated answer
        subject/topic/subtopic: Classification taken from the best match
        sources: Excerpts of the retrieved chunks, best first
        question_id: Id of the persisted Question record
    """
    answer_text: str
    question_id: str
    subject: str | None = None
    topic: str | None = None
    subtopic: str | None = None
    sources: list[SourceExcerpt] = field(default_factory=list)


def _snapshot(chunk: Chunk) -> dict:
    return {
        "content": chunk.text,
        "upload_id": chunk.source_upload_id,
        "subject": chunk.subject,
        "topic": chunk.topic,
        "subtopic": chunk.subtopic,
    }


class AnswerSynthesizer:
    """
    Answers questions grounded in a user's uploaded notes.

    Example:
        synthesizer = AnswerSynthesizer(embedder, retriever, generator, session_factory)
        answer = synthesizer.answer("user-1", "How do I add fractions?")
        print(answer.answer_text)
    """

    def __init__(
        self,
        embedder,
        retriever: Retriever,
        generator,
        session_factory: sessionmaker,
        top_k: int | None = None,
    ):
        """
        Initialize the synthesizer.

        Args:
            embedder: Embedding gateway (embed(text, variant))
            retriever: Retriever over the corpus store
            generator: Generation gateway (generate(prompt, max_tokens, temperature))
            session_factory: SQLAlchemy session factory for Question records
            top_k: Number of chunks to ground the answer in
        """
        self.embedder = embedder
        self.retriever = retriever
        self.generator = generator
        self.session_factory = session_factory
        self.top_k = top_k or TOP_K_CHUNKS

    def answer(self, owner_id: str, question_text: str) -> Answer:
        """
        Answer one question.

        Raises:
            ValueError: If the question is blank
            NoContext: If the user has no compatible chunks
            ServiceUnavailable / InvalidResponse: From the gateways
        """
        question_text = question_text.strip()
        if not question_text:
            raise ValueError("Question must not be empty")

        query_vector = self.embedder.embed(question_text, variant="query")
        matches = self.retriever.retrieve(owner_id, query_vector, k=self.top_k)
        if not matches:
            raise NoContext()

        chunks = [match.chunk for match in matches]
        prompt = ANSWER_PROMPT_TEMPLATE.format(
            context=format_context(chunks, MAX_CONTEXT_CHARS),
            question=question_text,
        )
        answer_text = self.generator.generate(
            prompt,
            max_tokens=ANSWER_MAX_TOKENS,
            temperature=ANSWER_TEMPERATURE,
        )

        # The best match decides the classification; multi-topic questions
        # can be misclassified.
        primary = chunks[0]
        record = QuestionRecord(
            owner_id=owner_id,
            question_text=question_text,
            answer_text=answer_text,
            subject=primary.subject,
            topic=primary.topic,
            subtopic=primary.subtopic,
            source_chunks=[_snapshot(chunk) for chunk in chunks],
        )
        with self.session_factory.begin() as session:
            session.add(record)

        logger.info(
            "Answered question %s for %s using %d chunks (topic=%s)",
            record.id,
            owner_id,
            len(chunks),
            record.topic,
        )

        return Answer(
            answer_text=answer_text,
            question_id=record.id,
            subject=primary.subject,
            topic=primary.topic,
            subtopic=primary.subtopic,
            sources=[
                SourceExcerpt(
                    content=excerpt(match.chunk.text),
                    upload_id=match.chunk.source_upload_id,
                    similarity=match.similarity,
                )
                for match in matches
            ],
        )
