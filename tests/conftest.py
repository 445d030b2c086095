"""Shared fixtures for the Notes Tutor test suite."""

import json

import pytest
from fastapi.testclient import TestClient

from notes_tutor.embeddings.vector_store import Chunk, CorpusStore
from notes_tutor.errors import ServiceUnavailable
from notes_tutor.pipeline import TutorPipeline
from notes_tutor.storage.database import init_db, make_engine, make_session_factory

# ---------------------------------------------------------------------------
# Sample notes used across tests
# ---------------------------------------------------------------------------

FRACTIONS_NOTES = (
    "A fraction names part of a whole. The denominator tells how many equal "
    "parts the whole is split into, and the numerator tells how many parts we take."
)
PLANTS_NOTES = (
    "Photosynthesis is how a plant makes food. The plant uses sunlight, water "
    "and carbon dioxide, and gives out oxygen."
)
VOLCANO_NOTES = "A volcano is an opening in the crust. Hot lava flows out when it erupts."

# Each keyword is one axis of the fake embedding space
VOCAB = ["fraction", "denominator", "photosynthesis", "plant", "volcano", "lava", "verb", "noun"]
FAKE_DIMENSION = len(VOCAB) + 1


# ---------------------------------------------------------------------------
# Fake gateways that never touch sentence-transformers or Ollama
# ---------------------------------------------------------------------------


class FakeEmbedder:
    """
    Bag-of-keywords embedder.

    Texts sharing keywords get similar vectors, so retrieval behaves
    predictably. The last axis is a constant so no vector is all zeros.
    """

    model_name = "fake-embedder"
    dimension = FAKE_DIMENSION

    def __init__(self, fail_on: str | None = None):
        self.fail_on = fail_on
        self.calls = []

    def embed(self, text: str, variant: str = "document") -> list[float]:
        if not text.strip():
            raise ValueError("Cannot embed empty text")
        self.calls.append((text, variant))
        if self.fail_on and self.fail_on in text:
            raise ServiceUnavailable()
        lowered = text.lower()
        return [float(lowered.count(word)) for word in VOCAB] + [0.1]


class FakeGenerator:
    """Generator that returns queued replies (or a canned answer) without Ollama."""

    model = "fake-model"

    def __init__(self, replies=None, default: str = "This is a test answer."):
        self.replies = list(replies or [])
        self.default = default
        self.prompts = []

    def queue(self, *replies):
        self.replies.extend(replies)

    def generate(self, prompt, max_tokens, temperature, system=None):
        self.prompts.append(prompt)
        if self.replies:
            reply = self.replies.pop(0)
            if isinstance(reply, Exception):
                raise reply
            return reply
        return self.default

    def check_available(self) -> bool:
        return True


def quiz_reply(count: int = 5, topic: str | None = "Fractions", subject: str | None = "Maths") -> str:
    """A well-formed quiz reply; question i has correct index i % 4."""
    questions = []
    for i in range(count):
        questions.append(
            {
                "question": f"Question {i + 1} about fractions?",
                "options": [f"Option {i}-{n}" for n in range(4)],
                "correct_answer": i % 4,
                "explanation": f"Because of reason {i + 1}.",
                "subject": subject,
                "topic": topic,
                "subtopic": None,
            }
        )
    return json.dumps(questions)


def make_chunk(owner_id="user-1", text="some notes", vector=None, **kwargs) -> Chunk:
    return Chunk(
        owner_id=owner_id,
        source_upload_id=kwargs.pop("source_upload_id", "upload-1"),
        text=text,
        vector=vector if vector is not None else FakeEmbedder().embed(text),
        **kwargs,
    )


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def database_url(tmp_path):
    return f"sqlite:///{tmp_path / 'tutor.db'}"


@pytest.fixture()
def engine(database_url):
    engine = make_engine(database_url)
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return make_session_factory(engine)


@pytest.fixture()
def corpus_store(tmp_path):
    """A real ChromaDB store in a throwaway directory."""
    return CorpusStore(persist_directory=tmp_path / "chroma")


@pytest.fixture()
def embedder():
    return FakeEmbedder()


@pytest.fixture()
def generator():
    return FakeGenerator()


@pytest.fixture()
def pipeline(engine, corpus_store, embedder, generator):
    """
    TutorPipeline with fake gateways.

    Storage is real (SQLite + ChromaDB under tmp_path); only the model
    calls are faked, so tests run without Ollama or model downloads.
    """
    return TutorPipeline(
        engine=engine,
        corpus_store=corpus_store,
        embedder=embedder,
        generator=generator,
    )


@pytest.fixture()
def seeded_pipeline(pipeline):
    """Pipeline with one owner's notes on two topics already ingested."""
    pipeline.ingest("user-1", FRACTIONS_NOTES, "fractions.txt", subject="Maths", topic="Fractions")
    pipeline.ingest("user-1", PLANTS_NOTES, "plants.txt", subject="Science", topic="Plants")
    return pipeline


@pytest.fixture()
def test_client(pipeline):
    from notes_tutor.interfaces.web_app import create_app

    return TestClient(create_app(pipeline))
