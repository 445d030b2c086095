"""Tests for upload ingestion."""

import pytest
from sqlalchemy import select

from notes_tutor.ingestion.chunker import TextChunker
from notes_tutor.ingestion.ingestor import Ingestor
from notes_tutor.storage.models import Upload
from tests.conftest import FRACTIONS_NOTES, FakeEmbedder


def test_ingest_stores_classified_chunks(pipeline, corpus_store, embedder):
    result = pipeline.ingest("user-1", FRACTIONS_NOTES, "fractions.txt", subject="Maths", topic="Fractions")

    assert result.status == "completed"
    assert result.chunks_total == result.chunks_stored == 1
    assert result.failures == []

    [chunk] = corpus_store.list_by_owner("user-1")
    assert chunk.source_upload_id == result.upload_id
    assert (chunk.subject, chunk.topic, chunk.subtopic) == ("Maths", "Fractions", None)
    assert chunk.embedding_model == "fake-embedder"
    assert chunk.dimension == embedder.dimension
    assert embedder.calls[-1][1] == "document"


def test_upload_row_records_outcome(pipeline):
    result = pipeline.ingest("user-1", FRACTIONS_NOTES, "fractions.txt", subject="Maths", topic="")

    with pipeline.session_factory() as session:
        upload = session.get(Upload, result.upload_id)

    assert upload.owner_id == "user-1"
    assert upload.file_name == "fractions.txt"
    assert upload.processing_status == "completed"
    assert upload.chunk_count == 1
    assert upload.extracted_text == FRACTIONS_NOTES
    assert upload.topic is None


def test_failed_chunk_is_skipped_and_reported(session_factory, corpus_store):
    ingestor = Ingestor(
        TextChunker(max_chunk_chars=20),
        FakeEmbedder(fail_on="broken"),
        corpus_store,
        session_factory,
    )

    result = ingestor.ingest("user-1", "first good chunk here broken chunk text last good chunk", "notes.txt")

    assert result.status == "failed"
    assert result.chunks_total == 3
    assert result.chunks_stored == 2
    assert [f.chunk_index for f in result.failures] == [1]
    assert result.failures[0].error == "service_unavailable"
    assert [c.chunk_index for c in corpus_store.list_by_owner("user-1")] == [0, 2]

    with session_factory() as session:
        upload = session.get(Upload, result.upload_id)
    assert upload.processing_status == "failed"
    assert upload.chunk_count == 2


def test_blank_text_stores_nothing(pipeline, corpus_store):
    result = pipeline.ingest("user-1", "   ", "empty.txt")

    assert result.status == "completed"
    assert result.chunks_total == 0
    assert corpus_store.count("user-1") == 0


def test_store_error_marks_upload_failed(pipeline, corpus_store, monkeypatch):
    real_append = corpus_store.append
    appended = []

    def flaky_append(chunk):
        if appended:
            raise RuntimeError("disk full")
        real_append(chunk)
        appended.append(chunk)

    monkeypatch.setattr(corpus_store, "append", flaky_append)
    pipeline.ingestor.chunker = TextChunker(max_chunk_chars=20)

    with pytest.raises(RuntimeError):
        pipeline.ingest("user-1", "first good chunk here second chunk never stored", "notes.txt")

    with pipeline.session_factory() as session:
        uploads = session.scalars(select(Upload)).all()
    assert [(u.processing_status, u.chunk_count) for u in uploads] == [("failed", 1)]


def test_malformed_embedding_marks_upload_failed(session_factory, corpus_store):
    class EmptyVectorEmbedder(FakeEmbedder):
        def embed(self, text, variant="document"):
            return []

    ingestor = Ingestor(TextChunker(), EmptyVectorEmbedder(), corpus_store, session_factory)

    with pytest.raises(ValueError):
        ingestor.ingest("user-1", FRACTIONS_NOTES, "fractions.txt")

    with session_factory() as session:
        [upload] = session.scalars(select(Upload)).all()
    assert upload.processing_status == "failed"
    assert upload.chunk_count == 0
