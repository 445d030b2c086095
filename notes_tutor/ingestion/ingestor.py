"""
Ingestor - Turns one uploaded document into stored, embedded chunks.

The pipeline:
1. Record the upload (status: processing)
2. Split the extracted text into chunks
3. Embed each chunk (document variant)
4. Append each chunk to the corpus store with the upload's classification
5. Mark the upload completed (or failed when any chunk could not be embedded)

An unexpected error also marks the upload failed, with the chunks stored so
far counted, before it propagates.

A chunk whose embedding fails is skipped and reported; it is not retried.
"""

import logging
from dataclasses import dataclass, field

from sqlalchemy import update
from sqlalchemy.orm import sessionmaker

from notes_tutor.embeddings.vector_store import Chunk, CorpusStore
from notes_tutor.errors import InvalidResponse, ServiceUnavailable
from notes_tutor.ingestion.chunker import TextChunk, TextChunker
from notes_tutor.storage.models import Upload

logger = logging.getLogger(__name__)


@dataclass
class ChunkFailure:
    chunk_index: int
    error: str
    message: str


@dataclass
class IngestionResult:
    """
    Outcome of one ingestion.

    Attributes:
        upload_id: Id of the Upload row
        status: "completed" or "failed"
        chunks_total: How many chunks the text was split into
        chunks_stored: How many were embedded and stored
        failures: Chunks that were skipped, with the error kind
    """
    upload_id: str
    status: str
    chunks_total: int
    chunks_stored: int
    failures: list[ChunkFailure] = field(default_factory=list)


class Ingestor:
    """
    Example:
        ingestor = Ingestor(TextChunker(), embedder, corpus_store, session_factory)
        result = ingestor.ingest("user-1", text, "fractions.txt", subject="Maths", topic="Fractions")
        print(f"Stored {result.chunks_stored}/{result.chunks_total} chunks")
    """

    def __init__(
        self,
        chunker: TextChunker,
        embedder,
        corpus_store: CorpusStore,
        session_factory: sessionmaker,
    ):
        self.chunker = chunker
        self.embedder = embedder
        self.corpus_store = corpus_store
        self.session_factory = session_factory

    def ingest(
        self,
        owner_id: str,
        text: str,
        file_name: str,
        subject: str | None = None,
        topic: str | None = None,
        subtopic: str | None = None,
    ) -> IngestionResult:
        """Chunk, embed and store one document's text."""
        upload = Upload(
            owner_id=owner_id,
            file_name=file_name,
            subject=subject or None,
            topic=topic or None,
            subtopic=subtopic or None,
            extracted_text=text,
            processing_status="processing",
        )
        with self.session_factory.begin() as session:
            session.add(upload)

        stored = 0
        failures: list[ChunkFailure] = []
        try:
            pieces = self.chunker.chunk(text)
            logger.info("Ingesting %s for %s: %d chunks", file_name, owner_id, len(pieces))
            for piece in pieces:
                if self._ingest_chunk(upload, piece, failures):
                    stored += 1
        except Exception:
            logger.exception("Ingestion of upload %s aborted after %d chunks", upload.id, stored)
            self._finish(upload.id, "failed", stored)
            raise

        status = "failed" if failures else "completed"
        self._finish(upload.id, status, stored)

        logger.info(
            "Upload %s %s: %d/%d chunks stored", upload.id, status, stored, len(pieces)
        )
        return IngestionResult(
            upload_id=upload.id,
            status=status,
            chunks_total=len(pieces),
            chunks_stored=stored,
            failures=failures,
        )

    def _ingest_chunk(self, upload: Upload, piece: TextChunk, failures: list[ChunkFailure]) -> bool:
        """Embed and store one chunk. Returns False when its embedding failed."""
        try:
            vector = self.embedder.embed(piece.text, variant="document")
        except (ServiceUnavailable, InvalidResponse) as exc:
            logger.error(
                "Embedding failed for chunk %d of upload %s: %s",
                piece.chunk_index,
                upload.id,
                exc,
            )
            failures.append(ChunkFailure(piece.chunk_index, exc.kind, exc.user_message))
            return False

        self.corpus_store.append(
            Chunk(
                owner_id=upload.owner_id,
                source_upload_id=upload.id,
                text=piece.text,
                vector=vector,
                subject=upload.subject,
                topic=upload.topic,
                subtopic=upload.subtopic,
                chunk_index=piece.chunk_index,
                embedding_model=getattr(self.embedder, "model_name", None),
            )
        )
        return True

    def _finish(self, upload_id: str, status: str, stored: int) -> None:
        with self.session_factory.begin() as session:
            session.execute(
                update(Upload)
                .where(Upload.id == upload_id)
                .values(processing_status=status, chunk_count=stored)
                .execution_options(synchronize_session=False)
            )
