"""
Corpus Store - Keeps every user's chunks and their vectors in ChromaDB.

Key Concepts:
- Collections: one per vector dimensionality (e.g. notes_chunks_384d).
  ChromaDB fixes a collection's dimension on first insert, so vectors from
  an older embedding model live in their own collection instead of being
  padded or truncated.
- Documents: the chunk text
- Metadata: owner, upload, classification, creation time
- The store is append-only; searching is done by the Retriever

How it works:
1. Append: chunk text + vector + metadata -> collection for len(vector)
2. List: every collection, filtered by owner_id, in corpus order
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path

import chromadb
from chromadb.config import Settings

from notes_tutor.config import CHROMA_DB_DIR, COLLECTION_PREFIX

logger = logging.getLogger(__name__)

_CLASSIFICATION_KEYS = ("subject", "topic", "subtopic")


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Chunk:
    """
    A unit of the corpus: bounded text plus its embedding.

    Attributes:
        owner_id: The user who owns this chunk
        source_upload_id: Upload the text came from (weak reference)
        text: The chunk content
        vector: The embedding
        subject/topic/subtopic: Optional classification from the upload
        chunk_index: Position of the chunk inside its upload
        embedding_model: Name of the model that produced the vector
        id: Unique identifier
        created_at: When the chunk was stored (UTC)
    """
    owner_id: str
    source_upload_id: str
    text: str
    vector: list[float]
    subject: str | None = None
    topic: str | None = None
    subtopic: str | None = None
    chunk_index: int = 0
    embedding_model: str | None = None
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = field(default_factory=_now)

    @property
    def dimension(self) -> int:
        return len(self.vector)

    @property
    def label(self) -> str:
        """Human-readable classification, e.g. "[Maths / Fractions]" ("" if none)."""
        parts = [value for value in (self.subject, self.topic, self.subtopic) if value]
        return f"[{' / '.join(parts)}]" if parts else ""

    def to_metadata(self) -> dict:
        """Flatten the chunk's fields into ChromaDB metadata (no None values)."""
        metadata = {
            "owner_id": self.owner_id,
            "source_upload_id": self.source_upload_id,
            "chunk_index": self.chunk_index,
            "created_at": self.created_at.isoformat(),
        }
        if self.embedding_model:
            metadata["embedding_model"] = self.embedding_model
        for key in _CLASSIFICATION_KEYS:
            value = getattr(self, key)
            if value:
                metadata[key] = value
        return metadata

    @classmethod
    def from_record(cls, chunk_id: str, text: str, vector, metadata: dict) -> "Chunk":
        """Rebuild a Chunk from one ChromaDB get() row."""
        return cls(
            id=chunk_id,
            owner_id=metadata["owner_id"],
            source_upload_id=metadata.get("source_upload_id", ""),
            text=text,
            vector=[float(v) for v in vector],
            subject=metadata.get("subject"),
            topic=metadata.get("topic"),
            subtopic=metadata.get("subtopic"),
            chunk_index=int(metadata.get("chunk_index", 0)),
            embedding_model=metadata.get("embedding_model"),
            created_at=datetime.fromisoformat(metadata["created_at"]),
        )


class CorpusStore:
    """
    ChromaDB-backed, append-only chunk store scoped by owner.

    Example:
        store = CorpusStore()
        store.append(Chunk(owner_id="u1", source_upload_id="up1",
                           text="Fractions are...", vector=[0.1, 0.2, 0.3]))
        chunks = store.list_by_owner("u1")
    """

    def __init__(
        self,
        persist_directory: str | Path | None = None,
        collection_prefix: str | None = None,
        client=None,
    ):
        """
        Initialize the corpus store.

        Args:
            persist_directory: Where to store the database files
            collection_prefix: Prefix of the per-dimension collections
            client: An existing ChromaDB client (overrides persist_directory)
        """
        self.collection_prefix = collection_prefix or COLLECTION_PREFIX
        self.persist_directory = Path(persist_directory or CHROMA_DB_DIR)

        if client is None:
            self.persist_directory.mkdir(parents=True, exist_ok=True)
            client = chromadb.PersistentClient(
                path=str(self.persist_directory),
                settings=Settings(anonymized_telemetry=False),
            )
        self._client = client

    def _collection_name(self, dimension: int) -> str:
        return f"{self.collection_prefix}{dimension}d"

    def _collection_for(self, dimension: int):
        # Cosine space only matters for ChromaDB's own index; the Retriever
        # computes exact similarities itself.
        return self._client.get_or_create_collection(
            name=self._collection_name(dimension),
            metadata={"description": "Study note chunks", "hnsw:space": "cosine"},
        )

    def _collections(self) -> list:
        """All chunk collections, whatever their dimension."""
        collections = []
        for entry in self._client.list_collections():
            # Older ChromaDB releases return names, newer ones Collection objects
            name = entry if isinstance(entry, str) else entry.name
            if name.startswith(self.collection_prefix):
                collections.append(self._client.get_collection(name))
        return collections

    def _get(self, where: dict, limit: int | None = None) -> list[Chunk]:
        chunks: list[Chunk] = []
        for collection in self._collections():
            remaining = None if limit is None else limit - len(chunks)
            if remaining is not None and remaining <= 0:
                break
            result = collection.get(
                where=where,
                limit=remaining,
                include=["documents", "metadatas", "embeddings"],
            )
            embeddings = result["embeddings"]
            if embeddings is None:
                continue
            for chunk_id, text, vector, metadata in zip(
                result["ids"], result["documents"], embeddings, result["metadatas"]
            ):
                chunks.append(Chunk.from_record(chunk_id, text, vector, metadata))
        return chunks

    @staticmethod
    def _corpus_order(chunks: list[Chunk]) -> list[Chunk]:
        return sorted(chunks, key=lambda c: (c.created_at, c.source_upload_id, c.chunk_index))

    def append(self, chunk: Chunk) -> str:
        """
        Store one chunk.

        Args:
            chunk: The chunk to store (its vector must not be empty)

        Returns:
            The chunk id

        Raises:
            ValueError: If the chunk has no vector
        """
        if not chunk.vector:
            raise ValueError("Cannot store a chunk without a vector")

        self._collection_for(chunk.dimension).add(
            ids=[chunk.id],
            documents=[chunk.text],
            embeddings=[chunk.vector],
            metadatas=[chunk.to_metadata()],
        )
        return chunk.id

    def list_by_owner(self, owner_id: str) -> list[Chunk]:
        """Return every chunk of an owner, oldest first."""
        return self._corpus_order(self._get({"owner_id": owner_id}))

    def list_by_topics(self, owner_id: str, topics: list[str], limit: int) -> list[Chunk]:
        """
        Return up to `limit` of an owner's chunks whose topic is in `topics`.
        """
        if not topics or limit <= 0:
            return []
        where = {"$and": [{"owner_id": owner_id}, {"topic": {"$in": list(topics)}}]}
        return self._corpus_order(self._get(where, limit=limit))

    def sample(self, owner_id: str, limit: int) -> list[Chunk]:
        """Return up to `limit` arbitrary chunks of an owner."""
        if limit <= 0:
            return []
        return self._corpus_order(self._get({"owner_id": owner_id}, limit=limit))

    def count(self, owner_id: str) -> int:
        """Number of chunks an owner has across all collections."""
        total = 0
        for collection in self._collections():
            result = collection.get(where={"owner_id": owner_id}, include=[])
            total += len(result["ids"])
        return total
