"""SQLite-backed storage provider.

Persists the four collections to a local SQLite database (default
``data/docdesk.db``) using ``aiosqlite`` for async I/O.  Embeddings and
message sources are stored as JSON text; timestamps as ISO-8601 strings
generated in Python so ordering matches the in-memory provider.

A connection is opened per operation.  Foreign keys are enforced, so
attaching a chunk to a missing document or a message to a missing
conversation fails inside SQLite and is translated into a domain error.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Literal

import aiosqlite
import structlog

from docdesk.interfaces.storage_provider import IStorageProvider
from docdesk.models.rag import CorpusStats, RetrievedChunk
from docdesk.models.records import (
    Conversation,
    Document,
    DocumentChunk,
    Message,
    SourceRef,
    utc_now,
)
from docdesk.services.retrieval import vector_index
from docdesk.utils.errors import NotFoundError, StorageError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_DB_PATH = Path("data/docdesk.db")

_CREATE_TABLES_SQL = [
    """\
CREATE TABLE IF NOT EXISTS documents (
    id            INTEGER PRIMARY KEY AUTOINCREMENT,
    filename      TEXT    NOT NULL,
    original_name TEXT    NOT NULL,
    file_type     TEXT    NOT NULL,
    content       TEXT    NOT NULL,
    is_indexed    INTEGER NOT NULL DEFAULT 0,
    uploaded_at   TEXT    NOT NULL
);
""",
    """\
CREATE TABLE IF NOT EXISTS document_chunks (
    id           INTEGER PRIMARY KEY AUTOINCREMENT,
    document_id  INTEGER NOT NULL REFERENCES documents(id),
    content      TEXT    NOT NULL,
    embedding    TEXT,
    chunk_index  INTEGER NOT NULL
);
""",
    """\
CREATE TABLE IF NOT EXISTS conversations (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    title       TEXT,
    created_at  TEXT    NOT NULL
);
""",
    """\
CREATE TABLE IF NOT EXISTS messages (
    id               INTEGER PRIMARY KEY AUTOINCREMENT,
    conversation_id  INTEGER NOT NULL REFERENCES conversations(id),
    role             TEXT    NOT NULL,
    content          TEXT    NOT NULL,
    sources          TEXT,
    created_at       TEXT    NOT NULL
);
""",
]

_CREATE_INDICES_SQL = [
    "CREATE INDEX IF NOT EXISTS idx_chunks_document ON document_chunks(document_id, chunk_index);",
    "CREATE INDEX IF NOT EXISTS idx_messages_conversation ON messages(conversation_id, created_at);",
]

_SELECT_DOCUMENT_SQL = """\
SELECT id, filename, original_name, file_type, content, is_indexed, uploaded_at
FROM documents
"""

_SELECT_CHUNK_SQL = """\
SELECT id, document_id, content, embedding, chunk_index
FROM document_chunks
"""

_SELECT_EMBEDDED_CHUNKS_SQL = """\
SELECT c.id AS chunk_id, c.document_id, c.content AS chunk_content, c.embedding, c.chunk_index,
       d.id, d.filename, d.original_name, d.file_type, d.content, d.is_indexed, d.uploaded_at
FROM document_chunks c
JOIN documents d ON d.id = c.document_id
WHERE c.embedding IS NOT NULL
ORDER BY c.id;
"""

_SELECT_MESSAGE_SQL = """\
SELECT id, conversation_id, role, content, sources, created_at
FROM messages
"""

_STATS_SQL = """\
SELECT
    (SELECT COUNT(*) FROM documents)                                AS total_docs,
    (SELECT COUNT(*) FROM documents WHERE is_indexed = 1)           AS indexed_docs,
    (SELECT COUNT(*) FROM document_chunks)                          AS total_chunks,
    (SELECT COUNT(*) FROM document_chunks WHERE embedding IS NOT NULL) AS embedded_chunks;
"""


def _row_to_document(row: aiosqlite.Row) -> Document:
    return Document(
        id=row["id"],
        filename=row["filename"],
        original_name=row["original_name"],
        file_type=row["file_type"],
        content=row["content"],
        is_indexed=bool(row["is_indexed"]),
        uploaded_at=row["uploaded_at"],
    )


def _row_to_chunk(row: aiosqlite.Row, id_key: str = "id", content_key: str = "content") -> DocumentChunk:
    raw_embedding = row["embedding"]
    return DocumentChunk(
        id=row[id_key],
        document_id=row["document_id"],
        content=row[content_key],
        embedding=json.loads(raw_embedding) if raw_embedding is not None else None,
        chunk_index=row["chunk_index"],
    )


def _row_to_message(row: aiosqlite.Row) -> Message:
    raw_sources = row["sources"]
    sources: list[dict[str, Any]] = json.loads(raw_sources) if raw_sources else []
    return Message(
        id=row["id"],
        conversation_id=row["conversation_id"],
        role=row["role"],
        content=row["content"],
        sources=[SourceRef.model_validate(s) for s in sources],
        created_at=row["created_at"],
    )


class SQLiteStorageProvider(IStorageProvider):
    """Durable storage in a single SQLite file."""

    def __init__(self, db_path: str | Path = _DEFAULT_DB_PATH) -> None:
        self._db_path = Path(db_path)

    def _connect(self) -> aiosqlite.Connection:
        return aiosqlite.connect(str(self._db_path))

    @staticmethod
    async def _prepare(db: aiosqlite.Connection) -> None:
        db.row_factory = aiosqlite.Row
        await db.execute("PRAGMA foreign_keys = ON;")

    async def initialize(self) -> None:
        """Create tables and indices if they don't exist."""
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        async with self._connect() as db:
            for table_sql in _CREATE_TABLES_SQL:
                await db.execute(table_sql)
            for idx_sql in _CREATE_INDICES_SQL:
                await db.execute(idx_sql)
            await db.commit()
        logger.info("storage_db_initialized", path=str(self._db_path))

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    async def create_document(
        self,
        filename: str,
        original_name: str,
        file_type: str,
        content: str,
    ) -> Document:
        uploaded_at = utc_now().isoformat()
        async with self._connect() as db:
            await self._prepare(db)
            cursor = await db.execute(
                "INSERT INTO documents (filename, original_name, file_type, content, is_indexed, uploaded_at) "
                "VALUES (?, ?, ?, ?, 0, ?)",
                (filename, original_name, file_type, content, uploaded_at),
            )
            await db.commit()
            document_id = cursor.lastrowid
        logger.debug("document_created", document_id=document_id, backend="sqlite")
        return Document(
            id=document_id,
            filename=filename,
            original_name=original_name,
            file_type=file_type,
            content=content,
            uploaded_at=uploaded_at,
        )

    async def get_document(self, document_id: int) -> Document | None:
        async with self._connect() as db:
            await self._prepare(db)
            cursor = await db.execute(_SELECT_DOCUMENT_SQL + "WHERE id = ?", (document_id,))
            row = await cursor.fetchone()
        return _row_to_document(row) if row is not None else None

    async def list_documents(self) -> list[Document]:
        async with self._connect() as db:
            await self._prepare(db)
            cursor = await db.execute(_SELECT_DOCUMENT_SQL + "ORDER BY uploaded_at DESC, id DESC")
            rows = await cursor.fetchall()
        return [_row_to_document(r) for r in rows]

    async def set_document_indexed(self, document_id: int) -> Document:
        async with self._connect() as db:
            await self._prepare(db)
            cursor = await db.execute(
                "UPDATE documents SET is_indexed = 1 WHERE id = ?",
                (document_id,),
            )
            await db.commit()
            if cursor.rowcount == 0:
                raise NotFoundError(message=f"Document {document_id} not found")
            cursor = await db.execute(_SELECT_DOCUMENT_SQL + "WHERE id = ?", (document_id,))
            row = await cursor.fetchone()
        return _row_to_document(row)

    # ------------------------------------------------------------------
    # Chunks
    # ------------------------------------------------------------------

    async def create_chunk(
        self,
        document_id: int,
        content: str,
        chunk_index: int,
        embedding: list[float] | None = None,
    ) -> DocumentChunk:
        encoded = json.dumps(embedding) if embedding is not None else None
        try:
            async with self._connect() as db:
                await self._prepare(db)
                cursor = await db.execute(
                    "INSERT INTO document_chunks (document_id, content, embedding, chunk_index) "
                    "VALUES (?, ?, ?, ?)",
                    (document_id, content, encoded, chunk_index),
                )
                await db.commit()
                chunk_id = cursor.lastrowid
        except aiosqlite.IntegrityError as exc:
            raise StorageError(
                message=f"Cannot store chunk for unknown document {document_id}",
                provider_name="sqlite",
            ) from exc
        return DocumentChunk(
            id=chunk_id,
            document_id=document_id,
            content=content,
            embedding=embedding,
            chunk_index=chunk_index,
        )

    async def list_chunks(self, document_id: int) -> list[DocumentChunk]:
        async with self._connect() as db:
            await self._prepare(db)
            cursor = await db.execute(
                _SELECT_CHUNK_SQL + "WHERE document_id = ? ORDER BY chunk_index",
                (document_id,),
            )
            rows = await cursor.fetchall()
        return [_row_to_chunk(r) for r in rows]

    async def search_similar_chunks(self, query_vector: list[float], k: int = 5) -> list[RetrievedChunk]:
        async with self._connect() as db:
            await self._prepare(db)
            cursor = await db.execute(_SELECT_EMBEDDED_CHUNKS_SQL)
            rows = await cursor.fetchall()
        candidates = [
            (_row_to_chunk(r, id_key="chunk_id", content_key="chunk_content"), _row_to_document(r))
            for r in rows
        ]
        return vector_index.search(query_vector, candidates, k)

    # ------------------------------------------------------------------
    # Conversations
    # ------------------------------------------------------------------

    async def create_conversation(self, title: str | None = None) -> Conversation:
        created_at = utc_now().isoformat()
        async with self._connect() as db:
            await self._prepare(db)
            cursor = await db.execute(
                "INSERT INTO conversations (title, created_at) VALUES (?, ?)",
                (title, created_at),
            )
            await db.commit()
            conversation_id = cursor.lastrowid
        return Conversation(id=conversation_id, title=title, created_at=created_at)

    async def get_conversation(self, conversation_id: int) -> Conversation | None:
        async with self._connect() as db:
            await self._prepare(db)
            cursor = await db.execute(
                "SELECT id, title, created_at FROM conversations WHERE id = ?",
                (conversation_id,),
            )
            row = await cursor.fetchone()
        return Conversation(**dict(row)) if row is not None else None

    async def list_conversations(self) -> list[Conversation]:
        async with self._connect() as db:
            await self._prepare(db)
            cursor = await db.execute(
                "SELECT id, title, created_at FROM conversations ORDER BY created_at DESC, id DESC"
            )
            rows = await cursor.fetchall()
        return [Conversation(**dict(r)) for r in rows]

    async def set_conversation_title(self, conversation_id: int, title: str) -> bool:
        async with self._connect() as db:
            await self._prepare(db)
            # The IS NULL guard makes the write-once check atomic.
            cursor = await db.execute(
                "UPDATE conversations SET title = ? WHERE id = ? AND title IS NULL",
                (title, conversation_id),
            )
            await db.commit()
            if cursor.rowcount:
                return True
            cursor = await db.execute("SELECT 1 FROM conversations WHERE id = ?", (conversation_id,))
            exists = await cursor.fetchone()
        if exists is None:
            raise NotFoundError(message=f"Conversation {conversation_id} not found")
        return False

    # ------------------------------------------------------------------
    # Messages
    # ------------------------------------------------------------------

    async def create_message(
        self,
        conversation_id: int,
        role: Literal["user", "assistant"],
        content: str,
        sources: list[SourceRef] | None = None,
    ) -> Message:
        created_at = utc_now().isoformat()
        source_list = sources or []
        encoded_sources = json.dumps([s.model_dump() for s in source_list]) if source_list else None
        try:
            async with self._connect() as db:
                await self._prepare(db)
                cursor = await db.execute(
                    "INSERT INTO messages (conversation_id, role, content, sources, created_at) "
                    "VALUES (?, ?, ?, ?, ?)",
                    (conversation_id, role, content, encoded_sources, created_at),
                )
                await db.commit()
                message_id = cursor.lastrowid
        except aiosqlite.IntegrityError as exc:
            raise NotFoundError(message=f"Conversation {conversation_id} not found") from exc
        return Message(
            id=message_id,
            conversation_id=conversation_id,
            role=role,
            content=content,
            sources=source_list,
            created_at=created_at,
        )

    async def list_messages(self, conversation_id: int) -> list[Message]:
        async with self._connect() as db:
            await self._prepare(db)
            cursor = await db.execute(
                _SELECT_MESSAGE_SQL + "WHERE conversation_id = ? ORDER BY created_at, id",
                (conversation_id,),
            )
            rows = await cursor.fetchall()
        return [_row_to_message(r) for r in rows]

    # ------------------------------------------------------------------
    # Aggregates
    # ------------------------------------------------------------------

    async def get_stats(self) -> CorpusStats:
        async with self._connect() as db:
            await self._prepare(db)
            cursor = await db.execute(_STATS_SQL)
            row = await cursor.fetchone()
        return CorpusStats(**dict(row))
