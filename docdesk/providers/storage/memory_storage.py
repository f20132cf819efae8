"""In-memory storage provider.

Each collection is an arena: a dict from integer id to an immutable record,
plus a counter that hands out the next id.  Dicts preserve insertion order,
so iterating a collection walks records in creation order, which the
vector search relies on for stable tie-breaking.

Updates replace the record with a ``model_copy``; the per-record lock from
:class:`~docdesk.utils.concurrency.KeyedLocks` serialises concurrent
updates to the same document or conversation.

State lives only for the lifetime of the process; use
:class:`~docdesk.providers.storage.sqlite_storage.SQLiteStorageProvider`
for durability.
"""

from __future__ import annotations

import itertools
from typing import Literal

import structlog

from docdesk.interfaces.storage_provider import IStorageProvider
from docdesk.models.rag import CorpusStats, RetrievedChunk
from docdesk.models.records import Conversation, Document, DocumentChunk, Message, SourceRef
from docdesk.services.retrieval import vector_index
from docdesk.utils.concurrency import KeyedLocks
from docdesk.utils.errors import NotFoundError, StorageError

logger = structlog.get_logger(logger_name=__name__)


class MemoryStorageProvider(IStorageProvider):
    """Process-local storage backed by four insertion-ordered dicts."""

    def __init__(self) -> None:
        self._documents: dict[int, Document] = {}
        self._chunks: dict[int, DocumentChunk] = {}
        self._conversations: dict[int, Conversation] = {}
        self._messages: dict[int, Message] = {}
        # Allocation never spans an await, so ids cannot interleave.
        self._ids = {
            "documents": itertools.count(1),
            "chunks": itertools.count(1),
            "conversations": itertools.count(1),
            "messages": itertools.count(1),
        }
        self._locks = KeyedLocks()

    def _next_id(self, collection: str) -> int:
        return next(self._ids[collection])

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
        document = Document(
            id=self._next_id("documents"),
            filename=filename,
            original_name=original_name,
            file_type=file_type,
            content=content,
        )
        self._documents[document.id] = document
        logger.debug("document_created", document_id=document.id, backend="memory")
        return document

    async def get_document(self, document_id: int) -> Document | None:
        return self._documents.get(document_id)

    async def list_documents(self) -> list[Document]:
        return sorted(
            self._documents.values(),
            key=lambda d: (d.uploaded_at, d.id),
            reverse=True,
        )

    async def set_document_indexed(self, document_id: int) -> Document:
        async with self._locks.get(("documents", document_id)):
            document = self._documents.get(document_id)
            if document is None:
                raise NotFoundError(message=f"Document {document_id} not found")
            updated = document.model_copy(update={"is_indexed": True})
            self._documents[document_id] = updated
        return updated

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
        if document_id not in self._documents:
            raise StorageError(
                message=f"Cannot store chunk for unknown document {document_id}",
                provider_name="memory",
            )
        chunk = DocumentChunk(
            id=self._next_id("chunks"),
            document_id=document_id,
            content=content,
            embedding=embedding,
            chunk_index=chunk_index,
        )
        self._chunks[chunk.id] = chunk
        return chunk

    async def list_chunks(self, document_id: int) -> list[DocumentChunk]:
        return sorted(
            (c for c in self._chunks.values() if c.document_id == document_id),
            key=lambda c: c.chunk_index,
        )

    async def search_similar_chunks(self, query_vector: list[float], k: int = 5) -> list[RetrievedChunk]:
        candidates = [
            (chunk, self._documents[chunk.document_id])
            for chunk in self._chunks.values()
            if chunk.embedding is not None and chunk.document_id in self._documents
        ]
        return vector_index.search(query_vector, candidates, k)

    # ------------------------------------------------------------------
    # Conversations
    # ------------------------------------------------------------------

    async def create_conversation(self, title: str | None = None) -> Conversation:
        conversation = Conversation(id=self._next_id("conversations"), title=title)
        self._conversations[conversation.id] = conversation
        return conversation

    async def get_conversation(self, conversation_id: int) -> Conversation | None:
        return self._conversations.get(conversation_id)

    async def list_conversations(self) -> list[Conversation]:
        return sorted(
            self._conversations.values(),
            key=lambda c: (c.created_at, c.id),
            reverse=True,
        )

    async def set_conversation_title(self, conversation_id: int, title: str) -> bool:
        async with self._locks.get(("conversations", conversation_id)):
            conversation = self._conversations.get(conversation_id)
            if conversation is None:
                raise NotFoundError(message=f"Conversation {conversation_id} not found")
            if conversation.title is not None:
                return False
            self._conversations[conversation_id] = conversation.model_copy(update={"title": title})
        return True

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
        if conversation_id not in self._conversations:
            raise NotFoundError(message=f"Conversation {conversation_id} not found")
        message = Message(
            id=self._next_id("messages"),
            conversation_id=conversation_id,
            role=role,
            content=content,
            sources=sources or [],
        )
        self._messages[message.id] = message
        return message

    async def list_messages(self, conversation_id: int) -> list[Message]:
        return sorted(
            (m for m in self._messages.values() if m.conversation_id == conversation_id),
            key=lambda m: (m.created_at, m.id),
        )

    # ------------------------------------------------------------------
    # Aggregates
    # ------------------------------------------------------------------

    async def get_stats(self) -> CorpusStats:
        return CorpusStats(
            total_docs=len(self._documents),
            indexed_docs=sum(1 for d in self._documents.values() if d.is_indexed),
            total_chunks=len(self._chunks),
            embedded_chunks=sum(1 for c in self._chunks.values() if c.embedding is not None),
        )
