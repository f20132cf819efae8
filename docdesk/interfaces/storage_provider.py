"""Abstract base class for the storage boundary.

One provider owns the four collections (documents, document chunks,
conversations, messages).  Records are immutable Pydantic models; the only
permitted updates are flipping a document's ``is_indexed`` flag and setting
a conversation's title once.  Ids are integers allocated by the provider.

Ordering guarantees every implementation must honour:

- ``list_documents`` / ``list_conversations``: newest first
- ``list_messages``: oldest first, ties broken by id
- ``list_chunks``: by ``chunk_index``
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Literal

from docdesk.models.rag import CorpusStats, RetrievedChunk
from docdesk.models.records import Conversation, Document, DocumentChunk, Message, SourceRef


# Concrete implementations: MemoryStorageProvider, SQLiteStorageProvider
# Located in: docdesk/providers/storage/
class IStorageProvider(ABC):
    """Contract for the CRUD boundary used by ingestion and chat."""

    async def initialize(self) -> None:
        """Prepare the backing store (create tables, directories).  Default: no-op."""

    async def close(self) -> None:
        """Release held resources.  Default: no-op."""

    # -- Documents -----------------------------------------------------

    @abstractmethod
    async def create_document(
        self,
        filename: str,
        original_name: str,
        file_type: str,
        content: str,
    ) -> Document:
        """Persist a new, not-yet-indexed document and return it with its id."""

    @abstractmethod
    async def get_document(self, document_id: int) -> Document | None:
        """Return the document, or ``None`` if no such id exists."""

    @abstractmethod
    async def list_documents(self) -> list[Document]:
        """Return every document, newest upload first."""

    @abstractmethod
    async def set_document_indexed(self, document_id: int) -> Document:
        """Mark the document as indexed and return the updated record.

        Raises
        ------
        docdesk.utils.errors.NotFoundError
            If the document does not exist.
        """

    # -- Chunks --------------------------------------------------------

    @abstractmethod
    async def create_chunk(
        self,
        document_id: int,
        content: str,
        chunk_index: int,
        embedding: list[float] | None = None,
    ) -> DocumentChunk:
        """Persist a chunk of an existing document.

        Raises
        ------
        docdesk.utils.errors.StorageError
            If *document_id* does not refer to a stored document.
        """

    @abstractmethod
    async def list_chunks(self, document_id: int) -> list[DocumentChunk]:
        """Return the document's chunks ordered by ``chunk_index``."""

    @abstractmethod
    async def search_similar_chunks(self, query_vector: list[float], k: int = 5) -> list[RetrievedChunk]:
        """Return the *k* embedded chunks most similar to *query_vector*.

        Chunks without an embedding are never returned.  Results are sorted
        by similarity descending; equal scores keep storage order.
        """

    # -- Conversations -------------------------------------------------

    @abstractmethod
    async def create_conversation(self, title: str | None = None) -> Conversation:
        """Persist a new conversation."""

    @abstractmethod
    async def get_conversation(self, conversation_id: int) -> Conversation | None:
        """Return the conversation, or ``None`` if no such id exists."""

    @abstractmethod
    async def list_conversations(self) -> list[Conversation]:
        """Return every conversation, newest first."""

    @abstractmethod
    async def set_conversation_title(self, conversation_id: int, title: str) -> bool:
        """Set the title if it is still unset.

        Returns ``True`` when the title was written, ``False`` when the
        conversation already had one.

        Raises
        ------
        docdesk.utils.errors.NotFoundError
            If the conversation does not exist.
        """

    # -- Messages ------------------------------------------------------

    @abstractmethod
    async def create_message(
        self,
        conversation_id: int,
        role: Literal["user", "assistant"],
        content: str,
        sources: list[SourceRef] | None = None,
    ) -> Message:
        """Append a message to a conversation.

        Raises
        ------
        docdesk.utils.errors.NotFoundError
            If the conversation does not exist.
        """

    @abstractmethod
    async def list_messages(self, conversation_id: int) -> list[Message]:
        """Return the conversation's messages, oldest first."""

    # -- Aggregates ----------------------------------------------------

    @abstractmethod
    async def get_stats(self) -> CorpusStats:
        """Return document and chunk counts for the corpus."""
