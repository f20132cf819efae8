"""Persisted record models: documents, chunks, conversations and messages.

All models are frozen Pydantic v2 models.  A record is never mutated in
place; storage providers produce an updated copy with
``model_copy(update=...)`` and write it back.

Records refer to each other by integer id only (a chunk holds its
``document_id``, a message its ``conversation_id``).  Ids are allocated by
the storage provider, monotonically increasing per collection from 1.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


def utc_now() -> datetime:
    """Timezone-aware current time used for every ``*_at`` field."""
    return datetime.now(tz=timezone.utc)  # noqa: UP017


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------
class Document(BaseModel):
    """An uploaded document and its extracted full text.

    Created with ``is_indexed=False`` as soon as text extraction succeeds;
    flipped to ``True`` exactly once after every chunk has been attempted.
    Content is never changed after creation.
    """

    model_config = ConfigDict(frozen=True)

    id: int
    filename: str = Field(description="Stored filename of the upload artifact.")
    original_name: str = Field(description="Filename as supplied by the uploader.")
    file_type: str = Field(description="Lower-case extension without the dot, e.g. 'md'.")
    content: str = ""
    is_indexed: bool = False
    uploaded_at: datetime = Field(default_factory=utc_now)


class DocumentChunk(BaseModel):
    """A contiguous window of a document's text, the unit of retrieval.

    ``embedding`` is ``None`` when vector generation failed for this chunk;
    such chunks are only reachable through keyword retrieval.
    """

    model_config = ConfigDict(frozen=True)

    id: int
    document_id: int
    content: str
    embedding: list[float] | None = None
    chunk_index: int = Field(ge=0)


# ---------------------------------------------------------------------------
# Conversations
# ---------------------------------------------------------------------------
class Conversation(BaseModel):
    """A chat thread.  ``title`` stays ``None`` until the first exchange is titled."""

    model_config = ConfigDict(frozen=True)

    id: int
    title: str | None = None
    created_at: datetime = Field(default_factory=utc_now)


class SourceRef(BaseModel):
    """A document cited by an assistant message."""

    model_config = ConfigDict(frozen=True)

    id: int
    original_name: str
    file_type: str


class Message(BaseModel):
    """One turn in a conversation.

    ``sources`` is only populated on assistant messages and preserves the
    order in which documents were first retrieved.
    """

    model_config = ConfigDict(frozen=True)

    id: int
    conversation_id: int
    role: Literal["user", "assistant"]
    content: str
    sources: list[SourceRef] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utc_now)
