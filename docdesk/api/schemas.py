"""Pydantic request/response schemas for the docdesk API.

Every schema serialises with camelCase keys (``originalName``,
``isIndexed``, ``aiMessage``) to match the JSON contract the web client
consumes, while Python code keeps snake_case attribute names.  Request
bodies accept either spelling.

Convention: request schemas end with "Request", response schemas with
"Response".
"""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from docdesk.models.rag import ChatTurn, CorpusStats
from docdesk.models.records import Conversation, Document, Message, SourceRef


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------


class DocumentResponse(_CamelModel):
    """A document in the sidebar listing (full text omitted)."""

    id: int
    filename: str
    original_name: str
    file_type: str
    is_indexed: bool
    uploaded_at: datetime

    @classmethod
    def from_record(cls, document: Document) -> DocumentResponse:
        return cls(
            id=document.id,
            filename=document.filename,
            original_name=document.original_name,
            file_type=document.file_type,
            is_indexed=document.is_indexed,
            uploaded_at=document.uploaded_at,
        )


class DocumentDetailResponse(DocumentResponse):
    """A single document with its extracted text and chunk counts."""

    content: str
    chunk_count: int = 0
    embedded_chunk_count: int = 0


class UploadResponse(_CamelModel):
    """Returned as soon as an upload is accepted; ingestion continues in the background."""

    message: str
    filename: str


class StatsResponse(_CamelModel):
    total_docs: int
    indexed_docs: int
    total_chunks: int = 0
    embedded_chunks: int = 0

    @classmethod
    def from_stats(cls, stats: CorpusStats) -> StatsResponse:
        return cls(
            total_docs=stats.total_docs,
            indexed_docs=stats.indexed_docs,
            total_chunks=stats.total_chunks,
            embedded_chunks=stats.embedded_chunks,
        )


# ---------------------------------------------------------------------------
# Conversations & messages
# ---------------------------------------------------------------------------


class CreateConversationRequest(_CamelModel):
    title: str | None = Field(default=None, max_length=200)


class ConversationResponse(_CamelModel):
    id: int
    title: str | None
    created_at: datetime

    @classmethod
    def from_record(cls, conversation: Conversation) -> ConversationResponse:
        return cls(id=conversation.id, title=conversation.title, created_at=conversation.created_at)


class SourceResponse(_CamelModel):
    id: int
    original_name: str
    file_type: str

    @classmethod
    def from_record(cls, source: SourceRef) -> SourceResponse:
        return cls(id=source.id, original_name=source.original_name, file_type=source.file_type)


class MessageResponse(_CamelModel):
    id: int
    conversation_id: int
    role: Literal["user", "assistant"]
    content: str
    sources: list[SourceResponse] = Field(default_factory=list)
    created_at: datetime

    @classmethod
    def from_record(cls, message: Message) -> MessageResponse:
        return cls(
            id=message.id,
            conversation_id=message.conversation_id,
            role=message.role,
            content=message.content,
            sources=[SourceResponse.from_record(s) for s in message.sources],
            created_at=message.created_at,
        )


class SendMessageRequest(_CamelModel):
    """Body of ``POST /conversations/{id}/messages``.  Blank content is rejected with 400."""

    content: str = ""


class ChatRequest(_CamelModel):
    """Body of ``POST /chat``; omit ``conversationId`` to start a new conversation."""

    conversation_id: int | None = None
    content: str = ""


class ChatTurnResponse(_CamelModel):
    conversation_id: int
    user_message: MessageResponse
    ai_message: MessageResponse
    sources: list[SourceResponse] = Field(default_factory=list)
    retrieval_mode: Literal["vector", "keyword"]

    @classmethod
    def from_turn(cls, turn: ChatTurn) -> ChatTurnResponse:
        return cls(
            conversation_id=turn.conversation.id,
            user_message=MessageResponse.from_record(turn.user_message),
            ai_message=MessageResponse.from_record(turn.assistant_message),
            sources=[SourceResponse.from_record(s) for s in turn.sources],
            retrieval_mode=turn.retrieval_mode,
        )


# ---------------------------------------------------------------------------
# Health & errors
# ---------------------------------------------------------------------------


class HealthResponse(_CamelModel):
    status: str = "ok"
    version: str
    llm_provider: str
    embedding_provider: str
    storage_backend: str
    pending_ingestions: int = 0


class ErrorResponse(BaseModel):
    """Sanitised error body returned by the error-handling middleware."""

    error: str
    detail: str
