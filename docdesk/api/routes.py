"""FastAPI API routes for docdesk.

Provides REST endpoints for document upload and listing, corpus stats,
conversations, question answering and health checks.  Service
dependencies are resolved from ``app.state`` via FastAPI's ``Depends``
using the ``Annotated`` pattern.

# Endpoint                              Method  Description
# ─────────────────────────────────────────────────────────────────────
# /api/documents                        GET     List uploaded documents (newest first)
# /api/documents                        POST    Upload a document -> background ingestion
# /api/documents/stats                  GET     Document / chunk counts
# /api/documents/{id}                   GET     One document with its extracted text
# /api/conversations                    GET     List conversations (newest first)
# /api/conversations                    POST    Create a conversation
# /api/conversations/{id}/messages      GET     Message history (oldest first)
# /api/conversations/{id}/messages      POST    Ask a question in a conversation
# /api/chat                             POST    Ask, creating a conversation if needed
# /api/health                           GET     Health check + backend names
"""

from __future__ import annotations

from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, File, Request, UploadFile

from docdesk import __version__
from docdesk.api.schemas import (
    ChatRequest,
    ChatTurnResponse,
    ConversationResponse,
    CreateConversationRequest,
    DocumentDetailResponse,
    DocumentResponse,
    ErrorResponse,
    HealthResponse,
    MessageResponse,
    SendMessageRequest,
    StatsResponse,
    UploadResponse,
)
from docdesk.api.uploads import save_upload
from docdesk.config.settings import Settings
from docdesk.interfaces.storage_provider import IStorageProvider
from docdesk.services.chat_service import ChatService
from docdesk.services.ingestion.ingestion_queue import IngestionJob, IngestionQueue
from docdesk.utils.errors import NotFoundError
from docdesk.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

router = APIRouter(prefix="/api")

_UPLOAD_ACCEPTED_MESSAGE = "Document uploaded successfully and is being processed"


# ---------------------------------------------------------------------------
# Dependency injection helpers: resolve singletons from app.state
# ---------------------------------------------------------------------------


def _get_storage(request: Request) -> IStorageProvider:
    return request.app.state.storage


def _get_chat_service(request: Request) -> ChatService:
    return request.app.state.chat_service


def _get_ingestion_queue(request: Request) -> IngestionQueue:
    return request.app.state.ingestion_queue


def _get_settings(request: Request) -> Settings:
    return request.app.state.settings


StorageDep = Annotated[IStorageProvider, Depends(_get_storage)]
ChatServiceDep = Annotated[ChatService, Depends(_get_chat_service)]
IngestionQueueDep = Annotated[IngestionQueue, Depends(_get_ingestion_queue)]
SettingsDep = Annotated[Settings, Depends(_get_settings)]


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------


@router.get(
    "/documents",
    response_model=list[DocumentResponse],
    summary="List uploaded documents",
)
async def list_documents(storage: StorageDep) -> list[DocumentResponse]:
    documents = await storage.list_documents()
    return [DocumentResponse.from_record(d) for d in documents]


@router.post(
    "/documents",
    response_model=UploadResponse,
    responses={400: {"model": ErrorResponse}},
    summary="Upload a document for background ingestion",
)
async def upload_document(
    queue: IngestionQueueDep,
    settings: SettingsDep,
    document: Annotated[UploadFile | None, File()] = None,
) -> UploadResponse:
    """Store the upload and hand it to the ingestion queue.

    The response is returned before extraction and embedding run; poll
    ``/documents`` or ``/documents/stats`` to see when it is indexed.
    """
    saved = await save_upload(
        document,
        upload_dir=settings.upload_dir,
        allowed_extensions=settings.allowed_extensions,
        max_bytes=settings.max_upload_bytes,
    )
    queue.submit(
        IngestionJob(
            file_path=saved.path,
            original_name=saved.original_name,
            file_type=saved.file_type,
        )
    )
    _logger.info("upload_accepted", original_name=saved.original_name, file_type=saved.file_type)
    return UploadResponse(message=_UPLOAD_ACCEPTED_MESSAGE, filename=saved.original_name)


@router.get(
    "/documents/stats",
    response_model=StatsResponse,
    summary="Document and chunk counts",
)
async def document_stats(storage: StorageDep) -> StatsResponse:
    return StatsResponse.from_stats(await storage.get_stats())


@router.get(
    "/documents/{document_id}",
    response_model=DocumentDetailResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Fetch one document with its extracted text",
)
async def get_document(document_id: int, storage: StorageDep) -> DocumentDetailResponse:
    document = await storage.get_document(document_id)
    if document is None:
        raise NotFoundError(message=f"Document {document_id} not found")

    chunks = await storage.list_chunks(document_id)
    summary = DocumentResponse.from_record(document)
    return DocumentDetailResponse(
        **summary.model_dump(),
        content=document.content,
        chunk_count=len(chunks),
        embedded_chunk_count=sum(1 for c in chunks if c.embedding is not None),
    )


# ---------------------------------------------------------------------------
# Conversations
# ---------------------------------------------------------------------------


@router.get(
    "/conversations",
    response_model=list[ConversationResponse],
    summary="List conversations",
)
async def list_conversations(storage: StorageDep) -> list[ConversationResponse]:
    conversations = await storage.list_conversations()
    return [ConversationResponse.from_record(c) for c in conversations]


@router.post(
    "/conversations",
    response_model=ConversationResponse,
    summary="Create a conversation",
)
async def create_conversation(
    storage: StorageDep,
    body: CreateConversationRequest | None = None,
) -> ConversationResponse:
    title = body.title.strip() if body and body.title else None
    conversation = await storage.create_conversation(title=title or None)
    _logger.info("conversation_created", conversation_id=conversation.id, titled=title is not None)
    return ConversationResponse.from_record(conversation)


@router.get(
    "/conversations/{conversation_id}/messages",
    response_model=list[MessageResponse],
    responses={404: {"model": ErrorResponse}},
    summary="Message history of a conversation",
)
async def list_messages(conversation_id: int, storage: StorageDep) -> list[MessageResponse]:
    if await storage.get_conversation(conversation_id) is None:
        raise NotFoundError(message=f"Conversation {conversation_id} not found")
    messages = await storage.list_messages(conversation_id)
    return [MessageResponse.from_record(m) for m in messages]


@router.post(
    "/conversations/{conversation_id}/messages",
    response_model=ChatTurnResponse,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
    },
    summary="Ask a question in an existing conversation",
)
async def send_message(
    conversation_id: int,
    body: SendMessageRequest,
    chat_service: ChatServiceDep,
) -> ChatTurnResponse:
    turn = await chat_service.ask(conversation_id, body.content)
    return ChatTurnResponse.from_turn(turn)


@router.post(
    "/chat",
    response_model=ChatTurnResponse,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
    },
    summary="Ask a question, starting a conversation when none is given",
)
async def chat(body: ChatRequest, chat_service: ChatServiceDep) -> ChatTurnResponse:
    turn = await chat_service.ask(body.conversation_id, body.content)
    return ChatTurnResponse.from_turn(turn)


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Application health check",
)
async def health_check(request: Request) -> HealthResponse:
    """Return application version, active backends and queue depth."""
    state = request.app.state
    queue = getattr(state, "ingestion_queue", None)
    settings = getattr(state, "settings", None)
    llm = getattr(state, "primary_llm", None)
    embedding = getattr(state, "embedding_provider", None)

    llm_ok = llm is not None and llm.is_available()
    return HealthResponse(
        status="healthy" if llm_ok else "degraded",
        version=__version__,
        llm_provider=llm.get_provider_name() if llm is not None else "none",
        embedding_provider=embedding.get_provider_name() if embedding is not None else "none",
        storage_backend=settings.storage_backend if settings is not None else "unknown",
        pending_ingestions=queue.pending if queue is not None else 0,
    )
