"""Pydantic models for persisted records and retrieval results."""

from docdesk.models.rag import ChatTurn, CorpusStats, IngestionResult, KeywordMatch, RetrievedChunk
from docdesk.models.records import Conversation, Document, DocumentChunk, Message, SourceRef

__all__ = [
    "ChatTurn",
    "Conversation",
    "CorpusStats",
    "Document",
    "DocumentChunk",
    "IngestionResult",
    "KeywordMatch",
    "Message",
    "RetrievedChunk",
    "SourceRef",
]
