"""Retrieval and pipeline result models.

These are the values that flow between services rather than the records
that are persisted: ranked retrieval hits, keyword matches, ingestion
summaries, corpus statistics and the outcome of one chat turn.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from docdesk.models.records import Conversation, Document, DocumentChunk, Message, SourceRef


class RetrievedChunk(BaseModel):
    """A chunk returned by vector search, with its parent document and score."""

    model_config = ConfigDict(frozen=True)

    chunk: DocumentChunk
    document: Document
    similarity: float = Field(description="Cosine similarity to the query, in [-1, 1].")


class KeywordMatch(BaseModel):
    """A document matched by keyword fallback search.

    ``score`` is the total number of query-term occurrences in the whole
    document; ``matched_excerpts`` holds up to three paragraphs that
    contain at least one term.
    """

    model_config = ConfigDict(frozen=True)

    document: Document
    matched_excerpts: list[str] = Field(default_factory=list)
    score: int = Field(ge=0)

    @property
    def content(self) -> str:
        """Excerpts joined the way they are placed into a prompt."""
        return "\n\n".join(self.matched_excerpts)


class IngestionResult(BaseModel):
    """Summary of one document's trip through the ingestion pipeline."""

    model_config = ConfigDict(frozen=True)

    document_id: int
    original_name: str
    chunks_created: int = Field(ge=0)
    chunks_embedded: int = Field(ge=0)
    chunks_failed: int = Field(default=0, ge=0)
    ingestion_time: float = Field(ge=0.0, description="Wall-clock seconds.")


class CorpusStats(BaseModel):
    """Aggregate counts over the document corpus."""

    model_config = ConfigDict(frozen=True)

    total_docs: int = 0
    indexed_docs: int = 0
    total_chunks: int = 0
    embedded_chunks: int = 0


class ChatTurn(BaseModel):
    """Everything produced by one question/answer exchange."""

    model_config = ConfigDict(frozen=True)

    conversation: Conversation
    user_message: Message
    assistant_message: Message
    sources: list[SourceRef] = Field(default_factory=list)
    retrieval_mode: Literal["vector", "keyword"] = "vector"
