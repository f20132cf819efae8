"""Conversation orchestrator: retrieval-augmented answers with source attribution.

One call to :meth:`ChatService.ask` runs a full turn:

  1. RESOLVE     -- create a conversation, or load the requested one
                    (unknown id -> NotFoundError, nothing persisted)
  2. PERSIST     -- store the user's message verbatim
  3. RETRIEVE    -- embed the question and run vector search; if the
                    embedding backend fails, score documents with the
                    keyword fallback instead.  Retrieval never fails a turn.
  4. GENERATE    -- send the retrieved context and the question to the
                    LLM.  A generation failure propagates to the caller;
                    the user message stays stored.
  5. PERSIST     -- store the assistant answer with the cited documents
  6. TITLE       -- after the first exchange, schedule title generation
                    in the background.  One attempt only; a failure leaves
                    the title unset.

Query embeddings are memoised in the cache provider, keyed by a SHA-256
of the embedding provider name and the question text.
"""

from __future__ import annotations

import asyncio
import hashlib
from collections.abc import Iterable
from typing import Literal

import structlog

from docdesk.interfaces.cache_provider import ICacheProvider
from docdesk.interfaces.embedding_provider import IEmbeddingProvider
from docdesk.interfaces.llm_provider import ILLMProvider
from docdesk.interfaces.storage_provider import IStorageProvider
from docdesk.models.rag import ChatTurn
from docdesk.models.records import Conversation, Document, SourceRef
from docdesk.services.retrieval.keyword_search import KeywordSearcher
from docdesk.utils.errors import NotFoundError, ValidationError
from docdesk.utils.logging import get_logger, log_context

logger: structlog.BoundLogger = get_logger(__name__)

ANSWER_SYSTEM_PROMPT = (
    "You are a helpful internal documentation assistant. Provide clear, accurate answers "
    "based on the context provided from company documents."
)

ANSWER_USER_TEMPLATE = (
    "Based on the following context from internal documents, answer the user's question. "
    "If the context doesn't contain enough information to answer the question, say so clearly.\n\n"
    "Context:\n{context}\n\n"
    "Question: {question}\n\n"
    "Please provide a helpful, accurate answer based on the context provided."
)

TITLE_SYSTEM_PROMPT = (
    "Generate a short, descriptive title (max 6 words) for a conversation based on the "
    "first message. Return only the title."
)

_ANSWER_TEMPERATURE = 0.3
_ANSWER_MAX_TOKENS = 1000
_TITLE_TEMPERATURE = 0.5
_TITLE_MAX_TOKENS = 20
_TITLE_MAX_WORDS = 6


def clean_title(raw: str, max_words: int = _TITLE_MAX_WORDS) -> str:
    """Strip quotes and whitespace from a generated title and cap its length."""
    words = raw.strip().strip("\"'`").split()
    return " ".join(words[:max_words])


class ChatService:
    """Runs question/answer turns against the document corpus.

    Parameters
    ----------
    storage:
        Conversation, message and corpus storage.
    embedding_provider:
        Embeds the question for vector search.
    llm:
        Generates answers and conversation titles.
    cache:
        Optional cache for query embeddings.
    keyword_searcher:
        Fallback retriever used when embedding fails.
    top_k:
        Number of chunks taken from vector search.
    """

    def __init__(
        self,
        storage: IStorageProvider,
        embedding_provider: IEmbeddingProvider,
        llm: ILLMProvider,
        cache: ICacheProvider | None = None,
        keyword_searcher: KeywordSearcher | None = None,
        top_k: int = 5,
    ) -> None:
        self._storage = storage
        self._embedding_provider = embedding_provider
        self._llm = llm
        self._cache = cache
        self._keyword_searcher = keyword_searcher or KeywordSearcher()
        self._top_k = top_k
        # Strong references keep scheduled title tasks from being collected.
        self._background_tasks: set[asyncio.Task[None]] = set()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def ask(self, conversation_id: int | None, user_text: str) -> ChatTurn:
        """Answer *user_text* in a new or existing conversation.

        Raises
        ------
        ValidationError
            If *user_text* is blank.
        NotFoundError
            If *conversation_id* is given but does not exist.
        ProviderError
            If answer generation fails.  The user message is already stored.
        """
        if not user_text or not user_text.strip():
            raise ValidationError(message="Message content is required")

        conversation = await self._resolve_conversation(conversation_id)

        with log_context(conversation_id=conversation.id):
            user_message = await self._storage.create_message(
                conversation_id=conversation.id,
                role="user",
                content=user_text,
            )

            context_texts, documents, mode = await self._retrieve(user_text)
            sources = [
                SourceRef(id=d.id, original_name=d.original_name, file_type=d.file_type)
                for d in documents
            ]

            answer = await self._llm.complete(
                system_prompt=ANSWER_SYSTEM_PROMPT,
                user_prompt=ANSWER_USER_TEMPLATE.format(
                    context="\n\n".join(context_texts),
                    question=user_text,
                ),
                temperature=_ANSWER_TEMPERATURE,
                max_tokens=_ANSWER_MAX_TOKENS,
            )

            assistant_message = await self._storage.create_message(
                conversation_id=conversation.id,
                role="assistant",
                content=answer,
                sources=sources,
            )

            messages = await self._storage.list_messages(conversation.id)
            if len(messages) == 2:
                self._schedule_title(conversation.id, user_text)

            logger.info(
                "chat_turn_complete",
                retrieval_mode=mode,
                context_passages=len(context_texts),
                sources=len(sources),
            )

        return ChatTurn(
            conversation=conversation,
            user_message=user_message,
            assistant_message=assistant_message,
            sources=sources,
            retrieval_mode=mode,
        )

    async def drain(self) -> None:
        """Wait for every scheduled title task to finish."""
        while self._background_tasks:
            pending = list(self._background_tasks)
            await asyncio.gather(*pending, return_exceptions=True)
            self._background_tasks.difference_update(pending)

    @property
    def pending_background_tasks(self) -> int:
        return len(self._background_tasks)

    # ------------------------------------------------------------------
    # Private helpers: conversation & retrieval
    # ------------------------------------------------------------------

    async def _resolve_conversation(self, conversation_id: int | None) -> Conversation:
        if conversation_id is None:
            conversation = await self._storage.create_conversation()
            logger.info("conversation_created", conversation_id=conversation.id)
            return conversation

        conversation = await self._storage.get_conversation(conversation_id)
        if conversation is None:
            raise NotFoundError(message=f"Conversation {conversation_id} not found")
        return conversation

    async def _retrieve(
        self, question: str
    ) -> tuple[list[str], list[Document], Literal["vector", "keyword"]]:
        """Return (context passages, distinct source documents, mode used)."""
        try:
            query_vector = await self._embed_query(question)
        except Exception as exc:  # noqa: BLE001
            logger.warning(
                "query_embedding_failed",
                provider=self._embedding_provider.get_provider_name(),
                error=str(exc),
            )
            return await self._keyword_retrieve(question)

        try:
            hits = await self._storage.search_similar_chunks(query_vector, self._top_k)
        except Exception:  # noqa: BLE001
            logger.exception("vector_search_failed")
            return [], [], "vector"

        documents = _dedupe_documents(hit.document for hit in hits)
        return [hit.chunk.content for hit in hits], documents, "vector"

    async def _keyword_retrieve(
        self, question: str
    ) -> tuple[list[str], list[Document], Literal["vector", "keyword"]]:
        try:
            all_documents = await self._storage.list_documents()
            matches = self._keyword_searcher.search(question, all_documents)
        except Exception:  # noqa: BLE001
            logger.exception("keyword_search_failed")
            return [], [], "keyword"

        documents = _dedupe_documents(match.document for match in matches)
        return [match.content for match in matches], documents, "keyword"

    async def _embed_query(self, question: str) -> list[float]:
        cache_key = self._cache_key(question)
        if self._cache is not None:
            cached = await self._cache.get(cache_key)
            if cached is not None:
                return cached

        vector = await self._embedding_provider.embed_single(question)
        if self._cache is not None:
            await self._cache.set(cache_key, vector)
        return vector

    def _cache_key(self, question: str) -> str:
        raw = f"{self._embedding_provider.get_provider_name()}|{question}"
        return "query_embedding:" + hashlib.sha256(raw.encode()).hexdigest()

    # ------------------------------------------------------------------
    # Private helpers: titles
    # ------------------------------------------------------------------

    def _schedule_title(self, conversation_id: int, first_message: str) -> None:
        task = asyncio.create_task(
            self._generate_title(conversation_id, first_message),
            name=f"title-{conversation_id}",
        )
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)

    async def _generate_title(self, conversation_id: int, first_message: str) -> None:
        """Generate and store a title once.  Never raises."""
        try:
            raw = await self._llm.complete(
                system_prompt=TITLE_SYSTEM_PROMPT,
                user_prompt=first_message,
                temperature=_TITLE_TEMPERATURE,
                max_tokens=_TITLE_MAX_TOKENS,
            )
            title = clean_title(raw)
            if not title:
                logger.warning("title_generation_empty", conversation_id=conversation_id)
                return
            stored = await self._storage.set_conversation_title(conversation_id, title)
            logger.info("conversation_titled", conversation_id=conversation_id, stored=stored)
        except Exception as exc:  # noqa: BLE001
            logger.warning(
                "title_generation_failed",
                conversation_id=conversation_id,
                error=str(exc),
            )


def _dedupe_documents(documents: Iterable[Document]) -> list[Document]:
    """Distinct documents by id, in first-seen order."""
    seen: dict[int, Document] = {}
    for document in documents:
        seen.setdefault(document.id, document)
    return list(seen.values())
