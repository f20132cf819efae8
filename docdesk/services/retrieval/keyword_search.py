"""Lexical fallback retrieval used when query embedding is unavailable.

Scoring is deliberately simple term frequency:

- query terms are the lower-cased whitespace tokens longer than 2 chars,
  repeats included
- a document's score is the total number of (non-overlapping,
  case-insensitive) occurrences of every term in its full text
- excerpts are blank-line separated paragraphs longer than 50 characters
  that contain at least one term, at most three per document, in the order
  first found (term order, then paragraph order)

Documents scoring zero are dropped; the rest are returned by score,
highest first, ties in input order.
"""

from __future__ import annotations

import re
from collections.abc import Iterable

import structlog

from docdesk.models.rag import KeywordMatch
from docdesk.models.records import Document

logger = structlog.get_logger(logger_name=__name__)

_PARAGRAPH_SPLIT = re.compile(r"\n\n+")


def extract_terms(query: str, min_length: int = 3) -> list[str]:
    """Return lower-cased query terms of at least *min_length* chars, in query order.

    Repeats are kept: a word given twice in the query counts twice in every
    document score.
    """
    return [token for token in query.lower().split() if len(token) >= min_length]


class KeywordSearcher:
    """Term-frequency scorer over full document text.

    Parameters
    ----------
    max_results:
        Number of documents returned.
    max_excerpts:
        Paragraph excerpts kept per document.
    min_paragraph_chars:
        A paragraph must be longer than this (after stripping) to be an excerpt.
    fallback_excerpt_chars:
        When a document scores but has no qualifying paragraph, the first
        this-many characters of its content are used as the excerpt.
    """

    def __init__(
        self,
        max_results: int = 5,
        max_excerpts: int = 3,
        min_paragraph_chars: int = 50,
        fallback_excerpt_chars: int = 500,
    ) -> None:
        self._max_results = max_results
        self._max_excerpts = max_excerpts
        self._min_paragraph_chars = min_paragraph_chars
        self._fallback_excerpt_chars = fallback_excerpt_chars

    def search(self, query: str, documents: Iterable[Document]) -> list[KeywordMatch]:
        """Score *documents* against *query* and return the best matches."""
        terms = extract_terms(query)
        if not terms:
            logger.debug("keyword_search_no_terms", query_length=len(query))
            return []

        matches: list[KeywordMatch] = []
        for document in documents:
            if not document.content:
                continue
            match = self._score_document(document, terms)
            if match is not None:
                matches.append(match)

        matches = sorted(matches, key=lambda m: m.score, reverse=True)[: self._max_results]
        logger.info(
            "keyword_search_complete",
            terms=len(terms),
            matches=len(matches),
        )
        return matches

    def _score_document(self, document: Document, terms: list[str]) -> KeywordMatch | None:
        lowered = document.content.lower()
        # str.count is literal and non-overlapping.
        score = sum(lowered.count(term) for term in terms)
        if score == 0:
            return None

        paragraphs = [
            piece.strip()
            for piece in _PARAGRAPH_SPLIT.split(document.content)
            if len(piece.strip()) > self._min_paragraph_chars
        ]
        excerpts: list[str] = []
        for term in terms:
            for paragraph in paragraphs:
                if len(excerpts) >= self._max_excerpts:
                    break
                if term in paragraph.lower() and paragraph not in excerpts:
                    excerpts.append(paragraph)

        if not excerpts:
            excerpts = [document.content[: self._fallback_excerpt_chars].strip()]

        return KeywordMatch(document=document, matched_excerpts=excerpts, score=score)
