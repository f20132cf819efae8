"""Retrieval: cosine vector search and keyword fallback."""

from docdesk.services.retrieval.keyword_search import KeywordSearcher, extract_terms
from docdesk.services.retrieval.vector_index import cosine_similarity, search

__all__ = ["KeywordSearcher", "cosine_similarity", "extract_terms", "search"]
