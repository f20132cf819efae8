"""Brute-force cosine-similarity search over embedded chunks.

The functions here are pure: storage providers gather the candidate
``(chunk, document)`` pairs and delegate ranking to :func:`search`, so an
approximate-nearest-neighbour index can later replace the scan without
changing any caller.

:func:`cosine_similarity` never raises.  Vectors of different length,
empty vectors and zero-norm vectors all score ``0.0``.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence

from docdesk.models.rag import RetrievedChunk
from docdesk.models.records import Document, DocumentChunk


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Return ``dot(a, b) / (|a| * |b|)``, or ``0.0`` when undefined."""
    if not a or not b or len(a) != len(b):
        return 0.0

    dot = 0.0
    norm_a = 0.0
    norm_b = 0.0
    for x, y in zip(a, b):
        dot += x * y
        norm_a += x * x
        norm_b += y * y

    if norm_a == 0.0 or norm_b == 0.0:
        return 0.0
    return dot / (math.sqrt(norm_a) * math.sqrt(norm_b))


def search(
    query_vector: Sequence[float],
    candidates: Iterable[tuple[DocumentChunk, Document]],
    k: int = 5,
) -> list[RetrievedChunk]:
    """Rank *candidates* by similarity to *query_vector* and keep the top *k*.

    Candidates whose chunk has no embedding are skipped.  ``sorted`` is
    stable, so equal similarities keep the order in which *candidates*
    were supplied.
    """
    if k <= 0:
        return []

    scored = [
        RetrievedChunk(
            chunk=chunk,
            document=document,
            similarity=cosine_similarity(query_vector, chunk.embedding),
        )
        for chunk, document in candidates
        if chunk.embedding is not None
    ]
    scored = sorted(scored, key=lambda hit: hit.similarity, reverse=True)
    return scored[:k]
