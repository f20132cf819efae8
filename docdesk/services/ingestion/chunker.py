"""Fixed-size word-window chunking.

Text is split on runs of whitespace and regrouped into consecutive,
non-overlapping windows of ``max_words`` words.  Chunk boundaries ignore
sentences and paragraphs; the keyword fallback works on the full document
text, so paragraph structure is not lost for retrieval.

Properties relied on by the ingestion pipeline and its tests:

- ``" ".join(chunks).split() == text.split()``
- ``len(chunks) == ceil(len(text.split()) / max_words)``
"""

from __future__ import annotations

import structlog

logger = structlog.get_logger(logger_name=__name__)

DEFAULT_MAX_WORDS = 500


class WordChunker:
    """Splits text into windows of at most ``max_words`` whitespace-delimited words."""

    def __init__(self, max_words: int = DEFAULT_MAX_WORDS) -> None:
        if max_words < 1:
            msg = f"max_words must be >= 1, got {max_words}"
            raise ValueError(msg)
        self._max_words = max_words

    @property
    def max_words(self) -> int:
        return self._max_words

    def chunk(self, text: str, max_words: int | None = None) -> list[str]:
        """Return the word windows of *text* in order.

        Parameters
        ----------
        text:
            Full document text.  Empty or whitespace-only text yields ``[]``.
        max_words:
            Per-call override of the window size.
        """
        size = self._max_words if max_words is None else max_words
        if size < 1:
            msg = f"max_words must be >= 1, got {size}"
            raise ValueError(msg)

        words = text.split()
        chunks = [" ".join(words[start : start + size]) for start in range(0, len(words), size)]
        chunks = [c for c in chunks if c.strip()]
        logger.debug("text_chunked", words=len(words), chunks=len(chunks), max_words=size)
        return chunks
