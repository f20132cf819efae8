"""Unit tests for the fixed-size word-window chunker."""

from __future__ import annotations

import math

import pytest

from docdesk.services.ingestion.chunker import WordChunker
from helpers import words


# ======================================================================
# Window sizes
# ======================================================================


class TestWordChunker:
    def test_default_window_is_500_words(self) -> None:
        assert WordChunker().max_words == 500

    def test_1200_words_gives_500_500_200(self) -> None:
        chunks = WordChunker().chunk(words(1200))

        assert [len(c.split()) for c in chunks] == [500, 500, 200]

    def test_exact_multiple_has_no_trailing_chunk(self) -> None:
        chunks = WordChunker(max_words=10).chunk(words(30))
        assert [len(c.split()) for c in chunks] == [10, 10, 10]

    def test_short_text_is_single_chunk(self) -> None:
        assert WordChunker().chunk("just a few words") == ["just a few words"]

    @pytest.mark.parametrize("text", ["", "   ", "\n\n\t "])
    def test_blank_text_yields_no_chunks(self, text: str) -> None:
        assert WordChunker().chunk(text) == []

    def test_whitespace_is_collapsed_to_single_spaces(self) -> None:
        chunks = WordChunker(max_words=3).chunk("alpha\n\nbeta\tgamma   delta")
        assert chunks == ["alpha beta gamma", "delta"]

    def test_rejoining_chunks_reproduces_the_word_sequence(self) -> None:
        text = "  Lorem ipsum\n dolor  sit amet,\tconsectetur adipiscing elit.  " * 37
        chunks = WordChunker(max_words=7).chunk(text)

        assert " ".join(chunks).split() == text.split()
        assert len(chunks) == math.ceil(len(text.split()) / 7)

    def test_per_call_override(self) -> None:
        chunker = WordChunker(max_words=500)
        assert len(chunker.chunk(words(10), max_words=4)) == 3
        assert chunker.max_words == 500

    @pytest.mark.parametrize("size", [0, -1])
    def test_invalid_window_rejected(self, size: int) -> None:
        with pytest.raises(ValueError, match="max_words"):
            WordChunker(max_words=size)
        with pytest.raises(ValueError, match="max_words"):
            WordChunker().chunk("some text", max_words=size)
