"""Tests for the whole-word text chunker."""

import pytest

from notes_tutor.ingestion.chunker import TextChunker, chunk_text


class TestChunkText:
    def test_packs_words_greedily(self):
        assert list(chunk_text("the cat sat on the mat", 10)) == ["the cat", "sat on the", "mat"]

    def test_never_exceeds_bound_for_normal_words(self):
        text = " ".join(["word"] * 200)
        chunks = list(chunk_text(text, 23))
        assert all(len(chunk) <= 23 for chunk in chunks)

    def test_keeps_every_word_in_order(self):
        text = "alpha beta gamma  delta\n\nepsilon\tzeta"
        chunks = list(chunk_text(text, 12))
        assert " ".join(chunks).split() == text.split()

    def test_long_word_becomes_its_own_chunk(self):
        chunks = list(chunk_text("a supercalifragilistic b", 5))
        assert chunks == ["a", "supercalifragilistic", "b"]

    def test_chunk_exactly_at_bound(self):
        assert list(chunk_text("abc def", 7)) == ["abc def"]

    @pytest.mark.parametrize("text", ["", "   ", "\n\t "])
    def test_blank_text_yields_nothing(self, text):
        assert list(chunk_text(text, 10)) == []

    def test_rejects_bound_below_one(self):
        with pytest.raises(ValueError):
            list(chunk_text("some text", 0))

    def test_is_a_generator(self):
        pieces = chunk_text("one two three", 3)
        assert next(pieces) == "one"
        assert list(pieces) == ["two", "three"]


class TestTextChunker:
    def test_indexes_chunks(self):
        chunks = TextChunker(max_chunk_chars=10).chunk("the cat sat on the mat")
        assert [c.chunk_index for c in chunks] == [0, 1, 2]
        assert chunks[1].char_count == 10

    @pytest.mark.parametrize("size", [0, -5])
    def test_rejects_explicit_bound_below_one(self, size):
        with pytest.raises(ValueError):
            TextChunker(max_chunk_chars=size)

    def test_metadata_copied_per_chunk(self):
        chunks = TextChunker(max_chunk_chars=5).chunk("aaa bbb", metadata={"topic": "T"})
        chunks[0].metadata["topic"] = "changed"
        assert chunks[1].metadata == {"topic": "T"}

    def test_default_bound(self):
        chunks = TextChunker().chunk(" ".join(["word"] * 1000))
        assert all(c.char_count <= 2000 for c in chunks)
        assert len(chunks) == 3
