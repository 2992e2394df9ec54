"""Tests for paragraph-aligned chunking."""

from retrieval.chunker import Chunker


def paragraph(words: int, token: str = "מילה") -> str:
    return " ".join([token] * words)


def test_closes_chunk_when_next_paragraph_would_exceed_target():
    text = "\n\n".join([paragraph(60), paragraph(60), paragraph(60)])
    chunks = Chunker(target_words=100, max_chunks=5).split(text)
    assert len(chunks) == 3
    assert all(len(c.split()) == 60 for c in chunks)


def test_caps_chunks_per_article():
    text = "\n\n".join(paragraph(50) for _ in range(10))
    chunks = Chunker(target_words=50, max_chunks=3).split(text)
    assert len(chunks) == 3


def test_short_paragraphs_are_dropped():
    text = "קצר\n\n" + paragraph(20) + "\n\n\nגם קצר"
    assert Chunker().split(text) == [paragraph(20)]


def test_falls_back_to_truncated_text_when_no_paragraph_survives():
    text = "שורה קצרה\n\nעוד אחת"
    assert Chunker().split(text) == [text]
    assert Chunker(target_words=1).split("x" * 20) == ["x" * 6]


def test_empty_text_yields_no_chunks():
    assert Chunker().split("") == []
