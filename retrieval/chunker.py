"""Paragraph-aligned chunking of archive articles.

Chunks close at paragraph boundaries once the running word count would pass
the target, and each article contributes at most `max_chunks` chunks so one
long article cannot take over the context budget.
"""

import re

DEFAULT_TARGET_WORDS = 400
DEFAULT_MAX_CHUNKS = 3
MIN_PARAGRAPH_CHARS = 30
# Fallback truncation when no paragraph survives filtering
CHARS_PER_WORD = 6

_PARAGRAPH_BREAK = re.compile(r"\n{2,}")


class Chunker:
    """Splits article text into at most `max_chunks` paragraph-aligned chunks."""

    def __init__(
        self,
        target_words: int = DEFAULT_TARGET_WORDS,
        max_chunks: int = DEFAULT_MAX_CHUNKS,
    ):
        self.target_words = target_words
        self.max_chunks = max_chunks

    def split(self, text: str) -> list[str]:
        paragraphs = [
            p.strip()
            for p in _PARAGRAPH_BREAK.split(text)
            if len(p.strip()) > MIN_PARAGRAPH_CHARS
        ]
        if not paragraphs:
            return [text[: self.target_words * CHARS_PER_WORD]] if text else []

        chunks: list[str] = []
        current: list[str] = []
        current_words = 0

        for para in paragraphs:
            para_words = len(para.split())
            if current_words + para_words > self.target_words and current:
                chunks.append("\n\n".join(current))
                current = []
                current_words = 0
                if len(chunks) >= self.max_chunks:
                    break
            current.append(para)
            current_words += para_words

        if current and len(chunks) < self.max_chunks:
            chunks.append("\n\n".join(current))

        return chunks
