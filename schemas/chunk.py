"""Pydantic models for retrieval output: chunks, sources, and the result bundle."""

from pydantic import BaseModel, Field
from typing import List


class SourceRef(BaseModel):
    title: str
    url: str
    date: str = ""


class RetrievedChunk(BaseModel):
    article_id: int
    article_title: str
    article_url: str
    article_date: str
    chunk_index: int = Field(description="Position of the chunk within its article")
    text: str
    word_count: int


class RetrievalResult(BaseModel):
    query: str
    aliases: List[str] = Field(default_factory=list, description="Expanded specific and broad terms searched")
    total_articles_scanned: int = 0
    matched_articles: int = Field(default=0, description="Selected articles (non-zero score, within the article budget)")
    tier1_articles: int = Field(default=0, description="Selected articles with a specific-term hit")
    tier2_articles: int = Field(default=0, description="Selected articles with broad-term hits only")
    chunks: List[RetrievedChunk] = Field(default_factory=list)
    sources: List[SourceRef] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.chunks
