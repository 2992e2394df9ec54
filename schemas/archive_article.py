"""Pydantic model for archived magazine articles (the local retrieval corpus)."""

from datetime import datetime
from typing import List, Optional

from dateutil import parser as date_parser
from pydantic import BaseModel, ConfigDict, Field

# Articles whose date cannot be parsed are treated as published in this year.
DEFAULT_PUBLICATION_YEAR = 2015


def parse_publication_date(raw: str) -> Optional[datetime]:
    """Parse a stored date string, returning None when it is unusable."""
    if not raw:
        return None
    try:
        parsed = date_parser.parse(raw)
    except (ValueError, OverflowError):
        return None
    return parsed.replace(tzinfo=None)


class ArchiveArticle(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: int = Field(description="WordPress post ID")
    date: str = Field(default="", description="Publication date as stored by WordPress")
    link: str = Field(default="", description="Canonical article URL")
    title: str = ""
    content: str = Field(default="", description="Cleaned plain-text body")
    excerpt: str = ""
    categories: List[int] = Field(default_factory=list)
    tags: List[int] = Field(default_factory=list)
    word_count: int = Field(default=0, alias="wordCount")
    fetched_at: Optional[str] = Field(default=None, alias="fetchedAt")

    def published_at(self) -> Optional[datetime]:
        return parse_publication_date(self.date)

    @property
    def publication_year(self) -> int:
        published = self.published_at()
        return published.year if published else DEFAULT_PUBLICATION_YEAR

    def sort_date(self) -> datetime:
        """Date used for chronological ordering of retrieved chunks."""
        return self.published_at() or datetime(DEFAULT_PUBLICATION_YEAR, 1, 1)
