"""Pydantic models for the magazine glossary review file."""

from typing import List

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class GlossaryTerm(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    term: str
    definition: str
    exists_in_queue: bool = False
    exists_as_content: bool = False
    suggested_slug: str
    suggested_category: str = "uncategorized"


class GlossaryReview(BaseModel):
    """Extracted glossary terms, saved for a human to filter before queueing."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    source: str = ""
    page_title: str = ""
    extracted_at: str
    total_terms: int = 0
    new_terms: int = 0
    existing_terms: int = 0
    terms: List[GlossaryTerm] = Field(default_factory=list)
    raw_text: str = Field(default="", description="Cleaned page text, kept only when no terms were extracted")
