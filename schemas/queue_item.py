"""Pydantic models for the bulk-generation queue file."""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class QueueStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    SKIPPED = "skipped"


class QueueItem(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: str = Field(description="Hebrew concept name")
    slug: str
    category_slug: str
    medical_name: str = ""
    source: str = Field(default="manual", description="How the item entered the queue")
    status: QueueStatus = QueueStatus.PENDING
    attempts: int = 0
    last_error: Optional[str] = None
    completed_at: Optional[str] = None


class QueueFile(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    version: int = 1
    last_updated: str = ""
    concepts: List[QueueItem] = Field(default_factory=list)


class DiscoveredConcept(BaseModel):
    """One concept proposed by the taxonomy-expansion model."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: str = ""
    slug: str = ""
    medical_name: str = ""


class DiscoveredConcepts(BaseModel):
    concepts: List[DiscoveredConcept] = Field(default_factory=list)
