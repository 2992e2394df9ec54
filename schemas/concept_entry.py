"""Pydantic models for encyclopedia concept entries.

`ConceptDraft` is the shape the drafting model must return; it is validated
strictly at the model boundary. `ConceptEntry` adds the factory metadata
(provenance, verification state) and is what the content store persists.
Persisted files keep the camelCase keys the site reads.
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from schemas.chunk import SourceRef


class VerificationStatus(str, Enum):
    PENDING = "pending"
    VERIFIED = "verified"


class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class SourceType(str, Enum):
    RAG = "rag"
    EXTERNAL = "external"
    GLOBAL_AI = "global_ai"
    MANUAL = "manual"


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Bluf(_CamelModel):
    points: List[str] = Field(description="Bottom-line-up-front bullet points")
    last_updated: str = ""


class Subsection(_CamelModel):
    heading: str
    content: str


class Section(_CamelModel):
    id: str
    heading: str
    content: str
    subsections: List[Subsection] = Field(default_factory=list)


class Faq(_CamelModel):
    question: str
    answer: str


class RelatedConcept(_CamelModel):
    slug: str
    label: str


class StructuredData(_CamelModel):
    """schema.org MedicalEntity fields rendered into the page head."""

    medical_name: str = ""
    alternate_name: List[str] = Field(default_factory=list)
    description: str = ""
    medicine_system: str = ""
    relevant_specialty: List[str] = Field(default_factory=list)


class ConceptDraft(_CamelModel):
    slug: str = ""
    title: str
    subtitle: str
    category: str = ""
    category_slug: str = ""
    bluf: Bluf
    sections: List[Section] = Field(min_length=1)
    faqs: List[Faq] = Field(default_factory=list)
    related_concepts: List[RelatedConcept] = Field(default_factory=list)
    sources: List[SourceRef] = Field(default_factory=list)
    structured_data: StructuredData = Field(default_factory=StructuredData, alias="schema")


class ConceptEntry(ConceptDraft):
    model_config = ConfigDict(extra="allow")

    source_type: Optional[SourceType] = None
    search_aliases: List[str] = Field(default_factory=list)
    verification_status: Optional[VerificationStatus] = Field(
        None, description="Missing on hand-written entries, which are publishable"
    )
    needs_human_review: bool = False
    confidence_score: Optional[float] = Field(None, ge=0.0, le=1.0)
    risk_level: Optional[RiskLevel] = None
    unverified_claims: List[str] = Field(default_factory=list)

    @property
    def is_published(self) -> bool:
        return self.verification_status != VerificationStatus.PENDING

    def to_json_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
