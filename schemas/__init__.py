from schemas.archive_article import ArchiveArticle
from schemas.chunk import SourceRef, RetrievedChunk, RetrievalResult
from schemas.concept_entry import (
    VerificationStatus,
    RiskLevel,
    SourceType,
    Bluf,
    Section,
    Subsection,
    Faq,
    RelatedConcept,
    StructuredData,
    ConceptDraft,
    ConceptEntry,
)
from schemas.fact_check import FactCheckClaim, FactCheckResponse, FactCheckResult
from schemas.catalog_entry import CatalogEntry, MatchedProduct
from schemas.queue_item import QueueStatus, QueueItem, QueueFile, DiscoveredConcept, DiscoveredConcepts
from schemas.glossary import GlossaryTerm, GlossaryReview
