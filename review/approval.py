"""Human approval of entries held for review."""

import logging

from schemas.concept_entry import ConceptEntry, VerificationStatus
from store.concept_store import ConceptNotFoundError, ConceptStore

logger = logging.getLogger(__name__)


def approve_concept(store: ConceptStore, slug: str) -> ConceptEntry:
    """Flip a pending entry to verified. Approving a verified entry is a no-op.

    Raises:
        ConceptNotFoundError: no readable entry exists for `slug`.
    """
    entry = store.get(slug, include_pending=True)
    if entry is None:
        raise ConceptNotFoundError(f"Concept not found: {slug}")

    if entry.verification_status == VerificationStatus.VERIFIED:
        logger.info("'%s' is already verified", slug)
        return entry

    entry.verification_status = VerificationStatus.VERIFIED
    entry.needs_human_review = False
    store.save(slug, entry)
    logger.info("Approved '%s' (%s)", slug, entry.title)
    return entry


def list_pending(store: ConceptStore) -> list[ConceptEntry]:
    return [
        entry for entry in store.list_entries(include_pending=True)
        if entry.verification_status == VerificationStatus.PENDING
    ]


def approve_all_pending(store: ConceptStore) -> list[str]:
    approved = []
    for entry in list_pending(store):
        approve_concept(store, entry.slug)
        approved.append(entry.slug)
    logger.info("Approved %d pending entries", len(approved))
    return approved
