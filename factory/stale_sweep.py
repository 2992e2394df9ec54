"""Find entries whose newest source is old, and regenerate them."""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Optional

from factory.bulk_runner import Sleep, backoff_seconds, is_transient_error
from factory.concept_pipeline import ConceptPipeline
from schemas.archive_article import parse_publication_date
from schemas.concept_entry import ConceptEntry
from store.concept_store import ConceptStore

logger = logging.getLogger(__name__)

CUTOFF_YEAR = 2020
DEFAULT_STALE_DELAY = 20
DEFAULT_STALE_BATCH = 999


@dataclass
class StaleEntry:
    slug: str
    category_slug: str
    name: str
    newest_source_year: int


@dataclass
class StaleRunSummary:
    succeeded: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    pending_review: list[str] = field(default_factory=list)


def newest_source_year(entry: ConceptEntry) -> int:
    years = []
    for source in entry.sources:
        published = parse_publication_date(source.date)
        if published is not None and published.year > 1900:
            years.append(published.year)
    return max(years, default=0)


def find_stale_entries(
    store: ConceptStore, cutoff_year: int = CUTOFF_YEAR, include_all: bool = False
) -> list[StaleEntry]:
    """Entries whose newest dated source is older than `cutoff_year`, oldest first."""
    stale = []
    for entry in store.list_entries(include_pending=True):
        newest = newest_source_year(entry)
        if include_all or newest < cutoff_year:
            stale.append(StaleEntry(
                slug=entry.slug,
                category_slug=entry.category_slug or "unknown",
                name=entry.title or entry.slug,
                newest_source_year=newest,
            ))
    return sorted(stale, key=lambda s: s.newest_source_year)


async def regenerate_stale(
    pipeline: ConceptPipeline,
    entries: list[StaleEntry],
    batch: Optional[int] = DEFAULT_STALE_BATCH,
    delay: float = DEFAULT_STALE_DELAY,
    sleep: Sleep = asyncio.sleep,
) -> StaleRunSummary:
    to_process = entries[:batch] if batch else list(entries)
    summary = StaleRunSummary()
    logger.info("Regenerating %d entries (delay %ss)", len(to_process), delay)

    for i, stale in enumerate(to_process):
        logger.info("[%d/%d] %s (%s)", i + 1, len(to_process), stale.name, stale.category_slug)
        try:
            outcome = await pipeline.generate(stale.name, stale.category_slug, slug=stale.slug)
        except Exception as e:
            summary.failed.append(stale.slug)
            logger.error("Regeneration of '%s' failed: %s", stale.slug, e)
            if is_transient_error(e):
                wait = backoff_seconds(delay, 2)
                logger.warning("Transient API error, backing off %.0fs", wait)
                await sleep(wait)
        else:
            summary.succeeded.append(stale.slug)
            if not outcome.published:
                summary.pending_review.append(stale.slug)

        if i < len(to_process) - 1:
            await sleep(delay)

    logger.info(
        "Stale run complete: %d regenerated, %d failed, %d held for review",
        len(summary.succeeded),
        len(summary.failed),
        len(summary.pending_review),
    )
    return summary
