"""Queue-driven bulk generation with an attempt cap and backoff on transient API errors."""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Optional

import anthropic
import httpx

from factory.concept_pipeline import ConceptPipeline
from schemas.queue_item import QueueFile, QueueItem, QueueStatus
from store.queue_store import QueueStore, utc_now_iso

logger = logging.getLogger(__name__)

DEFAULT_DELAY_SECONDS = 15
DEFAULT_BATCH_SIZE = 10
MAX_ATTEMPTS = 3
TRANSIENT_STATUS_CODES = (429, 500, 503)

Sleep = Callable[[float], Awaitable[None]]


def is_transient_error(exc: BaseException) -> bool:
    """Rate limiting and server-side failures that are worth waiting out."""
    if isinstance(exc, (anthropic.RateLimitError, anthropic.InternalServerError)):
        return True
    if isinstance(exc, anthropic.APIStatusError):
        return exc.status_code in TRANSIENT_STATUS_CODES
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code in TRANSIENT_STATUS_CODES
    message = str(exc)
    return any(str(code) in message for code in TRANSIENT_STATUS_CODES)


def backoff_seconds(delay: float, attempts: int) -> float:
    return delay * 2 ** max(attempts - 1, 0)


@dataclass
class BulkSummary:
    eligible: int = 0
    processed: int = 0
    succeeded: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    pending_review: list[str] = field(default_factory=list)


class BulkRunner:
    def __init__(
        self,
        pipeline: ConceptPipeline,
        queue_store: QueueStore,
        delay: float = DEFAULT_DELAY_SECONDS,
        max_attempts: int = MAX_ATTEMPTS,
        sleep: Sleep = asyncio.sleep,
    ):
        self.pipeline = pipeline
        self.queue_store = queue_store
        self.delay = delay
        self.max_attempts = max_attempts
        self.sleep = sleep

    def select_candidates(
        self, queue: QueueFile, category: Optional[str] = None, retry_failed: bool = False
    ) -> list[QueueItem]:
        candidates = []
        for item in queue.concepts:
            if item.status in (QueueStatus.COMPLETED, QueueStatus.SKIPPED):
                continue
            if item.status == QueueStatus.FAILED and (not retry_failed or item.attempts >= self.max_attempts):
                continue
            if category and item.category_slug != category:
                continue
            candidates.append(item)
        return candidates

    async def run(
        self,
        batch_size: int = DEFAULT_BATCH_SIZE,
        category: Optional[str] = None,
        retry_failed: bool = False,
    ) -> BulkSummary:
        queue = self.queue_store.load()
        candidates = self.select_candidates(queue, category=category, retry_failed=retry_failed)
        batch = candidates[:batch_size]
        summary = BulkSummary(eligible=len(candidates))

        if not batch:
            logger.info("No concepts to process, queue is up to date")
            return summary

        logger.info("Processing %d of %d eligible concepts", len(batch), len(candidates))

        for i, item in enumerate(batch):
            logger.info("[%d/%d] %s (%s)", i + 1, len(batch), item.name, item.category_slug)
            item.attempts += 1
            summary.processed += 1

            try:
                outcome = await self.pipeline.generate(item.name, item.category_slug, slug=item.slug)
            except Exception as e:
                item.status = QueueStatus.FAILED if item.attempts >= self.max_attempts else QueueStatus.PENDING
                item.last_error = str(e) or type(e).__name__
                self.queue_store.save(queue)
                summary.failed.append(item.slug)
                logger.error("Failed '%s' (attempt %d/%d): %s", item.slug, item.attempts, self.max_attempts, e)

                if is_transient_error(e):
                    wait = backoff_seconds(self.delay, item.attempts)
                    logger.warning("Transient API error, backing off %.0fs", wait)
                    await self.sleep(wait)
                    continue
            else:
                item.status = QueueStatus.COMPLETED
                item.completed_at = utc_now_iso()
                item.last_error = None
                self.queue_store.save(queue)
                summary.succeeded.append(item.slug)
                if not outcome.published:
                    summary.pending_review.append(item.slug)

            if i < len(batch) - 1:
                await self.sleep(self.delay)

        logger.info(
            "Batch complete: %d succeeded, %d failed, %d held for review",
            len(summary.succeeded),
            len(summary.failed),
            len(summary.pending_review),
        )
        return summary
