"""The bulk-generation queue file: read, atomic write, seeding and status counts."""

import logging
from collections import Counter
from datetime import datetime, timezone
from pathlib import Path

from schemas.queue_item import QueueFile, QueueItem, QueueStatus
from scrapers.utils import load_json, save_json

logger = logging.getLogger(__name__)

DEFAULT_QUEUE_PATH = Path(__file__).parent.parent / "data" / "generation-queue.json"


class QueueNotFoundError(FileNotFoundError):
    pass


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class QueueStore:
    def __init__(self, path=DEFAULT_QUEUE_PATH):
        self.path = Path(path)

    def load(self) -> QueueFile:
        data = load_json(self.path)
        if data is None:
            raise QueueNotFoundError(f"Queue file not found: {self.path}")
        return QueueFile.model_validate(data)

    def load_or_empty(self) -> QueueFile:
        try:
            return self.load()
        except QueueNotFoundError:
            return QueueFile(last_updated=utc_now_iso())

    def save(self, queue: QueueFile) -> Path:
        queue.last_updated = utc_now_iso()
        return save_json(queue.model_dump(mode="json", by_alias=True), self.path)


def merge_concepts(
    queue: QueueFile,
    candidates: list[QueueItem],
    existing_slugs: set[str],
) -> tuple[QueueFile, int]:
    """Add newly discovered concepts to the queue.

    Items already queued keep their state. Concepts whose entry already exists
    on disk are recorded as completed. Returns the merged queue and the number
    of new pending items.
    """
    by_slug = {item.slug: item for item in queue.concepts}
    added = 0

    for candidate in candidates:
        if candidate.slug in by_slug:
            continue
        if candidate.slug in existing_slugs:
            item = candidate.model_copy(update={
                "source": "pre-existing",
                "status": QueueStatus.COMPLETED,
                "completed_at": utc_now_iso(),
            })
        else:
            item = candidate.model_copy(update={"status": QueueStatus.PENDING})
            added += 1
        by_slug[item.slug] = item

    concepts = sorted(
        by_slug.values(),
        key=lambda item: (item.status != QueueStatus.PENDING, item.slug),
    )
    merged = QueueFile(version=queue.version, last_updated=queue.last_updated, concepts=concepts)
    logger.info("Queue merge: %d items total, %d new pending", len(concepts), added)
    return merged, added


def status_counts(queue: QueueFile) -> tuple[Counter, dict[str, Counter]]:
    """Overall counts per status, and per-category counts per status."""
    overall = Counter(item.status.value for item in queue.concepts)
    per_category: dict[str, Counter] = {}
    for item in queue.concepts:
        per_category.setdefault(item.category_slug, Counter())[item.status.value] += 1
    return overall, per_category
