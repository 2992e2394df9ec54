"""File-per-entry content store.

Each entry lives in `{slug}.json`. The filename is the authoritative slug: it
overrides whatever slug the stored payload carries on read, and it is the key
the caller passes on write. Files starting with `_` are side files (raw model
output kept for postmortem) and never count as entries.

Writes replace the file atomically. The store assumes a single writer process.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

import orjson
from pydantic import ValidationError

from schemas.concept_entry import ConceptEntry
from scrapers.utils import save_json

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_DIR = Path(__file__).parent.parent / "content"


class ConceptNotFoundError(LookupError):
    pass


class ConceptStore:
    def __init__(self, content_dir=DEFAULT_CONTENT_DIR):
        self.content_dir = Path(content_dir)

    def path_for(self, slug: str) -> Path:
        return self.content_dir / f"{slug}.json"

    def exists(self, slug: str) -> bool:
        return self.path_for(slug).exists()

    def list_slugs(self) -> list[str]:
        if not self.content_dir.is_dir():
            return []
        return sorted(
            f.stem for f in self.content_dir.glob("*.json") if not f.name.startswith("_")
        )

    def _read(self, slug: str) -> Optional[ConceptEntry]:
        path = self.path_for(slug)
        if not path.exists():
            return None
        try:
            data = orjson.loads(path.read_bytes())
            entry = ConceptEntry.model_validate(data)
        except (orjson.JSONDecodeError, ValidationError, OSError) as e:
            logger.error("Unreadable entry file %s: %s", path.name, e)
            return None
        entry.slug = slug
        return entry

    def get(self, slug: str, include_pending: bool = False) -> Optional[ConceptEntry]:
        """Look up an entry. Pending entries are invisible unless `include_pending`."""
        entry = self._read(slug)
        if entry is None:
            return None
        if not include_pending and not entry.is_published:
            return None
        return entry

    def list_entries(self, include_pending: bool = False) -> list[ConceptEntry]:
        entries = []
        for slug in self.list_slugs():
            entry = self.get(slug, include_pending=include_pending)
            if entry is not None:
                entries.append(entry)
        return entries

    def list_by_category(self, category_slug: str, include_pending: bool = False) -> list[ConceptEntry]:
        return [
            e for e in self.list_entries(include_pending=include_pending)
            if e.category_slug == category_slug
        ]

    def save(self, slug: str, entry: ConceptEntry) -> Path:
        entry.slug = slug
        path = save_json(entry.to_json_dict(), self.path_for(slug))
        logger.info("Saved entry %s", path)
        return path

    def save_raw_output(self, slug: str, raw_output: str) -> Path:
        """Keep unparseable model output next to the entries for postmortem."""
        self.content_dir.mkdir(parents=True, exist_ok=True)
        stamp = datetime.now().strftime("%Y%m%dT%H%M%S%f")
        path = self.content_dir / f"_error_{slug}_{stamp}.txt"
        path.write_text(raw_output, encoding="utf-8")
        logger.warning("Raw model output for '%s' saved to %s", slug, path)
        return path
