"""Concept discovery: ask the model to enumerate each category, then queue what is new.

One model call per category, run sequentially with a pause between calls. A
category whose call or parse fails contributes nothing; the others still go
through. Discovered concepts are deduplicated by slug across categories (the
first category to name a slug keeps it).
"""

import asyncio
import logging
import os
import re
from typing import Iterable, Optional

import anthropic

from factory.bulk_runner import Sleep
from generators.alias_generator import DEFAULT_ALIAS_MODEL, PROMPTS_DIR
from generators.model_output import ModelOutputError, parse_model_output, response_text
from schemas.queue_item import DiscoveredConcept, DiscoveredConcepts, QueueFile, QueueItem
from store.queue_store import merge_concepts

logger = logging.getLogger(__name__)

EXPANSION_SOURCE = "taxonomy-expansion"
DEFAULT_DELAY_SECONDS = 2.0

_NON_SLUG = re.compile(r"[^a-z0-9-]")
_DASH_RUNS = re.compile(r"--+")


def normalize_slug(slug: str) -> str:
    slug = _NON_SLUG.sub("-", slug.lower())
    return _DASH_RUNS.sub("-", slug).strip("-")


class TaxonomyExpander:
    """Discovers candidate concepts per category with the small model."""

    def __init__(
        self,
        domain_prompts: dict[str, str],
        client: Optional[anthropic.AsyncAnthropic] = None,
        model: Optional[str] = None,
        delay: float = DEFAULT_DELAY_SECONDS,
        sleep: Sleep = asyncio.sleep,
    ):
        self.domain_prompts = domain_prompts
        self.client = client or anthropic.AsyncAnthropic()
        self.model = model or os.getenv("FACTORY_ALIAS_MODEL", DEFAULT_ALIAS_MODEL)
        self.delay = delay
        self.sleep = sleep
        self.template = (PROMPTS_DIR / "taxonomy_expansion.txt").read_text(encoding="utf-8")

    async def expand_category(self, category_slug: str) -> list[DiscoveredConcept]:
        """Complete concepts named for one category, slugs normalized.

        Raises `anthropic.APIError` or `ModelOutputError`.
        """
        response = await self.client.messages.create(
            model=self.model,
            max_tokens=4096,
            temperature=0.2,
            messages=[{
                "role": "user",
                "content": self.template.format(domain_prompt=self.domain_prompts[category_slug]),
            }],
        )
        parsed = parse_model_output(response_text(response), DiscoveredConcepts)

        concepts = []
        for concept in parsed.concepts:
            slug = normalize_slug(concept.slug)
            if concept.name.strip() and slug and concept.medical_name.strip():
                concepts.append(concept.model_copy(update={"slug": slug}))
        return concepts

    async def discover(self, categories: Optional[Iterable[str]] = None) -> list[QueueItem]:
        """Queue candidates across `categories` (default: every configured one)."""
        slugs = list(categories) if categories is not None else list(self.domain_prompts)
        unknown = [slug for slug in slugs if slug not in self.domain_prompts]
        if unknown:
            raise KeyError(f"No discovery prompt for: {', '.join(unknown)}")

        discovered: dict[str, QueueItem] = {}
        for i, category_slug in enumerate(slugs):
            try:
                concepts = await self.expand_category(category_slug)
            except (anthropic.APIError, ModelOutputError) as e:
                logger.warning("Expansion failed for %s: %s", category_slug, e)
                concepts = []

            added = 0
            for concept in concepts:
                if concept.slug in discovered:
                    continue
                discovered[concept.slug] = QueueItem(
                    name=concept.name.strip(),
                    slug=concept.slug,
                    category_slug=category_slug,
                    medical_name=concept.medical_name.strip(),
                    source=EXPANSION_SOURCE,
                )
                added += 1
            logger.info("%s: %d concepts (%d new)", category_slug, len(concepts), added)

            if i < len(slugs) - 1:
                await self.sleep(self.delay)

        logger.info("Discovered %d unique concepts across %d categories", len(discovered), len(slugs))
        return list(discovered.values())

    async def expand_queue(
        self,
        queue: QueueFile,
        existing_slugs: set[str],
        categories: Optional[Iterable[str]] = None,
    ) -> tuple[QueueFile, int]:
        """Discover and merge into `queue`. The caller decides whether to save."""
        candidates = await self.discover(categories)
        return merge_concepts(queue, candidates, existing_slugs)
