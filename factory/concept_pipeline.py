"""End-to-end generation of one encyclopedia entry.

aliases -> multi-channel context -> draft -> fact-check -> verification -> persist -> notify
"""

import logging
import re
from dataclasses import dataclass
from typing import Optional

from generators.alias_generator import AliasGenerator
from generators.concept_generator import ConceptGenerator
from generators.fact_checker import FactChecker
from generators.model_output import ModelOutputError
from retrieval.context_aggregator import ContextAggregator, ContextBundle, merge_sources
from review.notifier import ReviewNotification, ReviewNotifier
from review.verification import VerificationDecision, apply_fact_check
from schemas.concept_entry import ConceptEntry, SourceType, VerificationStatus
from store.concept_store import ConceptStore

logger = logging.getLogger(__name__)

_SLUG_INVALID = re.compile(r"[^a-z0-9֐-׿]+")


def slugify(text: str) -> str:
    return _SLUG_INVALID.sub("-", text.lower()).strip("-")


def source_type_for(bundle: ContextBundle) -> SourceType:
    if not bundle.has_context:
        return SourceType.GLOBAL_AI
    if bundle.has_archive_hits:
        return SourceType.RAG
    return SourceType.EXTERNAL


@dataclass
class GenerationOutcome:
    slug: str
    entry: ConceptEntry
    decision: VerificationDecision
    notified: bool = False

    @property
    def published(self) -> bool:
        return self.decision.status == VerificationStatus.VERIFIED


class ConceptPipeline:
    def __init__(
        self,
        aggregator: ContextAggregator,
        store: ConceptStore,
        alias_generator: Optional[AliasGenerator] = None,
        concept_generator: Optional[ConceptGenerator] = None,
        fact_checker: Optional[FactChecker] = None,
        notifier: Optional[ReviewNotifier] = None,
        categories: Optional[dict] = None,
    ):
        self.aggregator = aggregator
        self.store = store
        self.alias_generator = alias_generator or AliasGenerator()
        self.concept_generator = concept_generator or ConceptGenerator()
        self.fact_checker = fact_checker or FactChecker()
        self.notifier = notifier or ReviewNotifier()
        # slug -> {"label": Hebrew name, ...}
        self.categories = categories or {}

    def category_label(self, category_slug: str) -> str:
        return self.categories.get(category_slug, {}).get("label", "")

    async def generate(self, name: str, category_slug: str, slug: Optional[str] = None) -> GenerationOutcome:
        aliases = await self.alias_generator.generate(name)
        all_terms = [name, *aliases]
        label = self.category_label(category_slug)
        broad_terms = [label] if label else []
        logger.info("Terms for '%s': %s (broad: %s)", name, all_terms, broad_terms)

        bundle = await self.aggregator.gather(name, all_terms, broad_terms)

        try:
            draft = await self.concept_generator.generate(name, category_slug, bundle.combined_text())
        except ModelOutputError as e:
            path = self.store.save_raw_output(slug or slugify(name), e.raw_output)
            logger.error("Unusable model output for '%s' (%s), raw output saved to %s", name, e, path)
            raise

        final_slug = slug or slugify(draft.slug) or slugify(name)
        entry = ConceptEntry.model_validate(draft.model_dump(by_alias=True))
        entry.slug = final_slug
        entry.category_slug = category_slug
        if label:
            entry.category = label

        sources = merge_sources(draft.sources, bundle.sources())
        entry.sources = sources
        entry.source_type = source_type_for(bundle)
        entry.search_aliases = all_terms

        result = await self.fact_checker.check(entry, bundle.combined_text())
        decision = apply_fact_check(entry, result, bundle.has_context)

        path = self.store.save(final_slug, entry)
        logger.info(
            "Saved '%s' to %s [%s, source=%s, confidence=%.2f, risk=%s]",
            name,
            path,
            decision.status.value,
            entry.source_type.value,
            result.confidence_score,
            result.risk_level.value,
        )

        outcome = GenerationOutcome(slug=final_slug, entry=entry, decision=decision)
        if decision.status == VerificationStatus.PENDING:
            note = ReviewNotification.from_entry(entry, [s.title for s in sources], concept_name=name)
            try:
                outcome.notified = await self.notifier.notify(note)
            except Exception as e:
                logger.warning("Review notification for '%s' failed: %s", final_slug, e)
        return outcome
