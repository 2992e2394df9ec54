"""Merge the archive bundle with the external context channels.

The concatenation order is fixed: archive, live magazine, Wikipedia, web
search. The drafting model reads top to bottom, so the freshest sources come
last. The external channels are independent reads and run concurrently.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Optional

from retrieval.retriever import ArchiveRetriever, format_context_for_prompt
from schemas.chunk import RetrievalResult, SourceRef
from scrapers.base import ChannelResult, ContextChannel

logger = logging.getLogger(__name__)


@dataclass
class ContextBundle:
    archive: RetrievalResult
    archive_text: str = ""
    live_magazine: ChannelResult = field(default_factory=ChannelResult)
    wikipedia: ChannelResult = field(default_factory=ChannelResult)
    web_search: ChannelResult = field(default_factory=ChannelResult)

    def _ordered(self) -> list[tuple[str, list[SourceRef]]]:
        return [
            (self.archive_text, self.archive.sources),
            (self.live_magazine.context_text, self.live_magazine.sources),
            (self.wikipedia.context_text, self.wikipedia.sources),
            (self.web_search.context_text, self.web_search.sources),
        ]

    def combined_text(self) -> str:
        return "\n\n".join(text for text, _ in self._ordered() if text)

    def sources(self) -> list[SourceRef]:
        """Union of all channel sources, deduplicated by URL, in channel order."""
        return merge_sources(*(sources for _, sources in self._ordered()))

    @property
    def has_context(self) -> bool:
        return bool(self.combined_text())

    @property
    def has_archive_hits(self) -> bool:
        return not self.archive.is_empty


def merge_sources(*source_lists: list[SourceRef]) -> list[SourceRef]:
    seen = set()
    merged = []
    for sources in source_lists:
        for source in sources:
            if not source.url or source.url in seen:
                continue
            seen.add(source.url)
            merged.append(source)
    return merged


class ContextAggregator:
    """Runs archive retrieval and the three external channels for one concept."""

    def __init__(
        self,
        retriever: ArchiveRetriever,
        live_magazine: Optional[ContextChannel] = None,
        wikipedia: Optional[ContextChannel] = None,
        web_search: Optional[ContextChannel] = None,
    ):
        self.retriever = retriever
        self.live_magazine = live_magazine
        self.wikipedia = wikipedia
        self.web_search = web_search

    async def _run(self, channel: Optional[ContextChannel], aliases, concept_name) -> ChannelResult:
        if channel is None:
            return ChannelResult()
        return await channel.fetch(aliases, concept_name)

    async def gather(self, concept_name: str, aliases: list[str], broad_terms: list[str]) -> ContextBundle:
        archive = self.retriever.retrieve(concept_name, aliases, broad_terms)

        live, wiki, web = await asyncio.gather(
            self._run(self.live_magazine, aliases, concept_name),
            self._run(self.wikipedia, aliases, concept_name),
            self._run(self.web_search, aliases, concept_name),
        )

        bundle = ContextBundle(
            archive=archive,
            archive_text=format_context_for_prompt(archive),
            live_magazine=live,
            wikipedia=wiki,
            web_search=web,
        )
        logger.info(
            "Context for '%s': archive=%d chunks, live=%d, wiki=%d, web=%d sources",
            concept_name,
            len(archive.chunks),
            len(live.sources),
            len(wiki.sources),
            len(web.sources),
        )
        return bundle
