"""Archive retrieval orchestrator.

Selection and presentation use different orders: articles are picked by
relevance score, but the chunks handed to the drafting model are re-ordered
oldest to newest so that newer evidence is read last (Lex Posterior).
"""

import logging
from pathlib import Path
from typing import Optional

from processors.article_scorer import ArticleScore, score_article
from processors.term_expander import expand_terms
from retrieval.archive_store import DEFAULT_ARCHIVE_DIR, load_archive
from retrieval.chunker import Chunker
from schemas.archive_article import ArchiveArticle, parse_publication_date
from schemas.chunk import RetrievalResult, RetrievedChunk, SourceRef

logger = logging.getLogger(__name__)

DEFAULT_MAX_ARTICLES = 15
DEFAULT_MAX_TOTAL_CHUNKS = 25


class ArchiveRetriever:
    """Scores, selects and chunks archive articles for one concept."""

    def __init__(self, articles: list[ArchiveArticle], chunker: Optional[Chunker] = None):
        self.articles = articles
        self.chunker = chunker or Chunker()

    @classmethod
    def from_directory(cls, archive_dir=DEFAULT_ARCHIVE_DIR) -> "ArchiveRetriever":
        articles = load_archive(Path(archive_dir))
        logger.info("Loaded %d archive articles from %s", len(articles), archive_dir)
        return cls(articles)

    def score_all(
        self, specific_terms: list[str], broad_terms: list[str]
    ) -> list[tuple[ArchiveArticle, ArticleScore]]:
        """Non-zero scores, best first. Equal scores keep corpus order."""
        scored = []
        for article in self.articles:
            score = score_article(article, specific_terms, broad_terms)
            if score.final_score > 0:
                scored.append((article, score))
        scored.sort(key=lambda pair: pair[1].final_score, reverse=True)
        return scored

    def retrieve(
        self,
        concept_name: str,
        aliases=(),
        broad_terms=(),
        max_articles: int = DEFAULT_MAX_ARTICLES,
        max_total_chunks: int = DEFAULT_MAX_TOTAL_CHUNKS,
    ) -> RetrievalResult:
        specific = expand_terms([concept_name, *aliases])
        broad = expand_terms(broad_terms)

        scored = self.score_all(specific, broad)
        selected = scored[:max_articles]

        dated_chunks: list[tuple] = []
        for article, _ in selected:
            if len(dated_chunks) >= max_total_chunks:
                break
            for index, text in enumerate(self.chunker.split(article.content)):
                dated_chunks.append((article.sort_date(), self._make_chunk(article, index, text)))
                if len(dated_chunks) >= max_total_chunks:
                    break

        dated_chunks.sort(key=lambda pair: pair[0])
        chunks = [chunk for _, chunk in dated_chunks]

        result = RetrievalResult(
            query=concept_name,
            aliases=list(dict.fromkeys([*specific, *broad])),
            total_articles_scanned=len(self.articles),
            matched_articles=len(selected),
            tier1_articles=sum(1 for _, s in selected if s.has_specific_match),
            tier2_articles=sum(1 for _, s in selected if not s.has_specific_match),
            chunks=chunks,
            sources=self._dedupe_sources(chunks),
        )
        logger.info(
            "Retrieval for '%s': %d/%d articles matched, %d selected, %d chunks from %d sources",
            concept_name,
            len(scored),
            result.total_articles_scanned,
            result.matched_articles,
            len(result.chunks),
            len(result.sources),
        )
        return result

    @staticmethod
    def _make_chunk(article: ArchiveArticle, index: int, text: str) -> RetrievedChunk:
        return RetrievedChunk(
            article_id=article.id,
            article_title=article.title,
            article_url=article.link,
            article_date=article.date,
            chunk_index=index,
            text=text,
            word_count=len(text.split()),
        )

    @staticmethod
    def _dedupe_sources(chunks: list[RetrievedChunk]) -> list[SourceRef]:
        seen_ids = set()
        seen_urls = set()
        sources = []
        for chunk in chunks:
            if chunk.article_id in seen_ids or (chunk.article_url and chunk.article_url in seen_urls):
                continue
            seen_ids.add(chunk.article_id)
            seen_urls.add(chunk.article_url)
            sources.append(
                SourceRef(title=chunk.article_title, url=chunk.article_url, date=chunk.article_date)
            )
        return sources


def _display_date(raw: str) -> str:
    published = parse_publication_date(raw)
    return published.strftime("%d.%m.%Y") if published else raw


def format_context_for_prompt(result: RetrievalResult) -> str:
    """Render the archive bundle as the Hebrew context block for the drafting prompt."""
    if not result.chunks:
        return ""

    header = (
        f"מקורות מתוך מגזין קנאביס ({result.matched_articles} כתבות רלוונטיות: "
        f"{result.tier1_articles} ספציפיות + {result.tier2_articles} רקע, "
        "מסודרות מהישנה לחדשה):\n"
    )
    blocks = [
        f'--- מקור {i} [{_display_date(chunk.article_date)}] "{chunk.article_title}" ---\n'
        f"Exact URL: {chunk.article_url}\n{chunk.text}"
        for i, chunk in enumerate(result.chunks, 1)
    ]
    return header + "\n\n".join(blocks)
