"""Quality filter for the archive corpus.

Articles below a minimum word count or character length are excluded from the
corpus entirely at load time (stubs, galleries, embed-only posts), so they are
never scored.
"""

import logging

from schemas.archive_article import ArchiveArticle

logger = logging.getLogger(__name__)

MIN_WORD_COUNT = 50
MIN_CONTENT_CHARS = 100


class ArchiveQualityFilter:
    """Filters out archive articles too thin to be useful as evidence."""

    def __init__(
        self,
        min_word_count: int = MIN_WORD_COUNT,
        min_content_chars: int = MIN_CONTENT_CHARS,
    ):
        self.min_word_count = min_word_count
        self.min_content_chars = min_content_chars

    def filter(self, articles: list[ArchiveArticle]) -> list[ArchiveArticle]:
        """Return only the articles passing the length checks."""
        kept = []
        removed_reasons: dict[str, int] = {}

        for article in articles:
            reason = self._should_remove(article)
            if reason:
                removed_reasons[reason] = removed_reasons.get(reason, 0) + 1
                continue
            kept.append(article)

        logger.info(
            "Archive quality filter: kept %d / %d articles. Removed: %s",
            len(kept),
            len(articles),
            removed_reasons,
        )
        return kept

    def _should_remove(self, article: ArchiveArticle) -> str:
        """Reason string if the article should be dropped, else empty string."""
        if article.word_count < self.min_word_count:
            return "too_few_words"
        if len(article.content.strip()) < self.min_content_chars:
            return "too_short"
        return ""
