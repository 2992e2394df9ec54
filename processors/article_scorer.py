"""Relevance scoring of archive articles against specific and broad terms.

Title hits dominate, content hits are capped per term, and a density bonus
rewards articles that discuss a specific term repeatedly. The base score is
then re-weighted by publication recency and by two penalties: content-only
matches (likely passing mentions or promotional copy) and broad-only matches
(the article is about the category, not the concept).
"""

from dataclasses import dataclass

from schemas.archive_article import ArchiveArticle

TITLE_HIT_SCORE = 100
CONTENT_HIT_SCORE = 2
CONTENT_SCORE_CAP = 20
DENSITY_THRESHOLD = 3
DENSITY_BONUS = 40

RECENCY_BASE_YEAR = 2010
RECENCY_STEP = 0.1

PR_PENALTY = 0.5
BROAD_ONLY_PENALTY = 0.3


@dataclass(frozen=True)
class ArticleScore:
    title_tag_score: float = 0.0
    content_score: float = 0.0
    density_bonus: float = 0.0
    recency_multiplier: float = 1.0
    pr_penalty: float = 1.0
    broad_penalty: float = 1.0
    final_score: float = 0.0
    has_specific_match: bool = False
    has_broad_match: bool = False

    @property
    def base_score(self) -> float:
        return self.title_tag_score + self.content_score + self.density_bonus


def recency_multiplier(year: int) -> float:
    """Linear recency weight. Unclamped: pre-2010 articles fall below 1.0."""
    return 1 + (year - RECENCY_BASE_YEAR) * RECENCY_STEP


def score_article(
    article: ArchiveArticle,
    specific_terms: list[str],
    broad_terms: list[str],
) -> ArticleScore:
    """Score one article. Terms are expected to be lowercased already."""
    title = article.title.lower()
    content = article.content.lower()

    title_tag_score = 0
    content_score = 0
    density_bonus = 0
    has_specific = False
    has_broad = False

    for term in specific_terms:
        if term in title:
            title_tag_score += TITLE_HIT_SCORE
            has_specific = True
        count = content.count(term)
        if count:
            content_score += min(count * CONTENT_HIT_SCORE, CONTENT_SCORE_CAP)
            has_specific = True
        if count >= DENSITY_THRESHOLD:
            density_bonus = DENSITY_BONUS

    for term in broad_terms:
        if term in title:
            title_tag_score += TITLE_HIT_SCORE
            has_broad = True
        count = content.count(term)
        if count:
            content_score += min(count * CONTENT_HIT_SCORE, CONTENT_SCORE_CAP)
            has_broad = True

    base = title_tag_score + content_score + density_bonus
    if base == 0:
        return ArticleScore()

    recency = recency_multiplier(article.publication_year)
    pr_penalty = PR_PENALTY if title_tag_score == 0 else 1.0
    broad_penalty = BROAD_ONLY_PENALTY if has_broad and not has_specific else 1.0

    return ArticleScore(
        title_tag_score=title_tag_score,
        content_score=content_score,
        density_bonus=density_bonus,
        recency_multiplier=recency,
        pr_penalty=pr_penalty,
        broad_penalty=broad_penalty,
        final_score=base * recency * pr_penalty * broad_penalty,
        has_specific_match=has_specific,
        has_broad_match=has_broad,
    )
