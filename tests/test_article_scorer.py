"""Tests for archive article scoring."""

import pytest

from conftest import make_article
from processors.article_scorer import (
    BROAD_ONLY_PENALTY,
    PR_PENALTY,
    recency_multiplier,
    score_article,
)


def test_zero_base_scores_zero_regardless_of_year():
    article = make_article(title="נושא אחר", content="אין כאן התאמה", date="2030-05-01")
    score = score_article(article, ["cbd"], ["קנבינואידים"])
    assert score.final_score == 0
    assert not score.has_specific_match
    assert not score.has_broad_match


def test_title_hit_with_recency():
    article = make_article(title="CBD מידע חדש", content="טקסט כללי", date="2024-03-01T00:00:00")
    score = score_article(article, ["cbd"], [])
    assert score.title_tag_score == 100
    assert score.pr_penalty == 1.0
    assert score.broad_penalty == 1.0
    assert score.recency_multiplier == pytest.approx(2.4)
    assert score.final_score == pytest.approx(240)


def test_content_hits_are_capped_and_dense_terms_get_bonus():
    article = make_article(title="כותרת", content="cbd " * 15, date="2010-01-01")
    score = score_article(article, ["cbd"], [])
    assert score.content_score == 20
    assert score.density_bonus == 40
    # content-only match: PR penalty applies
    assert score.final_score == pytest.approx(60 * 1.0 * PR_PENALTY)


def test_broad_only_content_match_stacks_both_penalties():
    article = make_article(title="קנאביס כללי", content="על קנבינואידים ועוד קנבינואידים", date="2012-06-01")
    score = score_article(article, ["cbd"], ["קנבינואידים"])
    assert score.has_broad_match and not score.has_specific_match
    assert score.final_score == pytest.approx(4 * 1.2 * PR_PENALTY * BROAD_ONLY_PENALTY)


def test_recency_is_monotonic_and_unclamped():
    assert recency_multiplier(2009) < 1.0
    assert recency_multiplier(2030) == pytest.approx(3.0)
    older = score_article(make_article(title="CBD", date="2015-01-01"), ["cbd"], [])
    newer = score_article(make_article(title="CBD", date="2016-01-01"), ["cbd"], [])
    assert newer.final_score >= older.final_score


def test_undated_article_uses_default_year():
    article = make_article(title="CBD", date="")
    assert score_article(article, ["cbd"], []).recency_multiplier == pytest.approx(1.5)
