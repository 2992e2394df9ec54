"""Tests for archive loading and the retrieval orchestrator."""

import orjson
import pytest

from conftest import make_article
from processors.quality_filter import ArchiveQualityFilter
from retrieval.archive_store import load_archive
from retrieval.chunker import Chunker
from retrieval.retriever import ArchiveRetriever, format_context_for_prompt

BODY = "זוהי פסקה ארוכה מספיק כדי לשמש מקטע בתוך הכתבה עצמה"


@pytest.fixture
def scenario_retriever():
    recent = make_article(id=1, title="CBD מידע חדש", content=BODY, date="2024-02-01T09:00:00")
    old = make_article(
        id=2,
        title="קנאביס כללי",
        content=f"{BODY} על קנבינואידים.\n\nפסקה נוספת שמזכירה שוב קנבינואידים באופן כללי",
        date="2012-07-01T09:00:00",
    )
    unrelated = make_article(id=3, title="גידול ביתי", content=BODY, date="2020-01-01T09:00:00")
    return ArchiveRetriever([recent, old, unrelated])


def test_scores_and_tiers(scenario_retriever):
    scored = scenario_retriever.score_all(["cbd"], ["קנבינואידים"])
    assert [a.id for a, _ in scored] == [1, 2]
    assert scored[0][1].final_score == pytest.approx(100 * 2.4)
    assert scored[1][1].final_score == pytest.approx(4 * 1.2 * 0.5 * 0.3)


def test_chunks_are_ordered_oldest_first(scenario_retriever):
    result = scenario_retriever.retrieve("CBD", ["cbd"], ["קנבינואידים"], 10, 10)

    assert result.total_articles_scanned == 3
    assert result.matched_articles == 2
    assert result.tier1_articles == 1
    assert result.tier2_articles == 1
    assert [c.article_id for c in result.chunks] == [2, 1]
    assert [s.url for s in result.sources] == [
        "https://magazine.example/post-2",
        "https://magazine.example/post-1",
    ]


def test_sources_are_deduplicated_by_url():
    shared = "https://magazine.example/shared"
    long_text = "\n\n".join(" ".join(["cbd"] * 40) for _ in range(3))
    retriever = ArchiveRetriever(
        [
            make_article(id=1, title="CBD א", content=long_text, link=shared, date="2019-01-01"),
            make_article(id=2, title="CBD ב", content=long_text, link=shared, date="2021-01-01"),
        ],
        chunker=Chunker(target_words=40),
    )
    result = retriever.retrieve("cbd", max_total_chunks=10)
    assert len(result.chunks) == 6
    assert len(result.sources) == 1
    dates = [c.article_date for c in result.chunks]
    assert dates == sorted(dates)


def test_budgets_limit_articles_and_chunks():
    articles = [make_article(id=i, title=f"CBD {i}", content=BODY) for i in range(1, 8)]
    retriever = ArchiveRetriever(articles)
    assert len(retriever.retrieve("cbd", max_articles=3).chunks) == 3
    assert len(retriever.retrieve("cbd", max_total_chunks=2).chunks) == 2


def test_counts_cover_only_selected_articles():
    articles = [make_article(id=i, title=f"CBD {i}", content=BODY) for i in range(1, 21)]
    result = ArchiveRetriever(articles).retrieve("cbd", max_articles=3)

    assert result.matched_articles == 3
    assert result.tier1_articles == 3
    assert result.tier2_articles == 0
    assert len(result.chunks) == 3
    assert "(3 כתבות רלוונטיות: 3 ספציפיות + 0 רקע" in format_context_for_prompt(result)


def test_aliases_report_expanded_terms(scenario_retriever):
    result = scenario_retriever.retrieve("CBD", ["cbd"], ["קנבינואידים"])
    assert result.aliases == ["cbd", "קנבינואידים"]


def test_empty_corpus_and_empty_terms():
    assert ArchiveRetriever([]).retrieve("cbd").is_empty
    retriever = ArchiveRetriever([make_article(title="CBD", content=BODY)])
    assert retriever.retrieve("x").is_empty


def test_format_context_for_prompt(scenario_retriever):
    result = scenario_retriever.retrieve("CBD", ["cbd"], ["קנבינואידים"])
    text = format_context_for_prompt(result)
    assert '--- מקור 1 [01.07.2012] "קנאביס כללי" ---' in text
    assert "Exact URL: https://magazine.example/post-1" in text
    assert format_context_for_prompt(ArchiveRetriever([]).retrieve("cbd")) == ""


def test_load_archive_skips_malformed_and_thin_posts(tmp_path):
    good = {"id": 1, "title": "CBD", "content": "מילה " * 80, "wordCount": 80, "date": "2020-01-01"}
    thin = {"id": 2, "title": "קצר", "content": "מעט", "wordCount": 1}
    (tmp_path / "post-1.json").write_bytes(orjson.dumps(good))
    (tmp_path / "post-2.json").write_bytes(orjson.dumps(thin))
    (tmp_path / "post-3.json").write_text("{not json", encoding="utf-8")
    (tmp_path / "post-4.json").write_bytes(orjson.dumps({"title": "no id"}))

    articles = load_archive(tmp_path)
    assert [a.id for a in articles] == [1]
    assert articles[0].word_count == 80

    unfiltered = load_archive(tmp_path, quality_filter=ArchiveQualityFilter(min_word_count=0, min_content_chars=0))
    assert [a.id for a in unfiltered] == [1, 2]


def test_load_archive_missing_directory(tmp_path):
    assert load_archive(tmp_path / "missing") == []
