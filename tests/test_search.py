"""Tests for weighted entry search."""

from conftest import make_entry
from encyclopedia.search import SearchableConcept, score_concept, search_concepts


def concepts():
    return [
        SearchableConcept.from_entry(make_entry()),
        SearchableConcept.from_entry(
            make_entry(
                slug="myrcene",
                title="מירצן",
                subtitle="טרפן נפוץ",
                bluf={"points": ["מופיע בזנים רבים"]},
                sections=[{"id": "a", "heading": "h", "content": "מירצן נמצא גם לצד CBD בחלק מהזנים."}],
                faqs=[],
                schema={"medicalName": "Myrcene", "alternateName": ["β-Myrcene"]},
            )
        ),
    ]


def test_exact_title_parenthetical_and_alternate_name():
    cbd = concepts()[0]
    # (cbd) in title, exact alternate name, one BLUF point, one body occurrence
    assert score_concept(cbd, "cbd") == 200 + 150 + 15 + 5


def test_partial_medical_name():
    myrcene = concepts()[1]
    assert score_concept(myrcene, "myrc") == 100 * 0.6 + 60


def test_ranking_and_filtering():
    results = search_concepts(concepts(), "  CBD ")
    assert [c.slug for c, _ in results] == ["cbd", "myrcene"]
    assert results[1][1] == 5


def test_empty_or_unmatched_query():
    assert search_concepts(concepts(), "   ") == []
    assert search_concepts(concepts(), "אינסולין") == []
