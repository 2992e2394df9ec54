"""Shared fixtures and builders for the test suite."""

import pytest

from schemas.archive_article import ArchiveArticle
from schemas.concept_entry import ConceptEntry
from store.concept_store import ConceptStore


def make_article(id=1, title="", content="", date="2020-01-01T10:00:00", link=None, **kwargs) -> ArchiveArticle:
    return ArchiveArticle(
        id=id,
        title=title,
        content=content,
        date=date,
        link=link if link is not None else f"https://magazine.example/post-{id}",
        **kwargs,
    )


def make_entry_data(slug="cbd", title="קנבידיול (CBD)", **overrides) -> dict:
    data = {
        "slug": slug,
        "title": title,
        "subtitle": "קנבינואיד לא פסיכואקטיבי",
        "category": "קנבינואידים",
        "categorySlug": "cannabinoids",
        "bluf": {"points": ["CBD אינו משכר", "נחקר לטיפול באפילפסיה"], "lastUpdated": "2025-01-01"},
        "sections": [
            {
                "id": "overview",
                "heading": "סקירה",
                "content": "קנבידיול הוא אחד הקנבינואידים המרכזיים בצמח.",
                "subsections": [{"heading": "מנגנון", "content": "פועל על קולטני סרוטונין."}],
            }
        ],
        "faqs": [{"question": "האם CBD ממכר?", "answer": "לא נמצאה עדות להתמכרות."}],
        "sources": [],
        "schema": {"medicalName": "Cannabidiol", "alternateName": ["CBD"]},
    }
    data.update(overrides)
    return data


def make_entry(**overrides) -> ConceptEntry:
    return ConceptEntry.model_validate(make_entry_data(**overrides))


@pytest.fixture
def concept_store(tmp_path):
    return ConceptStore(tmp_path / "content")
