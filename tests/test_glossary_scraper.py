"""Tests for the magazine glossary parser with the HTTP layer patched out."""

from unittest.mock import MagicMock, patch

from scrapers.glossary_scraper import GLOSSARY_SLUG, GlossaryScraper, slugify, suggest_category

GLOSSARY_HTML = """
<h2>א</h2>
<p><strong>אינדיקה</strong> – זן קנאביס נמוך וצפוף, נחשב מרגיע.</p>
<p><strong>CBD</strong>: קנבידיול, קנבינואיד שאינו משכר.</p>
<p><b>X</b> - קצר מדי</p>
<p><strong>הערה</strong></p>
<h2>מ</h2>
<p><b>מירצן</b> - טרפן נפוץ בעל ארומה אדמתית.</p>
"""


def page(html=GLOSSARY_HTML):
    return {
        "id": 7,
        "title": {"rendered": "מילון מושגי הקנאביס"},
        "content": {"rendered": html},
        "link": "https://magazine.example/glossary/",
    }


def pages_response(pages):
    response = MagicMock()
    response.json.return_value = pages
    return response


def scraper():
    return GlossaryScraper(api_url="https://magazine.example/wp-json/wp/v2/pages")


def test_bold_terms_need_separator_and_lengths():
    terms = scraper().extract_terms(GLOSSARY_HTML)

    assert terms == [
        ("אינדיקה", "זן קנאביס נמוך וצפוף, נחשב מרגיע."),
        ("CBD", "קנבידיול, קנבינואיד שאינו משכר."),
        ("מירצן", "טרפן נפוץ בעל ארומה אדמתית."),
    ]


def test_line_fallback_without_bold_markup():
    html = "<p>טרפן – תרכובת ארומטית בצמח הקנאביס</p><p>שורה בלי מפריד בכלל</p>"
    assert scraper().extract_terms(html) == [("טרפן", "תרכובת ארומטית בצמח הקנאביס")]


def test_definitions_truncated():
    html = f"<p><strong>THC</strong> - {'א' * 700}</p>"
    (_, definition), = scraper().extract_terms(html)
    assert len(definition) == 500


def test_slugify_prefers_latin_text():
    assert slugify("Full Spectrum") == "full-spectrum"
    assert slugify("CBD") == "cbd"
    assert slugify("שמן  קנאביס") == "שמן-קנאביס"
    assert slugify("אינדיקה") == "אינדיקה"


def test_suggest_category_first_match_wins():
    assert suggest_category("אינדיקה", "זן קנאביס נמוך") == "cultivars-and-chemotypes"
    assert suggest_category("THCV", "קנבינואיד נדיר") == "cannabinoids"
    assert suggest_category("CYP450", "מערכת אנזימים לפירוק תרופות") == "drug-drug-interactions"
    assert suggest_category("טיפ", "עצה כללית לגינה") == "uncategorized"


def test_review_flags_known_terms():
    review = scraper().build_review(page(), existing_slugs=["cbd"], queued_names=["אינדיקה"])

    by_term = {t.term: t for t in review.terms}
    assert by_term["CBD"].exists_as_content
    assert by_term["אינדיקה"].exists_in_queue
    assert not by_term["מירצן"].exists_in_queue and not by_term["מירצן"].exists_as_content
    assert by_term["מירצן"].suggested_category == "terpenes"
    assert (review.total_terms, review.new_terms, review.existing_terms) == (3, 1, 2)
    assert review.source == "https://magazine.example/glossary/"
    assert review.raw_text == ""

    dumped = review.model_dump(by_alias=True)
    assert dumped["terms"][0]["suggestedSlug"] == "אינדיקה"


def test_review_keeps_raw_text_when_nothing_extracted():
    review = scraper().build_review(page("<p>רק טקסט רגיל</p>"))
    assert review.terms == []
    assert review.total_terms == 0
    assert review.raw_text == "רק טקסט רגיל"


def test_scrape_queries_pages_api_by_slug():
    with patch("scrapers.glossary_scraper.fetch_url", return_value=pages_response([page()])) as fetch:
        review = scraper().scrape(existing_slugs=[], queued_names=[])

    assert review.total_terms == 3
    assert fetch.call_args.args[0] == "https://magazine.example/wp-json/wp/v2/pages"
    assert fetch.call_args.kwargs["params"]["slug"] == GLOSSARY_SLUG


def test_scrape_returns_none_when_page_missing():
    with patch("scrapers.glossary_scraper.fetch_url", return_value=pages_response([])):
        assert scraper().scrape() is None
    with patch("scrapers.glossary_scraper.fetch_url", return_value=None):
        assert scraper().scrape() is None
