"""Tests for the archive and catalog fetchers with the HTTP layer patched out."""

from unittest.mock import MagicMock, patch

import orjson

from scrapers.archive_scraper import ArchiveScraper
from scrapers.catalog_scraper import CatalogScraper, entry_from_v3, extract_attributes


def wp_response(items, total_pages=1, total=None):
    response = MagicMock()
    response.json.return_value = items
    response.headers = {"x-wp-totalpages": str(total_pages), "x-wp-total": str(total or len(items))}
    return response


def post(id, title="כותרת", content="<p>תוכן <b>הכתבה</b></p>"):
    return {
        "id": id,
        "date": "2022-03-01T09:00:00",
        "link": f"https://magazine.example/?p={id}",
        "title": {"rendered": title},
        "content": {"rendered": content},
        "excerpt": {"rendered": "<p>תקציר</p>"},
        "categories": [4],
        "tags": [],
    }


def archive_scraper(tmp_path):
    return ArchiveScraper(api_url="https://magazine.example/wp-json/wp/v2/posts", archive_dir=tmp_path, delay=0)


def test_archive_pages_until_exhausted(tmp_path):
    pages = [wp_response([post(1), post(2)], total_pages=2, total=3), wp_response([post(3)], total_pages=2)]
    with patch("scrapers.archive_scraper.fetch_url", side_effect=pages) as fetch:
        summary = archive_scraper(tmp_path).scrape()

    assert (summary.saved, summary.pages, summary.total_posts) == (3, 2, 3)
    assert fetch.call_count == 2
    assert fetch.call_args.kwargs["params"]["page"] == 2

    stored = orjson.loads((tmp_path / "post-1.json").read_bytes())
    assert stored["content"] == "תוכן הכתבה"
    assert stored["wordCount"] == 2
    assert stored["fetchedAt"]


def test_archive_limit_and_skip_existing(tmp_path):
    (tmp_path / "post-1.json").write_text("{}", encoding="utf-8")
    with patch("scrapers.archive_scraper.fetch_url", return_value=wp_response([post(1), post(2), post(3)])):
        summary = archive_scraper(tmp_path).scrape(limit=2, skip_existing=True)

    assert summary.skipped == 1
    assert summary.saved == 1
    assert not (tmp_path / "post-3.json").exists()


def test_archive_unreachable(tmp_path):
    with patch("scrapers.archive_scraper.fetch_url", return_value=None):
        summary = archive_scraper(tmp_path).scrape()
    assert summary.saved == 0


def test_archive_url_from_environment(monkeypatch, tmp_path):
    monkeypatch.setenv("ARCHIVE_SITE_URL", "https://staging.example/")
    assert ArchiveScraper(archive_dir=tmp_path).api_url == "https://staging.example/wp-json/wp/v2/posts"


def test_extract_attributes():
    attributes = [
        {"slug": "pa_strain", "option": "Lemon Haze"},
        {"name": "Dominant Terpene", "options": ["Limonene", "Myrcene"]},
        {"name": "Empty", "options": []},
    ]
    assert extract_attributes(attributes) == {
        "pa_strain": "Lemon Haze",
        "dominant_terpene": "Limonene, Myrcene",
    }


def test_entry_from_v3():
    entry = entry_from_v3({
        "slug": "lemon-haze",
        "name": "Lemon Haze",
        "permalink": "https://shop.example/lemon-haze",
        "stock_status": "outofstock",
        "tags": [{"name": "Sativa"}],
        "categories": [{"name": "תפרחות"}],
        "attributes": [],
    })
    assert entry.tags == ["Sativa"]
    assert entry.categories == ["תפרחות"]
    assert not entry.in_stock


def test_catalog_uses_v3_with_keys(tmp_path):
    product = {"slug": "a", "name": "A", "permalink": "https://shop.example/a"}
    path = tmp_path / "catalog.json"
    scraper = CatalogScraper(
        domain="https://shop.example", consumer_key="ck", consumer_secret="cs", catalog_path=path, delay=0
    )
    with patch("scrapers.catalog_scraper.fetch_url", return_value=wp_response([product])) as fetch:
        catalog = scraper.scrape()

    assert [e.slug for e in catalog] == ["a"]
    assert fetch.call_args.args[0] == "https://shop.example/wp-json/wc/v3/products"
    assert fetch.call_args.kwargs["auth"] == ("ck", "cs")
    assert orjson.loads(path.read_bytes())[0]["stockStatus"] == "instock"


def test_catalog_store_api_fallback(tmp_path, monkeypatch):
    monkeypatch.delenv("CANNABIZ_WC_KEY", raising=False)
    monkeypatch.delenv("CANNABIZ_WC_SECRET", raising=False)
    product = {"slug": "b", "name": "B", "attributes": [{"name": "THC", "taxonomy": "pa_thc"}]}
    scraper = CatalogScraper(domain="https://shop.example", catalog_path=tmp_path / "c.json", delay=0)
    with patch("scrapers.catalog_scraper.fetch_url", return_value=wp_response([product])) as fetch:
        catalog = scraper.scrape()

    assert not scraper.authenticated
    assert fetch.call_args.args[0].endswith("/wc/store/v1/products")
    assert catalog[0].attributes == {"pa_thc": "THC"}


def test_catalog_skip_existing(tmp_path):
    path = tmp_path / "c.json"
    path.write_text("[]", encoding="utf-8")
    with patch("scrapers.catalog_scraper.fetch_url") as fetch:
        assert CatalogScraper(catalog_path=path, delay=0).scrape(skip_existing=True) == []
    fetch.assert_not_called()
