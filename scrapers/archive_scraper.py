"""Magazine archive fetcher.

Pages through the magazine's WordPress REST API, strips the HTML from each
post, and writes one `post-{id}.json` file per post into the archive
directory that `retrieval.archive_store` reads.
"""

import logging
import os
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from processors.content_extractor import ContentExtractor, count_words
from retrieval.archive_store import DEFAULT_ARCHIVE_DIR
from schemas.archive_article import ArchiveArticle
from scrapers.live_magazine import MAGAZINE_SITE, POSTS_ENDPOINT
from scrapers.utils import RateLimiter, fetch_url, save_json

logger = logging.getLogger(__name__)

PER_PAGE = 100
POST_FIELDS = "id,date,link,title,content,excerpt,categories,tags"


@dataclass
class ArchiveFetchSummary:
    saved: int = 0
    skipped: int = 0
    pages: int = 0
    total_posts: int = 0


def _rendered(field) -> str:
    if isinstance(field, dict):
        return field.get("rendered", "")
    return field or ""


class ArchiveScraper:
    def __init__(
        self,
        api_url: Optional[str] = None,
        archive_dir=DEFAULT_ARCHIVE_DIR,
        delay: float = 2.0,
        extractor: Optional[ContentExtractor] = None,
    ):
        self.api_url = api_url or os.getenv("ARCHIVE_SITE_URL", MAGAZINE_SITE).rstrip("/") + POSTS_ENDPOINT
        self.archive_dir = Path(archive_dir)
        self.rate_limiter = RateLimiter(min_delay=delay)
        self.extractor = extractor or ContentExtractor()

    def clean_post(self, post: dict) -> ArchiveArticle:
        content = self.extractor.clean_html(_rendered(post.get("content")))
        return ArchiveArticle(
            id=post["id"],
            date=post.get("date", ""),
            link=post.get("link", ""),
            title=self.extractor.clean_html(_rendered(post.get("title"))),
            content=content,
            excerpt=self.extractor.clean_html(_rendered(post.get("excerpt"))),
            categories=post.get("categories") or [],
            tags=post.get("tags") or [],
            word_count=count_words(content),
            fetched_at=datetime.now(timezone.utc).isoformat(),
        )

    def fetch_page(self, page: int) -> tuple[list[dict], int, int]:
        """One page of posts, plus the total page and post counts from the headers."""
        response = fetch_url(
            self.api_url,
            params={"per_page": PER_PAGE, "page": page, "_fields": POST_FIELDS},
            rate_limiter=self.rate_limiter,
        )
        if response is None:
            return [], 0, 0
        total_pages = int(response.headers.get("x-wp-totalpages", 0) or 0)
        total_posts = int(response.headers.get("x-wp-total", 0) or 0)
        return response.json(), total_pages, total_posts

    def scrape(
        self,
        limit: Optional[int] = None,
        start_page: int = 1,
        skip_existing: bool = False,
    ) -> ArchiveFetchSummary:
        self.archive_dir.mkdir(parents=True, exist_ok=True)
        summary = ArchiveFetchSummary()

        posts, total_pages, summary.total_posts = self.fetch_page(start_page)
        if not posts:
            logger.warning("No posts returned from %s", self.api_url)
            return summary
        logger.info("Archive has %d posts across %d pages", summary.total_posts, total_pages)

        page = start_page
        processed = 0
        while posts:
            summary.pages += 1
            for post in posts:
                if limit is not None and processed >= limit:
                    break
                processed += 1
                path = self.archive_dir / f"post-{post['id']}.json"
                if skip_existing and path.exists():
                    summary.skipped += 1
                    continue
                article = self.clean_post(post)
                save_json(article.model_dump(mode="json", by_alias=True), path)
                summary.saved += 1

            logger.info("Page %d: %d posts (%d processed)", page, len(posts), processed)
            if limit is not None and processed >= limit:
                break

            page += 1
            if total_pages and page > total_pages:
                break
            posts, pages_header, _ = self.fetch_page(page)
            total_pages = pages_header or total_pages

        logger.info(
            "Archive fetch complete: %d saved, %d skipped existing, output %s",
            summary.saved,
            summary.skipped,
            self.archive_dir,
        )
        return summary
