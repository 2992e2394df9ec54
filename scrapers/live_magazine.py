"""Live cannabis magazine channel: recent posts from the magazine's WordPress API.

Complements the local archive snapshot with articles published since it was
fetched. Searches only posts from the last three years.
"""

import logging
import os
from datetime import datetime, timedelta, timezone
from typing import Optional

import httpx

from processors.content_extractor import ContentExtractor, trim_words
from schemas.chunk import SourceRef
from scrapers.base import ChannelResult, ContextChannel
from scrapers.utils import fetch_async, hebrew_terms

logger = logging.getLogger(__name__)

MAGAZINE_SITE = "https://www.xn--4dbcyzi5a.com"
POSTS_ENDPOINT = "/wp-json/wp/v2/posts"
MAX_TERMS = 4
MAX_ARTICLES = 5
MAX_WORDS = 2000
MIN_CONTENT_CHARS = 100
LOOKBACK = timedelta(days=3 * 365.25)


class LiveMagazineChannel(ContextChannel):
    name = "live_magazine"

    def __init__(
        self,
        api_url: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 10.0,
    ):
        super().__init__(client=client, timeout=timeout)
        self.api_url = api_url or os.getenv("ARCHIVE_SITE_URL", MAGAZINE_SITE).rstrip("/") + POSTS_ENDPOINT
        self.extractor = ContentExtractor()

    async def _search(self, client: httpx.AsyncClient, query: str) -> list[dict]:
        after = (datetime.now(timezone.utc) - LOOKBACK).strftime("%Y-%m-%dT%H:%M:%S")
        params = {
            "search": query,
            "per_page": 5,
            "orderby": "date",
            "order": "desc",
            "after": after,
            "_fields": "id,date,title,link,content,excerpt",
        }
        response = await fetch_async(client, self.api_url, params=params, timeout=self.timeout)
        if response is None:
            return []
        return response.json()

    async def _fetch(self, client, aliases, concept_name) -> ChannelResult:
        terms = hebrew_terms(aliases)[:MAX_TERMS] or [concept_name]

        seen_ids = set()
        articles = []
        for term in terms:
            for post in await self._search(client, term):
                if post["id"] in seen_ids:
                    continue
                seen_ids.add(post["id"])

                content = self.extractor.clean_html(post["content"]["rendered"])
                if len(content) < MIN_CONTENT_CHARS:
                    continue
                articles.append({
                    "title": self.extractor.clean_html(post["title"]["rendered"]),
                    "url": post["link"],
                    "date": post["date"].split("T")[0],
                    "content": trim_words(content, MAX_WORDS, suffix="..."),
                })
            if len(articles) >= MAX_ARTICLES:
                break

        if not articles:
            return ChannelResult()

        blocks = [
            f'--- מקור מגזין קנאביס (Live) {i} [{a["date"]}] "{a["title"]}" ---\n'
            f'Exact URL: {a["url"]}\n{a["content"]}'
            for i, a in enumerate(articles, 1)
        ]
        header = (
            f"מקורות חיים ממגזין קנאביס ({len(articles)} כתבות עדכניות):\n"
            "שים לב: כתבות אלו נשלפו בזמן אמת ועשויות להכיל מידע עדכני יותר מהארכיון המקומי.\n\n"
        )
        return ChannelResult(
            context_text=header + "\n\n".join(blocks),
            sources=[
                SourceRef(title=f'{a["title"]} (מגזין קנאביס)', url=a["url"], date=a["date"])
                for a in articles
            ],
        )
