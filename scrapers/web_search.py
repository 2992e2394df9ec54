"""General web search channel backed by Google Programmable Search.

Disabled (empty results) unless GOOGLE_CSE_API_KEY and GOOGLE_CSE_ID are set.
The top results are fetched in full so the drafting model sees more than the
search snippet.
"""

import asyncio
import logging
import os
import re
from datetime import date
from typing import Optional

import httpx

from processors.content_extractor import ContentExtractor
from schemas.archive_article import parse_publication_date
from schemas.chunk import SourceRef
from scrapers.base import ChannelResult, ContextChannel
from scrapers.utils import english_terms, fetch_async, hebrew_terms

logger = logging.getLogger(__name__)

CSE_ENDPOINT = "https://www.googleapis.com/customsearch/v1"
MAX_HEBREW_QUERIES = 3
MAX_RESULTS = 5
FULL_TEXT_RESULTS = 3
PAGE_TIMEOUT = 8.0
MIN_PAGE_CHARS = 100
MAX_PAGE_CHARS = 3000

DATE_METATAGS = ("article:published_time", "og:updated_time", "date")
_HEBREW_DATE = re.compile(
    r"(\d{1,2})\s+(ב?(?:ינואר|פברואר|מרץ|אפריל|מאי|יוני|יולי|אוגוסט|ספטמבר|אוקטובר|נובמבר|דצמבר))\s+(\d{4})"
)


def extract_result_date(item: dict, today: Optional[date] = None) -> str:
    """Best-effort publication date of a search hit, as YYYY-MM-DD."""
    metatags = (item.get("pagemap", {}).get("metatags") or [{}])[0]
    for key in DATE_METATAGS:
        parsed = parse_publication_date(metatags.get(key, ""))
        if parsed:
            return parsed.date().isoformat()

    match = _HEBREW_DATE.search(item.get("snippet", ""))
    if match:
        return f"{match.group(3)}-01-01"

    return (today or date.today()).isoformat()


class WebSearchChannel(ContextChannel):
    name = "web_search"

    def __init__(
        self,
        api_key: Optional[str] = None,
        cse_id: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 10.0,
    ):
        super().__init__(client=client, timeout=timeout)
        self.api_key = api_key or os.getenv("GOOGLE_CSE_API_KEY")
        self.cse_id = cse_id or os.getenv("GOOGLE_CSE_ID")
        self.extractor = ContentExtractor()

    @property
    def enabled(self) -> bool:
        return bool(self.api_key and self.cse_id)

    async def fetch(self, aliases, concept_name) -> ChannelResult:
        if not self.enabled:
            logger.info("Web search disabled: GOOGLE_CSE_API_KEY / GOOGLE_CSE_ID not set")
            return ChannelResult()
        return await super().fetch(aliases, concept_name)

    def build_queries(self, aliases: list[str], concept_name: str) -> list[str]:
        hebrew = hebrew_terms(aliases) or [concept_name]
        queries = [f'"{term}" קנאביס' for term in hebrew[:MAX_HEBREW_QUERIES]]
        english = english_terms(aliases)
        if english:
            queries.append(f'"{english[0]}" cannabis')
        return queries

    async def _search(self, client, query: str) -> list[dict]:
        params = {
            "key": self.api_key,
            "cx": self.cse_id,
            "q": query,
            "num": 5,
            "dateRestrict": "y3",
        }
        response = await fetch_async(client, CSE_ENDPOINT, params=params, timeout=self.timeout)
        if response is None:
            return []
        return response.json().get("items", [])

    async def _page_text(self, client, url: str) -> Optional[str]:
        response = await fetch_async(client, url, headers={"Accept": "text/html"}, timeout=PAGE_TIMEOUT)
        if response is None or "text/html" not in response.headers.get("content-type", ""):
            return None
        text = " ".join(self.extractor.page_text(response.text).split())
        if len(text) < MIN_PAGE_CHARS:
            return None
        if len(text) > MAX_PAGE_CHARS:
            return text[:MAX_PAGE_CHARS] + "..."
        return text

    async def _fetch(self, client, aliases, concept_name) -> ChannelResult:
        seen_urls = set()
        results = []
        for query in self.build_queries(aliases, concept_name):
            for item in await self._search(client, query):
                if item["link"] in seen_urls:
                    continue
                seen_urls.add(item["link"])
                results.append({
                    "title": item.get("title", ""),
                    "url": item["link"],
                    "snippet": item.get("snippet", ""),
                    "date": extract_result_date(item),
                })

        if not results:
            return ChannelResult()

        top = results[:MAX_RESULTS]
        full_texts = await asyncio.gather(
            *(self._page_text(client, r["url"]) for r in top[:FULL_TEXT_RESULTS])
        )
        for result, text in zip(top, full_texts):
            if text:
                result["full_text"] = text

        blocks = [
            f'--- מקור Google Search {i} [{r["date"]}] "{r["title"]}" ---\n'
            f'Exact URL: {r["url"]}\n{r.get("full_text") or r["snippet"]}'
            for i, r in enumerate(top, 1)
        ]
        header = (
            f"מקורות מחיפוש Google ({len(top)} תוצאות עדכניות):\n"
            "שים לב: מידע מחיפוש אינטרנט הוא בדרך כלל העדכני ביותר, "
            "במיוחד לגבי רגולציה, חוקים ונתונים עובדתיים.\n\n"
        )
        return ChannelResult(
            context_text=header + "\n\n".join(blocks),
            sources=[SourceRef(title=r["title"], url=r["url"], date=r["date"]) for r in top],
        )
