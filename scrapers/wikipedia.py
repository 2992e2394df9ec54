"""Encyclopedia mirror channel: Hebrew and English Wikipedia via the MediaWiki API."""

import logging
from typing import Optional
from urllib.parse import quote

import httpx

from processors.content_extractor import trim_words
from schemas.archive_article import parse_publication_date
from schemas.chunk import SourceRef
from scrapers.base import ChannelResult, ContextChannel
from scrapers.utils import english_terms, fetch_async, hebrew_terms

logger = logging.getLogger(__name__)

MAX_HEBREW_QUERIES = 3
MAX_ENGLISH_QUERIES = 2
MAX_HEBREW_ARTICLES = 3
MAX_TOTAL_ARTICLES = 5
RESULTS_PER_QUERY = 2
MIN_EXTRACT_CHARS = 200
MAX_WORDS = 3000

LANGUAGE_LABELS = {"he": "עברית", "en": "English"}
CONTEXT_LABELS = {"he": "ויקיפדיה עברית", "en": "Wikipedia English"}


class WikipediaChannel(ContextChannel):
    name = "wikipedia"

    def __init__(self, client: Optional[httpx.AsyncClient] = None, timeout: float = 10.0):
        super().__init__(client=client, timeout=timeout)

    @staticmethod
    def _api(lang: str) -> str:
        return f"https://{lang}.wikipedia.org/w/api.php"

    async def _search(self, client, query: str, lang: str) -> list[dict]:
        params = {
            "action": "query",
            "list": "search",
            "srsearch": query,
            "srlimit": RESULTS_PER_QUERY,
            "srnamespace": 0,
            "format": "json",
        }
        response = await fetch_async(client, self._api(lang), params=params, timeout=self.timeout)
        if response is None:
            return []
        return response.json().get("query", {}).get("search", [])

    async def _article(self, client, title: str, lang: str) -> Optional[dict]:
        params = {
            "action": "query",
            "titles": title,
            "prop": "extracts|info|revisions",
            "explaintext": 1,
            "exsectionformat": "plain",
            "inprop": "url",
            "rvprop": "timestamp",
            "format": "json",
        }
        response = await fetch_async(client, self._api(lang), params=params, timeout=self.timeout)
        if response is None:
            return None

        pages = response.json().get("query", {}).get("pages", {})
        if not pages:
            return None
        page = next(iter(pages.values()))
        if "missing" in page:
            return None

        extract = page.get("extract") or ""
        revisions = page.get("revisions") or [{}]
        return {
            "title": page.get("title", title),
            "lang": lang,
            "url": page.get("fullurl") or f"https://{lang}.wikipedia.org/wiki/{quote(title)}",
            "content": trim_words(extract, MAX_WORDS, suffix="..."),
            "last_modified": revisions[0].get("timestamp", ""),
        }

    async def _collect(self, client, queries, lang, articles, seen, limit):
        for query in queries:
            for hit in await self._search(client, query, lang):
                key = f"{lang}:{hit['title']}"
                if key in seen:
                    continue
                seen.add(key)
                article = await self._article(client, hit["title"], lang)
                if article and len(article["content"]) > MIN_EXTRACT_CHARS:
                    articles.append(article)
            if len(articles) >= limit:
                break

    async def _fetch(self, client, aliases, concept_name) -> ChannelResult:
        articles: list[dict] = []
        seen: set[str] = set()

        hebrew_queries = [concept_name, *hebrew_terms(aliases)][:MAX_HEBREW_QUERIES]
        await self._collect(client, hebrew_queries, "he", articles, seen, MAX_HEBREW_ARTICLES)

        english_queries = [f"{a} cannabis" for a in english_terms(aliases)[:MAX_ENGLISH_QUERIES]]
        await self._collect(client, english_queries, "en", articles, seen, MAX_TOTAL_ARTICLES)

        if not articles:
            return ChannelResult()

        blocks = []
        for i, a in enumerate(articles, 1):
            modified = parse_publication_date(a["last_modified"])
            date_str = modified.strftime("%d.%m.%Y") if modified else a["last_modified"]
            blocks.append(
                f'--- מקור ויקיפדיה {i} [{CONTEXT_LABELS[a["lang"]]}, עודכן {date_str}] "{a["title"]}" ---\n'
                f'Exact URL: {a["url"]}\n{a["content"]}'
            )
        header = (
            f"מקורות מויקיפדיה ({len(articles)} ערכים רלוונטיים, מידע עדכני):\n"
            "שים לב: מידע מויקיפדיה הוא בדרך כלל עדכני יותר ממקורות הארכיון המקומי, "
            "במיוחד לגבי רגולציה, חוקים ונתונים עובדתיים.\n\n"
        )
        return ChannelResult(
            context_text=header + "\n\n".join(blocks),
            sources=[
                SourceRef(
                    title=f'{a["title"]} (Wikipedia {LANGUAGE_LABELS[a["lang"]]})',
                    url=a["url"],
                    date=a["last_modified"].split("T")[0],
                )
                for a in articles
            ],
        )
