"""Magazine glossary parser.

Fetches the magazine's glossary page through the WordPress pages API and
extracts term/definition pairs as candidate concepts. The result is written
for manual review (slang and non-medical terms get filtered by a person)
before anything is seeded into the queue.
"""

import logging
import os
import re
from datetime import datetime, timezone
from typing import Iterable, Optional

from bs4 import BeautifulSoup

from processors.content_extractor import ContentExtractor
from schemas.glossary import GlossaryReview, GlossaryTerm
from scrapers.live_magazine import MAGAZINE_SITE
from scrapers.utils import RateLimiter, fetch_url

logger = logging.getLogger(__name__)

PAGES_ENDPOINT = "/wp-json/wp/v2/pages"
GLOSSARY_SLUG = "מילון-מושגי-הקנאביס-השלם-מא-ועד-ת"
PAGE_FIELDS = "id,title,content,link"

MIN_TERM_CHARS = 2
MAX_TERM_CHARS = 100
MIN_DEFINITION_CHARS = 10
MAX_DEFINITION_CHARS = 500

TERM_TAGS = ["strong", "b"]
STOP_TAGS = {"strong", "b", "h2", "h3", "h4", "h5", "h6"}

_LEADING_SEPARATOR = re.compile(r"^\s*[-–—:]\s*")
_TERM_LINE = re.compile(r"^(.{2,60}?)\s*[-–—:]\s+(.{10,})$")

# First match wins
CATEGORY_HINTS = [
    ("cannabinoids", re.compile(r"קנבינואיד|thc|cbd|cbn|cbg|cbc|thca|cbda")),
    ("terpenes", re.compile(r"טרפן|לימונן|מירצן|פינן|לינלול|caryophyllene")),
    ("cultivars-and-chemotypes", re.compile(r"אינדיקה|סאטיבה|היברידי|זן|כימוטיפ|גנטיקה")),
    ("endocannabinoid-system", re.compile(r"cb1|cb2|אנדוקנבינואיד|אננדאמיד|2-ag|ecs")),
    ("routes-of-administration", re.compile(r"אידוי|שמן|קפסול|סובלינגו|טופיקלי|מתן|צריכה")),
    ("regulation-in-israel", re.compile(r'רגולציה|חוק|רישיון|יק"ר|imca|yakar|נוהל')),
    ("research-and-development", re.compile(r"מחקר|ניסוי|קליני|rct|פרה-קליני")),
    ("side-effects-and-risks", re.compile(r"תופעת לוואי|סיכון|התמכרות|toleran")),
    ("drug-drug-interactions", re.compile(r"אינטראקצי|cyp450|תרופ")),
    ("medical-indications", re.compile(r"כאב|פטסד|ptsd|אפילפסיה|טרשת|בחילה|הקאה")),
]
UNCATEGORIZED = "uncategorized"


def suggest_category(term: str, definition: str) -> str:
    combined = f"{term} {definition}".lower()
    for category_slug, pattern in CATEGORY_HINTS:
        if pattern.search(combined):
            return category_slug
    return UNCATEGORIZED


def slugify(text: str) -> str:
    """ASCII kebab slug when the term has enough Latin text, else the Hebrew words dashed."""
    ascii_text = re.sub(r"[^a-z0-9\s-]", "", text.lower()).strip()
    base = ascii_text if len(ascii_text) > 2 else text.strip()
    return re.sub(r"-+", "-", re.sub(r"\s+", "-", base))


class GlossaryScraper:
    def __init__(
        self,
        api_url: Optional[str] = None,
        glossary_slug: str = GLOSSARY_SLUG,
        extractor: Optional[ContentExtractor] = None,
    ):
        self.api_url = api_url or os.getenv("ARCHIVE_SITE_URL", MAGAZINE_SITE).rstrip("/") + PAGES_ENDPOINT
        self.glossary_slug = glossary_slug
        self.extractor = extractor or ContentExtractor()
        self.rate_limiter = RateLimiter(min_delay=1.0)

    def fetch_page(self) -> Optional[dict]:
        response = fetch_url(
            self.api_url,
            params={"slug": self.glossary_slug, "_fields": PAGE_FIELDS},
            headers={"Accept": "application/json"},
            rate_limiter=self.rate_limiter,
        )
        if response is None:
            return None
        pages = response.json()
        if not pages:
            logger.warning("No page with slug '%s' at %s", self.glossary_slug, self.api_url)
            return None
        return pages[0]

    def extract_terms(self, html: str) -> list[tuple[str, str]]:
        """Term/definition pairs from bold-term markup, else from "term - definition" lines."""
        terms = self._bold_terms(html)
        if terms:
            return terms

        for line in self.extractor.clean_html(html).split("\n"):
            match = _TERM_LINE.match(line.strip())
            if match:
                terms.append((match.group(1).strip(), match.group(2).strip()[:MAX_DEFINITION_CHARS]))
        return terms

    def _bold_terms(self, html: str) -> list[tuple[str, str]]:
        soup = BeautifulSoup(html or "", "lxml")
        terms = []
        for tag in soup.find_all(TERM_TAGS):
            term = tag.get_text(" ", strip=True)

            tail = []
            for sibling in tag.next_siblings:
                if getattr(sibling, "name", None) in STOP_TAGS:
                    break
                tail.append(str(sibling))
            tail_text = self.extractor.clean_html("".join(tail))

            separator = _LEADING_SEPARATOR.match(tail_text)
            if not separator:
                continue
            definition = tail_text[separator.end():].strip()
            if MIN_TERM_CHARS <= len(term) <= MAX_TERM_CHARS and len(definition) >= MIN_DEFINITION_CHARS:
                terms.append((term, definition[:MAX_DEFINITION_CHARS]))
        return terms

    def build_review(
        self,
        page: dict,
        existing_slugs: Iterable[str] = (),
        queued_names: Iterable[str] = (),
    ) -> GlossaryReview:
        html = (page.get("content") or {}).get("rendered", "")
        review = GlossaryReview(
            source=page.get("link", ""),
            page_title=self.extractor.clean_html((page.get("title") or {}).get("rendered", "")),
            extracted_at=datetime.now(timezone.utc).isoformat(),
        )

        raw_terms = self.extract_terms(html)
        if not raw_terms:
            logger.warning("Could not extract terms; keeping the cleaned page text for manual review")
            review.raw_text = self.extractor.clean_html(html)
            return review

        content_slugs = set(existing_slugs)
        names = {name.lower() for name in queued_names}
        for term, definition in raw_terms:
            slug = slugify(term)
            review.terms.append(GlossaryTerm(
                term=term,
                definition=definition,
                exists_in_queue=term.lower() in names,
                exists_as_content=slug in content_slugs,
                suggested_slug=slug,
                suggested_category=suggest_category(term, definition),
            ))

        review.total_terms = len(review.terms)
        review.existing_terms = sum(1 for t in review.terms if t.exists_in_queue or t.exists_as_content)
        review.new_terms = review.total_terms - review.existing_terms
        return review

    def scrape(
        self,
        existing_slugs: Iterable[str] = (),
        queued_names: Iterable[str] = (),
    ) -> Optional[GlossaryReview]:
        page = self.fetch_page()
        if page is None:
            return None
        logger.info("Glossary page: %s (%d chars)", page.get("link", ""),
                    len((page.get("content") or {}).get("rendered", "")))
        review = self.build_review(page, existing_slugs, queued_names)
        logger.info("Glossary terms: %d total, %d new, %d existing",
                    review.total_terms, review.new_terms, review.existing_terms)
        return review
