"""Convert WordPress-rendered HTML into clean plain text.

Used for archive posts, live-magazine search results, and fetched web pages.
Paragraph structure is kept as blank-line separated blocks, which is what the
chunker splits on.
"""

import logging
import re

from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)

BLOCK_TAGS = [
    "p", "div", "li", "blockquote", "section", "article", "table", "tr",
    "h1", "h2", "h3", "h4", "h5", "h6",
]


class ContentExtractor:
    """Cleans HTML fragments and full pages into normalized text."""

    def __init__(self):
        # [shortcode attr="x"] ... [/shortcode]
        self._shortcode = re.compile(r"\[/?\w+[^\]]*\]")
        self._inline_space = re.compile(r"[ \t]+")
        self._line_edges = re.compile(r" *\n *")
        self._blank_runs = re.compile(r"\n{3,}")

    def clean_html(self, html: str) -> str:
        """Strip shortcodes, scripts, styles and tags; decode entities."""
        if not html:
            return ""

        text = self._shortcode.sub("", html)
        soup = BeautifulSoup(text, "lxml")

        for tag in soup.find_all(["script", "style", "noscript", "iframe"]):
            tag.decompose()
        for br in soup.find_all("br"):
            br.replace_with("\n")
        for block in soup.find_all(BLOCK_TAGS):
            block.append("\n\n")

        return self.normalize_whitespace(soup.get_text())

    def page_text(self, html: str) -> str:
        """Main text of a full HTML page, without navigation chrome."""
        if not html:
            return ""
        soup = BeautifulSoup(html, "lxml")
        for tag_name in ["nav", "header", "footer", "aside", "form"]:
            for tag in soup.find_all(tag_name):
                tag.decompose()
        body = soup.find("article") or soup.find("main") or soup.find("body") or soup
        return self.clean_html(str(body))

    def normalize_whitespace(self, text: str) -> str:
        text = text.replace("\xa0", " ").replace("\r\n", "\n")
        text = self._inline_space.sub(" ", text)
        text = self._line_edges.sub("\n", text)
        text = self._blank_runs.sub("\n\n", text)
        return text.strip()


def count_words(text: str) -> int:
    return len(text.split())


def trim_words(text: str, max_words: int, suffix: str = "") -> str:
    """Keep the first `max_words` whitespace-separated words, marking the cut with `suffix`."""
    words = text.split()
    if len(words) <= max_words:
        return text
    return " ".join(words[:max_words]) + suffix
