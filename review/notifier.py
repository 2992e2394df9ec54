"""Review and feedback email delivery through the Resend HTTP API.

Delivery is best effort: missing credentials, HTTP errors and timeouts are
logged and reported as False, never raised, so a failed email can never fail
the generation pipeline.
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Optional

import httpx

from schemas.concept_entry import ConceptEntry

logger = logging.getLogger(__name__)

RESEND_ENDPOINT = "https://api.resend.com/emails"
DEFAULT_SENDER = "קנאפדיה <onboarding@resend.dev>"
CONTENT_DIR_LABEL = "content"


class EmailClient:
    """Minimal Resend client."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        sender: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 15.0,
    ):
        self.api_key = api_key or os.getenv("RESEND_API_KEY")
        self.sender = sender or os.getenv("REVIEW_FROM_EMAIL", DEFAULT_SENDER)
        self._client = client
        self.timeout = timeout

    async def send(self, to: Optional[str], subject: str, text: str, reply_to: Optional[str] = None) -> bool:
        if not self.api_key or not to:
            logger.warning("Missing RESEND_API_KEY or recipient, skipping email '%s'", subject)
            return False

        payload = {"from": self.sender, "to": [to], "subject": subject, "text": text}
        if reply_to:
            payload["reply_to"] = reply_to
        headers = {"Authorization": f"Bearer {self.api_key}"}

        try:
            if self._client is not None:
                response = await self._client.post(RESEND_ENDPOINT, json=payload, headers=headers, timeout=self.timeout)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.post(RESEND_ENDPOINT, json=payload, headers=headers)
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error("Failed to send email '%s' to %s: %s", subject, to, e)
            return False

        logger.info("Email '%s' sent to %s", subject, to)
        return True


@dataclass
class ReviewNotification:
    concept_name: str
    slug: str
    category_slug: str
    confidence_score: float
    risk_level: str
    unverified_claims: list[str] = field(default_factory=list)
    sources_consulted: list[str] = field(default_factory=list)

    @classmethod
    def from_entry(
        cls, entry: ConceptEntry, source_titles: list[str], concept_name: Optional[str] = None
    ) -> "ReviewNotification":
        return cls(
            concept_name=concept_name or entry.title,
            slug=entry.slug,
            category_slug=entry.category_slug,
            confidence_score=entry.confidence_score or 0.0,
            risk_level=entry.risk_level.value if entry.risk_level else "high",
            unverified_claims=list(entry.unverified_claims),
            sources_consulted=list(source_titles),
        )


def build_review_email(note: ReviewNotification) -> tuple[str, str]:
    """Subject and plain-text body of the review request."""
    score_pct = round(note.confidence_score * 100)

    if note.unverified_claims:
        claims = "\n".join(f"  {i}. {c}" for i, c in enumerate(note.unverified_claims, 1))
    else:
        claims = "  (אין טענות ספציפיות שנמצאו בעייתיות)"

    if note.sources_consulted:
        sources = "\n".join(f"  • {s}" for s in note.sources_consulted)
    else:
        sources = "  (לא נעשה שימוש במקורות)"

    subject = f"[קנאפדיה] דורש אימות: {note.concept_name} (ציון: {score_pct}%)"
    body = "\n".join([
        "ערך חדש דורש אימות ידני לפני פרסום:",
        "",
        f"שם: {note.concept_name}",
        f"Slug: {note.slug}",
        f"קטגוריה: {note.category_slug}",
        f"ציון ביטחון: {score_pct}%",
        f"רמת סיכון: {note.risk_level}",
        "",
        "טענות לא מאומתות:",
        claims,
        "",
        "מקורות שנבדקו:",
        sources,
        "",
        f"קובץ JSON: {CONTENT_DIR_LABEL}/{note.slug}.json",
        "",
        "לאישור:",
        f"  python pipeline.py approve {note.slug}",
        "",
        "הערך לא יפורסם עד לאישור ידני.",
    ])
    return subject, body


class ReviewNotifier:
    """Emails the editor when an entry is held for review."""

    def __init__(self, email_client: Optional[EmailClient] = None, recipient: Optional[str] = None):
        self.email_client = email_client or EmailClient()
        self.recipient = recipient or os.getenv("REVIEW_EMAIL") or os.getenv("CONTACT_EMAIL")

    async def notify(self, note: ReviewNotification) -> bool:
        subject, body = build_review_email(note)
        return await self.email_client.send(self.recipient, subject, body)
