"""Reader submissions: error reports on entries and the contact form.

Both paths share the same bot screening (honeypot field and a minimum time on
page, answered with a silent fake success), per-IP throttling through the
injected `RateLimitStore`, and field validation, then deliver by email.
"""

import asyncio
import logging
import os
import re
import time
from dataclasses import dataclass
from typing import Callable, Optional

from review.notifier import EmailClient
from store.rate_limit_store import RateLimitStore

logger = logging.getLogger(__name__)

SITE_URL = "https://cannapedia.co.il"
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MIN_FILL_SECONDS = 3.0
RATE_WINDOW_SECONDS = 3600
REPORTS_PER_HOUR = 5
CONTACTS_PER_HOUR = 3

MAX_DESCRIPTION_CHARS = 1000
MAX_EMAIL_CHARS = 200
MAX_NAME_CHARS = 100
MAX_MESSAGE_CHARS = 5000


@dataclass
class SubmissionResult:
    success: bool
    error: Optional[str] = None


@dataclass
class ErrorReport:
    description: str
    concept_slug: str = ""
    concept_title: str = ""
    reporter_email: str = ""
    honeypot: str = ""
    form_loaded_at: float = 0.0


@dataclass
class ContactMessage:
    name: str
    email: str
    message: str
    phone: str = ""
    honeypot: str = ""
    form_loaded_at: float = 0.0


class FeedbackService:
    def __init__(
        self,
        rate_limits: RateLimitStore,
        email_client: Optional[EmailClient] = None,
        recipient: Optional[str] = None,
        report_recipient: Optional[str] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.rate_limits = rate_limits
        self.email_client = email_client or EmailClient()
        self.recipient = recipient or os.getenv("CONTACT_EMAIL")
        self.report_recipient = report_recipient or recipient or os.getenv("REVIEW_EMAIL") or self.recipient
        self.clock = clock

    def _looks_automated(self, honeypot: str, form_loaded_at: float) -> bool:
        return bool(honeypot) or self.clock() - form_loaded_at < MIN_FILL_SECONDS

    async def _allow(self, key: str, limit: int) -> bool:
        # SQLite write; kept off the event loop
        return await asyncio.to_thread(self.rate_limits.hit, key, limit, RATE_WINDOW_SECONDS)

    async def submit_error_report(self, report: ErrorReport, client_ip: str = "") -> SubmissionResult:
        if self._looks_automated(report.honeypot, report.form_loaded_at):
            logger.info("Discarding automated error report from %s", client_ip or "unknown")
            return SubmissionResult(True)

        if not await self._allow(f"report:{client_ip or 'unknown'}", REPORTS_PER_HOUR):
            return SubmissionResult(False, "שלחת יותר מדי דיווחים. נסה שוב מאוחר יותר.")

        description = report.description.strip()
        email = report.reporter_email.strip()
        if not description:
            return SubmissionResult(False, "יש לתאר את הטעות.")
        if len(description) > MAX_DESCRIPTION_CHARS:
            return SubmissionResult(False, "התיאור ארוך מדי (מקסימום 1000 תווים).")
        if len(email) > MAX_EMAIL_CHARS:
            return SubmissionResult(False, "כתובת האימייל ארוכה מדי.")
        if email and not EMAIL_PATTERN.match(email):
            return SubmissionResult(False, "כתובת האימייל אינה תקינה.")

        slug = report.concept_slug.strip()
        title = report.concept_title.strip()
        lines = [
            f"דיווח על טעות בערך: {title}",
            f"Slug: {slug}",
            f"URL: {SITE_URL}/concept/{slug}",
        ]
        if email:
            lines.append(f"אימייל מדווח: {email}")
        lines += ["", "תיאור הטעות:", description]

        sent = await self.email_client.send(
            self.report_recipient,
            f"[קנאפדיה] דיווח על טעות: {title or slug}",
            "\n".join(lines),
            reply_to=email or None,
        )
        if not sent:
            return SubmissionResult(False, "שגיאה בשליחת הדיווח. נסה שוב מאוחר יותר.")
        return SubmissionResult(True)

    async def submit_contact(self, contact: ContactMessage, client_ip: str = "") -> SubmissionResult:
        if self._looks_automated(contact.honeypot, contact.form_loaded_at):
            logger.info("Discarding automated contact message from %s", client_ip or "unknown")
            return SubmissionResult(True)

        if not await self._allow(f"contact:{client_ip or 'unknown'}", CONTACTS_PER_HOUR):
            return SubmissionResult(False, "שלחת יותר מדי הודעות. נסה שוב מאוחר יותר.")

        name = contact.name.strip()
        email = contact.email.strip()
        message = contact.message.strip()
        phone = contact.phone.strip()
        if not name or not email or not message:
            return SubmissionResult(False, "יש למלא את כל השדות המסומנים בכוכבית.")
        if len(name) > MAX_NAME_CHARS or len(email) > MAX_EMAIL_CHARS or len(message) > MAX_MESSAGE_CHARS:
            return SubmissionResult(False, "אחד השדות ארוך מדי.")
        if not EMAIL_PATTERN.match(email):
            return SubmissionResult(False, "כתובת האימייל אינה תקינה.")

        lines = [f"שם: {name}"]
        if phone:
            lines.append(f"טלפון: {phone}")
        lines += [f"אימייל: {email}", "", "הודעה:", message]

        sent = await self.email_client.send(
            self.recipient,
            f"פנייה חדשה מקנאפדיה: {name}",
            "\n".join(lines),
            reply_to=email,
        )
        if not sent:
            return SubmissionResult(False, "שגיאה בשליחת ההודעה. נסה שוב מאוחר יותר.")
        return SubmissionResult(True)
