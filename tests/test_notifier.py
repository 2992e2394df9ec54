"""Tests for the review email and the Resend client."""

import json

import httpx
import pytest

from review.notifier import (
    RESEND_ENDPOINT,
    EmailClient,
    ReviewNotification,
    ReviewNotifier,
    build_review_email,
)


def make_note(**overrides):
    data = dict(
        concept_name="קנבידיול",
        slug="cbd",
        category_slug="cannabinoids",
        confidence_score=0.62,
        risk_level="medium",
        unverified_claims=["מינון יומי של 50 מ\"ג"],
        sources_consulted=["מגזין: מדריך CBD"],
    )
    data.update(overrides)
    return ReviewNotification(**data)


def test_review_email_contents():
    subject, body = build_review_email(make_note())
    assert subject == "[קנאפדיה] דורש אימות: קנבידיול (ציון: 62%)"
    assert "Slug: cbd" in body
    assert "  1. מינון יומי" in body
    assert "  • מגזין: מדריך CBD" in body
    assert "python pipeline.py approve cbd" in body
    assert "content/cbd.json" in body


def test_review_email_placeholders_when_empty():
    _, body = build_review_email(make_note(unverified_claims=[], sources_consulted=[]))
    assert "(אין טענות ספציפיות שנמצאו בעייתיות)" in body
    assert "(לא נעשה שימוש במקורות)" in body


@pytest.mark.asyncio
async def test_send_posts_to_resend():
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json={"id": "email-1"})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        email = EmailClient(api_key="re_test", sender="Test <t@example.com>", client=client)
        sent = await email.send("editor@example.com", "נושא", "גוף", reply_to="user@example.com")

    assert sent
    assert str(requests[0].url) == RESEND_ENDPOINT
    assert requests[0].headers["Authorization"] == "Bearer re_test"
    payload = json.loads(requests[0].content)
    assert payload["to"] == ["editor@example.com"]
    assert payload["reply_to"] == "user@example.com"


@pytest.mark.asyncio
async def test_send_without_key_is_skipped(monkeypatch):
    monkeypatch.delenv("RESEND_API_KEY", raising=False)
    assert not await EmailClient().send("editor@example.com", "s", "b")


@pytest.mark.asyncio
async def test_send_http_error_returns_false():
    transport = httpx.MockTransport(lambda request: httpx.Response(500))
    async with httpx.AsyncClient(transport=transport) as client:
        email = EmailClient(api_key="re_test", client=client)
        assert not await email.send("editor@example.com", "s", "b")


@pytest.mark.asyncio
async def test_notifier_uses_review_recipient(monkeypatch):
    monkeypatch.setenv("REVIEW_EMAIL", "review@example.com")
    captured = {}

    def handler(request):
        captured.update(json.loads(request.content))
        return httpx.Response(200, json={})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        notifier = ReviewNotifier(EmailClient(api_key="re_test", client=client))
        assert await notifier.notify(make_note())

    assert captured["to"] == ["review@example.com"]
    assert captured["subject"].startswith("[קנאפדיה] דורש אימות")
