"""Tests for reader error reports and contact messages."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from encyclopedia.feedback import (
    CONTACTS_PER_HOUR,
    ContactMessage,
    ErrorReport,
    FeedbackService,
)
from store.rate_limit_store import RateLimitStore

NOW = 10_000.0


@pytest.fixture
def email_client():
    client = MagicMock()
    client.send = AsyncMock(return_value=True)
    return client


@pytest.fixture
def service(tmp_path, email_client, monkeypatch):
    monkeypatch.delenv("REVIEW_EMAIL", raising=False)
    limits = RateLimitStore(db_path=str(tmp_path / "limits.db"), clock=lambda: NOW)
    return FeedbackService(limits, email_client=email_client, recipient="team@example.com", clock=lambda: NOW)


def report(**overrides):
    data = dict(
        description="המינון בפסקה השנייה שגוי",
        concept_slug="cbd",
        concept_title="קנבידיול",
        reporter_email="reader@example.com",
        form_loaded_at=NOW - 30,
    )
    data.update(overrides)
    return ErrorReport(**data)


def contact(**overrides):
    data = dict(name="דנה", email="dana@example.com", message="שלום", form_loaded_at=NOW - 30)
    data.update(overrides)
    return ContactMessage(**data)


@pytest.mark.asyncio
async def test_error_report_is_emailed(service, email_client):
    result = await service.submit_error_report(report(), client_ip="1.1.1.1")

    assert result.success
    to, subject, body = email_client.send.call_args.args
    assert to == "team@example.com"
    assert subject == "[קנאפדיה] דיווח על טעות: קנבידיול"
    assert "https://cannapedia.co.il/concept/cbd" in body
    assert email_client.send.call_args.kwargs["reply_to"] == "reader@example.com"


@pytest.mark.asyncio
@pytest.mark.parametrize("overrides", [{"honeypot": "http://spam"}, {"form_loaded_at": NOW - 1}])
async def test_bots_get_silent_success(service, email_client, overrides):
    result = await service.submit_error_report(report(**overrides))
    assert result.success
    email_client.send.assert_not_called()


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "overrides",
    [{"description": "   "}, {"description": "x" * 1001}, {"reporter_email": "not-an-email"}],
)
async def test_invalid_reports_rejected(service, email_client, overrides):
    result = await service.submit_error_report(report(**overrides))
    assert not result.success
    assert result.error
    email_client.send.assert_not_called()


@pytest.mark.asyncio
async def test_contact_rate_limited_per_ip(service):
    results = [
        (await service.submit_contact(contact(), client_ip="2.2.2.2")).success
        for _ in range(CONTACTS_PER_HOUR + 1)
    ]
    assert results == [True] * CONTACTS_PER_HOUR + [False]
    assert (await service.submit_contact(contact(), client_ip="3.3.3.3")).success


@pytest.mark.asyncio
async def test_contact_requires_fields(service):
    result = await service.submit_contact(contact(message=""))
    assert not result.success


@pytest.mark.asyncio
async def test_contact_includes_phone(service, email_client):
    await service.submit_contact(contact(phone="050-0000000"))
    _, subject, body = email_client.send.call_args.args
    assert subject == "פנייה חדשה מקנאפדיה: דנה"
    assert "טלפון: 050-0000000" in body


@pytest.mark.asyncio
async def test_failed_delivery_reported(service, email_client):
    email_client.send.return_value = False
    result = await service.submit_contact(contact())
    assert not result.success
    assert result.error.startswith("שגיאה בשליחת")


@pytest.mark.asyncio
async def test_injected_recipient_wins_over_review_env(tmp_path, email_client, monkeypatch):
    monkeypatch.setenv("REVIEW_EMAIL", "review@example.com")
    limits = RateLimitStore(db_path=str(tmp_path / "limits.db"), clock=lambda: NOW)
    injected = FeedbackService(limits, email_client=email_client, recipient="team@example.com", clock=lambda: NOW)

    await injected.submit_error_report(report())
    assert email_client.send.call_args.args[0] == "team@example.com"

    monkeypatch.delenv("CONTACT_EMAIL", raising=False)
    from_env = FeedbackService(limits, email_client=email_client, clock=lambda: NOW)
    await from_env.submit_error_report(report())
    assert email_client.send.call_args.args[0] == "review@example.com"

    monkeypatch.setenv("REVIEW_EMAIL", "changed@example.com")
    await from_env.submit_error_report(report())
    assert email_client.send.call_args.args[0] == "review@example.com"
