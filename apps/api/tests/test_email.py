"""Tests for email templates, the Resend sender and notification composition."""

import httpx
import pytest

from app.core.config import settings
from app.services import email_sender, email_templates, notification_service


# =============================================================================
# Templates
# =============================================================================

def test_render_template_escapes_html_values():
    rendered = email_templates.render_template(
        "<p>{{name}}</p>{{block}}{{missing}}",
        {"name": "<b>Eve</b>", "block": "<hr>"},
        escape=True,
        safe_html_vars=frozenset({"block"}),
    )

    assert rendered == "<p>&lt;b&gt;Eve&lt;/b&gt;</p><hr>"


def test_submission_confirmation_contains_management_link():
    link = "http://localhost:3000/e/devconf/abstract/tok123"

    email = email_templates.abstract_submission_confirmation(
        recipient_name="Priya Rao",
        event_name="DevConf",
        abstract_title="Tracing <everything>",
        management_link=link,
    )

    assert email.subject == "Abstract Submitted - DevConf"
    assert link in email.text
    assert f'href="{link}"' in email.html
    assert "Tracing &lt;everything&gt;" in email.html
    assert "Tracing <everything>" in email.text


def test_status_update_for_revision_request():
    email = email_templates.abstract_status_update(
        recipient_name="Priya",
        event_name="DevConf",
        abstract_title="Tracing",
        new_status="REVISION_REQUESTED",
        management_link="http://x/e/devconf/abstract/t",
        review_notes="Trim the intro <please>",
        review_score=72,
    )

    assert email.subject == "Revision Requested - DevConf"
    assert "REVISION REQUESTED" in email.text
    assert "72/100" in email.html
    assert "Trim the intro &lt;please&gt;" in email.html
    assert "Reviewer Notes:\nTrim the intro <please>" in email.text


def test_status_update_without_review_details():
    email = email_templates.abstract_status_update(
        recipient_name="Priya",
        event_name="DevConf",
        abstract_title="Tracing",
        new_status="ACCEPTED",
        management_link="http://x",
    )

    assert email.subject == "Abstract Accepted! - DevConf"
    assert "Score" not in email.text
    assert "Reviewer Notes" not in email.html


def test_invitation_template():
    email = email_templates.user_invitation(
        recipient_name="Ivy",
        organization_name="Acme Events",
        inviter_name="Ada Admin",
        role="Reviewer",
        setup_link="http://localhost:3000/accept-invitation?token=abc&email=ivy%40example.com",
        expires_in="7 days",
    )

    assert email.subject == "You've been invited to join Acme Events"
    assert "token=abc&email=ivy%40example.com" in email.text
    assert "token=abc&amp;email=ivy%40example.com" in email.html
    assert "7 days" in email.text


# =============================================================================
# Sender
# =============================================================================

@pytest.mark.asyncio
async def test_send_email_without_api_key(monkeypatch):
    monkeypatch.setattr(settings, "RESEND_API_KEY", "")

    result = await email_sender.send_email(to_email="a@example.com", subject="Hi", html="<p>Hi</p>")

    assert result == {"success": False, "error": "Email service not configured"}


@pytest.mark.asyncio
async def test_send_email_posts_to_resend(monkeypatch):
    monkeypatch.setattr(settings, "RESEND_API_KEY", "re_test")
    captured = {}

    async def fake_request_with_retries(request_fn, **kwargs):
        captured.update(kwargs)
        req = httpx.Request("POST", email_sender.RESEND_SEND_URL)
        return httpx.Response(200, json={"id": "msg_123"}, request=req)

    monkeypatch.setattr(email_sender, "request_with_retries", fake_request_with_retries)

    result = await email_sender.send_email(
        to_email="a@example.com", subject="Hi", html="<p>Hi</p>", text="Hi"
    )

    assert result == {"success": True, "message_id": "msg_123"}
    assert captured["max_attempts"] == email_sender.RESEND_MAX_ATTEMPTS


@pytest.mark.asyncio
async def test_send_email_reports_provider_error(monkeypatch):
    monkeypatch.setattr(settings, "RESEND_API_KEY", "re_test")

    async def fake_request_with_retries(request_fn, **kwargs):
        req = httpx.Request("POST", email_sender.RESEND_SEND_URL)
        return httpx.Response(422, text="invalid from", request=req)

    monkeypatch.setattr(email_sender, "request_with_retries", fake_request_with_retries)

    result = await email_sender.send_email(to_email="a@example.com", subject="Hi", html="x")

    assert result["success"] is False
    assert result["error"].startswith("Resend API error 422")


@pytest.mark.asyncio
async def test_send_email_reports_transport_error(monkeypatch):
    monkeypatch.setattr(settings, "RESEND_API_KEY", "re_test")

    async def fake_request_with_retries(request_fn, **kwargs):
        raise httpx.ConnectError("down", request=httpx.Request("POST", email_sender.RESEND_SEND_URL))

    monkeypatch.setattr(email_sender, "request_with_retries", fake_request_with_retries)

    result = await email_sender.send_email(to_email="a@example.com", subject="Hi", html="x")

    assert result == {"success": False, "error": "Email request failed: ConnectError"}


# =============================================================================
# Notifications
# =============================================================================

def test_links_built_from_app_url(monkeypatch):
    monkeypatch.setattr(settings, "APP_URL", "https://events.example.com/")

    assert (
        notification_service.management_link("devconf", "tok")
        == "https://events.example.com/e/devconf/abstract/tok"
    )
    assert notification_service.invitation_link("raw", "ivy@example.com") == (
        "https://events.example.com/accept-invitation?token=raw&email=ivy%40example.com"
    )


@pytest.mark.asyncio
async def test_status_update_without_token_links_event_page(sent_emails):
    notice = notification_service.StatusNotification(
        to_email="s@example.com",
        recipient_name="S",
        event_name="DevConf",
        event_slug="devconf",
        abstract_id="a1",
        abstract_title="T",
        new_status="ACCEPTED",
        review_notes=None,
        review_score=None,
        management_token=None,
    )

    assert await notification_service.send_status_update(notice) is True
    assert len(sent_emails) == 1
    assert sent_emails[0].text.rstrip().endswith("/e/devconf")


@pytest.mark.asyncio
async def test_send_failure_never_raises(monkeypatch):
    async def exploding_send(**kwargs):
        raise RuntimeError("provider exploded")

    monkeypatch.setattr(email_sender, "send_email", exploding_send)
    notice = notification_service.SubmissionConfirmation(
        to_email="s@example.com",
        recipient_name="S",
        event_name="DevConf",
        event_slug="devconf",
        abstract_title="T",
        management_token="tok",
    )

    assert await notification_service.send_submission_confirmation(notice) is False
