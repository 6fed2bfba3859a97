"""Built-in email templates.

Templates use {{variable}} placeholders. Values are HTML-escaped when
rendered into the HTML body; names listed in `safe_html_vars` are inserted
as-is (pre-built fragments).
"""

from __future__ import annotations

import html
import re
from dataclasses import dataclass

VARIABLE_PATTERN = re.compile(r"\{\{\s*([a-z_]+)\s*\}\}")


@dataclass(frozen=True)
class RenderedEmail:
    subject: str
    html: str
    text: str


def render_template(
    template: str,
    variables: dict[str, str],
    *,
    escape: bool,
    safe_html_vars: frozenset[str] = frozenset(),
) -> str:
    """Replace {{name}} placeholders; missing variables become empty strings."""

    def replace_var(match: re.Match) -> str:
        name = match.group(1)
        value = variables.get(name, "")
        if escape and name not in safe_html_vars:
            return html.escape(value)
        return value

    return VARIABLE_PATTERN.sub(replace_var, template)


_LAYOUT = """<!DOCTYPE html>
<html>
<head><meta charset="utf-8"><title>{{heading}}</title></head>
<body style="font-family: -apple-system, 'Segoe UI', Roboto, Arial, sans-serif; line-height: 1.6; color: #333; max-width: 600px; margin: 0 auto; padding: 20px;">
  <div style="background: {{accent}}; padding: 30px; border-radius: 10px 10px 0 0;">
    <h1 style="color: white; margin: 0; font-size: 24px;">{{heading}}</h1>
    <p style="color: rgba(255,255,255,0.9); margin: 10px 0 0 0;">{{subheading}}</p>
  </div>
  <div style="background: #f9fafb; padding: 30px; border: 1px solid #e5e7eb; border-top: none;">
    {{content}}
    <div style="text-align: center; margin: 30px 0;">
      <a href="{{action_url}}" style="display: inline-block; background: {{accent}}; color: white; padding: 14px 28px; text-decoration: none; border-radius: 8px;">{{action_label}}</a>
    </div>
  </div>
</body>
</html>
"""

DEFAULT_ACCENT = "#00aade"


def _layout(
    *,
    heading: str,
    subheading: str,
    content_html: str,
    action_url: str,
    action_label: str,
    accent: str = DEFAULT_ACCENT,
) -> str:
    return render_template(
        _LAYOUT,
        {
            "heading": heading,
            "subheading": subheading,
            "content": content_html,
            "action_url": action_url,
            "action_label": action_label,
            "accent": accent,
        },
        escape=True,
        safe_html_vars=frozenset({"content"}),
    )


# =============================================================================
# Reviewer invitation
# =============================================================================

_INVITATION_HTML = """<p>Hello <strong>{{recipient_name}}</strong>,</p>
<p>{{inviter_name}} has invited you to join <strong>{{organization_name}}</strong> as a <strong>{{role}}</strong>.</p>
<p>Use the button below to set your password. This link expires in {{expires_in}}.</p>"""

_INVITATION_TEXT = """You've been invited to join {{organization_name}}

Hello {{recipient_name}},

{{inviter_name}} has invited you to join {{organization_name}} as a {{role}}.

Set up your account here:
{{setup_link}}

This link expires in {{expires_in}}. If you didn't expect this invitation, you can ignore this email.
"""


def user_invitation(
    *,
    recipient_name: str,
    organization_name: str,
    inviter_name: str,
    role: str,
    setup_link: str,
    expires_in: str,
) -> RenderedEmail:
    variables = {
        "recipient_name": recipient_name,
        "organization_name": organization_name,
        "inviter_name": inviter_name,
        "role": role,
        "setup_link": setup_link,
        "expires_in": expires_in,
    }
    return RenderedEmail(
        subject=f"You've been invited to join {organization_name}",
        html=_layout(
            heading="You're Invited!",
            subheading=f"Join {organization_name}",
            content_html=render_template(_INVITATION_HTML, variables, escape=True),
            action_url=setup_link,
            action_label="Set Up Your Account",
        ),
        text=render_template(_INVITATION_TEXT, variables, escape=False),
    )


# =============================================================================
# Abstract submission confirmation
# =============================================================================

_CONFIRMATION_HTML = """<p>Dear <strong>{{recipient_name}}</strong>,</p>
<p>Your abstract has been successfully submitted for <strong>{{event_name}}</strong>.</p>
<p><strong>Title:</strong> {{abstract_title}}<br><strong>Status:</strong> Submitted</p>
<p>You can view the status of your abstract, make edits, and see reviewer feedback using the link below.</p>
<p style="background: #fef3c7; padding: 15px; border-radius: 8px;"><strong>Important:</strong> Save this email! The link is your personal access link to manage your submission.</p>"""

_CONFIRMATION_TEXT = """Abstract Submitted - {{event_name}}

Dear {{recipient_name}},

Your abstract has been successfully submitted for {{event_name}}.

Title: {{abstract_title}}
Status: Submitted

View or edit your submission:
{{management_link}}

Save this email! The link above is your personal access link to manage your submission.
"""


def abstract_submission_confirmation(
    *,
    recipient_name: str,
    event_name: str,
    abstract_title: str,
    management_link: str,
) -> RenderedEmail:
    variables = {
        "recipient_name": recipient_name,
        "event_name": event_name,
        "abstract_title": abstract_title,
        "management_link": management_link,
    }
    return RenderedEmail(
        subject=f"Abstract Submitted - {event_name}",
        html=_layout(
            heading="Abstract Submitted!",
            subheading=event_name,
            content_html=render_template(_CONFIRMATION_HTML, variables, escape=True),
            action_url=management_link,
            action_label="View Your Abstract",
        ),
        text=render_template(_CONFIRMATION_TEXT, variables, escape=False),
    )


# =============================================================================
# Abstract status update
# =============================================================================

STATUS_MESSAGES: dict[str, tuple[str, str, str]] = {
    "UNDER_REVIEW": (
        "Abstract Under Review",
        "Your abstract is now being reviewed by our committee. We will notify you once a decision has been made.",
        "#f59e0b",
    ),
    "ACCEPTED": (
        "Abstract Accepted!",
        "Congratulations! Your abstract has been accepted. We look forward to your presentation.",
        "#10b981",
    ),
    "REJECTED": (
        "Abstract Decision",
        "Thank you for your submission. After careful review, we are unable to accept your abstract for this event.",
        "#6b7280",
    ),
    "REVISION_REQUESTED": (
        "Revision Requested",
        "The review committee has requested revisions to your abstract. Please update your submission using the link below.",
        "#f97316",
    ),
}

_STATUS_HTML = """<p>Dear <strong>{{recipient_name}}</strong>,</p>
<p>{{status_body}}</p>
<p><strong>Title:</strong> {{abstract_title}}<br><strong>Status:</strong> {{status_label}}{{score_line}}</p>
{{notes_block}}"""

_STATUS_TEXT = """{{heading}} - {{event_name}}

Dear {{recipient_name}},

{{status_body}}

Abstract Details:
- Title: {{abstract_title}}
- Status: {{status_label}}{{score_line}}
{{notes_block}}
View your abstract:
{{management_link}}
"""


def abstract_status_update(
    *,
    recipient_name: str,
    event_name: str,
    abstract_title: str,
    new_status: str,
    management_link: str,
    review_notes: str | None = None,
    review_score: int | None = None,
) -> RenderedEmail:
    heading, body, accent = STATUS_MESSAGES.get(
        new_status,
        ("Abstract Status Update", "The status of your abstract has been updated.", DEFAULT_ACCENT),
    )
    variables = {
        "recipient_name": recipient_name,
        "event_name": event_name,
        "abstract_title": abstract_title,
        "status_label": new_status.replace("_", " "),
        "status_body": body,
        "heading": heading,
        "management_link": management_link,
    }

    html_vars = dict(variables)
    text_vars = dict(variables)
    if review_score is not None:
        html_vars["score_line"] = f"<br><strong>Score:</strong> {review_score}/100"
        text_vars["score_line"] = f"\n- Score: {review_score}/100"
    if review_notes:
        html_vars["notes_block"] = (
            "<div style=\"background: white; padding: 15px; border-radius: 8px;\">"
            f"<strong>Reviewer Notes:</strong><br>{html.escape(review_notes)}</div>"
        )
        text_vars["notes_block"] = f"\nReviewer Notes:\n{review_notes}\n"

    return RenderedEmail(
        subject=f"{heading} - {event_name}",
        html=_layout(
            heading=heading,
            subheading=event_name,
            content_html=render_template(
                _STATUS_HTML,
                html_vars,
                escape=True,
                safe_html_vars=frozenset({"score_line", "notes_block"}),
            ),
            action_url=management_link,
            action_label="View Your Abstract",
            accent=accent,
        ),
        text=render_template(_STATUS_TEXT, text_vars, escape=False),
    )
