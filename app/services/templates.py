"""
Email templates for FormRelay
Pure functions: submission + timestamp in, subjects and bodies out. No I/O.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from html import escape
from typing import Any, Dict, List, Optional, Sequence, Tuple

from app.types import ServiceRequest, SupportRequest, Urgency

NOT_PROVIDED = "Not provided"
FLEXIBLE = "Flexible"

THEME = {
    "primary": "#14b8a6",
    "background": "#f8fafc",
    "card_bg": "#ffffff",
    "text_primary": "#0f172a",
    "text_muted": "#64748b",
    "border": "#e2e8f0",
}


@dataclass(frozen=True)
class RenderedEmail:
    subject: str
    html: str
    text: str
    template_params: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class RenderedNotifications:
    """The two bodies produced for one submission."""

    business: RenderedEmail
    client: RenderedEmail


def _or(value: Optional[str], placeholder: str = NOT_PROVIDED) -> str:
    return value if value else placeholder


def format_timestamp(moment: datetime) -> str:
    formatted = moment.strftime("%B %d, %Y at %I:%M %p")
    zone = moment.strftime("%Z")
    return f"{formatted} {zone}" if zone else formatted


def _html_rows(rows: Sequence[Tuple[str, str]]) -> str:
    return "\n".join(
        f"""
          <tr>
            <td style="padding:8px 12px;border-bottom:1px solid {THEME['border']};color:{THEME['text_muted']};width:35%;">{escape(label)}</td>
            <td style="padding:8px 12px;border-bottom:1px solid {THEME['border']};color:{THEME['text_primary']};">{escape(value)}</td>
          </tr>"""
        for label, value in rows
    )


def _html_paragraphs(text: str) -> str:
    """Escape text and keep its line breaks."""
    return "<br>".join(escape(line) for line in text.split("\n"))


def _text_rows(rows: Sequence[Tuple[str, str]]) -> str:
    return "\n".join(f"{label}: {value}" for label, value in rows)


def get_base_template(title: str, intro_html: str, sections_html: str, footer: str) -> str:
    """Base HTML wrapper for all emails"""
    return f"""<!DOCTYPE html>
<html>
  <head>
    <meta charset="utf-8">
    <title>{escape(title)}</title>
  </head>
  <body style="margin:0;padding:24px;background:{THEME['background']};font-family:-apple-system,'Segoe UI',Arial,sans-serif;">
    <div style="max-width:600px;margin:0 auto;background:{THEME['card_bg']};border-radius:8px;padding:24px;">
      <h2 style="color:{THEME['primary']};margin-top:0;">{escape(title)}</h2>
      {intro_html}
      {sections_html}
      <p style="font-size:12px;color:{THEME['text_muted']};margin-top:24px;">{escape(footer)}</p>
    </div>
  </body>
</html>
"""


def _discount_text(submission: ServiceRequest) -> str:
    if not submission.discount_claimed:
        return "No"
    return f"Yes ({submission.deal_amount})" if submission.deal_amount else "Yes"


def render_service_request(
    submission: ServiceRequest,
    submitted_at: datetime,
    business_name: str = "Our Team",
) -> RenderedNotifications:
    """Render the business notification and client confirmation for a service request."""
    when = format_timestamp(submitted_at)
    service = _or(submission.service_type, "General service")
    urgency = submission.urgency.value if submission.urgency else NOT_PROVIDED
    preferred_date = _or(submission.preferred_date, FLEXIBLE)
    preferred_time = _or(submission.preferred_time, FLEXIBLE)

    rows: List[Tuple[str, str]] = [
        ("Name", submission.name),
        ("Email", submission.email),
        ("Phone", _or(submission.phone)),
        ("Address", _or(submission.full_address)),
        ("Service Type", service),
        ("Urgency", urgency),
        ("Preferred Date", preferred_date),
        ("Preferred Time", preferred_time),
        ("Discount Claimed", _discount_text(submission)),
        ("Submitted", when),
    ]

    base_subject = submission.subject or "New Service Request"
    business_subject = f"{base_subject} from {submission.name}"
    if submission.urgency == Urgency.URGENT:
        business_subject = f"[URGENT] {business_subject}"

    business_html = get_base_template(
        title="New Service Request",
        intro_html="<p>A new service request was submitted through the website.</p>",
        sections_html=(
            f'<table style="width:100%;border-collapse:collapse;">{_html_rows(rows)}\n</table>'
            f"<h3>Request Details</h3><p>{_html_paragraphs(submission.message)}</p>"
        ),
        footer="Reply to this email to respond to the customer directly.",
    )
    business_text = (
        "New Service Request\n\n"
        f"{_text_rows(rows)}\n\n"
        f"Request Details:\n{submission.message}\n"
    )
    business_params: Dict[str, Any] = {
        "client_name": submission.name,
        "client_email": submission.email,
        "client_phone": _or(submission.phone),
        "service_details": submission.message,
        "subject": base_subject,
        "address": _or(submission.full_address),
        "service_type": service,
        "urgency": urgency,
        "preferred_date": preferred_date,
        "preferred_time": preferred_time,
        "discount_claimed": _discount_text(submission) if submission.discount_claimed else "",
        "submitted_at": when,
    }

    client_subject = f"We received your request - {business_name}"
    summary_rows: List[Tuple[str, str]] = [
        ("Service", service),
        ("Preferred Date", preferred_date),
        ("Preferred Time", preferred_time),
        ("Address", _or(submission.full_address)),
    ]
    client_html = get_base_template(
        title="Thank you for your request",
        intro_html=(
            f"<p>Dear {escape(submission.name)},</p>"
            f"<p>Thank you for contacting {escape(business_name)}. We received your request on "
            f"{escape(when)} and will get back to you shortly.</p>"
        ),
        sections_html=(
            f'<table style="width:100%;border-collapse:collapse;">{_html_rows(summary_rows)}\n</table>'
            f"<h3>Your Message</h3><p>{_html_paragraphs(submission.message)}</p>"
        ),
        footer=f"This is an automated confirmation from {business_name}. Please do not reply.",
    )
    client_text = (
        f"Dear {submission.name},\n\n"
        f"Thank you for contacting {business_name}. We received your request on {when} "
        "and will get back to you shortly.\n\n"
        f"{_text_rows(summary_rows)}\n\n"
        f"Your Message:\n{submission.message}\n"
    )
    client_params: Dict[str, Any] = {
        "client_name": submission.name,
        "subject": submission.subject or "Service Request",
        "service_details": submission.message,
        "business_name": business_name,
    }

    return RenderedNotifications(
        business=RenderedEmail(business_subject, business_html, business_text, business_params),
        client=RenderedEmail(client_subject, client_html, client_text, client_params),
    )


def render_support_request(
    submission: SupportRequest,
    submitted_at: datetime,
    business_name: str = "Our Team",
) -> RenderedNotifications:
    """Render the support-team notification and the submitter's confirmation."""
    when = format_timestamp(submitted_at)
    topic = submission.subject or "Support Request"
    rows: List[Tuple[str, str]] = [
        ("Name", submission.name),
        ("Email", submission.email),
        ("Phone", _or(submission.phone)),
        ("Subject", topic),
        ("Submitted", when),
    ]

    business_html = get_base_template(
        title="New Support Request",
        intro_html="<p>A new support request was submitted through the website.</p>",
        sections_html=(
            f'<table style="width:100%;border-collapse:collapse;">{_html_rows(rows)}\n</table>'
            f"<h3>Message</h3><p>{_html_paragraphs(submission.message)}</p>"
        ),
        footer="Reply to this email to respond to the sender directly.",
    )
    business_text = f"New Support Request\n\n{_text_rows(rows)}\n\nMessage:\n{submission.message}\n"

    client_html = get_base_template(
        title="We received your message",
        intro_html=(
            f"<p>Dear {escape(submission.name)},</p>"
            f"<p>Thanks for reaching out to {escape(business_name)} support. "
            "A member of our team will reply as soon as possible.</p>"
        ),
        sections_html=f"<h3>{escape(topic)}</h3><p>{_html_paragraphs(submission.message)}</p>",
        footer=f"This is an automated confirmation from {business_name}. Please do not reply.",
    )
    client_text = (
        f"Dear {submission.name},\n\n"
        f"Thanks for reaching out to {business_name} support. "
        "A member of our team will reply as soon as possible.\n\n"
        f"{topic}:\n{submission.message}\n"
    )

    return RenderedNotifications(
        business=RenderedEmail(
            f"Support: {topic} from {submission.name}",
            business_html,
            business_text,
            {
                "client_name": submission.name,
                "client_email": submission.email,
                "client_phone": _or(submission.phone),
                "subject": topic,
                "service_details": submission.message,
                "submitted_at": when,
            },
        ),
        client=RenderedEmail(
            f"We received your message - {business_name}",
            client_html,
            client_text,
            {
                "client_name": submission.name,
                "subject": topic,
                "service_details": submission.message,
                "business_name": business_name,
            },
        ),
    )
