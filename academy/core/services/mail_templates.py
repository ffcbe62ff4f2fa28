"""
Transactional email templates.

Each builder is a pure function returning an EmailMessage with matching
HTML and plain-text bodies. User-supplied values are HTML-escaped.
"""

from __future__ import annotations

import html
from datetime import datetime

from academy.core.ports.email import Attachment, EmailAddress, EmailMessage, MailKind

BRAND = "Shrestha Academy"


def _wrap(title: str, inner_html: str) -> str:
    return (
        '<div style="font-family:Arial,sans-serif;max-width:600px;margin:0 auto;">'
        f'<h2 style="color:#4F46E5;">{html.escape(title)}</h2>'
        f"{inner_html}"
        f'<p style="color:#6B7280;font-size:12px;">&copy; {BRAND}</p>'
        "</div>"
    )


def _message(
    to: str,
    subject: str,
    title: str,
    paragraphs: list[str],
    name: str | None = None,
    *,
    kind: MailKind,
    attachments: tuple[Attachment, ...] = (),
) -> EmailMessage:
    body_html = _wrap(title, "".join(f"<p>{html.escape(p)}</p>" for p in paragraphs))
    body_text = "\n\n".join([title, *paragraphs, BRAND])
    return EmailMessage(
        recipient=EmailAddress(to, name),
        subject=subject,
        body_html=body_html,
        body_text=body_text,
        kind=kind,
        attachments=attachments,
    )


def otp_email(to: str, name: str, otp: str, purpose: str, ttl_minutes: int) -> EmailMessage:
    if purpose == "PASSWORD_RESET":
        subject = f"Reset your {BRAND} password"
        intro = "Use the code below to reset your password."
    else:
        subject = f"Verify your {BRAND} account"
        intro = "Use the code below to verify your email address."
    return _message(
        to,
        subject,
        f"Hi {name},",
        [intro, f"Your code is: {otp}", f"It expires in {ttl_minutes} minutes."],
        name,
        kind="OTP",
    )


def contact_admin_email(admin: str, name: str, email: str, phone: str, subject: str, message: str) -> EmailMessage:
    return _message(
        admin,
        f"New contact enquiry: {subject}",
        "New contact form submission",
        [f"From: {name} <{email}>", f"Phone: {phone}", f"Subject: {subject}", message],
        kind="CONTACT",
    )


def contact_ack_email(to: str, name: str, subject: str) -> EmailMessage:
    return _message(
        to,
        f"We received your message - {BRAND}",
        f"Hi {name},",
        [
            f'Thanks for reaching out about "{subject}".',
            "Our team will get back to you within 24-48 hours.",
        ],
        name,
        kind="CONTACT",
    )


def demo_admin_email(admin: str, name: str, email: str, phone: str, message: str | None) -> EmailMessage:
    lines = [f"From: {name} <{email}>", f"Phone: {phone}"]
    if message:
        lines.append(message)
    return _message(admin, "New demo request", "New demo request", lines, kind="DEMO")


def demo_ack_email(to: str, name: str) -> EmailMessage:
    return _message(
        to,
        f"Your demo request - {BRAND}",
        f"Hi {name},",
        ["Thanks for requesting a demo. We will contact you shortly to schedule it."],
        name,
        kind="DEMO",
    )


def placement_otp_email(to: str, name: str, otp: str, ttl_minutes: int) -> EmailMessage:
    return _message(
        to,
        "Verify your placement training registration",
        f"Hi {name},",
        [f"Your verification code is: {otp}", f"It expires in {ttl_minutes} minutes."],
        name,
        kind="PLACEMENT",
    )


def placement_admin_email(admin: str, name: str, email: str, whatsapp: str, course: str) -> EmailMessage:
    return _message(
        admin,
        f"New placement training registration: {course}",
        "New placement training registration",
        [f"Name: {name}", f"Email: {email}", f"WhatsApp: {whatsapp}", f"Course: {course}"],
        kind="PLACEMENT",
    )


def order_confirmation_email(to: str, name: str, order_number: str, titles: list[str], amount: float) -> EmailMessage:
    return _message(
        to,
        f"Order confirmed: {order_number}",
        f"Hi {name},",
        [
            f"Your order {order_number} is confirmed.",
            "Items: " + ", ".join(titles),
            f"Amount paid: INR {amount:.2f}",
        ],
        name,
        kind="ORDER",
    )


def subscription_email(to: str, name: str, plan_name: str, end_date: datetime | None) -> EmailMessage:
    validity = f"valid until {end_date:%d %b %Y}" if end_date else "valid for lifetime"
    return _message(
        to,
        f"Subscription activated - {plan_name}",
        f"Hi {name},",
        [
            f"Your {plan_name} subscription is active and {validity}.",
            "Indicator access is granted to your TradingView username within 24 hours.",
        ],
        name,
        kind="SUBSCRIPTION",
    )


def certificate_email(
    to: str,
    name: str,
    title: str,
    certificate_no: str,
    verify_url: str,
    pdf: bytes | None = None,
) -> EmailMessage:
    """The issued certificate, with the PDF attached when available."""
    attachments = (Attachment(f"{certificate_no}.pdf", pdf),) if pdf else ()
    return _message(
        to,
        f"Your certificate for {title}",
        f"Congratulations {name}!",
        [
            f'Your certificate for "{title}" has been issued.',
            f"Certificate number: {certificate_no}",
            f"Anyone can verify it at {verify_url}",
        ],
        name,
        kind="CERTIFICATE",
        attachments=attachments,
    )
