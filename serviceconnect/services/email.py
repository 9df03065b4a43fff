"""Email transports: console (dev), SMTP, or the Resend HTTP API."""
from __future__ import annotations

import logging
import smtplib
from email.message import EmailMessage

import httpx

from serviceconnect.core.config import get_settings

logger = logging.getLogger(__name__)

RESEND_URL = "https://api.resend.com/emails"


def _sender(value: str) -> str:
    # Pasted env values often keep their surrounding quotes.
    return (value or "").strip().strip("\"'").strip()


def _layout(body: str) -> str:
    return (
        '<div style="font-family: Arial, sans-serif; line-height: 1.6; color: #0f172a;">'
        f"{body}"
        '<p style="margin-top: 16px; color: #475569; font-size: 13px;">Service Connect</p>'
        "</div>"
    )


def _console(settings, to_email: str, subject: str, html: str) -> None:
    print(f"[email][console] to={to_email} subject={subject}")


def _smtp(settings, to_email: str, subject: str, html: str) -> None:
    if not settings.smtp_host:
        raise ValueError("SMTP_HOST is required when EMAIL_PROVIDER=smtp")

    msg = EmailMessage()
    msg["From"] = _sender(settings.email_from)
    msg["To"] = to_email
    msg["Subject"] = subject
    msg.set_content("This message needs an HTML-capable mail client.")
    msg.add_alternative(html, subtype="html")

    with smtplib.SMTP(settings.smtp_host, settings.smtp_port, timeout=15) as server:
        if settings.smtp_use_tls:
            server.starttls()
        if settings.smtp_username and settings.smtp_password:
            server.login(settings.smtp_username, settings.smtp_password)
        server.send_message(msg)


def _resend(settings, to_email: str, subject: str, html: str) -> None:
    if not settings.resend_api_key:
        raise ValueError("RESEND_API_KEY is required when EMAIL_PROVIDER=resend")

    res = httpx.post(
        RESEND_URL,
        json={"from": _sender(settings.email_from), "to": [to_email], "subject": subject, "html": html},
        headers={"Authorization": f"Bearer {settings.resend_api_key}"},
        timeout=15,
    )
    if res.status_code >= 400:
        raise RuntimeError(f"Resend error: {res.status_code} {res.text}")


_TRANSPORTS = {"console": _console, "smtp": _smtp, "resend": _resend}


def send_email(to_email: str, subject: str, body_html: str) -> None:
    """Send one email through EMAIL_PROVIDER. Raises on transport errors."""
    settings = get_settings()
    provider = (settings.email_provider or "console").strip().lower()
    transport = _TRANSPORTS.get(provider)
    if transport is None:
        raise ValueError(f"Unsupported EMAIL_PROVIDER: {settings.email_provider}")
    transport(settings, (to_email or "").strip(), subject, _layout(body_html))
    logger.debug("Email sent provider=%s subject=%r", provider, subject)
