"""
Email service: sends booking status emails via SMTP.

In development (no SMTP configured), emails are logged to the console
so you can see what *would* be sent without configuring a mail server.
"""

from __future__ import annotations

import logging
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from html import escape

from arena_booking.config import (
    SMTP_FROM_EMAIL,
    SMTP_HOST,
    SMTP_PASSWORD,
    SMTP_PORT,
    SMTP_USE_TLS,
    SMTP_USERNAME,
    smtp_enabled,
)

logger = logging.getLogger(__name__)


def _build_html_body(title: str, message: str) -> str:
    return f"""
    <html>
    <body style="font-family:sans-serif;color:#333">
      <h2>{escape(title)}</h2>
      <p>{escape(message)}</p>
      <p style="margin-top:1em;font-size:0.9em;color:#888">
        You're receiving this because you have a booking with Arena Booking.
      </p>
    </body>
    </html>
    """


async def send_status_email(to_email: str, title: str, message: str) -> None:
    """
    Send (or log) a booking status email.

    If SMTP is not configured, falls back to console output.
    """
    if not smtp_enabled():
        logger.info(
            "📧 [DEV] Would send email to %s:\n  Subject: %s\n  %s",
            to_email, title, message,
        )
        return

    import aiosmtplib

    msg = MIMEMultipart("alternative")
    msg["Subject"] = title
    msg["From"] = SMTP_FROM_EMAIL
    msg["To"] = to_email
    msg.attach(MIMEText(message, "plain"))
    msg.attach(MIMEText(_build_html_body(title, message), "html"))

    try:
        await aiosmtplib.send(
            msg,
            hostname=SMTP_HOST,
            port=SMTP_PORT,
            username=SMTP_USERNAME,
            password=SMTP_PASSWORD,
            start_tls=SMTP_USE_TLS,
        )
        logger.info("Email sent to %s (%s)", to_email, title)
    except Exception:
        logger.exception("Failed to send email to %s", to_email)
        raise
