"""SMTP implementation of NotifierPort.

Renders the password-reset templates and delivers them over SMTP in a
worker thread. When EMAIL_HOST is not configured the message is logged
instead of sent, so local development works without a mail server.
"""

import asyncio
import logging
import os
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from string import Template
from typing import Any

from port.notifier import NotificationTemplate

logger = logging.getLogger(__name__)

EMAIL_HOST = os.getenv('EMAIL_HOST', '')
EMAIL_PORT = int(os.getenv('EMAIL_PORT', '587'))
EMAIL_USER = os.getenv('EMAIL_USER', '')
EMAIL_PASSWORD = os.getenv('EMAIL_PASSWORD', '')
EMAIL_FROM = os.getenv('EMAIL_FROM', 'noreply@bugspyjs.com')
SMTP_TIMEOUT_SECONDS = 30

_TEMPLATES: dict[NotificationTemplate, tuple[str, Template, Template]] = {
    NotificationTemplate.PASSWORD_RESET: (
        "Reset your BugSpy password",
        Template(
            "We received a request to reset your password.\n\n"
            "Open this link to choose a new one:\n$reset_url\n\n"
            "The link expires in $expires_in_minutes minutes. "
            "If you did not ask for a reset, you can ignore this email."
        ),
        Template(
            "<p>We received a request to reset your password.</p>"
            '<p><a href="$reset_url">Reset password</a></p>'
            "<p>The link expires in $expires_in_minutes minutes. "
            "If you did not ask for a reset, you can ignore this email.</p>"
        ),
    ),
    NotificationTemplate.PASSWORD_RESET_CONFIRMATION: (
        "Your BugSpy password was changed",
        Template(
            "Your password was reset successfully.\n\n"
            "If you did not make this change, contact support immediately."
        ),
        Template(
            "<p>Your password was reset successfully.</p>"
            "<p>If you did not make this change, contact support immediately.</p>"
        ),
    ),
}


def _redact(address: str) -> str:
    if "@" not in address:
        return "redacted"
    local, domain = address.split("@", 1)
    return f"{local[:2]}***@{domain}"


def render(template: NotificationTemplate, data: dict[str, Any]) -> tuple[str, str, str]:
    """Return (subject, text body, html body) for a template."""
    subject, text, html = _TEMPLATES[template]
    return subject, text.safe_substitute(data), html.safe_substitute(data)


class SmtpNotifier:
    def __init__(
        self,
        host: str | None = None,
        port: int | None = None,
        username: str | None = None,
        password: str | None = None,
        sender: str | None = None,
    ):
        self.host = EMAIL_HOST if host is None else host
        self.port = EMAIL_PORT if port is None else port
        self.username = EMAIL_USER if username is None else username
        self.password = EMAIL_PASSWORD if password is None else password
        self.sender = EMAIL_FROM if sender is None else sender

    @property
    def is_configured(self) -> bool:
        return bool(self.host)

    async def send(self, address: str, template: NotificationTemplate, data: dict[str, Any]) -> None:
        subject, text_body, html_body = render(template, data)

        if not self.is_configured:
            # No SMTP server: log only; the body is omitted since it may hold a reset link
            logger.info(
                "Email not configured, skipping delivery",
                extra={"to": _redact(address), "template": template.value, "subject": subject},
            )
            return

        await asyncio.to_thread(self._send_sync, address, subject, text_body, html_body)
        logger.info("Email sent", extra={"to": _redact(address), "template": template.value})

    def _send_sync(self, address: str, subject: str, text_body: str, html_body: str) -> None:
        msg = MIMEMultipart('alternative')
        msg['From'] = self.sender
        msg['To'] = address
        msg['Subject'] = subject
        msg.attach(MIMEText(text_body, 'plain'))
        msg.attach(MIMEText(html_body, 'html'))

        if self.port == 465:
            with smtplib.SMTP_SSL(self.host, self.port, timeout=SMTP_TIMEOUT_SECONDS) as server:
                if self.username and self.password:
                    server.login(self.username, self.password)
                server.send_message(msg)
        else:
            with smtplib.SMTP(self.host, self.port, timeout=SMTP_TIMEOUT_SECONDS) as server:
                if self.username and self.password:
                    server.starttls()
                    server.login(self.username, self.password)
                server.send_message(msg)
