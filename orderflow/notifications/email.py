"""Email notification service for OrderFlow.

Sends lifecycle notifications via SMTP using Jinja2 templates.
"""
from __future__ import annotations

import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, select_autoescape

from orderflow.config import NotificationsConfig, get_config
from orderflow.errors import NotificationError

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).parent / "templates"


class EmailService:
    """Service for sending emails with template support."""

    def __init__(self, config: NotificationsConfig | None = None):
        config = config or get_config().notifications
        self.smtp_host = config.smtp_host
        self.smtp_port = config.smtp_port
        self.smtp_user = config.smtp_user
        self.smtp_password = config.smtp_password
        self.from_email = config.from_email or config.smtp_user

        self.jinja_env = Environment(
            loader=FileSystemLoader(str(TEMPLATE_DIR)),
            autoescape=select_autoescape(["html"]),
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.smtp_user and self.smtp_password)

    def send_email(
        self,
        to_emails: list[str],
        subject: str,
        html_body: str,
        text_body: str | None = None,
        cc_emails: list[str] | None = None,
    ) -> bool:
        """Send an email.

        Returns:
            True if sent, False if SMTP credentials are not configured

        Raises:
            NotificationError: The SMTP server rejected or failed the send
        """
        if not self.is_configured:
            logger.warning(f"SMTP credentials not configured; not sending '{subject}' to {to_emails}")
            return False

        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = self.from_email
        msg["To"] = ", ".join(to_emails)
        if cc_emails:
            msg["Cc"] = ", ".join(cc_emails)

        if text_body:
            msg.attach(MIMEText(text_body, "plain"))
        msg.attach(MIMEText(html_body, "html"))

        try:
            with smtplib.SMTP(self.smtp_host, self.smtp_port) as server:
                server.starttls()
                server.login(self.smtp_user, self.smtp_password)
                server.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            raise NotificationError(f"Failed to send email: {e}") from e
        return True

    def render_template(self, template_name: str, context: dict[str, Any]) -> str:
        """Render an email template (e.g. ``notification.html``) with ``context``."""
        template = self.jinja_env.get_template(template_name)
        return template.render(**context)
