"""Async email service using aiosmtplib.

Sends account status updates and new-enrollment notifications rendered
from Jinja2 HTML templates. Sending is fire-and-forget: routes schedule
these coroutines as background tasks, and failures are logged, never
raised.
"""

import logging
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Any, Dict, Optional

import aiosmtplib
from jinja2 import Environment, FileSystemLoader

import config

logger = logging.getLogger(__name__)

_jinja_env = Environment(
    loader=FileSystemLoader(str(config.TEMPLATE_DIR / "email")),
    autoescape=True,
)


class EmailService:
    """Async email sending service."""

    @staticmethod
    def _render_template(template_name: str, **kwargs: Any) -> str:
        """Render a Jinja2 email template."""
        return _jinja_env.get_template(template_name).render(**kwargs)

    @staticmethod
    async def _send_email(to_email: str, subject: str, html_body: str) -> bool:
        """Send an email via SMTP.

        Args:
            to_email: Recipient email address.
            subject: Email subject.
            html_body: HTML email body.

        Returns:
            True if sent successfully, False otherwise.
        """
        if not config.SMTP_USERNAME or not config.SMTP_PASSWORD:
            logger.warning("SMTP credentials not configured. Email not sent to %s", to_email)
            return False

        message = MIMEMultipart("alternative")
        message["From"] = f"{config.SMTP_FROM_NAME} <{config.SMTP_FROM_EMAIL}>"
        message["To"] = to_email
        message["Subject"] = subject
        message.attach(MIMEText(html_body, "html"))

        try:
            await aiosmtplib.send(
                message,
                hostname=config.SMTP_HOST,
                port=config.SMTP_PORT,
                username=config.SMTP_USERNAME,
                password=config.SMTP_PASSWORD,
                start_tls=config.SMTP_USE_TLS,
                timeout=config.SMTP_TIMEOUT_SECONDS,
            )
        except (aiosmtplib.SMTPException, OSError) as e:
            logger.error("Failed to send email to %s: %s", to_email, e)
            return False
        logger.info("Email sent to %s: %s", to_email, subject)
        return True

    @classmethod
    async def send_status_update_email(
        cls, to_email: Optional[str], name: Optional[str], status: str
    ) -> bool:
        """Tell an account holder their status changed."""
        if not to_email:
            return False
        html = cls._render_template("status_update.html", name=name or "there", status=status)
        return await cls._send_email(
            to_email, f"Enrollment Status Update - {status.upper()}", html
        )

    @classmethod
    async def send_enrollment_notification(
        cls, to_email: Optional[str], details: Dict[str, Any]
    ) -> bool:
        """Notify the admin mailbox of a completed enrollment."""
        if not to_email:
            logger.warning("ADMIN_EMAIL not configured. Enrollment notification skipped")
            return False
        html = cls._render_template("enrollment_notification.html", **details)
        return await cls._send_email(to_email, "New enrollment awaiting review", html)
