# mentorhub/services/email_service.py
"""
Transactional email over Resend.

Templates live in mentorhub/templates/emails and are rendered with Jinja2.
Sending without RESEND_API_KEY configured is an UpstreamError, so the batch
jobs report it per record instead of silently dropping mail.
"""
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import resend
from jinja2 import Environment, FileSystemLoader, select_autoescape

from ..config import Settings, get_settings
from ..exceptions import UpstreamError

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates" / "emails"

_env = Environment(
    loader=FileSystemLoader(str(TEMPLATES_DIR)),
    autoescape=select_autoescape(["html"]),
)


def render_email(template_name: str, **context: Any) -> str:
    return _env.get_template(template_name).render(**context)


class EmailService:
    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()

    def send_email(self, to: str, subject: str, html: str) -> Dict[str, Any]:
        """Sends one email and returns Resend's response (contains the message id)."""
        if not self.settings.RESEND_API_KEY:
            raise UpstreamError("Email service not configured")

        resend.api_key = self.settings.RESEND_API_KEY
        try:
            response = resend.Emails.send({
                "from": self.settings.EMAIL_FROM,
                "to": [to],
                "subject": subject,
                "html": html,
            })
        except Exception as e:
            logger.error(f"Failed to send email to {to}: {e}")
            raise UpstreamError(f"Email sending failed: {e}")

        logger.info(f"Email sent to {to} - Subject: {subject}")
        return response
