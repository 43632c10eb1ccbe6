# planexpiry/services/email_service.py
"""
Email notification service for plan expiry notices.

Uses the Resend API to send single-recipient HTML emails from the verified
sender identity.
"""

import logging
from typing import Any

from planexpiry.config import Settings, get_settings

logger = logging.getLogger(__name__)


class EmailService:
    """
    Service for sending transactional notification emails.

    Uses Resend API for delivery.
    """

    def __init__(self, settings: Settings | None = None):
        """Initialize email service with settings."""
        self.settings = settings or get_settings()
        self._resend_client = None

    @property
    def resend_client(self):
        """Lazy-load Resend client."""
        if self._resend_client is None and self.settings.RESEND_API_KEY:
            import resend

            resend.api_key = self.settings.RESEND_API_KEY
            self._resend_client = resend
        return self._resend_client

    def send_html(self, recipient: str, subject: str, html: str) -> dict[str, Any]:
        """
        Send one HTML email.

        Args:
            recipient: Single recipient address
            subject: Rendered subject line
            html: Rendered HTML body

        Returns:
            Dict with status ("sent", "failed" or "skipped"), message_id or error
        """
        if not self.settings.RESEND_API_KEY:
            logger.warning("[EMAIL] RESEND_API_KEY not configured")
            return {"status": "skipped", "reason": "RESEND_API_KEY not set"}

        try:
            response = self.resend_client.Emails.send(
                {
                    "from": self.settings.EMAIL_FROM,
                    "to": [recipient],
                    "subject": subject,
                    "html": html,
                }
            )
        except Exception as e:
            logger.error(f"[EMAIL] Failed to send email to {recipient}: {e}")
            return {"status": "failed", "error": str(e), "recipient": recipient}

        message_id = response.get("id") if response else None
        logger.info(f"[EMAIL] Sent email to {recipient}, id={message_id}")
        return {
            "status": "sent",
            "message_id": message_id,
            "recipient": recipient,
        }
