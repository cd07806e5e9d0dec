"""Gmail integration for sending approved outreach emails."""

import logging
import os
import base64
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart

from leadflow.core.config import get_settings
from leadflow.core.errors import ProviderError

logger = logging.getLogger(__name__)


class EmailService:
    """
    Service for sending emails via Gmail API.

    Uses service account with domain-wide delegation to OUTREACH_SENDER.
    """

    def __init__(self):
        """Initialize service."""
        self._service = None
        self._settings = None
        self._available = None

    @property
    def settings(self):
        """Lazy load settings."""
        if self._settings is None:
            self._settings = get_settings()
        return self._settings

    @property
    def service(self):
        """Lazy initialize Gmail service."""
        if self._service is None:
            self._service = self._build_service()
        return self._service

    def _build_service(self):
        """Build Gmail service with service account."""
        from google.oauth2 import service_account
        from googleapiclient.discovery import build

        credentials_path = self.settings.GOOGLE_CREDENTIALS_PATH

        if not os.path.exists(credentials_path):
            logger.warning(f"Google credentials not found: {credentials_path}")
            return None
        if not self.settings.OUTREACH_SENDER:
            logger.warning("OUTREACH_SENDER is not set")
            return None

        try:
            credentials = service_account.Credentials.from_service_account_file(
                credentials_path,
                scopes=["https://www.googleapis.com/auth/gmail.send"]
            )

            # Delegate to email sender
            delegated_credentials = credentials.with_subject(
                self.settings.OUTREACH_SENDER
            )

            service = build("gmail", "v1", credentials=delegated_credentials)
            logger.info("Gmail service initialized")
            return service

        except Exception as e:
            logger.error(f"Failed to initialize Gmail service: {e}")
            return None

    def is_available(self) -> bool:
        """Check if email service is available."""
        if self._available is None:
            self._available = self.service is not None
        return self._available

    def _send_email(self, to_email: str, subject: str, html_body: str) -> None:
        """
        Internal method to send email.

        Args:
            to_email: Recipient email
            subject: Email subject
            html_body: HTML email body

        Raises:
            ProviderError: Service unavailable or Gmail rejected the message
        """
        if not self.is_available():
            raise ProviderError("email", "email service not available")

        try:
            message = MIMEMultipart()
            message["to"] = to_email
            message["from"] = self.settings.OUTREACH_SENDER
            message["subject"] = subject

            message.attach(MIMEText(html_body, "html"))

            # Encode and send
            raw = base64.urlsafe_b64encode(message.as_bytes()).decode()
            self.service.users().messages().send(
                userId="me",
                body={"raw": raw}
            ).execute()

        except Exception as e:
            logger.error(f"Failed to send email to {to_email}: {e}")
            raise ProviderError("email", f"failed to send to {to_email}: {e}") from e

        logger.info(f"Email sent to {to_email}: {subject}")

    def send_outreach_email(self, to_email: str, subject: str, html_body: str) -> None:
        """Send an approved outreach draft."""
        self._send_email(to_email=to_email, subject=subject, html_body=html_body)


# Singleton instance
email_service = EmailService()
