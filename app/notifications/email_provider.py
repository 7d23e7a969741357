"""
Email Provider

Abstract email sending with support for multiple providers.
Default: Gmail API, sending as the advisor with their OAuth access token
Fallback: SMTP (for self-hosted)
Development: Console
"""

import base64
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional

logger = logging.getLogger(__name__)

GMAIL_SEND_URL = "https://gmail.googleapis.com/gmail/v1/users/me/messages/send"


@dataclass
class EmailMessage:
    """Email message to send."""
    to: str
    subject: str
    html_body: str
    plain_text_body: str
    from_email: Optional[str] = None
    reply_to: Optional[str] = None


@dataclass
class SendResult:
    """Result of sending an email."""
    success: bool
    message_id: Optional[str] = None
    error: Optional[str] = None


def build_mime(message: EmailMessage, default_from: Optional[str] = None) -> MIMEMultipart:
    """Multipart/alternative MIME message with plain and HTML parts."""
    msg = MIMEMultipart("alternative")
    msg["Subject"] = message.subject
    msg["To"] = message.to
    sender = message.from_email or default_from
    if sender:
        msg["From"] = sender
    if message.reply_to:
        msg["Reply-To"] = message.reply_to

    msg.attach(MIMEText(message.plain_text_body, "plain", "utf-8"))
    msg.attach(MIMEText(message.html_body, "html", "utf-8"))
    return msg


class EmailProvider(ABC):
    """Abstract base class for email providers."""

    # Whether send() needs an access token acquired on the sender's behalf
    requires_token: bool = False

    @abstractmethod
    async def send(self, message: EmailMessage, access_token: Optional[str] = None) -> SendResult:
        """Send an email message."""
        pass

    @abstractmethod
    def is_configured(self) -> bool:
        """Check if the provider is properly configured."""
        pass


class GmailProvider(EmailProvider):
    """
    Gmail API provider.

    Sends from the mailbox that owns the OAuth access token.
    https://developers.google.com/gmail/api/reference/rest/v1/users.messages/send
    """

    requires_token = True

    def __init__(self, from_email: Optional[str] = None, timeout: float = 30.0):
        self.from_email = from_email
        self.timeout = timeout

    def is_configured(self) -> bool:
        return True

    async def send(self, message: EmailMessage, access_token: Optional[str] = None) -> SendResult:
        if not access_token:
            return SendResult(success=False, error="Missing Gmail access token")

        try:
            import httpx

            raw = base64.urlsafe_b64encode(
                build_mime(message, self.from_email).as_bytes()
            ).decode("ascii")

            async with httpx.AsyncClient() as client:
                response = await client.post(
                    GMAIL_SEND_URL,
                    headers={
                        "Authorization": f"Bearer {access_token}",
                        "Content-Type": "application/json",
                    },
                    json={"raw": raw},
                    timeout=self.timeout,
                )

                if response.status_code == 200:
                    data = response.json()
                    return SendResult(success=True, message_id=data.get("id"))
                else:
                    error_msg = response.text
                    logger.error(f"Gmail API error: {response.status_code} - {error_msg}")
                    return SendResult(success=False, error=error_msg)

        except Exception as e:
            logger.exception("Failed to send email via Gmail")
            return SendResult(success=False, error=str(e))


class SMTPProvider(EmailProvider):
    """
    SMTP email provider.

    For self-hosted or traditional SMTP servers.
    """

    def __init__(
        self,
        host: str,
        port: int,
        username: str,
        password: str,
        from_email: str,
        use_tls: bool = False,
        start_tls: bool = True,
        timeout: float = 30.0,
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.from_email = from_email
        self.use_tls = use_tls
        self.start_tls = start_tls
        self.timeout = timeout

    def is_configured(self) -> bool:
        return bool(self.host and self.username and self.password)

    async def send(self, message: EmailMessage, access_token: Optional[str] = None) -> SendResult:
        if not self.is_configured():
            return SendResult(success=False, error="SMTP not configured")

        try:
            import aiosmtplib

            await aiosmtplib.send(
                build_mime(message, self.from_email),
                hostname=self.host,
                port=self.port,
                username=self.username,
                password=self.password,
                use_tls=self.use_tls,
                start_tls=self.start_tls,
                timeout=self.timeout,
            )

            return SendResult(success=True)

        except Exception as e:
            logger.exception("Failed to send email via SMTP")
            return SendResult(success=False, error=str(e))


class ConsoleProvider(EmailProvider):
    """
    Console email provider for development/testing.

    Logs emails to console instead of sending. Outside development nothing
    is delivered, so sends are reported as failed.
    """

    def __init__(self, development: bool = True):
        self.development = development

    def is_configured(self) -> bool:
        return self.development

    async def send(self, message: EmailMessage, access_token: Optional[str] = None) -> SendResult:
        if not self.development:
            logger.error(f"No email provider configured, digest to {message.to} was not delivered")
            return SendResult(success=False, error="No email provider configured")

        logger.info(
            f"\n{'='*60}\n"
            f"EMAIL (Console Mode)\n"
            f"{'='*60}\n"
            f"To: {message.to}\n"
            f"Subject: {message.subject}\n"
            f"{'='*60}\n"
            f"{message.plain_text_body}\n"
            f"{'='*60}\n"
        )
        return SendResult(success=True, message_id="console-dev")


# =============================================================================
# FACTORY FUNCTIONS
# =============================================================================

def get_email_provider(
    gmail_enabled: bool = False,
    smtp_config: Optional[dict] = None,
    from_email: Optional[str] = None,
    console_mode: bool = False,
    timeout: float = 30.0,
) -> EmailProvider:
    """
    Get the appropriate email provider based on configuration.

    Priority:
    1. Console mode (for development)
    2. Gmail (if OAuth credentials are configured)
    3. SMTP (if config provided)
    4. Console fallback (reports sends as failed)
    """
    if console_mode:
        logger.info("Using console email provider (development mode)")
        return ConsoleProvider()

    if gmail_enabled:
        logger.info("Using Gmail email provider")
        return GmailProvider(from_email=from_email, timeout=timeout)

    if smtp_config:
        logger.info("Using SMTP email provider")
        return SMTPProvider(**smtp_config)

    logger.warning("No email provider configured, sends will fail")
    return ConsoleProvider(development=False)
