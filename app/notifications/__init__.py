"""
Notifications Module

Email delivery for the advisor alerts digest.
"""

from .email_provider import (
    EmailProvider,
    EmailMessage,
    SendResult,
    GmailProvider,
    SMTPProvider,
    ConsoleProvider,
    get_email_provider,
)
from .tokens import (
    SendTokenProvider,
    NoTokenProvider,
    StaticTokenProvider,
    GoogleOAuthTokenProvider,
    TokenUnavailableError,
)
from .templates import build_advisor_digest_email

__all__ = [
    "EmailProvider",
    "EmailMessage",
    "SendResult",
    "GmailProvider",
    "SMTPProvider",
    "ConsoleProvider",
    "get_email_provider",
    "SendTokenProvider",
    "NoTokenProvider",
    "StaticTokenProvider",
    "GoogleOAuthTokenProvider",
    "TokenUnavailableError",
    "build_advisor_digest_email",
]
