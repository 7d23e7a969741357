"""
Send Tokens

Acquire the credential an email provider needs to send on an advisor's
behalf. Silent acquisition is used for the automatic daily check; interactive
acquisition is used when the advisor explicitly asks to send.
"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Optional

logger = logging.getLogger(__name__)

GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"


class TokenUnavailableError(Exception):
    """No usable send token; the advisor has to re-authorize."""


class SendTokenProvider(ABC):
    """Source of send-capability tokens."""

    @abstractmethod
    async def acquire(self, interactive: bool = False) -> Optional[str]:
        """
        Return a token, or None when the provider needs none.

        Raises TokenUnavailableError when a token is required but cannot be
        obtained in the requested mode.
        """


class NoTokenProvider(SendTokenProvider):
    """For providers that authenticate on their own (SMTP, console)."""

    async def acquire(self, interactive: bool = False) -> Optional[str]:
        return None


class StaticTokenProvider(SendTokenProvider):
    """A fixed token, mainly for tests and scripts."""

    def __init__(self, token: Optional[str]):
        self.token = token

    async def acquire(self, interactive: bool = False) -> Optional[str]:
        if not self.token:
            raise TokenUnavailableError("No access token available")
        return self.token


class GoogleOAuthTokenProvider(SendTokenProvider):
    """
    Google access tokens from a stored refresh token.

    Tokens are cached until five minutes before they expire. Re-consent
    needs a browser, so an interactive request that cannot refresh still
    raises and the UI must send the advisor through the consent screen.
    """

    def __init__(self, client_id: str, client_secret: str, refresh_token: str, timeout: float = 30.0):
        self.client_id = client_id
        self.client_secret = client_secret
        self.refresh_token = refresh_token
        self.timeout = timeout
        self._access_token: Optional[str] = None
        self._expires_at: Optional[datetime] = None

    def is_configured(self) -> bool:
        return bool(self.client_id and self.client_secret and self.refresh_token)

    async def acquire(self, interactive: bool = False) -> Optional[str]:
        if not self.is_configured():
            raise TokenUnavailableError("Google OAuth is not configured")

        expiry_buffer = datetime.now(timezone.utc) + timedelta(minutes=5)
        if self._access_token and self._expires_at and self._expires_at > expiry_buffer:
            return self._access_token

        try:
            tokens = await self._refresh()
        except Exception as e:
            logger.warning(f"Google token refresh failed (interactive={interactive}): {e}")
            raise TokenUnavailableError("Google token refresh failed") from e

        self._access_token = tokens["access_token"]
        self._expires_at = datetime.now(timezone.utc) + timedelta(seconds=int(tokens.get("expires_in", 3600)))
        return self._access_token

    async def _refresh(self) -> dict:
        import httpx

        async with httpx.AsyncClient() as client:
            response = await client.post(
                GOOGLE_TOKEN_URL,
                data={
                    "grant_type": "refresh_token",
                    "refresh_token": self.refresh_token,
                    "client_id": self.client_id,
                    "client_secret": self.client_secret,
                },
                headers={"Content-Type": "application/x-www-form-urlencoded"},
                timeout=self.timeout,
            )

            if response.status_code != 200:
                raise Exception(f"Token refresh failed: {response.text}")

            return response.json()
