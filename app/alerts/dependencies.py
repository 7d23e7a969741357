"""
Wiring for the advisor alerts API.

Collaborators are built once from settings. Tests and embedding applications
replace them with configure() or FastAPI dependency overrides.
"""

import logging
from functools import lru_cache
from typing import Optional
from zoneinfo import ZoneInfo

from app.config import settings
from app.data.repository import InMemoryRecordRepository, RecordRepository
from app.database import AsyncSessionLocal
from app.notifications.email_provider import get_email_provider
from app.notifications.tokens import GoogleOAuthTokenProvider, NoTokenProvider, SendTokenProvider
from app.permissions.cache import PermissionsCache
from .scheduler import EscalationScheduler
from .service import AdvisorAlertsService
from .watermarks import SQLWatermarkStore

logger = logging.getLogger(__name__)

_repository: Optional[RecordRepository] = None


def configure(repository: RecordRepository) -> None:
    """Install the record repository backing the API."""
    global _repository
    _repository = repository
    get_alerts_service.cache_clear()
    get_permissions_cache.cache_clear()


def get_record_repository() -> RecordRepository:
    global _repository
    if _repository is None:
        logger.warning("No record repository configured, using an empty in-memory repository")
        _repository = InMemoryRecordRepository()
    return _repository


def _build_token_provider() -> SendTokenProvider:
    google = GoogleOAuthTokenProvider(
        client_id=settings.GOOGLE_CLIENT_ID,
        client_secret=settings.GOOGLE_CLIENT_SECRET,
        refresh_token=settings.GOOGLE_REFRESH_TOKEN,
        timeout=settings.ALERTS_EMAIL_TIMEOUT_SECONDS,
    )
    if google.is_configured():
        return google
    return NoTokenProvider()


def _smtp_config() -> Optional[dict]:
    if not settings.SMTP_HOST:
        return None
    return {
        "host": settings.SMTP_HOST,
        "port": settings.SMTP_PORT,
        "username": settings.SMTP_USERNAME,
        "password": settings.SMTP_PASSWORD,
        "from_email": settings.EMAIL_FROM,
        "timeout": settings.ALERTS_EMAIL_TIMEOUT_SECONDS,
    }


@lru_cache
def get_alerts_service() -> AdvisorAlertsService:
    tz = ZoneInfo(settings.ALERTS_TIMEZONE)
    token_provider = _build_token_provider()
    scheduler = EscalationScheduler(
        watermarks=SQLWatermarkStore(AsyncSessionLocal),
        email_provider=get_email_provider(
            gmail_enabled=isinstance(token_provider, GoogleOAuthTokenProvider),
            smtp_config=_smtp_config(),
            from_email=settings.EMAIL_FROM,
            console_mode=settings.APP_ENV == "development",
            timeout=settings.ALERTS_EMAIL_TIMEOUT_SECONDS,
        ),
        token_provider=token_provider,
        app_url=settings.OBJECTIVES_URL,
        timeout_seconds=settings.ALERTS_EMAIL_TIMEOUT_SECONDS,
        tz=tz,
    )
    return AdvisorAlertsService(get_record_repository(), scheduler, tz=tz)


@lru_cache
def get_permissions_cache() -> PermissionsCache:
    return PermissionsCache(
        loader=get_record_repository().fetch_area_permissions,
        ttl_seconds=settings.PERMISSIONS_CACHE_TTL_SECONDS,
    )
