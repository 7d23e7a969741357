"""
Escalation Watermarks

Persisted "last digest sent" timestamps, one per advisor, keyed as
``advisor-alerts:last-email:<advisorId>`` with an ISO-8601 value.
"""

import logging
from abc import ABC, abstractmethod
from datetime import date, datetime, timezone
from typing import Dict, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import async_sessionmaker

from app.data.dates import safe_parse_datetime
from .models import AlertEmailLog

logger = logging.getLogger(__name__)

WATERMARK_KEY_PREFIX = "advisor-alerts:last-email:"


def watermark_key(advisor_id: str) -> str:
    return f"{WATERMARK_KEY_PREFIX}{advisor_id}"


class WatermarkStore(ABC):
    """Key-value store for per-advisor escalation watermarks."""

    @abstractmethod
    async def get_last_sent(self, advisor_id: str) -> Optional[datetime]:
        """Timestamp of the last successful digest, if any."""

    @abstractmethod
    async def record_sent(self, advisor_id: str, sent_at: datetime, sent_day: date) -> bool:
        """
        Record a successful digest.

        Returns False when a digest was already recorded for sent_day.
        """


class InMemoryWatermarkStore(WatermarkStore):
    """Process-local store; values are kept as ISO-8601 strings."""

    def __init__(self):
        self._values: Dict[str, str] = {}
        self._days: Dict[str, date] = {}

    async def get_last_sent(self, advisor_id: str) -> Optional[datetime]:
        return safe_parse_datetime(self._values.get(watermark_key(advisor_id)))

    async def record_sent(self, advisor_id: str, sent_at: datetime, sent_day: date) -> bool:
        key = watermark_key(advisor_id)
        if self._days.get(key) == sent_day:
            return False
        self._values[key] = sent_at.isoformat()
        self._days[key] = sent_day
        return True

    def raw(self, advisor_id: str) -> Optional[str]:
        """Stored ISO string, as a key-value backend would hold it."""
        return self._values.get(watermark_key(advisor_id))


class SQLWatermarkStore(WatermarkStore):
    """
    Watermarks backed by the advisor_alert_email_log table.

    The unique (key, sent_day) constraint turns a duplicate digest for the
    same day into a rejected insert, across processes.
    """

    def __init__(self, session_maker: async_sessionmaker):
        self.session_maker = session_maker

    async def get_last_sent(self, advisor_id: str) -> Optional[datetime]:
        async with self.session_maker() as db:
            result = await db.execute(
                select(func.max(AlertEmailLog.sent_at))
                .where(AlertEmailLog.key == watermark_key(advisor_id))
            )
            last = result.scalar_one_or_none()

        if last is not None and last.tzinfo is None:
            # SQLite drops the offset; values are written in UTC
            last = last.replace(tzinfo=timezone.utc)
        return last

    async def record_sent(self, advisor_id: str, sent_at: datetime, sent_day: date) -> bool:
        if sent_at.tzinfo is not None:
            sent_at = sent_at.astimezone(timezone.utc)

        async with self.session_maker() as db:
            db.add(AlertEmailLog(
                key=watermark_key(advisor_id),
                sent_at=sent_at,
                sent_day=sent_day,
            ))
            try:
                await db.commit()
            except IntegrityError:
                await db.rollback()
                logger.info(f"Digest for advisor {advisor_id} already recorded on {sent_day}")
                return False
        return True

