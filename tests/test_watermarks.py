"""Tests for the escalation watermark stores."""

import pytest
import pytest_asyncio
from datetime import date, datetime, timedelta, timezone

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.alerts.watermarks import InMemoryWatermarkStore, SQLWatermarkStore, watermark_key
from app.database import init_db

SENT_AT = datetime(2025, 3, 15, 14, 30, tzinfo=timezone.utc)


@pytest_asyncio.fixture
async def session_maker():
    """Fresh in-memory SQLite database with the email log table."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await init_db(bind=engine)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


def test_watermark_key():
    assert watermark_key("advisor-1") == "advisor-alerts:last-email:advisor-1"


class TestInMemoryWatermarkStore:
    """Tests for the process-local store."""

    @pytest.mark.asyncio
    async def test_round_trip(self):
        store = InMemoryWatermarkStore()

        assert await store.get_last_sent("advisor-1") is None
        assert await store.record_sent("advisor-1", SENT_AT, date(2025, 3, 15)) is True

        assert await store.get_last_sent("advisor-1") == SENT_AT
        assert store.raw("advisor-1") == "2025-03-15T14:30:00+00:00"

    @pytest.mark.asyncio
    async def test_same_day_rejected(self):
        store = InMemoryWatermarkStore()
        await store.record_sent("advisor-1", SENT_AT, date(2025, 3, 15))

        later = SENT_AT + timedelta(hours=3)
        assert await store.record_sent("advisor-1", later, date(2025, 3, 15)) is False
        assert await store.get_last_sent("advisor-1") == SENT_AT

    @pytest.mark.asyncio
    async def test_advisors_are_independent(self):
        store = InMemoryWatermarkStore()
        await store.record_sent("advisor-1", SENT_AT, date(2025, 3, 15))

        assert await store.record_sent("advisor-2", SENT_AT, date(2025, 3, 15)) is True


class TestSQLWatermarkStore:
    """Tests for the email log backed store."""

    @pytest.mark.asyncio
    async def test_round_trip(self, session_maker):
        store = SQLWatermarkStore(session_maker)

        assert await store.get_last_sent("advisor-1") is None
        assert await store.record_sent("advisor-1", SENT_AT, date(2025, 3, 15)) is True

        last = await store.get_last_sent("advisor-1")
        assert last == SENT_AT
        assert last.tzinfo is not None

    @pytest.mark.asyncio
    async def test_same_day_rejected_by_constraint(self, session_maker):
        store = SQLWatermarkStore(session_maker)
        await store.record_sent("advisor-1", SENT_AT, date(2025, 3, 15))

        assert await store.record_sent("advisor-1", SENT_AT + timedelta(hours=1), date(2025, 3, 15)) is False
        assert await store.get_last_sent("advisor-1") == SENT_AT

    @pytest.mark.asyncio
    async def test_latest_send_wins(self, session_maker):
        store = SQLWatermarkStore(session_maker)
        await store.record_sent("advisor-1", SENT_AT, date(2025, 3, 15))
        next_day = SENT_AT + timedelta(days=1)
        await store.record_sent("advisor-1", next_day, date(2025, 3, 16))

        assert await store.get_last_sent("advisor-1") == next_day

    @pytest.mark.asyncio
    async def test_stores_utc(self, session_maker):
        store = SQLWatermarkStore(session_maker)
        local = SENT_AT.astimezone(timezone(timedelta(hours=-3)))
        await store.record_sent("advisor-1", local, date(2025, 3, 15))

        assert await store.get_last_sent("advisor-1") == SENT_AT
