"""Shared test fixtures for the advisor alerts tests."""
import os
from datetime import date

import pytest

# Keep the app off the on-disk database and out of console email mode
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("APP_ENV", "test")

from app.data.schemas import Client, Invoice, Opportunity, Prospect, User  # noqa: E402

# Configure pytest-asyncio
pytest_plugins = ('pytest_asyncio',)


@pytest.fixture
def today():
    """A mid-month reference day, so the client rule does not email."""
    return date(2025, 3, 15)


@pytest.fixture
def advisor():
    return User(
        id="advisor-1",
        email="ana@example.com",
        name="Ana",
        role="Asesor",
        area="Comercial",
    )


@pytest.fixture
def other_advisor():
    return User(id="advisor-2", email="bruno@example.com", name="Bruno", role="Asesor", area="Comercial")


@pytest.fixture
def make_client():
    def _make(id="client-1", owner_id="advisor-1", denominacion="Acme SA", **kwargs):
        return Client(id=id, owner_id=owner_id, denominacion=denominacion, **kwargs)
    return _make


@pytest.fixture
def make_opportunity():
    def _make(id="opp-1", client_id="client-1", title="Campaña Otoño", **kwargs):
        return Opportunity(id=id, client_id=client_id, title=title, **kwargs)
    return _make


@pytest.fixture
def make_invoice():
    def _make(id="inv-1", opportunity_id="opp-1", **kwargs):
        return Invoice(id=id, opportunity_id=opportunity_id, **kwargs)
    return _make


@pytest.fixture
def make_prospect():
    def _make(id="prospect-1", owner_id="advisor-1", company_name="Globex", status="Contactado", **kwargs):
        return Prospect(id=id, owner_id=owner_id, company_name=company_name, status=status, **kwargs)
    return _make
