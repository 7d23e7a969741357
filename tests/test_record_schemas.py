"""
Tests for decoding store records.

Store documents are camelCase and loosely typed; decoding must drop
unusable dates instead of rejecting whole records.
"""

import pytest
from datetime import date, datetime, timezone

from app.data.dates import add_months, format_long_date, safe_parse_datetime, to_calendar_date
from app.data.repository import (
    InMemoryRecordRepository,
    decode_records,
    load_snapshot,
    visible_prospects,
)
from app.data.schemas import Client, Invoice, Opportunity, Periodicity, Prospect, User


class TestDates:
    """Tests for the calendar-day helpers."""

    @pytest.mark.parametrize("value", [None, "", "not-a-date", "2025-13-45", 42, ["2025-01-01"]])
    def test_unusable_values_parse_to_none(self, value):
        assert safe_parse_datetime(value) is None

    def test_parses_date_only_and_offsets(self):
        assert safe_parse_datetime("2025-03-05") == datetime(2025, 3, 5)
        assert safe_parse_datetime("2025-03-05T10:00:00Z") == datetime(2025, 3, 5, 10, tzinfo=timezone.utc)

    def test_plain_date_passes_through(self):
        assert to_calendar_date(date(2025, 3, 5)) == date(2025, 3, 5)

    def test_add_months_clamps(self):
        assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)
        assert add_months(date(2024, 8, 31), 6) == date(2025, 2, 28)

    def test_format_long_date(self):
        assert format_long_date(date(2025, 3, 5)) == "5 de marzo de 2025"
        assert format_long_date(None) == "Sin fecha"


class TestDecoding:
    """Tests for camelCase decoding and lenient fields."""

    def test_opportunity_from_store_document(self):
        opportunity = Opportunity.model_validate({
            "id": "opp-1",
            "clientId": "client-1",
            "title": "Campaña Otoño",
            "stage": "Propuesta",
            "stageChangedAt": "2025-03-01T12:00:00-03:00",
            "manualUpdateDate": "garbage",
            "periodicidad": ["Trimestral", "Quincenal", None, 3],
            "ordenesPautado": None,
            "budget": 1000,
        })

        assert opportunity.client_id == "client-1"
        assert opportunity.stage_changed_at.tzinfo is not None
        assert opportunity.manual_update_date is None
        assert opportunity.periodicidad == [Periodicity.QUARTERLY]
        assert opportunity.ordenes_pautado == []

    @pytest.mark.parametrize("raw,expected", [
        (None, []),
        ("Mensual", [Periodicity.MONTHLY]),
        ({"tag": "Mensual"}, []),
        ([Periodicity.ANNUAL], [Periodicity.ANNUAL]),
    ])
    def test_periodicidad_shapes(self, raw, expected):
        opportunity = Opportunity.model_validate({"id": "opp-1", "clientId": "c", "periodicidad": raw})

        assert opportunity.periodicidad == expected

    def test_invoice_issue_date_alias(self):
        invoice = Invoice.model_validate({
            "id": "inv-1",
            "opportunityId": "opp-1",
            "invoiceNumber": "0001-00000001",
            "status": "Enviada a Cobrar",
            "date": "2025-03-01",
        })

        assert invoice.issue_date == datetime(2025, 3, 1)
        assert invoice.is_paid is False

    def test_paid_invoice(self):
        invoice = Invoice.model_validate({"id": "inv-1", "opportunityId": "opp-1", "status": "Pagada"})

        assert invoice.is_paid is True

    def test_decode_records_skips_structurally_invalid(self):
        records = [
            {"id": "client-1", "ownerId": "advisor-1", "denominacion": "Acme SA", "createdAt": "???"},
            {"ownerId": "advisor-1", "denominacion": "Sin id"},
            {"id": "client-3", "ownerId": "advisor-1"},
        ]

        clients = decode_records(Client, records)

        assert [c.id for c in clients] == ["client-1", "client-3"]
        assert clients[0].created_at is None

    def test_first_date_stops_at_unparsable_value(self):
        opportunity = Opportunity.model_validate({
            "id": "opp-1",
            "clientId": "client-1",
            "stageChangedAt": "not-a-date",
            "updatedAt": "2025-03-01",
        })

        assert opportunity.stage_changed_at is None
        assert opportunity.first_date("stage_changed_at", "updated_at") is None
        assert opportunity.first_date("updated_at", "stage_changed_at") == datetime(2025, 3, 1)

    def test_first_date_skips_missing_and_empty_values(self):
        opportunity = Opportunity.model_validate({
            "id": "opp-1",
            "clientId": "client-1",
            "stageChangedAt": "",
            "createdAt": "2025-02-20",
        })

        assert opportunity.first_date("stage_changed_at", "updated_at", "created_at") == datetime(2025, 2, 20)

    def test_has_value_remembers_unparsable_dates(self):
        opportunity = Opportunity.model_validate({
            "id": "opp-1",
            "clientId": "client-1",
            "finalizationDate": "31/03/2025",
        })

        assert opportunity.finalization_date is None
        assert opportunity.has_value("finalization_date") is True
        assert opportunity.has_value("manual_update_date") is False

    def test_user_permission_overrides(self):
        user = User.model_validate({
            "id": "u-1",
            "email": "ana@example.com",
            "permissions": {"Objectives": {"view": True, "edit": False}},
        })

        assert user.permissions["Objectives"]["view"] is True
        assert user.name == ""


class TestSnapshot:
    """Tests for loading a snapshot from a repository."""

    @pytest.mark.asyncio
    async def test_load_snapshot(self):
        repository = InMemoryRecordRepository(
            users=[{"id": "advisor-1", "email": "ana@example.com", "name": "Ana"}],
            clients=[{"id": "client-1", "ownerId": "advisor-1", "denominacion": "Acme SA"}],
            opportunities=[{"id": "opp-1", "clientId": "client-1"}, {"title": "sin ids"}],
            invoices=[{"id": "inv-1", "opportunityId": "opp-1", "date": "2025-03-01"}],
            prospects=[{"id": "prospect-1", "ownerId": "advisor-1", "companyName": "Globex"}],
            alerts_config={"Propuesta": 5},
        )

        snapshot = await load_snapshot(repository)

        assert snapshot.get_user("advisor-1").name == "Ana"
        assert snapshot.get_user("missing") is None
        assert [o.id for o in snapshot.opportunities] == ["opp-1"]
        assert len(snapshot.invoices) == 1
        assert snapshot.prospects[0].company_name == "Globex"
        assert snapshot.alerts_config == {"Propuesta": 5}


class TestProspectVisibility:
    """Tests for hiding long-inactive prospects."""

    @pytest.fixture
    def prospects(self):
        return [
            Prospect(id="recent", status_changed_at=date(2025, 3, 10)),
            Prospect(id="old", created_at=date(2025, 1, 1)),
            Prospect(id="edge", status_changed_at=date(2025, 2, 13)),
            Prospect(id="undated"),
        ]

    def test_zero_window_shows_all(self, prospects):
        assert len(visible_prospects(prospects, 0, date(2025, 3, 15))) == 4

    def test_window_hides_inactive(self, prospects):
        visible = visible_prospects(prospects, 30, date(2025, 3, 15))

        assert [p.id for p in visible] == ["recent", "edge", "undated"]

    def test_unparsable_status_change_counts_as_undated(self):
        prospects = decode_records(Prospect, [
            {"id": "garbled", "statusChangedAt": "ayer", "createdAt": "2025-01-01"},
        ])

        assert [p.id for p in visible_prospects(prospects, 30, date(2025, 3, 15))] == ["garbled"]
