"""Tests for the email cadence policy and the alerts configuration record."""

import pytest
from datetime import date

from app.alerts.escalation import escalates_once_at, is_start_of_month, should_escalate
from app.alerts.rules import DEFAULT_STAGE_THRESHOLDS, AlertsConfig


class TestShouldEscalate:
    """Tests for should_escalate()."""

    @pytest.mark.parametrize("days,expected", [
        (0, False),
        (6, False),
        (7, True),
        (8, False),
        (9, False),
        (10, True),
        (16, True),
    ])
    def test_every_three_days_from_seven(self, days, expected):
        assert should_escalate(days, 7, 3) is expected

    def test_interval_of_one_is_daily(self):
        assert all(should_escalate(d, 3, 1) for d in range(3, 10))

    @pytest.mark.parametrize("interval", [0, -3])
    def test_non_positive_interval_rejected(self, interval):
        with pytest.raises(ValueError):
            should_escalate(10, 7, interval)


class TestCalendarPolicies:
    """Tests for the start-of-month and single-day policies."""

    @pytest.mark.parametrize("day,expected", [(1, True), (2, True), (3, True), (4, False), (28, False)])
    def test_start_of_month(self, day, expected):
        assert is_start_of_month(date(2025, 2, day), 3) is expected

    def test_escalates_once(self):
        assert [d for d in range(0, 30) if escalates_once_at(d, 20)] == [20]


class TestAlertsConfig:
    """Tests for building AlertsConfig from the store record."""

    def test_missing_record_uses_defaults(self):
        config = AlertsConfig.from_record(None)

        assert config.stage_thresholds == DEFAULT_STAGE_THRESHOLDS
        assert config.prospect_visibility_days == 0

    def test_record_merges_onto_defaults(self):
        config = AlertsConfig.from_record({
            "Propuesta": 5,
            "Negociación": "10",
            "prospectVisibilityDays": 30,
            "id": "opportunity_alerts",
            "updatedAt": "2025-03-01T10:00:00Z",
        })

        assert config.threshold_for("Propuesta") == 5
        assert config.threshold_for("Negociación") == 10
        assert config.threshold_for("Nuevo") == 7
        assert config.prospect_visibility_days == 30
        assert "id" not in config.stage_thresholds

    def test_unusable_values_disable_stage(self):
        config = AlertsConfig.from_record({"Propuesta": "nunca", "Nuevo": -4, "prospectVisibilityDays": None})

        assert config.threshold_for("Propuesta") is None
        assert config.threshold_for("Nuevo") is None
        assert config.prospect_visibility_days == 0

    def test_closed_stages_can_be_enabled(self):
        config = AlertsConfig.from_record({"Cerrado - Ganado": 2})

        assert config.threshold_for("Cerrado - Ganado") == 2

    def test_defaults_are_not_shared(self):
        first = AlertsConfig()
        first.stage_thresholds["Propuesta"] = 99

        assert AlertsConfig().threshold_for("Propuesta") == 3
        assert DEFAULT_STAGE_THRESHOLDS["Propuesta"] == 3
