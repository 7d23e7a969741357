"""
Alert Rules

Default thresholds for each advisor alert rule, the period vocabulary used to
project when an opportunity's commitment lapses, and the alerts configuration
record that lets management override stage thresholds.
"""

from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel, Field

from app.data.schemas import OpportunityStage, Periodicity
from .models import AlertSeverity, AlertType


SEVERITY_WEIGHTS = {
    AlertSeverity.CRITICAL: 3,
    AlertSeverity.WARNING: 2,
    AlertSeverity.INFO: 1,
}


# Exhaustive: every Periodicity member must be listed here.
PERIOD_MONTHS: Dict[Periodicity, int] = {
    Periodicity.OCCASIONAL: 1,
    Periodicity.MONTHLY: 1,
    Periodicity.QUARTERLY: 3,
    Periodicity.BIANNUAL: 6,
    Periodicity.ANNUAL: 12,
}

DEFAULT_PERIOD_MONTHS = 1


# Keyed by stage value; stages not listed never raise stage alerts.
DEFAULT_STAGE_THRESHOLDS: Dict[str, int] = {
    OpportunityStage.NEW.value: 7,
    OpportunityStage.PROPOSAL.value: 3,
    OpportunityStage.NEGOTIATION.value: 7,
    OpportunityStage.PENDING_APPROVAL.value: 1,
}


ALERT_RULES = {
    AlertType.INVOICE: {
        "name": "Facturas impagas",
        "description": "Facturas emitidas que no se marcaron como pagadas",
        "thresholds": {
            "min_days": 7,
            "critical_days": 14,
            "email_every_days": 3,
        },
    },
    AlertType.PROSPECT: {
        "name": "Prospectos sin avances",
        "description": "Prospectos que no cambiaron de estado",
        "thresholds": {
            "min_days": 3,
            "warning_days": 6,
            "email_every_days": 3,
        },
    },
    AlertType.CLIENT: {
        "name": "Clientes sin oportunidades",
        "description": "Clientes de la cartera sin propuestas cargadas",
        "thresholds": {
            "email_until_day_of_month": 3,
        },
    },
    AlertType.OPPORTUNITY: {
        "name": "Propuestas por finalizar",
        "description": "Oportunidades cuyo período proyectado está por vencer",
        "thresholds": {
            "window_days": 20,
            "critical_days": 10,
            "email_at_days": 20,
        },
    },
    AlertType.STAGE: {
        "name": "Oportunidades estancadas",
        "description": "Oportunidades que superaron el tiempo esperado en su etapa",
        "thresholds": {
            "critical_extra_days": 3,
        },
    },
}


def period_months(period: Optional[Periodicity]) -> int:
    """Length in months of a billing period tag."""
    if period is None:
        return DEFAULT_PERIOD_MONTHS
    return PERIOD_MONTHS[Periodicity(period)]


class AlertsConfig(BaseModel):
    """
    Management-editable alert settings.

    Stored in the document store as the ``opportunity_alerts`` record, keyed
    by stage name plus ``prospectVisibilityDays``.
    """
    stage_thresholds: Dict[str, int] = Field(default_factory=lambda: dict(DEFAULT_STAGE_THRESHOLDS))
    prospect_visibility_days: int = Field(default=0, ge=0)

    def threshold_for(self, stage: str) -> Optional[int]:
        """Days a stage may last before alerting; None when the stage is exempt."""
        days = self.stage_thresholds.get(stage)
        if not days or days <= 0:
            return None
        return days

    @classmethod
    def from_record(cls, record: Optional[Mapping[str, Any]]) -> "AlertsConfig":
        """Build from the raw configuration record, merging onto defaults."""
        thresholds = dict(DEFAULT_STAGE_THRESHOLDS)
        visibility = 0
        for key, value in (record or {}).items():
            if key == "prospectVisibilityDays":
                visibility = _as_days(value)
            elif key in {stage.value for stage in OpportunityStage}:
                thresholds[key] = _as_days(value)
        return cls(stage_thresholds=thresholds, prospect_visibility_days=visibility)


def _as_days(value: Any) -> int:
    try:
        days = int(value)
    except (TypeError, ValueError):
        return 0
    return max(days, 0)
