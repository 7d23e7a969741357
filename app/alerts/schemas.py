"""Pydantic schemas for the advisor alerts API."""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

from .models import AdvisorAlert, AlertSeverity, AlertType
from .scheduler import EscalationResult, EscalationState


class AlertMetaResponse(BaseModel):
    label: str
    value: str


class AdvisorAlertResponse(BaseModel):
    """One alert as rendered by the objectives panel."""
    id: str
    type: AlertType
    title: str
    description: str
    severity: AlertSeverity
    meta: List[AlertMetaResponse] = []
    should_email: bool
    email_summary: str
    entity_href: Optional[str] = None

    @classmethod
    def from_alert(cls, alert: AdvisorAlert) -> "AdvisorAlertResponse":
        return cls(
            id=alert.id,
            type=alert.type,
            title=alert.title,
            description=alert.description,
            severity=alert.severity,
            meta=[AlertMetaResponse(label=m.label, value=m.value) for m in alert.meta],
            should_email=alert.should_email,
            email_summary=alert.email_summary,
            entity_href=alert.entity_href,
        )


class EscalationResponse(BaseModel):
    state: EscalationState
    alerts_sent: int = 0
    error: Optional[str] = None
    sent_at: Optional[datetime] = None
    message_id: Optional[str] = None

    @classmethod
    def from_result(cls, result: EscalationResult) -> "EscalationResponse":
        return cls(
            state=result.state,
            alerts_sent=result.alerts_sent,
            error=result.error,
            sent_at=result.sent_at,
            message_id=result.message_id,
        )


class AdvisorAlertsResponse(BaseModel):
    advisor_id: str
    total: int
    critical: int
    warning: int
    info: int
    pending_email: int
    needs_authorization: bool = False
    # Outcome of the automatic digest check, when one ran
    escalation: Optional[EscalationResponse] = None
    alerts: List[AdvisorAlertResponse]
