"""
Alert Models

The derived AdvisorAlert view produced by the engine, and the email log table
that backs the per-advisor escalation watermark.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional
from uuid import uuid4

from sqlalchemy import Column, Date, DateTime, String, UniqueConstraint
from sqlalchemy.sql import func

from app.database import Base


class AlertType(str, Enum):
    """Which rule produced an alert."""
    INVOICE = "invoice"
    PROSPECT = "prospect"
    CLIENT = "client"
    OPPORTUNITY = "opportunity"
    STAGE = "stage"


class AlertSeverity(str, Enum):
    """Severity levels, most urgent first."""
    CRITICAL = "critical"
    WARNING = "warning"
    INFO = "info"


@dataclass
class AlertMeta:
    """A label/value pair shown next to an alert."""
    label: str
    value: str


@dataclass
class AdvisorAlert:
    """
    An actionable alert for one advisor.

    Alerts are recomputed from a snapshot on every call and never stored.
    The id is "<type>-<source record id>" so it is stable across runs.
    """
    id: str
    type: AlertType
    title: str
    description: str
    severity: AlertSeverity
    should_email: bool
    email_summary: str
    meta: List[AlertMeta] = field(default_factory=list)
    entity_href: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type": self.type.value,
            "title": self.title,
            "description": self.description,
            "severity": self.severity.value,
            "meta": [{"label": m.label, "value": m.value} for m in self.meta],
            "shouldEmail": self.should_email,
            "emailSummary": self.email_summary,
            "entityHref": self.entity_href,
        }


class AlertEmailLog(Base):
    """
    One row per successful digest email.

    The (key, sent_day) pair is unique, so at most one digest is recorded
    per advisor per calendar day.
    """
    __tablename__ = "advisor_alert_email_log"

    id = Column(String, primary_key=True, default=lambda: str(uuid4()))
    key = Column(String, nullable=False, index=True)
    sent_at = Column(DateTime(timezone=True), nullable=False)
    sent_day = Column(Date, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        UniqueConstraint("key", "sent_day", name="uq_advisor_alert_email_day"),
    )
