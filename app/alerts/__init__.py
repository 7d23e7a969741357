# Advisor Alerts Module
# Derives actionable alerts from an advisor's book of business
#
# Components:
# - engine.py: AdvisorAlertEngine with the five alert rules
# - rules.py: Default thresholds, period lengths, AlertsConfig
# - escalation.py: Email cadence policy
# - scheduler.py: Daily digest escalation (imported directly)
# - watermarks.py: Last-sent watermark stores (imported directly)
# - models.py: AdvisorAlert, AlertType, AlertSeverity, AlertEmailLog

from .models import (
    AdvisorAlert,
    AlertMeta,
    AlertType,
    AlertSeverity,
)
from .engine import AdvisorAlertEngine, build_advisor_alerts
from .rules import (
    ALERT_RULES,
    DEFAULT_STAGE_THRESHOLDS,
    PERIOD_MONTHS,
    SEVERITY_WEIGHTS,
    AlertsConfig,
    period_months,
)
from .escalation import should_escalate

__all__ = [
    # Models
    "AdvisorAlert",
    "AlertMeta",
    "AlertType",
    "AlertSeverity",
    # Engine
    "AdvisorAlertEngine",
    "build_advisor_alerts",
    # Rules
    "ALERT_RULES",
    "DEFAULT_STAGE_THRESHOLDS",
    "PERIOD_MONTHS",
    "SEVERITY_WEIGHTS",
    "AlertsConfig",
    "period_months",
    # Escalation
    "should_escalate",
]
