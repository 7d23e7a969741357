"""
Advisor Alerts Routes

Endpoints behind the objectives page alerts panel.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException

from app.permissions.cache import PermissionsCache, has_permission_async
from .dependencies import get_alerts_service, get_permissions_cache
from .models import AlertSeverity
from .schemas import AdvisorAlertResponse, AdvisorAlertsResponse, EscalationResponse
from .service import AdvisorAlertsService, AdvisorNotFoundError

router = APIRouter(prefix="/advisor-alerts", tags=["Advisor Alerts"])

ALERTS_SCREEN = "Objectives"


async def _authorize(
    advisor_id: str,
    acting_user_id: Optional[str],
    service: AdvisorAlertsService,
    permissions: PermissionsCache,
) -> bool:
    """
    Check the acting user may see the advisor's alerts.

    Advisors always see their own alerts. Another advisor's alerts need
    edit rights on the objectives screen (superusers always have them).

    Returns True when the acting user is the advisor.
    """
    acting_id = acting_user_id or advisor_id
    acting_user = await service.get_user(acting_id)
    if acting_user is None:
        raise HTTPException(status_code=404, detail="User not found")

    if acting_id == advisor_id:
        return True

    if not await has_permission_async(acting_user, ALERTS_SCREEN, "edit", permissions):
        raise HTTPException(status_code=403, detail="Not allowed to view another advisor's alerts")
    return False


@router.get("/{advisor_id}", response_model=AdvisorAlertsResponse)
async def get_advisor_alerts(
    advisor_id: str,
    x_user_id: Optional[str] = Header(default=None),
    service: AdvisorAlertsService = Depends(get_alerts_service),
    permissions: PermissionsCache = Depends(get_permissions_cache),
):
    """
    Evaluate the advisor's alerts.

    Alerts come back most severe first, with counts by severity and how many
    are due for today's email digest. When advisors open their own alerts
    the daily digest check runs silently; its outcome is in `escalation`.
    """
    is_self = await _authorize(advisor_id, x_user_id, service, permissions)

    try:
        user, alerts = await service.get_alerts(advisor_id)
    except AdvisorNotFoundError:
        raise HTTPException(status_code=404, detail="Advisor not found")

    escalation = await service.escalate_silently(user, alerts) if is_self else None

    return AdvisorAlertsResponse(
        advisor_id=advisor_id,
        total=len(alerts),
        critical=sum(1 for a in alerts if a.severity == AlertSeverity.CRITICAL),
        warning=sum(1 for a in alerts if a.severity == AlertSeverity.WARNING),
        info=sum(1 for a in alerts if a.severity == AlertSeverity.INFO),
        pending_email=sum(1 for a in alerts if a.should_email),
        needs_authorization=service.scheduler.needs_authorization(advisor_id),
        escalation=EscalationResponse.from_result(escalation) if escalation else None,
        alerts=[AdvisorAlertResponse.from_alert(a) for a in alerts],
    )


@router.post("/{advisor_id}/escalate", response_model=EscalationResponse)
async def escalate_advisor_alerts(
    advisor_id: str,
    x_user_id: Optional[str] = Header(default=None),
    service: AdvisorAlertsService = Depends(get_alerts_service),
    permissions: PermissionsCache = Depends(get_permissions_cache),
):
    """
    Send today's digest on the advisor's request.

    Uses interactive token acquisition. Authorization and delivery problems
    are reported in the response body, not as HTTP errors.
    """
    await _authorize(advisor_id, x_user_id, service, permissions)

    try:
        result = await service.escalate(advisor_id, interactive=True)
    except AdvisorNotFoundError:
        raise HTTPException(status_code=404, detail="Advisor not found")

    return EscalationResponse.from_result(result)
