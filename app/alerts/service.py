"""
Advisor Alerts Service

Glue between the record repository, the alert engine and the escalation
scheduler. This is what the HTTP routes (and any job runner) call.
"""

import logging
from datetime import date, datetime, tzinfo
from typing import List, Optional, Tuple, Union

from app.data.dates import to_calendar_date
from app.data.repository import RecordRepository, decode_records, load_snapshot, visible_prospects
from app.data.schemas import User
from .engine import build_advisor_alerts
from .models import AdvisorAlert
from .rules import AlertsConfig
from .scheduler import EscalationResult, EscalationScheduler

logger = logging.getLogger(__name__)


class AdvisorNotFoundError(Exception):
    """No user record with the requested id."""


class AdvisorAlertsService:
    """Evaluates and escalates alerts for advisors."""

    def __init__(
        self,
        repository: RecordRepository,
        scheduler: EscalationScheduler,
        tz: Optional[tzinfo] = None,
    ):
        self.repository = repository
        self.scheduler = scheduler
        self.tz = tz

    async def get_user(self, user_id: str) -> Optional[User]:
        for user in decode_records(User, await self.repository.fetch_users()):
            if user.id == user_id:
                return user
        return None

    async def get_alerts(
        self,
        advisor_id: str,
        today: Union[date, datetime, None] = None,
    ) -> Tuple[User, List[AdvisorAlert]]:
        """
        Load a fresh snapshot and evaluate the advisor's alerts.

        Raises AdvisorNotFoundError for an unknown advisor id.
        """
        snapshot = await load_snapshot(self.repository)
        user = snapshot.get_user(advisor_id)
        if user is None:
            raise AdvisorNotFoundError(advisor_id)

        config = AlertsConfig.from_record(snapshot.alerts_config)
        reference = today if today is not None else datetime.now(self.tz)
        prospects = visible_prospects(
            snapshot.prospects,
            config.prospect_visibility_days,
            to_calendar_date(reference, self.tz),
            self.tz,
        )

        alerts = build_advisor_alerts(
            user,
            snapshot.opportunities,
            snapshot.clients,
            snapshot.invoices,
            prospects,
            today=reference,
            config=config,
            tz=self.tz,
        )
        logger.debug(f"Built {len(alerts)} alert(s) for advisor {advisor_id}")
        return user, alerts

    async def escalate_silently(
        self,
        user: User,
        alerts: List[AdvisorAlert],
        now: Optional[datetime] = None,
    ) -> Optional[EscalationResult]:
        """
        Daily digest check run when the advisor opens their alerts.

        Best effort: storage errors are logged and the page still loads.
        """
        try:
            return await self.scheduler.run(user, alerts, interactive=False, now=now)
        except Exception:
            logger.exception(f"Automatic escalation failed for advisor {user.id}")
            return None

    async def escalate(
        self,
        advisor_id: str,
        interactive: bool = False,
        now: Optional[datetime] = None,
    ) -> EscalationResult:
        """Evaluate alerts and send today's digest if it is due."""
        user, alerts = await self.get_alerts(advisor_id, today=now)
        return await self.scheduler.run(user, alerts, interactive=interactive, now=now)
