"""
Escalation Scheduler

Turns an advisor's alerts into at most one digest email per calendar day.

Runs opportunistically when the advisor uses the application (not as a
background job): pick the alerts flagged for email, check the watermark,
acquire a send token, send once, and only then move the watermark.
A failed send leaves the watermark alone so the next run retries.
"""

import asyncio
import logging
from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime, timezone, tzinfo
from enum import Enum
from typing import Dict, List, Optional, Sequence, Set

from app.data.dates import to_calendar_date
from app.data.schemas import User
from app.notifications.email_provider import EmailMessage, EmailProvider
from app.notifications.templates import build_advisor_digest_email
from app.notifications.tokens import SendTokenProvider, TokenUnavailableError
from .models import AdvisorAlert
from .watermarks import WatermarkStore

logger = logging.getLogger(__name__)

REAUTHORIZE_MESSAGE = (
    "No se pudo obtener permiso para enviar correos. "
    "Volvé a autorizar tu cuenta de Google e intentá nuevamente."
)
SEND_FAILED_MESSAGE = "No se pudo enviar el resumen de alertas por correo."


class EscalationState(str, Enum):
    """Outcome of one scheduler run."""
    NOTHING_TO_SEND = "nothing_to_send"  # No email address or nothing flagged
    ALREADY_SENT = "already_sent"        # Watermark is from today
    NEEDS_AUTH = "needs_auth"            # Send token unavailable
    SENT = "sent"
    FAILED = "failed"                    # Provider error or timeout


@dataclass
class EscalationResult:
    state: EscalationState
    alerts_sent: int = 0
    error: Optional[str] = None
    sent_at: Optional[datetime] = None
    message_id: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "state": self.state.value,
            "alerts_sent": self.alerts_sent,
            "error": self.error,
            "sent_at": self.sent_at.isoformat() if self.sent_at else None,
            "message_id": self.message_id,
        }


class EscalationScheduler:
    """
    Sends the daily alerts digest for advisors.

    Steps for one advisor run under a per-advisor lock, in order:
    watermark check -> token -> send -> watermark write.
    """

    def __init__(
        self,
        watermarks: WatermarkStore,
        email_provider: EmailProvider,
        token_provider: SendTokenProvider,
        app_url: str,
        timeout_seconds: float = 30.0,
        tz: Optional[tzinfo] = None,
    ):
        self.watermarks = watermarks
        self.email_provider = email_provider
        self.token_provider = token_provider
        self.app_url = app_url
        self.timeout_seconds = timeout_seconds
        self.tz = tz
        # One lock per advisor seen by this process, never evicted; the map is
        # bounded by the size of the sales team
        self._locks: Dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)
        self._needs_auth: Set[str] = set()

    def needs_authorization(self, advisor_id: str) -> bool:
        """True while the advisor's last silent token request failed."""
        return advisor_id in self._needs_auth

    @staticmethod
    def pending_alerts(alerts: Sequence[AdvisorAlert]) -> List[AdvisorAlert]:
        return [alert for alert in alerts if alert.should_email]

    async def run(
        self,
        user: User,
        alerts: Sequence[AdvisorAlert],
        interactive: bool = False,
        now: Optional[datetime] = None,
    ) -> EscalationResult:
        """
        Send today's digest for one advisor if it is due.

        Args:
            user: The advisor (recipient)
            alerts: Engine output for this advisor
            interactive: True when the advisor explicitly asked to send
            now: Reference time; defaults to the current UTC time

        Returns:
            EscalationResult describing what happened. Never raises for
            authorization or delivery problems.
        """
        pending = self.pending_alerts(alerts)
        if not user.email or not pending:
            return EscalationResult(state=EscalationState.NOTHING_TO_SEND)

        now = now or datetime.now(timezone.utc)
        today = to_calendar_date(now, self.tz)

        async with self._locks[user.id]:
            last_sent = await self.watermarks.get_last_sent(user.id)
            if last_sent is not None and to_calendar_date(last_sent, self.tz) == today:
                return EscalationResult(state=EscalationState.ALREADY_SENT, sent_at=last_sent)

            try:
                token = await self.token_provider.acquire(interactive=interactive)
            except TokenUnavailableError as e:
                self._needs_auth.add(user.id)
                logger.info(f"Send token unavailable for advisor {user.id} (interactive={interactive}): {e}")
                return EscalationResult(
                    state=EscalationState.NEEDS_AUTH,
                    error=REAUTHORIZE_MESSAGE if interactive else None,
                )

            subject, html_body, plain_text = build_advisor_digest_email(
                advisor_name=user.name,
                alerts=pending,
                day=today,
                objectives_url=self.app_url,
            )
            message = EmailMessage(
                to=user.email,
                subject=subject,
                html_body=html_body,
                plain_text_body=plain_text,
            )

            try:
                result = await asyncio.wait_for(
                    self.email_provider.send(message, access_token=token),
                    timeout=self.timeout_seconds,
                )
            except asyncio.TimeoutError:
                logger.error(f"Digest send for advisor {user.id} timed out after {self.timeout_seconds}s")
                return EscalationResult(state=EscalationState.FAILED, error=SEND_FAILED_MESSAGE)
            except Exception as e:
                logger.error(f"Digest send for advisor {user.id} failed: {e}")
                return EscalationResult(state=EscalationState.FAILED, error=SEND_FAILED_MESSAGE)

            if not result.success:
                logger.error(f"Digest send for advisor {user.id} failed: {result.error}")
                return EscalationResult(state=EscalationState.FAILED, error=SEND_FAILED_MESSAGE)

            recorded = await self.watermarks.record_sent(user.id, now, today)
            if not recorded:
                logger.warning(f"Digest for advisor {user.id} was already recorded for {today}")
            self._needs_auth.discard(user.id)

        logger.info(f"Sent alerts digest to advisor {user.id} with {len(pending)} alert(s)")
        return EscalationResult(
            state=EscalationState.SENT,
            alerts_sent=len(pending),
            sent_at=now,
            message_id=result.message_id,
        )
