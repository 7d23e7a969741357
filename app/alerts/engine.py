"""
Advisor Alert Engine

Scans one advisor's book of business and derives the alerts they should act
on. The engine is a pure computation over a snapshot: it performs no I/O,
never mutates its inputs and returns the same list for the same arguments.

Rules, in evaluation order:
1. INVOICE     - Invoices not marked as paid a week after issue
2. PROSPECT    - Prospects whose status has not moved
3. CLIENT      - Clients with no opportunities at all
4. OPPORTUNITY - Recurring opportunities close to their projected end
5. STAGE       - Opportunities that outstayed their pipeline stage
"""

from datetime import date, datetime, tzinfo
from typing import Callable, Dict, List, Optional, Sequence, Union

from app.data.dates import add_months, days_between, format_long_date, to_calendar_date
from app.data.schemas import Client, Invoice, Opportunity, Prospect, User
from .escalation import escalates_once_at, is_start_of_month, should_escalate
from .models import AdvisorAlert, AlertMeta, AlertSeverity, AlertType
from .rules import ALERT_RULES, SEVERITY_WEIGHTS, AlertsConfig, period_months


class AdvisorAlertEngine:
    """
    Evaluates alert rules for a single advisor.

    Construction scopes the snapshot to records the advisor owns: their
    clients, opportunities of those clients, invoices of those opportunities,
    and prospects they own directly. Every rule works on the scoped view only.
    """

    def __init__(
        self,
        user: User,
        opportunities: Sequence[Opportunity],
        clients: Sequence[Client],
        invoices: Sequence[Invoice],
        prospects: Sequence[Prospect],
        today: date,
        config: Optional[AlertsConfig] = None,
        tz: Optional[tzinfo] = None,
    ):
        self.user = user
        self.today = today
        self.config = config or AlertsConfig()
        self.tz = tz

        self.clients = [c for c in clients if c.owner_id == user.id]
        client_ids = {c.id for c in self.clients}
        self.opportunities = [o for o in opportunities if o.client_id in client_ids]
        opportunity_ids = {o.id for o in self.opportunities}
        self.invoices = [i for i in invoices if i.opportunity_id in opportunity_ids]
        self.prospects = [p for p in prospects if p.owner_id == user.id]

        self._client_map: Dict[str, Client] = {c.id: c for c in self.clients}
        self._opportunity_map: Dict[str, Opportunity] = {o.id: o for o in self.opportunities}

    def run(self) -> List[AdvisorAlert]:
        """Run every rule and return alerts, most severe first."""
        if not self.clients:
            return []

        detectors: List[Callable[[], List[AdvisorAlert]]] = [
            self._detect_unpaid_invoices,
            self._detect_stalled_prospects,
            self._detect_clients_without_opportunities,
            self._detect_opportunities_ending,
            self._detect_stage_aging,
        ]

        alerts: List[AdvisorAlert] = []
        for detector in detectors:
            alerts.extend(detector())

        # sorted() is stable, so equal severities keep rule order
        return sorted(alerts, key=lambda a: SEVERITY_WEIGHTS[a.severity], reverse=True)

    def _date(self, value) -> Optional[date]:
        return to_calendar_date(value, self.tz)

    def _days_since(self, value) -> Optional[int]:
        anchor = self._date(value)
        if anchor is None:
            return None
        return days_between(anchor, self.today)

    def _client_meta(self, client: Optional[Client]) -> List[AlertMeta]:
        return [AlertMeta("Cliente", client.denominacion)] if client else []

    # ==========================================================================
    # Rule: INVOICE
    # ==========================================================================
    def _detect_unpaid_invoices(self) -> List[AdvisorAlert]:
        thresholds = ALERT_RULES[AlertType.INVOICE]["thresholds"]
        min_days = thresholds["min_days"]

        alerts = []
        for invoice in self.invoices:
            if invoice.is_paid:
                continue

            # Manual issue date wins over the generation timestamp
            days_since = self._days_since(invoice.issue_date or invoice.date_generated)
            if days_since is None or days_since < min_days:
                continue

            opportunity = self._opportunity_map.get(invoice.opportunity_id)
            client = self._client_map.get(opportunity.client_id) if opportunity else None
            number = invoice.invoice_number or invoice.id
            client_name = client.denominacion if client else "Cliente sin nombre"

            meta = self._client_meta(client)
            if opportunity:
                meta.append(AlertMeta("Oportunidad", opportunity.title))
            meta.append(AlertMeta("Días sin pago", str(days_since)))

            alerts.append(AdvisorAlert(
                id=f"{AlertType.INVOICE.value}-{invoice.id}",
                type=AlertType.INVOICE,
                title="Factura sin marcar como pagada",
                description=(
                    f"La factura {number} lleva {days_since} días sin cobrarse "
                    f"desde su fecha de emisión."
                ),
                severity=(
                    AlertSeverity.CRITICAL
                    if days_since >= thresholds["critical_days"]
                    else AlertSeverity.WARNING
                ),
                meta=meta,
                should_email=should_escalate(days_since, min_days, thresholds["email_every_days"]),
                email_summary=(
                    f"Factura {number} ({client_name}) acumula {days_since} días "
                    f"sin registrarse como pagada."
                ),
                entity_href="/billing?tab=to-collect",
            ))
        return alerts

    # ==========================================================================
    # Rule: PROSPECT
    # ==========================================================================
    def _detect_stalled_prospects(self) -> List[AdvisorAlert]:
        thresholds = ALERT_RULES[AlertType.PROSPECT]["thresholds"]
        min_days = thresholds["min_days"]

        alerts = []
        for prospect in self.prospects:
            last_change = self._date(prospect.first_date("status_changed_at", "created_at"))
            if last_change is None:
                continue
            days_since = days_between(last_change, self.today)
            if days_since < min_days:
                continue

            alerts.append(AdvisorAlert(
                id=f"{AlertType.PROSPECT.value}-{prospect.id}",
                type=AlertType.PROSPECT,
                title="Prospecto sin avances",
                description=(
                    f'{prospect.company_name} permanece en "{prospect.status}" '
                    f"desde hace {days_since} días."
                ),
                severity=(
                    AlertSeverity.WARNING
                    if days_since >= thresholds["warning_days"]
                    else AlertSeverity.INFO
                ),
                meta=[
                    AlertMeta("Contacto", prospect.contact_name or "Sin datos"),
                    AlertMeta("Último cambio", format_long_date(last_change)),
                ],
                should_email=should_escalate(days_since, min_days, thresholds["email_every_days"]),
                email_summary=(
                    f'Prospecto {prospect.company_name} sigue en "{prospect.status}" '
                    f"hace {days_since} días."
                ),
                entity_href=f"/prospects?prospectId={prospect.id}",
            ))
        return alerts

    # ==========================================================================
    # Rule: CLIENT
    # ==========================================================================
    def _detect_clients_without_opportunities(self) -> List[AdvisorAlert]:
        thresholds = ALERT_RULES[AlertType.CLIENT]["thresholds"]
        clients_with_opportunities = {o.client_id for o in self.opportunities}
        # Monthly reminder rather than a daily nag
        email_today = is_start_of_month(self.today, thresholds["email_until_day_of_month"])

        alerts = []
        for client in self.clients:
            if client.id in clients_with_opportunities:
                continue
            alerts.append(AdvisorAlert(
                id=f"{AlertType.CLIENT.value}-{client.id}",
                type=AlertType.CLIENT,
                title="Cliente sin propuestas activas",
                description=f"{client.denominacion} todavía no tiene oportunidades cargadas.",
                severity=AlertSeverity.INFO,
                meta=self._client_meta(client),
                should_email=email_today,
                email_summary=f"{client.denominacion} sin oportunidades activas.",
                entity_href=f"/clients/{client.id}",
            ))
        return alerts

    # ==========================================================================
    # Rule: OPPORTUNITY
    # ==========================================================================
    def _reference_date(self, opportunity: Opportunity) -> Optional[date]:
        """Manual update, else earliest run start, else close date, else creation."""
        manual = self._date(opportunity.manual_update_date)
        if manual:
            return manual

        starts = sorted(
            d for d in (self._date(o.fecha_inicio) for o in opportunity.ordenes_pautado)
            if d is not None
        )
        if starts:
            return starts[0]

        return self._date(opportunity.close_date) or self._date(opportunity.created_at)

    def projected_end_date(self, opportunity: Opportunity) -> Optional[date]:
        """When the opportunity's current commitment period lapses."""
        explicit = self._date(opportunity.finalization_date)
        if explicit:
            return explicit

        reference = self._reference_date(opportunity)
        if reference is None:
            return None

        period = opportunity.periodicidad[0] if opportunity.periodicidad else None
        return add_months(reference, period_months(period))

    def _detect_opportunities_ending(self) -> List[AdvisorAlert]:
        thresholds = ALERT_RULES[AlertType.OPPORTUNITY]["thresholds"]

        alerts = []
        for opportunity in self.opportunities:
            # Administratively closed out, even when the date itself is unreadable
            if opportunity.has_value("finalization_date"):
                continue

            end_date = self.projected_end_date(opportunity)
            if end_date is None:
                continue

            days_until_end = days_between(self.today, end_date)
            if days_until_end < 0 or days_until_end > thresholds["window_days"]:
                continue

            client = self._client_map.get(opportunity.client_id)
            alerts.append(AdvisorAlert(
                id=f"{AlertType.OPPORTUNITY.value}-{opportunity.id}",
                type=AlertType.OPPORTUNITY,
                title="Propuesta próxima a finalizar",
                description=f"{opportunity.title} terminará en {days_until_end} día(s).",
                severity=(
                    AlertSeverity.CRITICAL
                    if days_until_end <= thresholds["critical_days"]
                    else AlertSeverity.WARNING
                ),
                meta=self._client_meta(client) + [
                    AlertMeta("Fecha estimada", format_long_date(end_date)),
                ],
                should_email=escalates_once_at(days_until_end, thresholds["email_at_days"]),
                email_summary=(
                    f"La propuesta {opportunity.title} finalizará el "
                    f"{format_long_date(end_date)} ({days_until_end} días)."
                ),
                entity_href=f"/opportunities?opportunityId={opportunity.id}",
            ))
        return alerts

    # ==========================================================================
    # Rule: STAGE
    # ==========================================================================
    def _detect_stage_aging(self) -> List[AdvisorAlert]:
        extra_days = ALERT_RULES[AlertType.STAGE]["thresholds"]["critical_extra_days"]

        alerts = []
        for opportunity in self.opportunities:
            threshold = self.config.threshold_for(opportunity.stage)
            if threshold is None:
                continue

            days_in_stage = self._days_since(
                opportunity.first_date("stage_changed_at", "updated_at", "created_at")
            )
            if days_in_stage is None or days_in_stage < threshold:
                continue

            client = self._client_map.get(opportunity.client_id)
            alerts.append(AdvisorAlert(
                id=f"{AlertType.STAGE.value}-{opportunity.id}",
                type=AlertType.STAGE,
                title=f"Oportunidad en {opportunity.stage}",
                description=(
                    f"{opportunity.title} lleva {days_in_stage} días en la etapa "
                    f"{opportunity.stage}."
                ),
                severity=(
                    AlertSeverity.CRITICAL
                    if days_in_stage >= threshold + extra_days
                    else AlertSeverity.WARNING
                ),
                meta=self._client_meta(client) + [
                    AlertMeta("Días en etapa", str(days_in_stage)),
                ],
                # Stage staleness always escalates
                should_email=True,
                email_summary=(
                    f"{opportunity.title} permanece {days_in_stage} días en {opportunity.stage}."
                ),
                entity_href=f"/opportunities?opportunityId={opportunity.id}",
            ))
        return alerts


def build_advisor_alerts(
    user: User,
    opportunities: Sequence[Opportunity],
    clients: Sequence[Client],
    invoices: Sequence[Invoice],
    prospects: Sequence[Prospect],
    today: Union[date, datetime, None] = None,
    config: Optional[AlertsConfig] = None,
    tz: Optional[tzinfo] = None,
) -> List[AdvisorAlert]:
    """
    Build the ordered alert list for one advisor.

    Args:
        user: The advisor whose book of business is evaluated
        opportunities, clients, invoices, prospects: Full, unfiltered collections
        today: Reference day (date or datetime); defaults to now
        config: Stage thresholds override; defaults apply when omitted
        tz: Time zone used to turn aware timestamps into calendar dates

    Returns:
        Alerts sorted by severity (critical first), rule order kept for ties.
    """
    if today is None:
        today = datetime.now(tz)
    reference_day = to_calendar_date(today, tz)

    engine = AdvisorAlertEngine(
        user=user,
        opportunities=opportunities,
        clients=clients,
        invoices=invoices,
        prospects=prospects,
        today=reference_day,
        config=config,
        tz=tz,
    )
    return engine.run()
