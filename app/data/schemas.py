"""
Pydantic schemas for CRM records read from the document store.

The store is schema-on-read: documents arrive as camelCase dictionaries whose
date fields may be missing, empty or malformed. These schemas are the trust
boundary. Dates are decoded leniently (unusable values become None) so a bad
timestamp never rejects a whole record. Each record remembers which dates
were stored but unusable, so a rule can skip the record instead of falling
back to the next date field.
"""
from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Dict, FrozenSet, List, Mapping, Optional

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    PrivateAttr,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from app.data.dates import safe_parse_datetime


class OpportunityStage(str, Enum):
    """Sales pipeline stages."""
    NEW = "Nuevo"
    PROPOSAL = "Propuesta"
    NEGOTIATION = "Negociación"
    PENDING_APPROVAL = "Negociación a Aprobar"
    CLOSED_WON = "Cerrado - Ganado"
    CLOSED_LOST = "Cerrado - Perdido"


class InvoiceStatus(str, Enum):
    """Invoice lifecycle. PAID is terminal."""
    GENERATED = "Generada"
    SENT_TO_COLLECT = "Enviada a Cobrar"
    PAID = "Pagada"


class Periodicity(str, Enum):
    """Billing period tags attached to an opportunity."""
    OCCASIONAL = "Ocasional"
    MONTHLY = "Mensual"
    QUARTERLY = "Trimestral"
    BIANNUAL = "Semestral"
    ANNUAL = "Anual"


LenientDatetime = Annotated[Optional[datetime], BeforeValidator(safe_parse_datetime)]


class RecordModel(BaseModel):
    """Base for store records: camelCase aliases, unknown keys ignored."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    # Date fields whose stored value was present but could not be parsed
    _unparsable_dates: FrozenSet[str] = PrivateAttr(default_factory=frozenset)

    @model_validator(mode="wrap")
    @classmethod
    def track_unparsable_dates(cls, data: Any, handler):
        record = handler(data)
        if isinstance(data, Mapping):
            record._unparsable_dates = frozenset(
                name for name, field in cls.model_fields.items()
                if _is_lenient_date(field) and _is_unparsable(_raw_value(data, name, field.alias))
            )
        return record

    def has_value(self, name: str) -> bool:
        """True when the field was stored, even if its date did not parse."""
        return getattr(self, name) is not None or name in self._unparsable_dates

    def first_date(self, *names: str) -> Optional[datetime]:
        """
        The first stored value among `names`, parsed.

        Fields are tried in order and the first one holding any value wins.
        When that value is unparsable the result is None; later fields are
        not consulted.
        """
        for name in names:
            if name in self._unparsable_dates:
                return None
            value = getattr(self, name)
            if value is not None:
                return value
        return None


def _is_lenient_date(field) -> bool:
    return any(
        isinstance(m, BeforeValidator) and m.func is safe_parse_datetime
        for m in field.metadata
    )


def _raw_value(data: Mapping, name: str, alias: Optional[str]) -> Any:
    if alias and alias in data:
        return data[alias]
    return data.get(name)


def _is_unparsable(value: Any) -> bool:
    return value is not None and value != "" and safe_parse_datetime(value) is None


# ============================================================================
# PEOPLE
# ============================================================================

class User(RecordModel):
    """An application user. Advisors have role "Asesor"."""
    id: str
    email: Optional[str] = None
    name: str = ""
    role: Optional[str] = None
    area: Optional[str] = None
    # Per-screen overrides, e.g. {"Objectives": {"view": True, "edit": False}}
    permissions: Dict[str, Dict[str, bool]] = Field(default_factory=dict)


# ============================================================================
# BOOK OF BUSINESS
# ============================================================================

class Client(RecordModel):
    id: str
    owner_id: Optional[str] = None
    denominacion: str = ""
    created_at: LenientDatetime = None


class OrdenPautado(RecordModel):
    """A scheduled advertising run attached to an opportunity."""
    id: Optional[str] = None
    fecha_inicio: LenientDatetime = None


class Opportunity(RecordModel):
    id: str
    client_id: str
    title: str = ""
    stage: str = OpportunityStage.NEW.value
    created_at: LenientDatetime = None
    updated_at: LenientDatetime = None
    stage_changed_at: LenientDatetime = None
    manual_update_date: LenientDatetime = None
    close_date: LenientDatetime = None
    finalization_date: LenientDatetime = None
    periodicidad: List[Periodicity] = Field(default_factory=list)
    ordenes_pautado: List[OrdenPautado] = Field(default_factory=list)

    @field_validator("periodicidad", mode="before")
    @classmethod
    def drop_unknown_periods(cls, value: Any) -> List[str]:
        """Keep only recognised period tags; a bare string counts as one tag."""
        if value is None:
            return []
        if isinstance(value, (str, Periodicity)):
            value = [value]
        if not isinstance(value, (list, tuple)):
            return []
        known = {p.value for p in Periodicity}
        tags = [getattr(v, "value", v) for v in value]
        return [t for t in tags if isinstance(t, str) and t in known]

    @field_validator("ordenes_pautado", mode="before")
    @classmethod
    def none_as_empty(cls, value: Any) -> Any:
        return value or []


class Invoice(RecordModel):
    id: str
    opportunity_id: str
    invoice_number: Optional[str] = None
    status: str = InvoiceStatus.GENERATED.value
    issue_date: LenientDatetime = Field(default=None, alias="date")
    date_generated: LenientDatetime = None

    @property
    def is_paid(self) -> bool:
        return self.status == InvoiceStatus.PAID.value


class Prospect(RecordModel):
    id: str
    owner_id: Optional[str] = None
    company_name: str = ""
    status: str = ""
    status_changed_at: LenientDatetime = None
    created_at: LenientDatetime = None
    contact_name: Optional[str] = None
