"""
Record repository boundary.

The CRM keeps its records in a hosted document store. This module defines
the narrow read interface the alerts code needs, an in-memory implementation,
and the snapshot loader that decodes raw documents into validated schemas.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date, tzinfo
from typing import Any, Dict, Iterable, List, Mapping, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from app.data.dates import days_between, to_calendar_date
from app.data.schemas import Client, Invoice, Opportunity, Prospect, User

logger = logging.getLogger(__name__)

RawRecord = Dict[str, Any]
ModelT = TypeVar("ModelT", bound=BaseModel)


class RecordRepository(ABC):
    """Read access to the document store collections."""

    @abstractmethod
    async def fetch_users(self) -> List[RawRecord]:
        pass

    @abstractmethod
    async def fetch_clients(self) -> List[RawRecord]:
        pass

    @abstractmethod
    async def fetch_opportunities(self) -> List[RawRecord]:
        pass

    @abstractmethod
    async def fetch_invoices(self) -> List[RawRecord]:
        pass

    @abstractmethod
    async def fetch_prospects(self) -> List[RawRecord]:
        pass

    @abstractmethod
    async def fetch_alerts_config(self) -> Optional[RawRecord]:
        """The ``opportunity_alerts`` configuration record, if present."""
        pass

    @abstractmethod
    async def fetch_area_permissions(self) -> Dict[str, Dict[str, Dict[str, bool]]]:
        """Area -> screen -> {"view": bool, "edit": bool}."""
        pass


class InMemoryRecordRepository(RecordRepository):
    """Repository over plain lists, for fixtures and local development."""

    def __init__(
        self,
        users: Optional[List[RawRecord]] = None,
        clients: Optional[List[RawRecord]] = None,
        opportunities: Optional[List[RawRecord]] = None,
        invoices: Optional[List[RawRecord]] = None,
        prospects: Optional[List[RawRecord]] = None,
        alerts_config: Optional[RawRecord] = None,
        area_permissions: Optional[Dict[str, Dict[str, Dict[str, bool]]]] = None,
    ):
        self.users = users or []
        self.clients = clients or []
        self.opportunities = opportunities or []
        self.invoices = invoices or []
        self.prospects = prospects or []
        self.alerts_config = alerts_config
        self.area_permissions = area_permissions or {}

    async def fetch_users(self) -> List[RawRecord]:
        return list(self.users)

    async def fetch_clients(self) -> List[RawRecord]:
        return list(self.clients)

    async def fetch_opportunities(self) -> List[RawRecord]:
        return list(self.opportunities)

    async def fetch_invoices(self) -> List[RawRecord]:
        return list(self.invoices)

    async def fetch_prospects(self) -> List[RawRecord]:
        return list(self.prospects)

    async def fetch_alerts_config(self) -> Optional[RawRecord]:
        return self.alerts_config

    async def fetch_area_permissions(self) -> Dict[str, Dict[str, Dict[str, bool]]]:
        return self.area_permissions


# ============================================================================
# DECODING
# ============================================================================

def decode_records(model: Type[ModelT], records: Iterable[Mapping[str, Any]]) -> List[ModelT]:
    """
    Validate raw documents, skipping any that do not fit the schema.

    Bad dates never reject a record (they decode to None); a record is only
    dropped when something structural is wrong, such as a missing id.
    """
    decoded = []
    for record in records:
        try:
            decoded.append(model.model_validate(record))
        except ValidationError as e:
            record_id = record.get("id") if isinstance(record, Mapping) else None
            logger.warning(
                f"Skipping invalid {model.__name__} record {record_id!r}: "
                f"{e.error_count()} validation error(s)"
            )
    return decoded


@dataclass
class BookSnapshot:
    """Point-in-time copy of every collection the alert rules read."""
    users: List[User] = field(default_factory=list)
    clients: List[Client] = field(default_factory=list)
    opportunities: List[Opportunity] = field(default_factory=list)
    invoices: List[Invoice] = field(default_factory=list)
    prospects: List[Prospect] = field(default_factory=list)
    alerts_config: Optional[RawRecord] = None

    def get_user(self, user_id: str) -> Optional[User]:
        for user in self.users:
            if user.id == user_id:
                return user
        return None


async def load_snapshot(repository: RecordRepository) -> BookSnapshot:
    """Fetch all collections concurrently and decode them."""
    users, clients, opportunities, invoices, prospects, alerts_config = await asyncio.gather(
        repository.fetch_users(),
        repository.fetch_clients(),
        repository.fetch_opportunities(),
        repository.fetch_invoices(),
        repository.fetch_prospects(),
        repository.fetch_alerts_config(),
    )

    return BookSnapshot(
        users=decode_records(User, users),
        clients=decode_records(Client, clients),
        opportunities=decode_records(Opportunity, opportunities),
        invoices=decode_records(Invoice, invoices),
        prospects=decode_records(Prospect, prospects),
        alerts_config=alerts_config,
    )


# ============================================================================
# PROSPECT VISIBILITY
# ============================================================================

def visible_prospects(
    prospects: Iterable[Prospect],
    visibility_days: int,
    today: date,
    tz: Optional[tzinfo] = None,
) -> List[Prospect]:
    """
    Prospects still visible to their owners.

    With a positive window, a prospect whose last activity is older than the
    window is hidden. Prospects with no usable activity date stay visible.
    """
    if visibility_days <= 0:
        return list(prospects)

    visible = []
    for prospect in prospects:
        last_activity = to_calendar_date(prospect.first_date("status_changed_at", "created_at"), tz)
        if last_activity is None or days_between(last_activity, today) <= visibility_days:
            visible.append(prospect)
    return visible
