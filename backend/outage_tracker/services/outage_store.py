"""Keyed table of outage events with an active flag."""

import logging
from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from outage_tracker.models.outage import Outage

logger = logging.getLogger(__name__)


class OutageStore:
    """Reads and writes ``outages`` rows through a caller-owned session.

    Writes become durable when the caller's unit of work commits.
    """

    def __init__(self, db: Session):
        self._db = db

    def upsert(
        self,
        event_id: str,
        county: str,
        customers_affected: int,
        *,
        device_lat: float | None = None,
        device_lon: float | None = None,
        cause: str | None = None,
        seen_at: datetime | None = None,
    ) -> Outage:
        """Insert or fully replace the event's record and mark it active."""
        if customers_affected < 0:
            raise ValueError(f"customers_affected must be >= 0, got {customers_affected}")

        outage = self._db.get(Outage, event_id)
        if outage is None:
            outage = Outage(event_id=event_id, first_seen_at=seen_at)
            self._db.add(outage)
            logger.debug("New outage event %s", event_id)

        outage.county = county
        outage.customers_affected = customers_affected
        outage.device_lat = device_lat
        outage.device_lon = device_lon
        outage.cause = cause
        outage.active = True
        if seen_at is not None:
            outage.last_seen_at = seen_at
        self._db.flush()
        return outage

    def active_ids(self) -> set[str]:
        rows = self._db.execute(select(Outage.event_id).where(Outage.active.is_(True)))
        return {r[0] for r in rows}

    def deactivate(self, event_id: str) -> bool:
        """Mark the event inactive. Returns False if the id is unknown."""
        result = self._db.execute(
            update(Outage).where(Outage.event_id == event_id).values(active=False)
        )
        return result.rowcount > 0

    def get(self, event_id: str) -> Outage | None:
        return self._db.get(Outage, event_id)

    def list_events(self, active: bool | None = None) -> list[Outage]:
        stmt = select(Outage).order_by(Outage.customers_affected.desc(), Outage.event_id)
        if active is not None:
            stmt = stmt.where(Outage.active.is_(active))
        return list(self._db.scalars(stmt))
