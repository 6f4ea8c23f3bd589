"""Boundary points of each outage's reported convex hull."""

import logging
from collections.abc import Iterable

from sqlalchemy import delete, select, update
from sqlalchemy.orm import Session

from outage_tracker.errors import StorageError
from outage_tracker.models.outage import BoundaryPoint, Outage

logger = logging.getLogger(__name__)


class CoordinateStore:
    """Per-event hull storage with replace semantics.

    Deactivation flags points instead of deleting them; rows only disappear
    when their owning outage row is deleted (ON DELETE CASCADE).
    """

    def __init__(self, db: Session):
        self._db = db

    def replace(self, event_id: str, points: Iterable[tuple[float, float]]) -> int:
        """Swap the stored hull for ``points`` (lat, lon pairs). Returns the new point count."""
        if self._db.get(Outage, event_id) is None:
            raise StorageError(f"Cannot store boundary for unknown event {event_id}")

        self._db.execute(
            delete(BoundaryPoint)
            .where(BoundaryPoint.event_id == event_id)
            .execution_options(synchronize_session="fetch")
        )
        count = 0
        for seq, (lat, lon) in enumerate(points):
            self._db.add(BoundaryPoint(event_id=event_id, seq=seq, lat=lat, lon=lon, active=True))
            count += 1
        self._db.flush()
        return count

    def deactivate(self, event_id: str) -> int:
        """Flag every point of the event inactive. Returns the number of rows touched."""
        result = self._db.execute(
            update(BoundaryPoint).where(BoundaryPoint.event_id == event_id).values(active=False)
        )
        return result.rowcount

    def points_for(self, event_id: str) -> list[BoundaryPoint]:
        stmt = (
            select(BoundaryPoint)
            .where(BoundaryPoint.event_id == event_id)
            .order_by(BoundaryPoint.seq)
        )
        return list(self._db.scalars(stmt))
