from sqlalchemy import Boolean, Column, DateTime, Float, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from outage_tracker.database import Base


class Outage(Base):
    """One row per provider event; flipped inactive, never deleted, once it clears."""
    __tablename__ = "outages"

    event_id = Column(String(64), primary_key=True)
    active = Column(Boolean, nullable=False, default=True, index=True)
    county = Column(String(100))
    customers_affected = Column(Integer, nullable=False, default=0)
    device_lat = Column(Float)
    device_lon = Column(Float)
    cause = Column(Text)
    first_seen_at = Column(DateTime)
    last_seen_at = Column(DateTime)
    created_at = Column(DateTime, server_default=func.now())

    boundary_points = relationship(
        "BoundaryPoint",
        back_populates="outage",
        order_by="BoundaryPoint.seq",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class BoundaryPoint(Base):
    """A vertex of the convex hull the provider reports for an event."""
    __tablename__ = "boundary_points"
    __table_args__ = (
        Index("ix_boundary_points_event_seq", "event_id", "seq"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    event_id = Column(
        String(64),
        ForeignKey("outages.event_id", ondelete="CASCADE"),
        nullable=False,
    )
    seq = Column(Integer, nullable=False)
    lat = Column(Float, nullable=False)
    lon = Column(Float, nullable=False)
    active = Column(Boolean, nullable=False, default=True)

    outage = relationship("Outage", back_populates="boundary_points")
