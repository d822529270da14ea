# membership_service/models/capacity.py
"""
Capacity configuration and the lock rows that serialize seat allocation.
"""
from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, Enum
from sqlalchemy.orm import relationship
from membership_service.db.base_class import Base
from membership_service.constants.membership import OrgLevel, Zone
from membership_service.utils.timeutils import utcnow
import uuid


class CapacityOverride(Base):
    """Replaces the designation's default capacity for exactly one bucket."""
    __tablename__ = "capacity_overrides"

    id = Column(
        String, primary_key=True, default=lambda: f"cap_{uuid.uuid4().hex[:12]}"
    )
    bucket_key = Column(String(512), unique=True, nullable=False)

    cell_id = Column(String, ForeignKey("cells.id"), nullable=False)
    designation_id = Column(
        String, ForeignKey("designations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    level = Column(Enum(OrgLevel, name="org_level"), nullable=False)
    zone = Column(Enum(Zone, name="hrc_zone"), nullable=True)
    country_id = Column(String, ForeignKey("hrc_countries.id"), nullable=True)
    state_id = Column(String, ForeignKey("hrc_states.id"), nullable=True)
    district_id = Column(String, ForeignKey("hrc_districts.id"), nullable=True)
    mandal_id = Column(String, ForeignKey("hrc_mandals.id"), nullable=True)

    capacity = Column(Integer, nullable=False)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    designation = relationship("Designation", back_populates="capacity_overrides")


class CellLevelCapacity(Base):
    """
    Optional cap on all live seats of one cell at one level and geography,
    summed across designations.
    """
    __tablename__ = "cell_level_capacities"

    id = Column(
        String, primary_key=True, default=lambda: f"clc_{uuid.uuid4().hex[:12]}"
    )
    aggregate_key = Column(String(512), unique=True, nullable=False)

    cell_id = Column(String, ForeignKey("cells.id"), nullable=False, index=True)
    level = Column(Enum(OrgLevel, name="org_level"), nullable=False)
    zone = Column(Enum(Zone, name="hrc_zone"), nullable=True)
    country_id = Column(String, ForeignKey("hrc_countries.id"), nullable=True)
    state_id = Column(String, ForeignKey("hrc_states.id"), nullable=True)
    district_id = Column(String, ForeignKey("hrc_districts.id"), nullable=True)
    mandal_id = Column(String, ForeignKey("hrc_mandals.id"), nullable=True)

    capacity = Column(Integer, nullable=False)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)


class SeatBucket(Base):
    """
    One row per bucket, locked FOR UPDATE while a seat is counted and
    numbered so concurrent joins for the same bucket run one at a time.
    """
    __tablename__ = "seat_buckets"

    bucket_key = Column(String(512), primary_key=True)
    last_allocated_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)


class CardNumberCounter(Base):
    """Per-epoch credential sequence; the row is locked while a number is drawn."""
    __tablename__ = "card_number_counters"

    epoch = Column(Integer, primary_key=True, autoincrement=False)
    last_sequence = Column(Integer, nullable=False, default=0)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)
