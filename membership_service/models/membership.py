# membership_service/models/membership.py
from sqlalchemy import (
    Column, String, Integer, DateTime, ForeignKey, Enum, UniqueConstraint, Index,
)
from sqlalchemy.orm import relationship
from membership_service.db.base_class import Base
from membership_service.constants.membership import (
    OrgLevel, Zone, MembershipStatus, PaymentStatus,
)
from membership_service.utils.timeutils import utcnow
import uuid


class Membership(Base):
    """
    A user's claim on one seat in a bucket.

    A bucket is the full scope (cell, designation, level, geography); the
    canonical scope string is stored in `bucket_key` and seats are numbered
    1..n inside it.
    """
    __tablename__ = "memberships"
    __table_args__ = (
        UniqueConstraint("bucket_key", "seat_sequence", name="uq_membership_bucket_seat"),
        Index("ix_memberships_bucket_status", "bucket_key", "status"),
        Index("ix_memberships_status_expires_at", "status", "expires_at"),
    )

    id = Column(
        String, primary_key=True, default=lambda: f"mbr_{uuid.uuid4().hex[:12]}"
    )
    user_id = Column(String, nullable=False, index=True)
    full_name = Column(String(255), nullable=True)  # credential snapshot source

    # Scope
    cell_id = Column(String, ForeignKey("cells.id"), nullable=False, index=True)
    designation_id = Column(String, ForeignKey("designations.id"), nullable=False, index=True)
    level = Column(Enum(OrgLevel, name="org_level"), nullable=False)
    zone = Column(Enum(Zone, name="hrc_zone"), nullable=True)
    country_id = Column(String, ForeignKey("hrc_countries.id"), nullable=True)
    state_id = Column(String, ForeignKey("hrc_states.id"), nullable=True)
    district_id = Column(String, ForeignKey("hrc_districts.id"), nullable=True)
    mandal_id = Column(String, ForeignKey("hrc_mandals.id"), nullable=True)

    bucket_key = Column(String(512), nullable=False)
    seat_sequence = Column(Integer, nullable=False)

    status = Column(Enum(MembershipStatus, name="membership_status"), nullable=False)
    payment_status = Column(
        Enum(PaymentStatus, name="membership_payment_status"), nullable=False
    )

    # Resolved at join / reassignment time
    fee_amount = Column(Integer, nullable=False, default=0)  # minor units
    currency = Column(String(3), nullable=False)
    validity_days = Column(Integer, nullable=False)

    activated_at = Column(DateTime(timezone=True), nullable=True)
    expires_at = Column(DateTime(timezone=True), nullable=True)
    revoked_at = Column(DateTime(timezone=True), nullable=True)
    locked_at = Column(DateTime(timezone=True), nullable=True)  # last reassignment

    # Optimistic concurrency token, bumped on every UPDATE
    version = Column(Integer, nullable=False)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    designation = relationship("Designation")
    cell = relationship("Cell")
    payments = relationship(
        "MembershipPayment",
        back_populates="membership",
        order_by="MembershipPayment.created_at",
    )
    id_card = relationship("IdCard", back_populates="membership", uselist=False)
