# membership_service/models/designation.py
from sqlalchemy import Column, String, Integer, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from membership_service.db.base_class import Base
from membership_service.utils.timeutils import utcnow
import uuid


class Designation(Base):
    """
    A role type (e.g. PRESIDENT, SECRETARY) in the designation tree.

    The defaults are the fallback for capacity, fee and validity when no
    override matches a seat's scope.
    """
    __tablename__ = "designations"

    id = Column(
        String, primary_key=True, default=lambda: f"dsg_{uuid.uuid4().hex[:12]}"
    )
    code = Column(String(64), unique=True, nullable=False, index=True)
    name = Column(String(255), nullable=False)
    parent_id = Column(String, ForeignKey("designations.id"), nullable=True, index=True)

    default_capacity = Column(Integer, nullable=False, default=0)
    default_fee = Column(Integer, nullable=False, default=0)  # minor units
    default_validity_days = Column(Integer, nullable=False, default=365)
    order_rank = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    parent = relationship("Designation", remote_side=[id], back_populates="children")
    children = relationship("Designation", back_populates="parent")
    prices = relationship(
        "DesignationPrice", back_populates="designation", cascade="all, delete-orphan"
    )
    capacity_overrides = relationship(
        "CapacityOverride", back_populates="designation", cascade="all, delete-orphan"
    )
