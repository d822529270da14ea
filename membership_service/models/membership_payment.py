# membership_service/models/membership_payment.py
from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, Enum
from sqlalchemy.orm import relationship
from membership_service.db.base_class import Base
from membership_service.constants.membership import PaymentStatus, PaymentPurpose
from membership_service.utils.timeutils import utcnow
import uuid


class MembershipPayment(Base):
    """An amount owed on a membership (join fee or reassignment delta)."""
    __tablename__ = "membership_payments"

    id = Column(
        String, primary_key=True, default=lambda: f"mpay_{uuid.uuid4().hex[:12]}"
    )
    membership_id = Column(
        String, ForeignKey("memberships.id"), nullable=False, index=True
    )
    purpose = Column(Enum(PaymentPurpose, name="membership_payment_purpose"), nullable=False)
    amount = Column(Integer, nullable=False)  # minor units
    currency = Column(String(3), nullable=False)
    status = Column(
        Enum(PaymentStatus, name="membership_payment_status"), nullable=False
    )

    # Gateway reference; unique so a replayed callback cannot apply twice
    provider_ref = Column(String(255), unique=True, nullable=True)
    paid_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    membership = relationship("Membership", back_populates="payments")
