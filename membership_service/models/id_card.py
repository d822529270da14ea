# membership_service/models/id_card.py
from sqlalchemy import (
    Column, String, Integer, DateTime, ForeignKey, Enum, UniqueConstraint,
)
from sqlalchemy.orm import relationship
from membership_service.db.base_class import Base
from membership_service.constants.membership import CardStatus
from membership_service.utils.timeutils import utcnow
import uuid


class IdCard(Base):
    """
    The credential issued for an ACTIVE membership.

    Reissue keeps the row and replaces the number. The name columns are a
    snapshot for the card renderer, taken at issue time.
    """
    __tablename__ = "id_cards"
    __table_args__ = (
        UniqueConstraint("epoch", "sequence", name="uq_id_card_epoch_sequence"),
    )

    id = Column(
        String, primary_key=True, default=lambda: f"idc_{uuid.uuid4().hex[:12]}"
    )
    membership_id = Column(
        String, ForeignKey("memberships.id"), unique=True, nullable=False
    )

    card_number = Column(String(32), unique=True, nullable=False)  # Format: HRCI-YYYY-NNNNN
    epoch = Column(Integer, nullable=False)
    sequence = Column(Integer, nullable=False)

    status = Column(Enum(CardStatus, name="id_card_status"), nullable=False)
    issued_at = Column(DateTime(timezone=True), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=True)

    # Rendering snapshot
    full_name = Column(String(255), nullable=True)
    designation_name = Column(String(255), nullable=True)
    cell_name = Column(String(255), nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    membership = relationship("Membership", back_populates="id_card")
