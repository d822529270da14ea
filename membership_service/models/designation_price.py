# membership_service/models/designation_price.py
from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, Enum
from sqlalchemy.orm import relationship
from membership_service.db.base_class import Base
from membership_service.constants.membership import OrgLevel, Zone
from membership_service.utils.timeutils import utcnow
import uuid


class DesignationPrice(Base):
    """
    A fee/validity override for a designation.

    Every nullable scope column narrows where the override applies; the
    resolver scores each row against a seat and picks the best match.
    """
    __tablename__ = "designation_prices"

    id = Column(
        String, primary_key=True, default=lambda: f"dpr_{uuid.uuid4().hex[:12]}"
    )
    designation_id = Column(
        String, ForeignKey("designations.id", ondelete="CASCADE"), nullable=False, index=True
    )

    # Optional scope
    cell_id = Column(String, ForeignKey("cells.id"), nullable=True)
    level = Column(Enum(OrgLevel, name="org_level"), nullable=True)
    zone = Column(Enum(Zone, name="hrc_zone"), nullable=True)
    state_id = Column(String, ForeignKey("hrc_states.id"), nullable=True)
    district_id = Column(String, ForeignKey("hrc_districts.id"), nullable=True)
    mandal_id = Column(String, ForeignKey("hrc_mandals.id"), nullable=True)

    fee = Column(Integer, nullable=False)  # minor units
    currency = Column(String(3), nullable=True)
    validity_days = Column(Integer, nullable=True)
    priority = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    designation = relationship("Designation", back_populates="prices")
