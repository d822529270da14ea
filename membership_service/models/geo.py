# membership_service/models/geo.py
"""
Administrative geography: country > state > district > mandal.

Each state belongs to exactly one zone; zones themselves are a fixed enum.
"""
from sqlalchemy import Column, String, DateTime, ForeignKey, Enum, UniqueConstraint
from sqlalchemy.orm import relationship
from membership_service.db.base_class import Base
from membership_service.constants.membership import Zone
from membership_service.utils.timeutils import utcnow
import uuid


class HrcCountry(Base):
    __tablename__ = "hrc_countries"

    id = Column(
        String, primary_key=True, default=lambda: f"cty_{uuid.uuid4().hex[:12]}"
    )
    name = Column(String(255), unique=True, nullable=False)
    code = Column(String(8), unique=True, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    states = relationship("HrcState", back_populates="country")


class HrcState(Base):
    __tablename__ = "hrc_states"
    __table_args__ = (UniqueConstraint("country_id", "name", name="uq_state_country_name"),)

    id = Column(
        String, primary_key=True, default=lambda: f"st_{uuid.uuid4().hex[:12]}"
    )
    name = Column(String(255), nullable=False)
    code = Column(String(8), nullable=True)
    zone = Column(Enum(Zone, name="hrc_zone"), nullable=False)
    country_id = Column(String, ForeignKey("hrc_countries.id"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    country = relationship("HrcCountry", back_populates="states")
    districts = relationship("HrcDistrict", back_populates="state")


class HrcDistrict(Base):
    __tablename__ = "hrc_districts"
    __table_args__ = (UniqueConstraint("state_id", "name", name="uq_district_state_name"),)

    id = Column(
        String, primary_key=True, default=lambda: f"dst_{uuid.uuid4().hex[:12]}"
    )
    name = Column(String(255), nullable=False)
    state_id = Column(String, ForeignKey("hrc_states.id"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    state = relationship("HrcState", back_populates="districts")
    mandals = relationship("HrcMandal", back_populates="district")


class HrcMandal(Base):
    __tablename__ = "hrc_mandals"
    __table_args__ = (UniqueConstraint("district_id", "name", name="uq_mandal_district_name"),)

    id = Column(
        String, primary_key=True, default=lambda: f"mdl_{uuid.uuid4().hex[:12]}"
    )
    name = Column(String(255), nullable=False)
    district_id = Column(String, ForeignKey("hrc_districts.id"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    district = relationship("HrcDistrict", back_populates="mandals")
