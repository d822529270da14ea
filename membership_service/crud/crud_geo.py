# membership_service/crud/crud_geo.py
from typing import Optional
from sqlalchemy.orm import Session

from membership_service.models.geo import HrcCountry, HrcState, HrcDistrict, HrcMandal


class CRUDGeo:
    """Read-only lookups over the geography tables."""

    def get_country(self, db: Session, id: str) -> Optional[HrcCountry]:
        return db.query(HrcCountry).filter(HrcCountry.id == id).first()

    def get_state(self, db: Session, id: str) -> Optional[HrcState]:
        return db.query(HrcState).filter(HrcState.id == id).first()

    def get_district(self, db: Session, id: str) -> Optional[HrcDistrict]:
        return db.query(HrcDistrict).filter(HrcDistrict.id == id).first()

    def get_mandal(self, db: Session, id: str) -> Optional[HrcMandal]:
        return db.query(HrcMandal).filter(HrcMandal.id == id).first()


geo = CRUDGeo()
