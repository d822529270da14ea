# membership_service/crud/crud_designation_price.py
from typing import List
from sqlalchemy.orm import Session

from membership_service.models.designation_price import DesignationPrice
from membership_service.schemas.designation import DesignationPriceCreate


class CRUDDesignationPrice:
    """CRUD operations for designation fee overrides."""

    def list_for_designation(self, db: Session, designation_id: str) -> List[DesignationPrice]:
        return (
            db.query(DesignationPrice)
            .filter(DesignationPrice.designation_id == designation_id)
            .order_by(DesignationPrice.created_at.asc())
            .all()
        )

    def create(
        self, db: Session, *, designation_id: str, obj_in: DesignationPriceCreate
    ) -> DesignationPrice:
        db_obj = DesignationPrice(designation_id=designation_id, **obj_in.model_dump())
        db.add(db_obj)
        db.commit()
        db.refresh(db_obj)
        return db_obj


designation_price = CRUDDesignationPrice()
