# membership_service/crud/crud_id_card.py
from typing import List, Optional
from sqlalchemy import func
from sqlalchemy.orm import Session

from membership_service.models.capacity import CardNumberCounter
from membership_service.models.id_card import IdCard


class CRUDIdCard:
    def get_by_membership(self, db: Session, membership_id: str) -> Optional[IdCard]:
        return db.query(IdCard).filter(IdCard.membership_id == membership_id).first()

    def lock_counter(self, db: Session, epoch: int) -> CardNumberCounter:
        """SELECT ... FOR UPDATE on the epoch counter, creating it on first use."""
        counter = (
            db.query(CardNumberCounter)
            .filter(CardNumberCounter.epoch == epoch)
            .with_for_update()
            .first()
        )
        if counter is None:
            counter = CardNumberCounter(epoch=epoch, last_sequence=0)
            db.add(counter)
            db.flush()
        return counter

    def max_sequence(self, db: Session, epoch: int) -> int:
        return (
            db.query(func.max(IdCard.sequence)).filter(IdCard.epoch == epoch).scalar() or 0
        )

    def list_by_issue_order(self, db: Session) -> List[IdCard]:
        return db.query(IdCard).order_by(IdCard.issued_at.asc(), IdCard.id.asc()).all()


id_card = CRUDIdCard()
