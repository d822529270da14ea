# membership_service/crud/crud_membership_payment.py
from typing import Optional
from sqlalchemy import func
from sqlalchemy.orm import Session

from membership_service.constants.membership import PaymentStatus
from membership_service.models.membership_payment import MembershipPayment


class CRUDMembershipPayment:
    def get_by_provider_ref(self, db: Session, provider_ref: str) -> Optional[MembershipPayment]:
        return (
            db.query(MembershipPayment)
            .filter(MembershipPayment.provider_ref == provider_ref)
            .first()
        )

    def get_outstanding(self, db: Session, membership_id: str) -> Optional[MembershipPayment]:
        """Latest payment still awaiting money: PENDING first, then a FAILED one being retried."""
        for status in (PaymentStatus.PENDING, PaymentStatus.FAILED):
            payment = (
                db.query(MembershipPayment)
                .filter(
                    MembershipPayment.membership_id == membership_id,
                    MembershipPayment.status == status,
                )
                .order_by(MembershipPayment.created_at.desc())
                .first()
            )
            if payment is not None:
                return payment
        return None

    def paid_total(self, db: Session, membership_id: str) -> int:
        return (
            db.query(func.coalesce(func.sum(MembershipPayment.amount), 0))
            .filter(
                MembershipPayment.membership_id == membership_id,
                MembershipPayment.status == PaymentStatus.SUCCESS,
            )
            .scalar()
            or 0
        )

    def supersede_pending(self, db: Session, membership_id: str) -> int:
        """Marks every PENDING row FAILED; used when the amount owed is recomputed."""
        rows = (
            db.query(MembershipPayment)
            .filter(
                MembershipPayment.membership_id == membership_id,
                MembershipPayment.status == PaymentStatus.PENDING,
            )
            .all()
        )
        for row in rows:
            row.status = PaymentStatus.FAILED
        return len(rows)


membership_payment = CRUDMembershipPayment()
