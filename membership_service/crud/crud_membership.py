# membership_service/crud/crud_membership.py
"""
Queries over memberships used by the allocator, lifecycle and sweeps.
"""

from datetime import datetime
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from membership_service.constants.membership import MembershipStatus
from membership_service.core.errors import ErrorCode, NotFoundError
from membership_service.models.membership import Membership

AGGREGATE_COLUMNS = (
    "cell_id", "level", "zone", "country_id", "state_id", "district_id", "mandal_id",
)


class CRUDMembership:
    def get_or_404(self, db: Session, id: str, *, for_update: bool = False) -> Membership:
        query = db.query(Membership).filter(Membership.id == id)
        if for_update:
            query = query.with_for_update()
        membership = query.first()
        if membership is None:
            raise NotFoundError(
                ErrorCode.MEMBERSHIP_NOT_FOUND,
                f"Membership {id} not found",
                {"membership_id": id},
            )
        return membership

    def get_live_in_bucket(
        self, db: Session, *, user_id: str, bucket_key: str
    ) -> Optional[Membership]:
        """The user's seat-holding membership in a bucket, if any."""
        return (
            db.query(Membership)
            .filter(
                Membership.user_id == user_id,
                Membership.bucket_key == bucket_key,
                Membership.status.in_(MembershipStatus.seat_holding()),
            )
            .first()
        )

    def count_live_in_bucket(
        self, db: Session, bucket_key: str, *, exclude_id: Optional[str] = None
    ) -> int:
        query = db.query(func.count(Membership.id)).filter(
            Membership.bucket_key == bucket_key,
            Membership.status.in_(MembershipStatus.seat_holding()),
        )
        if exclude_id is not None:
            query = query.filter(Membership.id != exclude_id)
        return query.scalar() or 0

    def count_live_in_aggregate(
        self, db: Session, scope, *, exclude_id: Optional[str] = None
    ) -> int:
        """Live seats of one cell at one level and place, across all designations."""
        query = db.query(func.count(Membership.id)).filter(
            Membership.status.in_(MembershipStatus.seat_holding())
        )
        for name in AGGREGATE_COLUMNS:
            column = getattr(Membership, name)
            value = getattr(scope, name)
            query = query.filter(column.is_(None) if value is None else column == value)
        if exclude_id is not None:
            query = query.filter(Membership.id != exclude_id)
        return query.scalar() or 0

    def max_seat_sequence(self, db: Session, bucket_key: str) -> int:
        """Highest seat number ever assigned in the bucket, any status."""
        return (
            db.query(func.max(Membership.seat_sequence))
            .filter(Membership.bucket_key == bucket_key)
            .scalar()
            or 0
        )

    def get_due_for_expiry(
        self, db: Session, *, now: datetime, limit: int
    ) -> List[Membership]:
        # skip_locked lets overlapping sweeps split the work instead of blocking
        return (
            db.query(Membership)
            .filter(
                Membership.status == MembershipStatus.ACTIVE,
                Membership.expires_at.isnot(None),
                Membership.expires_at <= now,
            )
            .order_by(Membership.expires_at.asc())
            .limit(limit)
            .with_for_update(skip_locked=True)
            .all()
        )

    def list_for_user(self, db: Session, user_id: str) -> List[Membership]:
        return (
            db.query(Membership)
            .filter(Membership.user_id == user_id)
            .order_by(Membership.created_at.desc())
            .all()
        )


membership = CRUDMembership()
