# membership_service/services/membership/seat_allocator.py
"""
Seat allocation.

A join locks the bucket row, counts the seat-holding memberships in the
bucket, and inserts a new membership numbered max(seat) + 1, all in one
transaction. The unique (bucket_key, seat_sequence) index backs up the
lock, and a lost race replays the whole join.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.orm import Session

from membership_service import crud
from membership_service.constants.membership import (
    AuditAction,
    MembershipStatus,
    PaymentPurpose,
    PaymentStatus,
)
from membership_service.core.errors import CapacityError
from membership_service.db.transaction import run_in_transaction
from membership_service.models.membership import Membership
from membership_service.models.membership_payment import MembershipPayment
from membership_service.services.membership.audit import log_membership_action
from membership_service.services.membership.fee_resolver import FeeQuote, fee_resolver
from membership_service.services.membership.scope import Scope, resolve_scope

logger = logging.getLogger(__name__)

REASON_BUCKET_FULL = "BUCKET_FULL"
REASON_LEVEL_AGGREGATE = "LEVEL_AGGREGATE"


@dataclass
class LevelUsage:
    capacity: int
    used: int

    @property
    def remaining(self) -> int:
        return max(0, self.capacity - self.used)


@dataclass
class Availability:
    bucket_key: str
    capacity: int
    used: int
    quote: FeeQuote
    level: Optional[LevelUsage] = None

    @property
    def seats_remaining(self) -> int:
        remaining = max(0, self.capacity - self.used)
        if self.level is not None:
            remaining = min(remaining, self.level.remaining)
        return remaining


def initial_status(fee: int):
    """(status, payment_status) for a new seat with the given fee."""
    if fee > 0:
        return MembershipStatus.PENDING_PAYMENT, PaymentStatus.PENDING
    return MembershipStatus.PENDING_APPROVAL, PaymentStatus.NOT_REQUIRED


class SeatAllocator:
    def __init__(self, db: Session):
        self.db = db

    def effective_capacity(self, designation, scope: Scope) -> int:
        override = crud.capacity.get_override(self.db, scope.bucket_key)
        if override is not None:
            return override.capacity
        return designation.default_capacity

    def level_usage(
        self, scope: Scope, *, exclude_id: Optional[str] = None
    ) -> Optional[LevelUsage]:
        cap = crud.capacity.get_level_capacity(self.db, scope.aggregate_key)
        if cap is None:
            return None
        used = crud.membership.count_live_in_aggregate(self.db, scope, exclude_id=exclude_id)
        return LevelUsage(capacity=cap.capacity, used=used)

    def lock_scope(self, scope: Scope) -> None:
        """
        Locks the level aggregate row (when the level is capped) and then the
        bucket row. Must run inside a transaction; always in this order.
        """
        crud.capacity.get_level_capacity(self.db, scope.aggregate_key, for_update=True)
        crud.capacity.lock_bucket(self.db, scope.bucket_key)

    def check_capacity(
        self, scope: Scope, designation, *, exclude_id: Optional[str] = None
    ) -> None:
        """
        Raises:
            CapacityError: the bucket or the level aggregate is full
        """
        capacity = self.effective_capacity(designation, scope)
        used = crud.membership.count_live_in_bucket(
            self.db, scope.bucket_key, exclude_id=exclude_id
        )
        if used >= capacity:
            raise CapacityError(
                f"No seats available in {scope.bucket_key}",
                {
                    "reason": REASON_BUCKET_FULL,
                    "bucket_key": scope.bucket_key,
                    "capacity": capacity,
                    "used": used,
                },
            )

        level = self.level_usage(scope, exclude_id=exclude_id)
        if level is not None and level.used >= level.capacity:
            raise CapacityError(
                f"Level capacity reached for {scope.aggregate_key}",
                {
                    "reason": REASON_LEVEL_AGGREGATE,
                    "aggregate_key": scope.aggregate_key,
                    "capacity": level.capacity,
                    "used": level.used,
                },
            )

    def next_seat(self, scope: Scope) -> int:
        return crud.membership.max_seat_sequence(self.db, scope.bucket_key) + 1

    def get_availability(self, scope_in) -> Availability:
        """Read-only view of a bucket: capacity, usage and the fee a join would pay."""
        scope, designation, _ = resolve_scope(self.db, scope_in)
        return Availability(
            bucket_key=scope.bucket_key,
            capacity=self.effective_capacity(designation, scope),
            used=crud.membership.count_live_in_bucket(self.db, scope.bucket_key),
            quote=fee_resolver.quote(self.db, designation, scope),
            level=self.level_usage(scope),
        )

    def allocate_seat(
        self,
        *,
        user_id: str,
        scope_in,
        full_name: Optional[str] = None,
        requested_by: Optional[str] = None,
    ) -> Membership:
        """
        Claims a seat for `user_id`. Repeating the call for a bucket where the
        user already holds a seat returns that membership unchanged.
        """
        scope, designation, cell = resolve_scope(self.db, scope_in)
        actor_id = requested_by or user_id

        def work():
            self.lock_scope(scope)

            existing = crud.membership.get_live_in_bucket(
                self.db, user_id=user_id, bucket_key=scope.bucket_key
            )
            if existing is not None:
                logger.info(
                    f"User {user_id} already holds seat {existing.seat_sequence} in {scope.bucket_key}"
                )
                return existing

            self.check_capacity(scope, designation)
            seat_sequence = self.next_seat(scope)

            quote = fee_resolver.quote(self.db, designation, scope)
            status, payment_status = initial_status(quote.fee)

            membership = Membership(
                user_id=user_id,
                full_name=full_name,
                **scope.as_dict(),
                bucket_key=scope.bucket_key,
                seat_sequence=seat_sequence,
                status=status,
                payment_status=payment_status,
                fee_amount=quote.fee,
                currency=quote.currency,
                validity_days=quote.validity_days,
            )
            membership.designation = designation
            membership.cell = cell
            self.db.add(membership)
            self.db.flush()

            if quote.fee > 0:
                self.db.add(
                    MembershipPayment(
                        membership_id=membership.id,
                        purpose=PaymentPurpose.JOIN,
                        amount=quote.fee,
                        currency=quote.currency,
                        status=PaymentStatus.PENDING,
                    )
                )

            log_membership_action(
                self.db,
                action=AuditAction.MEMBERSHIP_CREATED,
                membership=membership,
                actor_type="user" if actor_id == user_id else "admin",
                actor_id=actor_id,
                details={"fee_source": quote.source, "override_id": quote.override_id},
            )
            logger.info(
                f"Seat {seat_sequence} allocated in {scope.bucket_key} to user {user_id} "
                f"({status.value}, fee {quote.fee} {quote.currency})"
            )
            return membership

        membership = run_in_transaction(
            self.db, work, label=f"allocate_seat({scope.bucket_key})"
        )
        self.db.refresh(membership)
        return membership

