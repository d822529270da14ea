# membership_service/services/membership/reassignment.py
"""
Moving a membership to a different bucket (designation, cell, level or
geography).

The amount owed on the new seat is the new fee minus everything already
paid on the membership, floored at zero. Money due puts the membership
back to PENDING_PAYMENT; otherwise an ACTIVE membership stays ACTIVE with
a reissued credential and anything else waits for approval.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.orm import Session

from membership_service import crud
from membership_service.constants.membership import (
    AuditAction,
    CardStatus,
    MembershipStatus,
    PaymentPurpose,
    PaymentStatus,
)
from membership_service.core.config import settings
from membership_service.core.errors import (
    CapacityError,
    ConcurrentModificationError,
    ConflictError,
    ErrorCode,
    InvalidTransitionError,
    ScopeValidationError,
)
from membership_service.db.transaction import run_in_transaction
from membership_service.models.membership import Membership
from membership_service.models.membership_payment import MembershipPayment
from membership_service.services.membership.audit import (
    log_membership_action,
    membership_snapshot,
)
from membership_service.services.membership.card_numbering import CardNumberingService
from membership_service.services.membership.fee_resolver import FeeQuote, fee_resolver
from membership_service.services.membership.scope import Scope, resolve_scope
from membership_service.services.membership.seat_allocator import SeatAllocator
from membership_service.utils.timeutils import utcnow

logger = logging.getLogger(__name__)


@dataclass
class ReassignmentPlan:
    membership_id: str
    accepted: bool
    reason: Optional[str]
    current_bucket_key: str
    target_bucket_key: str
    target_seat_sequence: int
    capacity: int
    used: int
    current_quote: FeeQuote
    target_quote: FeeQuote
    paid_amount: int
    amount_due: int
    status_from: MembershipStatus
    status_to: MembershipStatus
    payment_status_to: PaymentStatus

    @property
    def pricing_delta(self) -> int:
        return self.target_quote.fee - self.current_quote.fee


def next_statuses(current: MembershipStatus, amount_due: int, paid_amount: int):
    """(status, payment_status) after a move, given what is owed and paid."""
    if amount_due > 0:
        return MembershipStatus.PENDING_PAYMENT, PaymentStatus.PENDING
    status = (
        MembershipStatus.ACTIVE
        if current == MembershipStatus.ACTIVE
        else MembershipStatus.PENDING_APPROVAL
    )
    payment_status = PaymentStatus.SUCCESS if paid_amount > 0 else PaymentStatus.NOT_REQUIRED
    return status, payment_status


class ReassignmentService:
    def __init__(self, db: Session):
        self.db = db
        self.allocator = SeatAllocator(db)
        self.cards = CardNumberingService(db)

    def _target(self, membership: Membership, target_in):
        target, designation, cell = resolve_scope(self.db, target_in)
        if target.bucket_key == membership.bucket_key:
            raise ScopeValidationError(
                f"Membership {membership.id} already holds a seat in {target.bucket_key}"
            )
        held = crud.membership.get_live_in_bucket(
            self.db, user_id=membership.user_id, bucket_key=target.bucket_key
        )
        if held is not None:
            raise ConflictError(
                ErrorCode.SEAT_ALREADY_HELD,
                f"User {membership.user_id} already holds seat {held.seat_sequence} "
                f"in {target.bucket_key}",
                {"membership_id": held.id, "bucket_key": target.bucket_key},
            )
        return target, designation, cell

    def _require_live(self, membership: Membership, action: str) -> None:
        if membership.status not in MembershipStatus.seat_holding():
            raise InvalidTransitionError(membership.id, membership.status.value, action)

    def _plan(self, membership: Membership, target: Scope, designation) -> ReassignmentPlan:
        current_quote = fee_resolver.quote(
            self.db, membership.designation, Scope.from_record(membership)
        )
        target_quote = fee_resolver.quote(self.db, designation, target)
        paid = crud.membership_payment.paid_total(self.db, membership.id)
        amount_due = max(0, target_quote.fee - paid)
        status_to, payment_status_to = next_statuses(membership.status, amount_due, paid)

        accepted, reason = True, None
        try:
            self.allocator.check_capacity(target, designation, exclude_id=membership.id)
        except CapacityError as e:
            accepted, reason = False, e.details.get("reason")

        return ReassignmentPlan(
            membership_id=membership.id,
            accepted=accepted,
            reason=reason,
            current_bucket_key=membership.bucket_key,
            target_bucket_key=target.bucket_key,
            target_seat_sequence=self.allocator.next_seat(target),
            capacity=self.allocator.effective_capacity(designation, target),
            used=crud.membership.count_live_in_bucket(
                self.db, target.bucket_key, exclude_id=membership.id
            ),
            current_quote=current_quote,
            target_quote=target_quote,
            paid_amount=paid,
            amount_due=amount_due,
            status_from=membership.status,
            status_to=status_to,
            payment_status_to=payment_status_to,
        )

    def preview(self, membership_id: str, target_in) -> ReassignmentPlan:
        """Computes what `apply` would do without writing anything."""
        membership = crud.membership.get_or_404(self.db, membership_id)
        self._require_live(membership, "reassign")
        target, designation, _ = self._target(membership, target_in)
        return self._plan(membership, target, designation)

    def apply(
        self,
        membership_id: str,
        target_in,
        *,
        performed_by: Optional[str] = None,
        direct: bool = False,
        expected_version: Optional[int] = None,
    ) -> Membership:
        """
        Moves the membership to the target bucket under the target bucket's
        lock. `direct` skips the capacity check and is audited separately.

        Raises:
            ConcurrentModificationError: `expected_version` is stale
            CapacityError: the target bucket is full (unless `direct`)
        """

        def work():
            membership = crud.membership.get_or_404(self.db, membership_id, for_update=True)
            if expected_version is not None and membership.version != expected_version:
                raise ConcurrentModificationError(
                    f"Membership {membership.id} changed since version {expected_version}",
                    {"membership_id": membership.id, "version": membership.version},
                )
            self._require_live(membership, "reassign")
            target, designation, cell = self._target(membership, target_in)

            self.allocator.lock_scope(target)
            if not direct:
                self.allocator.check_capacity(target, designation, exclude_id=membership.id)
            plan = self._plan(membership, target, designation)

            previous = membership_snapshot(membership)
            now = utcnow()

            crud.membership_payment.supersede_pending(self.db, membership.id)
            if plan.amount_due > 0:
                self.db.add(
                    MembershipPayment(
                        membership_id=membership.id,
                        purpose=PaymentPurpose.REASSIGNMENT,
                        amount=plan.amount_due,
                        currency=plan.target_quote.currency,
                        status=PaymentStatus.PENDING,
                    )
                )

            for name, value in target.as_dict().items():
                setattr(membership, name, value)
            membership.designation = designation
            membership.cell = cell
            membership.bucket_key = target.bucket_key
            membership.seat_sequence = plan.target_seat_sequence
            membership.fee_amount = plan.target_quote.fee
            membership.currency = plan.target_quote.currency
            membership.validity_days = plan.target_quote.validity_days
            membership.status = plan.status_to
            membership.payment_status = plan.payment_status_to
            membership.locked_at = now
            self.db.flush()

            if plan.status_to == MembershipStatus.ACTIVE:
                self.cards.issue_for_membership(
                    membership, now=now, actor_type="admin", actor_id=performed_by
                )
            else:
                # Not valid until the new seat is paid for or approved.
                self.cards.set_status(membership, CardStatus.REVOKED)

            action = (
                AuditAction.MEMBERSHIP_REASSIGNED_DIRECT
                if direct
                else AuditAction.MEMBERSHIP_REASSIGNED
            )
            log_membership_action(
                self.db,
                action=action,
                membership=membership,
                actor_type="admin",
                actor_id=performed_by,
                previous_state=previous,
                details={
                    "pricing_delta": plan.pricing_delta,
                    "paid_amount": plan.paid_amount,
                    "amount_due": plan.amount_due,
                    "capacity_checked": not direct,
                },
            )
            if direct:
                logger.warning(
                    f"Direct reassignment of membership {membership.id} into "
                    f"{target.bucket_key} by {performed_by} (capacity not checked)"
                )
            logger.info(
                f"Membership {membership.id} moved {plan.current_bucket_key} -> "
                f"{plan.target_bucket_key} seat {plan.target_seat_sequence}, due {plan.amount_due}"
            )
            return membership

        membership = run_in_transaction(
            self.db,
            work,
            label=f"reassign({membership_id})",
            attempts=settings.CARD_NUMBER_MAX_ATTEMPTS,
        )
        self.db.refresh(membership)
        return membership
