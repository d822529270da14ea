# membership_service/services/membership/lifecycle.py
"""
Membership lifecycle state machine.

    PENDING_PAYMENT --payment SUCCESS--> ACTIVE
    PENDING_APPROVAL --admin approve---> ACTIVE
    ACTIVE ----------expiry sweep------> EXPIRED
    PENDING_* / ACTIVE --admin revoke--> REVOKED
    ACTIVE / EXPIRED --admin renew-----> ACTIVE

Activation stamps the validity window and issues the credential in the
same transaction. Every transition writes an audit row, and replaying a
transition that already happened returns the membership unchanged.
"""

import logging
from datetime import datetime, timedelta
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
from membership_service.core.errors import ConflictError, ErrorCode, InvalidTransitionError
from membership_service.db.transaction import run_in_transaction
from membership_service.models.membership import Membership
from membership_service.models.membership_payment import MembershipPayment
from membership_service.services.membership.audit import (
    log_membership_action,
    membership_snapshot,
)
from membership_service.services.membership.card_numbering import CardNumberingService
from membership_service.services.membership.scope import Scope
from membership_service.services.membership.seat_allocator import SeatAllocator
from membership_service.utils.timeutils import as_utc, utcnow

logger = logging.getLogger(__name__)


class MembershipLifecycle:
    def __init__(self, db: Session):
        self.db = db
        self.cards = CardNumberingService(db)

    # ------------------------------------------------------------------ #
    # Payment
    # ------------------------------------------------------------------ #

    def confirm_payment(
        self,
        *,
        membership_id: str,
        provider_ref: str,
        status: PaymentStatus,
    ) -> Membership:
        """
        Applies a payment callback. Idempotent on `provider_ref`: a replayed
        SUCCESS, or a SUCCESS for an already ACTIVE membership, changes nothing.
        """
        status = PaymentStatus(status)
        if status not in (PaymentStatus.SUCCESS, PaymentStatus.FAILED):
            raise ValueError(f"Unsupported payment status {status.value}")

        def work():
            membership = crud.membership.get_or_404(self.db, membership_id, for_update=True)

            seen = crud.membership_payment.get_by_provider_ref(self.db, provider_ref)
            if seen is not None and seen.membership_id != membership.id:
                raise ConflictError(
                    ErrorCode.PAYMENT_REF_MISMATCH,
                    f"Payment {provider_ref} belongs to another membership",
                    {"membership_id": membership.id, "provider_ref": provider_ref},
                )
            if seen is not None and seen.status == PaymentStatus.SUCCESS:
                logger.info(f"Duplicate payment callback {provider_ref} ignored")
                return membership
            if seen is not None and seen.status == status:
                logger.info(f"Duplicate {status.value} callback {provider_ref} ignored")
                return membership

            if status == PaymentStatus.FAILED:
                return self._record_failure(membership, provider_ref, seen)
            return self._record_success(membership, provider_ref, seen)

        membership = run_in_transaction(
            self.db, work, label=f"confirm_payment({membership_id}, {provider_ref})"
        )
        self.db.refresh(membership)
        return membership

    def _payment_row(self, membership: Membership, provider_ref: str, seen):
        payment = seen or crud.membership_payment.get_outstanding(self.db, membership.id)
        if payment is not None and payment.provider_ref not in (None, provider_ref):
            # A retry after a failed attempt gets its own row.
            payment = MembershipPayment(
                membership_id=membership.id,
                purpose=payment.purpose,
                amount=payment.amount,
                currency=payment.currency,
                status=PaymentStatus.PENDING,
            )
            self.db.add(payment)
        elif payment is None:
            # Money arrived with nothing recorded as owed; keep the gateway event.
            payment = MembershipPayment(
                membership_id=membership.id,
                purpose=PaymentPurpose.JOIN,
                amount=membership.fee_amount,
                currency=membership.currency,
                status=PaymentStatus.PENDING,
            )
            self.db.add(payment)
        payment.provider_ref = provider_ref
        return payment

    def _record_failure(self, membership: Membership, provider_ref: str, seen) -> Membership:
        if membership.status != MembershipStatus.PENDING_PAYMENT:
            logger.info(
                f"Payment failure {provider_ref} for membership {membership.id} "
                f"in status {membership.status.value} ignored"
            )
            return membership

        previous = membership_snapshot(membership)
        payment = self._payment_row(membership, provider_ref, seen)
        payment.status = PaymentStatus.FAILED
        # The seat is kept so the user can retry payment.
        membership.payment_status = PaymentStatus.FAILED
        self.db.flush()

        log_membership_action(
            self.db,
            action=AuditAction.MEMBERSHIP_PAYMENT_FAILED,
            membership=membership,
            actor_type="webhook",
            previous_state=previous,
            details={"provider_ref": provider_ref, "payment_id": payment.id},
        )
        logger.warning(f"Payment {provider_ref} failed for membership {membership.id}")
        return membership

    def _record_success(self, membership: Membership, provider_ref: str, seen) -> Membership:
        if (
            membership.status == MembershipStatus.ACTIVE
            and membership.payment_status == PaymentStatus.SUCCESS
        ):
            logger.info(f"Membership {membership.id} already active; payment {provider_ref} is a no-op")
            return membership

        previous = membership_snapshot(membership)
        now = utcnow()
        payment = self._payment_row(membership, provider_ref, seen)
        payment.status = PaymentStatus.SUCCESS
        payment.paid_at = now
        self.db.flush()

        if membership.status != MembershipStatus.PENDING_PAYMENT:
            # Money for a seat that is no longer pending (revoked, expired):
            # keep the record, do not resurrect the seat.
            logger.warning(
                f"Payment {provider_ref} recorded for membership {membership.id} "
                f"in status {membership.status.value}; no transition"
            )
            return membership

        membership.payment_status = PaymentStatus.SUCCESS
        self._activate(membership, now=now, actor_type="webhook", previous=previous,
                       details={"provider_ref": provider_ref, "payment_id": payment.id})
        return membership

    # ------------------------------------------------------------------ #
    # Admin transitions
    # ------------------------------------------------------------------ #

    def approve(self, membership_id: str, *, performed_by: Optional[str] = None) -> Membership:
        def work():
            membership = crud.membership.get_or_404(self.db, membership_id, for_update=True)
            if membership.status == MembershipStatus.ACTIVE:
                return membership
            if membership.status != MembershipStatus.PENDING_APPROVAL:
                raise InvalidTransitionError(membership.id, membership.status.value, "approve")

            self._activate(
                membership,
                now=utcnow(),
                actor_type="admin",
                actor_id=performed_by,
                previous=membership_snapshot(membership),
            )
            return membership

        membership = run_in_transaction(self.db, work, label=f"approve({membership_id})")
        self.db.refresh(membership)
        return membership

    def revoke(
        self,
        membership_id: str,
        *,
        performed_by: Optional[str] = None,
        reason: Optional[str] = None,
    ) -> Membership:
        def work():
            membership = crud.membership.get_or_404(self.db, membership_id, for_update=True)
            if membership.status == MembershipStatus.REVOKED:
                return membership
            if membership.status == MembershipStatus.EXPIRED:
                raise InvalidTransitionError(membership.id, membership.status.value, "revoke")

            previous = membership_snapshot(membership)
            membership.status = MembershipStatus.REVOKED
            membership.revoked_at = utcnow()
            self.cards.set_status(membership, CardStatus.REVOKED)
            self.db.flush()

            log_membership_action(
                self.db,
                action=AuditAction.MEMBERSHIP_REVOKED,
                membership=membership,
                actor_type="admin",
                actor_id=performed_by,
                previous_state=previous,
                details={"reason": reason} if reason else None,
            )
            logger.info(f"Membership {membership.id} revoked by {performed_by}")
            return membership

        membership = run_in_transaction(self.db, work, label=f"revoke({membership_id})")
        self.db.refresh(membership)
        return membership

    def renew(
        self,
        membership_id: str,
        *,
        performed_by: Optional[str] = None,
        validity_days: Optional[int] = None,
    ) -> Membership:
        """
        Extends an ACTIVE membership from its current expiry, or brings an
        EXPIRED one back (if its bucket still has room) from now. The
        credential is reissued either way.
        """

        def work():
            membership = crud.membership.get_or_404(self.db, membership_id, for_update=True)
            if membership.status not in (MembershipStatus.ACTIVE, MembershipStatus.EXPIRED):
                raise InvalidTransitionError(membership.id, membership.status.value, "renew")

            previous = membership_snapshot(membership)
            now = utcnow()
            days = validity_days or membership.validity_days

            if membership.status == MembershipStatus.EXPIRED:
                scope = Scope.from_record(membership)
                allocator = SeatAllocator(self.db)
                allocator.lock_scope(scope)
                allocator.check_capacity(scope, membership.designation, exclude_id=membership.id)
                start = now
                membership.activated_at = now
            else:
                start = max(now, as_utc(membership.expires_at) or now)

            membership.status = MembershipStatus.ACTIVE
            membership.validity_days = days
            membership.expires_at = start + timedelta(days=days)
            self.db.flush()

            self.cards.issue_for_membership(
                membership, now=now, actor_type="admin", actor_id=performed_by
            )
            log_membership_action(
                self.db,
                action=AuditAction.MEMBERSHIP_RENEWED,
                membership=membership,
                actor_type="admin",
                actor_id=performed_by,
                previous_state=previous,
                details={"validity_days": days},
            )
            logger.info(f"Membership {membership.id} renewed until {membership.expires_at}")
            return membership

        membership = run_in_transaction(
            self.db, work, label=f"renew({membership_id})",
            attempts=settings.CARD_NUMBER_MAX_ATTEMPTS,
        )
        self.db.refresh(membership)
        return membership

    # ------------------------------------------------------------------ #
    # Expiry sweep
    # ------------------------------------------------------------------ #

    def expire_due_memberships(
        self, *, now: Optional[datetime] = None, limit: Optional[int] = None
    ) -> int:
        """
        Moves ACTIVE memberships whose expiry has passed to EXPIRED, along
        with their credentials. Processes at most `limit` rows per call.

        Returns: Number of memberships expired
        """
        now = now or utcnow()
        limit = limit or settings.EXPIRY_SWEEP_BATCH_SIZE

        def work():
            due = crud.membership.get_due_for_expiry(self.db, now=now, limit=limit)
            for membership in due:
                previous = membership_snapshot(membership)
                membership.status = MembershipStatus.EXPIRED
                self.cards.set_status(membership, CardStatus.EXPIRED)
                self.db.flush()
                log_membership_action(
                    self.db,
                    action=AuditAction.MEMBERSHIP_EXPIRED,
                    membership=membership,
                    actor_type="system",
                    previous_state=previous,
                )
            return len(due)

        count = run_in_transaction(self.db, work, label="expire_due_memberships")
        if count:
            logger.info(f"Expired {count} membership(s)")
        return count

    # ------------------------------------------------------------------ #

    def _activate(
        self,
        membership: Membership,
        *,
        now: datetime,
        actor_type: str,
        actor_id: Optional[str] = None,
        previous: Optional[dict] = None,
        details: Optional[dict] = None,
    ) -> None:
        membership.status = MembershipStatus.ACTIVE
        membership.activated_at = now
        membership.expires_at = now + timedelta(days=membership.validity_days)
        membership.revoked_at = None
        self.db.flush()

        self.cards.issue_for_membership(
            membership, now=now, actor_type=actor_type, actor_id=actor_id
        )
        log_membership_action(
            self.db,
            action=AuditAction.MEMBERSHIP_ACTIVATED,
            membership=membership,
            actor_type=actor_type,
            actor_id=actor_id,
            previous_state=previous,
            details=details,
        )
        logger.info(
            f"Membership {membership.id} activated until {membership.expires_at.isoformat()}"
        )
