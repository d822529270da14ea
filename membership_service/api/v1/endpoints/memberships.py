# membership_service/api/v1/endpoints/memberships.py
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from membership_service import crud
from membership_service.api import deps
from membership_service.core.config import settings
from membership_service.core.errors import ErrorCode, NotFoundError
from membership_service.core.limiter import limiter
from membership_service.schemas.membership import (
    IdCard,
    IdCardRenderPayload,
    IssueCredentialRequest,
    JoinRequest,
    Membership,
    MembershipDetail,
    ReassignmentPreview,
    ReassignmentRequest,
    RenewRequest,
    RevokeRequest,
)
from membership_service.schemas.token import TokenPayload
from membership_service.services.membership.card_numbering import CardNumberingService
from membership_service.services.membership.lifecycle import MembershipLifecycle
from membership_service.services.membership.reassignment import ReassignmentService
from membership_service.services.membership.seat_allocator import SeatAllocator

router = APIRouter(prefix="/memberships", tags=["Memberships"])


def _get_visible_membership(db: Session, membership_id: str, current_user: TokenPayload):
    membership = crud.membership.get_or_404(db, membership_id)
    if membership.user_id != current_user.sub and not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN, detail="Not authorized"
        )
    return membership


@router.post("/join", response_model=Membership, status_code=status.HTTP_201_CREATED)
@limiter.limit(settings.JOIN_RATE_LIMIT)
def join(
    request: Request,
    join_in: JoinRequest,
    db: Session = Depends(deps.get_db),
    current_user: TokenPayload = Depends(deps.get_current_user),
):
    """
    Claim a seat for the current user. Resubmitting the same request returns
    the existing membership.
    """
    return SeatAllocator(db).allocate_seat(
        user_id=current_user.sub,
        scope_in=join_in,
        full_name=join_in.full_name or current_user.name,
    )


@router.get("", response_model=List[Membership])
def list_my_memberships(
    db: Session = Depends(deps.get_db),
    current_user: TokenPayload = Depends(deps.get_current_user),
):
    """The current user's memberships, newest first, in any status."""
    return crud.membership.list_for_user(db, current_user.sub)


@router.get("/{membership_id}", response_model=MembershipDetail)
def get_membership(
    membership_id: str,
    db: Session = Depends(deps.get_db),
    current_user: TokenPayload = Depends(deps.get_current_user),
):
    return _get_visible_membership(db, membership_id, current_user)


@router.post("/{membership_id}/approve", response_model=Membership)
def approve_membership(
    membership_id: str,
    db: Session = Depends(deps.get_db),
    admin: TokenPayload = Depends(deps.require_admin),
):
    return MembershipLifecycle(db).approve(membership_id, performed_by=admin.sub)


@router.post("/{membership_id}/revoke", response_model=Membership)
def revoke_membership(
    membership_id: str,
    revoke_in: RevokeRequest,
    db: Session = Depends(deps.get_db),
    admin: TokenPayload = Depends(deps.require_admin),
):
    return MembershipLifecycle(db).revoke(
        membership_id, performed_by=admin.sub, reason=revoke_in.reason
    )


@router.post("/{membership_id}/renew", response_model=Membership)
def renew_membership(
    membership_id: str,
    renew_in: RenewRequest,
    db: Session = Depends(deps.get_db),
    admin: TokenPayload = Depends(deps.require_admin),
):
    return MembershipLifecycle(db).renew(
        membership_id, performed_by=admin.sub, validity_days=renew_in.validity_days
    )


@router.post("/{membership_id}/reassign/preview", response_model=ReassignmentPreview)
def preview_reassignment(
    membership_id: str,
    reassign_in: ReassignmentRequest,
    db: Session = Depends(deps.get_db),
    admin: TokenPayload = Depends(deps.require_admin),
):
    """
    What moving the membership to `target` would cost and which seat it
    would get. Nothing is written.
    """
    plan = ReassignmentService(db).preview(membership_id, reassign_in.target)
    return ReassignmentPreview(
        membership_id=plan.membership_id,
        accepted=plan.accepted,
        reason=plan.reason,
        current_bucket_key=plan.current_bucket_key,
        target_bucket_key=plan.target_bucket_key,
        target_seat_sequence=plan.target_seat_sequence,
        capacity=plan.capacity,
        used=plan.used,
        current_fee=plan.current_quote.fee,
        target_fee=plan.target_quote.fee,
        currency=plan.target_quote.currency,
        validity_days=plan.target_quote.validity_days,
        pricing_delta=plan.pricing_delta,
        paid_amount=plan.paid_amount,
        amount_due=plan.amount_due,
        status_from=plan.status_from,
        status_to=plan.status_to,
        payment_status_to=plan.payment_status_to,
    )


@router.post("/{membership_id}/reassign/apply", response_model=Membership)
def apply_reassignment(
    membership_id: str,
    reassign_in: ReassignmentRequest,
    db: Session = Depends(deps.get_db),
    admin: TokenPayload = Depends(deps.require_admin),
):
    return ReassignmentService(db).apply(
        membership_id,
        reassign_in.target,
        performed_by=admin.sub,
        direct=reassign_in.direct,
        expected_version=reassign_in.expected_version,
    )


@router.post("/{membership_id}/id-card", response_model=IdCard)
def issue_id_card(
    membership_id: str,
    issue_in: IssueCredentialRequest,
    db: Session = Depends(deps.get_db),
    current_user: TokenPayload = Depends(deps.get_current_user),
):
    """
    Return the membership's credential, issuing it if missing. Only an admin
    may force a new number with `reissue`.
    """
    _get_visible_membership(db, membership_id, current_user)
    if issue_in.reissue and not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN, detail="Admin role required"
        )
    return CardNumberingService(db).issue_credential(
        membership_id,
        reissue=issue_in.reissue,
        performed_by=current_user.sub if issue_in.reissue else None,
    )


@router.get("/{membership_id}/id-card", response_model=IdCardRenderPayload)
def get_id_card(
    membership_id: str,
    db: Session = Depends(deps.get_db),
    current_user: TokenPayload = Depends(deps.get_current_user),
):
    """Data the card renderer needs."""
    membership = _get_visible_membership(db, membership_id, current_user)
    card = crud.id_card.get_by_membership(db, membership.id)
    if card is None:
        raise NotFoundError(
            ErrorCode.ID_CARD_NOT_FOUND,
            f"Membership {membership.id} has no credential",
            {"membership_id": membership.id},
        )
    return IdCardRenderPayload(
        membership_id=membership.id,
        card_number=card.card_number,
        status=card.status,
        issued_at=card.issued_at,
        expires_at=card.expires_at,
        full_name=card.full_name,
        designation_name=card.designation_name,
        cell_name=card.cell_name,
    )
