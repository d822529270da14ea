# membership_service/api/v1/endpoints/payments.py
import logging
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from membership_service.api import deps
from membership_service.schemas.membership import Membership, PaymentConfirmation
from membership_service.services.membership.lifecycle import MembershipLifecycle

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/payments", tags=["Payments"])


@router.post("/confirm", response_model=Membership)
def confirm_payment(
    confirmation: PaymentConfirmation,
    db: Session = Depends(deps.get_db),
    api_key: str = Depends(deps.get_internal_api_key),
):
    """
    Called by the payment collaborator once the gateway has settled.

    Safe to replay: a `provider_ref` that was already applied is a no-op.
    """
    logger.info(
        f"Payment callback {confirmation.provider_ref} ({confirmation.status}) "
        f"for membership {confirmation.membership_id}"
    )
    return MembershipLifecycle(db).confirm_payment(
        membership_id=confirmation.membership_id,
        provider_ref=confirmation.provider_ref,
        status=confirmation.status,
    )
