# membership_service/services/membership/audit.py
from typing import Optional

from sqlalchemy.orm import Session

from membership_service import crud


def membership_snapshot(membership) -> dict:
    """JSON-safe view of the fields a transition can change."""
    return {
        "status": membership.status.value if membership.status else None,
        "payment_status": membership.payment_status.value if membership.payment_status else None,
        "bucket_key": membership.bucket_key,
        "seat_sequence": membership.seat_sequence,
        "fee_amount": membership.fee_amount,
        "expires_at": membership.expires_at.isoformat() if membership.expires_at else None,
    }


def log_membership_action(
    db: Session,
    *,
    action: str,
    membership,
    actor_type: str,
    actor_id: Optional[str] = None,
    previous_state: Optional[dict] = None,
    details: Optional[dict] = None,
):
    return crud.audit_log.log_action(
        db,
        action=action,
        actor_type=actor_type,
        actor_id=actor_id,
        membership_id=membership.id,
        entity_type="membership",
        entity_id=membership.id,
        previous_state=previous_state,
        new_state=membership_snapshot(membership),
        details=details,
    )
