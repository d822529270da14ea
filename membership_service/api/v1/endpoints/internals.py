# membership_service/api/v1/endpoints/internals.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from membership_service.api import deps
from membership_service.scheduler import get_scheduler_status
from membership_service.schemas.membership import ExpirySweepResult
from membership_service.services.membership.lifecycle import MembershipLifecycle

router = APIRouter(prefix="/internal", tags=["Internal"])


@router.post("/memberships/expire", response_model=ExpirySweepResult)
def run_expiry_sweep(
    db: Session = Depends(deps.get_db),
    api_key: str = Depends(deps.get_internal_api_key),
):
    """
    Run one batch of the expiry sweep now. The scheduler calls the same
    code on its interval.
    """
    return ExpirySweepResult(expired=MembershipLifecycle(db).expire_due_memberships())


@router.get("/scheduler/status")
def scheduler_status(api_key: str = Depends(deps.get_internal_api_key)):
    return get_scheduler_status()
