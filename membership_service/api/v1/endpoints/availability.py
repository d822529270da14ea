# membership_service/api/v1/endpoints/availability.py
from typing import Optional
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from membership_service.api import deps
from membership_service.constants.membership import OrgLevel, Zone
from membership_service.schemas.membership import AvailabilityResponse, LevelAggregate
from membership_service.schemas.scope import ScopeIn
from membership_service.services.membership.seat_allocator import SeatAllocator

router = APIRouter(tags=["Availability"])


@router.get("/availability", response_model=AvailabilityResponse)
def get_availability(
    cell: str,
    designation: str,
    level: OrgLevel,
    zone: Optional[Zone] = None,
    country_id: Optional[str] = None,
    state_id: Optional[str] = None,
    district_id: Optional[str] = None,
    mandal_id: Optional[str] = None,
    db: Session = Depends(deps.get_db),
):
    """
    Seats remaining, fee and validity for a bucket. Public and read-only.
    """
    scope_in = ScopeIn(
        cell=cell,
        designation=designation,
        level=level,
        zone=zone,
        country_id=country_id,
        state_id=state_id,
        district_id=district_id,
        mandal_id=mandal_id,
    )
    availability = SeatAllocator(db).get_availability(scope_in)

    level_aggregate = None
    if availability.level is not None:
        level_aggregate = LevelAggregate(
            capacity=availability.level.capacity,
            used=availability.level.used,
            remaining=availability.level.remaining,
        )

    return AvailabilityResponse(
        bucket_key=availability.bucket_key,
        capacity=availability.capacity,
        used=availability.used,
        seats_remaining=availability.seats_remaining,
        fee=availability.quote.fee,
        currency=availability.quote.currency,
        validity_days=availability.quote.validity_days,
        fee_source=availability.quote.source,
        level_aggregate=level_aggregate,
    )
