# membership_service/api/v1/api.py

from fastapi import APIRouter
from membership_service.api.v1.endpoints import (
    availability,
    memberships,
    payments,
    designations,
    cells,
    internals,
)

# This is the main router for the v1 API.
api_router = APIRouter()

api_router.include_router(availability.router)
api_router.include_router(memberships.router)
api_router.include_router(payments.router)
api_router.include_router(designations.router)
api_router.include_router(cells.router)
api_router.include_router(internals.router)
