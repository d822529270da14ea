# membership_service/api/v1/endpoints/designations.py
from typing import List
from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from membership_service import crud
from membership_service.api import deps
from membership_service.schemas.designation import (
    CapacityOverride,
    CapacityOverrideCreate,
    Designation,
    DesignationCreate,
    DesignationPrice,
    DesignationPriceCreate,
    DesignationUpdate,
    SetParentRequest,
)
from membership_service.schemas.scope import ScopeIn
from membership_service.schemas.token import TokenPayload
from membership_service.services.membership.scope import resolve_scope

router = APIRouter(prefix="/designations", tags=["Designations"])


@router.get("", response_model=List[Designation])
def list_designations(db: Session = Depends(deps.get_db)):
    """List the catalog ordered by rank."""
    return crud.designation.list_ordered(db)


@router.get("/{code}", response_model=Designation)
def get_designation(code: str, db: Session = Depends(deps.get_db)):
    return crud.designation.resolve(db, code)


@router.post("", response_model=Designation, status_code=status.HTTP_201_CREATED)
def create_designation(
    designation_in: DesignationCreate,
    db: Session = Depends(deps.get_db),
    admin: TokenPayload = Depends(deps.require_admin),
):
    return crud.designation.create(db, obj_in=designation_in)


@router.patch("/{code}", response_model=Designation)
def update_designation(
    code: str,
    designation_in: DesignationUpdate,
    db: Session = Depends(deps.get_db),
    admin: TokenPayload = Depends(deps.require_admin),
):
    designation = crud.designation.resolve(db, code)
    return crud.designation.update(db, db_obj=designation, obj_in=designation_in)


@router.put("/{code}/parent", response_model=Designation)
def set_designation_parent(
    code: str,
    parent_in: SetParentRequest,
    db: Session = Depends(deps.get_db),
    admin: TokenPayload = Depends(deps.require_admin),
):
    return crud.designation.set_parent(
        db, designation_id=code, parent_id=parent_in.parent_id
    )


@router.delete("/{code}", status_code=status.HTTP_204_NO_CONTENT)
def delete_designation(
    code: str,
    db: Session = Depends(deps.get_db),
    admin: TokenPayload = Depends(deps.require_admin),
):
    crud.designation.remove(db, designation_id=code)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{code}/prices", response_model=List[DesignationPrice])
def list_prices(
    code: str,
    db: Session = Depends(deps.get_db),
    admin: TokenPayload = Depends(deps.require_admin),
):
    designation = crud.designation.resolve(db, code)
    return crud.designation_price.list_for_designation(db, designation.id)


@router.post(
    "/{code}/prices",
    response_model=DesignationPrice,
    status_code=status.HTTP_201_CREATED,
)
def create_price(
    code: str,
    price_in: DesignationPriceCreate,
    db: Session = Depends(deps.get_db),
    admin: TokenPayload = Depends(deps.require_admin),
):
    designation = crud.designation.resolve(db, code)
    return crud.designation_price.create(db, designation_id=designation.id, obj_in=price_in)


@router.put("/{code}/capacity-overrides", response_model=CapacityOverride)
def set_capacity_override(
    code: str,
    override_in: CapacityOverrideCreate,
    db: Session = Depends(deps.get_db),
    admin: TokenPayload = Depends(deps.require_admin),
):
    """Set the capacity of one bucket, replacing the designation default there."""
    designation = crud.designation.resolve(db, code)
    scope, _, _ = resolve_scope(
        db,
        ScopeIn(designation=designation.id, **override_in.model_dump(exclude={"capacity"})),
        designation=designation,
    )
    return crud.capacity.upsert_override(
        db,
        bucket_key=scope.bucket_key,
        scope=scope.as_dict(),
        capacity=override_in.capacity,
    )
