# membership_service/api/v1/endpoints/cells.py
from typing import List
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from membership_service import crud
from membership_service.api import deps
from membership_service.schemas.cell import Cell, CellCreate
from membership_service.schemas.designation import CellLevelCapacity, CellLevelCapacityCreate
from membership_service.schemas.token import TokenPayload
from membership_service.services.membership.scope import Scope, verify_geography

router = APIRouter(prefix="/cells", tags=["Cells"])


@router.get("", response_model=List[Cell])
def list_cells(db: Session = Depends(deps.get_db)):
    return crud.cell.list_active(db)


@router.post("", response_model=Cell, status_code=status.HTTP_201_CREATED)
def create_cell(
    cell_in: CellCreate,
    db: Session = Depends(deps.get_db),
    admin: TokenPayload = Depends(deps.require_admin),
):
    return crud.cell.create(db, obj_in=cell_in)


@router.put("/{cell}/level-capacities", response_model=CellLevelCapacity)
def set_level_capacity(
    cell: str,
    capacity_in: CellLevelCapacityCreate,
    db: Session = Depends(deps.get_db),
    admin: TokenPayload = Depends(deps.require_admin),
):
    """Cap the live seats of a cell at one level and place, across designations."""
    cell_obj = crud.cell.resolve(db, cell)
    geo = capacity_in.model_dump(exclude={"capacity"})
    # The designation plays no part in the aggregate key or its rules.
    scope = Scope(cell_id=cell_obj.id, designation_id="", **geo)
    scope.validate_shape()
    verify_geography(db, scope)

    return crud.capacity.upsert_level_capacity(
        db,
        aggregate_key=scope.aggregate_key,
        scope={"cell_id": cell_obj.id, **geo},
        capacity=capacity_in.capacity,
    )
