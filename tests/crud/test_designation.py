# tests/crud/test_designation.py

from unittest.mock import MagicMock

import pytest
from sqlalchemy.orm import Session

from membership_service import crud
from membership_service.constants.membership import OrgLevel
from membership_service.core.errors import ConflictError, ErrorCode, NotFoundError
from membership_service.crud.crud_designation import CRUDDesignation
from membership_service.models.capacity import CapacityOverride
from membership_service.models.designation import Designation
from membership_service.models.designation_price import DesignationPrice
from membership_service.schemas.designation import DesignationCreate
from membership_service.services.membership.scope import Scope
from membership_service.services.membership.seat_allocator import SeatAllocator
from tests.utils.membership import create_cell, create_designation, create_price, national_scope

designation_crud = CRUDDesignation(Designation)


def test_create_designation_commits():
    """
    Tests create without a parent against a mocked session.
    """
    db_session = MagicMock()
    designation_in = DesignationCreate(code="PRESIDENT", name="President", default_capacity=1)

    designation_crud.create(db=db_session, obj_in=designation_in)

    db_session.add.assert_called_once()
    db_session.commit.assert_called_once()
    db_session.refresh.assert_called_once()


def test_duplicate_code_is_a_conflict(db_session: Session):
    create_designation(db_session, "PRESIDENT")
    with pytest.raises(ConflictError) as exc:
        create_designation(db_session, "PRESIDENT")
    assert exc.value.code == ErrorCode.DESIGNATION_CODE_TAKEN


def test_resolve_by_code_or_id(db_session: Session):
    designation = create_designation(db_session, "SECRETARY")
    assert crud.designation.resolve(db_session, "SECRETARY").id == designation.id
    assert crud.designation.resolve(db_session, designation.id).code == "SECRETARY"

    with pytest.raises(NotFoundError) as exc:
        crud.designation.resolve(db_session, "TREASURER")
    assert exc.value.code == ErrorCode.DESIGNATION_NOT_FOUND


def test_list_is_ordered_by_rank(db_session: Session):
    for code, rank in (("MEMBER", 3), ("PRESIDENT", 1), ("SECRETARY", 2)):
        crud.designation.create(
            db_session, obj_in=DesignationCreate(code=code, name=code.title(), order_rank=rank)
        )
    assert [d.code for d in crud.designation.list_ordered(db_session)] == [
        "PRESIDENT",
        "SECRETARY",
        "MEMBER",
    ]


def test_set_parent_rejects_cycles(db_session: Session):
    president = create_designation(db_session, "PRESIDENT")
    secretary = create_designation(db_session, "SECRETARY", parent_id=president.id)
    member = create_designation(db_session, "MEMBER", parent_id=secretary.id)

    with pytest.raises(ConflictError) as exc:
        crud.designation.set_parent(db_session, designation_id="PRESIDENT", parent_id=member.id)
    assert exc.value.code == ErrorCode.CYCLE_DETECTED

    with pytest.raises(ConflictError):
        crud.designation.set_parent(db_session, designation_id="MEMBER", parent_id="MEMBER")

    # Moving a leaf elsewhere is fine
    moved = crud.designation.set_parent(db_session, designation_id="MEMBER", parent_id="PRESIDENT")
    assert moved.parent_id == president.id


def test_cannot_delete_designation_in_use(db_session: Session):
    cell = create_cell(db_session)
    designation = create_designation(db_session, "PRESIDENT", capacity=1)
    SeatAllocator(db_session).allocate_seat(
        user_id="user_1", scope_in=national_scope(designation, cell)
    )

    with pytest.raises(ConflictError) as exc:
        crud.designation.remove(db_session, designation_id="PRESIDENT")
    assert exc.value.code == ErrorCode.DESIGNATION_IN_USE


def test_delete_reparents_children(db_session: Session):
    president = create_designation(db_session, "PRESIDENT")
    secretary = create_designation(db_session, "SECRETARY", parent_id=president.id)
    member = create_designation(db_session, "MEMBER", parent_id=secretary.id)

    crud.designation.remove(db_session, designation_id="SECRETARY")

    db_session.refresh(member)
    assert member.parent_id == president.id
    assert crud.designation.get_by_code(db_session, code="SECRETARY") is None


def test_delete_removes_capacity_overrides_and_prices(db_session: Session):
    cell = create_cell(db_session)
    designation = create_designation(db_session, "PATRON", capacity=1)
    scope = Scope(cell_id=cell.id, designation_id=designation.id, level=OrgLevel.NATIONAL)
    crud.capacity.upsert_override(
        db_session, bucket_key=scope.bucket_key, scope=scope.as_dict(), capacity=5
    )
    create_price(db_session, designation, fee=500)

    crud.designation.remove(db_session, designation_id="PATRON")

    assert db_session.query(CapacityOverride).count() == 0
    assert db_session.query(DesignationPrice).count() == 0


def test_cell_resolves_by_code_name_or_id(db_session: Session):
    cell = create_cell(db_session, name="Women Wing", code="WOMEN_WING")
    assert crud.cell.resolve(db_session, "WOMEN_WING").id == cell.id
    assert crud.cell.resolve(db_session, "Women Wing").id == cell.id
    assert crud.cell.resolve(db_session, cell.id).id == cell.id

    cell.is_active = False
    db_session.commit()
    with pytest.raises(NotFoundError) as exc:
        crud.cell.resolve(db_session, "WOMEN_WING")
    assert exc.value.code == ErrorCode.CELL_NOT_FOUND
