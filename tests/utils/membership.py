from sqlalchemy.orm import Session

from membership_service import crud
from membership_service.constants.membership import OrgLevel, Zone
from membership_service.models.geo import HrcCountry, HrcDistrict, HrcMandal, HrcState
from membership_service.schemas.cell import CellCreate
from membership_service.schemas.designation import DesignationCreate, DesignationPriceCreate
from membership_service.schemas.scope import ScopeIn


def create_designation(
    db: Session,
    code: str = "PRESIDENT",
    *,
    capacity: int = 1,
    fee: int = 0,
    validity_days: int = 365,
    parent_id: str = None,
):
    designation_in = DesignationCreate(
        code=code,
        name=code.title(),
        default_capacity=capacity,
        default_fee=fee,
        default_validity_days=validity_days,
        parent_id=parent_id,
    )
    return crud.designation.create(db, obj_in=designation_in)


def create_cell(db: Session, name: str = "General Body", code: str = "GENERAL_BODY"):
    return crud.cell.create(db, obj_in=CellCreate(name=name, code=code))


def create_price(db: Session, designation, **fields):
    return crud.designation_price.create(
        db, designation_id=designation.id, obj_in=DesignationPriceCreate(**fields)
    )


def create_geography(db: Session):
    """
    One country with a state in the SOUTH zone, a district in it and a
    mandal in that. Returns a dict of the four rows.
    """
    country = HrcCountry(name="India", code="IN")
    db.add(country)
    db.flush()
    state = HrcState(name="Telangana", code="TG", zone=Zone.SOUTH, country_id=country.id)
    db.add(state)
    db.flush()
    district = HrcDistrict(name="Hyderabad", state_id=state.id)
    db.add(district)
    db.flush()
    mandal = HrcMandal(name="Ameerpet", district_id=district.id)
    db.add(mandal)
    db.commit()
    return {"country": country, "state": state, "district": district, "mandal": mandal}


def state_scope(designation, cell, geo, **overrides) -> ScopeIn:
    values = {
        "cell": cell.id,
        "designation": designation.code,
        "level": OrgLevel.STATE,
        "state_id": geo["state"].id,
    }
    values.update(overrides)
    return ScopeIn(**values)


def national_scope(designation, cell, /, **overrides) -> ScopeIn:
    values = {"cell": cell.id, "designation": designation.code, "level": OrgLevel.NATIONAL}
    values.update(overrides)
    return ScopeIn(**values)


def create_state(db: Session, country, name: str, zone: Zone = Zone.SOUTH):
    state = HrcState(name=name, zone=zone, country_id=country.id)
    db.add(state)
    db.commit()
    return state
