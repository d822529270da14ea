# membership_service/services/membership/scope.py
"""
Seat scope value object and its validation rules.

A scope is (cell, designation, level) plus the geography fields that the
level admits. Its canonical string form, the bucket key, is what capacity
and seat numbering are keyed on.
"""

from dataclasses import dataclass, fields
from typing import Optional

from sqlalchemy.orm import Session

from membership_service import crud
from membership_service.constants.membership import OrgLevel, Zone
from membership_service.core.errors import ErrorCode, NotFoundError, ScopeValidationError

GEO_FIELDS = ("zone", "country_id", "state_id", "district_id", "mandal_id")

# (required, optional) geography per level; anything else is forbidden
LEVEL_RULES = {
    OrgLevel.NATIONAL: ((), ("country_id",)),
    OrgLevel.ZONE: (("zone",), ("country_id",)),
    OrgLevel.STATE: (("state_id",), ()),
    OrgLevel.DISTRICT: (("state_id", "district_id"), ()),
    OrgLevel.MANDAL: (("state_id", "district_id", "mandal_id"), ()),
}

KEY_SEPARATOR = "|"
EMPTY_PART = "-"


def _key_part(value) -> str:
    if value is None:
        return EMPTY_PART
    if isinstance(value, (OrgLevel, Zone)):
        return value.value
    return str(value)


def aggregate_key_for(cell_id, level, zone, country_id, state_id, district_id, mandal_id) -> str:
    parts = (cell_id, level, zone, country_id, state_id, district_id, mandal_id)
    return KEY_SEPARATOR.join(_key_part(p) for p in parts)


@dataclass(frozen=True)
class Scope:
    cell_id: str
    designation_id: str
    level: OrgLevel
    zone: Optional[Zone] = None
    country_id: Optional[str] = None
    state_id: Optional[str] = None
    district_id: Optional[str] = None
    mandal_id: Optional[str] = None

    def __post_init__(self):
        try:
            object.__setattr__(self, "level", OrgLevel(self.level))
        except ValueError:
            raise ScopeValidationError(f"Unknown level {self.level!r}", field="level")
        if self.zone is not None:
            try:
                object.__setattr__(self, "zone", Zone(self.zone))
            except ValueError:
                raise ScopeValidationError(f"Unknown zone {self.zone!r}", field="zone")

    @classmethod
    def from_record(cls, record) -> "Scope":
        """Builds a scope from any object carrying the scope columns (e.g. Membership)."""
        return cls(**{f.name: getattr(record, f.name) for f in fields(cls)})

    def as_dict(self) -> dict:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    @property
    def bucket_key(self) -> str:
        parts = (
            self.cell_id,
            self.designation_id,
            self.level,
            self.zone,
            self.country_id,
            self.state_id,
            self.district_id,
            self.mandal_id,
        )
        return KEY_SEPARATOR.join(_key_part(p) for p in parts)

    @property
    def aggregate_key(self) -> str:
        """The bucket key without the designation: one cell at one level and place."""
        return aggregate_key_for(
            self.cell_id,
            self.level,
            self.zone,
            self.country_id,
            self.state_id,
            self.district_id,
            self.mandal_id,
        )

    def validate_shape(self) -> None:
        """Checks that exactly the geography fields the level admits are set."""
        required, optional = LEVEL_RULES[self.level]

        for name in required:
            if getattr(self, name) is None:
                raise ScopeValidationError(
                    f"{name} is required for level {self.level.value}", field=name
                )
        for name in GEO_FIELDS:
            if name in required or name in optional:
                continue
            if getattr(self, name) is not None:
                raise ScopeValidationError(
                    f"{name} is not allowed for level {self.level.value}", field=name
                )


def verify_geography(db: Session, scope: Scope) -> None:
    """
    Checks that the referenced geography exists and nests correctly
    (mandal inside district, district inside state).
    """
    if scope.country_id is not None and crud.geo.get_country(db, scope.country_id) is None:
        raise NotFoundError(
            ErrorCode.GEO_NOT_FOUND, f"Country {scope.country_id} not found",
            {"field": "country_id"},
        )

    if scope.state_id is not None and crud.geo.get_state(db, scope.state_id) is None:
        raise NotFoundError(
            ErrorCode.GEO_NOT_FOUND, f"State {scope.state_id} not found",
            {"field": "state_id"},
        )

    if scope.district_id is not None:
        district = crud.geo.get_district(db, scope.district_id)
        if district is None:
            raise NotFoundError(
                ErrorCode.GEO_NOT_FOUND, f"District {scope.district_id} not found",
                {"field": "district_id"},
            )
        if district.state_id != scope.state_id:
            raise ScopeValidationError(
                f"District {scope.district_id} does not belong to state {scope.state_id}",
                field="district_id",
            )

    if scope.mandal_id is not None:
        mandal = crud.geo.get_mandal(db, scope.mandal_id)
        if mandal is None:
            raise NotFoundError(
                ErrorCode.GEO_NOT_FOUND, f"Mandal {scope.mandal_id} not found",
                {"field": "mandal_id"},
            )
        if mandal.district_id != scope.district_id:
            raise ScopeValidationError(
                f"Mandal {scope.mandal_id} does not belong to district {scope.district_id}",
                field="mandal_id",
            )


def resolve_scope(db: Session, scope_in, designation=None):
    """
    Turns a requested scope (cell/designation given by id or code) into a
    validated Scope.

    Returns:
        (scope, designation, cell)
    """
    if designation is None:
        designation = crud.designation.resolve(db, scope_in.designation)
    cell = crud.cell.resolve(db, scope_in.cell)

    scope = Scope(
        cell_id=cell.id,
        designation_id=designation.id,
        level=scope_in.level,
        zone=scope_in.zone,
        country_id=scope_in.country_id,
        state_id=scope_in.state_id,
        district_id=scope_in.district_id,
        mandal_id=scope_in.mandal_id,
    )
    scope.validate_shape()
    verify_geography(db, scope)
    return scope, designation, cell
