# membership_service/schemas/scope.py
from pydantic import BaseModel, Field
from typing import Optional

from membership_service.constants.membership import OrgLevel, Zone


class ScopeIn(BaseModel):
    """A requested seat scope. Cell and designation accept an id or a code."""

    cell: str = Field(..., json_schema_extra={"example": "GENERAL_BODY"})
    designation: str = Field(..., json_schema_extra={"example": "PRESIDENT"})
    level: OrgLevel
    zone: Optional[Zone] = None
    country_id: Optional[str] = None
    state_id: Optional[str] = None
    district_id: Optional[str] = None
    mandal_id: Optional[str] = None

