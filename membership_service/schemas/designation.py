# membership_service/schemas/designation.py
from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime

from membership_service.constants.membership import OrgLevel, Zone
from membership_service.core.config import settings


class DesignationBase(BaseModel):
    code: str = Field(..., min_length=1, max_length=64, json_schema_extra={"example": "PRESIDENT"})
    name: str = Field(..., min_length=1, max_length=255, json_schema_extra={"example": "President"})
    default_capacity: int = Field(0, ge=0)
    default_fee: int = Field(0, ge=0, description="Fee in minor units")
    default_validity_days: int = Field(settings.DEFAULT_VALIDITY_DAYS, gt=0)
    order_rank: int = 0


class DesignationCreate(DesignationBase):
    parent_id: Optional[str] = None


class DesignationUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    default_capacity: Optional[int] = Field(None, ge=0)
    default_fee: Optional[int] = Field(None, ge=0)
    default_validity_days: Optional[int] = Field(None, gt=0)
    order_rank: Optional[int] = None


class Designation(DesignationBase):
    id: str
    parent_id: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class SetParentRequest(BaseModel):
    parent_id: Optional[str] = None


class DesignationPriceCreate(BaseModel):
    cell_id: Optional[str] = None
    level: Optional[OrgLevel] = None
    zone: Optional[Zone] = None
    state_id: Optional[str] = None
    district_id: Optional[str] = None
    mandal_id: Optional[str] = None
    fee: int = Field(..., ge=0)
    currency: Optional[str] = Field(None, min_length=3, max_length=3)
    validity_days: Optional[int] = Field(None, gt=0)
    priority: int = 0


class DesignationPrice(DesignationPriceCreate):
    id: str
    designation_id: str
    created_at: datetime

    model_config = {"from_attributes": True}


class CapacityOverrideCreate(BaseModel):
    """Capacity for the bucket identified by the designation in the path plus this scope."""
    cell: str
    level: OrgLevel
    zone: Optional[Zone] = None
    country_id: Optional[str] = None
    state_id: Optional[str] = None
    district_id: Optional[str] = None
    mandal_id: Optional[str] = None
    capacity: int = Field(..., ge=0)


class CapacityOverride(BaseModel):
    id: str
    bucket_key: str
    designation_id: str
    cell_id: str
    level: OrgLevel
    capacity: int

    model_config = {"from_attributes": True}


class CellLevelCapacityCreate(BaseModel):
    level: OrgLevel
    zone: Optional[Zone] = None
    country_id: Optional[str] = None
    state_id: Optional[str] = None
    district_id: Optional[str] = None
    mandal_id: Optional[str] = None
    capacity: int = Field(..., ge=0)


class CellLevelCapacity(BaseModel):
    id: str
    aggregate_key: str
    cell_id: str
    level: OrgLevel
    capacity: int

    model_config = {"from_attributes": True}
