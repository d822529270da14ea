# membership_service/schemas/cell.py
from pydantic import BaseModel, Field
from typing import Optional


class CellCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255, json_schema_extra={"example": "Women Wing"})
    code: Optional[str] = Field(None, max_length=64, json_schema_extra={"example": "WOMEN_WING"})
    description: Optional[str] = None


class Cell(CellCreate):
    id: str
    is_active: bool

    model_config = {"from_attributes": True}
