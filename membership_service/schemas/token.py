# membership_service/schemas/token.py
from pydantic import BaseModel, Field
from typing import List, Optional


class TokenPayload(BaseModel):
    sub: str  # "sub" is the standard claim for subject (user ID)
    name: Optional[str] = None
    roles: List[str] = Field(default_factory=list)
    exp: int  # Standard claim for expiration time

    model_config = {
        "populate_by_name": True,
        "from_attributes": True,
    }

    @property
    def is_admin(self) -> bool:
        return "admin" in self.roles
