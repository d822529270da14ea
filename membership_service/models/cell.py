# membership_service/models/cell.py
from sqlalchemy import Column, String, Boolean, DateTime, Text
from membership_service.db.base_class import Base
from membership_service.utils.timeutils import utcnow
import uuid


class Cell(Base):
    """A functional wing of the organization (e.g. "Women Wing")."""
    __tablename__ = "cells"

    id = Column(
        String, primary_key=True, default=lambda: f"cell_{uuid.uuid4().hex[:12]}"
    )
    code = Column(String(64), unique=True, nullable=True)
    name = Column(String(255), unique=True, nullable=False)
    description = Column(Text, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)
