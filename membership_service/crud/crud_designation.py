# membership_service/crud/crud_designation.py
"""
CRUD operations for the designation catalog.

Designations form a tree (parent_id) that must stay acyclic, and a
designation cannot be deleted while any membership references it.
"""

import logging
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .base import CRUDBase
from membership_service.core.errors import ConflictError, ErrorCode, NotFoundError
from membership_service.models.designation import Designation
from membership_service.models.membership import Membership
from membership_service.schemas.designation import DesignationCreate, DesignationUpdate

logger = logging.getLogger(__name__)


class CRUDDesignation(CRUDBase[Designation, DesignationCreate, DesignationUpdate]):
    def get_by_code(self, db: Session, *, code: str) -> Optional[Designation]:
        return db.query(Designation).filter(Designation.code == code).first()

    def resolve(self, db: Session, code_or_id: str) -> Designation:
        """Looks a designation up by code, falling back to id."""
        designation = self.get_by_code(db, code=code_or_id) or self.get(db, code_or_id)
        if designation is None:
            raise NotFoundError(
                ErrorCode.DESIGNATION_NOT_FOUND,
                f"Designation {code_or_id} not found",
                {"designation": code_or_id},
            )
        return designation

    def list_ordered(self, db: Session) -> List[Designation]:
        return (
            db.query(Designation)
            .order_by(Designation.order_rank.asc(), Designation.name.asc())
            .all()
        )

    def create(self, db: Session, *, obj_in: DesignationCreate) -> Designation:
        if obj_in.parent_id is not None:
            self.resolve(db, obj_in.parent_id)

        db_obj = Designation(**obj_in.model_dump())
        db.add(db_obj)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            raise ConflictError(
                ErrorCode.DESIGNATION_CODE_TAKEN,
                f"Designation code {obj_in.code} already exists",
                {"code": obj_in.code},
            )
        db.refresh(db_obj)
        logger.info(f"Designation created: {db_obj.code} ({db_obj.id})")
        return db_obj

    def is_descendant(self, db: Session, *, ancestor_id: str, node_id: str) -> bool:
        """True when `node_id` is `ancestor_id` or sits anywhere below it."""
        seen = set()
        current_id = node_id
        while current_id is not None and current_id not in seen:
            if current_id == ancestor_id:
                return True
            seen.add(current_id)
            node = self.get(db, current_id)
            current_id = node.parent_id if node else None
        return False

    def set_parent(
        self, db: Session, *, designation_id: str, parent_id: Optional[str]
    ) -> Designation:
        designation = self.resolve(db, designation_id)

        if parent_id is not None:
            parent = self.resolve(db, parent_id)
            # Walking up from the new parent must never reach the node itself.
            if self.is_descendant(db, ancestor_id=designation.id, node_id=parent.id):
                raise ConflictError(
                    ErrorCode.CYCLE_DETECTED,
                    f"Setting {parent.code} as parent of {designation.code} would create a cycle",
                    {"designation_id": designation.id, "parent_id": parent.id},
                )
            parent_id = parent.id

        designation.parent_id = parent_id
        db.commit()
        db.refresh(designation)
        return designation

    def remove(self, db: Session, *, designation_id: str) -> Designation:
        designation = self.resolve(db, designation_id)

        in_use = (
            db.query(Membership.id)
            .filter(Membership.designation_id == designation.id)
            .first()
        )
        if in_use is not None:
            raise ConflictError(
                ErrorCode.DESIGNATION_IN_USE,
                f"Designation {designation.code} is referenced by memberships",
                {"designation_id": designation.id},
            )

        for child in list(designation.children):
            child.parent = designation.parent
        db.delete(designation)
        db.commit()
        logger.info(f"Designation deleted: {designation.code} ({designation.id})")
        return designation


designation = CRUDDesignation(Designation)
