# membership_service/crud/crud_cell.py
from typing import List, Optional
from sqlalchemy import or_
from sqlalchemy.orm import Session

from .base import CRUDBase
from membership_service.core.errors import ErrorCode, NotFoundError
from membership_service.models.cell import Cell
from membership_service.schemas.cell import CellCreate


class CRUDCell(CRUDBase[Cell, CellCreate, CellCreate]):
    def find(self, db: Session, key: str) -> Optional[Cell]:
        return (
            db.query(Cell)
            .filter(or_(Cell.id == key, Cell.code == key, Cell.name == key))
            .first()
        )

    def resolve(self, db: Session, key: str) -> Cell:
        """Looks an active cell up by id, code or name."""
        cell = self.find(db, key)
        if cell is None or not cell.is_active:
            raise NotFoundError(
                ErrorCode.CELL_NOT_FOUND, f"Cell {key} not found", {"cell": key}
            )
        return cell

    def list_active(self, db: Session) -> List[Cell]:
        return db.query(Cell).filter(Cell.is_active.is_(True)).order_by(Cell.name.asc()).all()


cell = CRUDCell(Cell)
