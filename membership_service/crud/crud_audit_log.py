# membership_service/crud/crud_audit_log.py
from typing import Any, Dict, List, Optional
from sqlalchemy.orm import Session

from membership_service.models.audit_log import MembershipAuditLog


class CRUDMembershipAuditLog:
    """
    CRUD operations for MembershipAuditLog.

    Audit rows are immutable. They are only flushed here so the entry
    commits (or rolls back) together with the change it records.
    """

    def log_action(
        self,
        db: Session,
        *,
        action: str,
        actor_type: str,
        entity_type: str,
        entity_id: str,
        membership_id: Optional[str] = None,
        actor_id: Optional[str] = None,
        previous_state: Optional[Dict[str, Any]] = None,
        new_state: Optional[Dict[str, Any]] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> MembershipAuditLog:
        db_obj = MembershipAuditLog(
            action=action,
            actor_type=actor_type,
            actor_id=actor_id,
            membership_id=membership_id,
            entity_type=entity_type,
            entity_id=entity_id,
            previous_state=previous_state,
            new_state=new_state,
            details=details,
        )
        db.add(db_obj)
        db.flush()
        return db_obj

    def list_for_membership(self, db: Session, membership_id: str) -> List[MembershipAuditLog]:
        return (
            db.query(MembershipAuditLog)
            .filter(MembershipAuditLog.membership_id == membership_id)
            .order_by(MembershipAuditLog.created_at.asc())
            .all()
        )


audit_log = CRUDMembershipAuditLog()
