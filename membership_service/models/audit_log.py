# membership_service/models/audit_log.py
from sqlalchemy import Column, String, DateTime, JSON
from membership_service.db.base_class import Base
from membership_service.utils.timeutils import utcnow
import uuid


class MembershipAuditLog(Base):
    __tablename__ = "membership_audit_logs"

    id = Column(
        String, primary_key=True, default=lambda: f"mal_{uuid.uuid4().hex[:12]}"
    )

    # What happened, e.g. 'membership.activated', 'id_card.reissued'
    action = Column(String(100), nullable=False, index=True)

    # Who did it
    actor_type = Column(String(50), nullable=False)  # 'user', 'admin', 'system', 'webhook'
    actor_id = Column(String, nullable=True)

    # What was affected
    membership_id = Column(String, nullable=True, index=True)
    entity_type = Column(String(50), nullable=False)  # 'membership', 'id_card'
    entity_id = Column(String, nullable=False)

    previous_state = Column(JSON, nullable=True)
    new_state = Column(JSON, nullable=True)
    details = Column(JSON, nullable=True)

    # Immutable timestamp
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
