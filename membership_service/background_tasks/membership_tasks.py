# membership_service/background_tasks/membership_tasks.py
"""
Background tasks for membership maintenance.
"""
import logging

from membership_service.core.config import settings
from membership_service.db.session import SessionLocal
from membership_service.services.membership.lifecycle import MembershipLifecycle

logger = logging.getLogger(__name__)


def expire_memberships():
    """
    Background task: Expire ACTIVE memberships whose validity has ended.

    Runs on the scheduler interval. Each run handles at most one batch;
    anything left over is picked up by the next run.

    Returns: Number of memberships expired
    """
    db = SessionLocal()
    try:
        count = MembershipLifecycle(db).expire_due_memberships(
            limit=settings.EXPIRY_SWEEP_BATCH_SIZE
        )
        if count > 0:
            logger.info(f"Expiry sweep expired {count} membership(s)")
        return count

    except Exception as e:
        logger.error(f"Error in expire_memberships task: {str(e)}", exc_info=True)
        return 0

    finally:
        db.close()
