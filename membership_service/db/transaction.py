# membership_service/db/transaction.py
"""
Unit-of-work runner shared by the membership services.

Every state change follows the same discipline: lock a counter row, write,
and let a unique constraint (or the membership version column) catch any
race the lock missed. A lost race rolls the whole unit back and replays it
from the start, so no partial rows survive a failure.
"""

import logging
from typing import Callable, Optional, TypeVar

from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from membership_service.core.config import settings
from membership_service.core.errors import (
    ConcurrentModificationError,
    DatabaseUnavailableError,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


def run_in_transaction(
    db: Session,
    work: Callable[[], T],
    *,
    label: str,
    attempts: Optional[int] = None,
) -> T:
    """
    Runs `work` and commits. Replays it on IntegrityError/StaleDataError.

    Raises:
        ConcurrentModificationError: every attempt lost its race
        DatabaseUnavailableError: the database could not be reached
    """
    max_attempts = attempts or settings.TRANSACTION_MAX_ATTEMPTS
    last_error: Optional[Exception] = None

    for attempt in range(1, max_attempts + 1):
        try:
            result = work()
            db.commit()
            return result
        except (IntegrityError, StaleDataError) as e:
            db.rollback()
            last_error = e
            logger.warning(
                f"{label}: conflict on attempt {attempt}/{max_attempts}, retrying: {e.__class__.__name__}"
            )
        except OperationalError as e:
            db.rollback()
            logger.error(f"{label}: database unavailable: {e}")
            raise DatabaseUnavailableError() from e
        except Exception:
            db.rollback()
            raise

    raise ConcurrentModificationError(
        f"{label} failed after {max_attempts} attempts",
        {"operation": label, "cause": last_error.__class__.__name__},
    )
