# membership_service/core/error_handlers.py
"""
Exception handlers that render engine errors as structured JSON.

Response shape: {"error": {"code", "message", "retryable", ...details}}
"""

import logging
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError

from membership_service.core.errors import MembershipError, DatabaseUnavailableError

logger = logging.getLogger(__name__)

# Seconds a client should wait before retrying a retryable failure
RETRY_AFTER_SECONDS = 5


async def handle_membership_error(request: Request, error: MembershipError) -> JSONResponse:
    log = logger.warning if error.status_code < 500 else logger.error
    log(
        f"{error.code.value} on {request.method} {request.url.path}: {error.message}",
        extra={"error_code": error.code.value, "details": error.details},
    )

    content = {
        "error": {
            **error.to_dict(),
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "path": request.url.path,
        }
    }
    headers = {}
    if error.retryable:
        headers["Retry-After"] = str(RETRY_AFTER_SECONDS)

    return JSONResponse(status_code=error.status_code, content=content, headers=headers)


async def handle_operational_error(request: Request, error: OperationalError) -> JSONResponse:
    logger.error(f"Database error on {request.url.path}: {error}", exc_info=True)
    return await handle_membership_error(request, DatabaseUnavailableError())


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(MembershipError, handle_membership_error)
    app.add_exception_handler(OperationalError, handle_operational_error)
