# membership_service/main.py
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from membership_service.api.v1.api import api_router
from membership_service.core.config import settings
from membership_service.core.error_handlers import register_exception_handlers
from membership_service.core.limiter import limiter
from membership_service.scheduler import init_scheduler, shutdown_scheduler

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Membership service starting up...")
    if settings.SCHEDULER_ENABLED:
        init_scheduler()
    yield
    if settings.SCHEDULER_ENABLED:
        shutdown_scheduler()
    logger.info("Membership service shutting down...")


app = FastAPI(
    title="Membership Seat Service",
    version="1.0.0",
    description="""
        **Membership Seat Allocation & Fee Resolution**

        ## Features

        * **Designation Catalog**: Role types arranged in a tree with default capacity, fee and validity
        * **Availability**: Seats remaining and the fee for any cell/designation/level/geography bucket
        * **Seat Allocation**: Capacity-safe joins with ordinal seat numbers per bucket
        * **Lifecycle**: Payment confirmation, approval, revocation, renewal and expiry
        * **Credentials**: Unique, monotonic ID card numbers per year
        * **Reassignment**: Priced moves between buckets with preview

        ## Authentication

        User and admin endpoints require a JWT via the `Authorization: Bearer <token>` header.
        Service-to-service endpoints require the `X-Internal-Api-Key` header.
        """,
    lifespan=lifespan,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
register_exception_handlers(app)

origins = [
    "http://localhost:3000",
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router, prefix="/api/v1")


@app.get("/")
def read_root():
    return {"status": "Membership Seat Service is running"}
