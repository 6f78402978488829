# charity_hub/main.py

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

from charity_hub.config import (
    ALLOWED_ORIGINS,
    RATE_LIMIT_MAX_CLIENTS,
    RATE_LIMIT_REQUESTS,
    RATE_LIMIT_WINDOW_SECONDS,
)
from charity_hub.errors import setup_exception_handlers
from charity_hub.logging_config import setup_logging
from charity_hub.middleware import RateLimitMiddleware, RequestIDMiddleware
from charity_hub.rate_limiter import SlidingWindowRateLimiter
from charity_hub.routes.admin_shifts import router as admin_shifts_router
from charity_hub.routes.applications import router as applications_router
from charity_hub.routes.audit import router as audit_router
from charity_hub.routes.auth import router as auth_router
from charity_hub.routes.dashboard import router as dashboard_router
from charity_hub.routes.documents import router as documents_router
from charity_hub.routes.health import router as health_router
from charity_hub.routes.messages import router as messages_router
from charity_hub.routes.metrics import router as metrics_router
from charity_hub.routes.notifications import router as notifications_router
from charity_hub.routes.privacy import router as privacy_router
from charity_hub.routes.support import router as support_router
from charity_hub.routes.tasks import router as tasks_router
from charity_hub.routes.volunteer_shifts import router as volunteer_shifts_router

API_PREFIX = "/api/v1"

# Initialize structured logging
setup_logging()
logger = structlog.get_logger(__name__)

app = FastAPI(
    title="Charity Hub API",
    description="API for volunteer onboarding, shift scheduling and charity operations",
    version="1.0.0",
)

rate_limiter = SlidingWindowRateLimiter(
    limit=RATE_LIMIT_REQUESTS,
    window_seconds=RATE_LIMIT_WINDOW_SECONDS,
    max_clients=RATE_LIMIT_MAX_CLIENTS,
)

# Outermost first: request id, then CORS, then throttling
app.add_middleware(RateLimitMiddleware, limiter=rate_limiter)
app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS if "*" not in ALLOWED_ORIGINS else ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestIDMiddleware)

setup_exception_handlers(app)

# Register routers
app.include_router(health_router, tags=["Health"])
app.include_router(metrics_router, tags=["Metrics"])
app.include_router(auth_router, prefix=API_PREFIX, tags=["Auth"])
app.include_router(applications_router, prefix=API_PREFIX, tags=["Volunteers"])
app.include_router(admin_shifts_router, prefix=API_PREFIX, tags=["Shifts"])
app.include_router(volunteer_shifts_router, prefix=API_PREFIX, tags=["Shifts"])
app.include_router(dashboard_router, prefix=API_PREFIX, tags=["Dashboards"])
app.include_router(tasks_router, prefix=API_PREFIX, tags=["Tasks"])
app.include_router(support_router, prefix=API_PREFIX, tags=["Support"])
app.include_router(messages_router, prefix=API_PREFIX, tags=["Messages"])
app.include_router(documents_router, prefix=API_PREFIX, tags=["Documents"])
app.include_router(privacy_router, prefix=API_PREFIX, tags=["Privacy"])
app.include_router(notifications_router, prefix=API_PREFIX, tags=["Notifications"])
app.include_router(audit_router, prefix=API_PREFIX, tags=["Audit"])


@app.on_event("startup")
def startup_event() -> None:
    """Re-drive notifications left pending by a previous process."""
    from charity_hub.db.engine import engine
    from charity_hub.services.notifications import retry_pending_notifications

    logger.info("FastAPI application starting up...")

    try:
        retry_pending_notifications(engine)
    except SQLAlchemyError as e:
        logger.warning("startup_notification_retry_skipped", error=str(e))

    logger.info("FastAPI application initialized")
