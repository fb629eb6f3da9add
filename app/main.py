"""
Task Tracker API - Main Application
===================================

FastAPI application entry point with middleware configuration
and route registration.
"""

import logging
import time
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import newrelic.agent

# Configure logging for the application (root logger defaults to WARNING)
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import settings
from app.db.session import init_db, close_db
from app.services.cache import CacheUnavailableError, init_redis, close_redis
from app.services.scheduler import shutdown_scheduler, start_scheduler
from app.core.errors import setup_exception_handlers

logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"


# =============================================================================
# New Relic Transaction Enrichment Middleware (Raw ASGI)
# =============================================================================

class NewRelicTransactionMiddleware:
    """
    Raw ASGI middleware that enriches every New Relic transaction with
    custom attributes for filtering and alerting.

    Raw ASGI keeps the handler in the same task, so New Relic's
    contextvars-based span propagation still sees DB and Redis spans.

    Captures: response status, latency, HTTP method, route pattern and
    client address.
    """

    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        start = time.perf_counter()
        status_code = 500  # default until we capture the real one

        async def send_wrapper(message):
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message["status"]
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        finally:
            duration_ms = (time.perf_counter() - start) * 1000

            txn = newrelic.agent.current_transaction()
            if txn:
                # Route pattern (e.g. "/api/tasks/{task_id}") for grouping
                route = scope.get("route")
                route_path = route.path if route else scope.get("path", "unknown")

                client = scope.get("client")
                client_ip = client[0] if client else "unknown"

                newrelic.agent.add_custom_attributes([
                    ("http.method", scope.get("method", "")),
                    ("http.route", route_path),
                    ("http.status_code", status_code),
                    ("http.duration_ms", round(duration_ms, 2)),
                    ("http.client_ip", client_ip),
                    ("environment", settings.ENVIRONMENT),
                ])


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.

    Handles startup and shutdown of:
    - Database connection
    - Redis connection (optional)
    - Goal job scheduler
    """
    logger.info("Starting Task Tracker API (%s)", settings.ENVIRONMENT)

    # Initialize database
    try:
        await init_db()
    except Exception as e:
        # Continue startup even if DB fails (for health checks)
        logger.error("Database connection failed: %s", e)

    # Initialize Redis
    try:
        await init_redis()
    except CacheUnavailableError:
        logger.info("REDIS_URL not set; caching and rate limiting disabled")
    except Exception as e:
        logger.warning("Redis connection failed: %s", e)

    if settings.SCHEDULER_ENABLED:
        start_scheduler()

    yield

    # Shutdown
    logger.info("Shutting down Task Tracker API")
    shutdown_scheduler()
    await close_db()
    await close_redis()


# Create FastAPI application
app = FastAPI(
    title="Task Tracker API",
    description="""
## Task and Monthly Goal Tracking Backend

### Features
- **Authentication**: Email/password with rotating refresh tokens
- **Tasks**: CRUD, archive/restore, permanent delete and offline batch sync
- **Monthly Goals**: Recurring goals that create one task per due day
- **Profile**: Account details, password change and account deletion

### Rate Limits
- Authentication: 10 requests/minute
- Sync: 30 requests/minute
    """,
    version=API_VERSION,
    docs_url="/docs" if settings.is_development else None,
    redoc_url="/redoc" if settings.is_development else None,
    openapi_url="/openapi.json" if settings.is_development else None,
    lifespan=lifespan,
    responses={
        401: {"description": "Not authenticated"},
        404: {"description": "Resource not found"},
        409: {"description": "Resource conflict"},
        422: {"description": "Validation error"},
        429: {"description": "Rate limit exceeded"},
        500: {"description": "Internal server error"},
    },
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# New Relic transaction enrichment (adds custom attrs to every transaction)
app.add_middleware(NewRelicTransactionMiddleware)

# Setup exception handlers
setup_exception_handlers(app)


# =============================================================================
# Health Check Endpoints
# =============================================================================

@app.get("/health", tags=["Health"])
async def health_check() -> dict:
    """
    Health check endpoint.

    Returns the current status of the API.
    """
    return {
        "status": "healthy",
        "version": API_VERSION,
        "environment": settings.ENVIRONMENT,
    }


@app.get("/", tags=["Health"])
async def root() -> dict:
    """Root endpoint with API information."""
    return {
        "name": "Task Tracker API",
        "version": API_VERSION,
        "docs": "/docs" if settings.is_development else "Disabled in production",
    }


# =============================================================================
# API Routes
# =============================================================================

from app.api.v1 import auth
app.include_router(auth.router, prefix="/api/auth", tags=["Authentication"])

from app.api.v1 import tasks
app.include_router(tasks.router, prefix="/api/tasks", tags=["Tasks"])

from app.api.v1 import monthly_goals
app.include_router(monthly_goals.router, prefix="/api/monthly-goals", tags=["Monthly Goals"])

from app.api.v1 import profile
app.include_router(profile.router, prefix="/api/profile", tags=["Profile"])
