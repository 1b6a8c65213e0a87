"""
Paynroll Admissions API - Main Application Entry Point

This module initializes and configures the FastAPI application including:
- Logging
- Database and Redis connections
- Email transport selection
- Background job scheduler
- CORS middleware
- API routing and error envelopes
- Health check endpoints
"""

import logging
from contextlib import asynccontextmanager

from fastapi import APIRouter, FastAPI, HTTPException, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exception_handlers import http_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api import api_router
from app.core.config import settings
from app.core.database import async_session_maker, close_db, init_db
from app.core.email import close_email_transport, init_email_transport
from app.core.rate_limit import close_redis, init_redis
from app.core.scheduler import (
    list_registered_jobs,
    start_scheduler,
    stop_scheduler,
    trigger_job_manually,
)
from app.modules.admissions import register_admissions_jobs
from app.modules.admissions.errors import ApplicationServiceError

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """
    Application lifespan manager.

    Handles startup and shutdown events including:
    - Redis connection (rate limiting falls back to memory without it)
    - Database connection
    - Email transport (resolved once per process)
    - Background job scheduler
    """
    # Startup
    logger.info(f"Starting Paynroll Admissions API in {settings.python_env} mode...")

    # Initialize Redis
    try:
        await init_redis()
        logger.info("[OK] Redis connected")
    except Exception as e:
        logger.warning(f"[FAIL] Redis connection failed: {e}")
        if settings.is_production:
            raise

    # Initialize Database
    try:
        await init_db()
        logger.info("[OK] Database connected")
    except Exception as e:
        logger.error(f"[FAIL] Database connection failed: {e}")
        if settings.is_production:
            raise

    # Select the email transport; a misconfiguration is always fatal
    transport = init_email_transport()
    logger.info(f"[OK] Email transport: {transport.name}")

    # Initialize Background Job Scheduler
    try:
        # Register jobs before starting the scheduler
        register_admissions_jobs()

        await start_scheduler()
        logger.info("[OK] Background scheduler started")
    except Exception as e:
        logger.error(f"[FAIL] Background scheduler failed to start: {e}")
        if settings.is_production:
            raise

    yield  # Application runs here

    # Shutdown
    logger.info("Shutting down Paynroll Admissions API...")

    # Stop the scheduler first (wait for running jobs)
    await stop_scheduler()
    logger.info("[OK] Background scheduler stopped")

    close_email_transport()
    await close_redis()
    await close_db()
    logger.info("[OK] Cleanup complete")


app = FastAPI(
    title="Paynroll Admissions API",
    description="Admission applications, documents, decisions and applicant notifications",
    version="0.1.0",
    docs_url="/docs" if settings.is_development else None,
    redoc_url="/redoc" if settings.is_development else None,
    lifespan=lifespan,
)

app.include_router(api_router, prefix="/api/v1")

# CORS configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ============================================
# Error Envelopes
# ============================================


@app.exception_handler(ApplicationServiceError)
async def service_error_handler(_request: Request, exc: ApplicationServiceError) -> JSONResponse:
    """Render service errors as {success, error, message}."""
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(StarletteHTTPException)
async def envelope_http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Pass enveloped details (e.g. rate limiting) through as the response body."""
    if isinstance(exc.detail, dict) and "success" in exc.detail:
        return JSONResponse(status_code=exc.status_code, content=exc.detail, headers=exc.headers)
    return await http_exception_handler(request, exc)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(_request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "success": False,
            "error": "REQUEST_VALIDATION_ERROR",
            "message": "Request body or parameters are invalid",
            "details": jsonable_encoder(exc.errors()),
        },
    )


# ============================================
# Health Endpoints
# ============================================


@app.get("/", tags=["Root"])
async def root() -> dict[str, str]:
    """Root endpoint - API welcome message."""
    return {
        "message": "Welcome to Paynroll Admissions API",
        "status": "running",
        "environment": settings.python_env,
    }


@app.get("/health", tags=["Health"])
async def health_check() -> dict[str, str]:
    """Health check endpoint for container orchestration."""
    return {"status": "healthy"}


@app.get("/ready", tags=["Health"])
async def readiness_check():
    """Readiness check endpoint. Ready when the database answers."""
    try:
        async with async_session_maker() as session:
            await session.execute(text("SELECT 1"))
    except Exception as e:
        logger.warning(f"Readiness check failed: {e}")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "unavailable", "database": "error"},
        )
    return {"status": "ready", "database": "connected"}


# ============================================
# Background Job Debug Endpoints
# ============================================
# Manual triggering of background jobs, development only.
# In other environments jobs run on schedule.

debug_router = APIRouter(prefix="/debug", tags=["Debug"])


@debug_router.get("/jobs")
async def list_jobs():
    """List all registered background jobs and their next run time."""
    return {"jobs": list_registered_jobs()}


@debug_router.post("/jobs/{job_id}/trigger")
async def trigger_job(job_id: str):
    """
    Manually trigger a background job.

    Args:
        job_id: The ID of the job to trigger, e.g.
            admissions_purge_expired_verifications

    Raises:
        HTTPException 400: If job_id is not found.
    """
    try:
        return await trigger_job_manually(job_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e


if settings.is_development:
    app.include_router(debug_router)
