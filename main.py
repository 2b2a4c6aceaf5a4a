# ============================================================================
# VIDSCRIBE - MAIN APPLICATION
# ============================================================================
# EPOCH: 1 - VIDEO DESCRIPTION SERVICE
# STATUS: Core - FastAPI application entry point
# PURPOSE: Main application with the job scheduler
# CREATED: 19 OCT 2026
# ============================================================================
"""
Vidscribe Main Application

FastAPI application that:
1. Accepts "describe this Drive video" jobs over HTTP
2. Runs the admission queue and scheduler in the background
3. Serves and edits the cached descriptions in PostgreSQL

Usage:
    uvicorn main:app --host 0.0.0.0 --port 8000
"""

import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from __version__ import __version__, BUILD_DATE, EPOCH
from api.routes import router, set_services
from core.config import get_defaults
from infrastructure import DriveArtifactSource, GeminiInferenceBackend
from orchestrator import AdmissionQueue, RetryPolicy, Scheduler
from repositories import (
    RecordRepository,
    close_pool,
    init_pool,
    is_database_configured,
)
from services import JobService, RecordService
from worker import PipelineExecutor, ResourceReclaimer

# Health check system
from health import health_router, get_registry
from health.checks.application import set_scheduler
from health.checks.infrastructure import set_collaborators

# Configure logging using our structured logging system
from core.logging import configure_logging, get_logger

configure_logging(
    level=os.environ.get("LOG_LEVEL", "INFO"),
    json_output=os.environ.get("LOG_FORMAT", "").lower() == "json",
)
logger = get_logger(__name__)

# Global instances
_scheduler: Scheduler = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Builds the collaborators and the scheduler on startup. On shutdown the
    scheduler stops first so every waiting caller gets a cancellation
    result before the clients and the pool close.
    """
    global _scheduler

    logger.info(f"Starting vidscribe v{__version__} (Epoch {EPOCH}, Build {BUILD_DATE})")
    defaults = get_defaults()

    # Record store
    if not is_database_configured():
        logger.warning("DATABASE_URL/POSTGRES_HOST not set, using local defaults")
    pool = await init_pool(
        min_size=int(os.environ.get("DATABASE_POOL_MIN", "1")),
        max_size=int(os.environ.get("DATABASE_POOL_MAX", "5")),
    )
    store = RecordRepository(pool)
    await store.ensure_schema()
    logger.info("Record store ready")

    # External collaborators
    source = DriveArtifactSource.from_env()
    backend = GeminiInferenceBackend()
    reclaimer = ResourceReclaimer(defaults.reclaimer.temp_dir)
    reclaimer.ensure_dir()

    # Engine
    policy = RetryPolicy.from_defaults(defaults.retry)
    queue = AdmissionQueue(
        policy=policy,
        max_concurrent=defaults.scheduler.max_concurrent,
        submission_timeout_seconds=defaults.scheduler.submission_timeout_seconds,
    )
    executor = PipelineExecutor(
        source=source,
        backend=backend,
        store=store,
        reclaimer=reclaimer,
        defaults=defaults.pipeline,
        policy=policy,
    )
    _scheduler = Scheduler(
        queue,
        executor,
        reclaimer=reclaimer,
        defaults=defaults.scheduler,
        reclaimer_defaults=defaults.reclaimer,
    )

    # Set services for API routes
    set_services(
        job_service=JobService(_scheduler),
        record_service=RecordService(store),
    )

    await _scheduler.start()
    logger.info(
        f"Scheduler started (max_concurrent={defaults.scheduler.max_concurrent}, "
        f"max_retries={policy.max_retries})"
    )

    # Initialize health checks
    set_scheduler(_scheduler)
    set_collaborators(source=source, backend=backend, reclaimer=reclaimer)
    import health.checks  # noqa: F401  Register all health check plugins
    logger.info(f"Health checks initialized ({len(get_registry())} checks registered)")

    yield

    # Shutdown
    logger.info("Shutting down vidscribe...")

    await _scheduler.stop()
    await source.close()
    await backend.close()
    await close_pool()

    logger.info("Vidscribe stopped")


# Create FastAPI app
app = FastAPI(
    title="Vidscribe",
    description="Structured descriptions of Google Drive videos via Gemini",
    version=__version__,
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=os.environ.get("CORS_ORIGINS", "*").split(","),
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include health check routes (no prefix - /livez, /readyz, /health)
app.include_router(health_router)

# Include API routes
app.include_router(router, prefix="/api/v1")


# Root endpoint
@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "service": "Vidscribe",
        "version": __version__,
        "epoch": EPOCH,
        "build_date": BUILD_DATE,
        "status": "running",
        "docs": "/docs",
    }


# ============================================================================
# MAIN ENTRY POINT
# ============================================================================

if __name__ == "__main__":
    import uvicorn

    host = os.environ.get("HOST", "0.0.0.0")
    port = int(os.environ.get("PORT", "8000"))

    uvicorn.run(
        "main:app",
        host=host,
        port=port,
        reload=os.environ.get("RELOAD", "false").lower() == "true",
    )
