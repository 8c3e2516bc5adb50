"""Tripflow check-in API - Main FastAPI application."""

import logging
import os
import sys
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import make_asgi_app
from sqlalchemy import text
from sqlalchemy.orm import Session

from tripflow_api.db.session import get_db
from tripflow_api.middleware.correlation import CorrelationIDMiddleware
from tripflow_api.middleware.tenant import TenantContextMiddleware
from tripflow_api.routes import activities, checkins, items
from tripflow_api.settings import get_settings

settings = get_settings()

LOG_FORMATS = {
    "json": '{"time": "%(asctime)s", "level": "%(levelname)s", "message": "%(message)s", "module": "%(name)s"}',
    "text": "%(asctime)s %(levelname)s %(name)s: %(message)s",
}

# Configure logging
logging.basicConfig(
    level=settings.log_level,
    format=LOG_FORMATS.get(settings.log_format.lower(), LOG_FORMATS["json"]),
    handlers=[logging.StreamHandler(sys.stdout)],
)
logger = logging.getLogger(__name__)

ALEMBIC_INI_PATH = os.path.join(os.path.dirname(__file__), "..", "alembic.ini")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    logger.info("Starting Tripflow check-in API...")
    try:
        settings.validate_production_settings()
    except ValueError as e:
        logger.error(f"Configuration validation failed: {e}")
        raise

    yield
    logger.info("Shutting down Tripflow check-in API...")


# Create FastAPI app
app = FastAPI(
    title="Tripflow Check-in API",
    description="Event arrival, activity attendance and equipment custody ledgers",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

# Custom middleware (order matters - last added is first executed)
app.add_middleware(TenantContextMiddleware)
app.add_middleware(CorrelationIDMiddleware)

# Prometheus metrics
metrics_app = make_asgi_app()
app.mount("/metrics", metrics_app)

# Register routers
app.include_router(checkins.router)
app.include_router(activities.router)
app.include_router(items.router)


@app.get("/health")
async def health_check():
    """Health check endpoint (basic liveness)."""
    return {
        "status": "healthy",
        "service": "tripflow-api",
        "version": "0.1.0",
    }


def _migrations_at_head(db: Session) -> bool:
    from alembic.config import Config
    from alembic.runtime.migration import MigrationContext
    from alembic.script import ScriptDirectory

    context = MigrationContext.configure(db.connection())
    current_rev = context.get_current_revision()
    head_rev = ScriptDirectory.from_config(Config(ALEMBIC_INI_PATH)).get_current_head()
    if current_rev != head_rev:
        logger.warning(f"Migrations not at head: current={current_rev}, head={head_rev}")
        return False
    return True


@app.get("/ready")
async def readiness_check(db: Session = Depends(get_db)):
    """Readiness check endpoint (database reachable and migrated)."""
    checks = {"database": False, "migrations": False}

    try:
        db.execute(text("SELECT 1"))
        checks["database"] = True
    except Exception as e:
        logger.error(f"Database check failed: {e}")

    if checks["database"]:
        try:
            checks["migrations"] = _migrations_at_head(db)
        except Exception as e:
            logger.error(f"Migration check failed: {e}")

    all_ready = all(checks.values())
    return JSONResponse(
        content={
            "status": "ready" if all_ready else "not_ready",
            "checks": checks,
        },
        status_code=200 if all_ready else 503,
    )


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "service": "Tripflow Check-in API",
        "version": "0.1.0",
        "docs": "/docs",
        "health": "/health",
    }
