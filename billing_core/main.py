"""
FastAPI application factory.

Uses a lifespan context manager for startup/shutdown: DB connectivity check,
table creation from model metadata, and export storage directory setup.
"""

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from billing_core.routers import health, leads, ledes, quotes, trust
from billing_core.settings import settings

# ── Logging ───────────────────────────────────────────────────────────────────
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


# ── Lifespan ──────────────────────────────────────────────────────────────────
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown logic."""
    logger.info("Starting Practice Billing Core API [env=%s]", settings.environment)

    from billing_core.database import check_db_connection, create_tables

    if not check_db_connection():
        logger.error("Database is not reachable on startup; check DATABASE_URL")
    else:
        logger.info("Database connection verified")
        if settings.auto_create_tables:
            create_tables()
            logger.info("Database tables ensured")

    if settings.storage_backend == "local":
        os.makedirs(settings.local_storage_path, exist_ok=True)
        logger.info("Local export storage path: %s", settings.local_storage_path)

    yield

    logger.info("Shutting down Practice Billing Core API")


# ── App factory ───────────────────────────────────────────────────────────────
def create_app() -> FastAPI:
    app = FastAPI(
        title="Practice Billing Core",
        description=(
            "Fee and billing computation for a legal practice: trademark renewal "
            "quotes, trust account balance updates, lead scoring, and LEDES "
            "billing configuration and export."
        ),
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/docs" if not settings.is_production else None,
        redoc_url="/redoc" if not settings.is_production else None,
    )

    # ── CORS ──────────────────────────────────────────────────────────────────
    # Dev: allow all origins. Staging/prod: explicit allowlist from ALLOWED_ORIGINS.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.is_development else settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ── Routers ───────────────────────────────────────────────────────────────
    app.include_router(health.router)
    app.include_router(quotes.router)
    app.include_router(leads.router)
    app.include_router(ledes.router)
    app.include_router(trust.router)

    return app


app = create_app()
