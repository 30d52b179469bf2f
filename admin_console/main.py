"""
Admin console - FastAPI application
Site status (maintenance / coming soon) and global settings administration
"""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from pathlib import Path
import logging

from admin_console import __version__
from admin_console.core.config import settings
from admin_console.core.database import engine, Base
from admin_console.core.errors import ConfigurationValidationError
import admin_console.models  # noqa: F401  (tables for create_all)

from admin_console.api.site_status import router as site_status_router
from admin_console.api.app_settings import router as app_settings_router

# Logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def _ensure_sqlite_dir(database_url: str) -> None:
    """sqlite+aiosqlite:///./data/x.db -> make sure ./data exists."""
    if not database_url.startswith("sqlite"):
        return
    _, _, path = database_url.partition(":///")
    if not path or path.startswith(":memory:"):
        return
    Path(path).parent.mkdir(parents=True, exist_ok=True)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Admin console starting (environment={settings.ENVIRONMENT})")

    # Tables (development only; other environments are migrated out of band)
    if settings.ENVIRONMENT == "development":
        _ensure_sqlite_dir(settings.DATABASE_URL)
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
            logger.info("Database tables ready")

    yield

    await engine.dispose()
    logger.info("Admin console stopped")


app = FastAPI(
    title="Admin Console API",
    description="Site status and global settings administration",
    version=__version__,
    docs_url="/docs" if settings.ENVIRONMENT == "development" else None,
    redoc_url="/redoc" if settings.ENVIRONMENT == "development" else None,
    lifespan=lifespan,
)

# CORS: the admin frontend origin in every environment, local dev servers in development
ALLOWED_ORIGINS = [o for o in [settings.FRONTEND_BASE_URL] if o]
if settings.ENVIRONMENT == "development":
    ALLOWED_ORIGINS += ["http://localhost:3000", "http://127.0.0.1:3000"]
app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Config-Fallback"],
)


@app.exception_handler(ConfigurationValidationError)
async def configuration_validation_handler(request: Request, exc: ConfigurationValidationError):
    """Structurally invalid admin input -> 422 with the offending field paths."""
    logger.info(f"[validation] {request.method} {request.url.path} rejected: {exc.paths}")
    return JSONResponse(status_code=422, content={"detail": exc.message, "errors": exc.errors})


app.include_router(site_status_router, tags=["Site status"])
app.include_router(app_settings_router, tags=["App settings"])


@app.get("/health")
async def health_check():
    return {
        "status": "healthy",
        "environment": settings.ENVIRONMENT,
        "version": __version__,
    }
