"""FastAPI application setup with lifespan and exception handlers."""

import asyncio
import contextlib
from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from tiktap import validate_dependencies
from tiktap.config import AssemblyStrategy, settings
from tiktap.services.providers import build_providers
from tiktap.services.retention import run_retention_loop
from tiktap.api.routes import router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager.

    Startup:
        - Build provider adapters from settings
        - Validate system dependencies (ffmpeg/ffprobe, local assembly only)
        - Start the artifact retention sweeper

    Shutdown:
        - Stop the sweeper and close provider HTTP clients
    """
    # Startup
    logger.info("Starting TIKTAP API...")
    providers = build_providers(settings)
    if providers.strategy == AssemblyStrategy.LOCAL:
        validate_dependencies()
    app.state.providers = providers

    sweeper = asyncio.create_task(
        run_retention_loop(
            providers.file_manager.base_dir,
            settings.storage.retention_interval_seconds,
            settings.storage.retention_max_age_seconds,
        ),
        name="retention-sweeper",
    )
    logger.info(f"API startup complete (temp directory: {providers.file_manager.base_dir})")

    yield

    # Shutdown
    logger.info("Shutting down TIKTAP API...")
    sweeper.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await sweeper
    await providers.aclose()
    logger.info("API shutdown complete")


# Create FastAPI application
app = FastAPI(
    title="TIKTAP API",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)

# Include router with all endpoints
app.include_router(router)


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    """Catch-all exception handler to prevent stack traces in API responses."""
    logger.error(f"Unhandled exception in {request.method} {request.url.path}: {type(exc).__name__}: {str(exc)}")
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal server error",
            "detail": str(exc),
        }
    )
