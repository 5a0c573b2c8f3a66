"""
FastAPI application for the Zotero to Craft sync service.

Usage:
    uvicorn zotcraft.api.main:app --reload --host 0.0.0.0 --port 8000
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from pydantic import ValidationError as PydanticValidationError

from zotcraft import __version__
from zotcraft.api.dependencies import get_config
from zotcraft.api.error_handlers import (
    api_exception_handler,
    global_exception_handler,
    upstream_exception_handler,
    validation_exception_handler,
)
from zotcraft.api.exceptions import APIException
from zotcraft.api.middleware import correlation_id_middleware
from zotcraft.api.models.responses import success_response
from zotcraft.api.routers import connections, craft, health, sync, zotero
from zotcraft.core.logging_utils import get_logger, setup_json_logging
from zotcraft.domain.exceptions import UpstreamUnavailableError
from zotcraft.services.scheduler import SchedulerService

logger = get_logger(__name__)

DEFAULT_DEV_ORIGINS = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]


@asynccontextmanager
async def lifespan(_: FastAPI):
    cfg = get_config()
    setup_json_logging(cfg.runtime.log_level, log_file=cfg.runtime.log_file)
    scheduler: SchedulerService | None = None
    if cfg.sync.auto_sync_enabled:
        scheduler = SchedulerService(cfg)
        await scheduler.start()
    try:
        yield
    finally:
        if scheduler:
            await scheduler.stop()


_cfg = get_config()

app = FastAPI(
    title="Zotero to Craft Sync API",
    description="Syncs Zotero records into Craft notes",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# Default to localhost only if not configured (development mode)
ALLOWED_ORIGINS = list(_cfg.runtime.allowed_origins)
if not ALLOWED_ORIGINS:
    logger.warning("allowed_origins_not_configured", extra={"defaults": DEFAULT_DEV_ORIGINS})
    ALLOWED_ORIGINS = DEFAULT_DEV_ORIGINS
else:
    logger.info("cors_allowed_origins", extra={"origins": ALLOWED_ORIGINS})

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "X-Correlation-ID"],
    max_age=3600,
)

app.middleware("http")(correlation_id_middleware)

app.include_router(sync.router, prefix="/v1/sync", tags=["Sync"])
app.include_router(connections.router, prefix="/v1/connections", tags=["Connections"])
app.include_router(zotero.router, prefix="/v1/zotero", tags=["Zotero"])
app.include_router(craft.router, prefix="/v1/craft", tags=["Craft"])
app.include_router(health.router, prefix="/v1", tags=["Health"])


@app.get("/")
async def root(request: Request):
    """API root endpoint."""
    return success_response(
        {
            "service": "Zotero to Craft Sync API",
            "version": app.version,
            "docs": "/docs",
            "health": "/v1/health",
        },
        correlation_id=getattr(request.state, "correlation_id", None),
    )


app.add_exception_handler(APIException, api_exception_handler)
app.add_exception_handler(UpstreamUnavailableError, upstream_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(PydanticValidationError, validation_exception_handler)
app.add_exception_handler(Exception, global_exception_handler)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "zotcraft.api.main:app",
        # nosec B104 - intentional for development/Docker environments
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info",
    )
