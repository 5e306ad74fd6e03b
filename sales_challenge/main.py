"""Sales Challenge: FastAPI application entry point."""

import signal
import uuid
from contextlib import asynccontextmanager

# configure_structlog MUST run before the other imports: structlog caches
# the processor chain on first use.
from sales_challenge.core.logging import configure_structlog
from sales_challenge.core.config import get_settings as _get_settings_early

_early_settings = _get_settings_early()
configure_structlog(
    log_level="DEBUG" if _early_settings.debug else "INFO",
    json_logs=not _early_settings.debug,
)

import structlog

from fastapi import FastAPI, Request, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from sales_challenge.api.routes import api_router
from sales_challenge.core.config import get_settings
from sales_challenge.core.exceptions import SalesChallengeError
from sales_challenge.db import init_db, close_db, init_redis, close_redis
from sales_challenge.middleware.correlation import (
    setup_correlation_middleware,
    get_correlation_id,
)

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown events."""
    # SIGTERM flips this so the health check starts answering 503
    app.state.shutting_down = False

    def handle_sigterm(signum, frame):
        app.state.shutting_down = True
        logger.info("sigterm_received", action="health_check_503_draining_connections")

    signal.signal(signal.SIGTERM, handle_sigterm)

    settings = get_settings()
    logger.info("startup_begin", app_name=settings.app_name, debug=settings.debug)

    await init_db()
    logger.info("db_initialized")

    await init_redis()
    logger.info("redis_initialized")

    if not settings.cron_secret:
        logger.warning("cron_secret_missing", detail="phase endpoints will answer 500 until CRON_SECRET is set")

    yield

    logger.info("shutdown_begin")
    await close_redis()
    await close_db()
    logger.info("shutdown_complete")


async def sales_challenge_exception_handler(request: Request, exc: SalesChallengeError) -> JSONResponse:
    """Render domain rejections with their machine-readable code."""
    debug_id = str(uuid.uuid4())

    log = logger.error if exc.status_code >= 500 else logger.info
    log(
        "request_rejected",
        status_code=exc.status_code,
        code=exc.code,
        debug_id=debug_id,
        correlation_id=get_correlation_id(),
        path=request.url.path,
        method=request.method,
        user_id=getattr(request.state, "user_id", None),
        detail=exc.message,
    )

    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.message, "code": exc.code, "debug_id": debug_id},
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Global exception handler for HTTPException with debug_id tracking.

    Logs errors server-side with full context, returns sanitized response to client.
    """
    debug_id = str(uuid.uuid4())

    logger.error(
        "http_exception",
        status_code=exc.status_code,
        debug_id=debug_id,
        correlation_id=get_correlation_id(),
        path=request.url.path,
        method=request.method,
        user_id=getattr(request.state, "user_id", None),
        detail=exc.detail,
    )

    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail, "debug_id": debug_id},
        headers=getattr(exc, "headers", None),
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Global exception handler for unhandled errors with debug_id tracking.

    Logs full exception with traceback, returns generic 500 to client.
    """
    debug_id = str(uuid.uuid4())

    logger.error(
        "unhandled_exception",
        debug_id=debug_id,
        correlation_id=get_correlation_id(),
        path=request.url.path,
        method=request.method,
        user_id=getattr(request.state, "user_id", None),
        error=str(exc),
        error_type=type(exc).__name__,
        exc_info=True,
    )

    # No internal details leaked
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error", "debug_id": debug_id},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.exception_handler(SalesChallengeError)(sales_challenge_exception_handler)
    app.exception_handler(HTTPException)(http_exception_handler)
    app.exception_handler(Exception)(generic_exception_handler)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Weekly sales-line challenge: entries, weighted votes, podium and archive",
        version="0.1.0",
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.frontend_url, *settings.allowed_origins],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Correlation ID middleware (runs first on incoming requests)
    setup_correlation_middleware(app)

    register_exception_handlers(app)

    app.include_router(api_router, prefix="/api")

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "sales_challenge.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
