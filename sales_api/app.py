"""
Main Application - Sales Reporting API

FastAPI application serving the read-only sales analytics endpoints. The
application factory wires the database manager into ``app.state``, installs
request logging, security header, CORS and rate limiting middleware, and
renders every error through the API's JSON envelope.

Author: Waqqas Hanafi
Copyright: © 2025 Calaveras County Health and Human Services Agency
"""

# ============================================================================
# IMPORTS
# ============================================================================

import logging
from datetime import datetime
from typing import Optional
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
import uvicorn

from .config import config, setup_logging
from .constants import ErrorCode, ErrorMessage, HTTPStatus
from .database import DatabaseManager, create_database_manager
from .exceptions import SalesApiError
from .rate_limit import create_limiter, handle_rate_limit_exceeded
from .reports import reports_router, success_response, error_response
from .seed import seed_database

# Initialize logger
logger = logging.getLogger(__name__)

HEALTH_PATH = "/health"

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "Referrer-Policy": "no-referrer",
    "Cross-Origin-Resource-Policy": "same-origin",
    "X-DNS-Prefetch-Control": "off",
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create and seed the database manager unless one was injected; close it on shutdown"""
    owns_db_manager = app.state.db_manager is None

    # Startup
    if owns_db_manager:
        app.state.db_manager = create_database_manager()
        if config.seed.enabled:
            seed_database(app.state.db_manager)
    logger.info(f"Sales API started ({config.environment.value}, {app.state.db_manager.dialect.name})")

    yield

    # Shutdown
    logger.info("Shutting down application...")
    if owns_db_manager and app.state.db_manager is not None:
        app.state.db_manager.close()
        app.state.db_manager = None
        logger.info("Database connections closed")


async def log_requests(request: Request, call_next):
    """Log all HTTP requests with status and duration"""
    start_time = datetime.now()
    query_string = f"?{request.url.query}" if request.url.query else ""

    # Skip logging health checks unless they fail (reduce noise)
    is_health_check = request.url.path == HEALTH_PATH

    if not is_health_check:
        logger.info(f"Request: {request.method} {request.url.path}{query_string}")

    response = await call_next(request)

    duration = (datetime.now() - start_time).total_seconds()
    if response.status_code >= 500:
        logger.error(
            f"SERVER ERROR: {request.method} {request.url.path}{query_string} - "
            f"Status: {response.status_code} - Duration: {duration:.3f}s - "
            f"Client: {request.client.host if request.client else 'unknown'}"
        )
    elif response.status_code >= 400:
        logger.warning(
            f"CLIENT ERROR: {request.method} {request.url.path}{query_string} - "
            f"Status: {response.status_code} - Duration: {duration:.3f}s"
        )
    elif not is_health_check:
        logger.info(f"Response: {request.method} {request.url.path} - Status: {response.status_code} - Duration: {duration:.3f}s")

    return response


async def add_security_headers(request: Request, call_next):
    """Add hardening headers to every response"""
    response = await call_next(request)
    for header, value in SECURITY_HEADERS.items():
        response.headers.setdefault(header, value)
    return response


async def catch_unexpected_errors(request: Request, call_next):
    """
    Render unhandled exceptions as the 500 envelope inside the middleware
    stack, so the response still passes through security headers and CORS.
    """
    try:
        return await call_next(request)
    except Exception as e:
        logger.error(f"Unhandled error in {request.method} {request.url.path}: {e}", exc_info=e)
        return error_response(HTTPStatus.INTERNAL_ERROR, ErrorCode.INTERNAL_ERROR, ErrorMessage.INTERNAL)


# ============================================================================
# EXCEPTION HANDLERS
# ============================================================================

async def handle_api_error(request: Request, exc: SalesApiError):
    if exc.status_code >= HTTPStatus.INTERNAL_ERROR:
        logger.error(f"{type(exc).__name__} in {request.method} {request.url.path}: {exc.message}")
        return error_response(HTTPStatus.INTERNAL_ERROR, ErrorCode.INTERNAL_ERROR, ErrorMessage.INTERNAL)
    return error_response(exc.status_code, exc.code, exc.message)


async def handle_http_exception(request: Request, exc: StarletteHTTPException):
    if exc.status_code == HTTPStatus.NOT_FOUND:
        return error_response(HTTPStatus.NOT_FOUND, ErrorCode.NOT_FOUND, ErrorMessage.NOT_FOUND)
    if exc.status_code == HTTPStatus.METHOD_NOT_ALLOWED:
        return error_response(
            HTTPStatus.METHOD_NOT_ALLOWED,
            ErrorCode.METHOD_NOT_ALLOWED,
            ErrorMessage.METHOD_NOT_ALLOWED,
            headers=getattr(exc, "headers", None)
        )
    return error_response(exc.status_code, f"HTTP_{exc.status_code}", str(exc.detail))


async def handle_unexpected_error(request: Request, exc: Exception):
    logger.error(f"Unhandled error in {request.method} {request.url.path}: {exc}", exc_info=exc)
    return error_response(HTTPStatus.INTERNAL_ERROR, ErrorCode.INTERNAL_ERROR, ErrorMessage.INTERNAL)


# ============================================================================
# APPLICATION FACTORY
# ============================================================================

def create_app(
    db_manager: Optional[DatabaseManager] = None,
    rate_limiter: Optional[Limiter] = None,
    rate_limit_enabled: Optional[bool] = None
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        db_manager: Database manager to serve from. When omitted, the lifespan
            creates one from configuration, seeds it, and closes it on shutdown.
        rate_limiter: Limiter to enforce; built from configuration when omitted.
        rate_limit_enabled: Overrides ``config.rate_limit.enabled``.
    """
    app = FastAPI(
        title="Sales Reporting API",
        description="Read-only sales analytics: time series, performance, leaderboard, summary and period comparison",
        version="1.0.0",
        lifespan=lifespan
    )
    app.state.db_manager = db_manager

    if rate_limit_enabled is None:
        rate_limit_enabled = config.rate_limit.enabled
    app.state.limiter = None
    if rate_limit_enabled:
        app.state.limiter = rate_limiter or create_limiter()
        app.add_exception_handler(RateLimitExceeded, handle_rate_limit_exceeded)
        app.add_middleware(SlowAPIMiddleware)

    # Added last runs first: CORS, logging, security headers, error rendering, rate limiting
    app.middleware("http")(catch_unexpected_errors)
    app.middleware("http")(add_security_headers)
    app.middleware("http")(log_requests)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.web.cors_origins,
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    app.add_exception_handler(SalesApiError, handle_api_error)
    app.add_exception_handler(StarletteHTTPException, handle_http_exception)
    app.add_exception_handler(Exception, handle_unexpected_error)

    @app.get(HEALTH_PATH)
    def health(request: Request):
        """Liveness check with connection pool statistics"""
        manager = request.app.state.db_manager
        pool_stats = manager.pool.get_pool_stats() if manager else None
        return success_response({"status": "ok", "pool": pool_stats})

    app.include_router(reports_router)
    return app


# Create FastAPI app
app = create_app()


def main():
    """Run the API server with uvicorn"""
    setup_logging()
    uvicorn.run(
        "sales_api.app:app",
        host=config.web.host,
        port=config.web.port,
        reload=config.web.reload,
        log_level=config.web.log_level
    )


if __name__ == "__main__":
    main()
