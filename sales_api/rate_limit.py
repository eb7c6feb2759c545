"""
Rate Limiting

Per-client request limiting with slowapi. Each client address may make
``max_requests`` requests per ``window_seconds`` across the whole API;
further requests in the same window are answered with 429 and the error
envelope. ``X-RateLimit-*`` headers report the remaining budget.

Author: Waqqas Hanafi
Copyright: © 2025 Calaveras County Health and Human Services Agency
"""

import logging
from typing import Optional

from fastapi import Request
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from .config import config, RateLimitConfig
from .constants import ErrorCode, ErrorMessage, HTTPStatus
from .reports.envelope import error_response

logger = logging.getLogger(__name__)


def rate_limit_string(rate_config: RateLimitConfig) -> str:
    """Limit in the notation parsed by the limits library, e.g. '100 per 900 seconds'"""
    return f"{rate_config.max_requests} per {rate_config.window_seconds} seconds"


def create_limiter(rate_config: Optional[RateLimitConfig] = None) -> Limiter:
    """Build an application-wide limiter keyed by client address"""
    rate_config = rate_config or config.rate_limit
    return Limiter(
        key_func=get_remote_address,
        application_limits=[rate_limit_string(rate_config)],
        headers_enabled=True
    )


def handle_rate_limit_exceeded(request: Request, exc: RateLimitExceeded):
    """Render a 429 in the error envelope with the limiter's headers"""
    # Called synchronously by SlowAPIMiddleware
    logger.warning(f"Rate limit exceeded for {get_remote_address(request)}: {request.method} {request.url.path}")
    response = error_response(
        HTTPStatus.TOO_MANY_REQUESTS,
        ErrorCode.RATE_LIMIT_EXCEEDED,
        ErrorMessage.RATE_LIMIT
    )
    return request.app.state.limiter._inject_headers(response, request.state.view_rate_limit)
