"""
FastAPI middleware for request tracing and rate limiting.

This module provides middleware components for adding observability to HTTP
requests (unique request IDs for log correlation) and for protecting the API
from request floods with a bounded sliding-window limiter.
"""

from __future__ import annotations

import uuid
from typing import Awaitable, Callable

import jwt
import structlog
from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from charity_hub.metrics import rate_limited_requests
from charity_hub.rate_limiter import SlidingWindowRateLimiter
from charity_hub.security import decode_access_token

logger = structlog.get_logger(__name__)

# Probe and scrape endpoints are never throttled
RATE_LIMIT_EXEMPT_PATHS = frozenset({"/health", "/ready", "/metrics"})


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Middleware to add unique request IDs to each HTTP request.

    This middleware generates a UUID for each incoming request and:
    1. Stores it in request.state.request_id for access in route handlers
    2. Binds it into structlog contextvars so every log line carries it
    3. Adds it to the response as X-Request-ID header for client correlation

    Example:
        >>> app.add_middleware(RequestIDMiddleware)
        >>> # Response headers will include:
        >>> # X-Request-ID: 550e8400-e29b-41d4-a716-446655440000
    """

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        """
        Process each request by adding a unique request ID.

        Args:
            request: Incoming FastAPI request
            call_next: Next middleware or route handler in chain

        Returns:
            Response with X-Request-ID header added
        """
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)

        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id

        return response


def rate_limit_key(request: Request) -> str:
    """
    Identify the caller for rate limiting.

    Authenticated callers are keyed by user id so clients behind a shared NAT
    are not throttled together; everyone else is keyed by client IP.
    """
    auth_header = request.headers.get("Authorization", "")
    if auth_header.lower().startswith("bearer "):
        try:
            claims = decode_access_token(auth_header[7:].strip())
            return f"user:{claims['sub']}"
        except jwt.InvalidTokenError:
            pass

    host = request.client.host if request.client else "unknown"
    return f"ip:{host}"


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Reject callers that exceed the configured request rate with HTTP 429.

    Every non-exempt response carries ``X-RateLimit-Limit`` and
    ``X-RateLimit-Remaining``; rejections also carry ``Retry-After``.

    Example:
        >>> limiter = SlidingWindowRateLimiter(limit=100, window_seconds=60)
        >>> app.add_middleware(RateLimitMiddleware, limiter=limiter)
    """

    def __init__(self, app: ASGIApp, limiter: SlidingWindowRateLimiter) -> None:
        super().__init__(app)
        self.limiter = limiter

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        if request.url.path in RATE_LIMIT_EXEMPT_PATHS:
            return await call_next(request)

        key = rate_limit_key(request)
        decision = self.limiter.hit(key)

        if not decision.allowed:
            rate_limited_requests.inc()
            logger.warning("rate_limit_exceeded", client=key, path=request.url.path)
            return JSONResponse(
                status_code=429,
                content={"error": "Too many requests", "code": "RATE_LIMITED"},
                headers={
                    "Retry-After": str(decision.retry_after),
                    "X-RateLimit-Limit": str(decision.limit),
                    "X-RateLimit-Remaining": "0",
                },
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(decision.limit)
        response.headers["X-RateLimit-Remaining"] = str(decision.remaining)
        return response
