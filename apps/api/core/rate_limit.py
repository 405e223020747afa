"""
Rate Limiting Middleware

Fixed-window counters in Redis, keyed per user (or client IP) and endpoint.
Fails open when Redis is unavailable.
"""
import time
import logging
from typing import Tuple
from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from core.config import settings
from core.cache import get_redis_client

logger = logging.getLogger(__name__)

EXEMPT_PATHS = {"/health", "/health/detailed", "/ping", "/docs", "/openapi.json", "/redoc"}


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Rate limiting middleware."""

    def __init__(self, app, default_limit: int = 60, window: int = 60):
        super().__init__(app)
        self.default_limit = default_limit
        self.window = window  # Time window in seconds

        # Per-endpoint limits (requests per window)
        self.endpoint_limits = {
            "/api/auth/send-otp": 5,  # SMS cost + brute force
            "/api/auth/verify-otp": 10,
            "/api/auth/login": 10,
            "/api/auth/register": 5,
            "/api/auth/resend-verification": 5,
            "/api/ai-counsellor/chat": 20,  # Generative calls
        }

    async def dispatch(self, request: Request, call_next):
        if not settings.RATE_LIMIT_ENABLED:
            return await call_next(request)

        if request.url.path in EXEMPT_PATHS:
            return await call_next(request)

        user_id = self._get_user_id(request)
        limit = self._get_endpoint_limit(request.url.path)

        allowed, remaining, reset_time = self._check_rate_limit(
            user_id=user_id,
            endpoint=request.url.path,
            limit=limit,
            window=self.window
        )

        if not allowed:
            logger.warning(
                f"Rate limit exceeded: {user_id} {request.url.path}",
                extra={"extra_fields": {"identity": user_id, "path": request.url.path, "limit": limit}},
            )
            return JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content={
                    "detail": "Rate limit exceeded",
                    "limit": limit,
                    "window": self.window,
                    "reset_at": reset_time
                },
                headers={
                    "X-RateLimit-Limit": str(limit),
                    "X-RateLimit-Remaining": str(remaining),
                    "X-RateLimit-Reset": str(reset_time),
                    "Retry-After": str(max(0, int(reset_time - time.time())))
                }
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(limit)
        response.headers["X-RateLimit-Remaining"] = str(remaining)
        response.headers["X-RateLimit-Reset"] = str(reset_time)

        return response

    def _get_user_id(self, request: Request) -> str:
        """Get user identifier from request (user ID or IP address)."""
        auth_header = request.headers.get("Authorization", "")
        if auth_header.startswith("Bearer "):
            token = auth_header.split(" ", 1)[1]
            from core.security import get_user_id_from_token
            user_id = get_user_id_from_token(token)
            if user_id:
                return f"user:{user_id}"

        client_ip = request.client.host if request.client else "unknown"
        return f"ip:{client_ip}"

    def _get_endpoint_limit(self, path: str) -> int:
        """Get rate limit for endpoint."""
        if path in self.endpoint_limits:
            return self.endpoint_limits[path]

        for endpoint, limit in self.endpoint_limits.items():
            if path.startswith(endpoint):
                return limit

        return self.default_limit

    def _check_rate_limit(
        self,
        user_id: str,
        endpoint: str,
        limit: int,
        window: int
    ) -> Tuple[bool, int, int]:
        """
        Check and count one request against the window.

        Returns:
            (allowed, remaining, reset_time)
        """
        redis_client = get_redis_client()

        if not redis_client:
            # Redis unavailable: allow request
            return True, limit, int(time.time()) + window

        key = f"rate_limit:{user_id}:{endpoint}"

        try:
            current = redis_client.get(key)

            if current is None:
                redis_client.setex(key, window, 1)
                return True, limit - 1, int(time.time()) + window

            current_count = int(current)

            if current_count >= limit:
                ttl = redis_client.ttl(key)
                reset_time = int(time.time()) + (ttl if ttl > 0 else window)
                return False, 0, reset_time

            new_count = redis_client.incr(key)

            # Key expired between get and incr
            if new_count == 1:
                redis_client.expire(key, window)

            remaining = max(0, limit - new_count)
            ttl = redis_client.ttl(key)
            reset_time = int(time.time()) + (ttl if ttl > 0 else window)

            return True, remaining, reset_time

        except Exception as e:
            # Fail open
            logger.error(f"Rate limit check error: {e}")
            return True, limit, int(time.time()) + window
