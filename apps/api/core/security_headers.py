"""
Security Headers Middleware

Adds standard response headers against MIME sniffing, clickjacking and
referrer leakage. HSTS and CSP are only sent outside DEBUG.
"""
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
from core.config import settings

PERMISSIONS_POLICY = ", ".join([
    "accelerometer=()",
    "camera=()",
    "geolocation=()",
    "gyroscope=()",
    "magnetometer=()",
    "microphone=()",
    "payment=()",
    "usb=()",
])

# Provider origins the web client talks to during wearable and Google sign-in flows.
CSP_CONNECT_SOURCES = [
    "'self'",
    "https://accounts.google.com",
    "https://www.fitbit.com",
    "https://api.fitbit.com",
]


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Adds security headers to all responses."""

    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-XSS-Protection"] = "1; mode=block"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Permissions-Policy"] = PERMISSIONS_POLICY

        if not settings.DEBUG:
            response.headers["Strict-Transport-Security"] = (
                "max-age=31536000; includeSubDomains; preload"
            )
            response.headers["Content-Security-Policy"] = (
                "default-src 'self'; "
                "img-src 'self' data: https:; "
                f"connect-src {' '.join(CSP_CONNECT_SOURCES)}; "
                "frame-ancestors 'none';"
            )

        return response
