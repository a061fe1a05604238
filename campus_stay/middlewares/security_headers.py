from __future__ import annotations

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# Mapbox GL JS needs blob workers and its tile hosts; Google Identity Services
# renders the sign-in button from accounts.google.com.
CONTENT_SECURITY_POLICY = "; ".join(
    [
        "default-src 'self'",
        "base-uri 'self'",
        "frame-ancestors 'none'",
        "object-src 'none'",
        "script-src 'self' 'unsafe-inline' https://api.mapbox.com https://accounts.google.com/gsi/client",
        "style-src 'self' 'unsafe-inline' https://api.mapbox.com https://accounts.google.com/gsi/style",
        "img-src 'self' data: blob: https:",
        "connect-src 'self' https://*.mapbox.com https://events.mapbox.com https://accounts.google.com/gsi/",
        "frame-src https://accounts.google.com/gsi/",
        "worker-src 'self' blob:",
        "child-src blob:",
    ]
)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Attach a baseline set of security headers for browser clients."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        response = await call_next(request)
        response.headers.setdefault("Strict-Transport-Security", "max-age=31536000; includeSubDomains")
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("Referrer-Policy", "strict-origin-when-cross-origin")
        response.headers.setdefault("Content-Security-Policy", CONTENT_SECURITY_POLICY)
        return response
