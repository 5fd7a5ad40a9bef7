"""Security headers middleware.

Standard hardening headers on every response, HSTS only over HTTPS.
Responses under /auth/ carry tokens and user data, so they are marked
no-store to keep them out of browser and proxy caches.
"""

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "no-referrer",
    "Cross-Origin-Opener-Policy": "same-origin",
    "Cross-Origin-Resource-Policy": "same-origin",
    "X-DNS-Prefetch-Control": "off",
}


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to all responses."""

    def __init__(self, app, no_store_prefix: str = "/api/v1/auth/"):
        super().__init__(app)
        self.no_store_prefix = no_store_prefix

    async def dispatch(self, request: Request, call_next) -> Response:
        response: Response = await call_next(request)
        for name, value in _HEADERS.items():
            response.headers.setdefault(name, value)

        if request.url.path.startswith(self.no_store_prefix):
            response.headers["Cache-Control"] = "no-store"
            response.headers["Pragma"] = "no-cache"

        if request.url.scheme == "https":
            response.headers["Strict-Transport-Security"] = (
                "max-age=15552000; includeSubDomains"
            )
        return response
