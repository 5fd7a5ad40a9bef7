"""Rate limiting middleware: Redis fixed-window counters per client IP.

Window and limits come from settings (default 100 requests per 15
minutes). Login and registration share a separate, stricter bucket to
slow down credential stuffing.

If Redis was never initialized or errors out, requests pass through
unlimited; an outage of the limiter must not take the API down with it.
"""

import time

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from taskhub.redis_client import get_redis

logger = structlog.get_logger()

_AUTH_PATHS = ("/api/v1/auth/login", "/api/v1/auth/register")


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Fixed-window request limiting for /api/ routes."""

    def __init__(
        self,
        app,
        max_requests: int = 100,
        auth_max_requests: int = 20,
        window_seconds: int = 900,
    ):
        super().__init__(app)
        self.max_requests = max_requests
        self.auth_max_requests = auth_max_requests
        self.window_seconds = window_seconds

    async def dispatch(self, request: Request, call_next) -> Response:
        path = request.url.path
        if not path.startswith("/api/"):
            return await call_next(request)

        try:
            redis = get_redis()
        except RuntimeError:
            return await call_next(request)

        is_auth = path.startswith(_AUTH_PATHS)
        limit = self.auth_max_requests if is_auth else self.max_requests
        bucket = "auth" if is_auth else "api"
        client_ip = request.client.host if request.client else "unknown"
        window = int(time.time() // self.window_seconds)
        key = f"taskhub:rl:{bucket}:{client_ip}:{window}"

        try:
            count = await redis.incr(key)
            if count == 1:
                await redis.expire(key, self.window_seconds)
        except Exception as e:
            logger.warning("rate_limit.redis_error", error=str(e))
            return await call_next(request)

        reset_in = self.window_seconds - int(time.time() % self.window_seconds)
        if count > limit:
            logger.info("rate_limit.exceeded", client=client_ip, bucket=bucket)
            return JSONResponse(
                status_code=429,
                content={"detail": "Too many requests from this IP, please try again later."},
                headers={"Retry-After": str(reset_in)},
            )

        response = await call_next(request)
        response.headers["RateLimit-Limit"] = str(limit)
        response.headers["RateLimit-Remaining"] = str(max(0, limit - count))
        response.headers["RateLimit-Reset"] = str(reset_in)
        return response
