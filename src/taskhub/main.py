"""FastAPI application factory.

create_app() returns a configured FastAPI instance. The lifespan owns the
process-wide resources: the Redis pool for rate limiting and the database
engine's connection pool.
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from taskhub import __version__
from taskhub.api import api_router
from taskhub.config import settings

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle."""
    logger.info(
        "taskhub.starting",
        version=__version__,
        environment=settings.environment,
        port=settings.port,
    )

    from taskhub.redis_client import close_redis, init_redis
    try:
        await init_redis()
        logger.info("taskhub.redis_connected", url=settings.redis_url)
    except Exception as e:
        # Redis is optional: the API runs without rate limiting
        logger.warning("taskhub.redis_unavailable", error=str(e))

    yield

    logger.info("taskhub.shutdown")
    await close_redis()

    from taskhub.db.engine import engine
    await engine.dispose()


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={"detail": jsonable_encoder(exc.errors())},
        )

    @app.exception_handler(SQLAlchemyError)
    async def store_error(request: Request, exc: SQLAlchemyError):
        logger.error(
            "db.error",
            path=request.url.path,
            method=request.method,
            exc_info=exc,
        )
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error"},
        )


def create_app() -> FastAPI:
    """Build and return the FastAPI application."""
    app = FastAPI(
        title="TaskHub API",
        description="Task management API with JWT authentication and role-based access",
        version=__version__,
        lifespan=lifespan,
    )

    # ── Middleware stack ──────────────────────────────────────
    # Starlette runs middleware in reverse order of registration.
    # Request flow: RequestContext → Security → RateLimit → CORS → handler

    from taskhub.middleware.rate_limit import RateLimitMiddleware
    from taskhub.middleware.request_context import RequestContextMiddleware
    from taskhub.middleware.security import SecurityHeadersMiddleware

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(
        RateLimitMiddleware,
        max_requests=settings.rate_limit_max_requests,
        auth_max_requests=settings.rate_limit_auth_max_requests,
        window_seconds=settings.rate_limit_window_seconds,
    )
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestContextMiddleware)

    _register_exception_handlers(app)
    app.include_router(api_router)

    return app


# Default app instance (used by uvicorn: taskhub.main:app)
app = create_app()
