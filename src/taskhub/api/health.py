"""Health check endpoint: server, database and Redis reachability."""

from fastapi import APIRouter
from sqlalchemy import text

from taskhub import __version__
from taskhub.db.engine import engine

router = APIRouter()


@router.get("/health")
async def health_check():
    """Check server health and dependency connectivity.

    Redis only backs rate limiting, so its absence degrades nothing else.
    """
    checks = {"server": "ok", "version": __version__}

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        checks["database"] = "ok"
    except Exception as e:
        checks["database"] = f"error: {e}"

    try:
        from taskhub.redis_client import get_redis

        await get_redis().ping()
        checks["redis"] = "ok"
    except Exception as e:
        checks["redis"] = f"unavailable: {e}"

    status = "healthy" if checks["database"] == "ok" else "degraded"
    return {"status": status, **checks}
