"""API route aggregation.

All routers registered here get mounted in main.py under /api/v1.

Auth is applied at the include_router level: tasks need any valid access
token, users need an admin one. Health and auth routers are open; the
/auth/me endpoints pull the principal themselves.
"""

from fastapi import APIRouter, Depends

from taskhub.api.auth import router as auth_router
from taskhub.api.health import router as health_router
from taskhub.api.tasks import router as tasks_router
from taskhub.api.users import router as users_router
from taskhub.auth.dependencies import get_current_principal, require_admin

api_router = APIRouter(prefix="/api/v1")

# Open routes: no auth required
api_router.include_router(health_router, tags=["health"])
api_router.include_router(auth_router, tags=["auth"])

# Protected routes
api_router.include_router(
    tasks_router, tags=["tasks"], dependencies=[Depends(get_current_principal)]
)
api_router.include_router(
    users_router, tags=["users"], dependencies=[Depends(require_admin)]
)
