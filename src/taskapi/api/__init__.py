"""API route aggregation.

All routers registered here get mounted in main.py.

Learn: Auth is applied at the include_router level using FastAPI's
dependencies parameter, so no task route can be reached anonymously.
Handlers still take the identity as an explicit argument for the
access policy. Health and auth routers are open.
"""

from fastapi import APIRouter, Depends

from taskapi.api.auth import router as auth_router
from taskapi.api.health import router as health_router
from taskapi.api.tasks import router as tasks_router
from taskapi.auth.dependencies import get_current_user

# All protected routers require authentication
_auth = [Depends(get_current_user)]

api_router = APIRouter(prefix="/api")

# Open routes — no auth required
api_router.include_router(health_router, tags=["health"])
api_router.include_router(auth_router, tags=["auth"])

# Protected routes — require a valid bearer token
api_router.include_router(tasks_router, tags=["tasks", "comments"], dependencies=_auth)
