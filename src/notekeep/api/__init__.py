"""API route aggregation.

All routers registered here get mounted in main.py under /api.

Learn: Auth is applied at the include_router level using FastAPI's
dependencies parameter. This protects all routes in each router
without modifying individual handlers. The auth router is open
(captcha, register, login); /auth/me declares the dependency itself.
Health lives outside /api and is mounted separately.
"""

from fastapi import APIRouter, Depends

from notekeep.api.auth import router as auth_router
from notekeep.api.health import router as health_router
from notekeep.api.notes import router as notes_router
from notekeep.api.users import router as users_router
from notekeep.auth.dependencies import get_current_user

# All protected routers require authentication
_auth = [Depends(get_current_user)]

api_router = APIRouter(prefix="/api")

# Open routes, no auth required
api_router.include_router(auth_router, tags=["auth"])

# Protected routes require a valid bearer token
api_router.include_router(notes_router, tags=["notes"], dependencies=_auth)
api_router.include_router(users_router, tags=["user"], dependencies=_auth)

__all__ = ["api_router", "health_router"]
