"""Admin console routes; every route requires the admin role."""

from fastapi import APIRouter, Depends

from app.api.admin import dashboard, files, health, profile, users
from app.api.v1 import notifications
from app.api.v1.auth import require_admin
from app.schemas.common import ERROR_RESPONSES

router = APIRouter(dependencies=[Depends(require_admin)], responses=ERROR_RESPONSES)
router.include_router(dashboard.router, prefix="/dashboard", tags=["admin"])
router.include_router(health.router, prefix="/health", tags=["admin"])
router.include_router(files.router, prefix="/files", tags=["admin"])
router.include_router(users.router, prefix="/users", tags=["admin"])
router.include_router(profile.router, prefix="/profile", tags=["admin"])
router.include_router(notifications.router, prefix="/notifications", tags=["admin"])
