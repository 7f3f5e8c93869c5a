"""API v1 routes."""

from fastapi import APIRouter

from app.api.v1 import analytics, auth, charts, files, health, notifications
from app.schemas.common import ERROR_RESPONSES

router = APIRouter(responses=ERROR_RESPONSES)
router.include_router(health.router, prefix="/health", tags=["health"])
router.include_router(auth.router, prefix="/auth", tags=["auth"])
router.include_router(files.router, prefix="/files", tags=["files"])
router.include_router(charts.router, prefix="/charts", tags=["charts"])
router.include_router(analytics.router, prefix="/analytics", tags=["analytics"])
router.include_router(notifications.router, prefix="/notifications", tags=["notifications"])
