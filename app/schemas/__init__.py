"""Pydantic request/response schemas."""

from app.schemas.analytics import AnalyticsEventCreate, AnalyticsEventOut, AnalyticsEventsPage
from app.schemas.auth import (
    AuthPayload,
    CurrentUser,
    LoginRequest,
    ProfileUpdate,
    RegisterRequest,
    UserCreate,
    UserOut,
    UsersPage,
    UserUpdate,
)
from app.schemas.charts import ChartOut, ChartPatch, ChartPayload, GenerateChartRequest
from app.schemas.common import ERROR_RESPONSES, ApiResponse, ErrorResponse, PageMeta
from app.schemas.dashboard import DashboardStats, FileAnalytics
from app.schemas.files import FileOut, FilesPage, FileStats, FileUpdate, MultiUploadResult, UserFileStats
from app.schemas.health import HealthResponse, SystemHealth
from app.schemas.notifications import NotificationCreate, NotificationOut, NotificationsPage, NotificationStats
from app.schemas.upload import UploadResponse

__all__ = [
    "AnalyticsEventCreate",
    "AnalyticsEventOut",
    "AnalyticsEventsPage",
    "ERROR_RESPONSES",
    "ApiResponse",
    "AuthPayload",
    "ChartOut",
    "ChartPatch",
    "ChartPayload",
    "CurrentUser",
    "DashboardStats",
    "ErrorResponse",
    "FileAnalytics",
    "FileOut",
    "FileStats",
    "FileUpdate",
    "FilesPage",
    "GenerateChartRequest",
    "HealthResponse",
    "LoginRequest",
    "MultiUploadResult",
    "NotificationCreate",
    "NotificationOut",
    "NotificationStats",
    "NotificationsPage",
    "PageMeta",
    "ProfileUpdate",
    "RegisterRequest",
    "SystemHealth",
    "UploadResponse",
    "UserCreate",
    "UserFileStats",
    "UserOut",
    "UserUpdate",
    "UsersPage",
]
