"""SQLAlchemy ORM models."""

from app.models.analytics import ANALYTICS_ACTIONS, AnalyticsEvent
from app.models.base import Base
from app.models.chart import CHART_TYPES, Chart
from app.models.file import FILE_STATUSES, StoredFile
from app.models.notification import (
    NOTIFICATION_PRIORITIES,
    NOTIFICATION_TYPES,
    Notification,
    NotificationRead,
)
from app.models.user import USER_ROLES, USER_STATUSES, User

__all__ = [
    "ANALYTICS_ACTIONS",
    "AnalyticsEvent",
    "Base",
    "CHART_TYPES",
    "Chart",
    "FILE_STATUSES",
    "NOTIFICATION_PRIORITIES",
    "NOTIFICATION_TYPES",
    "Notification",
    "NotificationRead",
    "StoredFile",
    "USER_ROLES",
    "USER_STATUSES",
    "User",
]
