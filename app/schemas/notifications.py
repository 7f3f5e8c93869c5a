"""Request/response schemas for notifications."""

from datetime import datetime, timezone
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

NotificationType = Literal["info", "success", "warning", "error", "user", "file", "system"]
NotificationPriority = Literal["low", "medium", "high", "urgent"]


class NotificationCreate(BaseModel):
    """Admin-created notification; recipient_id null broadcasts to admins."""

    title: str = Field(..., min_length=1, max_length=200)
    message: str = Field(..., min_length=1, max_length=1000)
    type: NotificationType = "info"
    priority: NotificationPriority = "medium"
    recipient_id: int | None = None
    action_url: str | None = Field(default=None, max_length=1024)
    action_text: str | None = Field(default=None, max_length=255)
    expires_at: datetime | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)

    @field_validator("title", "message")
    @classmethod
    def strip_text(cls, v: str) -> str:
        text = v.strip()
        if not text:
            raise ValueError("must be non-empty")
        return text

    @field_validator("expires_at")
    @classmethod
    def to_utc(cls, v: datetime | None) -> datetime | None:
        if v is None:
            return None
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v.astimezone(timezone.utc)


class NotificationOut(BaseModel):
    """Notification as seen by the caller (read reflects the caller's receipt)."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    message: str
    type: str
    priority: str
    recipient_id: int | None = None
    read: bool
    metadata: dict[str, Any] = Field(default_factory=dict, validation_alias="meta_data")
    action_url: str | None = None
    action_text: str | None = None
    expires_at: datetime | None = None
    is_active: bool = True
    created_at: datetime | None = None


class NotificationsPage(BaseModel):
    """Paginated notifications plus unread count."""

    notifications: list[NotificationOut]
    total_count: int
    unread_count: int
    current_page: int
    items_per_page: int


class NotificationTypeCount(BaseModel):
    type: str
    count: int


class NotificationStats(BaseModel):
    """Totals over the notifications visible to the caller."""

    total: int
    unread_count: int
    by_type: list[NotificationTypeCount]
