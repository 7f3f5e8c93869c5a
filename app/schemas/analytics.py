"""Request/response schemas for analytics events."""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.charts import ChartType

AnalyticsAction = Literal["upload", "analyze", "download", "delete", "login", "logout"]


class AnalyticsEventCreate(BaseModel):
    """Client-reported user action."""

    action: AnalyticsAction
    file_id: int | None = None
    chart_type: ChartType | None = None
    dimensions: str | None = Field(default=None, max_length=255, description='e.g. "Revenue vs Month"')
    metadata: dict[str, Any] | None = None


class AnalyticsEventOut(BaseModel):
    """Recorded analytics event."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    action: str
    user_id: int
    file_id: int | None = None
    chart_type: str | None = None
    dimensions: str | None = None
    metadata: dict[str, Any] | None = Field(default=None, validation_alias="meta_data")
    created_at: datetime | None = None


class AnalyticsEventsPage(BaseModel):
    """Paginated list of the caller's events."""

    events: list[AnalyticsEventOut]
    total: int
    page: int
    page_size: int
    total_pages: int
