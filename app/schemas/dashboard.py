"""Response schemas for the admin dashboard and file analytics."""

from datetime import datetime

from pydantic import BaseModel, Field


class FileTypeCount(BaseModel):
    type: str = Field(..., description="Upper-cased extension, e.g. CSV.")
    count: int


class UserGrowthPoint(BaseModel):
    date: str = Field(..., description="YYYY-MM-DD")
    users: int


class RecentActivity(BaseModel):
    id: int
    user: str
    action: str
    timestamp: datetime | None = None


class DashboardStats(BaseModel):
    """Headline numbers for the admin dashboard over a trailing window."""

    range_start: datetime
    range_end: datetime
    total_users: int
    active_users: int
    admin_users: int
    active_users_percentage: int
    new_users: int
    previous_new_users: int
    user_change: int
    total_files: int
    new_files: int
    previous_new_files: int
    file_change: int
    processed_files: int
    processing_files: int
    failed_files: int
    charts_generated: int
    charts_per_user: int
    storage_used_bytes: int
    storage_used_gb: float
    storage_total_gb: int
    storage_usage: int
    file_types: list[FileTypeCount]
    user_growth: list[UserGrowthPoint]
    recent_activity: list[RecentActivity]


class DailyUploads(BaseModel):
    date: str
    type: str
    count: int
    total_size: int
    total_downloads: int


class TopFileType(BaseModel):
    type: str
    count: int
    total_size: int


class TopDownload(BaseModel):
    id: int
    originalname: str
    download_count: int
    user: str
    created_at: datetime | None = None


class FileAnalytics(BaseModel):
    """Upload trends for the admin file analytics page."""

    timeframe: str
    daily_uploads: list[DailyUploads]
    top_file_types: list[TopFileType]
    top_downloads: list[TopDownload]
