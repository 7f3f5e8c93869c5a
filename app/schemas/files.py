"""Request/response schemas for file upload, listing and metadata endpoints."""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.schemas.auth import UserSummary

FileStatus = Literal["processing", "processed", "failed"]
FileSortField = Literal["created_at", "size", "originalname", "download_count", "status"]
SortOrder = Literal["asc", "desc"]


def format_file_size(size: int) -> str:
    """Human-readable size: 0 Bytes, 1.5 KB, 2 MB, ..."""
    if size <= 0:
        return "0 Bytes"
    units = ("Bytes", "KB", "MB", "GB", "TB")
    value = float(size)
    idx = 0
    while value >= 1024 and idx < len(units) - 1:
        value /= 1024
        idx += 1
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return f"{text} {units[idx]}"


def parse_tags(raw: str | list[str] | None) -> list[str]:
    """Accept a comma-separated string or a list; strip and drop empties."""
    if raw is None:
        return []
    items = raw.split(",") if isinstance(raw, str) else raw
    return [str(t).strip() for t in items if str(t).strip()]


class FileOut(BaseModel):
    """File metadata as returned by listings and detail routes (no payload)."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    originalname: str
    file_type: str = Field(default="", description="Extension without the dot.")
    mimetype: str
    size: int
    formatted_size: str = ""
    status: FileStatus
    processing_progress: int
    description: str | None = None
    tags: list[str] = Field(default_factory=list)
    is_public: bool = False
    checksum: str | None = None
    download_count: int = 0
    error_message: str | None = None
    metadata: dict[str, Any] | None = None
    user_id: int
    user: UserSummary | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_model(cls, f: Any, include_user: bool = False) -> "FileOut":
        return cls(
            id=f.id,
            originalname=f.originalname,
            file_type=f.extension,
            mimetype=f.mimetype,
            size=f.size,
            formatted_size=format_file_size(f.size),
            status=f.status,
            processing_progress=f.processing_progress,
            description=f.description,
            tags=list(f.tags or []),
            is_public=bool(f.is_public),
            checksum=f.checksum,
            download_count=f.download_count or 0,
            error_message=f.error_message,
            metadata=f.meta_data,
            user_id=f.user_id,
            user=UserSummary.model_validate(f.user) if include_user and f.user else None,
            created_at=f.created_at,
            updated_at=f.updated_at,
        )


class FileStats(BaseModel):
    """Aggregates over a filtered set of files."""

    total: int = 0
    processed: int = 0
    processing: int = 0
    failed: int = 0
    total_size: int = 0
    total_downloads: int = 0


class FilesPage(BaseModel):
    """Paginated file list with aggregate stats over the filtered set."""

    files: list[FileOut]
    total: int
    page: int
    page_size: int
    total_pages: int
    stats: FileStats


class FileStatusOut(BaseModel):
    """Processing status of one file."""

    id: int
    status: FileStatus
    progress: int
    error: str | None = None


class FileUpdate(BaseModel):
    """Editable metadata; omitted fields are left unchanged."""

    originalname: str | None = Field(default=None, min_length=1, max_length=512)
    description: str | None = Field(default=None, max_length=5000)
    tags: list[str] | str | None = None
    is_public: bool | None = None

    @field_validator("originalname")
    @classmethod
    def validate_originalname(cls, v: str | None) -> str | None:
        if v is None:
            return None
        name = v.strip()
        if not name:
            raise ValueError("New file name is required")
        return name


class UserFileStats(BaseModel):
    """Per-user totals shown on the dashboard home page."""

    total_files: int
    storage_used_bytes: int
    storage_used: str
    charts_generated: int
    processed: int
    processing: int
    failed: int


class UploadError(BaseModel):
    """One rejected file in a multi-file upload."""

    filename: str
    error: str


class MultiUploadResult(BaseModel):
    """Outcome of a multi-file upload: stored files plus per-file errors."""

    files: list[FileOut]
    errors: list[UploadError] = Field(default_factory=list)
