"""Stored-file operations: upload pipeline, list filters, sorting and aggregates."""

import hashlib
import logging
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import case, func, or_
from sqlalchemy.orm import Query, Session

from app.models import StoredFile
from app.schemas.files import FileStats
from app.services.analytics import record_event
from app.services.processing import process_file
from app.services.transcode import transcode_upload, validate_upload_type

if TYPE_CHECKING:
    from app.core.config import Settings

logger = logging.getLogger(__name__)

SORTABLE_COLUMNS = {
    "created_at": StoredFile.created_at,
    "size": StoredFile.size,
    "originalname": StoredFile.originalname,
    "download_count": StoredFile.download_count,
    "status": StoredFile.status,
}


class EmptyUploadError(Exception):
    """Raised when the uploaded payload has no bytes."""

    def __init__(self, message: str = "Uploaded file is empty or invalid.") -> None:
        self.message = message
        super().__init__(message)


class UploadTooLargeError(Exception):
    """Raised when the uploaded payload exceeds the configured size limit."""

    def __init__(self, limit_bytes: int) -> None:
        self.limit_bytes = limit_bytes
        self.message = f"File size must not exceed {limit_bytes // (1024 * 1024)} MB."
        super().__init__(self.message)


class DuplicateFileError(Exception):
    """Raised when the same user already stored a file with identical content."""

    def __init__(self, existing_id: int) -> None:
        self.existing_id = existing_id
        self.message = "File already exists"
        super().__init__(self.message)


def compute_checksum(content: bytes) -> str:
    """sha256:<hex> of the uploaded bytes."""
    return "sha256:" + hashlib.sha256(content).hexdigest()


def store_upload(
    db: Session,
    settings: "Settings",
    user_id: int,
    filename: str,
    mimetype: str,
    content: bytes,
    *,
    max_bytes: int,
    description: str | None = None,
    tags: list[str] | None = None,
    is_public: bool = False,
) -> StoredFile:
    """
    Validate, transcode, persist and process one upload.

    Raises EmptyUploadError, UploadTooLargeError, DuplicateFileError,
    UnsupportedFileTypeError or FileProcessingError before anything is stored.
    Returns the file after the processing step (status processed or failed).
    """
    if not content:
        raise EmptyUploadError()
    if len(content) > max_bytes:
        raise UploadTooLargeError(max_bytes)
    validate_upload_type(filename, mimetype)

    checksum = compute_checksum(content)
    existing = (
        db.query(StoredFile.id)
        .filter(StoredFile.user_id == user_id, StoredFile.checksum == checksum)
        .first()
    )
    if existing is not None:
        raise DuplicateFileError(existing.id)

    result = transcode_upload(
        filename,
        mimetype,
        content,
        image_max_width=settings.IMAGE_MAX_WIDTH,
        image_quality=settings.IMAGE_JPEG_QUALITY,
    )

    stored = StoredFile(
        originalname=filename,
        mimetype=result.mimetype,
        size=len(result.data),
        data=result.data,
        user_id=user_id,
        description=description or None,
        tags=tags or [],
        is_public=is_public,
        checksum=checksum,
        status="processing",
        processing_progress=0,
        download_count=0,
        meta_data={"uploaded_size": len(content), **result.details},
    )
    db.add(stored)
    db.flush()
    record_event(db, user_id, "upload", file_id=stored.id)
    logger.info(
        "Stored upload id=%s name=%s mimetype=%s size=%d user=%s",
        stored.id,
        filename,
        result.mimetype,
        stored.size,
        user_id,
    )
    return process_file(db, stored)


def apply_file_filters(
    query: Query,
    *,
    search: str | None = None,
    file_type: str | None = None,
    status: str | None = None,
    user_id: int | None = None,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
) -> Query:
    """Translate list query parameters into predicates on StoredFile."""
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(
            or_(
                StoredFile.originalname.ilike(pattern),
                StoredFile.description.ilike(pattern),
            )
        )
    if file_type:
        extension = file_type.strip().lstrip(".")
        query = query.filter(StoredFile.originalname.ilike(f"%.{extension}"))
    if status:
        query = query.filter(StoredFile.status == status)
    if user_id is not None:
        query = query.filter(StoredFile.user_id == user_id)
    if start_date is not None:
        query = query.filter(StoredFile.created_at >= start_date)
    if end_date is not None:
        query = query.filter(StoredFile.created_at <= end_date)
    return query


def order_files(query: Query, sort_by: str = "created_at", sort_order: str = "desc") -> Query:
    column = SORTABLE_COLUMNS.get(sort_by, StoredFile.created_at)
    ordered = column.desc() if sort_order == "desc" else column.asc()
    return query.order_by(ordered, StoredFile.id.desc() if sort_order == "desc" else StoredFile.id.asc())


def file_stats(query: Query) -> FileStats:
    """Counts per status, total size and downloads over an (unordered) filtered query."""

    def _count_status(value: str):
        return func.coalesce(func.sum(case((StoredFile.status == value, 1), else_=0)), 0)

    row = query.order_by(None).with_entities(
        func.count(StoredFile.id),
        _count_status("processed"),
        _count_status("processing"),
        _count_status("failed"),
        func.coalesce(func.sum(StoredFile.size), 0),
        func.coalesce(func.sum(StoredFile.download_count), 0),
    ).one()
    return FileStats(
        total=int(row[0] or 0),
        processed=int(row[1] or 0),
        processing=int(row[2] or 0),
        failed=int(row[3] or 0),
        total_size=int(row[4] or 0),
        total_downloads=int(row[5] or 0),
    )
