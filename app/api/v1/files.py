"""File routes: upload, list with filters, metadata, status, download, update and delete."""

import logging
from datetime import datetime
from typing import Annotated
from urllib.parse import quote

from fastapi import APIRouter, Depends, Form, HTTPException, Query, UploadFile, status
from fastapi.responses import Response
from sqlalchemy import func
from sqlalchemy.orm import Session

from app.api.v1.auth import get_current_user
from app.core.config import get_settings
from app.core.database import get_db
from app.models import Chart, StoredFile
from app.schemas.auth import CurrentUser
from app.schemas.common import ApiResponse, PageMeta
from app.schemas.files import (
    FileOut,
    FileSortField,
    FilesPage,
    FileStatus,
    FileStatusOut,
    FileUpdate,
    SortOrder,
    UserFileStats,
    format_file_size,
    parse_tags,
)
from app.schemas.upload import UploadResponse
from app.services.analytics import record_event
from app.services.files import (
    DuplicateFileError,
    EmptyUploadError,
    UploadTooLargeError,
    apply_file_filters,
    file_stats,
    order_files,
    store_upload,
)
from app.services.transcode import FileProcessingError, UnsupportedFileTypeError

logger = logging.getLogger(__name__)

router = APIRouter()

MB = 1024 * 1024


def upload_http_error(e: Exception) -> HTTPException:
    """Map an upload pipeline error to the HTTP error returned to the client."""
    if isinstance(e, UploadTooLargeError):
        return HTTPException(status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, detail=e.message)
    if isinstance(e, DuplicateFileError):
        return HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={"message": e.message, "existing_file_id": e.existing_id},
        )
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=getattr(e, "message", str(e)))


async def read_upload(file: UploadFile, max_bytes: int) -> bytes:
    """Read the multipart payload, refusing before the read when its declared size is over max_bytes."""
    if file.size is not None and file.size > max_bytes:
        raise UploadTooLargeError(max_bytes)
    return await file.read()


def get_file_or_404(db: Session, file_id: int) -> StoredFile:
    stored = db.get(StoredFile, file_id)
    if stored is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="File not found")
    return stored


def ensure_can_read(stored: StoredFile, user: CurrentUser) -> None:
    """Owner, admin, or anyone for public files."""
    if stored.is_public or stored.user_id == user.id or user.is_admin:
        return
    raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not authorized to access this file")


def ensure_can_write(stored: StoredFile, user: CurrentUser) -> None:
    if stored.user_id == user.id or user.is_admin:
        return
    raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not authorized to modify this file")


def download_response(db: Session, stored: StoredFile, user_id: int) -> Response:
    """Stream the whole payload as an attachment; counts the download."""
    stored.download_count = (stored.download_count or 0) + 1
    record_event(db, user_id, "download", file_id=stored.id)
    db.commit()
    db.refresh(stored)
    disposition = f"attachment; filename*=UTF-8''{quote(stored.originalname)}"
    return Response(
        content=stored.data,
        media_type=stored.mimetype,
        headers={"Content-Disposition": disposition},
    )


def apply_file_update(db: Session, stored: StoredFile, body: FileUpdate) -> StoredFile:
    changes = body.model_dump(exclude_unset=True)
    if changes.get("originalname") is not None:
        stored.originalname = changes["originalname"]
    if "description" in changes:
        stored.description = changes["description"] or None
    if changes.get("tags") is not None:
        stored.tags = parse_tags(changes["tags"])
    if changes.get("is_public") is not None:
        stored.is_public = changes["is_public"]
    db.commit()
    db.refresh(stored)
    return stored


def delete_file(db: Session, stored: StoredFile, user_id: int) -> None:
    record_event(
        db,
        user_id,
        "delete",
        metadata={"file_id": stored.id, "originalname": stored.originalname},
    )
    db.delete(stored)
    db.commit()
    logger.info("Deleted file id=%s by user id=%s", stored.id, user_id)


def list_files_page(
    db: Session,
    *,
    page: int,
    page_size: int,
    sort_by: str,
    sort_order: str,
    include_user: bool = False,
    **filters,
) -> FilesPage:
    """Filtered, sorted page of files plus aggregate stats over the whole filtered set."""
    query = apply_file_filters(db.query(StoredFile), **filters)
    total = query.order_by(None).count()
    stats = file_stats(query)
    rows = (
        order_files(query, sort_by, sort_order)
        .offset((page - 1) * page_size)
        .limit(page_size)
        .all()
    )
    meta = PageMeta.build(total, page, page_size)
    return FilesPage(
        files=[FileOut.from_model(f, include_user=include_user) for f in rows],
        stats=stats,
        **meta.model_dump(),
    )


@router.post("/upload", response_model=ApiResponse[UploadResponse], status_code=status.HTTP_201_CREATED)
async def upload_file(
    file: UploadFile,
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    description: Annotated[str | None, Form()] = None,
    tags: Annotated[str | None, Form()] = None,
    is_public: Annotated[bool, Form()] = False,
) -> ApiResponse[UploadResponse]:
    """
    Upload one Excel, CSV, JSON, JPEG or PNG file (multipart field `file`).

    The file is transcoded, stored and processed before the response is sent;
    `file.status` is `processed` or `failed`.
    """
    settings = get_settings()
    max_bytes = settings.MAX_UPLOAD_MB * MB
    try:
        content = await read_upload(file, max_bytes)
        stored = store_upload(
            db,
            settings,
            current_user.id,
            file.filename or "",
            file.content_type or "",
            content,
            max_bytes=max_bytes,
            description=description,
            tags=parse_tags(tags),
            is_public=is_public,
        )
    except (
        EmptyUploadError,
        UploadTooLargeError,
        DuplicateFileError,
        UnsupportedFileTypeError,
        FileProcessingError,
    ) as e:
        db.rollback()
        raise upload_http_error(e) from e
    return ApiResponse(
        message="File uploaded successfully",
        data=UploadResponse(file=FileOut.from_model(stored)),
    )


@router.get("", response_model=ApiResponse[FilesPage])
def list_files(
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    search: str | None = None,
    file_type: str | None = None,
    status_filter: Annotated[FileStatus | None, Query(alias="status")] = None,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    sort_by: FileSortField = "created_at",
    sort_order: SortOrder = "desc",
    page: Annotated[int, Query(ge=1)] = 1,
    page_size: Annotated[int, Query(ge=1, le=100)] = 10,
) -> ApiResponse[FilesPage]:
    """The caller's files, filtered, sorted and paginated."""
    data = list_files_page(
        db,
        page=page,
        page_size=page_size,
        sort_by=sort_by,
        sort_order=sort_order,
        search=search,
        file_type=file_type,
        status=status_filter,
        user_id=current_user.id,
        start_date=start_date,
        end_date=end_date,
    )
    return ApiResponse(data=data)


@router.get("/stats", response_model=ApiResponse[UserFileStats])
def my_file_stats(
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
) -> ApiResponse[UserFileStats]:
    stats = file_stats(db.query(StoredFile).filter(StoredFile.user_id == current_user.id))
    charts = db.query(func.count(Chart.id)).filter(Chart.user_id == current_user.id).scalar() or 0
    return ApiResponse(
        data=UserFileStats(
            total_files=stats.total,
            storage_used_bytes=stats.total_size,
            storage_used=format_file_size(stats.total_size),
            charts_generated=charts,
            processed=stats.processed,
            processing=stats.processing,
            failed=stats.failed,
        )
    )


@router.get("/{file_id}", response_model=ApiResponse[FileOut])
def get_file(
    file_id: int,
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
) -> ApiResponse[FileOut]:
    stored = get_file_or_404(db, file_id)
    ensure_can_read(stored, current_user)
    return ApiResponse(data=FileOut.from_model(stored))


@router.get("/{file_id}/status", response_model=ApiResponse[FileStatusOut])
def get_file_status(
    file_id: int,
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
) -> ApiResponse[FileStatusOut]:
    stored = get_file_or_404(db, file_id)
    ensure_can_write(stored, current_user)
    return ApiResponse(
        data=FileStatusOut(
            id=stored.id,
            status=stored.status,
            progress=stored.processing_progress,
            error=stored.error_message,
        )
    )


@router.get("/{file_id}/download")
def download_file(
    file_id: int,
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
) -> Response:
    stored = get_file_or_404(db, file_id)
    ensure_can_read(stored, current_user)
    return download_response(db, stored, current_user.id)


@router.patch("/{file_id}", response_model=ApiResponse[FileOut])
def update_file(
    file_id: int,
    body: FileUpdate,
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
) -> ApiResponse[FileOut]:
    stored = get_file_or_404(db, file_id)
    ensure_can_write(stored, current_user)
    stored = apply_file_update(db, stored, body)
    return ApiResponse(message="File updated successfully", data=FileOut.from_model(stored))


@router.delete("/{file_id}", response_model=ApiResponse[None])
def remove_file(
    file_id: int,
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
) -> ApiResponse[None]:
    stored = get_file_or_404(db, file_id)
    ensure_can_write(stored, current_user)
    delete_file(db, stored, current_user.id)
    return ApiResponse(message="File deleted successfully")
