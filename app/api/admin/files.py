"""Admin file management: all users' files, bulk upload, analytics and reprocessing."""

import logging
from datetime import datetime
from typing import Annotated, Literal

from fastapi import APIRouter, Depends, Form, HTTPException, Query, UploadFile, status
from fastapi.responses import Response
from sqlalchemy.orm import Session

from app.api.v1.auth import require_admin
from app.api.v1.files import (
    MB,
    apply_file_update,
    delete_file,
    download_response,
    get_file_or_404,
    list_files_page,
    read_upload,
    upload_http_error,
)
from app.core.config import get_settings
from app.core.database import get_db
from app.schemas.auth import CurrentUser
from app.schemas.common import ApiResponse
from app.schemas.dashboard import FileAnalytics
from app.schemas.files import (
    FileOut,
    FileSortField,
    FilesPage,
    FileStatus,
    FileStatusOut,
    FileUpdate,
    MultiUploadResult,
    SortOrder,
    UploadError,
    parse_tags,
)
from app.schemas.upload import UploadResponse
from app.services.dashboard import file_analytics
from app.services.files import (
    DuplicateFileError,
    EmptyUploadError,
    UploadTooLargeError,
    store_upload,
)
from app.services.processing import process_file
from app.services.transcode import FileProcessingError, UnsupportedFileTypeError

logger = logging.getLogger(__name__)

router = APIRouter()

UPLOAD_ERRORS = (
    EmptyUploadError,
    UploadTooLargeError,
    DuplicateFileError,
    UnsupportedFileTypeError,
    FileProcessingError,
)


@router.get("", response_model=ApiResponse[FilesPage])
def list_all_files(
    db: Annotated[Session, Depends(get_db)],
    search: str | None = None,
    file_type: str | None = None,
    status_filter: Annotated[FileStatus | None, Query(alias="status")] = None,
    user_id: int | None = None,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    sort_by: FileSortField = "created_at",
    sort_order: SortOrder = "desc",
    page: Annotated[int, Query(ge=1)] = 1,
    page_size: Annotated[int, Query(ge=1, le=100)] = 10,
) -> ApiResponse[FilesPage]:
    """Files across all users, uploader embedded."""
    data = list_files_page(
        db,
        page=page,
        page_size=page_size,
        sort_by=sort_by,
        sort_order=sort_order,
        include_user=True,
        search=search,
        file_type=file_type,
        status=status_filter,
        user_id=user_id,
        start_date=start_date,
        end_date=end_date,
    )
    return ApiResponse(data=data)


@router.post("/upload", response_model=ApiResponse[UploadResponse], status_code=status.HTTP_201_CREATED)
async def admin_upload(
    file: UploadFile,
    db: Annotated[Session, Depends(get_db)],
    admin: Annotated[CurrentUser, Depends(require_admin)],
    description: Annotated[str | None, Form()] = None,
    tags: Annotated[str | None, Form()] = None,
    is_public: Annotated[bool, Form()] = False,
) -> ApiResponse[UploadResponse]:
    settings = get_settings()
    max_bytes = settings.ADMIN_MAX_UPLOAD_MB * MB
    try:
        content = await read_upload(file, max_bytes)
        stored = store_upload(
            db,
            settings,
            admin.id,
            file.filename or "",
            file.content_type or "",
            content,
            max_bytes=max_bytes,
            description=description,
            tags=parse_tags(tags),
            is_public=is_public,
        )
    except UPLOAD_ERRORS as e:
        db.rollback()
        raise upload_http_error(e) from e
    return ApiResponse(
        message="File uploaded successfully",
        data=UploadResponse(file=FileOut.from_model(stored, include_user=True)),
    )


@router.post(
    "/upload-multiple",
    response_model=ApiResponse[MultiUploadResult],
    status_code=status.HTTP_201_CREATED,
)
async def admin_upload_multiple(
    files: list[UploadFile],
    db: Annotated[Session, Depends(get_db)],
    admin: Annotated[CurrentUser, Depends(require_admin)],
    description: Annotated[str | None, Form()] = None,
    tags: Annotated[str | None, Form()] = None,
    is_public: Annotated[bool, Form()] = False,
) -> ApiResponse[MultiUploadResult]:
    """
    Upload several files at once. Each file is stored independently: rejected
    files are reported in `errors` and do not undo the others.
    """
    settings = get_settings()
    if len(files) > settings.MAX_FILES_PER_REQUEST:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"At most {settings.MAX_FILES_PER_REQUEST} files are allowed per request.",
        )

    stored_files: list[FileOut] = []
    errors: list[UploadError] = []
    tag_list = parse_tags(tags)
    max_bytes = settings.ADMIN_MAX_UPLOAD_MB * MB
    for upload in files:
        try:
            content = await read_upload(upload, max_bytes)
            stored = store_upload(
                db,
                settings,
                admin.id,
                upload.filename or "",
                upload.content_type or "",
                content,
                max_bytes=max_bytes,
                description=description,
                tags=tag_list,
                is_public=is_public,
            )
        except UPLOAD_ERRORS as e:
            db.rollback()
            errors.append(UploadError(filename=upload.filename or "", error=e.message))
            continue
        stored_files.append(FileOut.from_model(stored, include_user=True))

    logger.info("Bulk upload by admin id=%s: stored=%d rejected=%d", admin.id, len(stored_files), len(errors))
    return ApiResponse(
        message=f"{len(stored_files)} file(s) uploaded, {len(errors)} failed",
        data=MultiUploadResult(files=stored_files, errors=errors),
    )


@router.get("/analytics", response_model=ApiResponse[FileAnalytics])
def get_file_analytics(
    db: Annotated[Session, Depends(get_db)],
    timeframe: Literal["7d", "30d", "90d"] = "30d",
) -> ApiResponse[FileAnalytics]:
    return ApiResponse(data=file_analytics(db, timeframe))


@router.get("/{file_id}/status", response_model=ApiResponse[FileStatusOut])
def admin_file_status(
    file_id: int,
    db: Annotated[Session, Depends(get_db)],
) -> ApiResponse[FileStatusOut]:
    stored = get_file_or_404(db, file_id)
    return ApiResponse(
        data=FileStatusOut(
            id=stored.id,
            status=stored.status,
            progress=stored.processing_progress,
            error=stored.error_message,
        )
    )


@router.patch("/{file_id}", response_model=ApiResponse[FileOut])
def admin_update_file(
    file_id: int,
    body: FileUpdate,
    db: Annotated[Session, Depends(get_db)],
) -> ApiResponse[FileOut]:
    stored = apply_file_update(db, get_file_or_404(db, file_id), body)
    return ApiResponse(message="File updated successfully", data=FileOut.from_model(stored, include_user=True))


@router.get("/{file_id}/download")
def admin_download_file(
    file_id: int,
    db: Annotated[Session, Depends(get_db)],
    admin: Annotated[CurrentUser, Depends(require_admin)],
) -> Response:
    return download_response(db, get_file_or_404(db, file_id), admin.id)


@router.delete("/{file_id}", response_model=ApiResponse[None])
def admin_delete_file(
    file_id: int,
    db: Annotated[Session, Depends(get_db)],
    admin: Annotated[CurrentUser, Depends(require_admin)],
) -> ApiResponse[None]:
    delete_file(db, get_file_or_404(db, file_id), admin.id)
    return ApiResponse(message="File deleted successfully")


@router.post("/{file_id}/reprocess", response_model=ApiResponse[FileOut])
def reprocess_file(
    file_id: int,
    db: Annotated[Session, Depends(get_db)],
    admin: Annotated[CurrentUser, Depends(require_admin)],
) -> ApiResponse[FileOut]:
    """Run the processing step again, e.g. after a failure."""
    stored = process_file(db, get_file_or_404(db, file_id))
    logger.info("Reprocessed file id=%s by admin id=%s: status=%s", stored.id, admin.id, stored.status)
    return ApiResponse(
        message=f"File {stored.status}",
        data=FileOut.from_model(stored, include_user=True),
    )
