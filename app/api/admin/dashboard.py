"""Admin dashboard statistics."""

from datetime import datetime
from typing import Annotated, Literal

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.core.database import get_db
from app.schemas.common import ApiResponse
from app.schemas.dashboard import DashboardStats
from app.services.dashboard import dashboard_stats, resolve_window

router = APIRouter()


@router.get("/stats", response_model=ApiResponse[DashboardStats])
def get_dashboard_stats(
    db: Annotated[Session, Depends(get_db)],
    range_name: Annotated[Literal["day", "week", "month", "year"], Query(alias="range")] = "week",
    start_date: datetime | None = None,
    end_date: datetime | None = None,
) -> ApiResponse[DashboardStats]:
    """
    Users, files, charts and storage for the selected window, with the change
    against the preceding window of the same length.
    """
    try:
        start, end = resolve_window(range_name, start_date, end_date)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    return ApiResponse(data=dashboard_stats(db, get_settings(), start, end))
