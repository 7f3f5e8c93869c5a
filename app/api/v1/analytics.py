"""Analytics event routes: record and list the caller's activity."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from app.api.v1.auth import get_current_user
from app.core.database import get_db
from app.models import AnalyticsEvent, StoredFile
from app.schemas.analytics import (
    AnalyticsAction,
    AnalyticsEventCreate,
    AnalyticsEventOut,
    AnalyticsEventsPage,
)
from app.schemas.auth import CurrentUser
from app.schemas.common import ApiResponse, PageMeta
from app.services.analytics import record_event

router = APIRouter()


@router.post("", response_model=ApiResponse[AnalyticsEventOut], status_code=status.HTTP_201_CREATED)
def create_event(
    body: AnalyticsEventCreate,
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
) -> ApiResponse[AnalyticsEventOut]:
    if body.file_id is not None and db.get(StoredFile, body.file_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="File not found")
    event = record_event(
        db,
        current_user.id,
        body.action,
        file_id=body.file_id,
        chart_type=body.chart_type,
        dimensions=body.dimensions,
        metadata=body.metadata,
    )
    db.commit()
    db.refresh(event)
    return ApiResponse(message="Event recorded", data=AnalyticsEventOut.model_validate(event))


@router.get("", response_model=ApiResponse[AnalyticsEventsPage])
def list_events(
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    action: AnalyticsAction | None = None,
    page: Annotated[int, Query(ge=1)] = 1,
    page_size: Annotated[int, Query(ge=1, le=100)] = 20,
) -> ApiResponse[AnalyticsEventsPage]:
    """The caller's events, newest first."""
    query = db.query(AnalyticsEvent).filter(AnalyticsEvent.user_id == current_user.id)
    if action:
        query = query.filter(AnalyticsEvent.action == action)
    total = query.count()
    events = (
        query.order_by(AnalyticsEvent.created_at.desc(), AnalyticsEvent.id.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
        .all()
    )
    meta = PageMeta.build(total, page, page_size)
    return ApiResponse(
        data=AnalyticsEventsPage(
            events=[AnalyticsEventOut.model_validate(e) for e in events],
            **meta.model_dump(),
        )
    )
