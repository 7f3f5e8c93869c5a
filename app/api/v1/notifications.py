"""Notification routes: list, stats, create (admin), mark read and delete."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from app.api.v1.auth import get_current_user, require_admin
from app.core.database import get_db
from app.models import Notification, User
from app.schemas.auth import CurrentUser
from app.schemas.common import ApiResponse
from app.schemas.notifications import (
    NotificationCreate,
    NotificationOut,
    NotificationsPage,
    NotificationStats,
    NotificationTypeCount,
)
from app.services.notifications import (
    is_read_by,
    mark_all_read,
    mark_read,
    unread_filter,
    visible_notifications,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _out(notification: Notification, user_id: int) -> NotificationOut:
    out = NotificationOut.model_validate(notification)
    return out.model_copy(update={"read": is_read_by(notification, user_id)})


def _get_visible(db: Session, notification_id: int, user: CurrentUser) -> Notification:
    notification = db.get(Notification, notification_id)
    if notification is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found")
    addressed = notification.recipient_id == user.id
    if not (addressed or (notification.is_broadcast and user.is_admin)):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not authorized to access this notification",
        )
    return notification


@router.get("", response_model=ApiResponse[NotificationsPage])
def list_notifications(
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 20,
    unread_only: bool = False,
) -> ApiResponse[NotificationsPage]:
    """Notifications visible to the caller, newest first."""
    query = visible_notifications(db, current_user.id, current_user.is_admin)
    unread_count = query.filter(unread_filter(current_user.id)).count()
    if unread_only:
        query = query.filter(unread_filter(current_user.id))
    total = query.count()
    rows = (
        query.order_by(Notification.created_at.desc(), Notification.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return ApiResponse(
        data=NotificationsPage(
            notifications=[_out(n, current_user.id) for n in rows],
            total_count=total,
            unread_count=unread_count,
            current_page=page,
            items_per_page=limit,
        )
    )


@router.get("/stats", response_model=ApiResponse[NotificationStats])
def notification_stats(
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
) -> ApiResponse[NotificationStats]:
    query = visible_notifications(db, current_user.id, current_user.is_admin)
    by_type = (
        query.with_entities(Notification.type, func.count(Notification.id))
        .group_by(Notification.type)
        .order_by(Notification.type)
        .all()
    )
    return ApiResponse(
        data=NotificationStats(
            total=query.count(),
            unread_count=query.filter(unread_filter(current_user.id)).count(),
            by_type=[NotificationTypeCount(type=t, count=c) for t, c in by_type],
        )
    )


@router.post("", response_model=ApiResponse[NotificationOut], status_code=status.HTTP_201_CREATED)
def create_notification(
    body: NotificationCreate,
    db: Annotated[Session, Depends(get_db)],
    admin: Annotated[CurrentUser, Depends(require_admin)],
) -> ApiResponse[NotificationOut]:
    """Create a notification; without recipient_id it is broadcast to admins."""
    if body.recipient_id is not None and db.get(User, body.recipient_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Recipient not found")
    notification = Notification(
        title=body.title,
        message=body.message,
        type=body.type,
        priority=body.priority,
        recipient_id=body.recipient_id,
        action_url=body.action_url,
        action_text=body.action_text,
        expires_at=body.expires_at,
        meta_data=body.metadata,
    )
    db.add(notification)
    db.commit()
    db.refresh(notification)
    logger.info(
        "Notification id=%s created by admin id=%s recipient=%s",
        notification.id,
        admin.id,
        notification.recipient_id,
    )
    return ApiResponse(message="Notification created", data=_out(notification, admin.id))


@router.patch("/mark-all-read", response_model=ApiResponse[dict])
def mark_all_notifications_read(
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
) -> ApiResponse[dict]:
    updated = mark_all_read(db, current_user.id, current_user.is_admin)
    db.commit()
    return ApiResponse(message="All notifications marked as read", data={"updated": updated})


@router.patch("/{notification_id}/read", response_model=ApiResponse[NotificationOut])
def mark_notification_read(
    notification_id: int,
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
) -> ApiResponse[NotificationOut]:
    notification = _get_visible(db, notification_id, current_user)
    mark_read(db, notification, current_user.id)
    db.commit()
    db.refresh(notification)
    return ApiResponse(message="Notification marked as read", data=_out(notification, current_user.id))


@router.delete("/{notification_id}", response_model=ApiResponse[None])
def delete_notification(
    notification_id: int,
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
) -> ApiResponse[None]:
    """Recipient or admin only."""
    notification = db.get(Notification, notification_id)
    if notification is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found")
    if notification.recipient_id != current_user.id and not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not authorized to delete this notification",
        )
    db.delete(notification)
    db.commit()
    return ApiResponse(message="Notification deleted")
