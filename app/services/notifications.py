"""Notification helpers: creation, per-user visibility and read receipts."""

import logging
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import and_, exists, or_
from sqlalchemy.orm import Query, Session

from app.models import Notification, NotificationRead

logger = logging.getLogger(__name__)


def create_system_notification(
    db: Session,
    title: str,
    message: str,
    type: str = "info",
    metadata: dict[str, Any] | None = None,
    priority: str = "medium",
) -> Notification:
    """Broadcast notification (no recipient): visible to every admin."""
    notification = Notification(
        title=title,
        message=message,
        type=type,
        priority=priority,
        recipient_id=None,
        meta_data=metadata or {},
    )
    db.add(notification)
    db.flush()
    return notification


def create_user_notification(
    db: Session,
    user_id: int,
    title: str,
    message: str,
    type: str = "info",
    metadata: dict[str, Any] | None = None,
    priority: str = "medium",
) -> Notification:
    """Notification addressed to a single user."""
    notification = Notification(
        title=title,
        message=message,
        type=type,
        priority=priority,
        recipient_id=user_id,
        meta_data=metadata or {},
    )
    db.add(notification)
    db.flush()
    return notification


def visible_notifications(db: Session, user_id: int, is_admin: bool) -> Query:
    """
    Notifications the user may see: those addressed to them, plus broadcasts
    for admins. Inactive and expired notifications are excluded.
    """
    now = datetime.now(timezone.utc)
    audience = Notification.recipient_id == user_id
    if is_admin:
        audience = or_(audience, Notification.recipient_id.is_(None))
    return db.query(Notification).filter(
        audience,
        Notification.is_active.is_(True),
        or_(Notification.expires_at.is_(None), Notification.expires_at > now),
    )


def _read_by_user(user_id: int):
    return exists().where(
        and_(
            NotificationRead.notification_id == Notification.id,
            NotificationRead.user_id == user_id,
        )
    )


def unread_filter(user_id: int):
    """
    SQL condition for 'unread by this user': addressed notifications use the
    read flag, broadcasts use the user's read receipt.
    """
    return or_(
        and_(Notification.recipient_id.isnot(None), Notification.read.is_(False)),
        and_(Notification.recipient_id.is_(None), ~_read_by_user(user_id)),
    )


def is_read_by(notification: Notification, user_id: int) -> bool:
    if notification.recipient_id is not None:
        return bool(notification.read)
    return any(r.user_id == user_id for r in notification.reads)


def mark_read(db: Session, notification: Notification, user_id: int) -> bool:
    """
    Record that user_id read the notification. Sets the read flag when the
    user is the recipient or the notification is a broadcast.
    Returns False if the user had already read it.
    """
    if any(r.user_id == user_id for r in notification.reads):
        return False
    notification.reads.append(NotificationRead(user_id=user_id, read_at=datetime.now(timezone.utc)))
    if notification.recipient_id is None or notification.recipient_id == user_id:
        notification.read = True
    db.flush()
    return True


def mark_all_read(db: Session, user_id: int, is_admin: bool) -> int:
    """Mark every visible, unread notification as read; returns how many changed."""
    pending = visible_notifications(db, user_id, is_admin).filter(unread_filter(user_id)).all()
    changed = sum(1 for n in pending if mark_read(db, n, user_id))
    logger.info("Marked %d notifications read for user id=%s", changed, user_id)
    return changed
