"""Data retention: delete expired notifications and stale inactive ones."""

import logging
from datetime import datetime, timezone, timedelta
from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

from app.models import Notification, NotificationRead

if TYPE_CHECKING:
    from app.core.config import Settings

logger = logging.getLogger(__name__)


def _delete_notifications(session: Session, criterion) -> int:
    ids = [row.id for row in session.query(Notification.id).filter(criterion).all()]
    if not ids:
        return 0
    # Bulk deletes skip ORM cascades; remove read receipts first.
    session.query(NotificationRead).filter(
        NotificationRead.notification_id.in_(ids)
    ).delete(synchronize_session=False)
    return (
        session.query(Notification)
        .filter(Notification.id.in_(ids))
        .delete(synchronize_session=False)
    )


def run_retention(session: Session, settings: "Settings") -> tuple[int, int]:
    """
    Delete notifications past expires_at, and inactive notifications older than
    NOTIFICATION_RETENTION_DAYS.

    Returns (expired_deleted, inactive_deleted). Idempotent: safe to run repeatedly.
    """
    if not settings.RETENTION_ENABLED:
        logger.info("Retention is disabled (RETENTION_ENABLED=false); skipping.")
        return (0, 0)

    now = datetime.now(timezone.utc)
    cutoff = now - timedelta(days=settings.NOTIFICATION_RETENTION_DAYS)

    expired_deleted = _delete_notifications(
        session,
        (Notification.expires_at.isnot(None)) & (Notification.expires_at < now),
    )
    inactive_deleted = _delete_notifications(
        session,
        (Notification.is_active.is_(False)) & (Notification.created_at < cutoff),
    )
    session.commit()

    if expired_deleted or inactive_deleted:
        logger.info(
            "Retention run: cutoff=%s, expired_deleted=%s, inactive_deleted=%s",
            cutoff.isoformat(),
            expired_deleted,
            inactive_deleted,
        )
    return (expired_deleted, inactive_deleted)
