"""ORM models for notifications and per-user read receipts."""

from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import relationship

from app.models.base import Base, JSONType

NOTIFICATION_TYPES = ("info", "success", "warning", "error", "user", "file", "system")
NOTIFICATION_PRIORITIES = ("low", "medium", "high", "urgent")


class Notification(Base):
    """
    Notification addressed to one user, or broadcast to all admins when
    recipient_id is null. expires_at null means it never expires.
    """

    __tablename__ = "notifications"
    __table_args__ = (
        Index("ix_notifications_recipient_read_created", "recipient_id", "read", "created_at"),
        Index("ix_notifications_type_created", "type", "created_at"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(200), nullable=False)
    message = Column(Text, nullable=False)
    type = Column(String(32), nullable=False, default="info")
    priority = Column(String(32), nullable=False, default="medium")
    recipient_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=True,
    )
    read = Column(Boolean, nullable=False, default=False)
    meta_data = Column("metadata", JSONType, nullable=False, default=dict)
    action_url = Column(String(1024), nullable=True)
    action_text = Column(String(255), nullable=True)
    expires_at = Column(DateTime(timezone=True), nullable=True, index=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    recipient = relationship("User", back_populates="notifications")
    reads = relationship(
        "NotificationRead",
        back_populates="notification",
        cascade="all, delete-orphan",
    )

    @property
    def is_broadcast(self) -> bool:
        return self.recipient_id is None

    @property
    def is_expired(self) -> bool:
        if self.expires_at is None:
            return False
        expires = self.expires_at
        # SQLite hands back naive datetimes; they are stored as UTC.
        if expires.tzinfo is None:
            expires = expires.replace(tzinfo=timezone.utc)
        return expires <= datetime.now(timezone.utc)


class NotificationRead(Base):
    """Read receipt: which user read which notification, and when."""

    __tablename__ = "notification_reads"
    __table_args__ = (
        UniqueConstraint("notification_id", "user_id", name="uq_notification_reads_user"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    notification_id = Column(
        Integer,
        ForeignKey("notifications.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    read_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    notification = relationship("Notification", back_populates="reads")
