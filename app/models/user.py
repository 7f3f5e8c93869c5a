"""ORM model for application users (auth and RBAC)."""

from sqlalchemy import Column, DateTime, Integer, String, func
from sqlalchemy.orm import relationship

from app.models.base import Base

USER_ROLES = ("user", "admin")
USER_STATUSES = ("active", "inactive")


class User(Base):
    """
    User account for JWT authentication and role-based access control.

    role: 'admin' or 'user'; status: 'active' or 'inactive'.
    Deleting a user removes the user's files, charts, analytics events and
    addressed notifications.
    """

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(32), nullable=False, default="user")
    status = Column(String(32), nullable=False, default="active", index=True)
    avatar = Column(String(1024), nullable=True)
    last_login = Column(DateTime(timezone=True), nullable=True)
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

    files = relationship(
        "StoredFile",
        back_populates="user",
        cascade="all, delete-orphan",
    )
    charts = relationship(
        "Chart",
        back_populates="user",
        cascade="all, delete-orphan",
    )
    analytics_events = relationship(
        "AnalyticsEvent",
        cascade="all, delete-orphan",
    )
    notifications = relationship(
        "Notification",
        back_populates="recipient",
        cascade="all, delete-orphan",
    )
    notification_reads = relationship(
        "NotificationRead",
        cascade="all, delete-orphan",
    )

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    @property
    def is_active(self) -> bool:
        return self.status == "active"
