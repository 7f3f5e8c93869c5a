"""ORM model for user activity analytics events."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, func
from sqlalchemy.orm import relationship

from app.models.base import Base, JSONType

ANALYTICS_ACTIONS = ("upload", "analyze", "download", "delete", "login", "logout")


class AnalyticsEvent(Base):
    """One user action (upload, analyze, download, delete, login, logout)."""

    __tablename__ = "analytics_events"

    id = Column(Integer, primary_key=True, autoincrement=True)
    action = Column(String(32), nullable=False, index=True)
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    file_id = Column(
        Integer,
        ForeignKey("files.id", ondelete="SET NULL"),
        nullable=True,
    )
    chart_type = Column(String(32), nullable=True)
    # e.g. "Revenue vs Month"
    dimensions = Column(String(255), nullable=True)
    meta_data = Column("metadata", JSONType, nullable=True)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        index=True,
    )

    file = relationship("StoredFile", back_populates="analytics_events")
