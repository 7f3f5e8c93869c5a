"""ORM model for uploaded files stored as binary payloads."""

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    LargeBinary,
    String,
    Text,
    func,
)
from sqlalchemy.orm import deferred, relationship

from app.models.base import Base, JSONType

FILE_STATUSES = ("processing", "processed", "failed")


class StoredFile(Base):
    """
    One uploaded file: transcoded payload plus metadata.

    status moves processing -> processed | failed once the processing step
    has run; a failed file can be reprocessed by an admin.
    """

    __tablename__ = "files"

    id = Column(Integer, primary_key=True, autoincrement=True)
    originalname = Column(String(512), nullable=False)
    mimetype = Column(String(255), nullable=False)
    size = Column(Integer, nullable=False)
    # Deferred so listings do not pull every payload into memory.
    data = deferred(Column(LargeBinary, nullable=False))
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    description = Column(Text, nullable=True)
    tags = Column(JSONType, nullable=False, default=list)
    is_public = Column(Boolean, nullable=False, default=False)
    checksum = Column(String(80), nullable=True, index=True)
    status = Column(String(32), nullable=False, default="processing", index=True)
    processing_progress = Column(Integer, nullable=False, default=0)
    download_count = Column(Integer, nullable=False, default=0)
    error_message = Column(Text, nullable=True)
    meta_data = Column("metadata", JSONType, nullable=True)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        index=True,
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    user = relationship("User", back_populates="files")
    # No delete cascade: removing a file nulls the reference on charts and events.
    charts = relationship("Chart", back_populates="source_file")
    analytics_events = relationship("AnalyticsEvent", back_populates="file")

    @property
    def extension(self) -> str:
        """Lower-cased extension without the dot ('' when the name has none)."""
        name = self.originalname or ""
        if "." not in name:
            return ""
        return name.rsplit(".", 1)[-1].lower()
