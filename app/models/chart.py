"""ORM model for saved charts."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, func
from sqlalchemy.orm import relationship

from app.models.base import Base, JSONType

CHART_TYPES = ("bar", "line", "pie", "doughnut", "radar", "polarArea", "scatter")


class Chart(Base):
    """
    Chart definition: labels and datasets, optional client-rendered PNG, and
    an opaque options blob handed back to the charting library.
    """

    __tablename__ = "charts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    chart_type = Column(String(32), nullable=False)
    data = Column(JSONType, nullable=False)
    options = Column(JSONType, nullable=False, default=dict)
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    source_file_id = Column(
        Integer,
        ForeignKey("files.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
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

    user = relationship("User", back_populates="charts")
    source_file = relationship("StoredFile", back_populates="charts")

    @property
    def image_url(self) -> str | None:
        return (self.data or {}).get("image") or None
