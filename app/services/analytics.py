"""Record user activity events (upload, analyze, download, delete, login, logout)."""

from typing import Any

from sqlalchemy.orm import Session

from app.models import AnalyticsEvent


def record_event(
    db: Session,
    user_id: int,
    action: str,
    file_id: int | None = None,
    chart_type: str | None = None,
    dimensions: str | None = None,
    metadata: dict[str, Any] | None = None,
) -> AnalyticsEvent:
    """Add an event to the session; the caller commits."""
    event = AnalyticsEvent(
        action=action,
        user_id=user_id,
        file_id=file_id,
        chart_type=chart_type,
        dimensions=dimensions,
        meta_data=metadata,
    )
    db.add(event)
    db.flush()
    return event
