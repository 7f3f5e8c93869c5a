"""Admin dashboard and file-analytics aggregation."""

from collections import Counter, defaultdict
from datetime import date, datetime, timedelta, timezone
from typing import TYPE_CHECKING

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.models import Chart, StoredFile, User
from app.schemas.dashboard import (
    DailyUploads,
    DashboardStats,
    FileAnalytics,
    FileTypeCount,
    RecentActivity,
    TopDownload,
    TopFileType,
    UserGrowthPoint,
)

if TYPE_CHECKING:
    from app.core.config import Settings

RANGE_DAYS = {"day": 1, "week": 7, "month": 30, "year": 365}
TIMEFRAME_DAYS = {"7d": 7, "30d": 30, "90d": 90}
BYTES_PER_GB = 1024**3
TOP_FILE_TYPES = 6
RECENT_ACTIVITY_LIMIT = 10
TOP_DOWNLOADS_LIMIT = 10


def percent_change(current: int, previous: int) -> int:
    """Rounded (current - previous) / previous * 100; 0 when previous is 0."""
    if not previous:
        return 0
    return round((current - previous) / previous * 100)


def percentage(part: int | float, whole: int | float) -> int:
    if not whole:
        return 0
    return round(part / whole * 100)


def _as_utc(value: datetime) -> datetime:
    return value.replace(tzinfo=timezone.utc) if value.tzinfo is None else value


def resolve_window(
    range_name: str = "week",
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    now: datetime | None = None,
) -> tuple[datetime, datetime]:
    """
    Dashboard window as (start, end). Explicit dates win over the named range;
    a missing end defaults to now, a missing start to the named range before end.
    """
    end = _as_utc(end_date or now or datetime.now(timezone.utc))
    if start_date is not None:
        start = _as_utc(start_date)
    else:
        start = end - timedelta(days=RANGE_DAYS.get(range_name, RANGE_DAYS["week"]))
    if start > end:
        raise ValueError("start_date must be before end_date")
    return start, end


def _day(value: datetime | None) -> str | None:
    if value is None:
        return None
    return value.date().isoformat()


def _extension(name: str | None) -> str:
    if not name or "." not in name:
        return ""
    return name.rsplit(".", 1)[-1].lower()


def _count_created(db: Session, model, start: datetime, end: datetime, include_end: bool = True) -> int:
    upper = model.created_at <= end if include_end else model.created_at < end
    return db.query(func.count(model.id)).filter(model.created_at >= start, upper).scalar() or 0


def _user_growth(db: Session, start: datetime, end: datetime) -> list[UserGrowthPoint]:
    rows = (
        db.query(User.created_at)
        .filter(User.created_at >= start, User.created_at <= end)
        .all()
    )
    per_day = Counter(_day(r.created_at) for r in rows if r.created_at is not None)
    return [UserGrowthPoint(date=d, users=per_day[d]) for d in sorted(per_day)]


def _file_types(db: Session) -> list[FileTypeCount]:
    counts = Counter(
        _extension(r.originalname) or "unknown"
        for r in db.query(StoredFile.originalname).all()
    )
    return [
        FileTypeCount(type=ext.upper(), count=n)
        for ext, n in counts.most_common(TOP_FILE_TYPES)
    ]


def _recent_activity(db: Session) -> list[RecentActivity]:
    rows = (
        db.query(StoredFile.id, StoredFile.originalname, StoredFile.created_at, User.name)
        .join(User, StoredFile.user_id == User.id)
        .order_by(StoredFile.created_at.desc(), StoredFile.id.desc())
        .limit(RECENT_ACTIVITY_LIMIT)
        .all()
    )
    return [
        RecentActivity(
            id=r.id,
            user=r.name,
            action=f"Uploaded {r.originalname}",
            timestamp=r.created_at,
        )
        for r in rows
    ]


def dashboard_stats(
    db: Session,
    settings: "Settings",
    start: datetime,
    end: datetime,
) -> DashboardStats:
    """
    Headline numbers for [start, end], compared with the preceding window of
    the same length.
    """
    previous_start = start - (end - start)

    total_users = db.query(func.count(User.id)).scalar() or 0
    active_users = db.query(func.count(User.id)).filter(User.status == "active").scalar() or 0
    admin_users = db.query(func.count(User.id)).filter(User.role == "admin").scalar() or 0
    new_users = _count_created(db, User, start, end)
    previous_new_users = _count_created(db, User, previous_start, start, include_end=False)

    status_counts = dict(
        db.query(StoredFile.status, func.count(StoredFile.id))
        .group_by(StoredFile.status)
        .all()
    )
    total_files = sum(status_counts.values())
    new_files = _count_created(db, StoredFile, start, end)
    previous_new_files = _count_created(db, StoredFile, previous_start, start, include_end=False)

    charts_generated = db.query(func.count(Chart.id)).scalar() or 0
    storage_used = db.query(func.coalesce(func.sum(StoredFile.size), 0)).scalar() or 0
    storage_total_bytes = settings.STORAGE_QUOTA_GB * BYTES_PER_GB

    return DashboardStats(
        range_start=start,
        range_end=end,
        total_users=total_users,
        active_users=active_users,
        admin_users=admin_users,
        active_users_percentage=percentage(active_users, total_users),
        new_users=new_users,
        previous_new_users=previous_new_users,
        user_change=percent_change(new_users, previous_new_users),
        total_files=total_files,
        new_files=new_files,
        previous_new_files=previous_new_files,
        file_change=percent_change(new_files, previous_new_files),
        processed_files=status_counts.get("processed", 0),
        processing_files=status_counts.get("processing", 0),
        failed_files=status_counts.get("failed", 0),
        charts_generated=charts_generated,
        charts_per_user=round(charts_generated / total_users) if total_users else 0,
        storage_used_bytes=int(storage_used),
        storage_used_gb=round(int(storage_used) / BYTES_PER_GB, 2),
        storage_total_gb=settings.STORAGE_QUOTA_GB,
        storage_usage=percentage(int(storage_used), storage_total_bytes),
        file_types=_file_types(db),
        user_growth=_user_growth(db, start, end),
        recent_activity=_recent_activity(db),
    )


def file_analytics(db: Session, timeframe: str = "30d", now: datetime | None = None) -> FileAnalytics:
    """Daily uploads by type, top types and most downloaded files over the timeframe."""
    days = TIMEFRAME_DAYS.get(timeframe, TIMEFRAME_DAYS["30d"])
    since = (now or datetime.now(timezone.utc)) - timedelta(days=days)

    rows = (
        db.query(
            StoredFile.originalname,
            StoredFile.created_at,
            StoredFile.size,
            StoredFile.download_count,
        )
        .filter(StoredFile.created_at >= since)
        .all()
    )

    daily: dict[tuple[str, str], list[int]] = defaultdict(lambda: [0, 0, 0])
    by_type: dict[str, list[int]] = defaultdict(lambda: [0, 0])
    for r in rows:
        ext = _extension(r.originalname) or "unknown"
        bucket = daily[(_day(r.created_at) or date.min.isoformat(), ext)]
        bucket[0] += 1
        bucket[1] += r.size or 0
        bucket[2] += r.download_count or 0
        by_type[ext][0] += 1
        by_type[ext][1] += r.size or 0

    top_rows = (
        db.query(StoredFile.id, StoredFile.originalname, StoredFile.download_count, StoredFile.created_at, User.name)
        .join(User, StoredFile.user_id == User.id)
        .filter(StoredFile.created_at >= since)
        .order_by(StoredFile.download_count.desc(), StoredFile.id.desc())
        .limit(TOP_DOWNLOADS_LIMIT)
        .all()
    )

    return FileAnalytics(
        timeframe=timeframe if timeframe in TIMEFRAME_DAYS else "30d",
        daily_uploads=[
            DailyUploads(date=d, type=ext, count=c, total_size=s, total_downloads=dl)
            for (d, ext), (c, s, dl) in sorted(daily.items())
        ],
        top_file_types=[
            TopFileType(type=ext, count=c, total_size=s)
            for ext, (c, s) in sorted(by_type.items(), key=lambda kv: (-kv[1][0], kv[0]))
        ],
        top_downloads=[
            TopDownload(
                id=r.id,
                originalname=r.originalname,
                download_count=r.download_count or 0,
                user=r.name,
                created_at=r.created_at,
            )
            for r in top_rows
        ],
    )
