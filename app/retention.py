"""
Notification cleanup job. Deletes expired notifications and inactive ones
older than NOTIFICATION_RETENTION_DAYS.

  python -m app.retention
  python -m app.retention --days 7

Typical crontab entry:
  15 3 * * * cd /srv/excel-analytics && .venv/bin/python -m app.retention
"""

import argparse
import logging
import sys

from app.core.config import get_settings
from app.core.database import SessionLocal
from app.services.retention import run_retention

logger = logging.getLogger("app.retention")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Delete expired and stale inactive notifications.")
    parser.add_argument(
        "--days",
        type=int,
        default=None,
        help="Override NOTIFICATION_RETENTION_DAYS for this run",
    )
    args = parser.parse_args(argv)

    settings = get_settings()
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    if args.days is not None:
        if args.days < 1:
            parser.error("--days must be at least 1")
        settings = settings.model_copy(update={"NOTIFICATION_RETENTION_DAYS": args.days})

    db = SessionLocal()
    try:
        expired, inactive = run_retention(db, settings)
    except Exception:
        db.rollback()
        logger.exception("Notification retention failed")
        return 1
    finally:
        db.close()
    logger.info("Notification retention done: expired=%d inactive=%d", expired, inactive)
    return 0


if __name__ == "__main__":
    sys.exit(main())
