"""Extended health report for the admin console."""

import time
from datetime import datetime, timezone
from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.database import check_db_connected, get_db
from app.schemas.common import ApiResponse
from app.schemas.health import SystemHealth

router = APIRouter()

_STARTED_AT = time.monotonic()


@router.get("", response_model=ApiResponse[SystemHealth])
def system_health(db: Annotated[Session, Depends(get_db)]) -> ApiResponse[SystemHealth]:
    connected = check_db_connected(db)
    return ApiResponse(
        data=SystemHealth(
            status="healthy" if connected else "degraded",
            timestamp=datetime.now(timezone.utc),
            uptime=int(time.monotonic() - _STARTED_AT),
            database="connected" if connected else "disconnected",
            version=settings.API_VERSION,
        )
    )
