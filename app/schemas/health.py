"""Pydantic schemas for health check responses."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Response body for the health check endpoint."""

    status: Literal["ok"] = Field(default="ok", description="Service status")
    environment: str = Field(description="Current app environment (e.g. dev, prod)")
    database: Literal["connected", "disconnected"] | None = Field(
        default=None,
        description="Database connectivity status when check is performed",
    )


class SystemHealth(BaseModel):
    """Extended health report for the admin console."""

    status: Literal["healthy", "degraded"]
    timestamp: datetime
    uptime: int = Field(..., ge=0, description="Seconds since the API process started")
    database: Literal["connected", "disconnected"]
    api_status: Literal["operational"] = "operational"
    version: str
