"""Response envelope and pagination schemas shared by every endpoint."""

import math
from typing import Generic, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """Standard JSON envelope: {success, message, data}."""

    success: bool = Field(default=True, description="False only on error responses.")
    message: str | None = Field(default=None, description="Human-readable outcome.")
    data: T | None = Field(default=None, description="Payload of the response.")


class ErrorResponse(BaseModel):
    """Body of every error response."""

    success: bool = False
    message: str
    errors: list[dict] | None = None
    error: str | None = Field(
        default=None,
        description="Raw exception string; only present when APP_ENV=dev.",
    )


# Documented error bodies for every route; rendered by the handlers in app.main.
ERROR_RESPONSES: dict[int | str, dict] = {
    code: {"model": ErrorResponse} for code in (400, 401, 403, 404, 409, 500)
}


class PageMeta(BaseModel):
    """Pagination fields included in list payloads."""

    total: int = Field(..., ge=0)
    page: int = Field(..., ge=1)
    page_size: int = Field(..., ge=1)
    total_pages: int = Field(..., ge=0)

    @classmethod
    def build(cls, total: int, page: int, page_size: int) -> "PageMeta":
        return cls(
            total=total,
            page=page,
            page_size=page_size,
            total_pages=math.ceil(total / page_size) if page_size else 0,
        )
