"""Schemas describing the outcome of an upload."""

from pydantic import BaseModel, Field

from app.schemas.files import FileOut


class UploadResponse(BaseModel):
    """Stored file after transcoding and processing."""

    file: FileOut = Field(..., description="Metadata of the stored file, including its final status.")
