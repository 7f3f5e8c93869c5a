"""Processing step for stored files: extract metadata and settle the status field."""

import io
import json
import logging
from datetime import datetime, timezone
from typing import Any

import pandas as pd
from PIL import Image, UnidentifiedImageError
from sqlalchemy.orm import Session

from app.models import StoredFile
from app.services.notifications import create_user_notification
from app.services.transcode import (
    ROW_JSON_MIMES,
    SPREADSHEET_MIMES,
    FileProcessingError,
)

logger = logging.getLogger(__name__)


def _json_rows(data: bytes) -> Any:
    try:
        return json.loads(data.decode("utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise FileProcessingError(
            "Invalid file data format, cannot parse as JSON", cause=e
        ) from e


def _read_spreadsheet(data: bytes, sheet_name: int | str | None = 0) -> Any:
    # Engines raise their own types (zipfile.BadZipFile, xlrd and openpyxl errors).
    try:
        return pd.read_excel(io.BytesIO(data), sheet_name=sheet_name)
    except Exception as e:
        raise FileProcessingError(f"Unable to read spreadsheet: {e!s}", cause=e) from e


def _frame_to_records(frame: pd.DataFrame) -> list[dict[str, Any]]:
    """DataFrame -> row records with NaN replaced by None and string column keys."""
    frame = frame.astype(object).where(pd.notna(frame), None)
    frame.columns = [str(c) for c in frame.columns]
    return frame.to_dict(orient="records")


def load_rows(stored: StoredFile) -> list[Any]:
    """
    Re-parse a stored payload into a list of rows (dicts or lists).

    CSV and JSON uploads are stored as JSON; spreadsheets are read with
    pandas (first sheet). Raises FileProcessingError for anything else.
    """
    if stored.mimetype in ROW_JSON_MIMES:
        rows = _json_rows(stored.data)
    elif stored.mimetype in SPREADSHEET_MIMES:
        rows = _frame_to_records(_read_spreadsheet(stored.data))
    else:
        raise FileProcessingError("Invalid file data format, cannot parse rows")
    if not isinstance(rows, list):
        raise FileProcessingError("File data is not available or invalid")
    return rows


def extract_metadata(stored: StoredFile) -> dict[str, Any]:
    """Describe the stored payload: rows/columns for tabular data, dimensions for images."""
    if stored.mimetype in ROW_JSON_MIMES:
        parsed = _json_rows(stored.data)
        if isinstance(parsed, list):
            first = parsed[0] if parsed else None
            columns = list(first.keys()) if isinstance(first, dict) else []
            return {"kind": "rows", "rows": len(parsed), "columns": columns}
        return {"kind": "document", "keys": list(parsed.keys()) if isinstance(parsed, dict) else []}

    if stored.mimetype in SPREADSHEET_MIMES:
        sheets = _read_spreadsheet(stored.data, sheet_name=None)
        names = list(sheets.keys())
        first = sheets[names[0]] if names else pd.DataFrame()
        return {
            "kind": "spreadsheet",
            "sheets": [str(n) for n in names],
            "rows": int(len(first.index)),
            "columns": [str(c) for c in first.columns],
        }

    if stored.mimetype.startswith("image/"):
        try:
            with Image.open(io.BytesIO(stored.data)) as img:
                return {"kind": "image", "width": img.width, "height": img.height, "format": img.format}
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as e:
            raise FileProcessingError(f"Invalid image data: {e!s}", cause=e) from e

    raise FileProcessingError(f"Unsupported stored file type: {stored.mimetype}")


def process_file(db: Session, stored: StoredFile) -> StoredFile:
    """
    Run the processing step for a stored file and commit its final status.

    processed: metadata extracted, progress 100.
    failed: error message recorded, progress 0, owner notified.
    """
    started = datetime.now(timezone.utc)
    stored.status = "processing"
    stored.processing_progress = 0
    stored.error_message = None
    db.flush()

    try:
        details = extract_metadata(stored)
    except FileProcessingError as e:
        logger.warning("Processing failed for file id=%s (%s): %s", stored.id, stored.originalname, e.message)
        stored.status = "failed"
        stored.processing_progress = 0
        stored.error_message = f"Processing failed: {e.message}"
        create_user_notification(
            db,
            stored.user_id,
            title="File processing failed",
            message=f"{stored.originalname} could not be processed: {e.message}",
            type="error",
            metadata={"file_id": stored.id},
        )
    else:
        stored.status = "processed"
        stored.processing_progress = 100
        stored.meta_data = {
            **(stored.meta_data or {}),
            **details,
            "processing_started_at": started.isoformat(),
            "processed_at": datetime.now(timezone.utc).isoformat(),
        }
        logger.info("Processed file id=%s (%s)", stored.id, stored.originalname)

    db.commit()
    db.refresh(stored)
    return stored
