"""Upload validation and transcoding: branch on MIME type, return the payload to store."""

import io
import json
import logging
from dataclasses import dataclass
from pathlib import PurePosixPath

import pandas as pd
from PIL import Image, UnidentifiedImageError

logger = logging.getLogger(__name__)

XLSX_MIME = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
XLS_MIME = "application/vnd.ms-excel"
CSV_MIME = "text/csv"
JSON_MIME = "application/json"
JPEG_MIME = "image/jpeg"
PNG_MIME = "image/png"

# Extension -> MIME types accepted for it. The declared type must match the extension.
MIME_TYPES_BY_EXTENSION: dict[str, frozenset[str]] = {
    ".xlsx": frozenset({XLSX_MIME}),
    ".xls": frozenset({XLS_MIME}),
    ".csv": frozenset({CSV_MIME}),
    ".json": frozenset({JSON_MIME}),
    ".jpeg": frozenset({JPEG_MIME}),
    ".jpg": frozenset({JPEG_MIME}),
    ".png": frozenset({PNG_MIME}),
}

SPREADSHEET_MIMES = frozenset({XLSX_MIME, XLS_MIME})
# Payloads stored as a JSON array of row records.
ROW_JSON_MIMES = frozenset({CSV_MIME, JSON_MIME})


class UnsupportedFileTypeError(Exception):
    """Raised when the extension/MIME pair is not an accepted upload type."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class FileProcessingError(Exception):
    """Raised when an upload cannot be decoded or re-encoded."""

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        self.message = message
        self.cause = cause
        super().__init__(message)


@dataclass(frozen=True)
class TranscodeResult:
    """Payload to persist and the MIME type describing it."""

    data: bytes
    mimetype: str
    details: dict


def normalize_mimetype(mimetype: str | None) -> str:
    """Lower-case and drop parameters (e.g. '; charset=utf-8')."""
    return (mimetype or "").split(";")[0].strip().lower()


def validate_upload_type(filename: str, mimetype: str) -> str:
    """
    Check the extension/MIME pair against the accepted upload types.
    Returns the normalized MIME type; raises UnsupportedFileTypeError otherwise.
    """
    ext = PurePosixPath(filename or "").suffix.lower()
    mime = normalize_mimetype(mimetype)
    allowed = MIME_TYPES_BY_EXTENSION.get(ext, frozenset())
    if mime not in allowed:
        raise UnsupportedFileTypeError(
            f"Invalid file type for {filename or '<unnamed>'}. "
            "Allowed types: Excel, CSV, JSON, JPEG, PNG."
        )
    return mime


def resize_image(content: bytes, max_width: int, quality: int) -> tuple[bytes, dict]:
    """Resize to max_width (aspect preserved) and re-encode as JPEG."""
    try:
        with Image.open(io.BytesIO(content)) as img:
            original = {"width": img.width, "height": img.height, "format": img.format}
            height = max(1, round(img.height * max_width / img.width))
            resized = img.convert("RGB").resize((max_width, height), Image.Resampling.LANCZOS)
    except (
        UnidentifiedImageError,
        Image.DecompressionBombError,
        OSError,
        ValueError,
        ZeroDivisionError,
    ) as e:
        raise FileProcessingError(f"Invalid image file: {e!s}", cause=e) from e
    out = io.BytesIO()
    resized.save(out, format="JPEG", quality=quality)
    return out.getvalue(), {
        "original": original,
        "width": resized.width,
        "height": resized.height,
    }


def read_csv_frame(content: bytes) -> pd.DataFrame:
    """Parse CSV with every cell as a string; tries UTF-8 then Latin-1."""
    for encoding in ("utf-8-sig", "latin-1"):
        try:
            return pd.read_csv(
                io.BytesIO(content),
                dtype=str,
                keep_default_na=False,
                encoding=encoding,
            )
        except UnicodeDecodeError:
            continue
        except (pd.errors.ParserError, pd.errors.EmptyDataError) as e:
            raise FileProcessingError(f"Invalid CSV file: {e!s}", cause=e) from e
    raise FileProcessingError("Invalid CSV file: unsupported text encoding")


def csv_to_records(content: bytes) -> list[dict[str, str]]:
    """CSV bytes -> list of row records keyed by header."""
    frame = read_csv_frame(content)
    return frame.to_dict(orient="records")


def reserialize_json(content: bytes) -> bytes:
    """Parse and re-serialize a JSON document (compact form)."""
    try:
        parsed = json.loads(content.decode("utf-8-sig"))
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise FileProcessingError(f"Invalid JSON file: {e!s}", cause=e) from e
    return json.dumps(parsed, ensure_ascii=False).encode("utf-8")


def transcode_upload(
    filename: str,
    mimetype: str,
    content: bytes,
    *,
    image_max_width: int = 800,
    image_quality: int = 80,
) -> TranscodeResult:
    """
    Turn an accepted upload into the payload to persist.

    - image/*: resized and re-encoded as JPEG
    - text/csv: parsed into row records, stored as a JSON array
    - application/json: validated and re-serialized
    - spreadsheets: stored unchanged (parsed later on demand)
    """
    mime = validate_upload_type(filename, mimetype)

    if mime.startswith("image/"):
        data, details = resize_image(content, image_max_width, image_quality)
        logger.info("Resized image %s: %d -> %d bytes", filename, len(content), len(data))
        return TranscodeResult(data=data, mimetype=JPEG_MIME, details={"image": details, "source_mimetype": mime})

    if mime == CSV_MIME:
        records = csv_to_records(content)
        data = json.dumps(records, ensure_ascii=False).encode("utf-8")
        logger.info("Parsed CSV %s: rows=%d", filename, len(records))
        return TranscodeResult(data=data, mimetype=mime, details={"rows": len(records)})

    if mime == JSON_MIME:
        data = reserialize_json(content)
        return TranscodeResult(data=data, mimetype=mime, details={})

    # Spreadsheets pass through untouched.
    return TranscodeResult(data=content, mimetype=mime, details={})
