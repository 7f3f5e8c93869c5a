"""Unit tests for app.services.transcode: accepted types and per-MIME transcoding."""

import io
import json
import unittest
from unittest.mock import patch

from PIL import Image

from app.services.transcode import (
    CSV_MIME,
    JPEG_MIME,
    XLSX_MIME,
    FileProcessingError,
    UnsupportedFileTypeError,
    normalize_mimetype,
    transcode_upload,
    validate_upload_type,
)


def _png(width: int, height: int) -> bytes:
    out = io.BytesIO()
    Image.new("RGB", (width, height), color=(10, 120, 200)).save(out, format="PNG")
    return out.getvalue()


class TestValidateUploadType(unittest.TestCase):
    """Extension and declared MIME type must match one of the accepted pairs."""

    def test_accepts_matching_pairs(self) -> None:
        self.assertEqual(validate_upload_type("data.csv", "text/csv"), CSV_MIME)
        self.assertEqual(validate_upload_type("Report.XLSX", XLSX_MIME), XLSX_MIME)
        self.assertEqual(validate_upload_type("photo.jpg", "image/jpeg"), JPEG_MIME)
        self.assertEqual(validate_upload_type("photo.jpeg", "image/jpeg"), JPEG_MIME)

    def test_mimetype_parameters_are_ignored(self) -> None:
        self.assertEqual(validate_upload_type("data.csv", "text/csv; charset=utf-8"), CSV_MIME)

    def test_rejects_mismatched_extension(self) -> None:
        with self.assertRaises(UnsupportedFileTypeError):
            validate_upload_type("data.csv", "application/json")

    def test_rejects_unknown_extension(self) -> None:
        with self.assertRaises(UnsupportedFileTypeError) as ctx:
            validate_upload_type("notes.txt", "text/plain")
        self.assertIn("Allowed types", ctx.exception.message)

    def test_rejects_missing_extension(self) -> None:
        with self.assertRaises(UnsupportedFileTypeError):
            validate_upload_type("README", "text/csv")

    def test_normalize_mimetype(self) -> None:
        self.assertEqual(normalize_mimetype(" Text/CSV ; charset=UTF-8"), "text/csv")
        self.assertEqual(normalize_mimetype(None), "")


class TestTranscodeCsv(unittest.TestCase):
    def test_csv_becomes_json_rows_of_strings(self) -> None:
        content = b"month,revenue\nJan,100\nFeb,\n"
        result = transcode_upload("sales.csv", "text/csv", content)
        self.assertEqual(result.mimetype, CSV_MIME)
        rows = json.loads(result.data)
        self.assertEqual(rows, [{"month": "Jan", "revenue": "100"}, {"month": "Feb", "revenue": ""}])
        self.assertEqual(result.details["rows"], 2)

    def test_latin1_csv_is_decoded(self) -> None:
        content = "name,city\nJosé,Paris\n".encode("latin-1")
        rows = json.loads(transcode_upload("people.csv", "text/csv", content).data)
        self.assertEqual(rows[0]["name"], "José")

    def test_empty_csv_raises(self) -> None:
        with self.assertRaises(FileProcessingError):
            transcode_upload("empty.csv", "text/csv", b"\n")


class TestTranscodeJson(unittest.TestCase):
    def test_json_is_reserialized(self) -> None:
        content = b'[ {"a" : 1},\n {"a": 2} ]'
        result = transcode_upload("data.json", "application/json", content)
        self.assertEqual(json.loads(result.data), [{"a": 1}, {"a": 2}])
        self.assertEqual(result.data, b'[{"a": 1}, {"a": 2}]')

    def test_invalid_json_raises(self) -> None:
        with self.assertRaises(FileProcessingError) as ctx:
            transcode_upload("broken.json", "application/json", b"{not json")
        self.assertIn("Invalid JSON", ctx.exception.message)


class TestTranscodeImage(unittest.TestCase):
    def test_png_is_resized_and_reencoded_as_jpeg(self) -> None:
        result = transcode_upload("chart.png", "image/png", _png(1600, 400))
        self.assertEqual(result.mimetype, JPEG_MIME)
        self.assertEqual(result.details["source_mimetype"], "image/png")
        with Image.open(io.BytesIO(result.data)) as img:
            self.assertEqual(img.format, "JPEG")
            self.assertEqual(img.size, (800, 200))

    def test_custom_width(self) -> None:
        result = transcode_upload("chart.png", "image/png", _png(400, 400), image_max_width=100)
        with Image.open(io.BytesIO(result.data)) as img:
            self.assertEqual(img.size, (100, 100))

    def test_undecodable_image_raises(self) -> None:
        with self.assertRaises(FileProcessingError):
            transcode_upload("photo.jpg", "image/jpeg", b"definitely not a jpeg")

    def test_oversized_dimensions_raise(self) -> None:
        # Pillow refuses images above twice MAX_IMAGE_PIXELS.
        with patch.object(Image, "MAX_IMAGE_PIXELS", 1000):
            with self.assertRaises(FileProcessingError) as ctx:
                transcode_upload("huge.png", "image/png", _png(100, 100))
        self.assertIn("Invalid image file", ctx.exception.message)


class TestTranscodeSpreadsheet(unittest.TestCase):
    def test_spreadsheet_is_stored_unchanged(self) -> None:
        content = b"PK\x03\x04 pretend workbook bytes"
        result = transcode_upload("book.xlsx", XLSX_MIME, content)
        self.assertEqual(result.data, content)
        self.assertEqual(result.mimetype, XLSX_MIME)


if __name__ == "__main__":
    unittest.main()
