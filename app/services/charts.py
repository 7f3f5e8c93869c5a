"""Chart payload validation and file-row to chart-data conversion."""

import logging
import math
from typing import Any

from app.models.chart import CHART_TYPES

logger = logging.getLogger(__name__)

PNG_DATA_URL_PREFIX = "data:image/png;base64,"

DEFAULT_BACKGROUND_COLORS = [
    "rgba(75, 192, 192, 0.6)",
    "rgba(54, 162, 235, 0.6)",
    "rgba(255, 206, 86, 0.6)",
    "rgba(153, 102, 255, 0.6)",
]
DEFAULT_BORDER_COLORS = [
    "rgba(75, 192, 192, 1)",
    "rgba(54, 162, 235, 1)",
    "rgba(255, 206, 86, 1)",
    "rgba(153, 102, 255, 1)",
]
GENERATED_BACKGROUND_COLOR = "rgba(75, 192, 192, 0.2)"
GENERATED_BORDER_COLOR = "rgba(75, 192, 192, 1)"


class ChartDataError(Exception):
    """Raised when a chart payload or a file's rows cannot form a valid chart."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


def _is_number(value: Any) -> bool:
    """True for finite int/float values; booleans and strings are not numbers."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def _to_number(value: Any) -> float | None:
    """Coerce a cell to a number for chart values; None when it is not numeric."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value) if math.isfinite(value) else None
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
        return number if math.isfinite(number) else None
    return None


def _as_number(value: float) -> int | float:
    return int(value) if float(value).is_integer() else value


def validate_title(title: str | None) -> str:
    if not title or not title.strip():
        raise ChartDataError("Chart title is required")
    return title.strip()


def validate_chart_type(chart_type: str | None) -> str:
    if chart_type not in CHART_TYPES:
        raise ChartDataError("Invalid chart type")
    return chart_type


def _color_list(value: Any, default: list[str]) -> list[str]:
    if isinstance(value, list):
        return [str(v) for v in value]
    return list(default)


def _number_or(value: Any, default: int | float) -> int | float:
    # 0 and non-numeric values fall back to the default.
    number = _to_number(value)
    return _as_number(number) if number else default


def normalize_chart_data(data: Any) -> dict[str, Any]:
    """
    Validate labels/datasets and return the normalized structure to persist.

    Every dataset must carry one numeric value per label. Labels become
    strings; dataset styling falls back to defaults; image is kept only when
    it is a PNG data URL.
    """
    if (
        not isinstance(data, dict)
        or not isinstance(data.get("labels"), list)
        or not isinstance(data.get("datasets"), list)
    ):
        raise ChartDataError("Invalid chart data structure")

    labels = data["labels"]
    datasets = []
    for dataset in data["datasets"]:
        if not isinstance(dataset, dict) or not isinstance(dataset.get("data"), list):
            raise ChartDataError("Invalid dataset structure: data must be an array")
        values = dataset["data"]
        if len(values) != len(labels):
            raise ChartDataError("Labels and data length mismatch")
        if not all(_is_number(v) for v in values):
            raise ChartDataError("Dataset data must contain only valid numbers")
        fill = dataset.get("fill")
        datasets.append(
            {
                "label": dataset.get("label") or "Dataset",
                "data": list(values),
                "backgroundColor": _color_list(dataset.get("backgroundColor"), DEFAULT_BACKGROUND_COLORS),
                "borderColor": _color_list(dataset.get("borderColor"), DEFAULT_BORDER_COLORS),
                "borderWidth": _number_or(dataset.get("borderWidth"), 1),
                "tension": _number_or(dataset.get("tension"), 0),
                "fill": fill if isinstance(fill, bool) else False,
            }
        )

    image = data.get("image")
    if isinstance(image, str) and not image.startswith(PNG_DATA_URL_PREFIX):
        logger.warning("Ignoring chart image that is not a PNG data URL")
        image = None
    elif not isinstance(image, str):
        image = None

    return {
        "labels": [str(label) for label in labels],
        "datasets": datasets,
        "image": image,
    }


def default_options(title: str) -> dict[str, Any]:
    """Options used when the client sends none."""
    return {
        "responsive": True,
        "plugins": {
            "legend": {"position": "top"},
            "title": {"display": True, "text": title},
        },
    }


def _cell(row: Any, index: int) -> Any:
    if isinstance(row, list):
        return row[index] if index < len(row) else None
    keys = list(row.keys())
    return row[keys[index]] if index < len(keys) else None


def rows_to_chart_data(
    rows: list[Any],
    x_axis: int = 0,
    y_axis: int = 1,
    dataset_label: str = "Values",
    background_color: str | None = None,
    border_color: str | None = None,
) -> dict[str, Any]:
    """
    Build labels and a single dataset from file rows.

    label = row[x_axis], value = row[y_axis]; positional for list rows and by
    key order for object rows. Rows with a missing label or a non-numeric
    value are skipped.
    """
    if not rows:
        raise ChartDataError("Invalid file data: Must be a non-empty array or object")

    labels: list[str] = []
    values: list[int | float] = []
    for index, row in enumerate(rows):
        if not row:
            continue
        if not isinstance(row, (list, dict)):
            raise ChartDataError(f"Invalid row data at index {index}: Must be array or object")
        label = _cell(row, x_axis)
        value = _to_number(_cell(row, y_axis))
        if label is None or value is None:
            continue
        labels.append(str(label))
        values.append(_as_number(value))

    if not labels:
        raise ChartDataError("No valid data points extracted from file")

    return {
        "labels": labels,
        "datasets": [
            {
                "label": dataset_label,
                "data": values,
                "backgroundColor": background_color or GENERATED_BACKGROUND_COLOR,
                "borderColor": border_color or GENERATED_BORDER_COLOR,
                "borderWidth": 1,
            }
        ],
        "image": None,
    }
