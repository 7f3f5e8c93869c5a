"""Request/response schemas for chart endpoints."""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

ChartType = Literal["bar", "line", "pie", "doughnut", "radar", "polarArea", "scatter"]


class ChartPayload(BaseModel):
    """
    Body for creating or fully replacing a chart.

    data is validated by the chart service (labels/datasets shape, numeric
    values) rather than by Pydantic so the error messages stay specific.
    """

    title: str = Field(default="", max_length=255)
    chart_type: str = Field(default="", description="One of bar, line, pie, doughnut, radar, polarArea, scatter.")
    data: Any = None
    options: dict[str, Any] | None = None


class ChartPatch(BaseModel):
    """Partial chart update; omitted fields are left unchanged."""

    title: str | None = Field(default=None, max_length=255)
    chart_type: str | None = None
    data: Any = None
    options: dict[str, Any] | None = None


class ChartConfig(BaseModel):
    """How to turn a file's rows into labels and one dataset."""

    x_axis: int = Field(default=0, ge=0, description="Column index used for labels.")
    y_axis: int = Field(default=1, ge=0, description="Column index used for values.")
    dataset_label: str = Field(default="Values", max_length=255)
    background_color: str | None = None
    border_color: str | None = None


class GenerateChartRequest(BaseModel):
    """Body for generating a chart from an uploaded file."""

    title: str | None = Field(default=None, max_length=255)
    chart_type: ChartType = "bar"
    chart_config: ChartConfig = Field(default_factory=ChartConfig)


class ChartOut(BaseModel):
    """Saved chart."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    chart_type: str
    data: dict[str, Any]
    options: dict[str, Any] = Field(default_factory=dict)
    user_id: int
    source_file_id: int | None = None
    image_url: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
