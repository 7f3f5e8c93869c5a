"""Chart routes: CRUD, generation from an uploaded file, and PNG download."""

import base64
import binascii
import logging
from typing import Annotated, Any
from urllib.parse import quote

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import Response
from sqlalchemy.orm import Session

from app.api.v1.auth import get_current_user
from app.api.v1.files import ensure_can_read, get_file_or_404
from app.core.database import get_db
from app.models import Chart
from app.schemas.auth import CurrentUser
from app.schemas.charts import ChartOut, ChartPatch, ChartPayload, GenerateChartRequest
from app.schemas.common import ApiResponse
from app.services.analytics import record_event
from app.services.charts import (
    PNG_DATA_URL_PREFIX,
    ChartDataError,
    default_options,
    normalize_chart_data,
    rows_to_chart_data,
    validate_chart_type,
    validate_title,
)
from app.services.processing import load_rows
from app.services.transcode import FileProcessingError

logger = logging.getLogger(__name__)

router = APIRouter()


def _bad_request(e: ChartDataError | FileProcessingError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)


def _get_own_chart(db: Session, chart_id: int, user: CurrentUser) -> Chart:
    chart = db.get(Chart, chart_id)
    if chart is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Chart not found")
    if chart.user_id != user.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not authorized to access this chart")
    return chart


def _dimensions(rows: list[Any], x_axis: int, y_axis: int) -> str | None:
    """'<value column> vs <label column>' for object rows."""
    first = next((r for r in rows if isinstance(r, dict) and r), None)
    if first is None:
        return None
    keys = list(first.keys())
    if x_axis >= len(keys) or y_axis >= len(keys):
        return None
    return f"{keys[y_axis]} vs {keys[x_axis]}"


@router.get("", response_model=ApiResponse[list[ChartOut]])
def list_charts(
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
) -> ApiResponse[list[ChartOut]]:
    """The caller's charts, newest first."""
    charts = (
        db.query(Chart)
        .filter(Chart.user_id == current_user.id)
        .order_by(Chart.created_at.desc(), Chart.id.desc())
        .all()
    )
    return ApiResponse(data=[ChartOut.model_validate(c) for c in charts])


@router.post("", response_model=ApiResponse[ChartOut], status_code=status.HTTP_201_CREATED)
def create_chart(
    body: ChartPayload,
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
) -> ApiResponse[ChartOut]:
    try:
        title = validate_title(body.title)
        chart_type = validate_chart_type(body.chart_type)
        data = normalize_chart_data(body.data)
    except ChartDataError as e:
        raise _bad_request(e) from e

    chart = Chart(
        title=title,
        chart_type=chart_type,
        data=data,
        options=body.options or default_options(title),
        user_id=current_user.id,
    )
    db.add(chart)
    db.commit()
    db.refresh(chart)
    logger.info("Created chart id=%s type=%s user=%s", chart.id, chart_type, current_user.id)
    return ApiResponse(message="Chart created successfully", data=ChartOut.model_validate(chart))


@router.post(
    "/generate/{file_id}",
    response_model=ApiResponse[ChartOut],
    status_code=status.HTTP_201_CREATED,
)
def generate_chart(
    file_id: int,
    body: GenerateChartRequest,
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
) -> ApiResponse[ChartOut]:
    """
    Build a chart from an uploaded CSV, JSON or spreadsheet file.

    Labels come from column `chart_config.x_axis` and values from
    `chart_config.y_axis`; rows without a label or a numeric value are skipped.
    """
    stored = get_file_or_404(db, file_id)
    ensure_can_read(stored, current_user)
    config = body.chart_config
    try:
        rows = load_rows(stored)
        data = rows_to_chart_data(
            rows,
            x_axis=config.x_axis,
            y_axis=config.y_axis,
            dataset_label=config.dataset_label,
            background_color=config.background_color,
            border_color=config.border_color,
        )
        title = validate_title(body.title or f"Chart from {stored.originalname}")
    except (ChartDataError, FileProcessingError) as e:
        raise _bad_request(e) from e

    chart = Chart(
        title=title,
        chart_type=body.chart_type,
        data=data,
        options=default_options(title),
        user_id=current_user.id,
        source_file_id=stored.id,
    )
    db.add(chart)
    record_event(
        db,
        current_user.id,
        "analyze",
        file_id=stored.id,
        chart_type=body.chart_type,
        dimensions=_dimensions(rows, config.x_axis, config.y_axis),
    )
    db.commit()
    db.refresh(chart)
    logger.info(
        "Generated chart id=%s from file id=%s points=%d",
        chart.id,
        stored.id,
        len(data["labels"]),
    )
    return ApiResponse(message="Chart generated successfully", data=ChartOut.model_validate(chart))


@router.get("/{chart_id}", response_model=ApiResponse[ChartOut])
def get_chart(
    chart_id: int,
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
) -> ApiResponse[ChartOut]:
    return ApiResponse(data=ChartOut.model_validate(_get_own_chart(db, chart_id, current_user)))


@router.put("/{chart_id}", response_model=ApiResponse[ChartOut])
def replace_chart(
    chart_id: int,
    body: ChartPayload,
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
) -> ApiResponse[ChartOut]:
    chart = _get_own_chart(db, chart_id, current_user)
    try:
        title = validate_title(body.title)
        chart_type = validate_chart_type(body.chart_type)
        data = normalize_chart_data(body.data)
    except ChartDataError as e:
        raise _bad_request(e) from e
    chart.title = title
    chart.chart_type = chart_type
    chart.data = data
    chart.options = body.options or default_options(title)
    db.commit()
    db.refresh(chart)
    return ApiResponse(message="Chart updated successfully", data=ChartOut.model_validate(chart))


@router.patch("/{chart_id}", response_model=ApiResponse[ChartOut])
def patch_chart(
    chart_id: int,
    body: ChartPatch,
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
) -> ApiResponse[ChartOut]:
    chart = _get_own_chart(db, chart_id, current_user)
    changes = body.model_dump(exclude_unset=True)
    try:
        if "title" in changes:
            chart.title = validate_title(changes["title"])
        if "chart_type" in changes:
            chart.chart_type = validate_chart_type(changes["chart_type"])
        if "data" in changes:
            chart.data = normalize_chart_data(changes["data"])
    except ChartDataError as e:
        raise _bad_request(e) from e
    if changes.get("options") is not None:
        chart.options = changes["options"]
    db.commit()
    db.refresh(chart)
    return ApiResponse(message="Chart updated successfully", data=ChartOut.model_validate(chart))


@router.delete("/{chart_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_chart(
    chart_id: int,
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
) -> Response:
    chart = _get_own_chart(db, chart_id, current_user)
    db.delete(chart)
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{chart_id}/download")
def download_chart(
    chart_id: int,
    db: Annotated[Session, Depends(get_db)],
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
) -> Response:
    """The chart's client-rendered PNG as an attachment."""
    chart = _get_own_chart(db, chart_id, current_user)
    image = chart.image_url
    if not image or not image.startswith(PNG_DATA_URL_PREFIX):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Chart image not available")
    try:
        png = base64.b64decode(image[len(PNG_DATA_URL_PREFIX):], validate=True)
    except (binascii.Error, ValueError) as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Chart image is corrupt") from e
    filename = f"{chart.title.replace(' ', '_')}_chart.png"
    return Response(
        content=png,
        media_type="image/png",
        headers={"Content-Disposition": f"attachment; filename*=UTF-8''{quote(filename)}"},
    )
