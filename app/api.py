"""HTTP route definitions for the service."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional
from uuid import uuid4

from fastapi import APIRouter, Body, Depends, File, HTTPException, UploadFile, status

from app.schemas import (
    ChartFrameModel,
    ChartRequest,
    DisplaySelection,
    FileUploadResponse,
    FileUploadResult,
    ReadingModel,
    SensorSummary,
    SignalReadings,
    TransformModel,
    UploadStatus,
)
from models.signals import SensorData
from services.errors import AxisLayoutError, ChartNotConfiguredError, NoDataError, ReadError
from services.ingestion import accepts_content_type
from services.scaling import ZoomTransform
from services.workspace import SignalWorkspace, build_default_workspace
from settings import get_settings
from storage.upload_store import UploadStore, build_default_store

router = APIRouter()

HTTP_422_UNPROCESSABLE = 422


def get_workspace() -> SignalWorkspace:
    return build_default_workspace()


def get_store() -> UploadStore:
    return build_default_store()


def _require_data(workspace: SignalWorkspace) -> SensorData:
    try:
        return workspace.require_data()
    except NoDataError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc


@router.post(
    "/files",
    response_model=FileUploadResponse,
    summary="Upload sensor logs; the last accepted CSV becomes the current data.",
)
async def upload_files(
    files: List[UploadFile] = File(..., description="Sensor log CSV files."),
    workspace: SignalWorkspace = Depends(get_workspace),
    store: UploadStore = Depends(get_store),
) -> FileUploadResponse:
    staged: list[tuple[UploadFile, str, Optional[bytes]]] = []
    for file in files:
        filename = Path(file.filename or "upload.csv").name
        contents: Optional[bytes] = None
        if accepts_content_type(file.content_type, filename):
            contents = await file.read()
            await file.close()
            if not contents:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail=f"Uploaded file {filename} is empty.",
                )
        staged.append((file, filename, contents))

    results: list[FileUploadResult] = []
    for file, filename, contents in staged:
        if contents is None:
            results.append(
                FileUploadResult(
                    filename=filename,
                    content_type=file.content_type,
                    status=UploadStatus.skipped,
                )
            )
            continue

        file_id = str(uuid4())
        key = f"{file_id}/{filename}"
        store.put_object(key, contents)

        try:
            data = await workspace.load(key)
        except ReadError as exc:
            raise HTTPException(
                status_code=HTTP_422_UNPROCESSABLE,
                detail=f"{exc} [{exc.code}]",
            ) from exc

        if data is None:
            results.append(
                FileUploadResult(
                    filename=filename,
                    content_type=file.content_type,
                    file_id=file_id,
                    status=UploadStatus.superseded,
                )
            )
            continue

        results.append(
            FileUploadResult(
                filename=filename,
                content_type=file.content_type,
                file_id=file_id,
                status=UploadStatus.accepted,
                sensor_count=len(data),
                signal_count=sum(len(sensor.signals) for sensor in data.values()),
            )
        )
    return FileUploadResponse(files=results)


@router.get(
    "/sensors",
    response_model=List[SensorSummary],
    summary="List the sensors and signals of the current data.",
)
async def list_sensors(
    workspace: SignalWorkspace = Depends(get_workspace),
) -> List[SensorSummary]:
    data = _require_data(workspace)
    return [SensorSummary.from_sensor(sensor) for sensor in data.values()]


@router.get(
    "/sensors/{token}/signals/{dim}",
    response_model=SignalReadings,
    summary="Fetch the readings of one signal.",
)
async def get_signal(
    token: str,
    dim: int,
    workspace: SignalWorkspace = Depends(get_workspace),
) -> SignalReadings:
    data = _require_data(workspace)
    sensor = data.get(token)
    if sensor is None or not 0 <= dim < len(sensor.signals):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Signal {token!r} dimension {dim} not found.",
        )
    signal = sensor.signal(dim)
    return SignalReadings(
        name=signal.name,
        sensor=signal.sensor,
        dim=signal.dim,
        readings=[ReadingModel.from_reading(reading) for reading in signal.readings],
    )


@router.get("/display", response_model=DisplaySelection, summary="Current display selection.")
async def get_display(
    workspace: SignalWorkspace = Depends(get_workspace),
) -> DisplaySelection:
    return DisplaySelection(signals={k: dict(v) for k, v in workspace.display.items()})


@router.put("/display", response_model=DisplaySelection, summary="Replace the display selection.")
async def put_display(
    selection: DisplaySelection,
    workspace: SignalWorkspace = Depends(get_workspace),
) -> DisplaySelection:
    workspace.set_display(selection.signals)
    return selection


@router.post(
    "/chart",
    response_model=ChartFrameModel,
    summary="Set up scales and axes for the displayed signals.",
)
async def setup_chart(
    request: Optional[ChartRequest] = Body(default=None),
    workspace: SignalWorkspace = Depends(get_workspace),
) -> ChartFrameModel:
    settings = get_settings()
    width = request.width if request and request.width else settings.chart_width
    height = request.height if request and request.height else settings.chart_height
    _require_data(workspace)
    try:
        frame = workspace.setup_chart(width, height)
    except (AxisLayoutError, ValueError) as exc:
        raise HTTPException(
            status_code=HTTP_422_UNPROCESSABLE,
            detail=str(exc),
        ) from exc
    return ChartFrameModel.model_validate(frame)


@router.post(
    "/chart/zoom",
    response_model=ChartFrameModel,
    summary="Apply a zoom/pan transform and redraw.",
)
async def zoom_chart(
    transform: TransformModel,
    workspace: SignalWorkspace = Depends(get_workspace),
) -> ChartFrameModel:
    try:
        frame = workspace.zoom(ZoomTransform(k=transform.k, x=transform.x, y=transform.y))
    except ChartNotConfiguredError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    return ChartFrameModel.model_validate(frame)


@router.get(
    "/health",
    summary="Health check endpoint.",
    status_code=status.HTTP_200_OK,
)
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.get(
    "/",
    summary="Root endpoint mirrors health information.",
    status_code=status.HTTP_200_OK,
)
async def root() -> dict[str, str]:
    return {"status": "ok", "detail": "See /health for service status."}
