"""Pydantic schemas for the HTTP API layer."""

from __future__ import annotations

import math
from enum import Enum
from typing import Dict, List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field

from models.signals import Reading, Sensor, SensorKind, Signal


class UploadStatus(str, Enum):
    """Outcome of one file in an upload request."""

    accepted = "accepted"
    superseded = "superseded"
    skipped = "skipped"


class FileUploadResult(BaseModel):
    filename: str
    content_type: Optional[str] = None
    status: UploadStatus
    file_id: Optional[str] = Field(
        default=None, description="Generated identifier for a stored CSV file."
    )
    sensor_count: Optional[int] = Field(default=None, ge=0)
    signal_count: Optional[int] = Field(default=None, ge=0)


class FileUploadResponse(BaseModel):
    """Per-file results, in the order the files were sent."""

    files: List[FileUploadResult] = Field(default_factory=list)


class ExtentsModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    x_min: Optional[float] = None
    x_max: Optional[float] = None
    y_min: Optional[float] = None
    y_max: Optional[float] = None


class SignalSummary(BaseModel):
    name: str
    dim: int = Field(..., ge=0)
    reading_count: int = Field(..., ge=0)
    extents: ExtentsModel

    @classmethod
    def from_signal(cls, signal: Signal) -> "SignalSummary":
        return cls(
            name=signal.name,
            dim=signal.dim,
            reading_count=len(signal),
            extents=ExtentsModel.model_validate(signal.extents()),
        )


class SensorSummary(BaseModel):
    token: str
    kind: SensorKind
    is_message: bool
    signals: List[SignalSummary] = Field(default_factory=list)

    @classmethod
    def from_sensor(cls, sensor: Sensor) -> "SensorSummary":
        return cls(
            token=sensor.token,
            kind=sensor.kind,
            is_message=sensor.is_message,
            signals=[SignalSummary.from_signal(signal) for signal in sensor.signals],
        )


class ReadingModel(BaseModel):
    """A sample; non-finite ticks and values are reported as ``null``."""

    tick: Optional[float] = None
    value: Union[float, str, None] = None

    @classmethod
    def from_reading(cls, reading: Reading) -> "ReadingModel":
        value = reading.value
        if not isinstance(value, str) and not math.isfinite(value):
            value = None
        tick = reading.tick if math.isfinite(reading.tick) else None
        return cls(tick=tick, value=value)


class SignalReadings(BaseModel):
    name: str
    sensor: str
    dim: int
    readings: List[ReadingModel] = Field(default_factory=list)


class DisplaySelection(BaseModel):
    """Visibility per sensor and dimension; missing entries are hidden."""

    signals: Dict[str, Dict[int, bool]] = Field(default_factory=dict)


class ChartRequest(BaseModel):
    """Pixel size of the host element the chart is drawn into."""

    width: Optional[float] = Field(default=None, gt=0)
    height: Optional[float] = Field(default=None, gt=0)


class TransformModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    k: float = 1.0
    x: float = 0.0
    y: float = 0.0


class AxisModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    orientation: str
    offset: float
    domain: Tuple[float, float]
    ticks: List[float]
    labels: List[str]
    sensor: Optional[str] = None


class LinePathModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    signal: str
    sensor: str
    dim: int
    css_class: str
    d: str


class ChartFrameModel(BaseModel):
    """Scale domains, axes and line geometry for one rendered frame."""

    model_config = ConfigDict(from_attributes=True)

    width: float
    height: float
    transform: TransformModel
    x_axis: AxisModel
    y_axes: List[AxisModel] = Field(default_factory=list)
    paths: List[LinePathModel] = Field(default_factory=list)
