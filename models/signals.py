"""Domain models for parsed sensor logs."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Union

SYSLOG_TOKEN = "S"

# Decimal or exponent notation, plus the spelled-out infinities.
_NUMBER = re.compile(r"[+-]?(?:(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?|Infinity)\Z")
# Unsigned hex, octal and binary integer literals.
_RADIX_NUMBER = re.compile(r"0[xXoObB][0-9a-fA-F]+\Z")

Value = Union[float, str]


def to_number(raw: str) -> float:
    """Coerce a CSV field to a float; non-numeric input becomes NaN.

    Blank input coerces to ``0.0``.
    """
    candidate = raw.strip()
    if not candidate:
        return 0.0
    if _RADIX_NUMBER.match(candidate):
        try:
            return float(int(candidate, 0))
        except ValueError:
            return math.nan
    if not _NUMBER.match(candidate):
        return math.nan
    if candidate.endswith("Infinity"):
        return -math.inf if candidate.startswith("-") else math.inf
    return float(candidate)


@dataclass(frozen=True, slots=True)
class Reading:
    """A single sample of one signal."""

    tick: float
    value: Value


@dataclass(frozen=True, slots=True)
class Extents:
    """Bounding box of a set of readings; ``None`` where nothing was finite."""

    x_min: Optional[float] = None
    x_max: Optional[float] = None
    y_min: Optional[float] = None
    y_max: Optional[float] = None

    @classmethod
    def of(cls, readings: Iterable[Reading]) -> "Extents":
        x_min = x_max = y_min = y_max = None
        for reading in readings:
            tick = reading.tick
            if math.isfinite(tick):
                if x_min is None or tick < x_min:
                    x_min = tick
                if x_max is None or tick > x_max:
                    x_max = tick
            value = reading.value
            if isinstance(value, str) or not math.isfinite(value):
                continue
            if y_min is None or value < y_min:
                y_min = value
            if y_max is None or value > y_max:
                y_max = value
        return cls(x_min=x_min, x_max=x_max, y_min=y_min, y_max=y_max)

    def union(self, other: "Extents") -> "Extents":
        return Extents(
            x_min=_pick(min, self.x_min, other.x_min),
            x_max=_pick(max, self.x_max, other.x_max),
            y_min=_pick(min, self.y_min, other.y_min),
            y_max=_pick(max, self.y_max, other.y_max),
        )


def _pick(choose, left: Optional[float], right: Optional[float]) -> Optional[float]:
    if left is None:
        return right
    if right is None:
        return left
    return choose(left, right)


class Signal:
    """One dimension's time series for a sensor."""

    def __init__(self, sensor: str, dim: int, owner: Optional["Sensor"] = None) -> None:
        self.sensor = sensor
        self.dim = dim
        self.owner = owner
        self._readings: List[Reading] = []
        self._extents: Optional[Extents] = None
        self._frozen = False

    @property
    def name(self) -> str:
        return f"{self.sensor}--{self.dim}"

    @property
    def readings(self) -> Sequence[Reading]:
        return tuple(self._readings)

    def __len__(self) -> int:
        return len(self._readings)

    def append(self, reading: Reading) -> None:
        if self._frozen:
            raise RuntimeError(f"Signal {self.name!r} is frozen.")
        self._readings.append(reading)
        self._extents = None

    def extents(self) -> Extents:
        if self._extents is None:
            self._extents = Extents.of(self._readings)
        return self._extents

    def sensor_extents(self) -> Extents:
        """Extents of the owning sensor across all of its dimensions."""
        if self.owner is None:
            return self.extents()
        return self.owner.extents()

    def freeze(self) -> None:
        if not self._frozen:
            self._readings = tuple(self._readings)  # type: ignore[assignment]
            self._frozen = True

    def __repr__(self) -> str:
        return f"Signal(name={self.name!r}, readings={len(self._readings)})"


class SensorKind(str, Enum):
    standard = "standard"
    syslog = "syslog"


class Sensor:
    """A named source of one or more signals.

    Subclasses decide how raw CSV values become reading values.
    """

    kind: SensorKind
    is_message: bool = False

    def __init__(self, token: str) -> None:
        self.token = token
        self._signals: List[Signal] = []

    @property
    def name(self) -> str:
        return self.token

    @property
    def signals(self) -> Sequence[Signal]:
        return tuple(self._signals)

    def signal(self, dim: int) -> Signal:
        return self._signals[dim]

    def coerce(self, raw: str) -> Value:
        raise NotImplementedError

    def append(self, reading: Reading, dim: int) -> Signal:
        """Append ``reading`` to dimension ``dim``, creating signals as needed."""
        if dim < 0:
            raise IndexError(f"Dimension index must be non-negative, got {dim}.")
        while len(self._signals) <= dim:
            self._signals.append(Signal(self.name, len(self._signals), owner=self))
        signal = self._signals[dim]
        signal.append(reading)
        return signal

    def extents(self) -> Extents:
        extents = Extents()
        for signal in self._signals:
            extents = extents.union(signal.extents())
        return extents

    def freeze(self) -> None:
        for signal in self._signals:
            signal.freeze()

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(token={self.token!r}, "
            f"dimensions={len(self._signals)})"
        )


class StandardSensor(Sensor):
    kind = SensorKind.standard

    def coerce(self, raw: str) -> float:
        return to_number(raw)


class SyslogSensor(Sensor):
    kind = SensorKind.syslog
    is_message = True

    def coerce(self, raw: str) -> str:
        return raw


def create_sensor(token: str) -> Sensor:
    if token == SYSLOG_TOKEN:
        return SyslogSensor(token)
    return StandardSensor(token)


# Read-only mapping from token to sensor, in order of first appearance.
SensorData = Mapping[str, Sensor]

# sensor name -> dimension -> visible
DisplaySignals = Mapping[str, Mapping[int, bool]]


def freeze_data(sensors: Dict[str, Sensor]) -> SensorData:
    for sensor in sensors.values():
        sensor.freeze()
    return MappingProxyType(sensors)


def is_displayed(display: DisplaySignals, sensor: str, dim: int) -> bool:
    dims = display.get(sensor)
    if not dims:
        return False
    return bool(dims.get(dim))
