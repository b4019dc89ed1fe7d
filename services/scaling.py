"""Scales, axis placement and zoom handling for multi-axis line charts.

A chart shares one horizontal (tick) scale between every displayed signal
and gives each displayed sensor its own vertical scale. Zooming only ever
touches the horizontal scale: the working domain is always recomputed from
the untouched initial domain ``x0`` and the current zoom transform, so
repeated zoom events cannot accumulate rounding drift.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from matplotlib.ticker import EngFormatter, MaxNLocator, StrMethodFormatter

from models.signals import Extents, Signal
from services.errors import AxisLayoutError
from settings import Margins

logger = logging.getLogger(__name__)

Interval = Tuple[float, float]
Point = Tuple[float, float]

MAX_AXES = 4
SCALE_EXTENT: Interval = (1.0, 50.0)
INITIAL_ZOOM = 2.0

_TICK_STEPS = [1, 2, 5, 10]


def _normalize(a: float, b: float, value: float) -> float:
    span = b - a
    if span:
        return (value - a) / span
    return math.nan if math.isnan(span) else 0.5


def _interpolate(a: float, b: float, t: float) -> float:
    return a * (1 - t) + b * t


def _locate(start: float, stop: float, count: int) -> Tuple[List[float], float]:
    """Ticks inside ``[start, stop]`` (``start < stop``) and their spacing."""
    raw = MaxNLocator(nbins=count, steps=_TICK_STEPS).tick_values(start, stop)
    if len(raw) < 2:
        return [], 0.0
    step = round(float(raw[1] - raw[0]), 12)
    decimals = max(0, -math.floor(math.log10(step)))
    slack = step * 1e-9
    ticks = [round(float(tick), decimals) + 0.0 for tick in raw]
    return [tick for tick in ticks if start - slack <= tick <= stop + slack], step


def nice_ticks(start: float, stop: float, count: int = 10) -> List[float]:
    """Evenly spaced, human-friendly values covering ``[start, stop]``."""
    if not (math.isfinite(start) and math.isfinite(stop)) or count <= 0:
        return []
    if start == stop:
        return [start]
    reverse = stop < start
    if reverse:
        start, stop = stop, start
    ticks, _ = _locate(start, stop, count)
    if reverse:
        ticks.reverse()
    return ticks


@dataclass(frozen=True)
class LinearScale:
    """Linear mapping from a value ``domain`` onto a pixel ``range``."""

    domain: Interval = (0.0, 1.0)
    range: Interval = (0.0, 1.0)

    def __call__(self, value: float) -> float:
        d0, d1 = self.domain
        r0, r1 = self.range
        return _interpolate(r0, r1, _normalize(d0, d1, value))

    def invert(self, pixel: float) -> float:
        d0, d1 = self.domain
        r0, r1 = self.range
        return _interpolate(d0, d1, _normalize(r0, r1, pixel))

    def with_domain(self, domain: Interval) -> "LinearScale":
        return replace(self, domain=(float(domain[0]), float(domain[1])))

    def ticks(self, count: int = 10) -> List[float]:
        return nice_ticks(self.domain[0], self.domain[-1], count)

    def tick_step(self, count: int = 10) -> float:
        start, stop = sorted(self.domain)
        if start == stop or not (math.isfinite(start) and math.isfinite(stop)):
            return 0.0
        return _locate(start, stop, count)[1]


@dataclass(frozen=True)
class ZoomTransform:
    """Affine zoom transform ``p -> p * k + (x, y)``."""

    k: float = 1.0
    x: float = 0.0
    y: float = 0.0

    def apply_x(self, value: float) -> float:
        return value * self.k + self.x

    def invert_x(self, value: float) -> float:
        return (value - self.x) / self.k

    def invert_y(self, value: float) -> float:
        return (value - self.y) / self.k

    def invert(self, point: Point) -> Point:
        return (self.invert_x(point[0]), self.invert_y(point[1]))

    def translate(self, dx: float, dy: float) -> "ZoomTransform":
        if dx == 0 and dy == 0:
            return self
        return ZoomTransform(self.k, self.x + self.k * dx, self.y + self.k * dy)

    def rescale_x(self, scale: LinearScale) -> LinearScale:
        r0, r1 = scale.range
        return scale.with_domain(
            (scale.invert(self.invert_x(r0)), scale.invert(self.invert_x(r1)))
        )


IDENTITY = ZoomTransform()


@dataclass(frozen=True)
class ZoomBehavior:
    """Zoom limits for a ``width`` x ``height`` viewport.

    The scale factor is clamped into ``scale_extent`` and translations are
    constrained so the viewport never leaves ``[[0, 0], [width, height]]``.
    """

    width: float
    height: float
    scale_extent: Interval = SCALE_EXTENT

    @property
    def extent(self) -> Tuple[Point, Point]:
        return ((0.0, 0.0), (self.width, self.height))

    @property
    def translate_extent(self) -> Tuple[Point, Point]:
        return self.extent

    def clamp_scale(self, k: float) -> float:
        low, high = self.scale_extent
        return max(low, min(high, k))

    def constrain(self, transform: ZoomTransform) -> ZoomTransform:
        (ex0, ey0), (ex1, ey1) = self.extent
        (tx0, ty0), (tx1, ty1) = self.translate_extent
        dx0 = transform.invert_x(ex0) - tx0
        dx1 = transform.invert_x(ex1) - tx1
        dy0 = transform.invert_y(ey0) - ty0
        dy1 = transform.invert_y(ey1) - ty1
        return transform.translate(
            (dx0 + dx1) / 2 if dx1 > dx0 else (min(0.0, dx0) or max(0.0, dx1)),
            (dy0 + dy1) / 2 if dy1 > dy0 else (min(0.0, dy0) or max(0.0, dy1)),
        )

    def _scale(self, transform: ZoomTransform, k: float) -> ZoomTransform:
        k = self.clamp_scale(k)
        if k == transform.k:
            return transform
        return ZoomTransform(k, transform.x, transform.y)

    @staticmethod
    def _translate(transform: ZoomTransform, p0: Point, p1: Point) -> ZoomTransform:
        x = p0[0] - p1[0] * transform.k
        y = p0[1] - p1[1] * transform.k
        if x == transform.x and y == transform.y:
            return transform
        return ZoomTransform(transform.k, x, y)

    def _centroid(self) -> Point:
        (x0, y0), (x1, y1) = self.extent
        return ((x0 + x1) / 2, (y0 + y1) / 2)

    def scale_to(
        self, transform: ZoomTransform, k: float, point: Optional[Point] = None
    ) -> ZoomTransform:
        """Zoom to factor ``k`` keeping ``point`` (default: centre) fixed."""
        p0 = point if point is not None else self._centroid()
        p1 = transform.invert(p0)
        return self.constrain(self._translate(self._scale(transform, k), p0, p1))

    def translate_by(self, transform: ZoomTransform, dx: float, dy: float) -> ZoomTransform:
        return self.constrain(transform.translate(dx, dy))

    def accept(self, transform: ZoomTransform) -> ZoomTransform:
        """Clamp a transform reported by the rendering surface."""
        return self.constrain(self._scale(transform, transform.k))


class AxisSide(str, Enum):
    left = "left"
    right = "right"


def distinct_sensors(signals: Iterable[Signal]) -> Tuple[str, ...]:
    """Sensor names in order of first appearance."""
    return tuple(dict.fromkeys(signal.sensor for signal in signals))


def axis_orientations(sensors: Sequence[str]) -> Dict[str, AxisSide]:
    """Tick orientation per sensor axis: left, right, left, ..."""
    return {
        sensor: AxisSide.left if index % 2 == 0 else AxisSide.right
        for index, sensor in enumerate(sensors)
    }


def axis_sides(sensors: Sequence[str]) -> Dict[str, AxisSide]:
    """Where each sensor's axis is drawn: first and fourth left, second and third right."""
    if len(sensors) > MAX_AXES:
        raise AxisLayoutError(
            f"At most {MAX_AXES} sensors can be displayed at once, got {len(sensors)}."
        )
    return {
        sensor: AxisSide.right if index in (1, 2) else AxisSide.left
        for index, sensor in enumerate(sensors)
    }


def chart_size(host_width: float, host_height: float, margins: Margins) -> Tuple[float, float]:
    width = host_width - margins.left - margins.right
    height = host_height - margins.top - margins.bottom
    if width <= 0 or height <= 0:
        raise ValueError(
            f"Chart area {host_width}x{host_height} is smaller than its margins."
        )
    return float(width), float(height)


def _domain_x(extents: Extents) -> Optional[Interval]:
    if extents.x_min is None or extents.x_max is None:
        return None
    return (extents.x_min, extents.x_max)


def _domain_y(extents: Extents) -> Optional[Interval]:
    if extents.y_min is None or extents.y_max is None:
        return None
    return (extents.y_min, extents.y_max)


@dataclass(frozen=True)
class ScaleSession:
    """Scale state for one rendering of a fixed set of displayed signals."""

    width: float
    height: float
    sensors: Tuple[str, ...]
    x0: LinearScale
    x: LinearScale
    y_scales: Mapping[str, LinearScale]
    orientations: Mapping[str, AxisSide]
    sides: Mapping[str, AxisSide]
    behavior: ZoomBehavior
    transform: ZoomTransform = IDENTITY


def setup_session(signals: Sequence[Signal], width: float, height: float) -> ScaleSession:
    """Build scales for ``signals`` drawn into a ``width`` x ``height`` area.

    The horizontal domain comes from the sensor of the first signal and each
    vertical domain from that sensor's own extents, across all of its
    dimensions. Both are set once; later signals never change them.
    """
    sensors = distinct_sensors(signals)
    sides = axis_sides(sensors)
    logger.debug("Displayed sensors: %s", ", ".join(sensors))

    x = LinearScale(range=(0.0, width))
    y_scales: Dict[str, LinearScale] = {
        sensor: LinearScale(range=(height, 0.0)) for sensor in sensors
    }

    has_x_domain = False
    has_y_domain: set[str] = set()
    for signal in signals:
        extents = signal.sensor_extents()
        if not has_x_domain:
            domain = _domain_x(extents)
            if domain is not None:
                x = x.with_domain(domain)
            has_x_domain = True
        if signal.sensor not in has_y_domain:
            domain = _domain_y(extents)
            if domain is not None:
                y_scales[signal.sensor] = y_scales[signal.sensor].with_domain(domain)
            has_y_domain.add(signal.sensor)

    behavior = ZoomBehavior(width=width, height=height)
    transform = behavior.scale_to(IDENTITY, INITIAL_ZOOM)
    transform = behavior.translate_by(transform, width, 0.0)

    return ScaleSession(
        width=width,
        height=height,
        sensors=sensors,
        x0=x,
        x=transform.rescale_x(x),
        y_scales=y_scales,
        orientations=axis_orientations(sensors),
        sides=sides,
        behavior=behavior,
        transform=transform,
    )


def apply_zoom(session: ScaleSession, transform: ZoomTransform) -> ScaleSession:
    """Return ``session`` re-scaled horizontally by a zoom event's transform."""
    accepted = session.behavior.accept(transform)
    return replace(session, transform=accepted, x=accepted.rescale_x(session.x0))


def _format_coordinate(value: float) -> str:
    if value.is_integer():
        return str(int(value))
    return repr(value)


def _is_plottable(tick: float, value: object) -> bool:
    if isinstance(value, str):
        return False
    return math.isfinite(tick) and math.isfinite(value)  # type: ignore[arg-type]


def line_path(session: ScaleSession, signal: Signal) -> str:
    """SVG path data for ``signal``; unplottable readings break the line."""
    x = session.x
    y = session.y_scales[signal.sensor]
    parts: List[str] = []
    drawing = False
    for reading in signal.readings:
        if not _is_plottable(reading.tick, reading.value):
            drawing = False
            continue
        command = "L" if drawing else "M"
        parts.append(
            f"{command}{_format_coordinate(x(reading.tick))},"
            f"{_format_coordinate(y(reading.value))}"  # type: ignore[arg-type]
        )
        drawing = True
    return "".join(parts)


def format_si(value: float, precision: int = 2) -> str:
    """Format ``value`` with ``precision`` significant digits and an SI prefix."""
    if not math.isfinite(value):
        return "NaN" if math.isnan(value) else ("-∞" if value < 0 else "∞")
    precision = max(1, min(21, precision))
    rounded = float(f"{value:.{precision - 1}e}")
    places = precision - 1
    if rounded:
        exponent = math.floor(math.log10(abs(rounded)))
        places = max(0, precision - 1 - (exponent - math.floor(exponent / 3) * 3))
    return EngFormatter(places=places, sep="").format_eng(rounded)


def format_fixed(value: float, step: float) -> str:
    """Comma-grouped fixed-point label with just enough decimals for ``step``."""
    if step <= 0 or not math.isfinite(step):
        decimals = 0
    else:
        decimals = max(0, -math.floor(math.log10(step)))
    # labels carry an ASCII hyphen as the sign
    label = StrMethodFormatter(f"{{x:,.{decimals}f}}")(abs(value))
    if value < 0 and label.strip("0.,"):
        return f"-{label}"
    return label


@dataclass(frozen=True)
class AxisFrame:
    """Tick positions and labels for one axis."""

    orientation: str
    offset: float
    domain: Interval
    ticks: List[float]
    labels: List[str]
    sensor: Optional[str] = None


@dataclass(frozen=True)
class LinePath:
    signal: str
    sensor: str
    dim: int
    css_class: str
    d: str


@dataclass(frozen=True)
class ChartFrame:
    """Everything the rendering surface needs to draw one frame."""

    width: float
    height: float
    transform: ZoomTransform
    x_axis: AxisFrame
    y_axes: List[AxisFrame] = field(default_factory=list)
    paths: List[LinePath] = field(default_factory=list)


def x_axis_frame(session: ScaleSession) -> AxisFrame:
    ticks = session.x.ticks()
    step = session.x.tick_step()
    return AxisFrame(
        orientation="bottom",
        offset=session.height,
        domain=session.x.domain,
        ticks=ticks,
        labels=[format_fixed(tick, step) for tick in ticks],
    )


def y_axis_frames(session: ScaleSession) -> List[AxisFrame]:
    frames = []
    for sensor in session.sensors:
        scale = session.y_scales[sensor]
        ticks = scale.ticks()
        frames.append(
            AxisFrame(
                orientation=session.orientations[sensor].value,
                offset=session.width if session.sides[sensor] is AxisSide.right else 0.0,
                domain=scale.domain,
                ticks=ticks,
                labels=[format_si(tick) for tick in ticks],
                sensor=sensor,
            )
        )
    return frames


def render(session: ScaleSession, signals: Sequence[Signal]) -> ChartFrame:
    """Lay out axes and line geometry for ``signals`` under ``session``."""
    paths = [
        LinePath(
            signal=signal.name,
            sensor=signal.sensor,
            dim=signal.dim,
            css_class=f"line {signal.name} line--{signal.sensor}",
            d=line_path(session, signal),
        )
        for signal in signals
    ]
    return ChartFrame(
        width=session.width,
        height=session.height,
        transform=session.transform,
        x_axis=x_axis_frame(session),
        y_axes=y_axis_frames(session),
        paths=paths,
    )
