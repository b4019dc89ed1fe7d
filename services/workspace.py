"""Current chart state: loaded data, display selection and scale session."""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Dict, List, Mapping, Optional, Tuple

from models.signals import SensorData, Signal
from services.errors import ChartNotConfiguredError, NoDataError
from services.ingestion import SignalParser
from services.projection import default_display, display_to_signals
from services.scaling import (
    ChartFrame,
    ScaleSession,
    ZoomTransform,
    apply_zoom,
    chart_size,
    render,
    setup_session,
)
from settings import Margins, get_settings
from storage.upload_store import build_default_store

logger = logging.getLogger(__name__)


class SignalWorkspace:
    """Coordinates loading, display selection and chart interaction.

    Every load takes a generation number before it suspends on the file
    read. A load that finishes after a newer one started is discarded.
    """

    def __init__(self, parser: SignalParser, margins: Optional[Margins] = None) -> None:
        self.parser = parser
        self.margins = margins or Margins()
        self._data: Optional[SensorData] = None
        self._display: Dict[str, Dict[int, bool]] = {}
        self._display_chosen = False
        self._session: Optional[ScaleSession] = None
        self._rendered: Tuple[Signal, ...] = ()
        self._generation = 0

    @property
    def data(self) -> Optional[SensorData]:
        return self._data

    @property
    def display(self) -> Mapping[str, Mapping[int, bool]]:
        return self._display

    @property
    def session(self) -> Optional[ScaleSession]:
        return self._session

    @property
    def generation(self) -> int:
        return self._generation

    async def load(self, key: str) -> Optional[SensorData]:
        """Parse ``key`` and make it the current data.

        Returns ``None`` when a newer load superseded this one. A
        :class:`ReadError` leaves the current state untouched.
        """
        self._generation += 1
        generation = self._generation

        data = await self.parser.parse(key)

        if generation != self._generation:
            logger.info(
                "Discarding stale parse",
                extra={"object_key": key, "generation": generation},
            )
            return None

        self._data = data
        self._session = None
        self._rendered = ()
        if not self._display_chosen:
            self._display = default_display(data)
        logger.info(
            "Loaded sensor data",
            extra={"object_key": key, "generation": generation, "sensor_count": len(data)},
        )
        return data

    def set_display(self, display: Mapping[str, Mapping[int, bool]]) -> None:
        self._display = {sensor: dict(dims) for sensor, dims in display.items()}
        self._display_chosen = True
        self._session = None
        self._rendered = ()

    def require_data(self) -> SensorData:
        if self._data is None:
            raise NoDataError("No sensor log has been loaded yet.")
        return self._data

    def visible_signals(self) -> List[Signal]:
        return display_to_signals(self._display, self.require_data())

    def setup_chart(self, host_width: float, host_height: float) -> ChartFrame:
        """Configure scales for the visible signals inside a host element."""
        signals = tuple(self.visible_signals())
        width, height = chart_size(host_width, host_height, self.margins)
        session = setup_session(signals, width, height)
        self._session = session
        self._rendered = signals
        return render(session, signals)

    def zoom(self, transform: ZoomTransform) -> ChartFrame:
        if self._session is None:
            raise ChartNotConfiguredError("Chart must be set up before zooming.")
        self._session = apply_zoom(self._session, transform)
        return render(self._session, self._rendered)


@lru_cache
def build_default_workspace() -> SignalWorkspace:
    """Factory that wires the workspace with the default upload store."""
    parser = SignalParser(build_default_store())
    return SignalWorkspace(parser=parser, margins=get_settings().margins)
