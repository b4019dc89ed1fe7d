"""Fold tokenized CSV rows into per-sensor signals."""

from __future__ import annotations

import logging
import time
from typing import Dict, Iterable, Optional

from fastapi.concurrency import run_in_threadpool

from models.signals import Reading, Sensor, SensorData, create_sensor, freeze_data
from services.tokenizer import Row, parse_rows
from storage.upload_store import UploadStore

logger = logging.getLogger(__name__)

CSV_CONTENT_TYPE = "text/csv"


def accepts_content_type(content_type: Optional[str], filename: Optional[str] = None) -> bool:
    """Only CSV uploads are parsed; anything else is logged and skipped."""
    media_type = (content_type or "").split(";", 1)[0].strip().lower()
    if media_type == CSV_CONTENT_TYPE:
        return True
    logger.warning(
        "Skipping unsupported file %s",
        filename or "<unnamed>",
        extra={"content_type": content_type, "reason": "unsupported file type"},
    )
    return False


class DataBuilder:
    """Owns the sensor mapping while rows are folded into it.

    :meth:`build` freezes every sensor and hands the mapping off read-only;
    the builder accepts no further rows afterwards.
    """

    def __init__(self) -> None:
        self._sensors: Dict[str, Sensor] = {}
        self._built = False

    def sensor(self, token: str) -> Sensor:
        sensor = self._sensors.get(token)
        if sensor is None:
            sensor = create_sensor(token)
            self._sensors[token] = sensor
            logger.debug(
                "Discovered %s sensor", sensor.kind.value, extra={"token": token}
            )
        return sensor

    def add_row(self, row: Row, row_number: Optional[int] = None) -> None:
        if self._built:
            raise RuntimeError("DataBuilder has already been built.")
        if not row.token:
            logger.debug(
                "Skipping row",
                extra={"row_number": row_number, "reason": "missing token"},
            )
            return

        sensor = self.sensor(row.token)
        for dim, raw in enumerate(row.dimensions):
            sensor.append(Reading(tick=row.tick, value=sensor.coerce(raw)), dim)

    def build(self) -> SensorData:
        self._built = True
        return freeze_data(self._sensors)


def fold_rows(rows: Iterable[Row]) -> SensorData:
    builder = DataBuilder()
    for row_number, row in enumerate(rows, start=1):
        builder.add_row(row, row_number=row_number)
    return builder.build()


class SignalParser:
    """Reads an uploaded file and turns it into :data:`SensorData`."""

    def __init__(self, store: UploadStore) -> None:
        self.store = store

    async def parse(self, key: str) -> SensorData:
        """Read, tokenize and fold ``key``; a :class:`ReadError` aborts early."""
        text = await run_in_threadpool(self.store.read_text, key)
        return self.parse_text(text, key=key)

    @staticmethod
    def parse_text(text: str, key: Optional[str] = None) -> SensorData:
        start_time = time.perf_counter()
        data = fold_rows(parse_rows(text))
        logger.info(
            "Parsed sensor log in %d ms",
            int((time.perf_counter() - start_time) * 1000),
            extra={
                "object_key": key,
                "sensor_count": len(data),
                "signal_count": sum(len(sensor.signals) for sensor in data.values()),
            },
        )
        return data
