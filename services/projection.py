"""Select the signals a chart should display."""

from __future__ import annotations

from typing import Dict, Iterable, List

from models.signals import DisplaySignals, Sensor, SensorData, Signal, is_displayed


def data_to_sensors(data: SensorData) -> List[Sensor]:
    return list(data.values())


def sensors_to_signals(sensors: Iterable[Sensor]) -> List[Signal]:
    result: List[Signal] = []
    for sensor in sensors:
        result.extend(sensor.signals)
    return result


def display_to_signals(display: DisplaySignals, data: SensorData) -> List[Signal]:
    """Signals selected in ``display``, in sensor then dimension order."""
    signals = sensors_to_signals(data_to_sensors(data))
    return [signal for signal in signals if is_displayed(display, signal.sensor, signal.dim)]


def default_display(data: SensorData) -> Dict[str, Dict[int, bool]]:
    """Select every dimension of every numeric sensor."""
    return {
        sensor.name: {signal.dim: True for signal in sensor.signals}
        for sensor in data.values()
        if not sensor.is_message
    }
