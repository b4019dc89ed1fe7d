from __future__ import annotations

from itertools import product

from services.ingestion import fold_rows
from services.projection import (
    data_to_sensors,
    default_display,
    display_to_signals,
    sensors_to_signals,
)
from services.tokenizer import parse_rows

LOG = "gyro,1,1,2,3\naccel,1,4,5\nS,1,boot\ngyro,2,1,2,3\naccel,2,6,7\n"


def _data():
    return fold_rows(parse_rows(LOG))


def test_flatten_order_is_sensor_then_dimension() -> None:
    data = _data()

    signals = sensors_to_signals(data_to_sensors(data))

    assert [signal.name for signal in signals] == [
        "gyro--0",
        "gyro--1",
        "gyro--2",
        "accel--0",
        "accel--1",
        "S--0",
    ]


def test_display_selects_exactly_truthy_pairs() -> None:
    data = _data()
    display = {"gyro": {2: True, 0: True, 1: False}, "accel": {1: True}, "ghost": {0: True}}

    selected = display_to_signals(display, data)

    assert [signal.name for signal in selected] == ["gyro--0", "gyro--2", "accel--1"]


def test_projection_is_stable_subsequence_for_every_selection() -> None:
    data = _data()
    everything = sensors_to_signals(data_to_sensors(data))
    pairs = [(signal.sensor, signal.dim) for signal in everything]

    for mask in product([False, True], repeat=len(pairs)):
        display: dict = {}
        for (sensor, dim), shown in zip(pairs, mask):
            display.setdefault(sensor, {})[dim] = shown

        selected = display_to_signals(display, data)

        expected = [signal for signal, shown in zip(everything, mask) if shown]
        assert selected == expected


def test_empty_display_selects_nothing() -> None:
    assert display_to_signals({}, _data()) == []


def test_default_display_skips_message_sensors() -> None:
    assert default_display(_data()) == {
        "gyro": {0: True, 1: True, 2: True},
        "accel": {0: True, 1: True},
    }
