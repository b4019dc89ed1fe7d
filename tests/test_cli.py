from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest
from typer.testing import CliRunner

from cli.app import app, parse_selection
from cli.client import guess_content_type

FRAME: Dict[str, Any] = {
    "width": 960.0,
    "height": 500.0,
    "transform": {"k": 2.0, "x": 0.0, "y": -250.0},
    "x_axis": {
        "orientation": "bottom",
        "offset": 500.0,
        "domain": [0.0, 50.0],
        "ticks": [0.0, 50.0],
        "labels": ["0", "50"],
        "sensor": None,
    },
    "y_axes": [
        {
            "orientation": "left",
            "offset": 0.0,
            "domain": [0.0, 10.0],
            "ticks": [0.0, 10.0],
            "labels": ["0.0", "10"],
            "sensor": "A",
        }
    ],
    "paths": [
        {"signal": "A--0", "sensor": "A", "dim": 0, "css_class": "line A--0 line--A", "d": "M0,500L480,250"}
    ],
}

SENSORS: List[Dict[str, Any]] = [
    {
        "token": "A",
        "kind": "standard",
        "is_message": False,
        "signals": [
            {
                "name": "A--0",
                "dim": 0,
                "reading_count": 2,
                "extents": {"x_min": 1.0, "x_max": 2.0, "y_min": 10.0, "y_max": 20.0},
            },
            {
                "name": "A--1",
                "dim": 1,
                "reading_count": 2,
                "extents": {"x_min": 1.0, "x_max": 2.0, "y_min": 0.0, "y_max": 1.0},
            },
        ],
    }
]


class StubClient:
    def __init__(self, config) -> None:
        self.config = config
        self.uploaded: List[Path] = []
        self.display: Optional[Dict[str, Dict[int, bool]]] = None
        self.chart_calls: List[tuple] = []
        self.zoom_calls: List[tuple] = []
        self.closed = False

    def upload_files(self, paths):
        self.uploaded = list(paths)
        return [
            {
                "filename": path.name,
                "status": "accepted" if path.suffix == ".csv" else "skipped",
                "file_id": "file-123",
                "sensor_count": 1,
                "signal_count": 2,
            }
            for path in paths
        ]

    def list_sensors(self):
        return SENSORS

    def get_display(self):
        return {"A": {"0": True, "1": False}}

    def set_display(self, selection):
        self.display = selection
        return {
            "signals": {
                sensor: {str(dim): shown for dim, shown in dims.items()}
                for sensor, dims in selection.items()
            }
        }

    def setup_chart(self, width=None, height=None):
        self.chart_calls.append((width, height))
        return FRAME

    def zoom(self, k, x, y=0.0):
        self.zoom_calls.append((k, x, y))
        return FRAME

    def close(self) -> None:
        self.closed = True


@pytest.fixture()
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture()
def stub(monkeypatch) -> StubClient:
    holder: Dict[str, StubClient] = {}

    def factory(config):
        holder["client"] = StubClient(config)
        return holder["client"]

    monkeypatch.setattr("cli.app.ApiClient", factory)

    class Proxy:
        def __getattr__(self, name):
            return getattr(holder["client"], name)

    return Proxy()  # type: ignore[return-value]


def test_upload(stub, runner: CliRunner, tmp_path) -> None:
    csv_path = tmp_path / "log.csv"
    csv_path.write_text("A,1,10\n")
    png_path = tmp_path / "photo.png"
    png_path.write_bytes(b"\x89PNG")

    result = runner.invoke(app, ["upload", str(csv_path), str(png_path)])

    assert result.exit_code == 0, result.stdout
    assert "log.csv: accepted" in result.stdout
    assert "photo.png: skipped" in result.stdout
    assert stub.uploaded == [csv_path, png_path]
    assert stub.closed is True


def test_sensors_command(stub, runner: CliRunner) -> None:
    result = runner.invoke(app, ["sensors"])

    assert result.exit_code == 0
    assert "A [standard]" in result.stdout
    assert "A--0: 2 readings, ticks 1..2, values 10..20" in result.stdout


def test_show_selected_signals(stub, runner: CliRunner) -> None:
    result = runner.invoke(app, ["show", "A:1", "B:0"])

    assert result.exit_code == 0
    assert stub.display == {"A": {1: True}, "B": {0: True}}
    assert "A:1, B:0" in result.stdout


def test_show_all(stub, runner: CliRunner) -> None:
    result = runner.invoke(app, ["show", "--all"])

    assert result.exit_code == 0
    assert stub.display == {"A": {0: True, 1: True}}


def test_show_without_arguments_prints_current_display(stub, runner: CliRunner) -> None:
    result = runner.invoke(app, ["show"])

    assert result.exit_code == 0
    assert "A:0" in result.stdout
    assert "A:1" not in result.stdout
    assert stub.display is None


def test_chart_and_zoom(stub, runner: CliRunner) -> None:
    chart = runner.invoke(app, ["chart", "--width", "1050", "--height", "560"])
    assert chart.exit_code == 0
    assert stub.chart_calls == [(1050.0, 560.0)]
    assert "A (left)" in chart.stdout
    assert "A--0: 1 segment(s)" in chart.stdout

    zoom = runner.invoke(app, ["zoom", "--k", "4", "--x", "-960"])
    assert zoom.exit_code == 0
    assert stub.zoom_calls == [(4.0, -960.0, 0.0)]


def test_inspect_parses_locally(runner: CliRunner, tmp_path, monkeypatch) -> None:
    def fail(config):  # pragma: no cover - must not be called
        raise AssertionError("inspect must not talk to the service")

    monkeypatch.setattr("cli.app.ApiClient", fail)
    csv_path = tmp_path / "log.csv"
    csv_path.write_text("A,1,10\nA,2,20\nS,1,boot ok\n")

    result = runner.invoke(app, ["inspect", str(csv_path)])

    assert result.exit_code == 0, result.stdout
    assert "A [standard]" in result.stdout
    assert "S [syslog]" in result.stdout
    assert "A--0: 2 readings, ticks 1..2, values 10..20" in result.stdout
    assert "S--0: 1 readings, ticks 1..1, values -..-" in result.stdout


def test_parse_selection_rejects_malformed_items() -> None:
    assert parse_selection(["gyro:0", "gyro:2"]) == {"gyro": {0: True, 2: True}}
    with pytest.raises(Exception):
        parse_selection(["gyro"])


def test_guess_content_type() -> None:
    assert guess_content_type(Path("log.csv")) == "text/csv"
    assert guess_content_type(Path("blob")) == "application/octet-stream"
