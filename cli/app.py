from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional

import typer

from app.schemas import SensorSummary
from cli.client import ApiClient
from cli.config import CLIConfig, load_config
from cli.render import render_chart, render_display, render_sensors, render_uploads
from services.ingestion import SignalParser


@dataclass
class CLIState:
    config: CLIConfig
    client: ApiClient


app = typer.Typer(
    help="Utilities for uploading sensor logs and inspecting chart layouts.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        typer.secho("CLI state is uninitialized.", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    return state


def parse_selection(items: List[str]) -> Dict[str, Dict[int, bool]]:
    """Turn ``SENSOR:DIM`` arguments into a display selection."""
    selection: Dict[str, Dict[int, bool]] = {}
    for item in items:
        sensor, sep, dim = item.rpartition(":")
        if not sep or not sensor or not dim.isdigit():
            raise typer.BadParameter(f"Expected SENSOR:DIM, got {item!r}.")
        selection.setdefault(sensor, {})[int(dim)] = True
    return selection


@app.callback()
def main(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        "-b",
        help="Chart service base URL (defaults to API_BASE_URL env or http://localhost:8000).",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="Seconds to wait for each request.",
    ),
) -> None:
    """Entry point for the CLI."""
    if ctx.invoked_subcommand == "inspect":
        return
    config = load_config(base_url=base_url, timeout=timeout)
    client = ApiClient(config)
    ctx.obj = CLIState(config=config, client=client)
    ctx.call_on_close(client.close)


@app.command("upload")
def upload_command(
    ctx: typer.Context,
    files: List[Path] = typer.Argument(..., exists=True, dir_okay=False, readable=True, help="Sensor log files."),
) -> None:
    """Upload sensor logs; the last CSV becomes the current data."""
    state = _get_state(ctx)
    typer.echo(f"Uploading {len(files)} file(s) to {state.config.base_url} ...")
    render_uploads(state.client.upload_files(files))


@app.command("sensors")
def sensors_command(ctx: typer.Context) -> None:
    """List sensors and signals of the current data."""
    state = _get_state(ctx)
    render_sensors(state.client.list_sensors())


@app.command("show")
def show_command(
    ctx: typer.Context,
    signals: Optional[List[str]] = typer.Argument(None, help="Signals to display as SENSOR:DIM."),
    show_all: bool = typer.Option(False, "--all", help="Display every signal of every sensor."),
) -> None:
    """Replace the display selection, or print it when no signals are given."""
    state = _get_state(ctx)
    if not signals and not show_all:
        render_display(state.client.get_display())
        return
    if show_all:
        selection = {
            sensor["token"]: {signal["dim"]: True for signal in sensor.get("signals") or []}
            for sensor in state.client.list_sensors()
        }
    else:
        selection = parse_selection(signals or [])
    response = state.client.set_display(selection)
    render_display(response.get("signals") or {})


@app.command("chart")
def chart_command(
    ctx: typer.Context,
    width: Optional[float] = typer.Option(None, "--width", help="Host element width in pixels."),
    height: Optional[float] = typer.Option(None, "--height", help="Host element height in pixels."),
) -> None:
    """Set up the chart for the displayed signals."""
    state = _get_state(ctx)
    render_chart(state.client.setup_chart(width=width, height=height))


@app.command("zoom")
def zoom_command(
    ctx: typer.Context,
    k: float = typer.Option(..., "--k", help="Zoom scale factor (clamped to 1..50)."),
    x: float = typer.Option(0.0, "--x", help="Horizontal translation in pixels."),
    y: float = typer.Option(0.0, "--y", help="Vertical translation in pixels."),
) -> None:
    """Send a zoom/pan transform and show the redrawn chart."""
    state = _get_state(ctx)
    render_chart(state.client.zoom(k=k, x=x, y=y))


@app.command("inspect")
def inspect_command(
    file: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True, help="Path to CSV file."),
) -> None:
    """Parse a sensor log locally and list what it contains."""
    try:
        text = file.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        typer.secho(f"{file} is not valid UTF-8 text.", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from exc
    data = SignalParser.parse_text(text, key=str(file))
    render_sensors([SensorSummary.from_sensor(sensor).model_dump(mode="json") for sensor in data.values()])
