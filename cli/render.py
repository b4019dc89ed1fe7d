from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

import typer


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def _format_bound(value: Optional[float]) -> str:
    return "-" if value is None else f"{value:g}"


def render_uploads(results: List[Dict[str, Any]]) -> None:
    echo_heading("Uploads")
    if not results:
        typer.echo("No files uploaded.")
        return
    for result in results:
        status = result.get("status")
        color = typer.colors.GREEN if status == "accepted" else typer.colors.YELLOW
        line = f"  - {result.get('filename')}: {status}"
        if status == "accepted":
            line += (
                f" (sensors={result.get('sensor_count')},"
                f" signals={result.get('signal_count')}, file_id={result.get('file_id')})"
            )
        typer.secho(line, fg=color)


def render_sensors(sensors: List[Dict[str, Any]]) -> None:
    echo_heading("Sensors")
    if not sensors:
        typer.echo("No sensors found.")
        return
    for sensor in sensors:
        typer.echo(f"{sensor.get('token')} [{sensor.get('kind')}]")
        for signal in sensor.get("signals") or []:
            extents = signal.get("extents") or {}
            typer.echo(
                f"  - {signal.get('name')}: {signal.get('reading_count')} readings,"
                f" ticks {_format_bound(extents.get('x_min'))}..{_format_bound(extents.get('x_max'))},"
                f" values {_format_bound(extents.get('y_min'))}..{_format_bound(extents.get('y_max'))}"
            )


def render_display(selection: Dict[str, Dict[str, bool]]) -> None:
    echo_heading("Display")
    visible = [
        f"{sensor}:{dim}"
        for sensor, dims in selection.items()
        for dim, shown in dims.items()
        if shown
    ]
    typer.echo(", ".join(visible) if visible else "Nothing selected.")


def render_chart(frame: Dict[str, Any]) -> None:
    echo_heading("Chart")
    transform = frame.get("transform") or {}
    x_axis = frame.get("x_axis") or {}
    echo_key_values(
        [
            ("size", f"{frame.get('width'):g}x{frame.get('height'):g}"),
            ("zoom", f"k={transform.get('k')} x={transform.get('x')}"),
            ("x_domain", x_axis.get("domain")),
        ]
    )

    typer.echo()
    echo_heading("Axes")
    for axis in frame.get("y_axes") or []:
        side = "right" if axis.get("offset") else "left"
        labels = " ".join(axis.get("labels") or [])
        typer.echo(f"  - {axis.get('sensor')} ({side}): {axis.get('domain')} [{labels}]")

    typer.echo()
    echo_heading("Lines")
    paths = frame.get("paths") or []
    if not paths:
        typer.echo("No signals displayed.")
    for path in paths:
        segments = (path.get("d") or "").count("M")
        typer.echo(f"  - {path.get('signal')}: {segments} segment(s)")
