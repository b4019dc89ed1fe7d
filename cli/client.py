from __future__ import annotations

import mimetypes
from contextlib import ExitStack
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence

import httpx
import typer

from cli.config import CLIConfig


def guess_content_type(path: Path) -> str:
    content_type, _ = mimetypes.guess_type(path.name)
    return content_type or "application/octet-stream"


class ApiClient:
    """Minimal HTTP client for the chart service."""

    def __init__(self, config: CLIConfig) -> None:
        self._config = config
        self._client = httpx.Client(base_url=config.base_url, timeout=config.timeout)

    def close(self) -> None:
        self._client.close()

    def upload_files(self, paths: Sequence[Path]) -> List[Dict[str, Any]]:
        for path in paths:
            if not path.is_file():
                raise typer.BadParameter(f"Path {path} is not a file.")

        with ExitStack() as stack:
            files = [
                ("files", (path.name, stack.enter_context(path.open("rb")), guess_content_type(path)))
                for path in paths
            ]
            response = self._request("POST", "/files", files=files)
        return response.json().get("files", [])

    def list_sensors(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/sensors").json()

    def get_display(self) -> Dict[str, Dict[str, bool]]:
        return self._request("GET", "/display").json().get("signals", {})

    def set_display(self, selection: Mapping[str, Mapping[int, bool]]) -> Dict[str, Any]:
        payload = {
            "signals": {
                sensor: {str(dim): visible for dim, visible in dims.items()}
                for sensor, dims in selection.items()
            }
        }
        return self._request("PUT", "/display", json=payload).json()

    def setup_chart(
        self, width: Optional[float] = None, height: Optional[float] = None
    ) -> Dict[str, Any]:
        payload = {"width": width, "height": height}
        return self._request("POST", "/chart", json=payload).json()

    def zoom(self, k: float, x: float, y: float = 0.0) -> Dict[str, Any]:
        return self._request("POST", "/chart/zoom", json={"k": k, "x": x, "y": y}).json()

    def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        try:
            response = self._client.request(method, url, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self._handle_http_error(exc)
        except httpx.RequestError as exc:
            typer.secho(f"Could not reach {self._config.base_url}: {exc}", fg=typer.colors.RED, err=True)
            raise typer.Exit(code=1) from exc
        return response

    @staticmethod
    def _handle_http_error(exc: httpx.HTTPStatusError) -> None:
        detail: str | None = None
        try:
            data = exc.response.json()
            detail = data.get("detail")
        except Exception:  # noqa: BLE001 - best effort parsing
            detail = exc.response.text.strip()
        message = (
            f"Request failed with status {exc.response.status_code}: {detail or 'no detail provided.'}"
        )
        typer.secho(message, fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
