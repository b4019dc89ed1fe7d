"""Error types raised by the ingestion and charting services."""

from __future__ import annotations


class ReadError(Exception):
    """An uploaded file could not be read as text.

    ``code`` names the failure the way a file reader reports it:
    ``NotFoundError``, ``NotReadableError`` or ``EncodingError``.
    """

    def __init__(self, code: str, key: str, message: str | None = None) -> None:
        self.code = code
        self.key = key
        super().__init__(message or f"File {key!r} could not be read (code {code}).")


class AxisLayoutError(ValueError):
    """Raised when more sensors are displayed than there are axis slots."""


class ChartNotConfiguredError(RuntimeError):
    """Raised when a zoom event arrives before the chart has been set up."""


class NoDataError(LookupError):
    """Raised when charting is requested before any file was loaded."""
