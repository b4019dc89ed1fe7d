"""Reshape raw CSV text into typed sensor rows."""

from __future__ import annotations

import csv
import io
import math
from dataclasses import dataclass
from typing import Iterator, Tuple

from models.signals import to_number


@dataclass(frozen=True, slots=True)
class Row:
    """One CSV line: source token, tick and the raw per-dimension values."""

    token: str
    tick: float
    dimensions: Tuple[str, ...]


def parse_rows(text: str) -> Iterator[Row]:
    """Yield a :class:`Row` for every line of ``text``.

    Rows are neither dropped nor validated here; blank lines come through
    with an empty token.
    """
    reader = csv.reader(io.StringIO(text, newline=""))
    for fields in reader:
        if not fields:
            yield Row(token="", tick=math.nan, dimensions=())
            continue
        tick = to_number(fields[1]) if len(fields) > 1 else math.nan
        yield Row(token=fields[0], tick=tick, dimensions=tuple(fields[2:]))
