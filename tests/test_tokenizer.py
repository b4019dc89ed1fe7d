from __future__ import annotations

import math

import pytest

from models.signals import to_number
from services.tokenizer import Row, parse_rows


def test_parse_rows_splits_token_tick_and_dimensions() -> None:
    rows = list(parse_rows("A,1,10,11\nS,2,boot ok\n"))

    assert rows == [
        Row(token="A", tick=1.0, dimensions=("10", "11")),
        Row(token="S", tick=2.0, dimensions=("boot ok",)),
    ]


def test_parse_rows_keeps_rows_with_empty_token() -> None:
    rows = list(parse_rows(",5,99\n"))

    assert len(rows) == 1
    assert rows[0].token == ""
    assert rows[0].tick == 5.0
    assert rows[0].dimensions == ("99",)


def test_parse_rows_blank_line_becomes_empty_row() -> None:
    rows = list(parse_rows("A,1,1\n\nA,2,2\n"))

    assert [row.token for row in rows] == ["A", "", "A"]
    assert math.isnan(rows[1].tick)
    assert rows[1].dimensions == ()


def test_parse_rows_trailing_newline_adds_no_row() -> None:
    assert len(list(parse_rows("A,1,1\nA,2,2\n"))) == 2
    assert len(list(parse_rows("A,1,1\nA,2,2"))) == 2


def test_parse_rows_non_numeric_tick_is_nan() -> None:
    (row,) = parse_rows("A,later,3\n")

    assert math.isnan(row.tick)
    assert row.dimensions == ("3",)


def test_parse_rows_missing_tick_is_nan() -> None:
    (row,) = parse_rows("A\n")

    assert row.token == "A"
    assert math.isnan(row.tick)
    assert row.dimensions == ()


def test_parse_rows_honours_quoted_fields() -> None:
    (row,) = parse_rows('S,7,"disk full, retrying"\n')

    assert row.dimensions == ("disk full, retrying",)


def test_parse_rows_is_repeatable() -> None:
    text = "A,1,10\nB,2,x\n\nS,3,hello\n,4,5\n"

    assert list(parse_rows(text)) == list(parse_rows(text))


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("10", 10.0),
        (" 2.5 ", 2.5),
        ("-3e2", -300.0),
        (".5", 0.5),
        ("", 0.0),
        ("Infinity", math.inf),
        ("-Infinity", -math.inf),
        ("0x1A", 26.0),
        ("0X1a", 26.0),
        ("0o17", 15.0),
        ("0b101", 5.0),
    ],
)
def test_to_number_accepts_numeric_text(raw: str, expected: float) -> None:
    assert to_number(raw) == expected


@pytest.mark.parametrize("raw", ["abc", "1_000", "nan", "inf", "12px", "-0x10", "0b102", "0x1_0"])
def test_to_number_rejects_non_numeric_text(raw: str) -> None:
    assert math.isnan(to_number(raw))
