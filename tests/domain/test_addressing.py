from __future__ import annotations

import pytest

from sheetdb.domain.addressing import (
    UNBOUNDED,
    cell_address,
    column_name,
    quote_sheet_title,
    range_address,
    sheet_range,
)


@pytest.mark.parametrize(
    "col,expected",
    [(1, "A"), (2, "B"), (26, "Z"), (27, "AA"), (52, "AZ"), (53, "BA"), (702, "ZZ"), (703, "AAA")],
)
def test_column_name(col, expected):
    assert column_name(col) == expected


def test_column_name_rejects_zero():
    with pytest.raises(ValueError):
        column_name(0)


def test_cell_address_bounded_and_unbounded():
    assert cell_address(2, 1) == "A2"
    assert cell_address(UNBOUNDED, 28) == "AB"


def test_range_address():
    assert range_address(2, 1, 5, 3) == "A2:C6"
    assert range_address(1, 1, 1, 1) == "A1:A1"


def test_range_address_open_ended():
    assert range_address(2, 1, UNBOUNDED, 6) == "A2:F"


def test_sheet_title_quoting():
    assert quote_sheet_title("Trades") == "Trades"
    assert quote_sheet_title("My Trades") == "'My Trades'"
    assert quote_sheet_title("Bob's") == "'Bob''s'"
    assert sheet_range("Stocks", "A2:F") == "Stocks!A2:F"


def test_sheet_title_must_not_be_empty():
    with pytest.raises(ValueError):
        quote_sheet_title("  ")
