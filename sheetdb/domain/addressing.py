from __future__ import annotations

import math
import re

# Строка "без границы": адрес ячейки вырождается в букву колонки ("A2:F").
UNBOUNDED = math.inf

_SIMPLE_TITLE_RE = re.compile(r"^[A-Za-z0-9_]+$")


def column_name(col: int) -> str:
    """
    Назначение:
        Номер колонки (1, 2, ..., 26, 27, ...) -> имя колонки (A, B, ..., Z, AA, ...).
        Биективная система счисления по основанию 26.
    """
    if col < 1:
        raise ValueError(f"Column index must be >= 1, got {col}")
    letters: list[str] = []
    n = col
    while n > 0:
        n, rem = divmod(n - 1, 26)
        letters.append(chr(ord("A") + rem))
    return "".join(reversed(letters))


def cell_address(row: float, col: int) -> str:
    if row == UNBOUNDED:
        return column_name(col)
    return f"{column_name(col)}{int(row)}"


def range_address(top: int, left: int, height: float, width: int) -> str:
    """
    Назначение:
        Прямоугольный диапазон в A1-нотации: левый верхний и правый нижний углы.
        height=UNBOUNDED даёт открытый снизу диапазон.
    """
    right = left + width - 1
    bottom = top + height - 1
    return f"{cell_address(top, left)}:{cell_address(bottom, right)}"


def quote_sheet_title(title: str) -> str:
    """Имя листа в A1-нотации; кавычки только если имя не простое."""
    normalised = (title or "").strip()
    if not normalised:
        raise ValueError("Sheet title must not be empty")
    if _SIMPLE_TITLE_RE.fullmatch(normalised):
        return normalised
    escaped = normalised.replace("'", "''")
    return f"'{escaped}'"


def sheet_range(title: str, address: str) -> str:
    return f"{quote_sheet_title(title)}!{address}"


__all__ = [
    "UNBOUNDED",
    "column_name",
    "cell_address",
    "range_address",
    "quote_sheet_title",
    "sheet_range",
]
