from __future__ import annotations

from typing import Any, Sequence, Union

Cell = Union[str, int, float]
CellRow = list[Cell]
CellGrid = list[CellRow]

EMPTY_CELL = ""


def blank_row(column_count: int) -> CellRow:
    return [EMPTY_CELL] * column_count


def blank_rows(count: int, column_count: int) -> CellGrid:
    return [blank_row(column_count) for _ in range(max(0, count))]


def is_blank_row(row: Sequence[Any]) -> bool:
    return all(cell == EMPTY_CELL for cell in row)


def normalize_grid(grid: Sequence[Sequence[Cell]] | None, column_count: int) -> CellGrid:
    """
    Назначение:
        Приводит сырой ответ таблицы к каноническому виду.
    Алгоритм:
        - Короткие строки дополняются '' до column_count.
          Длинные строки остаются как есть.
        - Хвостовые строки из одних '' отбрасываются.
    Инварианты/гарантии:
        - Вход не мутируется, результат всегда новый список.
        - Идемпотентна: normalize_grid(normalize_grid(g, w), w) == normalize_grid(g, w).
    """
    cells: CellGrid = []
    for row in grid or []:
        cells_row = list(row)
        if len(cells_row) < column_count:
            cells_row.extend(blank_row(column_count - len(cells_row)))
        cells.append(cells_row)

    while cells and is_blank_row(cells[-1]):
        cells.pop()
    return cells


def clone_grid(grid: Sequence[Sequence[Cell]]) -> CellGrid:
    # Ячейки примитивные, достаточно копии каждого ряда.
    return [list(row) for row in grid]


def grids_equal(left: Sequence[Sequence[Cell]], right: Sequence[Sequence[Cell]]) -> bool:
    """Структурное сравнение двух сеток по значениям (12 == 12.0, '12' != 12)."""
    if len(left) != len(right):
        return False
    return all(list(a) == list(b) for a, b in zip(left, right))


__all__ = [
    "Cell",
    "CellRow",
    "CellGrid",
    "EMPTY_CELL",
    "blank_row",
    "blank_rows",
    "is_blank_row",
    "normalize_grid",
    "clone_grid",
    "grids_equal",
]
