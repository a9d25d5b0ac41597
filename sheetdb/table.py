from __future__ import annotations

import inspect
import logging
import time
from dataclasses import dataclass
from datetime import date, datetime
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Iterable, Optional, Union

from sheetdb.domain.addressing import UNBOUNDED, range_address, sheet_range
from sheetdb.domain.grid import CellGrid, blank_rows, clone_grid, grids_equal, normalize_grid
from sheetdb.domain.schema import ColumnDef, TableDef
from sheetdb.loggingSetup import logEvent

if TYPE_CHECKING:
    from sheetdb.database import Database

Row = dict[str, Any]
AfterSave = Callable[[list[Row]], Union[Awaitable[None], None]]

# Первая строка листа: заголовок, данные начинаются со второй.
FIRST_DATA_ROW = 2


@dataclass
class CacheEntry:
    grid: CellGrid
    captured_at: float


def _comparable(value: Any) -> Any:
    # date и datetime одной колонки сравниваются как локальная полночь.
    if isinstance(value, date) and not isinstance(value, datetime):
        return datetime(value.year, value.month, value.day)
    return value


def _sort_key(columns: tuple[str, ...]) -> Callable[[Row], tuple]:
    # None идёт раньше любых значений колонки.
    def key(row: Row) -> tuple:
        parts: list[Any] = []
        for name in columns:
            value = row.get(name)
            parts.append((value is not None, _comparable(value) if value is not None else 0))
        return tuple(parts)

    return key


def _unique_key(row: Row, columns: tuple[str, ...]) -> tuple:
    return tuple(_comparable(row.get(name)) for name in columns)


def sort_rows(rows: Iterable[Row], columns: tuple[str, ...]) -> list[Row]:
    """Устойчивая сортировка по возрастанию; следующая колонка разрешает равенство предыдущей."""
    if not columns:
        return list(rows)
    return sorted(rows, key=_sort_key(columns))


def dedupe_rows(rows: Iterable[Row], columns: tuple[str, ...]) -> list[Row]:
    """
    Назначение:
        Удаляет дубликаты по набору колонок unique.
    Контракт:
        - Побеждает последняя строка с данным ключом (last-write-wins).
        - Порядок: по первому появлению ключа.
    """
    if not columns:
        return list(rows)
    by_key: dict[tuple, Row] = {}
    for row in rows:
        by_key[_unique_key(row, columns)] = row
    return list(by_key.values())


class Table:
    """
    Назначение/ответственность:
        Синхронизация одной таблицы: типизированные строки в памяти <-> сетка ячеек листа.
    Инварианты/гарантии:
        - Кэш сетки принадлежит только этой таблице, живёт cache_time секунд.
        - load() никогда не пишет в лист.
        - save() делает не больше одного чтения и одной записи; при отсутствии
          изменений запись пропускается.
        - Все удалённые вызовы идут через database.exec (FIFO-замок источника).
    Взаимодействия:
        - Database: spreadsheet_id, remote, exec, run_id, logger.
        - ColumnDef.codec: кодирование/декодирование значений.
    """

    def __init__(self, database: "Database", table_def: TableDef):
        self.database = database
        self.table_def = table_def
        self.after_save: Optional[AfterSave] = None
        self._cache: Optional[CacheEntry] = None
        self._data: list[Row] = []
        self._component = f"table:{table_def.name}"

    def __repr__(self) -> str:
        return f"Table{{ {self.name!r} }}"

    # ----------------------------------------------------
    # Схема

    @property
    def name(self) -> str:
        return self.table_def.name

    @property
    def sheet(self) -> str:
        return self.table_def.sheet

    @property
    def columns(self) -> tuple[ColumnDef, ...]:
        return self.table_def.columns

    @property
    def sort(self) -> tuple[str, ...]:
        return self.table_def.sort

    @property
    def unique(self) -> tuple[str, ...]:
        return self.table_def.unique

    @property
    def data(self) -> list[Row]:
        return list(self._data)

    # ----------------------------------------------------
    # Публичный load/save

    async def load(self, force: bool = False) -> list[Row]:
        if force:
            self._clear_cache()
        cells = self._get_cache()
        if cells is None:
            cells = await self._read_cells_from_sheet()
        self._data = self._convert_cells_to_rows(cells)
        return self.data

    async def save(self, data: Optional[Iterable[Row]] = None, force: bool = False) -> None:
        """
        Алгоритм:
            - force сбрасывает кэш, data (если задано) заменяет набор строк.
            - sort -> unique -> кодирование в сетку.
            - Сравнение с прошлой сеткой (кэш или свежее чтение); при равенстве запись пропускается.
            - Иначе запись диапазона max(новых, прежних) строк, лишние забиваются пустыми.
            - after_save вызывается в обоих случаях.
        """
        if force:
            self._clear_cache()
        if data is not None:
            self._data = [dict(row) for row in data]

        rows = sort_rows(self._data, self.sort)
        rows = dedupe_rows(rows, self.unique)
        self._data = rows

        cells = self._convert_rows_to_cells(rows)

        prev_cells = self._get_cache()
        if prev_cells is None:
            prev_cells = await self._read_cells_from_sheet()

        if grids_equal(prev_cells, cells):
            self._log(logging.DEBUG, f"No change. Skipping update of {len(cells)} rows")
        else:
            blank_count = max(0, len(prev_cells) - len(cells))
            await self._write_cells_to_sheet(cells, blank_count)

        if self.after_save is not None:
            result = self.after_save(self.data)
            if inspect.isawaitable(result):
                await result

    # ----------------------------------------------------
    # Конвертация

    def _convert_cells_to_rows(self, cells: CellGrid) -> list[Row]:
        rows: list[Row] = []
        for cell_row in cells:
            rows.append({col.name: col.from_sheet(cell_row[i]) for i, col in enumerate(self.columns)})
        return rows

    def _convert_rows_to_cells(self, rows: list[Row]) -> CellGrid:
        return [[col.to_sheet(row.get(col.name)) for col in self.columns] for row in rows]

    # ----------------------------------------------------
    # Кэш последней прочитанной/записанной сетки

    def _get_cache(self) -> Optional[CellGrid]:
        if self._cache is None:
            return None
        if time.monotonic() - self._cache.captured_at >= self.database.cache_time:
            self._clear_cache()
            return None
        return self._cache.grid

    def _clear_cache(self) -> None:
        self._cache = None

    def _store_cache(self, cells: CellGrid) -> CellGrid:
        self._cache = CacheEntry(grid=clone_grid(cells), captured_at=time.monotonic())
        return cells

    # ----------------------------------------------------
    # Чтение/запись листа

    def _range(self, height: float) -> str:
        address = range_address(FIRST_DATA_ROW, 1, height, len(self.columns))
        return sheet_range(self.sheet, address)

    async def _read_cells_from_sheet(self) -> CellGrid:
        db = self.database
        range_ = self._range(UNBOUNDED)
        raw = await db.exec(lambda: db.remote.read_range(db.spreadsheet_id, range_))
        cells = normalize_grid(raw, len(self.columns))
        self._log(logging.DEBUG, f"{len(cells)} rows loaded")
        return self._store_cache(cells)

    async def _write_cells_to_sheet(self, cells: CellGrid, blank_count: int) -> None:
        db = self.database
        trailer = blank_rows(blank_count, len(self.columns))
        payload = cells + trailer
        range_ = self._range(len(payload))

        self._store_cache(cells)
        try:
            await db.exec(lambda: db.remote.update_range(db.spreadsheet_id, range_, payload))
        except Exception:
            # Лист мог остаться в неизвестном состоянии: следующий save перечитает его.
            self._clear_cache()
            raise
        self._log(logging.DEBUG, f"{len(cells)} rows written, {blank_count} rows blanked")

    def _log(self, level: int, message: str) -> None:
        logEvent(self.database.logger, level, self.database.run_id, self._component, message)


__all__ = ["Table", "Row", "CacheEntry", "FIRST_DATA_ROW", "sort_rows", "dedupe_rows"]
