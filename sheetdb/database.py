from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Mapping, Optional, TypeVar, Union

from sheetdb.common.lock import SerialLock
from sheetdb.common.run_id import generate_run_id
from sheetdb.domain.addressing import sheet_range
from sheetdb.domain.codecs import ColumnCodec, FromSheet, ToSheet, default_registry, register_type
from sheetdb.domain.ports.sheets import SheetsRemoteProtocol
from sheetdb.domain.schema import build_table_def
from sheetdb.loggingSetup import getLibraryLogger, logEvent
from sheetdb.table import Table

T = TypeVar("T")

DEFAULT_CACHE_TIME = 60.0
DEFAULT_READ_RANGE = "A1:ZZ9999"


class Database:
    """
    Назначение/ответственность:
        Один удалённый spreadsheet: идентификатор, таблицы по именам и общий
        FIFO-замок, через который проходят все удалённые вызовы таблиц.
    Инварианты/гарантии:
        - Таблицы только добавляются, не удаляются.
        - В каждый момент выполняется не больше одного удалённого вызова.
    """

    def __init__(
        self,
        spreadsheet_id: str,
        remote: Optional[SheetsRemoteProtocol] = None,
        cache_time: Optional[float] = None,
        logger: Optional[logging.Logger] = None,
        run_id: Optional[str] = None,
    ):
        if not spreadsheet_id:
            raise ValueError("spreadsheet_id is required")
        self._spreadsheet_id = spreadsheet_id
        self._remote = remote
        self._lock = SerialLock()
        self._tables: dict[str, Table] = {}
        self.cache_time = DEFAULT_CACHE_TIME if cache_time is None else float(cache_time)
        self.logger = logger or getLibraryLogger()
        self.run_id = run_id or generate_run_id()

    @staticmethod
    def register_type(name: str, *, to_sheet: ToSheet, from_sheet: FromSheet) -> ColumnCodec:
        return register_type(name, to_sheet=to_sheet, from_sheet=from_sheet)

    @property
    def spreadsheet_id(self) -> str:
        return self._spreadsheet_id

    @property
    def tables(self) -> Mapping[str, Table]:
        return self._tables

    @property
    def remote(self) -> SheetsRemoteProtocol:
        if self._remote is None:
            raise RuntimeError("Database has no remote client configured")
        return self._remote

    @remote.setter
    def remote(self, value: SheetsRemoteProtocol) -> None:
        self._remote = value

    async def exec(self, fn: Callable[[], Union[Awaitable[T], T]]) -> T:
        return await self._lock.exec(fn)

    def add_table(self, name: str, defs: Mapping[str, Any]) -> "Database":
        table_def = build_table_def(name, defs, registry=default_registry)
        self._tables[name] = Table(self, table_def)
        logEvent(self.logger, logging.DEBUG, self.run_id, "database", f"Added {name}")
        return self


async def read_sheet(remote: SheetsRemoteProtocol, spreadsheet_id: str, range_: str) -> list[list[Any]]:
    """Разовое чтение произвольного диапазона; голое имя листа расширяется до A1:ZZ9999."""
    if "!" not in range_:
        range_ = sheet_range(range_, DEFAULT_READ_RANGE)
    return await remote.read_range(spreadsheet_id, range_)


__all__ = ["Database", "read_sheet", "DEFAULT_CACHE_TIME"]
