from __future__ import annotations

from typing import Any, Protocol, Sequence


class SheetsRemoteProtocol(Protocol):
    """
    Назначение:
        Порт удалённой таблицы: чтение и запись прямоугольного диапазона.
    Контракт:
        - read_range возвращает сырые ячейки (unformatted, даты как serial) или [].
        - update_range перезаписывает ровно указанный диапазон, атомарно для вызывающего.
        - Неуспешный ответ -> исключение (ApiError), без ретраев.
    """

    async def read_range(self, spreadsheet_id: str, range_: str) -> list[list[Any]]: ...

    async def update_range(
        self,
        spreadsheet_id: str,
        range_: str,
        data: Sequence[Sequence[Any]],
    ) -> None: ...
