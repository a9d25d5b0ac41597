from __future__ import annotations

from typing import Any

from sheetdb.domain.error_codes import ErrorCode
from sheetdb.errors import AppError


class SchemaError(AppError):
    """
    Назначение:
        Ошибка описания таблицы (колонки, типы, sort/unique).
    Инварианты/гарантии:
        - Поднимается только при конструировании таблицы, не восстанавливаемая.
        - details содержит имя таблицы и проблемный фрагмент схемы.
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.SCHEMA_INVALID,
        table: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        merged: dict[str, Any] = {"table": table}
        merged.update(details or {})
        super().__init__(
            category="schema",
            code=code.value,
            message=message,
            retryable=False,
            details=merged,
        )
        self.table = table


__all__ = ["SchemaError"]
