from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Callable

from sheetdb.domain.grid import EMPTY_CELL, Cell
from sheetdb.domain.serial_date import SerialDate

ToSheet = Callable[[Any], Cell]
FromSheet = Callable[[Cell], Any]

MONEY_QUANT = Decimal("0.01")


@dataclass(frozen=True)
class ColumnCodec:
    """
    Назначение:
        Пара чистых функций для одного типа колонки.
    Контракт:
        from_sheet: сырая ячейка -> типизированное значение ('' -> None).
        to_sheet: типизированное значение -> сырая ячейка (None -> '').
    """

    name: str
    to_sheet: ToSheet
    from_sheet: FromSheet


def _string_from_sheet(raw: Cell) -> Any:
    if raw == EMPTY_CELL:
        return None
    return raw


def _string_to_sheet(value: Any) -> Cell:
    if value is None:
        return EMPTY_CELL
    return str(value)


def _number_from_sheet(raw: Cell) -> int | float | None:
    if raw == EMPTY_CELL:
        return None
    if isinstance(raw, bool):
        return int(raw)
    if isinstance(raw, (int, float)):
        return raw
    text = str(raw).strip()
    try:
        return int(text)
    except ValueError:
        pass
    try:
        return float(text)
    except ValueError as exc:
        raise ValueError(f"Not a number: {raw!r}") from exc


def _number_to_sheet(value: Any) -> Cell:
    if value is None:
        return EMPTY_CELL
    return value


def _date_from_sheet(raw: Cell) -> Any:
    if raw == EMPTY_CELL:
        return None
    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        raise TypeError(f"Date cell must hold a serial number, got {raw!r}")
    return SerialDate.from_serial(raw).to_local_date()


def _date_to_sheet(value: Any) -> Cell:
    if value is None:
        return EMPTY_CELL
    return SerialDate.from_local_date(value).serial


def _money_from_sheet(raw: Cell) -> Decimal | None:
    if raw == EMPTY_CELL:
        return None
    try:
        amount = Decimal(str(raw).strip())
    except InvalidOperation as exc:
        raise ValueError(f"Not a money amount: {raw!r}") from exc
    return amount.quantize(MONEY_QUANT, rounding=ROUND_HALF_UP)


def _money_to_sheet(value: Any) -> Cell:
    if value is None:
        return EMPTY_CELL
    return float(value)


class CodecRegistry:
    """
    Назначение/ответственность:
        Реестр кодеков колонок по имени типа.
    Ограничения:
        - Колонки получают кодек в момент разбора схемы; перерегистрация типа
          не затрагивает уже созданные таблицы.
    """

    def __init__(self) -> None:
        self._codecs: dict[str, ColumnCodec] = {}

    def register(self, name: str, to_sheet: ToSheet, from_sheet: FromSheet) -> ColumnCodec:
        if not name:
            raise ValueError("Codec name must not be empty")
        codec = ColumnCodec(name=name, to_sheet=to_sheet, from_sheet=from_sheet)
        self._codecs[name] = codec
        return codec

    def unregister(self, name: str) -> None:
        self._codecs.pop(name, None)

    def get(self, name: str) -> ColumnCodec:
        if name not in self._codecs:
            raise KeyError(f"Unsupported column type: {name}")
        return self._codecs[name]

    def __contains__(self, name: object) -> bool:
        return name in self._codecs

    def names(self) -> list[str]:
        return list(self._codecs)


def install_builtin_codecs(registry: CodecRegistry) -> CodecRegistry:
    registry.register("string", _string_to_sheet, _string_from_sheet)
    registry.register("number", _number_to_sheet, _number_from_sheet)
    registry.register("date", _date_to_sheet, _date_from_sheet)
    registry.register("money", _money_to_sheet, _money_from_sheet)
    return registry


default_registry = install_builtin_codecs(CodecRegistry())


def register_type(name: str, *, to_sheet: ToSheet, from_sheet: FromSheet) -> ColumnCodec:
    """Регистрирует тип в процессном реестре (до создания таблиц, которые его используют)."""
    return default_registry.register(name, to_sheet, from_sheet)


__all__ = [
    "ColumnCodec",
    "CodecRegistry",
    "default_registry",
    "install_builtin_codecs",
    "register_type",
]
