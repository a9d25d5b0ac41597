from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Iterable, Mapping

from sheetdb.domain.codecs import CodecRegistry, ColumnCodec, default_registry
from sheetdb.domain.error_codes import ErrorCode
from sheetdb.domain.exceptions import SchemaError

DEFAULT_COLUMN_TYPE = "string"

_SEPARATORS_RE = re.compile(r"[,\s]+")


@dataclass(frozen=True)
class ColumnDef:
    name: str
    type: str
    codec: ColumnCodec
    unique: bool = False

    def to_sheet(self, value: Any):
        return self.codec.to_sheet(value)

    def from_sheet(self, raw: Any) -> Any:
        return self.codec.from_sheet(raw)


@dataclass(frozen=True)
class TableDef:
    """
    Назначение/ответственность:
        Разобранное описание одной таблицы.
    Инварианты/гарантии:
        - columns непустой, имена колонок уникальны.
        - sort и unique ссылаются только на объявленные колонки.
    """

    name: str
    sheet: str
    columns: tuple[ColumnDef, ...]
    sort: tuple[str, ...] = ()
    unique: tuple[str, ...] = ()

    @property
    def column_names(self) -> tuple[str, ...]:
        return tuple(col.name for col in self.columns)

    def column(self, name: str) -> ColumnDef:
        for col in self.columns:
            if col.name == name:
                return col
        raise KeyError(name)


def _split_list(spec: str) -> list[str]:
    return [part for part in _SEPARATORS_RE.split(spec.strip()) if part]


def parse_column_list(spec: str | Iterable[str] | None) -> tuple[str, ...]:
    """Список колонок: 'a,b c' или ['a', 'b c'] -> ('a', 'b', 'c'); None и '' -> ()."""
    if spec is None:
        return ()
    if isinstance(spec, str):
        return tuple(_split_list(spec))
    names: list[str] = []
    for item in spec:
        names.extend(_split_list(str(item)))
    return tuple(names)


def parse_columns(
    spec: str,
    registry: CodecRegistry | None = None,
    unique: Iterable[str] = (),
    table: str | None = None,
) -> tuple[ColumnDef, ...]:
    """
    Назначение:
        Разбирает компактную схему "name:type,name:type,..." (разделители: запятая/пробел).
    Контракт:
        - Тип по умолчанию string.
        - Кодек ищется в реестре один раз и фиксируется в ColumnDef.
        - Неизвестный тип/пустое имя/дубликат -> SchemaError.
    """
    registry = registry or default_registry
    unique_set = set(unique)
    if not isinstance(spec, str) or not spec.strip():
        raise SchemaError("Column spec must be a non-empty string", table=table)

    columns: list[ColumnDef] = []
    seen: set[str] = set()
    for col_def in _split_list(spec):
        name, _, col_type = col_def.partition(":")
        name = name.strip()
        col_type = col_type.strip() or DEFAULT_COLUMN_TYPE
        if not name:
            raise SchemaError(
                f"Empty column name in '{col_def}'",
                table=table,
                details={"column": col_def},
            )
        if name in seen:
            raise SchemaError(
                f"Duplicate column '{name}'",
                table=table,
                details={"column": name},
            )
        if col_type not in registry:
            raise SchemaError(
                f"Unknown column type '{col_type}' for column '{name}'",
                code=ErrorCode.UNKNOWN_TYPE,
                table=table,
                details={"column": name, "type": col_type},
            )
        seen.add(name)
        columns.append(
            ColumnDef(
                name=name,
                type=col_type,
                codec=registry.get(col_type),
                unique=name in unique_set,
            )
        )
    return tuple(columns)


def _require_known(names: tuple[str, ...], known: set[str], table: str, what: str) -> None:
    for name in names:
        if name not in known:
            raise SchemaError(
                f"{what} column '{name}' is not declared",
                code=ErrorCode.UNKNOWN_COLUMN,
                table=table,
                details={"column": name, "spec": what.lower()},
            )


def build_table_def(
    name: str,
    defs: Mapping[str, Any] | None,
    registry: CodecRegistry | None = None,
) -> TableDef:
    """
    Назначение:
        Собирает TableDef из декларации {name, cols, sort?, unique?}.
        name в декларации: имя листа; name аргумента: имя таблицы в Database.
    """
    if not defs or not isinstance(defs, Mapping):
        raise SchemaError("Table definition must be a mapping", table=name)
    sheet = defs.get("name")
    cols = defs.get("cols")
    if not sheet or not isinstance(sheet, str):
        raise SchemaError("Table definition is missing the sheet name", table=name)
    if not cols:
        raise SchemaError("Table definition is missing the column spec", table=name)

    sort = parse_column_list(defs.get("sort"))
    unique = parse_column_list(defs.get("unique"))
    columns = parse_columns(cols, registry=registry, unique=unique, table=name)

    known = {col.name for col in columns}
    _require_known(sort, known, name, "Sort")
    _require_known(unique, known, name, "Unique")

    return TableDef(name=name, sheet=sheet, columns=columns, sort=sort, unique=unique)


__all__ = [
    "ColumnDef",
    "TableDef",
    "DEFAULT_COLUMN_TYPE",
    "parse_column_list",
    "parse_columns",
    "build_table_def",
]
