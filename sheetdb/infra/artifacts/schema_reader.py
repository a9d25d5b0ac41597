from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from sheetdb.database import Database
from sheetdb.domain.exceptions import SchemaError

_ALLOWED_KEYS = {"name", "cols", "sort", "unique"}


def _load_schema_raw(path: str) -> dict:
    try:
        data = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise SchemaError(f"Invalid schema file {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise SchemaError("Invalid schema format: root must be mapping")
    tables = data.get("tables")
    if not isinstance(tables, dict) or not tables:
        raise SchemaError("Invalid schema format: 'tables' must be a non-empty mapping")
    return tables


def _table_defs(name: str, raw: Any) -> dict:
    if not isinstance(raw, dict):
        raise SchemaError("Invalid schema format: table must be mapping", table=name)
    unknown = set(raw) - _ALLOWED_KEYS
    if unknown:
        raise SchemaError(
            f"Unknown keys in table definition: {', '.join(sorted(unknown))}",
            table=name,
        )
    # Имя листа по умолчанию совпадает с именем таблицы.
    defs = dict(raw)
    defs.setdefault("name", name)
    return defs


def read_schema_file(path: str) -> dict[str, dict]:
    """
    Назначение:
        Читает YAML-декларацию таблиц:
            tables:
              stocks: {name: Stocks, cols: "ticker,qty:number", sort: ticker, unique: ticker}
    Выходные данные:
        dict имя таблицы -> defs для Database.add_table.
    """
    tables = _load_schema_raw(path)
    return {str(name): _table_defs(str(name), raw) for name, raw in tables.items()}


def apply_schema(db: Database, tables: dict[str, dict]) -> Database:
    for name, defs in tables.items():
        db.add_table(name, defs)
    return db


__all__ = ["read_schema_file", "apply_schema"]
