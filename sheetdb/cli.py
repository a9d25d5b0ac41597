from __future__ import annotations

import asyncio
import json
import logging
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path
from typing import Any, Awaitable, Callable

import typer

from .common.run_id import generate_run_id
from .common.sanitize import maskSecret
from .config import Settings, load_settings
from .database import Database, read_sheet
from .domain.exceptions import SchemaError
from .errors import AppError
from .infra.artifacts.schema_reader import apply_schema, read_schema_file
from .infra.http.auth import ServiceAccountTokenProvider
from .infra.http.sheets_client import SheetsApiClient
from .loggingSetup import closeLogger, createCommandLogger, logEvent

app = typer.Typer(no_args_is_help=True, add_completion=False)


def createRemote(settings: Settings) -> SheetsApiClient:
    """
    Назначение:
        Собирает клиент Sheets API по настройкам (ключ сервисного аккаунта).
    """
    if not settings.credentials_file:
        raise AppError(category="config", code="CREDENTIALS_REQUIRED", message="credentials_file is not configured")
    provider = ServiceAccountTokenProvider(settings.credentials_file)
    return SheetsApiClient(provider, timeoutSeconds=settings.timeout_seconds)


def toJsonable(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return str(value)
    return value


def requireSource(settings: Settings) -> None:
    """
    Назначение:
        Проверяет, что задан spreadsheet_id; иначе exit code 2.
    """
    if not settings.spreadsheet_id:
        typer.echo("ERROR: missing setting: spreadsheet_id", err=True)
        raise typer.Exit(code=2)


def loadTables(settings: Settings) -> dict[str, dict]:
    """
    Назначение:
        Читает схему таблиц; отсутствие/ошибка схемы -> exit code 2.
    """
    if not settings.schema_file:
        typer.echo("ERROR: missing setting: schema_file", err=True)
        raise typer.Exit(code=2)
    if not Path(settings.schema_file).is_file():
        typer.echo(f"ERROR: schema file not found: {settings.schema_file}", err=True)
        raise typer.Exit(code=2)
    try:
        return read_schema_file(settings.schema_file)
    except SchemaError as exc:
        typer.echo(f"ERROR: invalid schema: {exc}", err=True)
        raise typer.Exit(code=2)


def runWithDatabase(
    ctx: typer.Context,
    commandName: str,
    requiresSchema: bool,
    runner: Callable[[Database, logging.Logger], Awaitable[int]],
) -> None:
    """
    Назначение:
        Унифицированная обвязка команд, которым нужен удалённый источник:
        - проверяет настройки и схему
        - создаёт логгер команды + файл лога
        - собирает Database с клиентом Sheets API
        - выполняет runner в event loop и закрывает клиент

    Поведение:
        - AppError -> сообщение в stderr, exit code 1.
        - Код возврата runner становится exit code.
    """
    settings: Settings = ctx.obj["settings"]
    runId: str = ctx.obj["runId"]

    requireSource(settings)
    tables = loadTables(settings) if requiresSchema else {}

    logger, logPath = createCommandLogger(commandName, settings.log_dir, runId, settings.log_level)

    async def execute() -> int:
        remote = createRemote(settings)
        try:
            db = Database(
                settings.spreadsheet_id,
                remote=remote,
                cache_time=settings.cache_time,
                logger=logger,
                run_id=runId,
            )
            apply_schema(db, tables)
            return await runner(db, logger)
        finally:
            await remote.aclose()

    logEvent(logger, logging.INFO, runId, "cli", f"{commandName} started")
    try:
        exitCode = asyncio.run(execute())
    except AppError as exc:
        logEvent(logger, logging.ERROR, runId, "cli", f"{commandName} failed: {exc.code} {exc}")
        typer.echo(f"ERROR: {exc.code}: {exc}", err=True)
        exitCode = 1
    finally:
        closeLogger(logger)

    typer.echo(f"log_file={logPath}", err=True)
    if exitCode:
        raise typer.Exit(code=exitCode)


def requireTable(db: Database, name: str):
    if name not in db.tables:
        typer.echo(f"ERROR: unknown table: {name}", err=True)
        raise typer.Exit(code=2)
    return db.tables[name]


@app.callback()
def main(
    ctx: typer.Context,
    config: str | None = typer.Option(None, "--config", help="Path to config.yml"),
    runId: str | None = typer.Option(None, "--run-id", help="Run identifier (UUID). If omitted, generated."),
    spreadsheetId: str | None = typer.Option(None, "--spreadsheet-id", help="Google spreadsheet id"),
    credentials: str | None = typer.Option(None, "--credentials", help="Service account key file"),
    schema: str | None = typer.Option(None, "--schema", help="Path to tables schema (YAML)"),
    cacheTime: float | None = typer.Option(None, "--cache-time", help="Cell cache lifetime in seconds"),
    timeoutSeconds: float | None = typer.Option(None, "--timeout-seconds", help="API timeout in seconds"),
    logLevel: str | None = typer.Option(None, "--log-level", help="Log level: ERROR|WARN|INFO|DEBUG"),
    logDir: str | None = typer.Option(None, "--log-dir", help="Directory for logs."),
):
    """
    Назначение:
        Глобальная инициализация CLI:
        - генерирует/принимает run_id
        - загружает настройки (CLI > ENV > config > defaults)
        - сохраняет всё в ctx.obj для подкоманд
    """
    cliOverrides = {
        "spreadsheet_id": spreadsheetId,
        "credentials_file": credentials,
        "schema_file": schema,
        "cache_time": cacheTime,
        "timeout_seconds": timeoutSeconds,
        "log_level": logLevel,
        "log_dir": logDir,
    }
    try:
        loaded = load_settings(config_path=config, cli_overrides=cliOverrides)
    except ValueError as exc:
        typer.echo(f"ERROR: {exc}", err=True)
        raise typer.Exit(code=2)

    ctx.obj = {
        "runId": runId or generate_run_id(),
        "settings": loaded.settings,
        "sources": loaded.sources_used,
        "configPath": config,
    }


@app.command("check-config")
def checkConfig(ctx: typer.Context):
    """Печатает итоговые настройки (без секретов)."""
    settings: Settings = ctx.obj["settings"]
    typer.echo(
        f"run_id={ctx.obj['runId']} spreadsheet_id={settings.spreadsheet_id} "
        f"credentials_file={maskSecret(settings.credentials_file)} schema_file={settings.schema_file} "
        f"cache_time={settings.cache_time} timeout_seconds={settings.timeout_seconds} "
        f"log_level={settings.log_level} sources={ctx.obj['sources']}"
    )


@app.command("tables")
def listTables(ctx: typer.Context):
    """Список таблиц схемы с колонками."""
    settings: Settings = ctx.obj["settings"]
    tables = loadTables(settings)
    db = Database(settings.spreadsheet_id or "offline", cache_time=settings.cache_time)
    try:
        apply_schema(db, tables)
    except SchemaError as exc:
        typer.echo(f"ERROR: invalid schema: {exc}", err=True)
        raise typer.Exit(code=2)
    for name, table in db.tables.items():
        cols = ",".join(f"{c.name}:{c.type}" for c in table.columns)
        line = f"{name} sheet={table.sheet} cols={cols}"
        if table.sort:
            line += f" sort={','.join(table.sort)}"
        if table.unique:
            line += f" unique={','.join(table.unique)}"
        typer.echo(line)


@app.command("dump")
def dump(
    ctx: typer.Context,
    table: str = typer.Argument(..., help="Table name from schema"),
    force: bool = typer.Option(False, "--force", help="Ignore cached cells"),
):
    """Загружает таблицу и печатает строки как JSON lines."""

    async def execute(db: Database, logger: logging.Logger) -> int:
        t = requireTable(db, table)
        rows = await t.load(force=force)
        for row in rows:
            typer.echo(json.dumps({k: toJsonable(v) for k, v in row.items()}, ensure_ascii=False))
        logEvent(logger, logging.INFO, db.run_id, "dump", f"{table}: {len(rows)} rows")
        return 0

    runWithDatabase(ctx, "dump", requiresSchema=True, runner=execute)


@app.command("resave")
def resave(
    ctx: typer.Context,
    table: str = typer.Argument(..., help="Table name from schema"),
    force: bool = typer.Option(False, "--force", help="Re-read the sheet before comparing"),
):
    """Перезаписывает таблицу после sort/unique (запись пропускается без изменений)."""

    async def execute(db: Database, logger: logging.Logger) -> int:
        t = requireTable(db, table)
        before = await t.load()
        await t.save(force=force)
        typer.echo(f"table={table} rows_before={len(before)} rows_after={len(t.data)}")
        return 0

    runWithDatabase(ctx, "resave", requiresSchema=True, runner=execute)


@app.command("read-range")
def readRange(
    ctx: typer.Context,
    range_: str = typer.Argument(..., metavar="RANGE", help="A1 range or bare sheet title"),
):
    """Печатает сырые ячейки диапазона как JSON lines."""

    async def execute(db: Database, logger: logging.Logger) -> int:
        cells = await db.exec(lambda: read_sheet(db.remote, db.spreadsheet_id, range_))
        for row in cells:
            typer.echo(json.dumps(row, ensure_ascii=False))
        return 0

    runWithDatabase(ctx, "read-range", requiresSchema=False, runner=execute)


if __name__ == "__main__":
    app()
