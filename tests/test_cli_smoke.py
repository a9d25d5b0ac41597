from __future__ import annotations

import json

import pytest
from typer.testing import CliRunner

from sheetdb import cli
from sheetdb.cli import app

runner = CliRunner()

SCHEMA = "\n".join([
    "tables:",
    "  trades:",
    "    name: Trades",
    "    cols: ticker,date:date,qty:number,cost:money",
    "    sort: ticker",
    "    unique: ticker",
])


@pytest.fixture
def schema_file(tmp_path):
    path = tmp_path / "schema.yml"
    path.write_text(SCHEMA, encoding="utf-8")
    return str(path)


@pytest.fixture
def remote(monkeypatch, fake_remote_factory):
    class ClosableRemote(fake_remote_factory):
        closed = False

        async def aclose(self):
            self.closed = True

    instance = ClosableRemote({"Trades": [["BBB", 45000.5, 2, 1.5], ["AAA", "", 1, ""], ["BBB", "", 3, ""]]})
    monkeypatch.setattr(cli, "createRemote", lambda settings: instance)
    return instance


def base_args(tmp_path, schema_file):
    return ["--spreadsheet-id", "sid", "--schema", schema_file, "--log-dir", str(tmp_path / "logs")]


def test_help_shows_commands():
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    for command in ("check-config", "tables", "dump", "resave", "read-range"):
        assert command in result.stdout


def test_dump_requires_spreadsheet_id(monkeypatch, schema_file):
    monkeypatch.delenv("SHEETDB_SPREADSHEET_ID", raising=False)
    result = runner.invoke(app, ["--schema", schema_file, "dump", "trades"])
    assert result.exit_code == 2
    assert "spreadsheet_id" in result.output


def test_dump_requires_schema(monkeypatch, tmp_path):
    monkeypatch.delenv("SHEETDB_SCHEMA_FILE", raising=False)
    result = runner.invoke(app, ["--spreadsheet-id", "sid", "--schema", str(tmp_path / "missing.yml"), "dump", "trades"])
    assert result.exit_code == 2
    assert "schema file not found" in result.output


def test_tables_lists_schema(schema_file):
    result = runner.invoke(app, ["--schema", schema_file, "tables"])
    assert result.exit_code == 0
    assert "trades sheet=Trades cols=ticker:string,date:date,qty:number,cost:money sort=ticker unique=ticker" in result.stdout


def test_dump_prints_json_rows(tmp_path, schema_file, remote):
    result = runner.invoke(app, base_args(tmp_path, schema_file) + ["dump", "trades"])

    assert result.exit_code == 0
    rows = [json.loads(line) for line in result.stdout.splitlines() if line.startswith("{")]
    assert rows[0] == {"ticker": "BBB", "date": "2023-03-15T12:00:00", "qty": 2, "cost": "1.50"}
    assert rows[1] == {"ticker": "AAA", "date": None, "qty": 1, "cost": None}
    assert remote.closed is True
    assert list((tmp_path / "logs").glob("dump_*.log"))


def test_dump_unknown_table(tmp_path, schema_file, remote):
    result = runner.invoke(app, base_args(tmp_path, schema_file) + ["dump", "nope"])
    assert result.exit_code == 2
    assert "unknown table" in result.output


def test_resave_sorts_and_dedupes(tmp_path, schema_file, remote):
    result = runner.invoke(app, base_args(tmp_path, schema_file) + ["resave", "trades"])

    assert result.exit_code == 0
    assert "rows_before=3 rows_after=2" in result.stdout
    range_, payload = remote.writes[0]
    assert range_ == "Trades!A2:D4"
    assert payload == [["AAA", "", 1, ""], ["BBB", "", 3, ""], ["", "", "", ""]]


def test_read_range_prints_raw_cells(tmp_path, schema_file, remote):
    result = runner.invoke(app, base_args(tmp_path, schema_file) + ["read-range", "Trades"])

    assert result.exit_code == 0
    assert remote.reads == ["Trades!A1:ZZ9999"]
    assert json.loads(result.stdout.splitlines()[0]) == ["BBB", 45000.5, 2, 1.5]


def test_remote_errors_exit_with_code_1(tmp_path, schema_file, monkeypatch, fake_remote_factory):
    from sheetdb.infra.http.sheets_client import ApiError

    class FailingRemote(fake_remote_factory):
        async def read_range(self, spreadsheet_id, range_):
            raise ApiError("HTTP 404", status_code=404)

        async def aclose(self):
            pass

    monkeypatch.setattr(cli, "createRemote", lambda settings: FailingRemote())
    result = runner.invoke(app, base_args(tmp_path, schema_file) + ["dump", "trades"])

    assert result.exit_code == 1
    assert "NOT_FOUND" in result.output
