from __future__ import annotations

import pytest
from typer.testing import CliRunner

from sheetdb.cli import app
from sheetdb.config import Settings, load_settings

runner = CliRunner()


def _clear_env(monkeypatch):
    for name in (
        "SHEETDB_SPREADSHEET_ID",
        "SHEETDB_CREDENTIALS_FILE",
        "GOOGLE_APPLICATION_CREDENTIALS",
        "SHEETDB_SCHEMA_FILE",
        "SHEETDB_CACHE_TIME",
        "SHEETDB_TIMEOUT_SECONDS",
        "SHEETDB_LOG_DIR",
        "SHEETDB_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)


def test_defaults_without_any_source(monkeypatch):
    _clear_env(monkeypatch)
    loaded = load_settings(None, {})
    assert loaded.settings == Settings()
    assert loaded.sources_used == []


def test_priority_cli_over_env_over_config(tmp_path, monkeypatch):
    _clear_env(monkeypatch)
    cfg = tmp_path / "config.yml"
    cfg.write_text(
        "\n".join([
            'spreadsheet_id: "cfg-sheet"',
            'credentials_file: "/cfg/key.json"',
            "cache_time: 10",
            "log_level: DEBUG",
        ]),
        encoding="utf-8",
    )

    # ENV overrides config
    monkeypatch.setenv("SHEETDB_SPREADSHEET_ID", "env-sheet")
    monkeypatch.setenv("SHEETDB_CACHE_TIME", "20")

    # CLI overrides env
    result = runner.invoke(
        app,
        ["--config", str(cfg), "--spreadsheet-id", "cli-sheet", "check-config"],
    )
    assert result.exit_code == 0
    assert "spreadsheet_id=cli-sheet" in result.stdout
    assert "cache_time=20.0" in result.stdout
    assert "log_level=DEBUG" in result.stdout
    assert "credentials_file=***" in result.stdout
    assert "sources=['config', 'env', 'cli']" in result.stdout


def test_google_credentials_env_is_a_fallback(monkeypatch):
    _clear_env(monkeypatch)
    monkeypatch.setenv("GOOGLE_APPLICATION_CREDENTIALS", "/google/key.json")
    assert load_settings(None, {}).settings.credentials_file == "/google/key.json"

    monkeypatch.setenv("SHEETDB_CREDENTIALS_FILE", "/sheetdb/key.json")
    assert load_settings(None, {}).settings.credentials_file == "/sheetdb/key.json"


def test_invalid_numeric_env_value(monkeypatch):
    _clear_env(monkeypatch)
    monkeypatch.setenv("SHEETDB_CACHE_TIME", "soon")
    with pytest.raises(ValueError):
        load_settings(None, {})


def test_missing_or_non_mapping_config_is_ignored(tmp_path, monkeypatch):
    _clear_env(monkeypatch)
    listed = tmp_path / "list.yml"
    listed.write_text("- a\n- b\n", encoding="utf-8")

    assert load_settings(str(tmp_path / "nope.yml"), {}).sources_used == []
    assert load_settings(str(listed), {}).settings == Settings()
