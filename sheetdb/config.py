from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
import os
import yaml


@dataclass(frozen=True)
class Settings:
    # Source
    spreadsheet_id: str | None = None
    credentials_file: str | None = None
    schema_file: str | None = None

    # Sync
    cache_time: float = 60.0
    timeout_seconds: float = 30.0

    # Logging
    log_dir: str = "./logs"
    log_level: str = "INFO"


@dataclass(frozen=True)
class LoadedSettings:
    settings: Settings
    sources_used: list[str]


def _read_yaml_config(path: Path) -> dict:
    if not path.exists():
        return {}
    if not path.is_file():
        return {}
    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            return {}
        return data


def _env_get(name: str) -> str | None:
    v = os.getenv(name)
    if v is None or v.strip() == "":
        return None
    return v.strip()


def _parse_float(name: str, v: str | None) -> float | None:
    if v is None:
        return None
    try:
        return float(v)
    except ValueError as exc:
        raise ValueError(f"Invalid numeric value for {name}: {v}") from exc


def load_settings(
    config_path: str | None,
    cli_overrides: dict,
) -> LoadedSettings:
    """
    Priority: CLI > ENV > config > defaults
    """
    sources: list[str] = []
    defaults = Settings()

    # 1) config file
    cfg: dict = {}
    if config_path:
        cfg = _read_yaml_config(Path(config_path))
        if cfg:
            sources.append("config")

    # 2) env
    env = {
        "spreadsheet_id": _env_get("SHEETDB_SPREADSHEET_ID"),
        "credentials_file": _env_get("SHEETDB_CREDENTIALS_FILE") or _env_get("GOOGLE_APPLICATION_CREDENTIALS"),
        "schema_file": _env_get("SHEETDB_SCHEMA_FILE"),
        "cache_time": _parse_float("SHEETDB_CACHE_TIME", _env_get("SHEETDB_CACHE_TIME")),
        "timeout_seconds": _parse_float("SHEETDB_TIMEOUT_SECONDS", _env_get("SHEETDB_TIMEOUT_SECONDS")),
        "log_dir": _env_get("SHEETDB_LOG_DIR"),
        "log_level": _env_get("SHEETDB_LOG_LEVEL"),
    }
    if any(v is not None for v in env.values()):
        sources.append("env")

    # merge config -> env -> cli
    merged = {
        "spreadsheet_id": cfg.get("spreadsheet_id", defaults.spreadsheet_id),
        "credentials_file": cfg.get("credentials_file", defaults.credentials_file),
        "schema_file": cfg.get("schema_file", defaults.schema_file),
        "cache_time": cfg.get("cache_time", defaults.cache_time),
        "timeout_seconds": cfg.get("timeout_seconds", defaults.timeout_seconds),
        "log_dir": cfg.get("log_dir", defaults.log_dir),
        "log_level": cfg.get("log_level", defaults.log_level),
    }

    for k, v in env.items():
        if v is not None:
            merged[k] = v

    # 3) apply CLI overrides (only those explicitly passed)
    if any(v is not None for v in cli_overrides.values()):
        sources.append("cli")

    for k, v in cli_overrides.items():
        if v is None:
            continue
        merged[k] = v

    settings = Settings(
        spreadsheet_id=merged["spreadsheet_id"],
        credentials_file=merged["credentials_file"],
        schema_file=merged["schema_file"],
        cache_time=float(merged["cache_time"]),
        timeout_seconds=float(merged["timeout_seconds"]),
        log_dir=merged["log_dir"],
        log_level=str(merged["log_level"]),
    )

    return LoadedSettings(settings=settings, sources_used=sources)
