"""Configuration loading and validation."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

from ham_station.common.constants import ENV_DATABASE_URL, ENV_GEOCODE_KEY
from ham_station.common.errors import ConfigError
from ham_station.common.fs import read_yaml
from ham_station.common.http import RetryConfig, TimeoutConfig
from ham_station.common.schema import validate_settings_config


@dataclass(frozen=True)
class GeocodeSettings:
    endpoint: str
    api_key: str
    batch_size: Any
    extra_where: str | None


@dataclass(frozen=True)
class Settings:
    database_url: str
    geocode: GeocodeSettings
    timeout: TimeoutConfig
    retry: RetryConfig
    rate_per_sec: float | None


def _deep_merge(base: Any, overlay: Any) -> Any:
    if isinstance(base, dict) and isinstance(overlay, dict):
        merged = dict(base)
        for key, value in overlay.items():
            if key in merged:
                merged[key] = _deep_merge(merged[key], value)
            else:
                merged[key] = value
        return merged
    return overlay


def _load_yaml_with_overlay(path: Path, overlay_path: Path | None) -> dict:
    if not path.exists():
        raise ConfigError(f"Config file not found: {path}")
    base = read_yaml(path) or {}
    if overlay_path is None or not overlay_path.exists():
        return base
    overlay = read_yaml(overlay_path) or {}
    return _deep_merge(base, overlay)


def parse_batch_size(value: Any) -> int:
    if isinstance(value, bool):
        raise ConfigError("Geocode batch size is not set.")
    if isinstance(value, int):
        parsed = value
    elif isinstance(value, str) and value.strip().isdigit():
        parsed = int(value.strip())
    else:
        raise ConfigError("Geocode batch size is not set.")
    if parsed < 1:
        raise ConfigError(f"Geocode batch size must be positive, got {parsed}.")
    return parsed


def load_settings(
    config_path: Path,
    *,
    overlay_path: Path | None = None,
    allow_unknown: bool = False,
    env: Mapping[str, str] | None = None,
) -> Settings:
    env = os.environ if env is None else env
    cfg = validate_settings_config(
        _load_yaml_with_overlay(config_path, overlay_path),
        allow_unknown=allow_unknown,
    )

    geocode = cfg["geocode"]
    http = cfg["http"]
    rate = http.get("rate_per_sec")

    return Settings(
        database_url=env.get(ENV_DATABASE_URL) or cfg["database_url"],
        geocode=GeocodeSettings(
            endpoint=geocode["endpoint"],
            api_key=env.get(ENV_GEOCODE_KEY) or geocode["google_geocode_key"] or "",
            batch_size=geocode["geocode_batch_size"],
            extra_where=geocode["extra_batch_query_where"] or None,
        ),
        timeout=TimeoutConfig(
            connect=float(http["timeout"]["connect"]),
            read=float(http["timeout"]["read"]),
        ),
        retry=RetryConfig(
            max_attempts=int(http["retry"]["max_attempts"]),
            multiplier=float(http["retry"]["multiplier"]),
            max_wait=float(http["retry"]["max_wait"]),
        ),
        rate_per_sec=float(rate) if rate else None,
    )
