"""Minimal strict schemas for YAML config validation."""

from __future__ import annotations

from ham_station.common.errors import ConfigError


def _assert_required_keys(obj: dict, required: set[str], ctx: str) -> None:
    if not isinstance(obj, dict):
        raise ConfigError(f"{ctx} must be a mapping")
    missing = required - set(obj)
    if missing:
        missing_str = ", ".join(sorted(missing))
        raise ConfigError(f"Missing keys in {ctx}: {missing_str}")


def _assert_no_unknown_keys(obj: dict, known: set[str], ctx: str, allow_unknown: bool) -> None:
    if allow_unknown:
        return
    unknown = set(obj) - known
    if unknown:
        unknown_str = ", ".join(sorted(unknown))
        raise ConfigError(f"Unknown keys in {ctx}: {unknown_str}")


def validate_settings_config(cfg: dict, *, allow_unknown: bool = False) -> dict:
    top = {"database_url", "geocode", "http"}
    _assert_required_keys(cfg, top, "settings")
    _assert_no_unknown_keys(cfg, top, "settings", allow_unknown)

    geocode = {"endpoint", "google_geocode_key", "geocode_batch_size", "extra_batch_query_where"}
    _assert_required_keys(cfg["geocode"], geocode, "geocode")
    _assert_no_unknown_keys(cfg["geocode"], geocode, "geocode", allow_unknown)

    http = {"timeout", "retry", "rate_per_sec"}
    _assert_required_keys(cfg["http"], http, "http")
    _assert_no_unknown_keys(cfg["http"], http, "http", allow_unknown)
    _assert_required_keys(cfg["http"]["timeout"], {"connect", "read"}, "http.timeout")
    _assert_required_keys(
        cfg["http"]["retry"],
        {"max_attempts", "multiplier", "max_wait"},
        "http.retry",
    )

    max_attempts = cfg["http"]["retry"]["max_attempts"]
    if isinstance(max_attempts, bool) or not isinstance(max_attempts, int) or max_attempts < 1:
        raise ConfigError("http.retry.max_attempts must be a positive integer")

    return cfg
