from pathlib import Path

import pytest

from ham_station.common.config_loader import load_settings, parse_batch_size
from ham_station.common.errors import ConfigError

BASE_CONFIG = """database_url: sqlite:///data/ham_station.db
geocode:
  endpoint: https://maps.googleapis.com/maps/api/geocode/json
  google_geocode_key: "file-key"
  geocode_batch_size: 25
  extra_batch_query_where: null
http:
  timeout:
    connect: 5
    read: 15
  retry:
    max_attempts: 5
    multiplier: 0.5
    max_wait: 10
  rate_per_sec: 0
"""


def _write(path: Path, text: str) -> Path:
    path.write_text(text, encoding="utf-8")
    return path


def test_load_settings_from_repo_config():
    settings = load_settings(Path("config/ham_station.yml"), env={})
    assert settings.geocode.api_key == ""
    assert settings.geocode.batch_size == 100
    assert settings.retry.max_attempts == 5
    assert settings.rate_per_sec == 10.0


def test_load_settings_reads_values(tmp_path: Path):
    settings = load_settings(_write(tmp_path / "settings.yml", BASE_CONFIG), env={})

    assert settings.database_url == "sqlite:///data/ham_station.db"
    assert settings.geocode.api_key == "file-key"
    assert settings.geocode.batch_size == 25
    assert settings.geocode.extra_where is None
    assert settings.timeout.connect == 5.0
    assert settings.retry.multiplier == 0.5
    assert settings.rate_per_sec is None


def test_load_settings_applies_overlay_values(tmp_path: Path):
    base = _write(tmp_path / "settings.yml", BASE_CONFIG)
    overlay = _write(
        tmp_path / "live.yml",
        """geocode:
  geocode_batch_size: 500
  extra_batch_query_where: "hs.country_code = 'US'"
""",
    )

    settings = load_settings(base, overlay_path=overlay, env={})

    assert settings.geocode.batch_size == 500
    assert settings.geocode.extra_where == "hs.country_code = 'US'"
    assert settings.geocode.api_key == "file-key"


def test_environment_overrides_key_and_database(tmp_path: Path):
    settings = load_settings(
        _write(tmp_path / "settings.yml", BASE_CONFIG),
        env={
            "HAM_STATION_GOOGLE_GEOCODE_KEY": "env-key",
            "HAM_STATION_DATABASE_URL": "sqlite:///other.db",
        },
    )
    assert settings.geocode.api_key == "env-key"
    assert settings.database_url == "sqlite:///other.db"


def test_load_settings_missing_file_raises(tmp_path: Path):
    with pytest.raises(ConfigError):
        load_settings(tmp_path / "absent.yml", env={})


def test_load_settings_rejects_unknown_keys(tmp_path: Path):
    path = _write(tmp_path / "settings.yml", BASE_CONFIG + "surprise: true\n")
    with pytest.raises(ConfigError):
        load_settings(path, env={})
    assert load_settings(path, allow_unknown=True, env={}).geocode.batch_size == 25


@pytest.mark.parametrize(("value", "expected"), [(1, 1), (250, 250), ("40", 40), (" 7 ", 7)])
def test_parse_batch_size_accepts_positive_integers(value, expected):
    assert parse_batch_size(value) == expected


@pytest.mark.parametrize("value", [0, -3, None, "", "ten", 2.5, True])
def test_parse_batch_size_rejects_invalid(value):
    with pytest.raises(ConfigError):
        parse_batch_size(value)
