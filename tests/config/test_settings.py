import json
import os

import pytest

import civicmap.config.settings as config_settings
from civicmap.config import (
    AppConfig,
    GeminiConfig,
    GeocodingConfig,
    IngestConfig,
    StorageConfig,
    load_config,
    resolve_config_path,
    save_config,
)


@pytest.fixture(autouse=True)
def isolated_defaults(tmp_path, monkeypatch):
    monkeypatch.setattr(
        config_settings,
        "_DEFAULT_CONFIG_LOCATIONS",
        (tmp_path / "civicmap.json", tmp_path / "config.json"),
    )
    for key in list(os.environ):
        if key.startswith("CIVICMAP_"):
            monkeypatch.delenv(key)


def test_environment_values_are_coerced(monkeypatch):
    monkeypatch.setenv("CIVICMAP_GEOCODING_MODE", "Unified")
    monkeypatch.setenv("CIVICMAP_GEOCODING_TIMEOUT", "15.5")
    monkeypatch.setenv("CIVICMAP_GEOCODING_MAX_RETRIES", "4")
    monkeypatch.setenv("CIVICMAP_GEOCODING_PARALLEL", "yes")
    monkeypatch.setenv("CIVICMAP_STORAGE_ECHO_SQL", "true")
    monkeypatch.setenv("CIVICMAP_INGEST_MAX_TEXT_LENGTH", "1200")

    config = load_config()

    assert config.geocoding.mode == "unified"
    assert config.geocoding.timeout == pytest.approx(15.5)
    assert config.geocoding.max_retries == 4 and isinstance(config.geocoding.max_retries, int)
    assert config.geocoding.parallel is True
    assert config.storage.echo_sql is True
    assert config.ingest.max_text_length == 1200


def test_invalid_boolean_environment_value_raises(monkeypatch):
    monkeypatch.setenv("CIVICMAP_STORAGE_ECHO_SQL", "definitely")

    with pytest.raises(ValueError):
        load_config()


def test_unknown_geocoding_mode_is_rejected(monkeypatch):
    monkeypatch.setenv("CIVICMAP_GEOCODING_MODE", "adaptive")

    with pytest.raises(ValueError, match="Unknown geocoding mode"):
        load_config()


def test_partial_file_section_keeps_defaults(tmp_path):
    path = tmp_path / "explicit.json"
    path.write_text(json.dumps({"geocoding": {"google_api_key": "KEY"}}), encoding="utf8")

    config = load_config(path)

    assert config.geocoding.google_api_key == "KEY"
    assert config.geocoding.mode == "specialized"
    assert config.geocoding.bounding_box() == (42.60, 23.18, 42.79, 23.49)


def test_malformed_bounds_are_rejected():
    with pytest.raises(ValueError):
        GeocodingConfig(bounds="42.6,23.1").bounding_box()
    assert GeocodingConfig(bounds=None).bounding_box() is None


def test_resolve_config_path_prefers_existing_file(tmp_path, monkeypatch):
    first = tmp_path / "civicmap.json"
    second = tmp_path / "config.json"
    monkeypatch.setattr(config_settings, "_DEFAULT_CONFIG_LOCATIONS", (first, second))

    # without existing files we expect the XDG-style location (second entry)
    assert resolve_config_path(None) == second

    second.write_text("{}", encoding="utf8")
    assert resolve_config_path(None) == second
    assert resolve_config_path(first) == first


def test_save_config_writes_json(tmp_path, monkeypatch):
    target = tmp_path / "settings" / "civicmap.json"
    monkeypatch.setattr(config_settings, "_DEFAULT_CONFIG_LOCATIONS", (target, target))

    config = AppConfig(
        gemini=GeminiConfig(api_key="G-KEY", model="gemini-demo"),
        geocoding=GeocodingConfig(mode="unified", google_api_key="M-KEY"),
        storage=StorageConfig(database_url="sqlite:///demo.db", echo_sql=True),
        ingest=IngestConfig(max_text_length=300),
    )

    saved_path = save_config(config)
    assert saved_path == target
    data = json.loads(target.read_text(encoding="utf8"))
    assert data["gemini"]["model"] == "gemini-demo"
    assert data["geocoding"]["mode"] == "unified"
    assert data["geocoding"]["google_api_key"] == "M-KEY"
    assert data["storage"]["echo_sql"] is True
    assert data["ingest"]["max_text_length"] == 300

    assert load_config(target).geocoding.google_api_key == "M-KEY"
