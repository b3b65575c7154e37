"""Configuration helpers for the civicmap pipeline."""
from __future__ import annotations

from .settings import (
    GEOCODING_MODES,
    AppConfig,
    GeminiConfig,
    GeocodingConfig,
    IngestConfig,
    StorageConfig,
    load_config,
    resolve_config_path,
    save_config,
)

__all__ = [
    "AppConfig",
    "GEOCODING_MODES",
    "GeminiConfig",
    "GeocodingConfig",
    "IngestConfig",
    "StorageConfig",
    "load_config",
    "resolve_config_path",
    "save_config",
]
