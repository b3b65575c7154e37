"""Address resolution pipeline for civic announcements."""
from __future__ import annotations

from .config import AppConfig, GeminiConfig, GeocodingConfig, IngestConfig, StorageConfig, load_config
from .core import (
    Address,
    CivicMapError,
    Coordinates,
    ExtractedData,
    ExtractionFailed,
    GeocodingIncomplete,
    InvalidMessageText,
    Message,
    PersistenceFailed,
    Pin,
    StreetSection,
    Timespan,
)
from .database import Storage, create_storage
from .extraction import GeminiExtractor
from .geocoding import (
    CoordinateRegistry,
    GoogleGeocoder,
    OverpassIntersectionGeocoder,
    SpecializedRouter,
    UnifiedBatchRouter,
    collect_unique_addresses,
    create_router,
    find_missing_addresses,
)
from .geojson import assemble, parse_feature_collection
from .pipeline import MessageIngestPipeline, PipelineEvent, error_response
from .runtime import PipelineResources, create_pipeline

__all__ = [
    "Address",
    "AppConfig",
    "CivicMapError",
    "Coordinates",
    "CoordinateRegistry",
    "ExtractedData",
    "ExtractionFailed",
    "GeminiConfig",
    "GeminiExtractor",
    "GeocodingConfig",
    "GeocodingIncomplete",
    "GoogleGeocoder",
    "IngestConfig",
    "InvalidMessageText",
    "Message",
    "MessageIngestPipeline",
    "OverpassIntersectionGeocoder",
    "PersistenceFailed",
    "Pin",
    "PipelineEvent",
    "PipelineResources",
    "SpecializedRouter",
    "Storage",
    "StorageConfig",
    "StreetSection",
    "Timespan",
    "UnifiedBatchRouter",
    "assemble",
    "collect_unique_addresses",
    "create_pipeline",
    "create_router",
    "create_storage",
    "error_response",
    "find_missing_addresses",
    "load_config",
    "parse_feature_collection",
]
