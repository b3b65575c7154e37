"""Core domain entities used across the pipeline."""
from __future__ import annotations

from .errors import (
    CivicMapError,
    ExtractionFailed,
    GeocodingClientError,
    GeocodingIncomplete,
    InvalidMessageText,
    PersistenceFailed,
)
from .types import Address, Coordinates, ExtractedData, Message, Pin, StreetSection, Timespan

__all__ = [
    "Address",
    "CivicMapError",
    "Coordinates",
    "ExtractedData",
    "ExtractionFailed",
    "GeocodingClientError",
    "GeocodingIncomplete",
    "InvalidMessageText",
    "Message",
    "PersistenceFailed",
    "Pin",
    "StreetSection",
    "Timespan",
]
