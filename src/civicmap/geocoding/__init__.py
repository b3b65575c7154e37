"""Address resolution: collection, geocoding strategies and validation."""
from __future__ import annotations

from .collector import collect_pin_addresses, collect_unique_addresses
from .google import GoogleGeocoder
from .overpass import OverpassIntersectionGeocoder, cross_street_name, normalize_street_name
from .registry import CoordinateRegistry
from .router import (
    GeocodingResult,
    GeocodingRouter,
    IntersectionGeocoder,
    PointGeocoder,
    SpecializedRouter,
    UnifiedBatchRouter,
    create_router,
    missing_street_endpoints,
)
from .validation import find_missing_addresses

__all__ = [
    "CoordinateRegistry",
    "GeocodingResult",
    "GeocodingRouter",
    "GoogleGeocoder",
    "IntersectionGeocoder",
    "OverpassIntersectionGeocoder",
    "PointGeocoder",
    "SpecializedRouter",
    "UnifiedBatchRouter",
    "collect_pin_addresses",
    "collect_unique_addresses",
    "create_router",
    "cross_street_name",
    "find_missing_addresses",
    "missing_street_endpoints",
    "normalize_street_name",
]
