"""Failure types raised by the ingest pipeline."""
from __future__ import annotations

from typing import Iterable, List


class CivicMapError(Exception):
    """Base class for pipeline failures."""

    error_code = "CIVICMAP_ERROR"


class InvalidMessageText(CivicMapError):
    """Raised when the submitted announcement text is rejected."""

    error_code = "INVALID_MESSAGE_TEXT"


class ExtractionFailed(CivicMapError):
    """Raised when the text understanding service fails."""

    error_code = "EXTRACTION_FAILED"


class GeocodingIncomplete(CivicMapError):
    """Raised when some extracted locations could not be geocoded."""

    error_code = "GEOCODING_INCOMPLETE"

    def __init__(self, missing: Iterable[str]) -> None:
        self.missing: List[str] = list(missing)
        super().__init__(f"Failed to geocode addresses: {', '.join(self.missing)}")


class GeocodingClientError(CivicMapError):
    """Raised when a geocoding provider rejects the request outright."""

    error_code = "GEOCODING_CLIENT_ERROR"


class PersistenceFailed(CivicMapError):
    """Raised when the message store cannot be read or written."""

    error_code = "PERSISTENCE_FAILED"


__all__ = [
    "CivicMapError",
    "ExtractionFailed",
    "GeocodingClientError",
    "GeocodingIncomplete",
    "InvalidMessageText",
    "PersistenceFailed",
]
