"""Strategies for resolving extracted locations to coordinates."""
from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Protocol, Sequence
import logging

from ..core.types import Address, Coordinates, ExtractedData, StreetSection
from .collector import collect_pin_addresses, collect_unique_addresses
from .registry import CoordinateRegistry

LOGGER = logging.getLogger(__name__)


class PointGeocoder(Protocol):
    def geocode_batch(self, addresses: Iterable[str]) -> List[Address]: ...


class IntersectionGeocoder(Protocol):
    def resolve_streets(self, streets: Iterable[StreetSection]) -> Mapping[str, Coordinates]: ...


@dataclass(slots=True)
class GeocodingResult:
    """Registry of a single run plus the address records that populated it."""

    registry: CoordinateRegistry = field(default_factory=CoordinateRegistry)
    addresses: List[Address] = field(default_factory=list)

    def add(self, address: Address) -> bool:
        if self.registry.set_if_absent(address.original_text, address.coordinates):
            self.addresses.append(address)
            return True
        return False


class GeocodingRouter(Protocol):
    def geocode(self, data: Optional[ExtractedData]) -> GeocodingResult: ...


class UnifiedBatchRouter:
    """Send every pin address and street endpoint to the point geocoder at once."""

    mode = "unified"

    def __init__(self, point_geocoder: PointGeocoder) -> None:
        self._point_geocoder = point_geocoder

    def geocode(self, data: Optional[ExtractedData]) -> GeocodingResult:
        result = GeocodingResult()
        if data is None or data.is_empty:
            return result
        addresses = sorted(collect_unique_addresses(data))
        LOGGER.info("Geocoding %s unique addresses in one batch", len(addresses))
        for address in self._point_geocoder.geocode_batch(addresses):
            result.add(address)
        return result


class SpecializedRouter:
    """Geocode pins as addresses and street endpoints as intersections.

    Pin results are written to the registry first, so a pin keeps its
    coordinates when the same text also appears as a street endpoint.
    Endpoints the intersection geocoder cannot resolve are retried once
    through the point geocoder.
    """

    mode = "specialized"

    def __init__(
        self,
        point_geocoder: PointGeocoder,
        intersection_geocoder: IntersectionGeocoder,
        *,
        parallel: bool = False,
    ) -> None:
        self._point_geocoder = point_geocoder
        self._intersection_geocoder = intersection_geocoder
        self._parallel = parallel

    def geocode(self, data: Optional[ExtractedData]) -> GeocodingResult:
        result = GeocodingResult()
        if data is None or data.is_empty:
            return result

        pin_addresses = collect_pin_addresses(data)
        pin_results, street_results = self._primary(pin_addresses, data.streets)

        for address in pin_results:
            result.add(address)
        added = 0
        for endpoint, coordinates in street_results.items():
            if result.add(Address(original_text=endpoint, formatted_address=endpoint, coordinates=coordinates)):
                added += 1
        LOGGER.info("Primary pass: %s pin addresses, %s street endpoints", len(pin_results), added)

        missing = missing_street_endpoints(data.streets, result.registry)
        if missing:
            LOGGER.info("Falling back to address geocoding for %s endpoints", len(missing))
            recovered = 0
            for address in self._point_geocoder.geocode_batch(missing):
                if result.add(address):
                    recovered += 1
            LOGGER.info("Fallback resolved %s of %s endpoints", recovered, len(missing))
        return result

    def _primary(
        self, pin_addresses: Sequence[str], streets: Sequence[StreetSection]
    ) -> tuple[List[Address], Mapping[str, Coordinates]]:
        if not self._parallel:
            pins = self._point_geocoder.geocode_batch(pin_addresses) if pin_addresses else []
            resolved = self._intersection_geocoder.resolve_streets(streets) if streets else {}
            return pins, resolved
        with ThreadPoolExecutor(max_workers=2) as executor:
            pin_future = executor.submit(self._point_geocoder.geocode_batch, pin_addresses) if pin_addresses else None
            street_future = executor.submit(self._intersection_geocoder.resolve_streets, streets) if streets else None
            pins = pin_future.result() if pin_future else []
            resolved = street_future.result() if street_future else {}
        return pins, resolved


def missing_street_endpoints(streets: Iterable[StreetSection], registry: CoordinateRegistry) -> List[str]:
    """Return endpoints absent from ``registry``, deduplicated in first-seen order."""

    missing: Dict[str, None] = {}
    for street in streets:
        for endpoint in (street.start, street.end):
            if endpoint not in registry:
                missing.setdefault(endpoint, None)
    return list(missing)


def create_router(
    mode: str,
    point_geocoder: PointGeocoder,
    intersection_geocoder: IntersectionGeocoder | None = None,
    *,
    parallel: bool = False,
) -> GeocodingRouter:
    if mode == UnifiedBatchRouter.mode:
        return UnifiedBatchRouter(point_geocoder)
    if mode == SpecializedRouter.mode:
        if intersection_geocoder is None:
            raise ValueError("The specialized geocoding mode requires an intersection geocoder")
        return SpecializedRouter(point_geocoder, intersection_geocoder, parallel=parallel)
    raise ValueError(f"Unknown geocoding mode {mode!r}")


__all__ = [
    "GeocodingResult",
    "GeocodingRouter",
    "IntersectionGeocoder",
    "PointGeocoder",
    "SpecializedRouter",
    "UnifiedBatchRouter",
    "create_router",
    "missing_street_endpoints",
]
