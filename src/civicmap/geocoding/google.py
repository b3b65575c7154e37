"""HTTP client for the Google Geocoding API."""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional, Tuple
import logging

import httpx

from ..core.errors import GeocodingClientError
from ..core.types import Address, Coordinates

LOGGER = logging.getLogger(__name__)

_FATAL_STATUSES = {"REQUEST_DENIED", "INVALID_REQUEST"}


class GoogleGeocoder:
    """Point address geocoder backed by ``/geocode/json``."""

    def __init__(
        self,
        api_key: Optional[str],
        *,
        base_url: str = "https://maps.googleapis.com/maps/api",
        language: str = "bg",
        region: str = "bg",
        locality: Optional[str] = "София",
        bounds: Optional[Tuple[float, float, float, float]] = None,
        timeout: float = 30.0,
        max_retries: int = 3,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        if not api_key:
            raise ValueError("A Google Maps API key must be provided")
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._language = language
        self._region = region
        self._locality = locality
        self._bounds = bounds
        self._max_retries = max(1, max_retries)
        self._client = httpx.Client(timeout=timeout, transport=transport)

    # --- public API -----------------------------------------------------
    def geocode_batch(self, addresses: Iterable[str]) -> List[Address]:
        """Geocode ``addresses`` and return the ones that resolved.

        Unresolved addresses are simply absent from the result.
        """

        results: List[Address] = []
        requested = list(dict.fromkeys(addresses))
        for address in requested:
            resolved = self.geocode(address)
            if resolved is not None:
                results.append(resolved)
        LOGGER.info("Geocoded %s of %s addresses", len(results), len(requested))
        return results

    def geocode(self, address: str) -> Optional[Address]:
        try:
            data = self._request(address)
        except (httpx.HTTPError, ValueError) as exc:
            LOGGER.warning("Giving up on %r after %s attempts: %s", address, self._max_retries, exc)
            return None

        status = data.get("status")
        if status in _FATAL_STATUSES:
            raise GeocodingClientError(
                f"Google Geocoding rejected the request ({status}): {data.get('error_message', '')}".strip()
            )
        if status != "OK":
            LOGGER.debug("No geocoding result for %r (status %s)", address, status)
            return None

        for result in data.get("results") or []:
            location = (result.get("geometry") or {}).get("location") or {}
            if "lat" not in location or "lng" not in location:
                continue
            coordinates = Coordinates(lat=float(location["lat"]), lng=float(location["lng"]))
            if not self._within_bounds(coordinates):
                LOGGER.debug("Discarding %r result outside bounds: %s", address, coordinates)
                continue
            return Address(
                original_text=address,
                formatted_address=result.get("formatted_address") or address,
                coordinates=coordinates,
            )
        return None

    def close(self) -> None:
        """Close the underlying HTTP client."""

        self._client.close()

    def __enter__(self) -> "GoogleGeocoder":  # pragma: no cover - trivial
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # pragma: no cover - trivial
        self.close()

    # --- helpers --------------------------------------------------------
    def _params(self, address: str) -> Dict[str, str]:
        params = {"address": address, "key": self._api_key, "language": self._language, "region": self._region}
        components = [f"country:{self._region.upper()}"]
        if self._locality:
            components.append(f"locality:{self._locality}")
        params["components"] = "|".join(components)
        if self._bounds:
            south, west, north, east = self._bounds
            params["bounds"] = f"{south},{west}|{north},{east}"
        return params

    def _within_bounds(self, coordinates: Coordinates) -> bool:
        if not self._bounds:
            return True
        south, west, north, east = self._bounds
        return south <= coordinates.lat <= north and west <= coordinates.lng <= east

    def _request(self, address: str) -> Dict[str, Any]:
        url = f"{self._base_url}/geocode/json"
        for attempt in range(1, self._max_retries + 1):
            try:
                response = self._client.get(url, params=self._params(address))
                response.raise_for_status()
                payload = response.json()
                if not isinstance(payload, dict):
                    raise ValueError(f"expected a JSON object, got {type(payload).__name__}")
                return payload
            except httpx.HTTPStatusError as exc:
                status = exc.response.status_code
                LOGGER.warning("Google Geocoding returned status %s for %r", status, address)
                if status in (401, 403):
                    raise GeocodingClientError(
                        f"Google Geocoding refused access with status {status}; check the API key"
                    ) from exc
                if attempt == self._max_retries:
                    raise
            except (httpx.HTTPError, ValueError) as exc:
                LOGGER.warning(
                    "Failed to geocode %r (attempt %s/%s): %s", address, attempt, self._max_retries, exc
                )
                if attempt == self._max_retries:
                    raise
        raise RuntimeError("max_retries must be at least 1")


__all__ = ["GoogleGeocoder"]
