"""Resolve street section endpoints as intersections using OpenStreetMap.

For every street section one Overpass query fetches the ways named like the
street and like each endpoint's cross street. Nodes shared by both groups are
the intersection; their mean position becomes the endpoint coordinate.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional, Sequence, Set, Tuple
import logging
import re

import httpx

from ..core.types import Coordinates, StreetSection

LOGGER = logging.getLogger(__name__)

_STREET_TYPE_PREFIX = re.compile(
    r"^(?:ул\.|улица|бул\.|булевард|пл\.|площад|ж\.?\s?к\.|кв\.|квартал|пр\.|проход)\s*",
    re.IGNORECASE,
)
_ENDPOINT_PREFIX = re.compile(
    r"^(?:на\s+)?(?:ъгъл(?:а|ът)?|кръстовище(?:то)?|пресечка(?:та)?|пресичане(?:то)?)(?:\s+(?:с|със))?\s+"
    r"|^(?:до|от|при)\s+",
    re.IGNORECASE,
)
_HOUSE_NUMBER = re.compile(r"^(?:№\s*|бл\.\s*|блок\s*)?\d+[а-яa-z]?\b(?!-)", re.IGNORECASE)
_QUOTES = re.compile(r"[\"'„“”«»]")
_MULTISPACE = re.compile(r"\s+")
_ERE_SPECIALS = re.compile(r'([.^$*+?()\[\]{}|\\"])')


def normalize_street_name(name: str) -> str:
    """Strip street type prefixes and quotes, e.g. ``бул. „Витоша“`` -> ``Витоша``."""

    cleaned = _QUOTES.sub("", name)
    cleaned = _MULTISPACE.sub(" ", cleaned).strip()
    previous = None
    while previous != cleaned:
        previous = cleaned
        cleaned = _STREET_TYPE_PREFIX.sub("", cleaned).strip()
    return cleaned


def cross_street_name(endpoint: str) -> Optional[str]:
    """Return the cross street an endpoint description refers to.

    ``ъгъл с бул. Патриарх Евтимий`` becomes ``Патриарх Евтимий``. House
    numbers and empty descriptions yield ``None``.
    """

    cleaned = _MULTISPACE.sub(" ", _QUOTES.sub("", endpoint)).strip()
    previous = None
    while previous != cleaned:
        previous = cleaned
        cleaned = _ENDPOINT_PREFIX.sub("", cleaned).strip()
    if not cleaned or _HOUSE_NUMBER.match(cleaned):
        return None
    name = normalize_street_name(cleaned)
    return name or None


def _ere_literal(value: str) -> str:
    # metacharacters become wildcards; _matches does the exact comparison
    return _ERE_SPECIALS.sub(".", value)


def _matches(osm_name: str, wanted: str) -> bool:
    return wanted.casefold() in normalize_street_name(osm_name).casefold()


class OverpassIntersectionGeocoder:
    """Street intersection geocoder backed by the Overpass API."""

    def __init__(
        self,
        *,
        base_url: str = "https://overpass-api.de/api/interpreter",
        bounds: Optional[Tuple[float, float, float, float]] = None,
        timeout: float = 30.0,
        max_retries: int = 3,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._base_url = base_url
        self._bounds = bounds
        self._timeout = timeout
        self._max_retries = max(1, max_retries)
        self._client = httpx.Client(timeout=timeout, transport=transport)

    def resolve_streets(self, streets: Iterable[StreetSection]) -> Dict[str, Coordinates]:
        """Resolve ``from``/``to`` endpoints of ``streets`` keyed by endpoint text."""

        resolved: Dict[str, Coordinates] = {}
        street_list = list(streets)
        for street in street_list:
            try:
                found = self.resolve_street(street)
            except (httpx.HTTPError, ValueError) as exc:
                LOGGER.warning("Overpass lookup failed for %s: %s", street.street, exc)
                continue
            for endpoint, coordinates in found.items():
                resolved.setdefault(endpoint, coordinates)
        LOGGER.info("Resolved %s street endpoints for %s streets", len(resolved), len(street_list))
        return resolved

    def resolve_street(self, street: StreetSection) -> Dict[str, Coordinates]:
        main = normalize_street_name(street.street)
        crosses = {endpoint: cross_street_name(endpoint) for endpoint in (street.start, street.end)}
        wanted = sorted({name for name in crosses.values() if name})
        if not main or not wanted:
            LOGGER.debug("Nothing to resolve via intersections for %s", street.street)
            return {}

        elements = self._request(self._build_query(main, wanted))
        positions, ways = _index_elements(elements)
        main_nodes: Set[int] = set()
        for name, nodes in ways:
            if _matches(name, main):
                main_nodes.update(nodes)

        result: Dict[str, Coordinates] = {}
        for endpoint, cross in crosses.items():
            if not cross:
                continue
            shared: Set[int] = set()
            for name, nodes in ways:
                if _matches(name, cross) and not _matches(name, main):
                    shared.update(main_nodes.intersection(nodes))
            points = [positions[node_id] for node_id in shared if node_id in positions]
            if not points:
                LOGGER.debug("No intersection of %s with %s", main, cross)
                continue
            result[endpoint] = Coordinates(
                lat=sum(lat for lat, _ in points) / len(points),
                lng=sum(lng for _, lng in points) / len(points),
            )
        return result

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "OverpassIntersectionGeocoder":  # pragma: no cover - trivial
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # pragma: no cover - trivial
        self.close()

    def _build_query(self, main: str, crosses: Sequence[str]) -> str:
        bbox = ""
        if self._bounds:
            bbox = "({},{},{},{})".format(*self._bounds)
        names = "|".join(_ere_literal(name) for name in crosses)
        return (
            f"[out:json][timeout:{int(self._timeout)}];\n"
            "(\n"
            f'  way["highway"]["name"~"{_ere_literal(main)}",i]{bbox};\n'
            f'  way["highway"]["name"~"({names})",i]{bbox};\n'
            ");\n"
            "out body;\n"
            ">;\n"
            "out skel qt;"
        )

    def _request(self, query: str) -> List[Dict[str, Any]]:
        for attempt in range(1, self._max_retries + 1):
            try:
                response = self._client.post(self._base_url, data={"data": query})
                response.raise_for_status()
                payload = response.json()
                if not isinstance(payload, dict):
                    raise ValueError(f"expected a JSON object, got {type(payload).__name__}")
                elements = payload.get("elements") or []
                if not isinstance(elements, list):
                    raise ValueError("Overpass elements must be a list")
                return elements
            except (httpx.HTTPError, ValueError) as exc:
                LOGGER.warning("Overpass request failed (attempt %s/%s): %s", attempt, self._max_retries, exc)
                if attempt == self._max_retries:
                    raise
        raise RuntimeError("max_retries must be at least 1")


def _index_elements(
    elements: Iterable[Dict[str, Any]],
) -> Tuple[Dict[int, Tuple[float, float]], List[Tuple[str, List[int]]]]:
    positions: Dict[int, Tuple[float, float]] = {}
    ways: List[Tuple[str, List[int]]] = []
    for element in elements:
        if not isinstance(element, dict):
            continue
        kind = element.get("type")
        if kind == "node" and "lat" in element and "lon" in element:
            positions[element["id"]] = (float(element["lat"]), float(element["lon"]))
        elif kind == "way":
            name = (element.get("tags") or {}).get("name")
            if name:
                ways.append((name, list(element.get("nodes") or [])))
    return positions, ways


__all__ = ["OverpassIntersectionGeocoder", "cross_street_name", "normalize_street_name"]
