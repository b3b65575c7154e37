"""Build GeoJSON feature collections from extracted and geocoded locations."""
from __future__ import annotations

from typing import Any, Dict, List, Mapping, Union
import json

from shapely.geometry import LineString, Point, mapping, shape
from shapely.geometry.base import BaseGeometry

from ..core.types import Coordinates, ExtractedData, Timespan
from ..geocoding.registry import CoordinateRegistry

FeatureCollection = Dict[str, Any]


def _position(coordinates: Coordinates) -> tuple[float, float]:
    # GeoJSON order is (lng, lat)
    return (coordinates.lng, coordinates.lat)


def _geometry(geometry: BaseGeometry) -> Dict[str, Any]:
    raw = mapping(geometry)
    if raw["type"] == "Point":
        coordinates: Any = [float(value) for value in raw["coordinates"]]
    else:
        coordinates = [[float(value) for value in position] for position in raw["coordinates"]]
    return {"type": raw["type"], "coordinates": coordinates}


def _timespans(timespans: tuple[Timespan, ...]) -> List[Dict[str, str]]:
    return [span.to_dict() for span in timespans]


def assemble(data: ExtractedData, registry: CoordinateRegistry) -> FeatureCollection:
    """Return a FeatureCollection with one feature per pin and street section.

    Pins come first, then streets, both in input order. The caller must have
    checked that ``registry`` covers every location.
    """

    features: List[Dict[str, Any]] = []
    for pin in data.pins:
        features.append(
            {
                "type": "Feature",
                "geometry": _geometry(Point(_position(registry[pin.address]))),
                "properties": {
                    "feature_type": "pin",
                    "address": pin.address,
                    "timespans": _timespans(pin.timespans),
                },
            }
        )
    for street in data.streets:
        line = LineString([_position(registry[street.start]), _position(registry[street.end])])
        features.append(
            {
                "type": "Feature",
                "geometry": _geometry(line),
                "properties": {
                    "feature_type": "street",
                    "street_name": street.street,
                    "start": street.start,
                    "end": street.end,
                    "timespans": _timespans(street.timespans),
                },
            }
        )
    return {"type": "FeatureCollection", "features": features}


def dumps(collection: FeatureCollection) -> str:
    return json.dumps(collection, ensure_ascii=False)


def loads(text: str) -> FeatureCollection:
    payload = json.loads(text)
    if not isinstance(payload, dict) or payload.get("type") != "FeatureCollection":
        raise ValueError("Expected a GeoJSON FeatureCollection")
    return payload


def parse_feature_collection(payload: Union[str, Mapping[str, Any]]) -> List[BaseGeometry]:
    """Parse ``payload`` back into shapely geometries, one per feature."""

    collection = loads(payload) if isinstance(payload, str) else payload
    if collection.get("type") != "FeatureCollection":
        raise ValueError("Expected a GeoJSON FeatureCollection")
    geometries = []
    for feature in collection.get("features") or []:
        if feature.get("type") != "Feature" or not feature.get("geometry"):
            raise ValueError(f"Invalid GeoJSON feature: {feature!r}")
        geometries.append(shape(feature["geometry"]))
    return geometries


__all__ = ["FeatureCollection", "assemble", "dumps", "loads", "parse_feature_collection"]
