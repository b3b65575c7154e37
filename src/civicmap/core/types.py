"""Typed domain objects shared by the address-resolution pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple


def _require_text(data: Mapping[str, Any], key: str, owner: str) -> str:
    value = data.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"{owner}.{key} must be a non-empty string, got {value!r}")
    return value


def _parse_timespans(raw: Any, owner: str) -> Tuple["Timespan", ...]:
    if raw is None:
        return ()
    if not isinstance(raw, (list, tuple)):
        raise ValueError(f"{owner}.timespans must be a list, got {type(raw).__name__}")
    return tuple(Timespan.from_dict(item) for item in raw)


@dataclass(frozen=True, slots=True)
class Timespan:
    """Human readable validity window, e.g. ``15.01.2025 08:00``."""

    start: str
    end: str

    def to_dict(self) -> Dict[str, str]:
        return {"start": self.start, "end": self.end}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Timespan":
        if not isinstance(data, Mapping):
            raise ValueError(f"Timespan must be an object, got {data!r}")
        return cls(start=str(data.get("start") or ""), end=str(data.get("end") or ""))


@dataclass(frozen=True, slots=True)
class Pin:
    """A single point location mentioned in an announcement."""

    address: str
    timespans: Tuple[Timespan, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {"address": self.address, "timespans": [span.to_dict() for span in self.timespans]}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Pin":
        if not isinstance(data, Mapping):
            raise ValueError(f"Pin must be an object, got {data!r}")
        return cls(
            address=_require_text(data, "address", "Pin"),
            timespans=_parse_timespans(data.get("timespans"), "Pin"),
        )


@dataclass(frozen=True, slots=True)
class StreetSection:
    """A street segment bounded by two descriptive endpoints.

    ``start`` and ``end`` hold the ``from``/``to`` endpoint descriptions; they
    are serialised under the ``from`` and ``to`` keys.
    """

    street: str
    start: str
    end: str
    timespans: Tuple[Timespan, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "street": self.street,
            "from": self.start,
            "to": self.end,
            "timespans": [span.to_dict() for span in self.timespans],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "StreetSection":
        if not isinstance(data, Mapping):
            raise ValueError(f"StreetSection must be an object, got {data!r}")
        return cls(
            street=_require_text(data, "street", "StreetSection"),
            start=_require_text(data, "from", "StreetSection"),
            end=_require_text(data, "to", "StreetSection"),
            timespans=_parse_timespans(data.get("timespans"), "StreetSection"),
        )


@dataclass(frozen=True, slots=True)
class ExtractedData:
    """Structured locations extracted from one announcement text."""

    pins: Tuple[Pin, ...] = ()
    streets: Tuple[StreetSection, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.pins and not self.streets

    def to_dict(self) -> Dict[str, Any]:
        return {
            "pins": [pin.to_dict() for pin in self.pins],
            "streets": [street.to_dict() for street in self.streets],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ExtractedData":
        if not isinstance(data, Mapping):
            raise ValueError(f"ExtractedData must be an object, got {data!r}")
        pins = data.get("pins") or []
        streets = data.get("streets") or []
        if not isinstance(pins, (list, tuple)) or not isinstance(streets, (list, tuple)):
            raise ValueError("ExtractedData.pins and ExtractedData.streets must be lists")
        return cls(
            pins=tuple(Pin.from_dict(item) for item in pins),
            streets=tuple(StreetSection.from_dict(item) for item in streets),
        )


@dataclass(frozen=True, slots=True)
class Coordinates:
    lat: float
    lng: float

    def to_dict(self) -> Dict[str, float]:
        return {"lat": self.lat, "lng": self.lng}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Coordinates":
        return cls(lat=float(data["lat"]), lng=float(data["lng"]))


@dataclass(frozen=True, slots=True)
class Address:
    """A geocoded address keyed by the text it was requested with."""

    original_text: str
    formatted_address: str
    coordinates: Coordinates

    def to_dict(self) -> Dict[str, Any]:
        return {
            "originalText": self.original_text,
            "formattedAddress": self.formatted_address,
            "coordinates": self.coordinates.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Address":
        return cls(
            original_text=str(data["originalText"]),
            formatted_address=str(data.get("formattedAddress") or data["originalText"]),
            coordinates=Coordinates.from_dict(data["coordinates"]),
        )


@dataclass(slots=True)
class Message:
    """A persisted announcement together with everything derived from it."""

    id: str
    text: str
    source: Optional[str] = None
    addresses: List[Address] = field(default_factory=list)
    extracted_data: Optional[ExtractedData] = None
    geo_json: Optional[Dict[str, Any]] = None
    created_at: Optional[datetime] = None
    stage: Optional[str] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "id": self.id,
            "text": self.text,
            "source": self.source,
            "addresses": [address.to_dict() for address in self.addresses],
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }
        if self.extracted_data is not None:
            payload["extractedData"] = self.extracted_data.to_dict()
        if self.geo_json is not None:
            payload["geoJson"] = self.geo_json
        return payload


def addresses_from_list(items: Sequence[Mapping[str, Any]]) -> List[Address]:
    return [Address.from_dict(item) for item in items]


__all__ = [
    "Address",
    "Coordinates",
    "ExtractedData",
    "Message",
    "Pin",
    "StreetSection",
    "Timespan",
    "addresses_from_list",
]
