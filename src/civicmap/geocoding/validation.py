"""Completeness check run between geocoding and GeoJSON assembly."""
from __future__ import annotations

from typing import List

from ..core.types import ExtractedData
from .registry import CoordinateRegistry


def find_missing_addresses(data: ExtractedData, registry: CoordinateRegistry) -> List[str]:
    """Return labels of every location in ``data`` without coordinates.

    Pins are reported by their address, street endpoints as
    ``"<street> from: <from>"`` and ``"<street> to: <to>"``.
    """

    missing: List[str] = []
    for pin in data.pins:
        if pin.address not in registry:
            missing.append(pin.address)
    for street in data.streets:
        if street.start not in registry:
            missing.append(f"{street.street} from: {street.start}")
        if street.end not in registry:
            missing.append(f"{street.street} to: {street.end}")
    return missing


__all__ = ["find_missing_addresses"]
