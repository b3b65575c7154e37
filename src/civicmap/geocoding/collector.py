"""Collect the address strings an extraction refers to."""
from __future__ import annotations

from typing import List, Set

from ..core.types import ExtractedData


def collect_unique_addresses(data: ExtractedData) -> Set[str]:
    """Return every pin address and street endpoint of ``data`` once."""

    if not isinstance(data, ExtractedData):
        raise TypeError(f"Expected ExtractedData, got {type(data).__name__}")
    addresses = {pin.address for pin in data.pins}
    for street in data.streets:
        addresses.add(street.start)
        addresses.add(street.end)
    return addresses


def collect_pin_addresses(data: ExtractedData) -> List[str]:
    """Return pin addresses in input order without duplicates."""

    if not isinstance(data, ExtractedData):
        raise TypeError(f"Expected ExtractedData, got {type(data).__name__}")
    return list(dict.fromkeys(pin.address for pin in data.pins))


__all__ = ["collect_pin_addresses", "collect_unique_addresses"]
