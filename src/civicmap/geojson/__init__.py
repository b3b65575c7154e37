"""GeoJSON assembly."""
from __future__ import annotations

from .assembler import FeatureCollection, assemble, dumps, loads, parse_feature_collection

__all__ = ["FeatureCollection", "assemble", "dumps", "loads", "parse_feature_collection"]
