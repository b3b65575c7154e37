"""Text understanding adapters."""
from __future__ import annotations

from typing import Protocol

from ..core.types import ExtractedData
from .gemini import GeminiExtractor, parse_extraction_payload


class TextExtractor(Protocol):
    def extract(self, text: str) -> ExtractedData | None: ...


__all__ = ["GeminiExtractor", "TextExtractor", "parse_extraction_payload"]
