"""Response objects handed back to the ingestion entry point."""
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional, Sequence, Tuple

from ..core.errors import ExtractionFailed, GeocodingIncomplete, InvalidMessageText
from ..core.types import Address, ExtractedData, Message


def build_message_response(
    message_id: str,
    text: str,
    addresses: Sequence[Address],
    extracted_data: Optional[ExtractedData],
    geo_json: Optional[Dict[str, Any]],
    *,
    source: Optional[str] = None,
    created_at: Optional[datetime] = None,
) -> Message:
    return Message(
        id=message_id,
        text=text,
        source=source,
        addresses=list(addresses),
        extracted_data=extracted_data,
        geo_json=geo_json,
        created_at=created_at,
        stage="done",
    )


def error_response(exc: BaseException) -> Tuple[int, Dict[str, Any]]:
    """Map a pipeline failure to an HTTP status and JSON body.

    Rejected input, incomplete geocoding and extraction failures get their own
    descriptive bodies; everything else is reported generically.
    """

    if isinstance(exc, InvalidMessageText):
        return 400, {"error": str(exc)}
    if isinstance(exc, GeocodingIncomplete):
        return 422, {
            "error": "Failed to geocode some addresses",
            "details": str(exc),
            "missing": list(exc.missing),
        }
    if isinstance(exc, ExtractionFailed):
        return 502, {"error": "Failed to extract addresses", "details": str(exc)}
    return 500, {"error": "Failed to create message"}


__all__ = ["build_message_response", "error_response"]
