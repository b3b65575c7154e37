"""High level orchestration of the message ingest pipeline."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Literal, Optional, Protocol
import logging

from ..core.errors import GeocodingIncomplete, PersistenceFailed
from ..core.types import ExtractedData, Message
from ..extraction import TextExtractor
from ..geocoding import GeocodingResult, GeocodingRouter, find_missing_addresses
from ..geojson import assemble
from .helpers import DEFAULT_MAX_TEXT_LENGTH, validate_message_text
from .responses import build_message_response

LOGGER = logging.getLogger(__name__)

PipelineStage = Literal[
    "stored",
    "extracted",
    "addresses_stored",
    "geocoded",
    "geocoding_stored",
    "assembled",
    "geojson_stored",
    "done",
    "error",
]


class DocumentStore(Protocol):
    def create_message(self, fields: Dict[str, Any]) -> str: ...

    def update_message(self, identifier: str, fields: Dict[str, Any]) -> None: ...


@dataclass(slots=True)
class PipelineEvent:
    """Progress notification emitted by :class:`MessageIngestPipeline` after each stage."""

    kind: PipelineStage
    message_id: str | None = None
    message: str | None = None
    pin_count: int | None = None
    street_count: int | None = None
    address_count: int | None = None
    feature_count: int | None = None
    missing: List[str] = field(default_factory=list)


ProgressCallback = Callable[[PipelineEvent], None]


class MessageIngestPipeline:
    """Store, extract, geocode and convert one announcement to GeoJSON.

    Every stage that produces data persists it before the next one starts. A
    failure stops the run; whatever was stored so far stays in place and the
    failure is recorded on the message.
    """

    def __init__(
        self,
        *,
        extractor: TextExtractor,
        router: GeocodingRouter,
        storage: DocumentStore,
        max_text_length: int = DEFAULT_MAX_TEXT_LENGTH,
    ) -> None:
        self._extractor = extractor
        self._router = router
        self._storage = storage
        self._max_text_length = max_text_length

    def run(
        self,
        text: str,
        *,
        source: str = "api",
        user_id: Optional[str] = None,
        user_email: Optional[str] = None,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> Message:
        """Run the pipeline end-to-end and return the resulting message."""

        validate_message_text(text, max_length=self._max_text_length)

        message_id: str | None = None
        created_at = datetime.now(timezone.utc).replace(tzinfo=None)
        extracted: ExtractedData | None = None
        geocoding = GeocodingResult()
        geo_json: Dict[str, Any] | None = None
        try:
            message_id = self._storage.create_message(
                {
                    "text": text,
                    "source": source,
                    "user_id": user_id,
                    "user_email": user_email,
                    "created_at": created_at,
                    "stage": "stored",
                }
            )
            self._notify(progress_callback, PipelineEvent(kind="stored", message_id=message_id))

            extracted = self._extractor.extract(text)
            self._notify(
                progress_callback,
                PipelineEvent(
                    kind="extracted",
                    message_id=message_id,
                    pin_count=len(extracted.pins) if extracted else 0,
                    street_count=len(extracted.streets) if extracted else 0,
                ),
            )

            if extracted is None:
                LOGGER.info("No locations in message %s; skipping geocoding", message_id)
            else:
                geocoding, geo_json = self._resolve(message_id, extracted, progress_callback)
        except Exception as exc:
            LOGGER.exception("Ingest pipeline failed for message %s: %s", message_id, exc)
            self._record_failure(message_id, exc)
            self._notify(
                progress_callback,
                PipelineEvent(
                    kind="error",
                    message_id=message_id,
                    message=str(exc),
                    missing=list(exc.missing) if isinstance(exc, GeocodingIncomplete) else [],
                ),
            )
            raise

        response = build_message_response(
            message_id,
            text,
            geocoding.addresses,
            extracted,
            geo_json,
            source=source,
            created_at=created_at,
        )
        self._notify(progress_callback, PipelineEvent(kind="done", message_id=message_id))
        return response

    def _resolve(
        self,
        message_id: str,
        extracted: ExtractedData,
        progress_callback: Optional[ProgressCallback],
    ) -> tuple[GeocodingResult, Dict[str, Any]]:
        self._storage.update_message(message_id, {"extracted_data": extracted, "stage": "addresses_stored"})
        self._notify(progress_callback, PipelineEvent(kind="addresses_stored", message_id=message_id))

        geocoding = self._router.geocode(extracted)
        self._notify(
            progress_callback,
            PipelineEvent(kind="geocoded", message_id=message_id, address_count=len(geocoding.addresses)),
        )

        if geocoding.addresses:
            self._storage.update_message(message_id, {"addresses": geocoding.addresses, "stage": "geocoding_stored"})
            self._notify(progress_callback, PipelineEvent(kind="geocoding_stored", message_id=message_id))
        else:
            LOGGER.info("No geocoded addresses to store for message %s", message_id)

        missing = find_missing_addresses(extracted, geocoding.registry)
        if missing:
            raise GeocodingIncomplete(missing)

        geo_json = assemble(extracted, geocoding.registry)
        self._notify(
            progress_callback,
            PipelineEvent(kind="assembled", message_id=message_id, feature_count=len(geo_json["features"])),
        )

        self._storage.update_message(message_id, {"geo_json": geo_json, "stage": "geojson_stored"})
        self._notify(progress_callback, PipelineEvent(kind="geojson_stored", message_id=message_id))
        LOGGER.info("Stored GeoJSON with %s features for message %s", len(geo_json["features"]), message_id)
        return geocoding, geo_json

    def _record_failure(self, message_id: str | None, exc: Exception) -> None:
        if message_id is None:
            return
        try:
            self._storage.update_message(message_id, {"error": f"{type(exc).__name__}: {exc}"})
        except PersistenceFailed as record_exc:
            LOGGER.warning("Could not record failure on message %s: %s", message_id, record_exc)

    @staticmethod
    def _notify(callback: Optional[ProgressCallback], event: PipelineEvent) -> None:
        if callback:
            callback(event)


__all__ = ["DocumentStore", "MessageIngestPipeline", "PipelineEvent", "PipelineStage", "ProgressCallback"]
