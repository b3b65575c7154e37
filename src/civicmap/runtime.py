"""Application level helpers for assembling pipeline dependencies."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional
import logging

from .config import AppConfig
from .database import Storage, create_storage
from .extraction import GeminiExtractor, TextExtractor
from .geocoding import GoogleGeocoder, OverpassIntersectionGeocoder, create_router
from .pipeline import MessageIngestPipeline

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class PipelineResources:
    """Container bundling the objects needed to run the pipeline."""

    pipeline: MessageIngestPipeline
    storage: Storage
    point_geocoder: GoogleGeocoder
    intersection_geocoder: OverpassIntersectionGeocoder | None = None
    owns_storage: bool = True

    def close(self) -> None:
        self.point_geocoder.close()
        if self.intersection_geocoder is not None:
            self.intersection_geocoder.close()
        if self.owns_storage:
            self.storage.dispose()


def create_pipeline(
    config: AppConfig,
    *,
    storage: Storage | None = None,
    extractor: TextExtractor | None = None,
) -> PipelineResources:
    owns_storage = storage is None
    geocoding = config.geocoding
    bounds = geocoding.bounding_box()

    if extractor is None:
        if not config.gemini.api_key:
            raise ValueError("Gemini API key missing - set CIVICMAP_GEMINI_API_KEY")
        extractor = GeminiExtractor(
            api_key=config.gemini.api_key,
            base_url=config.gemini.base_url,
            model=config.gemini.model,
            timeout=config.gemini.timeout,
            max_retries=config.gemini.max_retries,
            temperature=config.gemini.temperature,
        )

    point_geocoder = GoogleGeocoder(
        geocoding.google_api_key,
        base_url=geocoding.google_base_url,
        language=geocoding.language,
        region=geocoding.region,
        locality=geocoding.locality,
        bounds=bounds,
        timeout=geocoding.timeout,
        max_retries=geocoding.max_retries,
    )
    intersection_geocoder: Optional[OverpassIntersectionGeocoder] = None
    if geocoding.mode == "specialized":
        intersection_geocoder = OverpassIntersectionGeocoder(
            base_url=geocoding.overpass_url,
            bounds=bounds,
            timeout=geocoding.timeout,
            max_retries=geocoding.max_retries,
        )
    router = create_router(geocoding.mode, point_geocoder, intersection_geocoder, parallel=geocoding.parallel)
    LOGGER.debug("Using %s geocoding", geocoding.mode)

    storage_instance = storage or create_storage(config.storage.database_url, echo=config.storage.echo_sql)
    pipeline = MessageIngestPipeline(
        extractor=extractor,
        router=router,
        storage=storage_instance,
        max_text_length=config.ingest.max_text_length,
    )
    return PipelineResources(
        pipeline=pipeline,
        storage=storage_instance,
        point_geocoder=point_geocoder,
        intersection_geocoder=intersection_geocoder,
        owns_storage=owns_storage,
    )


__all__ = ["PipelineResources", "create_pipeline"]
