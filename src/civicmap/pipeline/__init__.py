"""Pipeline orchestration components."""
from __future__ import annotations

from .helpers import validate_message_text
from .ingest_pipeline import DocumentStore, MessageIngestPipeline, PipelineEvent
from .responses import build_message_response, error_response

__all__ = [
    "DocumentStore",
    "MessageIngestPipeline",
    "PipelineEvent",
    "build_message_response",
    "error_response",
    "validate_message_text",
]
