"""Location extraction with Gemini via the official SDK."""
from __future__ import annotations

from importlib import import_module
from typing import TYPE_CHECKING, Any, Optional
import json
import logging
import math
import re

import httpx

from ..core.errors import ExtractionFailed
from ..core.types import ExtractedData, Pin, StreetSection

if TYPE_CHECKING:  # pragma: no cover - optional dependency for type checkers only
    from google import genai  # noqa: F401 - imported for typing
    from google.genai import types  # noqa: F401 - imported for typing

LOGGER = logging.getLogger(__name__)

_PROMPT_TEMPLATE = (
    "You read announcements published by Sofia municipality and utility companies "
    "and extract every location they mention.\n"
    "Return strict JSON with two keys:\n"
    '  "pins": a list of {{"address": str, "timespans": [{{"start": str, "end": str}}]}} '
    "for single buildings or points,\n"
    '  "streets": a list of {{"street": str, "from": str, "to": str, '
    '"timespans": [{{"start": str, "end": str}}]}} for street sections, where '
    '"from" and "to" describe the bounding cross streets or addresses.\n'
    "Keep addresses in Bulgarian exactly as written, including the street type "
    "(ул., бул., пл.). Use the format DD.MM.YYYY HH:MM for timespans. "
    'If the text mentions no locations return {{"pins": [], "streets": []}}.\n\n'
    "Announcement:\n{text}"
)

_CODE_FENCE = re.compile(r"^```(?:json)?\s*(?P<body>.*?)\s*```$", re.DOTALL)


class GeminiExtractor:
    """Turn announcement text into :class:`ExtractedData` using Gemini."""

    def __init__(
        self,
        *,
        api_key: str,
        base_url: str = "https://generativelanguage.googleapis.com",
        model: str = "gemini-2.5-flash",
        timeout: float = 60.0,
        max_retries: int = 3,
        temperature: float = 0.1,
        client: Any = None,
    ) -> None:
        if not api_key and client is None:
            raise ValueError("A Gemini API key must be provided")
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._model = model
        self._timeout = timeout
        self._max_retries = max(1, max_retries)
        self._temperature = temperature
        self._genai = import_module("google.genai")
        self._types = import_module("google.genai.types")
        self._client = client or self._genai.Client(api_key=self._api_key, http_options=self._build_http_options())

    def _build_http_options(self):
        http_options_kwargs: dict[str, object] = {}
        if self._base_url:
            http_options_kwargs["base_url"] = self._base_url
        timeout_seconds = math.ceil(self._timeout)
        if timeout_seconds > 0:
            # the SDK expects milliseconds
            http_options_kwargs["timeout"] = timeout_seconds * 1000
        return self._types.HttpOptions(**http_options_kwargs)

    def extract(self, text: str) -> ExtractedData | None:
        """Extract pins and street sections from ``text``.

        Returns ``None`` when the announcement does not mention any location.
        """

        prompt = _PROMPT_TEMPLATE.format(text=text.strip())
        config = self._types.GenerateContentConfig(
            temperature=self._temperature,
            response_mime_type="application/json",
        )
        last_exc: Optional[Exception] = None
        for attempt in range(1, self._max_retries + 1):
            try:
                response = self._client.models.generate_content(
                    model=self._model,
                    contents=prompt,
                    config=config,
                )
                break
            except (self._genai.errors.APIError, httpx.HTTPError) as exc:
                last_exc = exc
                LOGGER.warning(
                    "Gemini request failed (attempt %s/%s): %s",
                    attempt,
                    self._max_retries,
                    exc,
                )
        else:
            raise ExtractionFailed("Failed to extract addresses via Gemini") from last_exc

        data = parse_extraction_payload(_response_text(response))
        if data is None:
            LOGGER.info("No locations found in message")
        else:
            LOGGER.info("Extracted %s pins and %s streets", len(data.pins), len(data.streets))
        return data


def _response_text(response: Any) -> str:
    text = (getattr(response, "text", None) or "").strip()
    if text:
        return text
    for candidate in getattr(response, "candidates", None) or ():
        if candidate.content and candidate.content.parts:
            for part in candidate.content.parts:
                candidate_text = (getattr(part, "text", None) or "").strip()
                if candidate_text:
                    return candidate_text
    raise ExtractionFailed("Gemini response did not contain text")


def parse_extraction_payload(raw_text: str) -> ExtractedData | None:
    """Parse the model's JSON answer into :class:`ExtractedData`.

    Blank pins or street sections are dropped. ``None`` is returned when no
    usable location remains.
    """

    body = raw_text.strip()
    fenced = _CODE_FENCE.match(body)
    if fenced:
        body = fenced.group("body")
    try:
        payload = json.loads(body)
    except json.JSONDecodeError as exc:
        raise ExtractionFailed(f"Gemini returned malformed JSON: {exc}") from exc

    if payload is None:
        return None
    if not isinstance(payload, dict):
        raise ExtractionFailed(f"Expected a JSON object, got {type(payload).__name__}")

    raw_pins = payload.get("pins") or []
    raw_streets = payload.get("streets") or []
    if not isinstance(raw_pins, list) or not isinstance(raw_streets, list):
        raise ExtractionFailed("Gemini response has invalid pins or streets")

    pins = []
    for item in raw_pins:
        try:
            pins.append(Pin.from_dict(item))
        except ValueError as exc:
            LOGGER.warning("Dropping invalid pin %r: %s", item, exc)
    streets = []
    for item in raw_streets:
        try:
            streets.append(StreetSection.from_dict(item))
        except ValueError as exc:
            LOGGER.warning("Dropping invalid street section %r: %s", item, exc)

    if not pins and not streets:
        return None
    return ExtractedData(pins=tuple(pins), streets=tuple(streets))


__all__ = ["GeminiExtractor", "parse_extraction_payload"]
