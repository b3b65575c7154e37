"""Input checks performed before a message enters the pipeline."""
from __future__ import annotations

from typing import Any

from ..core.errors import InvalidMessageText

DEFAULT_MAX_TEXT_LENGTH = 5000


def validate_message_text(text: Any, *, max_length: int = DEFAULT_MAX_TEXT_LENGTH) -> str:
    """Return ``text`` if it can be ingested, raise :class:`InvalidMessageText` otherwise."""

    if not isinstance(text, str) or not text.strip():
        raise InvalidMessageText("Invalid message text")
    if len(text) > max_length:
        raise InvalidMessageText(f"Message text is too long (max {max_length} characters)")
    return text


__all__ = ["DEFAULT_MAX_TEXT_LENGTH", "validate_message_text"]
