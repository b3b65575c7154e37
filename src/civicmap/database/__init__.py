"""Database integration components."""
from __future__ import annotations

from .models import Base, MessageModel
from .storage import Storage, create_storage

__all__ = [
    "Base",
    "MessageModel",
    "Storage",
    "create_storage",
]
