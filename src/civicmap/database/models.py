"""SQLAlchemy models for persisted announcements."""
from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, String, Text, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Declarative SQLAlchemy base class."""


class MessageModel(Base):
    """Database representation of an ingested announcement.

    ``extracted_data``, ``addresses`` and ``geo_json`` hold JSON text written
    stage by stage; ``stage`` records the last stage that was persisted.
    """

    __tablename__ = "messages"

    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    text: Mapped[str] = mapped_column(Text)
    source: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    user_id: Mapped[Optional[str]] = mapped_column(String(128), nullable=True, index=True)
    user_email: Mapped[Optional[str]] = mapped_column(String(256), nullable=True)
    extracted_data: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    addresses: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    geo_json: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    stage: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    error: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now(), index=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), onupdate=func.now()
    )


__all__ = ["Base", "MessageModel"]
