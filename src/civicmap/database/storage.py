"""Persistence helpers built on SQLAlchemy."""

from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Iterator, Mapping, Optional
import json
import logging
import uuid

from sqlalchemy import create_engine, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from ..core.errors import PersistenceFailed
from ..core.types import ExtractedData, Message, addresses_from_list
from .. import geojson
from .models import Base, MessageModel

LOGGER = logging.getLogger(__name__)

_PLAIN_FIELDS = frozenset({"text", "source", "user_id", "user_email", "stage", "error", "created_at"})
_JSON_FIELDS = frozenset({"extracted_data", "addresses", "geo_json"})


def _encode(name: str, value: Any) -> Any:
    if name not in _JSON_FIELDS or value is None or isinstance(value, str):
        return value
    if name == "extracted_data" and isinstance(value, ExtractedData):
        value = value.to_dict()
    elif name == "addresses":
        value = [item.to_dict() if hasattr(item, "to_dict") else item for item in value]
    elif name == "geo_json":
        return geojson.dumps(value)
    return json.dumps(value, ensure_ascii=False)


def _to_message(model: MessageModel) -> Message:
    return Message(
        id=model.id,
        text=model.text,
        source=model.source,
        addresses=addresses_from_list(json.loads(model.addresses)) if model.addresses else [],
        extracted_data=ExtractedData.from_dict(json.loads(model.extracted_data)) if model.extracted_data else None,
        geo_json=geojson.loads(model.geo_json) if model.geo_json else None,
        created_at=model.created_at,
        stage=model.stage,
        error=model.error,
    )


class Storage:
    """Message document store on top of SQLAlchemy.

    Updates touch only the fields passed in; JSON valued fields accept either
    domain objects or ready-made JSON text.
    """

    def __init__(self, engine: Engine) -> None:
        self._engine = engine
        self._session_factory = sessionmaker(bind=engine, expire_on_commit=False)

    @contextmanager
    def session(self) -> Iterator[Session]:
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as exc:
            session.rollback()
            raise PersistenceFailed(f"Database operation failed: {exc}") from exc
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def ensure_schema(self) -> None:
        Base.metadata.create_all(self._engine)

    def create_message(self, fields: Mapping[str, Any]) -> str:
        """Insert a new message and return its identifier."""

        values = self._validated(fields)
        if not values.get("text"):
            raise ValueError("A message requires text")
        identifier = uuid.uuid4().hex
        values.setdefault("created_at", datetime.now(timezone.utc).replace(tzinfo=None))
        with self.session() as session:
            session.add(MessageModel(id=identifier, **values))
        LOGGER.info("Stored incoming message %s", identifier)
        return identifier

    def update_message(self, identifier: str, fields: Mapping[str, Any]) -> None:
        """Apply a partial update to message ``identifier``."""

        values = self._validated(fields)
        with self.session() as session:
            model = session.get(MessageModel, identifier)
            if model is None:
                raise PersistenceFailed(f"Message {identifier} not found")
            for name, value in values.items():
                setattr(model, name, value)
        LOGGER.debug("Updated message %s fields %s", identifier, sorted(values))

    def get_message(self, identifier: str) -> Optional[Message]:
        with self.session() as session:
            model = session.get(MessageModel, identifier)
            return _to_message(model) if model is not None else None

    def list_messages(self, limit: int = 25) -> list[Message]:
        """Return the most recently created messages first."""

        with self.session() as session:
            stmt = (
                select(MessageModel)
                .order_by(MessageModel.created_at.desc(), MessageModel.id.desc())
                .limit(limit)
            )
            return [_to_message(model) for model in session.scalars(stmt)]

    def dispose(self) -> None:
        """Dispose the underlying SQLAlchemy engine."""

        self._engine.dispose()

    @staticmethod
    def _validated(fields: Mapping[str, Any]) -> dict[str, Any]:
        unknown = set(fields) - _PLAIN_FIELDS - _JSON_FIELDS
        if unknown:
            raise ValueError(f"Unknown message fields: {', '.join(sorted(unknown))}")
        return {name: _encode(name, value) for name, value in fields.items()}


def create_storage(database_url: str, *, echo: bool = False) -> Storage:
    engine = create_engine(database_url, echo=echo, future=True)
    storage = Storage(engine)
    storage.ensure_schema()
    return storage


__all__ = ["Storage", "create_storage"]
