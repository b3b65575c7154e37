from __future__ import annotations

from datetime import datetime

import pytest

from civicmap.core.errors import PersistenceFailed
from civicmap.core.types import Address, Coordinates, ExtractedData, Pin
from civicmap.database import create_storage
from civicmap.database.models import MessageModel


@pytest.fixture()
def storage(tmp_path):
    database_url = f"sqlite:///{(tmp_path / 'messages.db').as_posix()}"
    instance = create_storage(database_url)
    yield instance
    instance.dispose()


def test_partial_updates_do_not_clobber_other_fields(storage):
    message_id = storage.create_message({"text": "Спиране на водата", "source": "sofiyska-voda", "stage": "stored"})
    extracted = ExtractedData(pins=(Pin("бул. Витоша 1"),))

    storage.update_message(message_id, {"extracted_data": extracted, "stage": "addresses_stored"})
    storage.update_message(
        message_id,
        {"addresses": [Address("бул. Витоша 1", "бул. „Витоша“ 1", Coordinates(42.69, 23.32))]},
    )

    message = storage.get_message(message_id)
    assert message is not None
    assert message.text == "Спиране на водата"
    assert message.source == "sofiyska-voda"
    assert message.stage == "addresses_stored"
    assert message.extracted_data == extracted
    assert message.addresses[0].coordinates == Coordinates(42.69, 23.32)
    assert message.geo_json is None
    assert message.created_at is not None


def test_geo_json_is_stored_as_json(storage):
    message_id = storage.create_message({"text": "текст"})
    collection = {"type": "FeatureCollection", "features": []}

    storage.update_message(message_id, {"geo_json": collection})

    assert storage.get_message(message_id).geo_json == collection


def test_unknown_fields_are_rejected(storage):
    message_id = storage.create_message({"text": "текст"})

    with pytest.raises(ValueError):
        storage.update_message(message_id, {"categories": ["water"]})


def test_updating_missing_message_fails(storage):
    with pytest.raises(PersistenceFailed):
        storage.update_message("does-not-exist", {"stage": "stored"})


def test_list_messages_returns_newest_first(storage):
    first = storage.create_message({"text": "първо", "created_at": datetime(2024, 5, 1, 8, 0)})
    second = storage.create_message({"text": "второ", "created_at": datetime(2024, 5, 1, 9, 0)})

    listed = [message.id for message in storage.list_messages()]

    assert listed == [second, first]
    assert len(storage.list_messages(limit=1)) == 1
    assert storage.get_message("missing") is None


def test_geo_json_is_stored_as_readable_geojson_text(storage):
    message_id = storage.create_message({"text": "текст"})
    collection = {
        "type": "FeatureCollection",
        "features": [
            {
                "type": "Feature",
                "geometry": {"type": "Point", "coordinates": [23.32, 42.69]},
                "properties": {"feature_type": "pin", "address": "бул. Витоша 1", "timespans": []},
            }
        ],
    }

    storage.update_message(message_id, {"geo_json": collection})

    with storage.session() as session:
        raw = session.get(MessageModel, message_id).geo_json
    assert "бул. Витоша 1" in raw
    assert storage.get_message(message_id).geo_json == collection
