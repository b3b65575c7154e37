import pytest

from civicmap.core.types import Address, Coordinates, ExtractedData, Message, StreetSection


def test_extracted_data_uses_from_and_to_keys():
    raw = {
        "pins": [{"address": "бул. Витоша 1", "timespans": [{"start": "15.01.2025 08:00", "end": "15.01.2025 18:00"}]}],
        "streets": [{"street": "ул. Граф Игнатиев", "from": "бул. Патриарх Евтимий", "to": "ул. Шипка"}],
    }

    data = ExtractedData.from_dict(raw)

    assert data.pins[0].timespans[0].start == "15.01.2025 08:00"
    assert data.streets[0] == StreetSection(street="ул. Граф Игнатиев", start="бул. Патриарх Евтимий", end="ул. Шипка")
    serialised = data.to_dict()
    assert serialised["streets"][0]["from"] == "бул. Патриарх Евтимий"
    assert serialised["streets"][0]["to"] == "ул. Шипка"
    assert ExtractedData.from_dict(serialised) == data


@pytest.mark.parametrize(
    "raw",
    [
        {"pins": [{"address": ""}]},
        {"pins": [{"timespans": []}]},
        {"streets": [{"street": "ул. Шипка", "from": "   ", "to": "x"}]},
        {"pins": "бул. Витоша 1"},
    ],
)
def test_extracted_data_rejects_malformed_input(raw):
    with pytest.raises(ValueError):
        ExtractedData.from_dict(raw)


def test_message_to_dict_omits_missing_sections():
    message = Message(id="abc", text="Спиране на водата")

    payload = message.to_dict()

    assert payload["addresses"] == []
    assert "extractedData" not in payload
    assert "geoJson" not in payload


def test_address_round_trip_keeps_coordinates():
    address = Address("бул. Витоша 1", "бул. „Витоша“ 1, София", Coordinates(lat=42.69, lng=23.32))

    assert Address.from_dict(address.to_dict()) == address
