import pytest

from civicmap.core.errors import (
    ExtractionFailed,
    GeocodingIncomplete,
    InvalidMessageText,
    PersistenceFailed,
)
from civicmap.pipeline import error_response, validate_message_text


def test_geocoding_incomplete_lists_missing_locations():
    status, body = error_response(GeocodingIncomplete(["ул. Граф Игнатиев to: УНКНОWN_PLACE"]))

    assert status == 422
    assert body["error"] == "Failed to geocode some addresses"
    assert body["missing"] == ["ул. Граф Игнатиев to: УНКНОWN_PLACE"]
    assert "УНКНОWN_PLACE" in body["details"]


def test_extraction_failure_is_distinct_from_generic_errors():
    extraction_status, extraction_body = error_response(ExtractionFailed("timeout"))
    generic_status, generic_body = error_response(PersistenceFailed("locked"))

    assert extraction_status == 502
    assert extraction_body["error"] == "Failed to extract addresses"
    assert generic_status == 500
    assert generic_body == {"error": "Failed to create message"}
    assert error_response(RuntimeError("boom")) == (500, {"error": "Failed to create message"})


def test_invalid_text_maps_to_bad_request():
    assert error_response(InvalidMessageText("Invalid message text")) == (400, {"error": "Invalid message text"})


@pytest.mark.parametrize("text", [None, "", "   ", 42])
def test_validate_message_text_rejects_blank_input(text):
    with pytest.raises(InvalidMessageText):
        validate_message_text(text)


def test_validate_message_text_accepts_text_at_limit():
    assert validate_message_text("абв", max_length=3) == "абв"
