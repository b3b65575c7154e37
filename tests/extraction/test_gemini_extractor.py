import json
from types import SimpleNamespace

import httpx
import pytest
from google.genai import errors as genai_errors

from civicmap.core.errors import ExtractionFailed
from civicmap.extraction import GeminiExtractor, parse_extraction_payload


class FakeModels:
    def __init__(self, responses):
        self._responses = list(responses)
        self.calls = []

    def generate_content(self, *, model, contents, config):
        self.calls.append({"model": model, "contents": contents, "config": config})
        response = self._responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def make_extractor(*responses, max_retries=3):
    client = SimpleNamespace(models=FakeModels(responses))
    extractor = GeminiExtractor(api_key="test-key", client=client, max_retries=max_retries)
    return extractor, client.models


def test_extract_parses_pins_and_streets():
    payload = {
        "pins": [{"address": "бул. Витоша 1", "timespans": [{"start": "15.01.2025 08:00", "end": "15.01.2025 18:00"}]}],
        "streets": [
            {"street": "ул. Граф Игнатиев", "from": "ъгъл с бул. Патриарх Евтимий", "to": "ул. Шипка", "timespans": []}
        ],
    }
    extractor, models = make_extractor(SimpleNamespace(text=json.dumps(payload, ensure_ascii=False)))

    data = extractor.extract("Спира водата на бул. Витоша 1 и по ул. Граф Игнатиев")

    assert data is not None
    assert [pin.address for pin in data.pins] == ["бул. Витоша 1"]
    assert data.streets[0].start == "ъгъл с бул. Патриарх Евтимий"
    assert "Граф Игнатиев" in models.calls[0]["contents"]


def test_extract_returns_none_without_locations():
    extractor, _ = make_extractor(SimpleNamespace(text='{"pins": [], "streets": []}'))

    assert extractor.extract("Общо съобщение без адреси") is None


def test_extract_retries_api_errors_then_fails():
    error = genai_errors.APIError(503, {"error": {"message": "unavailable", "status": "UNAVAILABLE"}})
    extractor, models = make_extractor(error, error, max_retries=2)

    with pytest.raises(ExtractionFailed):
        extractor.extract("текст")
    assert len(models.calls) == 2


def test_extract_wraps_transport_timeouts():
    extractor, models = make_extractor(httpx.ReadTimeout("timed out"), httpx.ReadTimeout("timed out"), max_retries=2)

    with pytest.raises(ExtractionFailed) as excinfo:
        extractor.extract("текст")
    assert isinstance(excinfo.value.__cause__, httpx.ReadTimeout)
    assert len(models.calls) == 2


def test_extract_recovers_after_a_timeout():
    extractor, _ = make_extractor(
        httpx.ConnectTimeout("connect timed out"),
        SimpleNamespace(text='{"pins": [{"address": "бул. Витоша 1"}], "streets": []}'),
    )

    data = extractor.extract("Ремонт на бул. Витоша 1")

    assert [pin.address for pin in data.pins] == ["бул. Витоша 1"]


def test_extract_recovers_after_transient_error():
    error = genai_errors.APIError(503, {"error": {"message": "unavailable", "status": "UNAVAILABLE"}})
    extractor, _ = make_extractor(error, SimpleNamespace(text='{"pins": [{"address": "пл. Славейков"}]}'))

    data = extractor.extract("текст")

    assert data is not None and data.pins[0].address == "пл. Славейков"


def test_empty_response_is_an_extraction_failure():
    extractor, _ = make_extractor(SimpleNamespace(text="", candidates=[]))

    with pytest.raises(ExtractionFailed):
        extractor.extract("текст")


def test_parse_payload_strips_code_fence_and_drops_blank_entries():
    raw = '```json\n{"pins": [{"address": ""}, {"address": "ул. Шипка 6"}], "streets": [{"street": "ул. Оборище"}]}\n```'

    data = parse_extraction_payload(raw)

    assert data is not None
    assert [pin.address for pin in data.pins] == ["ул. Шипка 6"]
    assert data.streets == ()


def test_parse_payload_rejects_malformed_json():
    with pytest.raises(ExtractionFailed):
        parse_extraction_payload("{not json")
    with pytest.raises(ExtractionFailed):
        parse_extraction_payload("[1, 2]")


def test_parse_payload_null_means_no_data():
    assert parse_extraction_payload("null") is None
