import json

import pytest

from civicmap.core.types import Coordinates, ExtractedData, Pin, StreetSection, Timespan
from civicmap.geocoding import CoordinateRegistry
from civicmap.geojson import assemble, dumps, loads, parse_feature_collection


def _registry(entries):
    registry = CoordinateRegistry()
    registry.merge(entries)
    return registry


def test_single_pin_becomes_point():
    data = ExtractedData(pins=(Pin("бул. Витоша 1"),))
    registry = _registry({"бул. Витоша 1": Coordinates(lat=42.69, lng=23.32)})

    collection = assemble(data, registry)

    assert collection["type"] == "FeatureCollection"
    assert len(collection["features"]) == 1
    feature = collection["features"][0]
    assert feature["geometry"] == {"type": "Point", "coordinates": [23.32, 42.69]}
    assert feature["properties"]["address"] == "бул. Витоша 1"


def test_features_follow_input_order_pins_first():
    spans = (Timespan("15.01.2025 08:00", "15.01.2025 18:00"),)
    data = ExtractedData(
        pins=(Pin("ул. Шипка 6", spans), Pin("бул. Витоша 1")),
        streets=(
            StreetSection("ул. Граф Игнатиев", "A", "B", spans),
            StreetSection("ул. Оборище", "B", "C"),
        ),
    )
    registry = _registry(
        {
            "ул. Шипка 6": Coordinates(42.6935, 23.3385),
            "бул. Витоша 1": Coordinates(42.6950, 23.3210),
            "A": Coordinates(42.6900, 23.3300),
            "B": Coordinates(42.6920, 23.3250),
            "C": Coordinates(42.6980, 23.3400),
        }
    )

    features = assemble(data, registry)["features"]

    assert len(features) == len(data.pins) + len(data.streets)
    assert [f["geometry"]["type"] for f in features] == ["Point", "Point", "LineString", "LineString"]
    assert features[0]["properties"]["timespans"] == [{"start": "15.01.2025 08:00", "end": "15.01.2025 18:00"}]
    assert features[2]["properties"]["street_name"] == "ул. Граф Игнатиев"
    assert features[2]["geometry"]["coordinates"] == [[23.33, 42.69], [23.325, 42.692]]
    assert features[3]["properties"]["start"] == "B"


def test_round_trip_preserves_geometry():
    data = ExtractedData(
        pins=(Pin("p"),),
        streets=(StreetSection("s", "a", "b"),),
    )
    registry = _registry(
        {
            "p": Coordinates(42.697708333333, 23.321867500001),
            "a": Coordinates(42.6901234567891, 23.3300000000001),
            "b": Coordinates(42.6923456789012, 23.3254321098765),
        }
    )
    collection = assemble(data, registry)

    restored = loads(dumps(collection))
    geometries = parse_feature_collection(json.dumps(restored))

    assert len(geometries) == 2
    assert [g.geom_type for g in geometries] == ["Point", "LineString"]
    assert (geometries[0].x, geometries[0].y) == (23.321867500001, 42.697708333333)
    assert list(geometries[1].coords) == [
        (23.3300000000001, 42.6901234567891),
        (23.3254321098765, 42.6923456789012),
    ]


def test_parse_rejects_non_collections():
    with pytest.raises(ValueError):
        parse_feature_collection({"type": "Feature"})
    with pytest.raises(ValueError):
        loads('{"type": "Point", "coordinates": [1, 2]}')
