from __future__ import annotations

from signal_relay.adapters import (
    LOCATION_ADAPTERS,
    STATE_ADAPTERS,
    parse_locations,
    parse_states,
    select_adapter,
)


def test_geojson_locations() -> None:
    raw = {
        "type": "FeatureCollection",
        "features": [
            {
                "properties": {"intersectionId": 17, "Intersection": "Hervanta"},
                "geometry": {"coordinates": [23.85, 61.45]},
            },
            {"properties": {}, "geometry": {"coordinates": [23.70, 61.50]}},
            {"properties": {"id": "bad"}, "geometry": {"coordinates": ["x", None]}},
        ],
    }

    assert select_adapter(raw, LOCATION_ADAPTERS).name == "geojson"
    assert parse_locations(raw) == [
        {"id": "17", "name": "Hervanta", "lat": 61.45, "lon": 23.85},
        {"id": "1", "name": "Intersection 1", "lat": 61.5, "lon": 23.7},
    ]


def test_array_locations_accept_coordinate_aliases() -> None:
    raw = [
        {"sgId": "a", "label": "A", "latitude": "61.1", "lng": 23.1},
        {"id": "b", "location": {"lat": 61.2, "lon": 23.2}},
        {"id": "c", "name": "no coords"},
        "not an object",
    ]

    assert parse_locations(raw) == [
        {"id": "a", "name": "A", "lat": 61.1, "lon": 23.1},
        {"id": "b", "name": "Intersection 1", "lat": 61.2, "lon": 23.2},
    ]


def test_csv_locations() -> None:
    raw = "ID,Name,Latitude,Longitude\n5,Keskustori,61.4978,23.7610\n\n6,Broken,,\n"

    assert select_adapter(raw, LOCATION_ADAPTERS).name == "csv"
    assert parse_locations(raw) == [
        {"id": "5", "name": "Keskustori", "lat": 61.4978, "lon": 23.761},
    ]


def test_geojson_tolerates_non_object_members() -> None:
    raw = {
        "type": "FeatureCollection",
        "features": [
            {"properties": "n/a", "geometry": {"coordinates": [23.7, 61.5]}},
            {"properties": {"id": "g"}, "geometry": [23.8, 61.6]},
            {"properties": ["a"], "geometry": {"coordinates": {"lon": 1}}},
            "not a feature",
        ],
    }

    assert parse_locations(raw) == [
        {"id": "0", "name": "Intersection 0", "lat": 61.5, "lon": 23.7},
        {"id": "g", "name": "Intersection g", "lat": 0.0, "lon": 0.0},
        {"id": "3", "name": "Intersection 3", "lat": 0.0, "lon": 0.0},
    ]


def test_nested_non_objects_in_lists_and_groups() -> None:
    assert parse_locations([{"id": "a", "location": "somewhere"}]) == []
    assert parse_states({"signalGroups": ["3", None]}) == [
        {"id": "0", "state": ""},
        {"id": "1", "state": ""},
    ]


def test_unknown_location_shape_is_empty() -> None:
    assert parse_locations({"rows": []}) == []
    assert parse_locations(None) == []
    assert parse_locations("no commas here") == []


def test_normalized_states_pass_through_as_strings() -> None:
    raw = [{"id": 1, "state": 3}, {"id": "2", "state": "9"}]

    assert select_adapter(raw, STATE_ADAPTERS).name == "normalized"
    assert parse_states(raw) == [{"id": "1", "state": "3"}, {"id": "2", "state": "9"}]


def test_signal_group_states() -> None:
    raw = {"signalGroups": [{"intersectionId": "x1", "code": "A"}, {"state": 0}, {}]}

    assert parse_states(raw) == [
        {"id": "x1", "state": "A"},
        {"id": "1", "state": "0"},
        {"id": "2", "state": ""},
    ]


def test_mapping_states() -> None:
    raw = {"101": "3", "102": 16}

    assert select_adapter(raw, STATE_ADAPTERS).name == "mapping"
    assert parse_states(raw) == [{"id": "101", "state": "3"}, {"id": "102", "state": "16"}]


def test_csv_states() -> None:
    raw = "sgid,grint\r\nk1,4\r\nk2,19\r\n"

    assert parse_states(raw) == [{"id": "k1", "state": "4"}, {"id": "k2", "state": "19"}]


def test_empty_list_is_not_mistaken_for_normalized_states() -> None:
    assert select_adapter([], STATE_ADAPTERS) is None
    assert parse_states([]) == []
