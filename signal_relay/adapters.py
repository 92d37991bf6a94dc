"""Normalize whatever shape an upstream returns into the two shapes the map uses.

Locations -> ``[{"id", "name", "lat", "lon"}]``
States    -> ``[{"id", "state"}]`` where state is the GRINT code as a string

Each adapter pairs a probe with a parser; the first adapter whose probe
accepts the payload wins. Unknown shapes normalize to an empty list.
"""

from __future__ import annotations

import csv
import io
import math
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any

Record = dict[str, Any]

_ID_KEYS = ("id", "intersectionId", "sgId")
_CSV_ID = ("id", "intersectionid", "sgid")
_CSV_LAT = ("lat", "latitude", "y")
_CSV_LON = ("lon", "lng", "longitude", "x")
_CSV_NAME = ("name", "label", "intersection")
_CSV_STATE = ("state", "grint", "code", "status")


@dataclass(frozen=True)
class ShapeAdapter:
    name: str
    probe: Callable[[Any], bool]
    parse: Callable[[Any], list[Record]]


def _first(obj: dict[str, Any], keys: Sequence[str]) -> Any:
    for key in keys:
        value = obj.get(key)
        if value not in (None, ""):
            return value
    return None


def _mapping(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _ident(obj: dict[str, Any], index: int) -> str:
    value = _first(obj, _ID_KEYS)
    return str(index if value is None else value)


def _number(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return math.nan


def _finite(records: list[Record]) -> list[Record]:
    return [r for r in records if math.isfinite(r["lat"]) and math.isfinite(r["lon"])]


def _csv_rows(raw: str) -> tuple[list[str], list[list[str]]]:
    lines = [line for line in raw.splitlines() if line.strip()]
    if not lines:
        return [], []
    rows = list(csv.reader(io.StringIO("\n".join(lines))))
    headers = [h.strip().lower() for h in rows[0]]
    return headers, rows[1:]


def _column(headers: list[str], aliases: Sequence[str]) -> int | None:
    for index, header in enumerate(headers):
        if header in aliases:
            return index
    return None


def _cell(row: list[str], index: int | None) -> str | None:
    if index is None or index >= len(row):
        return None
    return row[index].strip()


def _looks_like_csv(raw: Any) -> bool:
    return isinstance(raw, str) and "," in raw


# -- locations ---------------------------------------------------------------


def _is_feature_collection(raw: Any) -> bool:
    return (
        isinstance(raw, dict)
        and raw.get("type") == "FeatureCollection"
        and isinstance(raw.get("features"), list)
    )


def _parse_feature_collection(raw: dict[str, Any]) -> list[Record]:
    records = []
    for index, feature in enumerate(raw["features"]):
        feature = _mapping(feature)
        coordinates = _mapping(feature.get("geometry")).get("coordinates") or [0, 0]
        if not isinstance(coordinates, (list, tuple)):
            coordinates = []
        lon, lat = (list(coordinates) + [None, None])[:2]
        props = _mapping(feature.get("properties"))
        ident = _ident(props, index)
        name = _first(props, ("name", "Intersection")) or f"Intersection {ident}"
        records.append({"id": ident, "name": str(name), "lat": _number(lat), "lon": _number(lon)})
    return _finite(records)


def _parse_location_list(raw: list[Any]) -> list[Record]:
    records = []
    for index, item in enumerate(raw):
        if not isinstance(item, dict):
            continue
        location = _mapping(item.get("location"))
        lat = _first(item, ("lat", "latitude"))
        lon = _first(item, ("lon", "lng", "longitude"))
        records.append(
            {
                "id": _ident(item, index),
                "name": str(_first(item, ("name", "label")) or f"Intersection {index}"),
                "lat": _number(lat if lat is not None else location.get("lat")),
                "lon": _number(lon if lon is not None else location.get("lon")),
            }
        )
    return _finite(records)


def _parse_location_csv(raw: str) -> list[Record]:
    headers, rows = _csv_rows(raw)
    id_col = _column(headers, _CSV_ID)
    lat_col = _column(headers, _CSV_LAT)
    lon_col = _column(headers, _CSV_LON)
    name_col = _column(headers, _CSV_NAME)
    records = []
    for index, row in enumerate(rows):
        records.append(
            {
                "id": _cell(row, id_col) or str(index),
                "name": _cell(row, name_col) or f"Intersection {index}",
                "lat": _number(_cell(row, lat_col)),
                "lon": _number(_cell(row, lon_col)),
            }
        )
    return _finite(records)


LOCATION_ADAPTERS: tuple[ShapeAdapter, ...] = (
    ShapeAdapter("geojson", _is_feature_collection, _parse_feature_collection),
    ShapeAdapter("array", lambda raw: isinstance(raw, list), _parse_location_list),
    ShapeAdapter("csv", _looks_like_csv, _parse_location_csv),
)


# -- states ------------------------------------------------------------------


def _is_normalized_states(raw: Any) -> bool:
    return (
        isinstance(raw, list)
        and bool(raw)
        and isinstance(raw[0], dict)
        and "id" in raw[0]
        and "state" in raw[0]
    )


def _parse_normalized_states(raw: list[Any]) -> list[Record]:
    return [
        {"id": str(item.get("id")), "state": str(item.get("state"))}
        for item in raw
        if isinstance(item, dict)
    ]


def _has_signal_groups(raw: Any) -> bool:
    return isinstance(raw, dict) and isinstance(raw.get("signalGroups"), list)


def _parse_signal_groups(raw: dict[str, Any]) -> list[Record]:
    records = []
    for index, group in enumerate(raw["signalGroups"]):
        group = _mapping(group)
        state = _first(group, ("state", "grint", "code"))
        records.append(
            {
                "id": _ident(group, index),
                "state": "" if state is None else str(state),
            }
        )
    return records


def _parse_state_mapping(raw: dict[str, Any]) -> list[Record]:
    return [{"id": str(key), "state": str(value)} for key, value in raw.items()]


def _parse_state_csv(raw: str) -> list[Record]:
    headers, rows = _csv_rows(raw)
    id_col = _column(headers, _CSV_ID)
    state_col = _column(headers, _CSV_STATE)
    return [
        {"id": _cell(row, id_col) or str(index), "state": _cell(row, state_col) or ""}
        for index, row in enumerate(rows)
    ]


STATE_ADAPTERS: tuple[ShapeAdapter, ...] = (
    ShapeAdapter("normalized", _is_normalized_states, _parse_normalized_states),
    ShapeAdapter("signal_groups", _has_signal_groups, _parse_signal_groups),
    ShapeAdapter("mapping", lambda raw: isinstance(raw, dict), _parse_state_mapping),
    ShapeAdapter("csv", _looks_like_csv, _parse_state_csv),
)


def select_adapter(raw: Any, adapters: Sequence[ShapeAdapter]) -> ShapeAdapter | None:
    for adapter in adapters:
        if adapter.probe(raw):
            return adapter
    return None


def _normalize(raw: Any, adapters: Sequence[ShapeAdapter]) -> list[Record]:
    adapter = select_adapter(raw, adapters)
    if adapter is None:
        return []
    return adapter.parse(raw)


def parse_locations(raw: Any) -> list[Record]:
    return _normalize(raw, LOCATION_ADAPTERS)


def parse_states(raw: Any) -> list[Record]:
    return _normalize(raw, STATE_ADAPTERS)
