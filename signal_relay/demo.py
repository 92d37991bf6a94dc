from __future__ import annotations

import asyncio
import json
import random
from pathlib import Path
from typing import Any

from signal_relay.resilience import ResourceKind
from signal_relay.upstream import JSON_CONTENT_TYPE

LOCATIONS_FILE = "locations.geojson"
STATES_FILE = "states.json"

# GRINT codes worth seeing on the map while in demo mode.
STATE_CANDIDATES: tuple[str, ...] = (
    "1", "4", "5", "9", "12", "14", "16", "17", "18", "19", "22", "23",
)
MUTATION_RATE = 0.25


class DemoDataError(RuntimeError):
    """Bundled demo data is missing or malformed."""


class DemoDataProvider:
    def __init__(self, data_dir: Path, *, rng: random.Random | None = None) -> None:
        self.data_dir = Path(data_dir)
        self._rng = rng or random.Random()
        self._loaders = {
            ResourceKind.LOCATIONS: self.locations,
            ResourceKind.STATES: self.states,
        }

    async def load(self, kind: ResourceKind) -> tuple[Any, str]:
        value = await self._loaders[kind]()
        return value, JSON_CONTENT_TYPE

    async def locations(self) -> Any:
        return await self._read_json(LOCATIONS_FILE)

    async def states(self) -> list[dict[str, Any]]:
        baseline = await self._read_json(STATES_FILE)
        if not isinstance(baseline, list) or not all(
            isinstance(entry, dict) and "state" in entry for entry in baseline
        ):
            raise DemoDataError(f"{STATES_FILE} must be a list of objects with a 'state' key")
        return [self._reroll(entry) for entry in baseline]

    def _reroll(self, entry: dict[str, Any]) -> dict[str, Any]:
        if self._rng.random() < MUTATION_RATE:
            return {**entry, "state": self._rng.choice(STATE_CANDIDATES)}
        return dict(entry)

    async def _read_json(self, name: str) -> Any:
        path = self.data_dir / name
        try:
            text = await asyncio.to_thread(path.read_text, encoding="utf-8")
            return json.loads(text)
        except (OSError, ValueError) as exc:
            raise DemoDataError(f"cannot load demo data {path}: {exc}") from exc
