from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class ResourceKind(str, Enum):
    LOCATIONS = "locations"
    STATES = "states"

    @property
    def env_key(self) -> str:
        return f"{self.value.upper()}_URL"


@dataclass(slots=True)
class ResourceState:
    cached_value: Any = None
    cached_content_type: str | None = None
    cached_at: float = 0.0
    consecutive_failures: int = 0
    backoff_until: float = 0.0
    fallback_active: bool = False

    @property
    def has_cache(self) -> bool:
        return self.cached_content_type is not None

    def store(self, value: Any, content_type: str, *, now: float) -> None:
        self.cached_value = value
        self.cached_content_type = content_type
        self.cached_at = now


class BackoffPolicy:
    """Consecutive-failure trip-wire.

    After ``threshold`` failures in a row, live attempts are skipped for
    ``window`` milliseconds. The counter restarts from zero when it trips, so
    one failure after the window expires does not reopen it on its own.
    """

    def __init__(self, threshold: int, window: float) -> None:
        if threshold < 1:
            raise ValueError("backoff threshold must be at least 1")
        self.threshold = threshold
        self.window = window

    def should_attempt_live(self, state: ResourceState, now: float) -> bool:
        return now >= state.backoff_until

    def on_failure(self, state: ResourceState, now: float) -> bool:
        """Record a failed attempt; return True if it opened a backoff window."""
        state.consecutive_failures += 1
        if state.consecutive_failures < self.threshold:
            return False
        state.backoff_until = now + self.window
        state.consecutive_failures = 0
        return True

    def on_success(self, state: ResourceState) -> None:
        state.consecutive_failures = 0
        state.backoff_until = 0.0
