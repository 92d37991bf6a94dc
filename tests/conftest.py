"""Pytest fixtures for signal_relay tests."""

from __future__ import annotations

from typing import Any, Callable

import httpx
import pytest

from signal_relay.settings import Settings


class FakeClock:
    """Epoch-millisecond clock that only moves when told to."""

    def __init__(self, start: float = 1_700_000_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms


class StubUpstream:
    """MockTransport handler that replays responses and counts calls per path.

    Each reply is either ``(status, kwargs)`` used to build a fresh
    ``httpx.Response``, or a callable taking the request. The last reply
    repeats once the queue is exhausted.
    """

    def __init__(self) -> None:
        self.calls: list[str] = []
        self._routes: dict[str, list[Any]] = {}

    def on(self, path: str, *replies: Any) -> StubUpstream:
        self._routes[path] = list(replies)
        return self

    def count(self, path: str) -> int:
        return sum(1 for call in self.calls if call == path)

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        self.calls.append(path)
        replies = self._routes.get(path)
        if not replies:
            return httpx.Response(404, text="no such path")
        reply = replies.pop(0) if len(replies) > 1 else replies[0]
        if callable(reply):
            return reply(request)
        status, kwargs = reply
        return httpx.Response(status, **kwargs)

    @staticmethod
    def ok_json(payload: Any) -> tuple[int, dict[str, Any]]:
        return 200, {"json": payload}

    @staticmethod
    def status(code: int, body: str = "") -> tuple[int, dict[str, Any]]:
        return code, {"text": body}

    @staticmethod
    def connect_error(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def stub_upstream() -> StubUpstream:
    return StubUpstream()


@pytest.fixture
def make_settings() -> Callable[..., Settings]:
    def _make(**overrides: Any) -> Settings:
        values: dict[str, Any] = {
            "traffic_api_base": "https://signals.example.test",
            "locations_url": "",
            "states_url": "",
            "enable_demo_mode": True,
            "backoff_after_fails": 3,
            "backoff_window_ms": 30000,
            "upstream_timeout_ms": 1000,
        }
        values.update(overrides)
        return Settings(_env_file=None, **values)

    return _make
