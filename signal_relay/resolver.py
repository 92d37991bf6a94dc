"""Per-resource resolution: live, then cache, then demo data, then nothing.

One ``ResourceResolver`` exists per ``ResourceKind`` for the lifetime of the
app. It owns that resource's ``ResourceState``; all mutations happen between
awaits on the event loop, so no locking is needed.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from signal_relay.demo import DemoDataProvider
from signal_relay.observability import MetricsCollector
from signal_relay.resilience import BackoffPolicy, ResourceKind, ResourceState
from signal_relay.upstream import UpstreamFetcher

logger = logging.getLogger("signal_relay.resolver")

Clock = Callable[[], float]


def epoch_ms() -> float:
    return time.time() * 1000


class AnswerSource(str, Enum):
    LIVE = "live"
    CACHED = "cached"
    SYNTHETIC = "synthetic"
    UNAVAILABLE = "unavailable"


@dataclass(slots=True, frozen=True)
class ResolvedAnswer:
    source: AnswerSource
    value: Any = None
    content_type: str | None = None

    @property
    def available(self) -> bool:
        return self.source is not AnswerSource.UNAVAILABLE


class ResourceResolver:
    def __init__(
        self,
        kind: ResourceKind,
        *,
        url: str | None,
        fetcher: UpstreamFetcher,
        policy: BackoffPolicy,
        demo: DemoDataProvider | None = None,
        metrics: MetricsCollector | None = None,
        clock: Clock = epoch_ms,
        state: ResourceState | None = None,
    ) -> None:
        self.kind = kind
        self.url = url
        self.fetcher = fetcher
        self.policy = policy
        self.demo = demo
        self.metrics = metrics or MetricsCollector()
        self.clock = clock
        self.state = state or ResourceState()

    async def resolve(self) -> ResolvedAnswer:
        state = self.state
        state.fallback_active = False

        answer = await self._try_live()
        if answer is None:
            answer = await self._fallback()
        self.metrics.record_count(f"{self.kind.value}_{answer.source.value}")
        return answer

    async def _try_live(self) -> ResolvedAnswer | None:
        if not self.url:
            return None
        now = self.clock()
        if not self.policy.should_attempt_live(self.state, now):
            self.metrics.record_count(f"{self.kind.value}_backoff_skips")
            return None

        started = time.perf_counter()
        outcome = await self.fetcher.fetch(self.url, label=self.kind.value)
        self.metrics.record_latency(
            f"{self.kind.value}_upstream_latency", time.perf_counter() - started
        )

        if outcome.ok:
            self.policy.on_success(self.state)
            self.state.store(outcome.value, outcome.content_type, now=self.clock())
            return ResolvedAnswer(AnswerSource.LIVE, outcome.value, outcome.content_type)

        logger.warning(
            "resource=%s upstream failed status=%s reason=%s",
            self.kind.value,
            outcome.status,
            outcome.reason,
        )
        self.metrics.record_count(f"{self.kind.value}_upstream_failures")
        if self.policy.on_failure(self.state, self.clock()):
            self.metrics.record_count(f"{self.kind.value}_backoff_trips")
            logger.info(
                "resource=%s backing off until=%d",
                self.kind.value,
                self.state.backoff_until,
            )
        return None

    async def _fallback(self) -> ResolvedAnswer:
        state = self.state
        if state.has_cache:
            return ResolvedAnswer(AnswerSource.CACHED, state.cached_value, state.cached_content_type)

        if self.demo is not None:
            value, content_type = await self.demo.load(self.kind)
            state.fallback_active = True
            logger.info("resource=%s serving demo data", self.kind.value)
            return ResolvedAnswer(AnswerSource.SYNTHETIC, value, content_type)

        return ResolvedAnswer(AnswerSource.UNAVAILABLE)

    def diagnostics(self) -> dict[str, Any]:
        return {
            "failCount": self.state.consecutive_failures,
            "nextTryAt": int(self.state.backoff_until),
            "cachedAt": int(self.state.cached_at),
            "fallbackActive": self.state.fallback_active,
        }
