from __future__ import annotations

import random
from pathlib import Path

import httpx
from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles
from starlette.responses import Response
from starlette.types import Scope

from signal_relay.api import router as api_router
from signal_relay.demo import DemoDataProvider
from signal_relay.logging_config import configure_structured_logging, request_id_middleware
from signal_relay.observability import MetricsCollector
from signal_relay.resilience import BackoffPolicy, ResourceKind
from signal_relay.resolver import Clock, ResourceResolver, epoch_ms
from signal_relay.settings import Settings
from signal_relay.startup_checks import log_startup_notices
from signal_relay.upstream import UpstreamFetcher

STATIC_DIR = Path(__file__).resolve().parent / "web"


class NoStoreStaticFiles(StaticFiles):
    async def get_response(self, path: str, scope: Scope) -> Response:
        response = await super().get_response(path, scope)
        response.headers["Cache-Control"] = "no-store, must-revalidate"
        for name in ("etag", "last-modified"):
            if name in response.headers:
                del response.headers[name]
        return response


def create_app(
    settings: Settings | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
    clock: Clock = epoch_ms,
    rng: random.Random | None = None,
) -> FastAPI:
    settings = settings or Settings()
    configure_structured_logging(level=settings.log_level)

    app = FastAPI(title="Signal Relay")
    app.middleware("http")(request_id_middleware)

    fetcher = UpstreamFetcher(timeout=settings.upstream_timeout_seconds, transport=transport)
    metrics = MetricsCollector()
    demo = DemoDataProvider(settings.demo_data_dir, rng=rng) if settings.enable_demo_mode else None
    upstreams = {
        ResourceKind.LOCATIONS: settings.locations_upstream,
        ResourceKind.STATES: settings.states_upstream,
    }
    resolvers = {
        kind: ResourceResolver(
            kind,
            url=url,
            fetcher=fetcher,
            policy=BackoffPolicy(settings.backoff_after_fails, settings.backoff_window_ms),
            demo=demo,
            metrics=metrics,
            clock=clock,
        )
        for kind, url in upstreams.items()
    }

    app.state.settings = settings
    app.state.fetcher = fetcher
    app.state.metrics = metrics
    app.state.resolvers = resolvers

    app.include_router(api_router)
    app.mount("/", NoStoreStaticFiles(directory=STATIC_DIR, html=True), name="signal-ui")

    log_startup_notices(settings)
    return app
