from __future__ import annotations

import asyncio
import logging
from typing import Any

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.responses import Response

from signal_relay.adapters import parse_locations, parse_states
from signal_relay.observability import render_prometheus
from signal_relay.resilience import ResourceKind
from signal_relay.resolver import AnswerSource, ResourceResolver
from signal_relay.upstream import JSON_CONTENT_TYPE, UpstreamFetcher, resolve_upstream_url

router = APIRouter()
api_logger = logging.getLogger("signal_relay.api")

_NORMALIZERS = {
    ResourceKind.LOCATIONS: parse_locations,
    ResourceKind.STATES: parse_states,
}


def render_payload(value: Any, content_type: str | None) -> Response:
    if content_type in (None, JSON_CONTENT_TYPE):
        return JSONResponse(content=value)
    return Response(content=value, media_type=content_type)


def _resolver(request: Request, kind: ResourceKind) -> ResourceResolver:
    return request.app.state.resolvers[kind]


async def _serve_resource(request: Request, kind: ResourceKind, *, normalized: bool) -> Response:
    answer = await _resolver(request, kind).resolve()
    if not answer.available:
        return JSONResponse(
            status_code=500,
            content={"error": f"{kind.env_key} failed, and demo mode disabled"},
        )

    if normalized:
        response = JSONResponse(content=_NORMALIZERS[kind](answer.value))
    else:
        response = render_payload(answer.value, answer.content_type)

    if answer.source is AnswerSource.CACHED:
        response.headers["X-Cache"] = f"hit-{kind.value}"
    elif answer.source is AnswerSource.SYNTHETIC:
        response.headers["X-Demo-Fallback"] = kind.value
    return response


@router.get("/api/locations")
async def locations(request: Request, normalized: bool = False) -> Response:
    return await _serve_resource(request, ResourceKind.LOCATIONS, normalized=normalized)


@router.get("/api/states")
async def states(request: Request, normalized: bool = False) -> Response:
    return await _serve_resource(request, ResourceKind.STATES, normalized=normalized)


@router.get("/api/proxy")
async def proxy(request: Request, path: str = "") -> Response:
    settings = request.app.state.settings
    url = resolve_upstream_url(path, settings.traffic_api_base)
    if url is None:
        return JSONResponse(status_code=400, content={"error": "Invalid path or base not set"})

    fetcher: UpstreamFetcher = request.app.state.fetcher
    outcome = await fetcher.fetch(url, label="proxy")
    if not outcome.ok:
        api_logger.warning(
            "resource=proxy url=%s upstream failed status=%s reason=%s",
            url,
            outcome.status,
            outcome.reason,
        )
        return PlainTextResponse(
            outcome.body or outcome.reason or "Proxy error",
            status_code=outcome.status or 502,
        )
    return render_payload(outcome.value, outcome.content_type)


@router.get("/config")
def config(request: Request) -> dict[str, object]:
    settings = request.app.state.settings
    loc = _resolver(request, ResourceKind.LOCATIONS).diagnostics()
    sts = _resolver(request, ResourceKind.STATES).diagnostics()
    return {
        "pollIntervalMs": settings.poll_interval_ms,
        "demoConfigured": settings.enable_demo_mode,
        "fallbackActive": {
            "locations": loc["fallbackActive"],
            "states": sts["fallbackActive"],
        },
        "usingRemote": settings.using_remote,
        "base": settings.base_origin,
        "upstream": {
            "timeoutMs": settings.upstream_timeout_ms,
            "backoffAfterFails": settings.backoff_after_fails,
            "backoffWindowMs": settings.backoff_window_ms,
            "locFailCount": loc["failCount"],
            "statesFailCount": sts["failCount"],
            "locNextTryAt": loc["nextTryAt"],
            "statesNextTryAt": sts["nextTryAt"],
            "locCachedAt": loc["cachedAt"],
            "statesCachedAt": sts["cachedAt"],
        },
    }


async def _probe(fetcher: UpstreamFetcher, resolver: ResourceResolver) -> dict[str, object]:
    if not resolver.url:
        return {"ok": False, "status": 400}
    outcome = await fetcher.fetch(resolver.url, label=resolver.kind.value)
    return {"ok": outcome.ok, "status": outcome.status or 200}


@router.get("/health")
async def health(request: Request) -> dict[str, object]:
    fetcher: UpstreamFetcher = request.app.state.fetcher
    kinds = list(ResourceKind)
    results = await asyncio.gather(
        *(_probe(fetcher, _resolver(request, kind)) for kind in kinds)
    )
    request_id = getattr(request.state, "request_id", "")
    api_logger.debug("health request_id=%s results=%s", request_id, results)
    return {"results": {kind.value: result for kind, result in zip(kinds, results)}}


@router.get("/metrics")
def metrics(request: Request) -> dict[str, object]:
    return request.app.state.metrics.snapshot()


@router.get("/metrics/prometheus")
def metrics_prometheus(request: Request) -> PlainTextResponse:
    snapshot = request.app.state.metrics.snapshot()
    return PlainTextResponse(
        render_prometheus(snapshot),
        media_type="text/plain; version=0.0.4; charset=utf-8",
    )
