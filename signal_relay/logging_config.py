from __future__ import annotations

import logging
import time
from uuid import uuid4

from fastapi import Request
from starlette.responses import Response

access_logger = logging.getLogger("signal_relay.http")


def configure_structured_logging(*, level: str = "INFO") -> None:
    logger = logging.getLogger("signal_relay")
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    logger.propagate = True


def _header(request: Request, *names: str) -> str | None:
    for name in names:
        value = request.headers.get(name)
        if value:
            return value
    return None


def served_from(response: Response | None) -> str:
    """Which degradation path answered, as advertised to the client."""
    if response is None:
        return "error"
    if "X-Demo-Fallback" in response.headers:
        return "demo"
    if "X-Cache" in response.headers:
        return "cache"
    return "origin"


async def request_id_middleware(request: Request, call_next) -> Response:
    request_id = _header(request, "X-Request-Id") or uuid4().hex[:12]
    correlation_id = _header(request, "X-Correlation-Id") or request_id
    request.state.request_id = request_id
    request.state.correlation_id = correlation_id

    start = time.perf_counter()
    response: Response | None = None
    try:
        response = await call_next(request)
        return response
    finally:
        access_logger.info(
            "request_id=%s correlation_id=%s method=%s path=%s status_code=%s served_from=%s duration_ms=%s",
            request_id,
            correlation_id,
            request.method,
            request.url.path,
            response.status_code if response is not None else 500,
            served_from(response),
            int((time.perf_counter() - start) * 1000),
        )
        if response is not None:
            response.headers["X-Request-Id"] = request_id
            response.headers["X-Correlation-Id"] = correlation_id
