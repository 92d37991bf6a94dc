"""Time-bounded retrieval of one upstream resource.

Every transport or HTTP problem is folded into a ``FetchOutcome`` so callers
never have to guard the network call themselves.
"""

from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass
from typing import Any

import httpx

logger = logging.getLogger("signal_relay.upstream")

JSON_CONTENT_TYPE = "application/json"
DEFAULT_TEXT_CONTENT_TYPE = "text/plain; charset=utf-8"

_ABSOLUTE_URL = re.compile(r"^https?://", re.IGNORECASE)


def resolve_upstream_url(url_or_path: str | None, base: str | None) -> str | None:
    """Turn a configured locator into an absolute URL, or ``None`` if it cannot be."""
    if not url_or_path:
        return None
    if _ABSOLUTE_URL.match(url_or_path):
        return url_or_path
    if not base:
        return None
    return f"{base.rstrip('/')}/{url_or_path.lstrip('/')}"


def is_json_content_type(content_type: str) -> bool:
    lowered = content_type.lower()
    return "application/json" in lowered or "+json" in lowered


@dataclass(slots=True, frozen=True)
class FetchOutcome:
    ok: bool
    value: Any = None
    content_type: str = JSON_CONTENT_TYPE
    status: int | None = None
    reason: str = ""
    body: str = ""

    @classmethod
    def success(cls, value: Any, content_type: str) -> FetchOutcome:
        return cls(ok=True, value=value, content_type=content_type, status=200)

    @classmethod
    def failure(cls, reason: str, *, status: int | None = None, body: str = "") -> FetchOutcome:
        return cls(ok=False, status=status, reason=reason, body=body)


class UpstreamFetcher:
    def __init__(
        self,
        *,
        timeout: float,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._timeout = timeout
        self._transport = transport

    async def fetch(self, url: str | None, *, label: str = "upstream") -> FetchOutcome:
        if not url:
            return FetchOutcome.failure("not configured")

        try:
            async with httpx.AsyncClient(
                transport=self._transport,
                timeout=self._timeout,
                headers={"Cache-Control": "no-store"},
            ) as client:
                response = await asyncio.wait_for(
                    client.get(url, follow_redirects=True),
                    timeout=self._timeout,
                )
        except (asyncio.TimeoutError, httpx.TimeoutException):
            logger.warning("resource=%s url=%s fetch error: timeout", label, url)
            return FetchOutcome.failure("timeout", status=504)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            reason = str(exc) or type(exc).__name__
            logger.warning("resource=%s url=%s fetch error: %s", label, url, reason)
            return FetchOutcome.failure(reason, status=502)

        if not response.is_success:
            return FetchOutcome.failure(
                f"Upstream {response.status_code}",
                status=response.status_code,
                body=response.text,
            )

        content_type = response.headers.get("content-type", "").lower()
        if is_json_content_type(content_type):
            try:
                data = response.json()
            except ValueError:
                logger.warning("resource=%s url=%s fetch error: invalid json", label, url)
                return FetchOutcome.failure("invalid json", status=502, body=response.text)
            return FetchOutcome.success(data, JSON_CONTENT_TYPE)
        return FetchOutcome.success(response.text, content_type or DEFAULT_TEXT_CONTENT_TYPE)
