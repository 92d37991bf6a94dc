from __future__ import annotations

import logging

from signal_relay.resilience import ResourceKind
from signal_relay.settings import Settings

logger = logging.getLogger("signal_relay.startup")


def startup_notices(settings: Settings) -> list[str]:
    notices = [f"demo mode configured: {str(settings.enable_demo_mode).lower()}"]
    if not settings.traffic_api_base:
        notices.append("TRAFFIC_API_BASE not set, only absolute upstream URLs will be used")
    upstreams = {
        ResourceKind.LOCATIONS: settings.locations_upstream,
        ResourceKind.STATES: settings.states_upstream,
    }
    for kind, url in upstreams.items():
        if url is None:
            fallback = "cache or demo data" if settings.enable_demo_mode else "cache only"
            notices.append(f"{kind.env_key} missing or unresolvable, {kind.value} will use {fallback}")
    return notices


def log_startup_notices(settings: Settings) -> None:
    for notice in startup_notices(settings):
        logger.info(notice)
