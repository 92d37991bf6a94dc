from __future__ import annotations

import logging

from signal_relay.app import create_app
from signal_relay.startup_checks import startup_notices


def test_notices_flag_missing_base_and_urls(make_settings) -> None:
    notices = startup_notices(make_settings(traffic_api_base="", locations_url="/relative/only"))

    assert notices[0] == "demo mode configured: true"
    assert any("TRAFFIC_API_BASE not set" in n for n in notices)
    assert any(n.startswith("LOCATIONS_URL missing") and "cache or demo data" in n for n in notices)
    assert any(n.startswith("STATES_URL missing") for n in notices)


def test_fully_configured_service_has_only_demo_notice(make_settings) -> None:
    notices = startup_notices(
        make_settings(
            locations_url="/loc.geojson",
            states_url="https://elsewhere.example.test/states",
            enable_demo_mode=False,
        )
    )

    assert notices == ["demo mode configured: false"]


def test_create_app_logs_notices(make_settings, caplog) -> None:
    with caplog.at_level(logging.INFO, logger="signal_relay.startup"):
        create_app(settings=make_settings(enable_demo_mode=False))

    messages = [r.getMessage() for r in caplog.records if r.name == "signal_relay.startup"]
    assert "demo mode configured: false" in messages
    assert any("will use cache only" in m for m in messages)
