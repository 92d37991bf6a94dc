from __future__ import annotations

from unittest.mock import MagicMock

import signal_relay.__main__ as cli_main


def test_serve_runs_app_factory_with_settings_defaults(monkeypatch) -> None:
    uvicorn_run = MagicMock()
    monkeypatch.setattr(cli_main.uvicorn, "run", uvicorn_run)
    monkeypatch.setenv("PORT", "4100")
    monkeypatch.setenv("HOST", "0.0.0.0")

    exit_code = cli_main.main(["serve"])

    assert exit_code == 0
    uvicorn_run.assert_called_once()
    args, kwargs = uvicorn_run.call_args
    assert args == ("signal_relay.app:create_app",)
    assert kwargs["factory"] is True
    assert kwargs["host"] == "0.0.0.0"
    assert kwargs["port"] == 4100


def test_serve_flags_override_settings(monkeypatch) -> None:
    uvicorn_run = MagicMock()
    monkeypatch.setattr(cli_main.uvicorn, "run", uvicorn_run)

    cli_main.main(["serve", "--host", "127.0.0.2", "--port", "8123"])

    kwargs = uvicorn_run.call_args.kwargs
    assert kwargs["host"] == "127.0.0.2"
    assert kwargs["port"] == 8123
