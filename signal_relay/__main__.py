from __future__ import annotations

import argparse
from typing import Sequence

import uvicorn

from signal_relay.settings import Settings


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="python -m signal_relay")
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Run the traffic signal relay server")
    serve.add_argument("--host", default=None)
    serve.add_argument("--port", type=int, default=None)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(list(argv) if argv is not None else None)
    if args.command == "serve":
        settings = Settings()
        uvicorn.run(
            "signal_relay.app:create_app",
            factory=True,
            host=args.host or settings.host,
            port=args.port or settings.port,
            log_level=settings.log_level.lower(),
        )
        return 0
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
