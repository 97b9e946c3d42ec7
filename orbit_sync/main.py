"""
orbit_sync/main.py

Command-line entry point: serve the HTTP surface and run the task poller.
"""

from __future__ import annotations

import argparse
from dataclasses import replace
from typing import Sequence

import uvicorn

from orbit_sync.config import get_camunda_settings, get_server_settings
from orbit_sync.logging_utils import configure_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="orbit-sync",
        description="Camunda external-task worker syncing Orbit organizations into Airtable.",
    )
    parser.add_argument("-u", dest="camunda_url", help="Camunda base URL (without /engine-rest)")
    parser.add_argument("-U", dest="camunda_user", help="Camunda API user")
    parser.add_argument("-p", dest="camunda_password", help="Camunda API password")
    parser.add_argument("--host", help="bind address for the HTTP server")
    parser.add_argument("--port", type=int, help="port for the HTTP server")
    parser.add_argument("--static-dir", help="directory served under /")
    return parser


def main(argv: Sequence[str] | None = None) -> None:
    args = build_parser().parse_args(argv)

    camunda = get_camunda_settings()
    camunda = replace(
        camunda,
        url=args.camunda_url or camunda.url,
        user=args.camunda_user or camunda.user,
        password=args.camunda_password or camunda.password,
    )
    server = get_server_settings()
    server = replace(
        server,
        host=args.host or server.host,
        port=args.port or server.port,
        static_dir=args.static_dir or server.static_dir,
    )

    configure_logging(server.log_level)

    from orbit_sync.api.app import create_app

    application = create_app(camunda_settings=camunda, server_settings=server)
    uvicorn.run(application, host=server.host, port=server.port, log_level=server.log_level.lower())


if __name__ == "__main__":
    main()
