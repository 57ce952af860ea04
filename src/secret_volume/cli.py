"""CLI entrypoint for secret-volume.

Usage:
    secret-volume _talos._tcp.example.com --parent /secrets
    secret-volume --virtual --parent /tmp/secrets --talos-address talos:4443
"""
from __future__ import annotations

import argparse
import logging
import sys
from typing import Any

from secret_volume import __version__
from secret_volume.config.service import ServiceSettings
from secret_volume.config.settings import EnvSettingsLoader, SettingsFactory
from secret_volume.config.validation import ConfigError
from secret_volume.kernel.errors import BaseError
from secret_volume.observability.logging import JsonLoggerFactory

logger = logging.getLogger(__name__)


def _require_uvicorn() -> Any:
    try:
        import uvicorn  # type: ignore[import-untyped]
        return uvicorn
    except ImportError as exc:
        raise ImportError("Install 'secret-volume[server]' to serve the HTTP API") from exc


def parse_addr(value: str) -> tuple[str | None, int]:
    """Split ``host:port``; an empty host (``:10002``) means every interface."""
    host, sep, port = value.rpartition(":")
    if not sep:
        raise argparse.ArgumentTypeError(f"address {value!r} must be host:port")
    try:
        return (host or None), int(port)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid port in {value!r}") from None


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="secret-volume",
        description="Serve secret volumes: tmpfs mounts populated from Talos.",
    )
    parser.add_argument("talos_srv", nargs="?", default=None, help="SRV record at which to look up Talos")
    parser.add_argument("--addr", type=parse_addr, default=None, help="Address at which to serve requests (host:port)")
    parser.add_argument("--ns", dest="nameserver", default=None, help="DNS server used for SRV lookups (host:port)")
    parser.add_argument("-p", "--parent", default=None, help="Directory under which to mount secret volumes")
    parser.add_argument(
        "--virtual",
        action="store_true",
        default=None,
        help="Skip tmpfs mounts and store volumes as plain directories (for testing)",
    )
    parser.add_argument(
        "--talos-address",
        dest="talos_addresses",
        action="append",
        default=None,
        help="Static Talos endpoint (host:port); repeat for several, bypasses SRV discovery",
    )
    parser.add_argument(
        "--close-after",
        type=float,
        default=None,
        help="Seconds to wait at shutdown before closing HTTP connections",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser.parse_args(argv)


def load_settings(args: argparse.Namespace) -> ServiceSettings:
    """Environment settings with command-line flags applied on top."""
    host, port = args.addr if args.addr else (None, None)
    overrides: dict[str, Any] = {
        "talos_srv": args.talos_srv,
        "nameserver": args.nameserver,
        "parent": args.parent,
        "virtual": args.virtual,
        "talos_addresses": args.talos_addresses,
        "close_after": args.close_after,
        "log_level": args.log_level,
        "host": host,
        "port": port,
    }
    return SettingsFactory.create(ServiceSettings, [EnvSettingsLoader()], overrides)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    try:
        settings = load_settings(args)
    except ConfigError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2

    JsonLoggerFactory.configure(settings.log_level, json_output=settings.json_logs)

    from secret_volume.adapters.fastapi import create_app
    from secret_volume.bootstrap import build_manager

    try:
        manager = build_manager(settings)
    except BaseError as exc:
        logger.error("cli.setup_failed error=%s", exc)
        return 1

    uvicorn = _require_uvicorn()
    logger.info("cli.serving host=%s port=%d parent=%s", settings.host, settings.port, settings.parent)
    uvicorn.run(
        create_app(manager),
        host=settings.host,
        port=settings.port,
        log_config=None,
        timeout_graceful_shutdown=settings.close_after,
    )
    return 0


__all__ = ["load_settings", "main", "parse_addr", "parse_args"]
