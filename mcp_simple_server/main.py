import argparse
import dataclasses
import logging
import sys

import anyio

from mcp_simple_server.config import LOG_LEVELS, MODES, Settings
from mcp_simple_server.errors import ConfigError
from mcp_simple_server.http_app import run_http
from mcp_simple_server.server import run_stdio

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    ap = argparse.ArgumentParser(description="Minimal MCP server with echo, add and timestamp tools")
    ap.add_argument("--mode", choices=MODES, help="transport mode (env: MCP_MODE)")
    ap.add_argument("--host", help="listen address in http mode (env: MCP_HOST)")
    ap.add_argument("--port", type=int, help="listen port in http mode (env: PORT)")
    ap.add_argument("--log-level", choices=LOG_LEVELS, help="env: MCP_LOG_LEVEL")
    return ap.parse_args(argv)


def load_settings(args: argparse.Namespace, environ=None) -> Settings:
    settings = Settings.from_env(environ)
    overrides = {
        key: value
        for key, value in (
            ("mode", args.mode),
            ("host", args.host),
            ("port", args.port),
            ("log_level", args.log_level),
        )
        if value is not None
    }
    return dataclasses.replace(settings, **overrides) if overrides else settings


def configure_logging(level: str) -> None:
    # stdout carries the stdio transport, so logs always go to stderr
    logging.basicConfig(
        level=level,
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


async def serve(settings: Settings) -> None:
    logger.info("Starting MCP server in %s mode", settings.mode)
    if settings.mode == "http":
        await run_http(settings)
    else:
        await run_stdio(settings)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    try:
        settings = load_settings(args)
    except ConfigError as e:
        configure_logging("INFO")
        logger.error("Invalid configuration: %s", e)
        return 1
    configure_logging(settings.log_level)
    try:
        anyio.run(serve, settings)
    except KeyboardInterrupt:
        return 0
    except Exception:
        logger.exception("Fatal error")
        return 1
    return 0
