#!/usr/bin/env python3
"""
Main entry point for the tokenrelay client

Usage:
    python main.py [--health-check] [METHOD] PATH
"""

import asyncio
import logging
import os
import sys

from tokenrelay.client import AuthenticatedClient
from tokenrelay.config import load_config
from tokenrelay.errors import AuthenticationExpired, ConfigError, InternalError, log_error
from tokenrelay.logging_config import LoggerConfigurator


def parse_args(argv: list[str]) -> tuple[str, str]:
    """Return (method, path) from the command line arguments."""
    if len(argv) == 1:
        return "GET", argv[0]
    if len(argv) == 2:
        return argv[0].upper(), argv[1]
    raise SystemExit("usage: main.py [--health-check] [METHOD] PATH")


async def main(method: str, path: str) -> int:
    """Issue one authenticated request and log its outcome"""
    config = load_config()
    async with AuthenticatedClient(config) as client:
        access = os.environ.get("TOKENRELAY_ACCESS_TOKEN")
        refresh = os.environ.get("TOKENRELAY_REFRESH_TOKEN")
        if access:
            client.login(access, refresh)
        try:
            response = await client.request(method, path)
        except AuthenticationExpired as e:
            log_error("Session expired, log in again", e)
            return 1
        except InternalError as e:
            log_error(f"Request {method} {path} failed", e)
            return 1
        logging.info(f"✅ {method} {path} -> HTTP {response.status}")
        print(response.text())
        return 0 if response.ok else 1


if __name__ == "__main__":
    LoggerConfigurator().configure()
    args = sys.argv[1:]

    # Simple health check mode
    if args and args[0] == "--health-check":
        logging.info("🏥 Health check mode")
        try:
            cfg = load_config()
            logging.info(f"✅ Health check passed - mode={cfg.mode}")
            sys.exit(0)
        except ConfigError as e:
            logging.error(f"❌ Health check failed: {e}")
            sys.exit(1)

    method, path = parse_args(args)
    try:
        sys.exit(asyncio.run(main(method, path)))
    except KeyboardInterrupt:
        logging.info("Application terminated by user")
        sys.exit(0)
    except ConfigError as e:
        log_error("Configuration error", e)
        sys.exit(1)
