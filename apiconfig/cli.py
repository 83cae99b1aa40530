from __future__ import annotations

import argparse
import asyncio
import logging
import sys

import httpx
from pydantic import ValidationError

from apiconfig.config import GatewayConfig, Settings
from apiconfig.config_runtime.fetcher import ConfigFetcher
from apiconfig.config_runtime.poller import load_config
from apiconfig.config_runtime.secrets import SecretResolver
from apiconfig.models.errors import ApiConfigError


async def check_config(settings: Settings) -> GatewayConfig:
    """Run one fetch and transform against the configured API."""
    async with httpx.AsyncClient() as client:
        fetcher = ConfigFetcher.from_settings(settings, client)
        _, config = await load_config(fetcher, SecretResolver())
    return config


def _check(args: argparse.Namespace) -> int:
    try:
        settings = Settings()
    except ValidationError as exc:
        for error in exc.errors():
            field = ".".join(str(part) for part in error["loc"]) or "settings"
            print(f"invalid setting {field}: {error['msg']}", file=sys.stderr)
        return 1

    logging.basicConfig(level=(args.log_level or settings.log_level).upper())

    try:
        config = asyncio.run(check_config(settings))
    except ApiConfigError as exc:
        for error in exc.errors:
            print(str(error), file=sys.stderr)
        return 1

    counts = config.counts()
    print(
        f"configuration OK: {counts['providers']} providers, "
        f"{counts['models']} models, {counts['pipelines']} pipelines"
    )
    return 0


def main(argv: list[str] | None = None) -> int:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="apiconfig",
        description="Gateway configuration synchronised from a remote configuration API",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    check = subparsers.add_parser(
        "check",
        help="Fetch and validate the configuration once, then exit",
    )
    check.add_argument(
        "--log-level",
        help="Override API_CONFIG_LOG_LEVEL for this run",
    )
    check.set_defaults(handler=_check)

    args = parser.parse_args(argv)
    return args.handler(args)


if __name__ == "__main__":
    sys.exit(main())
