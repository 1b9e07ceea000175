"""
Command-line entry point.

``python -m ptalts listen`` starts a session and logs every restock and token
event until interrupted. ``balance``, ``stock`` and ``prices`` print one API
call as JSON. Credentials come from ``PTALTS_*`` settings unless overridden.
"""

import argparse
import asyncio
import json
import sys
from typing import Any, Optional

import httpx

from shared.config import ClientConfig, get_config
from shared.errors import AltsClientException
from shared.logging import configure_logging, get_logger
from ptalts.api.client import ApiClient
from ptalts.events.models import EventKind
from ptalts.session import AltsSession

QUERIES = ("balance", "stock", "prices")


async def listen(
    config: ClientConfig,
    stop_event: Optional[asyncio.Event] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None
):
    """Run a session until ``stop_event`` is set (forever by default)."""
    logger = get_logger("ptalts.cli")
    stop_event = stop_event or asyncio.Event()

    def log_event(event):
        logger.info("Event received", **event.model_dump(mode="json"))

    session = AltsSession(
        config=config,
        on_connection_error=lambda _: stop_event.set(),
        transport=transport
    )
    session.events.register(EventKind.RESTOCK, log_event)
    session.events.register(EventKind.TOKEN_DELIVERED, log_event)

    async with session:
        await stop_event.wait()


async def query(config: ClientConfig, name: str, transport: Optional[httpx.AsyncBaseTransport] = None) -> Any:
    """Run one read-only API call and return a JSON-ready result."""
    client = ApiClient.from_config(config, transport=transport)
    if name == "balance":
        return (await client.get_balance()).model_dump(by_alias=True)
    if name == "stock":
        return await client.get_stock()
    return await client.get_prices()


def _parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="ptalts", description="PTAlts API client.")
    parser.add_argument("command", choices=("listen",) + QUERIES, help="What to run")
    parser.add_argument("--api-key", default=None, help="API key (default: PTALTS_API_KEY)")
    parser.add_argument("--client-name", default=None, help="Client display name (default: PTALTS_CLIENT_NAME)")
    parser.add_argument("--log-level", default=None, help="Log level (default: PTALTS_LOG_LEVEL)")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = _parse_args(argv)
    overrides = {
        key: value
        for key, value in (
            ("api_key", args.api_key),
            ("client_name", args.client_name),
            ("log_level", args.log_level),
        )
        if value is not None
    }
    config = get_config(**overrides)
    configure_logging(config.log_level, config.log_format)

    try:
        if args.command == "listen":
            asyncio.run(listen(config))
        else:
            print(json.dumps(asyncio.run(query(config, args.command)), indent=2))
    except KeyboardInterrupt:
        return 130
    except AltsClientException as exc:
        print(f"[ptalts] {exc.code}: {exc.message}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
