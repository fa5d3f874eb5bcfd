"""Swap scanner runner.

Runs the swap output scanner and logs every notification, or walks back
from a block hash once and prints the result.

Usage:
    python -m swapscan.scan.runner --network testnet --cache memory
    python -m swapscan.scan.runner --network bitcoin --past-blocks <hash>

Environment variables:
    NETWORK: Default network (default: testnet)
    CACHE_BACKEND: Default cache backend (default: memory)
    BLOCK_POLL_INTERVAL / MEMPOOL_POLL_INTERVAL: Polling intervals in seconds
"""

import argparse
import asyncio
import json
import logging

from swapscan.cache.factory import close_cache_backends
from swapscan.chain.factory import close_block_sources
from swapscan.config import get_settings
from swapscan.errors import ScanError
from swapscan.scan.models import event_to_dict
from swapscan.scan.past_blocks import get_past_blocks
from swapscan.scan.swap_scanner import SwapOutputScanner

logger = logging.getLogger(__name__)


def _log_event(event) -> None:
    logger.info(f"{event.type}: {json.dumps(event_to_dict(event), sort_keys=True)}")


def _log_error(err) -> None:
    if isinstance(err, ScanError):
        logger.error(f"Scanner error {err.code}: {err.message}")
    else:
        logger.error(f"Scanner error: {err!r}")


async def print_past_blocks(cache: str, network: str, current: str) -> None:
    """Walk back from a block hash and print the blocks as JSON."""
    blocks = await get_past_blocks(cache=cache, current=current, network=network)
    print(json.dumps(
        {
            "blocks": [
                {
                    "id": block.id,
                    "previous_block_hash": block.previous_block_hash,
                    "transaction_ids": block.transaction_ids,
                }
                for block in blocks
            ]
        },
        indent=2,
    ))


async def run_scanner(cache: str, network: str) -> None:
    """Run the scanner until cancelled."""
    scanner = SwapOutputScanner(cache=cache, network=network)

    for event_type in ("claim", "funding", "refund"):
        scanner.on(event_type, _log_event)
    scanner.on("error", _log_error)

    logger.info(f"Scanning {network} for swaps (cache: {cache})")
    scanner.start()

    try:
        await asyncio.Event().wait()
    finally:
        await scanner.stop()


async def main():
    """Main entry point."""
    settings = get_settings()

    parser = argparse.ArgumentParser(description="Run swap output scanner")
    parser.add_argument(
        "--network",
        default=settings.network,
        help=f"Network to scan (default: {settings.network})",
    )
    parser.add_argument(
        "--cache",
        default=settings.cache_backend,
        help=f"Cache backend: memory, redis, sql (default: {settings.cache_backend})",
    )
    parser.add_argument(
        "--past-blocks",
        metavar="HASH",
        help="Print the blocks leading up to HASH and exit",
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if settings.debug else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        if args.past_blocks:
            await print_past_blocks(args.cache, args.network, args.past_blocks)
        else:
            await run_scanner(args.cache, args.network)
    finally:
        await close_block_sources()
        await close_cache_backends()


def cli() -> None:
    """Console script entry point."""
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    cli()
