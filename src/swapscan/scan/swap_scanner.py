"""Swap output scanner.

The scanner is an event emitter for swap outputs. When started it listens
to new blocks and to the mempool, runs every transaction it hears about
through the swap detector and emits:

- "claim": ClaimEvent, a claim transaction entered the mempool or confirmed
- "funding": FundingEvent, a funding transaction was seen
- "refund": RefundEvent, a refund transaction was seen
- "error": ScanError or the exception raised by a listener or the detector

The scanner is non-authoritative. It uses an expiring cache, so it may
miss events, and the same transaction reported by both listeners produces
its notifications twice.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from swapscan.errors import ScanError
from swapscan.scan.block_listener import BlockListener
from swapscan.scan.detect_swaps import detect_swaps
from swapscan.scan.emitter import EventEmitter
from swapscan.scan.mempool_listener import MempoolListener
from swapscan.scan.models import ClaimEvent, FundingEvent, RefundEvent, SwapEvent, SwapType

logger = logging.getLogger(__name__)

Detector = Callable[[str, str, str], Awaitable[list[dict]]]


def _claim(id: str, network: str, swap: dict) -> ClaimEvent:
    return ClaimEvent(
        id=id,
        network=network,
        outpoint=swap["outpoint"],
        preimage=swap["preimage"],
        script=swap["script"],
    )


def _funding(id: str, network: str, swap: dict) -> FundingEvent:
    return FundingEvent(
        id=id,
        network=network,
        index=swap["index"],
        invoice=swap["invoice"],
        output=swap["output"],
        script=swap["script"],
        tokens=swap["tokens"],
        vout=swap["vout"],
    )


def _refund(id: str, network: str, swap: dict) -> RefundEvent:
    return RefundEvent(
        id=id,
        network=network,
        outpoint=swap["outpoint"],
        script=swap["script"],
    )


_EVENT_BUILDERS: dict[str, Callable[[str, str, dict], SwapEvent]] = {
    SwapType.CLAIM.value: _claim,
    SwapType.FUNDING.value: _funding,
    SwapType.REFUND.value: _refund,
}


class SwapOutputScanner(EventEmitter):
    """Aggregates block and mempool listeners into swap notifications."""

    def __init__(self, cache: str, network: str, detector: Optional[Detector] = None):
        """Initialize scanner.

        Args:
            cache: Cache selector (memory, redis, sql)
            network: Network name
            detector: Swap detector, defaults to detect_swaps

        Raises:
            ScanError: 400 when cache or network is missing
        """
        if not cache:
            raise ScanError(400, "ExpectedCacheTypeForScanCaching")

        if not network:
            raise ScanError(400, "ExpectedNetworkName")

        super().__init__()
        self.cache = cache
        self.network = network
        self.detector = detector or detect_swaps

        self.listeners = [
            BlockListener(cache=cache, network=network),
            MempoolListener(network=network),
        ]

        # Both listeners emit transaction ids when they see new transactions
        for listener in self.listeners:
            listener.on("error", self._forward_error)
            listener.on("transaction", self._on_transaction)

    def _forward_error(self, err) -> None:
        self.emit("error", err)

    def _on_transaction(self, id: str) -> None:
        self._track(asyncio.ensure_future(self.process_transaction(id)))

    async def process_transaction(self, id: str) -> int:
        """Detect swaps in a transaction and notify on each of them.

        Returns:
            Number of swap notifications emitted
        """
        try:
            swaps = await self.detector(self.cache, id, self.network)
        except Exception as e:
            logger.error(f"Swap detection failed for {id}: {e}")
            self.emit("error", e)
            return 0

        emitted = 0
        for swap in swaps:
            if not isinstance(swap, dict):
                logger.warning(f"Swap record in {id} is not a mapping: {swap!r}")
                self.emit("error", ScanError(500, "UnexpectedSwapShape"))
                continue

            build = _EVENT_BUILDERS.get(swap.get("type"))

            if build is None:
                logger.warning(f"Unknown swap type {swap.get('type')!r} in {id}")
                self.emit("error", ScanError(500, "UnknownSwapType"))
                continue

            try:
                event = build(id, self.network, swap)
            except KeyError as e:
                logger.warning(f"Swap {swap['type']} in {id} is missing {e}")
                self.emit("error", ScanError(500, "UnexpectedSwapShape"))
                continue

            logger.info(f"Swap {event.type} seen in {id} on {self.network}")
            self.emit(event.type, event)
            emitted += 1

        return emitted

    def start(self) -> None:
        """Start both listeners."""
        for listener in self.listeners:
            listener.start()

    async def stop(self) -> None:
        """Stop both listeners and wait for in-flight transactions."""
        for listener in self.listeners:
            await listener.stop()
        await self.drain()


def swap_scanner(cache: str, network: str) -> SwapOutputScanner:
    """Create and start a swap output scanner on the running loop."""
    scanner = SwapOutputScanner(cache=cache, network=network)
    scanner.start()
    return scanner
