"""Base class for polling transaction listeners.

Listeners watch one source of transaction ids (blocks or mempool) and
emit "transaction" for every new id and "error" for every failed poll.
A failed poll never stops the listener.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Optional

from swapscan.scan.emitter import EventEmitter

logger = logging.getLogger(__name__)


class PollingListener(EventEmitter, ABC):
    """Emits transaction ids discovered by periodic polling."""

    kind = "base"

    def __init__(self, network: str, interval_seconds: float):
        """Initialize listener.

        Args:
            network: Network name
            interval_seconds: Seconds between polls
        """
        super().__init__()
        self.network = network
        self.interval_seconds = interval_seconds
        self._running = False
        self._task: Optional[asyncio.Task] = None

    @abstractmethod
    async def poll(self) -> list[str]:
        """Run one poll.

        Returns:
            Newly observed transaction ids, in the order to report them
        """
        pass

    async def poll_once(self) -> int:
        """Poll and emit the results.

        Returns:
            Number of transaction ids emitted
        """
        try:
            ids = await self.poll()
        except Exception as e:
            logger.error(f"{self.kind} listener poll failed on {self.network}: {e}")
            self.emit("error", e)
            return 0

        for id in ids:
            self.emit("transaction", id)

        return len(ids)

    async def run(self) -> None:
        """Run continuous polling loop."""
        self._running = True
        logger.info(
            f"Starting {self.network} {self.kind} listener "
            f"(interval: {self.interval_seconds}s)"
        )

        while self._running:
            emitted = await self.poll_once()
            if emitted:
                logger.debug(f"{self.kind} listener saw {emitted} new transactions")

            await asyncio.sleep(self.interval_seconds)

    def start(self) -> asyncio.Task:
        """Start polling in a background task."""
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self.run())
        return self._task

    async def stop(self) -> None:
        """Stop the polling loop and wait for it to exit."""
        self._running = False
        logger.info(f"Stopping {self.network} {self.kind} listener")

        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
