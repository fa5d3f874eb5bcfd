"""Confirmed transaction listener.

Watches the chain tip and reports the transactions of every block it has
not reported before. Blocks are resolved through the cached backward walk
so a re-visited block costs no block source query.
"""

import logging
from collections import deque
from typing import Optional

from swapscan.chain.factory import get_best_block_hash
from swapscan.config import get_settings
from swapscan.scan.listener import PollingListener
from swapscan.scan.past_blocks import get_past_blocks

logger = logging.getLogger(__name__)

SEEN_BLOCKS_LIMIT = 100


class BlockListener(PollingListener):
    """Emits ids of transactions confirmed in new blocks."""

    kind = "block"

    def __init__(self, cache: str, network: str, interval_seconds: Optional[float] = None):
        super().__init__(
            network,
            interval_seconds if interval_seconds is not None
            else get_settings().block_poll_interval,
        )
        self.cache = cache
        self._tip: Optional[str] = None
        self._seen: deque[str] = deque(maxlen=SEEN_BLOCKS_LIMIT)

    def _mark_seen(self, block_id: str) -> None:
        if block_id not in self._seen:
            self._seen.append(block_id)

    async def poll(self) -> list[str]:
        tip = await get_best_block_hash(self.network)
        if tip == self._tip:
            return []

        blocks = await get_past_blocks(cache=self.cache, current=tip, network=self.network)

        # First poll: only the tip is new to us
        if self._tip is None:
            blocks = blocks[:1]

        fresh = []
        for block in blocks:
            if block.id in self._seen:
                break
            fresh.append(block)

        logger.info(f"New {self.network} tip {tip} ({len(fresh)} unseen blocks)")
        self._tip = tip

        ids = []
        for block in reversed(fresh):
            self._mark_seen(block.id)
            ids.extend(block.transaction_ids)

        return ids
