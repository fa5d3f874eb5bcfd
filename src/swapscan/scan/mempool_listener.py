"""Unconfirmed transaction listener."""

import logging
from typing import Optional

from swapscan.chain.factory import get_mempool_transaction_ids
from swapscan.config import get_settings
from swapscan.scan.listener import PollingListener

logger = logging.getLogger(__name__)


class MempoolListener(PollingListener):
    """Emits ids of transactions entering the mempool.

    The first snapshot only sets the baseline; afterwards every id absent
    from the previous snapshot is reported once.
    """

    kind = "mempool"

    def __init__(self, network: str, interval_seconds: Optional[float] = None):
        super().__init__(
            network,
            interval_seconds if interval_seconds is not None
            else get_settings().mempool_poll_interval,
        )
        self._known: Optional[set[str]] = None

    async def poll(self) -> list[str]:
        ids = await get_mempool_transaction_ids(self.network)

        if self._known is None:
            logger.info(f"{self.network} mempool baseline: {len(ids)} transactions")
            self._known = set(ids)
            return []

        fresh = [id for id in ids if id not in self._known]
        self._known = set(ids)
        return fresh
