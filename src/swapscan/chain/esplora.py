"""Esplora REST API block source for BTC/LTC.

Works against blockstream.info, litecoinspace.org or a self-hosted
Esplora instance.
Docs: https://github.com/Blockstream/esplora/blob/master/API.md
"""

import logging
from typing import Any, Optional

import httpx

from swapscan.chain.base import Block, BlockSource
from swapscan.config import get_settings

logger = logging.getLogger(__name__)


class EsploraBlockSource(BlockSource):
    """Block source using an Esplora API.

    Errors are logged and re-raised: callers decide whether a failed
    query is fatal.
    """

    def __init__(
        self,
        network: str,
        base_url: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """Initialize Esplora source.

        Args:
            network: Network name
            base_url: API root, defaults to the configured URL for the network
            client: Pre-built HTTP client (mainly for tests)
        """
        super().__init__(network)
        settings = get_settings()
        self.base_url = (base_url or settings.get_esplora_url(self.network)).rstrip("/")
        self.timeout = settings.http_timeout
        self._client: Optional[httpx.AsyncClient] = client

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def _get(self, path: str) -> httpx.Response:
        client = await self._get_client()
        url = f"{self.base_url}{path}"
        try:
            response = await client.get(url)
            response.raise_for_status()
            return response
        except httpx.HTTPError as e:
            logger.error(f"Esplora API error for {url}: {e}")
            raise

    async def get_block(self, id: str) -> Block:
        """Get a block's previous hash and transaction ids.

        Args:
            id: Block hash

        Returns:
            Block with previous_block_hash None for the genesis block
        """
        header = (await self._get(f"/block/{id}")).json()
        txids = (await self._get(f"/block/{id}/txids")).json()

        return Block(
            id=id,
            previous_block_hash=header.get("previousblockhash"),
            transaction_ids=list(txids),
        )

    async def get_best_block_hash(self) -> str:
        """Get the hash of the current chain tip."""
        response = await self._get("/blocks/tip/hash")
        return response.text.strip()

    async def get_mempool_transaction_ids(self) -> list[str]:
        """Get the ids of all unconfirmed transactions."""
        response = await self._get("/mempool/txids")
        return list(response.json())

    async def get_transaction(self, id: str) -> dict[str, Any]:
        """Get a transaction in Esplora JSON form."""
        response = await self._get(f"/tx/{id}")
        return response.json()

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None
