"""Base interface for block sources.

A block source answers the handful of chain queries swapscan needs:
block contents by hash, the current tip, the mempool and single
transactions.
"""

import secrets
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass
class Block:
    """A block reduced to what backward traversal needs."""

    id: str
    previous_block_hash: Optional[str]
    transaction_ids: list[str] = field(default_factory=list)
    is_cached: bool = False

    def to_cache(self) -> dict:
        """Value stored in the cache under the block's hash."""
        return {
            "previous_block_hash": self.previous_block_hash,
            "transaction_ids": list(self.transaction_ids),
        }

    @classmethod
    def from_cache(cls, id: str, value: dict) -> "Block":
        """Rebuild a block from its cached value."""
        return cls(
            id=id,
            previous_block_hash=value.get("previous_block_hash"),
            transaction_ids=list(value.get("transaction_ids") or []),
            is_cached=True,
        )


class BlockSource(ABC):
    """Abstract base class for chain data sources."""

    def __init__(self, network: str):
        """Initialize source for a network.

        Args:
            network: Network name (bitcoin, testnet, ltc, regtest)
        """
        self.network = network.lower()

    @abstractmethod
    async def get_block(self, id: str) -> Block:
        """Get a block's previous hash and transaction ids.

        Args:
            id: Block hash

        Raises:
            Whatever the transport raises when the block cannot be fetched
        """
        pass

    @abstractmethod
    async def get_best_block_hash(self) -> str:
        """Get the hash of the current chain tip."""
        pass

    @abstractmethod
    async def get_mempool_transaction_ids(self) -> list[str]:
        """Get the ids of all unconfirmed transactions."""
        pass

    @abstractmethod
    async def get_transaction(self, id: str) -> dict[str, Any]:
        """Get a transaction in Esplora JSON form (txid, vin, vout)."""
        pass

    async def close(self) -> None:
        """Release transport resources."""
        pass


class SimulatedBlockSource(BlockSource):
    """Simulated block source for testing (no real chain queries)."""

    def __init__(self, network: str):
        super().__init__(network)
        self._blocks: dict[str, Block] = {}
        self._transactions: dict[str, dict[str, Any]] = {}
        self._mempool: list[str] = []
        self._tip: Optional[str] = None
        self.fetched: list[str] = []

    async def get_block(self, id: str) -> Block:
        """Return a simulated block, recording the fetch."""
        self.fetched.append(id)
        block = self._blocks.get(id)
        if block is None:
            raise LookupError(f"Block {id} not found")
        return Block(
            id=block.id,
            previous_block_hash=block.previous_block_hash,
            transaction_ids=list(block.transaction_ids),
        )

    async def get_best_block_hash(self) -> str:
        if self._tip is None:
            raise LookupError("No blocks in simulated chain")
        return self._tip

    async def get_mempool_transaction_ids(self) -> list[str]:
        return list(self._mempool)

    async def get_transaction(self, id: str) -> dict[str, Any]:
        tx = self._transactions.get(id)
        if tx is None:
            raise LookupError(f"Transaction {id} not found")
        return tx

    def add_simulated_block(
        self,
        transaction_ids: Optional[list[str]] = None,
        id: Optional[str] = None,
    ) -> Block:
        """Append a block on top of the current tip."""
        block = Block(
            id=id or secrets.token_hex(32),
            previous_block_hash=self._tip,
            transaction_ids=list(transaction_ids or []),
        )
        self._blocks[block.id] = block
        self._tip = block.id
        for txid in block.transaction_ids:
            if txid in self._mempool:
                self._mempool.remove(txid)
        return block

    def add_simulated_transaction(self, tx: dict[str, Any], in_mempool: bool = True) -> str:
        """Register a transaction, optionally placing it in the mempool."""
        txid = tx.get("txid") or secrets.token_hex(32)
        self._transactions[txid] = {**tx, "txid": txid}
        if in_mempool:
            self._mempool.append(txid)
        return txid
