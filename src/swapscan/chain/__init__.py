"""Chain data access: blocks, tip, mempool and transactions."""

from swapscan.chain.base import Block, BlockSource
from swapscan.chain.factory import (
    get_best_block_hash,
    get_block,
    get_block_source,
    get_mempool_transaction_ids,
    get_transaction,
)

__all__ = [
    "Block",
    "BlockSource",
    "get_best_block_hash",
    "get_block",
    "get_block_source",
    "get_mempool_transaction_ids",
    "get_transaction",
]
