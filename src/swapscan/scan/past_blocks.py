"""Cache-assisted backward block walk.

Reconstructs up to PAST_BLOCKS_COUNT blocks ending at a given hash,
reading each block from the cache when possible and from the block
source otherwise. Fetched blocks are written back with a fixed TTL.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from swapscan.cache.factory import get_json_from_cache, set_json_in_cache
from swapscan.chain.base import Block
from swapscan.chain.factory import get_block
from swapscan.errors import ScanError

logger = logging.getLogger(__name__)

BLOCK_CACHE_TYPE = "block"
BLOCK_EXPIRATION_MS = 1000 * 60 * 60 * 3
PAST_BLOCKS_COUNT = 10


@dataclass
class _Walk:
    """Cursor and accumulated blocks of one backward walk."""

    cache: str
    network: str
    cursor: Optional[str]
    blocks: list[Block] = field(default_factory=list)

    @property
    def done(self) -> bool:
        return len(self.blocks) >= PAST_BLOCKS_COUNT or not self.cursor


async def _resolve(walk: _Walk) -> Block:
    """Get the block under the cursor, populating the cache on a miss."""
    cached = await get_json_from_cache(walk.cache, BLOCK_CACHE_TYPE, walk.cursor)

    if cached:
        logger.debug(f"Block {walk.cursor} served from {walk.cache} cache")
        return Block.from_cache(walk.cursor, cached)

    block = await get_block(walk.network, walk.cursor)

    await set_json_in_cache(
        walk.cache,
        BLOCK_CACHE_TYPE,
        walk.cursor,
        block.to_cache(),
        BLOCK_EXPIRATION_MS,
    )

    return block


async def _step(walk: _Walk) -> None:
    block = await _resolve(walk)
    walk.blocks.append(block)
    walk.cursor = block.previous_block_hash


async def get_past_blocks(cache: str, current: str, network: str) -> list[Block]:
    """Get past blocks, walking backward from a block hash.

    Args:
        cache: Cache selector (memory, redis, sql)
        current: Hash of the most recent block to include
        network: Network name

    Returns:
        Up to PAST_BLOCKS_COUNT blocks, newest first; each block's
        previous_block_hash is the id of the block that follows it

    Raises:
        ScanError: 400 when an argument is missing
        Exception: any cache or block source failure, unwrapped
    """
    if not cache:
        raise ScanError(400, "ExpectedCacheToCheckAgainst")

    if not current:
        raise ScanError(400, "ExpectedCurrentBlockHash")

    if not network:
        raise ScanError(400, "ExpectedNetworkName")

    walk = _Walk(cache=cache, network=network, cursor=current)

    while not walk.done:
        await _step(walk)

    fetched = sum(1 for block in walk.blocks if not block.is_cached)
    logger.debug(
        f"Walked {len(walk.blocks)} {network} blocks from {current} "
        f"({fetched} fetched, {len(walk.blocks) - fetched} cached)"
    )

    return walk.blocks
