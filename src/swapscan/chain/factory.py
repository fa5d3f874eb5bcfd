"""Factory for block sources and network-scoped chain queries.

Supported networks (Esplora API):
- bitcoin, testnet: blockstream.info
- ltc: litecoinspace.org
- regtest: local Esplora instance
"""

from typing import Any

from swapscan.chain.base import Block, BlockSource, SimulatedBlockSource
from swapscan.config import get_settings
from swapscan.errors import ScanError

# Cache for block source instances
_source_cache: dict[str, BlockSource] = {}


def get_block_source(network: str) -> BlockSource:
    """Get a block source for a network.

    Args:
        network: Network name (bitcoin, testnet, ltc, regtest)

    Returns:
        BlockSource instance for the network
    """
    network_lower = network.lower()

    # Check cache
    if network_lower in _source_cache:
        return _source_cache[network_lower]

    settings = get_settings()

    # In dry-run mode, use simulated source
    if settings.dry_run:
        source: BlockSource = SimulatedBlockSource(network_lower)

    elif settings.get_esplora_url(network_lower):
        from swapscan.chain.esplora import EsploraBlockSource
        source = EsploraBlockSource(network_lower)

    else:
        raise ScanError(400, "UnsupportedNetwork")

    _source_cache[network_lower] = source
    return source


async def get_block(network: str, id: str) -> Block:
    """Fetch a block by hash on a network."""
    return await get_block_source(network).get_block(id)


async def get_best_block_hash(network: str) -> str:
    """Fetch the current tip hash of a network."""
    return await get_block_source(network).get_best_block_hash()


async def get_mempool_transaction_ids(network: str) -> list[str]:
    """Fetch the unconfirmed transaction ids of a network."""
    return await get_block_source(network).get_mempool_transaction_ids()


async def get_transaction(network: str, id: str) -> dict[str, Any]:
    """Fetch a transaction by id on a network."""
    return await get_block_source(network).get_transaction(id)


def set_block_source(network: str, source: BlockSource) -> None:
    """Register a block source for a network (useful for testing)."""
    _source_cache[network.lower()] = source


async def close_block_sources() -> None:
    """Close every block source created so far."""
    for source in list(_source_cache.values()):
        await source.close()
    _source_cache.clear()


def reset_block_sources() -> None:
    """Clear block source cache (useful for testing)."""
    _source_cache.clear()
