"""Pytest configuration and fixtures."""

import os

import pytest

# Set test environment
os.environ["ENVIRONMENT"] = "test"
os.environ["DRY_RUN"] = "true"
os.environ["CACHE_BACKEND"] = "memory"
os.environ["DEBUG"] = "true"

from swapscan.cache.factory import reset_cache_backends
from swapscan.chain.base import SimulatedBlockSource
from swapscan.chain.factory import reset_block_sources, set_block_source

NETWORK = "testnet"


@pytest.fixture(autouse=True)
def clean_registries():
    """Start every test with fresh cache backends and block sources."""
    reset_cache_backends()
    reset_block_sources()
    yield
    reset_cache_backends()
    reset_block_sources()


@pytest.fixture
def chain() -> SimulatedBlockSource:
    """Simulated testnet chain registered as the block source."""
    source = SimulatedBlockSource(NETWORK)
    set_block_source(NETWORK, source)
    return source


def build_chain(source: SimulatedBlockSource, length: int) -> list[str]:
    """Mine `length` blocks (first one is genesis). Returns hashes oldest first."""
    hashes = []
    for height in range(length):
        block = source.add_simulated_block(
            transaction_ids=[f"tx_{height}_a", f"tx_{height}_b"],
            id=f"block_{height:03d}",
        )
        hashes.append(block.id)
    return hashes
