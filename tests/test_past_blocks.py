"""Tests for the cached backward block walk."""

from unittest.mock import AsyncMock, patch

import pytest

from swapscan.cache.factory import get_cache_backend, get_json_from_cache, set_json_in_cache
from swapscan.errors import ScanError
from swapscan.scan.past_blocks import (
    BLOCK_EXPIRATION_MS,
    PAST_BLOCKS_COUNT,
    get_past_blocks,
)

from conftest import NETWORK, build_chain


class TestPagination:
    """Tests for how many blocks a walk returns."""

    @pytest.mark.asyncio
    async def test_returns_page_size_blocks_on_long_chain(self, chain):
        """Test that a walk over a long chain stops at the page size."""
        hashes = build_chain(chain, 25)

        blocks = await get_past_blocks(cache="memory", current=hashes[-1], network=NETWORK)

        assert len(blocks) == PAST_BLOCKS_COUNT == 10
        assert [b.id for b in blocks] == list(reversed(hashes[-10:]))
        assert len(chain.fetched) == 10

    @pytest.mark.asyncio
    async def test_stops_at_block_without_previous_hash(self, chain):
        """Test early termination at genesis without an extra fetch."""
        hashes = build_chain(chain, 4)

        blocks = await get_past_blocks(cache="memory", current=hashes[-1], network=NETWORK)

        assert len(blocks) == 4
        assert blocks[-1].previous_block_hash is None
        assert chain.fetched == list(reversed(hashes))

    @pytest.mark.asyncio
    async def test_single_genesis_block(self, chain):
        """Test walking from the genesis block itself."""
        hashes = build_chain(chain, 1)

        blocks = await get_past_blocks(cache="memory", current=hashes[0], network=NETWORK)

        assert len(blocks) == 1
        assert blocks[0].transaction_ids == ["tx_0_a", "tx_0_b"]

    @pytest.mark.asyncio
    async def test_blocks_chain_together(self, chain):
        """Test that each block's previous hash is the next block's id."""
        hashes = build_chain(chain, 15)

        blocks = await get_past_blocks(cache="memory", current=hashes[-1], network=NETWORK)

        assert blocks[0].id == hashes[-1]
        for newer, older in zip(blocks, blocks[1:]):
            assert newer.previous_block_hash == older.id


class TestCaching:
    """Tests for cache reads and writes during a walk."""

    @pytest.mark.asyncio
    async def test_cached_block_is_not_fetched(self, chain):
        """Test that a pre-populated block never reaches the block source."""
        hashes = build_chain(chain, 3)
        await set_json_in_cache(
            "memory",
            "block",
            hashes[1],
            {"previous_block_hash": hashes[0], "transaction_ids": ["cached_tx"]},
            BLOCK_EXPIRATION_MS,
        )

        blocks = await get_past_blocks(cache="memory", current=hashes[2], network=NETWORK)

        assert hashes[1] not in chain.fetched
        assert chain.fetched == [hashes[2], hashes[0]]
        assert blocks[1].is_cached is True
        assert blocks[1].transaction_ids == ["cached_tx"]
        assert blocks[0].is_cached is False

    @pytest.mark.asyncio
    async def test_fetched_blocks_are_written_with_fixed_ttl(self, chain):
        """Test that fetched blocks are cached for three hours."""
        hashes = build_chain(chain, 2)
        backend = get_cache_backend("memory")

        with patch.object(backend, "set", wraps=backend.set) as cache_set:
            await get_past_blocks(cache="memory", current=hashes[1], network=NETWORK)

        assert BLOCK_EXPIRATION_MS == 1000 * 60 * 60 * 3
        cache_set.assert_any_await(
            "block",
            hashes[1],
            {"previous_block_hash": hashes[0], "transaction_ids": ["tx_1_a", "tx_1_b"]},
            BLOCK_EXPIRATION_MS,
        )
        assert cache_set.await_count == 2

        cached = await get_json_from_cache("memory", "block", hashes[0])
        assert cached == {"previous_block_hash": None, "transaction_ids": ["tx_0_a", "tx_0_b"]}

    @pytest.mark.asyncio
    async def test_second_walk_is_served_from_cache(self, chain):
        """Test that repeating a walk costs no block source queries."""
        hashes = build_chain(chain, 12)

        first = await get_past_blocks(cache="memory", current=hashes[-1], network=NETWORK)
        fetched_after_first = len(chain.fetched)
        second = await get_past_blocks(cache="memory", current=hashes[-1], network=NETWORK)

        assert len(chain.fetched) == fetched_after_first
        assert all(block.is_cached for block in second)
        assert [b.id for b in second] == [b.id for b in first]
        assert [b.transaction_ids for b in second] == [b.transaction_ids for b in first]

    @pytest.mark.asyncio
    async def test_expired_entry_is_fetched_again(self, chain):
        """Test that an expired cache entry falls back to the block source."""
        hashes = build_chain(chain, 1)
        now = [1000.0]
        get_cache_backend("memory")._clock = lambda: now[0]

        await get_past_blocks(cache="memory", current=hashes[0], network=NETWORK)

        now[0] += BLOCK_EXPIRATION_MS / 1000 + 1
        blocks = await get_past_blocks(cache="memory", current=hashes[0], network=NETWORK)

        assert chain.fetched == [hashes[0], hashes[0]]
        assert blocks[0].is_cached is False


class TestValidation:
    """Tests for argument validation."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "kwargs,message",
        [
            ({"cache": "", "current": "abc", "network": NETWORK}, "ExpectedCacheToCheckAgainst"),
            ({"cache": "memory", "current": None, "network": NETWORK}, "ExpectedCurrentBlockHash"),
            ({"cache": "memory", "current": "abc", "network": ""}, "ExpectedNetworkName"),
        ],
    )
    async def test_missing_argument(self, chain, kwargs, message):
        """Test each missing argument fails with its own 400 error and no I/O."""
        backend = get_cache_backend("memory")

        with patch.object(backend, "get", new=AsyncMock()) as cache_get:
            with pytest.raises(ScanError) as exc_info:
                await get_past_blocks(**kwargs)

        assert exc_info.value.as_pair() == (400, message)
        cache_get.assert_not_awaited()
        assert chain.fetched == []


class TestFailures:
    """Tests for upstream failures aborting the walk."""

    @pytest.mark.asyncio
    async def test_fetch_failure_aborts_walk(self, chain):
        """Test that a missing ancestor fails the whole walk unwrapped."""
        chain.add_simulated_block(id="orphan_child")
        chain._blocks["orphan_child"].previous_block_hash = "missing_parent"

        with pytest.raises(LookupError):
            await get_past_blocks(cache="memory", current="orphan_child", network=NETWORK)

    @pytest.mark.asyncio
    async def test_cache_write_failure_aborts_walk(self, chain):
        """Test that a cache write failure is reported, not swallowed."""
        hashes = build_chain(chain, 3)
        backend = get_cache_backend("memory")

        with patch.object(backend, "set", new=AsyncMock(side_effect=ConnectionError("down"))):
            with pytest.raises(ConnectionError):
                await get_past_blocks(cache="memory", current=hashes[-1], network=NETWORK)

        assert chain.fetched == [hashes[-1]]

    @pytest.mark.asyncio
    async def test_unknown_cache_type(self, chain):
        """Test that an unsupported cache selector is rejected."""
        hashes = build_chain(chain, 1)

        with pytest.raises(ScanError) as exc_info:
            await get_past_blocks(cache="dynamo", current=hashes[0], network=NETWORK)

        assert exc_info.value.as_pair() == (400, "UnsupportedCacheType")
