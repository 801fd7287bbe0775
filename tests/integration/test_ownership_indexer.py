"""Integration tests for the incremental ownership indexer."""

import asyncio

import pytest
from sqlalchemy import func, select

from app.models import WalletScanState
from app.services.ownership_indexer import WalletCheckpoint
from app.services.ownership_service import OwnershipService
from app.utils.exceptions import (
    ContractNotConfigured,
    FatalProviderError,
    InvalidWallet,
    ProviderExhausted,
)
from fakes import OTHER, WALLET, ZERO, FakeEth, FakeWeb3, fake_client

MIXED_CASE_WALLET = "0xABCDEFabcdef0000000000000000000000000001"


class FlakyLogsEth(FakeEth):
    """Serves the head normally but fails get_logs from the Nth call on."""

    def __init__(self, chain, error, fail_from_call):
        super().__init__(chain)
        self.error = error
        self.fail_from_call = fail_from_call
        self.log_calls = 0

    def get_logs(self, params):
        self.log_calls += 1
        if self.log_calls >= self.fail_from_call:
            raise self.error
        return super().get_logs(params)


class TestRefresh:
    """Tests for OwnershipIndexer.refresh."""

    @pytest.mark.asyncio
    async def test_mint_then_transfer_away(self, chain, make_indexer):
        """Token 7 minted at 105 is held at 120 and gone after a transfer at 130."""
        chain.transfer(ZERO, WALLET, 7, 105)
        indexer = make_indexer(genesis_block=100, chunk_size=50)

        first = await indexer.refresh(WALLET)

        assert first.token_ids == (7,)
        assert first.last_scanned_block == 120

        chain.head = 130
        chain.transfer(WALLET, OTHER, 7, 130)

        second = await indexer.refresh(WALLET)

        assert second.token_ids == ()
        assert second.last_scanned_block == 130

    @pytest.mark.asyncio
    async def test_never_scanned_wallet_starts_at_genesis(self, chain, make_indexer):
        """First scan covers genesis through head inclusive."""
        chain.transfer(ZERO, WALLET, 1, 99)
        chain.transfer(ZERO, WALLET, 2, 100)
        chain.transfer(ZERO, WALLET, 3, 120)

        checkpoint = await make_indexer(genesis_block=100).refresh(WALLET)

        assert checkpoint.token_ids == (2, 3)
        assert chain.get_logs_calls[0]["fromBlock"] == 100
        assert chain.get_logs_calls[-1]["toBlock"] == 120

    @pytest.mark.asyncio
    async def test_resumes_after_checkpoint(self, chain, make_indexer):
        """Later refreshes only scan blocks after the last checkpoint."""
        indexer = make_indexer()
        await indexer.refresh(WALLET)
        calls_before = len(chain.get_logs_calls)

        chain.head = 140
        await indexer.refresh(WALLET)

        new_calls = chain.get_logs_calls[calls_before:]
        assert new_calls
        assert min(call["fromBlock"] for call in new_calls) == 121
        assert max(call["toBlock"] for call in new_calls) == 140

    @pytest.mark.asyncio
    async def test_chunks_scanned_in_ascending_order(self, chain, make_indexer):
        """Ranges are bounded by chunk size and fetched in block order."""
        chain.transfer(ZERO, WALLET, 5, 101)
        chain.transfer(WALLET, OTHER, 5, 109)
        chain.transfer(OTHER, WALLET, 5, 115)

        checkpoint = await make_indexer(genesis_block=100, chunk_size=10).refresh(WALLET)

        ranges = [(call["fromBlock"], call["toBlock"]) for call in chain.get_logs_calls]
        assert ranges == [
            (100, 109), (100, 109),
            (110, 119), (110, 119),
            (120, 120), (120, 120),
        ]
        assert checkpoint.token_ids == (5,)

    @pytest.mark.asyncio
    async def test_idempotent_without_new_events(self, chain, make_indexer):
        """A second refresh keeps the set and advances to the new head."""
        chain.transfer(ZERO, WALLET, 7, 105)
        indexer = make_indexer()

        first = await indexer.refresh(WALLET)
        chain.head = 125
        second = await indexer.refresh(WALLET)

        assert second.token_ids == first.token_ids
        assert second.last_scanned_block == 125

    @pytest.mark.asyncio
    async def test_no_new_blocks_issues_no_log_queries(self, chain, make_indexer, store):
        """Two rapid refreshes at the same head do not query logs again."""
        indexer = make_indexer()
        first = await indexer.refresh(WALLET)
        calls_before = len(chain.get_logs_calls)

        second = await indexer.refresh(WALLET)

        assert len(chain.get_logs_calls) == calls_before
        assert second == first
        assert await store.get(WALLET) == first

    @pytest.mark.asyncio
    async def test_genesis_after_head(self, chain, make_indexer, store):
        """Nothing to scan yet: head is recorded without log queries."""
        checkpoint = await make_indexer(genesis_block=500).refresh(WALLET)

        assert checkpoint == WalletCheckpoint.build(WALLET, 120, [])
        assert chain.get_logs_calls == []
        assert await store.get(WALLET) == checkpoint

    @pytest.mark.asyncio
    async def test_lagging_head_never_moves_checkpoint_back(self, chain, make_indexer, store):
        """An endpoint reporting an older head leaves the checkpoint as is."""
        chain.transfer(ZERO, WALLET, 7, 105)
        indexer = make_indexer()
        first = await indexer.refresh(WALLET)

        chain.head = 110
        second = await indexer.refresh(WALLET)

        assert second == first
        assert (await store.get(WALLET)).last_scanned_block == 120

    @pytest.mark.asyncio
    async def test_mixed_case_wallet_is_normalized(self, chain, make_indexer, store):
        chain.transfer(ZERO, MIXED_CASE_WALLET.lower(), 11, 110)

        checkpoint = await make_indexer().refresh(MIXED_CASE_WALLET)

        assert checkpoint.wallet == MIXED_CASE_WALLET.lower()
        assert checkpoint.token_ids == (11,)
        assert (await store.get(MIXED_CASE_WALLET)).token_ids == (11,)

    @pytest.mark.asyncio
    async def test_self_transfer_keeps_token(self, chain, make_indexer):
        chain.transfer(ZERO, WALLET, 3, 101)
        chain.transfer(WALLET, WALLET, 3, 110)

        assert (await make_indexer().refresh(WALLET)).token_ids == (3,)

    @pytest.mark.asyncio
    async def test_malformed_log_is_skipped(self, chain, make_indexer):
        """A malformed record in range does not fail the scan."""
        chain.transfer(ZERO, WALLET, 1, 101)
        chain.transfer(ZERO, WALLET, 2, 102)
        chain.logs[-1]["topics"][3] = "0xbad"

        checkpoint = await make_indexer().refresh(WALLET)

        assert checkpoint.token_ids == (1,)
        assert checkpoint.last_scanned_block == 120


class TestRefreshErrors:
    """Failure handling in OwnershipIndexer.refresh."""

    @pytest.mark.asyncio
    async def test_invalid_wallet(self, make_indexer, chain):
        with pytest.raises(InvalidWallet):
            await make_indexer().refresh("0xnot-a-wallet")
        assert chain.get_logs_calls == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "wallet",
        ["0x" + "1_" * 19 + "11", "0x+" + "1" * 39],
    )
    async def test_non_hex_wallet_creates_no_checkpoint(
        self, make_indexer, chain, session_maker, wallet
    ):
        """Wallets int() would parse still never get a scan state row."""
        with pytest.raises(InvalidWallet):
            await make_indexer().refresh(wallet)

        async with session_maker() as session:
            rows = await session.scalar(
                select(func.count()).select_from(WalletScanState)
            )
        assert rows == 0
        assert chain.get_logs_calls == []

    @pytest.mark.asyncio
    async def test_contract_not_configured(self, make_indexer, chain):
        with pytest.raises(ContractNotConfigured):
            await make_indexer(contract=None).refresh(WALLET)
        assert chain.get_logs_calls == []

    @pytest.mark.asyncio
    async def test_failover_during_scan(self, chain, make_indexer):
        """A rate-limited endpoint is bypassed transparently."""
        chain.transfer(ZERO, WALLET, 7, 105)
        limited = fake_client(chain, always_fail=Exception("429 Client Error: Too Many Requests"))
        healthy = fake_client(chain)

        checkpoint = await make_indexer(
            clients={"https://a.example": limited, "https://b.example": healthy}
        ).refresh(WALLET)

        assert checkpoint.token_ids == (7,)
        assert limited.eth.calls > 0

    @pytest.mark.asyncio
    async def test_failed_scan_persists_nothing(self, chain, make_indexer, store):
        """A scan failing mid-range leaves the previous checkpoint intact."""
        chain.transfer(ZERO, WALLET, 7, 105)
        committed = await make_indexer().refresh(WALLET)

        chain.head = 300
        chain.transfer(ZERO, WALLET, 8, 130)
        flaky = FakeWeb3(
            FlakyLogsEth(chain, TimeoutError("read timed out"), fail_from_call=3)
        )

        with pytest.raises(ProviderExhausted):
            await make_indexer(clients={"https://a.example": flaky}).refresh(WALLET)

        assert await store.get(WALLET) == committed

    @pytest.mark.asyncio
    async def test_fatal_error_persists_nothing(self, chain, make_indexer, store):
        rejecting = FakeWeb3(
            FlakyLogsEth(chain, ValueError("invalid params"), fail_from_call=1)
        )
        healthy = fake_client(chain)

        with pytest.raises(FatalProviderError):
            await make_indexer(
                clients={"https://a.example": rejecting, "https://b.example": healthy}
            ).refresh(WALLET)

        assert await store.get(WALLET) == WalletCheckpoint.empty(WALLET)


class TestConcurrentRefresh:
    """Concurrent refresh calls."""

    @pytest.mark.asyncio
    async def test_different_wallets(self, chain, make_indexer, store):
        chain.transfer(ZERO, WALLET, 1, 101)
        chain.transfer(ZERO, OTHER, 2, 102)
        indexer = make_indexer()

        mine, theirs = await asyncio.gather(
            indexer.refresh(WALLET), indexer.refresh(OTHER)
        )

        assert mine.token_ids == (1,)
        assert theirs.token_ids == (2,)
        assert (await store.get(WALLET)).token_ids == (1,)
        assert (await store.get(OTHER)).token_ids == (2,)

    @pytest.mark.asyncio
    async def test_same_wallet_last_write_wins(self, chain, make_indexer, store):
        """Unserialized refreshes of one wallet duplicate work but agree on state."""
        chain.transfer(ZERO, WALLET, 7, 105)
        indexer = make_indexer()

        first, second = await asyncio.gather(
            indexer.refresh(WALLET), indexer.refresh(WALLET)
        )

        assert first == second == WalletCheckpoint.build(WALLET, 120, [7])
        assert await store.get(WALLET) == first
        assert all(
            (call["fromBlock"], call["toBlock"]) == (100, 120)
            for call in chain.get_logs_calls
        )


class TestOwnershipService:
    """Tests for the consumer-facing ownership query."""

    @pytest.mark.asyncio
    async def test_cached_path_skips_scan(self, chain, make_indexer, store):
        chain.transfer(ZERO, WALLET, 7, 105)
        service = OwnershipService(make_indexer(), store)

        cached = await service.get_owned_tokens(WALLET, cached=True)

        assert cached == WalletCheckpoint.empty(WALLET)
        assert chain.get_logs_calls == []

        fresh = await service.get_owned_tokens(WALLET)
        assert fresh.token_ids == (7,)
        assert (await service.get_owned_tokens(WALLET, cached=True)) == fresh

    @pytest.mark.asyncio
    async def test_cached_path_validates_wallet(self, make_indexer, store):
        with pytest.raises(InvalidWallet):
            await OwnershipService(make_indexer(), store).get_owned_tokens("bad", cached=True)

    @pytest.mark.asyncio
    async def test_owns_token_refreshes_on_cache_miss(self, chain, make_indexer, store):
        chain.transfer(ZERO, WALLET, 7, 105)
        service = OwnershipService(make_indexer(), store)

        assert await service.owns_token(WALLET, 7)
        assert not await service.owns_token(WALLET, 8)
