"""Integration tests for checkpoint persistence (SQLite)."""

import asyncio
from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from app.repositories.wallet_scan_state_repository import WalletScanStateRepository
from app.services.ownership_indexer import CheckpointStore, WalletCheckpoint
from app.utils.exceptions import StorageError
from fakes import OTHER, WALLET


class TestCheckpointStore:
    """Tests for CheckpointStore against a real database."""

    @pytest.mark.asyncio
    async def test_absent_wallet_is_never_scanned(self, store):
        """Unknown wallets read as a fresh, never-scanned checkpoint."""
        checkpoint = await store.get(WALLET)

        assert checkpoint == WalletCheckpoint.empty(WALLET)

    @pytest.mark.asyncio
    async def test_put_then_get(self, store):
        """A stored checkpoint reads back identically."""
        saved = WalletCheckpoint.build(WALLET, 120, [7, 3])
        await store.put(saved)

        assert await store.get(WALLET) == saved

    @pytest.mark.asyncio
    async def test_wallet_key_is_case_insensitive(self, store):
        mixed = "0xABCDEFabcdef0000000000000000000000000001"
        await store.put(WalletCheckpoint.build(mixed.lower(), 5, [1]))

        loaded = await store.get(mixed)

        assert loaded.token_ids == (1,)

    @pytest.mark.asyncio
    async def test_large_token_ids_roundtrip_exactly(self, store):
        """256-bit token ids are stored without precision loss."""
        token_ids = [2**256 - 1, 2**53 + 1]
        await store.put(WalletCheckpoint.build(WALLET, 1, token_ids))

        assert (await store.get(WALLET)).token_ids == tuple(sorted(token_ids))

    @pytest.mark.asyncio
    async def test_put_replaces_whole_record(self, store):
        """A put replaces both fields, it never merges sets."""
        await store.put(WalletCheckpoint.build(WALLET, 100, [1, 2, 3]))
        await store.put(WalletCheckpoint.build(WALLET, 150, [4]))

        loaded = await store.get(WALLET)

        assert loaded.last_scanned_block == 150
        assert loaded.token_ids == (4,)

    @pytest.mark.asyncio
    async def test_wallets_are_isolated(self, store):
        """Concurrent puts for different wallets keep separate records."""
        await asyncio.gather(
            store.put(WalletCheckpoint.build(WALLET, 10, [1])),
            store.put(WalletCheckpoint.build(OTHER, 20, [2])),
        )

        assert (await store.get(WALLET)).token_ids == (1,)
        assert (await store.get(OTHER)).token_ids == (2,)

    @pytest.mark.asyncio
    async def test_state_survives_new_store_instance(self, session_maker, store):
        """Checkpoints are durable across store instances (restart)."""
        await store.put(WalletCheckpoint.build(WALLET, 42, [9]))

        reopened = CheckpointStore(session_maker)

        assert (await reopened.get(WALLET)).last_scanned_block == 42

    @pytest.mark.asyncio
    async def test_corrupted_row_raises_storage_error(self, session_maker, store):
        async with session_maker() as session:
            async with session.begin():
                await WalletScanStateRepository(session).save(
                    wallet=WALLET, last_scanned_block=1, token_ids_json="{broken"
                )

        with pytest.raises(StorageError):
            await store.get(WALLET)

    @pytest.mark.asyncio
    async def test_database_failure_raises_storage_error(self):
        """Driver errors surface as StorageError."""
        session_maker = MagicMock(
            side_effect=OperationalError("SELECT", {}, Exception("disk I/O error"))
        )
        store = CheckpointStore(session_maker)

        with pytest.raises(StorageError):
            await store.get(WALLET)
        with pytest.raises(StorageError):
            await store.put(WalletCheckpoint.build(WALLET, 1, []))
