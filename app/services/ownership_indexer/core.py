"""
Ownership Indexer Core Service.

Keeps each wallet's owned token ids current by scanning only the blocks
after its last checkpoint.
"""

from loguru import logger

from app.services.blockchain.event_log_reader import EventLogReader
from app.services.blockchain.types import partition_range
from app.utils.exceptions import ContractNotConfigured
from app.utils.security import mask_address
from app.utils.validation import normalize_wallet_address

from .checkpoint_store import CheckpointStore
from .reducer import apply_transfers
from .types import WalletCheckpoint


class OwnershipIndexer:
    """
    Incremental ownership indexer.

    Key features:
    - Resumes from the stored checkpoint, scanning only new blocks
    - Bounded eth_getLogs ranges (chunk_size blocks)
    - Commits only after the whole pending range succeeded
    """

    def __init__(
        self,
        reader: EventLogReader,
        store: CheckpointStore,
        genesis_block: int = 0,
        chunk_size: int = 8000,
    ) -> None:
        """
        Initialize indexer.

        Args:
            reader: Transfer log reader
            store: Checkpoint persistence
            genesis_block: Contract deploy block, first block ever scanned
            chunk_size: Max blocks per log query
        """
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")

        self.reader = reader
        self.store = store
        self.genesis_block = genesis_block
        self.chunk_size = chunk_size

    async def refresh(self, wallet: str) -> WalletCheckpoint:
        """
        Bring a wallet's checkpoint up to the current chain head.

        Args:
            wallet: Wallet address (any case)

        Returns:
            Committed checkpoint

        Raises:
            InvalidWallet: If wallet is malformed
            ContractNotConfigured: If no contract address is set
            ProviderExhausted: If a query failed on every endpoint
            FatalProviderError: If a provider rejected a query
            StorageError: If the checkpoint could not be loaded or saved
        """
        wallet = normalize_wallet_address(wallet)
        if not self.reader.contract_address:
            raise ContractNotConfigured()

        prior = await self.store.get(wallet)
        latest_block = await self.reader.get_block_number()

        if prior.last_scanned_block is not None and prior.last_scanned_block >= latest_block:
            # Head reported by this endpoint lags the checkpoint; never move back
            logger.debug(
                f"[Indexer] {mask_address(wallet)} already at block "
                f"{prior.last_scanned_block} (head {latest_block})"
            )
            return prior

        if prior.last_scanned_block is None:
            start_block = self.genesis_block
        else:
            start_block = max(self.genesis_block, prior.last_scanned_block + 1)

        token_set = frozenset(prior.token_ids)

        if start_block > latest_block:
            checkpoint = WalletCheckpoint.build(wallet, latest_block, token_set)
            await self.store.put(checkpoint)
            return checkpoint

        ranges = partition_range(start_block, latest_block, self.chunk_size)
        logger.info(
            f"[Indexer] Scanning {mask_address(wallet)}: blocks "
            f"{start_block} -> {latest_block} in {len(ranges)} chunks"
        )

        for scan_range in ranges:
            incoming = await self.reader.fetch_transfers(scan_range, to_address=wallet)
            outgoing = await self.reader.fetch_transfers(scan_range, from_address=wallet)
            token_set = apply_transfers(token_set, incoming, outgoing)

            if incoming or outgoing:
                logger.debug(
                    f"[Indexer] Chunk {scan_range}: +{len(incoming)} "
                    f"-{len(outgoing)} transfers, holding {len(token_set)}"
                )

        checkpoint = WalletCheckpoint.build(wallet, latest_block, token_set)
        await self.store.put(checkpoint)

        logger.success(
            f"[Indexer] {mask_address(wallet)} indexed through block "
            f"{latest_block}: {len(checkpoint.token_ids)} tokens"
        )
        return checkpoint
